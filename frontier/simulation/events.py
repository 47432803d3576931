"""Events — the bounded log of recent narrative notifications.

Events are one-way: the simulation appends them, presentation layers read
them, and nothing in the core ever branches on their content.
"""

from __future__ import annotations

import itertools
from collections import deque
from dataclasses import dataclass
from enum import Enum


class NewsKind(Enum):
    """Tone of a news item."""

    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"


@dataclass(frozen=True)
class Notice:
    """A notification produced by a subsystem, not yet posted to the log."""

    text: str
    kind: NewsKind = NewsKind.NEUTRAL


@dataclass(frozen=True)
class NewsItem:
    """A single entry in the news feed.

    Attributes:
        id: Unique, increasing identifier.
        text: Message shown to the player.
        kind: Tone of the message.
        day: Settlement day on which it was posted.
    """

    id: int
    text: str
    kind: NewsKind
    day: int


class EventLog:
    """Append-only feed that keeps only the ``capacity`` newest items."""

    def __init__(self, capacity: int = 13) -> None:
        self._items: deque[NewsItem] = deque(maxlen=capacity)
        self._ids = itertools.count(1)

    def post(self, text: str, kind: NewsKind, day: int) -> NewsItem:
        """Append a new item, dropping the oldest one when full."""
        item = NewsItem(id=next(self._ids), text=text, kind=kind, day=day)
        self._items.append(item)
        return item

    def items(self) -> tuple[NewsItem, ...]:
        """Return the current feed, oldest first."""
        return tuple(self._items)

    def __len__(self) -> int:
        return len(self._items)
