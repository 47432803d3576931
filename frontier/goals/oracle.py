"""Oracle — the external goal and news generator, and the bridge to it.

The oracle is an opaque, possibly slow, possibly failing dependency.  The
simulation never calls it directly from a tick: requests are handed to a
thread pool through ``OracleBridge`` and the completions are harvested by
the single writer at the start of a later scheduler step.  Failures and
empty answers simply mean "nothing this time".
"""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor, wait
from dataclasses import dataclass
from enum import Enum, auto
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

import numpy as np

from frontier.goals.tracker import Goal, parse_goal
from frontier.simulation.events import NewsKind

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from frontier.economy.stats import CityStats
    from frontier.world.grid import Grid

logger = logging.getLogger(__name__)


class OracleError(Exception):
    """Raised by oracle implementations when a request fails."""


@dataclass(frozen=True)
class NewsEvent:
    """A piece of generated news."""

    text: str
    kind: NewsKind = NewsKind.NEUTRAL


@runtime_checkable
class Oracle(Protocol):
    """Protocol for goal/news generators.

    Implementations may block; they are always invoked on a worker thread.
    Any exception is caught by the bridge and treated as an empty answer.
    """

    def request_goal(self, stats: CityStats, grid: Grid) -> Goal | None:
        """Return a new goal for the settlement, or None."""
        ...

    def request_news(self, stats: CityStats) -> NewsEvent | None:
        """Return a news item for the settlement, or None."""
        ...


class NullOracle:
    """Oracle that never has anything to say."""

    def request_goal(self, stats: CityStats, grid: Grid) -> Goal | None:
        return None

    def request_news(self, stats: CityStats) -> NewsEvent | None:
        return None


class ScriptedOracle:
    """Oracle that draws from canned goals and headlines.

    Conforms to the Oracle protocol.  Useful offline and in tests.

    Args:
        goals: Goal payloads (see ``parse_goal``) to draw from.
        news: News payloads with ``text`` and optional ``type``.
        seed: Seed for the oracle's private random generator.
        failure_rate: Probability a request raises ``OracleError``.
    """

    def __init__(
        self,
        goals: Sequence[Mapping[str, Any]] = (),
        news: Sequence[Mapping[str, Any]] = (),
        *,
        seed: int | None = None,
        failure_rate: float = 0.0,
    ) -> None:
        self._goals = [parse_goal(g) for g in goals]
        self._news = [
            NewsEvent(text=str(n["text"]), kind=NewsKind(n.get("type", "neutral")))
            for n in news
        ]
        self._failure_rate = failure_rate
        # Private generator: calls arrive from worker threads.
        self._rng = np.random.default_rng(seed)

    def request_goal(self, stats: CityStats, grid: Grid) -> Goal | None:
        self._maybe_fail()
        if not self._goals:
            return None
        return self._goals[int(self._rng.integers(0, len(self._goals)))]

    def request_news(self, stats: CityStats) -> NewsEvent | None:
        self._maybe_fail()
        if not self._news:
            return None
        return self._news[int(self._rng.integers(0, len(self._news)))]

    def _maybe_fail(self) -> None:
        if self._failure_rate > 0.0 and self._rng.random() < self._failure_rate:
            msg = "scripted oracle failure"
            raise OracleError(msg)


class RequestKind(Enum):
    """Kind of oracle request in flight."""

    GOAL = auto()
    NEWS = auto()


@dataclass(frozen=True)
class Completion:
    """A harvested oracle answer.

    Attributes:
        kind: Which request this answers.
        value: The goal or news event, or None on empty/failed requests.
        error: Description of the failure, if the request raised.
    """

    kind: RequestKind
    value: Goal | NewsEvent | None
    error: str | None = None


class OracleBridge:
    """Message-passing boundary between the simulation and an oracle.

    ``submit_*`` hands a request to the thread pool and returns at once;
    ``poll`` collects whatever has finished.  At most one goal request is in
    flight at a time.  After ``shutdown`` every call is a no-op and late
    answers are dropped.
    """

    def __init__(self, oracle: Oracle, *, workers: int = 2) -> None:
        self._oracle = oracle
        self._executor = ThreadPoolExecutor(
            max_workers=workers,
            thread_name_prefix="oracle",
        )
        self._pending: list[tuple[RequestKind, Future[Any]]] = []
        self._shutdown = False

    @property
    def goal_pending(self) -> bool:
        """Return True if a goal request is still in flight."""
        return any(kind is RequestKind.GOAL for kind, _ in self._pending)

    @property
    def closed(self) -> bool:
        return self._shutdown

    def submit_goal(self, stats: CityStats, grid: Grid) -> bool:
        """Ask for a new goal.  Returns False if not sent."""
        if self._shutdown or self.goal_pending:
            return False
        future = self._executor.submit(self._oracle.request_goal, stats, grid)
        self._pending.append((RequestKind.GOAL, future))
        return True

    def submit_news(self, stats: CityStats) -> bool:
        """Ask for a news item.  Returns False if not sent."""
        if self._shutdown:
            return False
        future = self._executor.submit(self._oracle.request_news, stats)
        self._pending.append((RequestKind.NEWS, future))
        return True

    def poll(self) -> list[Completion]:
        """Harvest finished requests in submission order."""
        if self._shutdown:
            return []
        done: list[Completion] = []
        still_pending: list[tuple[RequestKind, Future[Any]]] = []
        for kind, future in self._pending:
            if not future.done():
                still_pending.append((kind, future))
                continue
            done.append(self._complete(kind, future))
        self._pending = still_pending
        return done

    def join(self, timeout: float | None = None) -> None:
        """Block until every in-flight request has finished."""
        wait([future for _, future in self._pending], timeout=timeout)

    def shutdown(self) -> None:
        """Stop accepting requests and discard in-flight ones."""
        if self._shutdown:
            return
        self._shutdown = True
        self._executor.shutdown(wait=False, cancel_futures=True)
        self._pending.clear()

    def _complete(self, kind: RequestKind, future: Future[Any]) -> Completion:
        if future.cancelled():
            return Completion(kind, None, error="cancelled")
        exc = future.exception()
        if exc is not None:
            logger.warning("Oracle %s request failed: %s", kind.name.lower(), exc)
            return Completion(kind, None, error=str(exc))
        value = future.result()
        expected = Goal if kind is RequestKind.GOAL else NewsEvent
        if value is not None and not isinstance(value, expected):
            logger.warning(
                "Oracle %s request returned %s, ignoring",
                kind.name.lower(),
                type(value).__name__,
            )
            return Completion(kind, None, error="unexpected result type")
        return Completion(kind, value)
