"""Environment — weather over the settlement.

Weather is purely a side value: presentation layers read it, the economy
and agent subsystems ignore it.  It is re-rolled once per economy tick.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from numpy.random import Generator


class Weather(Enum):
    """Sky over the settlement."""

    SUNNY = "Sunny"
    RAIN = "Rain"
    SNOW = "Snow"


_ALL_WEATHER = tuple(Weather)


def roll_weather(current: Weather, rng: Generator, change_chance: float) -> Weather:
    """Occasionally re-roll the weather.

    With probability ``change_chance`` a new weather is drawn uniformly from
    all states (which may pick the current one again); otherwise the current
    weather is kept.

    Args:
        current: Weather before this tick.
        rng: Seeded random generator.
        change_chance: Per-tick probability of a re-roll.
    """
    if rng.random() < change_chance:
        return _ALL_WEATHER[int(rng.integers(0, len(_ALL_WEATHER)))]
    return current
