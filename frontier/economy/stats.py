"""CityStats — the settlement ledger.

A single immutable record of money, materials, population and the calendar.
The economy ticker and the transaction handler are the only producers of new
ledgers; everyone else only reads them.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from enum import Enum

from frontier.economy.buildings import Cost
from frontier.world.environment import Weather


class Era(Enum):
    """Technological age of the settlement, in progression order."""

    PRIMITIVE = "Primitive"
    INDUSTRIAL = "Industrial"
    MODERN = "Modern"
    FUTURE = "Future"

    @property
    def rank(self) -> int:
        """Position of this era in the progression."""
        return _ERA_ORDER.index(self)

    def next(self) -> Era | None:
        """Return the following era, or None for the last one."""
        rank = self.rank
        if rank + 1 < len(_ERA_ORDER):
            return _ERA_ORDER[rank + 1]
        return None


_ERA_ORDER: tuple[Era, ...] = tuple(Era)


@dataclass(frozen=True)
class EraThreshold:
    """Population and money both required to enter an era."""

    population: int
    money: int


def default_era_thresholds() -> dict[Era, EraThreshold]:
    """Return the stock era thresholds."""
    return {
        Era.PRIMITIVE: EraThreshold(population=0, money=0),
        Era.INDUSTRIAL: EraThreshold(population=50, money=3000),
        Era.MODERN: EraThreshold(population=300, money=15000),
        Era.FUTURE: EraThreshold(population=1000, money=60000),
    }


@dataclass(frozen=True)
class CityStats:
    """The settlement ledger.

    Attributes:
        money: Treasury.
        wood: Stockpiled wood.
        stone: Stockpiled stone.
        food: Stockpiled food.
        population: Current inhabitants.
        day: Economy ticks elapsed, starting at 1.
        era: Current era (never goes backwards).
        weather: Current weather (cosmetic).
    """

    money: int = 1500
    wood: int = 100
    stone: int = 50
    food: int = 200
    population: int = 0
    day: int = 1
    era: Era = Era.PRIMITIVE
    weather: Weather = Weather.SUNNY

    def can_afford(self, cost: Cost) -> bool:
        """Return True if every component of ``cost`` is covered."""
        return (
            self.money >= cost.money
            and self.wood >= cost.wood
            and self.stone >= cost.stone
        )

    def debit(self, cost: Cost) -> CityStats:
        """Return a ledger with ``cost`` removed.

        Raises:
            ValueError: If any counter would go negative.
        """
        if not self.can_afford(cost):
            msg = f"cannot afford {cost} with {self}"
            raise ValueError(msg)
        return dataclasses.replace(
            self,
            money=self.money - cost.money,
            wood=self.wood - cost.wood,
            stone=self.stone - cost.stone,
        )

    def credit(self, **amounts: int) -> CityStats:
        """Return a ledger with the given counters increased."""
        return dataclasses.replace(
            self,
            **{name: getattr(self, name) + value for name, value in amounts.items()},
        )
