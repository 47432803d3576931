"""Buildings — the catalog of constructible structures.

Each entry carries the construction cost and the per-tick yields used by
the economy ticker.  The catalog can be overridden from YAML through
``SimulationConfig``.
"""

from __future__ import annotations

from dataclasses import dataclass

from frontier.world.tile import BuildingType


@dataclass(frozen=True)
class Cost:
    """A bundle of ledger resources."""

    money: int = 0
    wood: int = 0
    stone: int = 0

    def scaled(self, factor: float) -> Cost:
        """Return the cost multiplied by ``factor``, rounded down."""
        return Cost(
            money=int(self.money * factor),
            wood=int(self.wood * factor),
            stone=int(self.stone * factor),
        )


@dataclass(frozen=True)
class BuildingSpec:
    """Static description of a building type.

    Attributes:
        building: Which building this describes.
        name: Player-facing name.
        cost: Construction cost (also the base for upgrade costs).
        pop_gen: Population growth per tick at level 1.
        income_gen: Money per tick at level 1 and land value 1.0.
            Negative values are upkeep.
    """

    building: BuildingType
    name: str
    cost: Cost
    pop_gen: int = 0
    income_gen: int = 0


def default_catalog() -> dict[BuildingType, BuildingSpec]:
    """Return a fresh copy of the stock building catalog."""
    specs = [
        BuildingSpec(BuildingType.NONE, "Bulldoze", Cost()),
        BuildingSpec(BuildingType.ROAD, "Road", Cost(money=5)),
        BuildingSpec(
            BuildingType.RESIDENTIAL,
            "Housing",
            Cost(money=50, wood=10),
            pop_gen=5,
            income_gen=5,
        ),
        BuildingSpec(
            BuildingType.COMMERCIAL,
            "Business",
            Cost(money=100, wood=20, stone=5),
            income_gen=25,
        ),
        BuildingSpec(
            BuildingType.INDUSTRIAL,
            "Industry",
            Cost(money=200, wood=30, stone=10),
            income_gen=10,
        ),
        BuildingSpec(
            BuildingType.PARK,
            "Park",
            Cost(money=50, wood=10, stone=5),
            pop_gen=1,
        ),
        BuildingSpec(
            BuildingType.FARM,
            "Farm",
            Cost(money=30, wood=5),
            income_gen=5,
        ),
        BuildingSpec(
            BuildingType.DEFENSE,
            "Defense",
            Cost(money=150, wood=20, stone=40),
            income_gen=-5,
        ),
        BuildingSpec(
            BuildingType.PORT,
            "Port",
            Cost(money=300, wood=50, stone=20),
            pop_gen=2,
            income_gen=10,
        ),
    ]
    return {spec.building: spec for spec in specs}
