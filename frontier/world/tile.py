"""Tile — a single cell of the settlement grid.

Tiles are immutable.  Any change to a tile (building placed, level raised,
fog lifted) produces a new Tile that replaces the old one in the Grid, so
snapshots handed to readers never change underneath them.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class BuildingType(Enum):
    """Structures that can occupy a tile.  ``NONE`` doubles as the bulldozer."""

    NONE = "None"
    ROAD = "Road"
    RESIDENTIAL = "Residential"
    COMMERCIAL = "Commercial"
    INDUSTRIAL = "Industrial"
    PARK = "Park"
    FARM = "Farm"
    DEFENSE = "Defense"
    PORT = "Port"


class ResourceType(Enum):
    """Natural feature underlying a tile."""

    NONE = "None"
    WATER = "Water"
    FOREST = "Forest"
    STONE = "Stone"


MIN_LEVEL = 1
MAX_LEVEL = 3


@dataclass(frozen=True)
class Tile:
    """A single tile in the settlement grid.

    Attributes:
        x: Column position.
        y: Row position.
        building: Structure currently standing on the tile.
        resource: Natural resource under the tile.
        land_value: Desirability score derived from the neighbourhood
            (0.5-2.5).
        level: Upgrade level of the building (1-3).
        variant: Opaque random value kept for presentation layers.
        explored: Whether the fog of war has been lifted here.
    """

    x: int
    y: int
    building: BuildingType = BuildingType.NONE
    resource: ResourceType = ResourceType.NONE
    land_value: float = 1.0
    level: int = MIN_LEVEL
    variant: float = 0.0
    explored: bool = False

    @property
    def is_water(self) -> bool:
        """Return True if the tile is open water."""
        return self.resource is ResourceType.WATER

    @property
    def has_building(self) -> bool:
        """Return True if any structure (roads included) stands here."""
        return self.building is not BuildingType.NONE

    @property
    def is_target(self) -> bool:
        """Return True if hostiles consider this tile worth attacking."""
        return self.building not in (BuildingType.NONE, BuildingType.ROAD)

    @property
    def harvestable(self) -> bool:
        """Return True if the tile carries a land resource explorers can loot."""
        return self.resource in (ResourceType.FOREST, ResourceType.STONE)
