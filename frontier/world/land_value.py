"""Land value — neighbourhood-derived desirability of a tile.

Land value is a pure function of the eight surrounding tiles.  Because a
tile's value only depends on its direct neighbours, a structural change at
``(x, y)`` can only invalidate the 3x3 block centred on it, which is what
``recompute_block`` refreshes.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from frontier.world.tile import BuildingType, ResourceType

if TYPE_CHECKING:
    from frontier.world.grid import Grid

BASE_VALUE = 1.0
MIN_VALUE = 0.5
MAX_VALUE = 2.5

_RESOURCE_BONUS: dict[ResourceType, float] = {
    ResourceType.WATER: 0.1,
    ResourceType.FOREST: 0.05,
}

_BUILDING_BONUS: dict[BuildingType, float] = {
    BuildingType.PARK: 0.2,
    BuildingType.INDUSTRIAL: -0.15,
    BuildingType.DEFENSE: 0.05,
}

_LEVEL_BONUS = 0.1


def land_value(grid: Grid, x: int, y: int) -> float:
    """Compute the land value of ``(x, y)`` from its 8-neighbourhood.

    Edge and corner tiles simply have fewer neighbours to contribute.

    Args:
        grid: The grid to read from.
        x: Column index.
        y: Row index.

    Returns:
        The clamped value in ``[MIN_VALUE, MAX_VALUE]``.
    """
    value = BASE_VALUE
    for tile in grid.neighbours(x, y):
        value += _RESOURCE_BONUS.get(tile.resource, 0.0)
        value += _BUILDING_BONUS.get(tile.building, 0.0)
        if tile.level > 1:
            value += _LEVEL_BONUS * (tile.level - 1)
    return max(MIN_VALUE, min(MAX_VALUE, value))


def recompute_block(grid: Grid, x: int, y: int) -> Grid:
    """Refresh land value for the 3x3 block around ``(x, y)``.

    All values are computed against the same input grid and written back in
    one batched replacement.

    Args:
        grid: Grid that already contains the structural change.
        x: Column of the changed tile.
        y: Row of the changed tile.

    Returns:
        A new grid with updated land values (or ``grid`` if nothing moved).
    """
    patches: dict[tuple[int, int], dict[str, float]] = {}
    for ny in range(y - 1, y + 2):
        for nx in range(x - 1, x + 2):
            if not grid.in_bounds(nx, ny):
                continue
            value = land_value(grid, nx, ny)
            if value != grid.tile_at(nx, ny).land_value:
                patches[(nx, ny)] = {"land_value": value}
    if not patches:
        return grid
    return grid.replace_tiles(patches)


def recompute_all(grid: Grid) -> Grid:
    """Refresh land value for every tile (used once after generation)."""
    patches = {
        (tile.x, tile.y): {"land_value": land_value(grid, tile.x, tile.y)}
        for tile in grid.tiles()
    }
    return grid.replace_tiles(patches)
