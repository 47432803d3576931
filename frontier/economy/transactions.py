"""Transactions — player build, upgrade and demolish commands.

A command is resolved against a (grid, ledger) pair and yields a new pair
only when it is accepted.  Nothing is ever partially applied: a rejected
command hands back the exact grid and ledger it was given.

Precedence for a click with a given tool:

1. **Upgrade** when the tile already holds the selected building.
2. **Demolish** when the tool is the bulldozer (``BuildingType.NONE``).
3. **Build** on an empty, explored tile.
"""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from enum import Enum, auto
from typing import TYPE_CHECKING

from frontier.simulation.events import NewsKind, Notice
from frontier.world.land_value import recompute_block
from frontier.world.tile import MAX_LEVEL, MIN_LEVEL, BuildingType, ResourceType

if TYPE_CHECKING:
    from frontier.economy.buildings import Cost
    from frontier.economy.stats import CityStats
    from frontier.simulation.config import SimulationConfig
    from frontier.world.grid import Grid
    from frontier.world.tile import Tile

logger = logging.getLogger(__name__)


class Action(Enum):
    """Which branch of the command resolved."""

    UPGRADE = auto()
    DEMOLISH = auto()
    BUILD = auto()


class Rejection(Enum):
    """Why a command was turned down."""

    NOT_STARTED = auto()
    OUT_OF_BOUNDS = auto()
    UNEXPLORED = auto()
    OCCUPIED = auto()
    ILLEGAL_PLACEMENT = auto()
    MAX_LEVEL = auto()
    INSUFFICIENT_RESOURCES = auto()
    NOTHING_TO_DEMOLISH = auto()


@dataclass(frozen=True)
class TransactionResult:
    """Outcome of a player command.

    Attributes:
        grid: Grid to publish (the input grid when rejected).
        stats: Ledger to publish (the input ledger when rejected).
        action: Branch that handled the command, if any.
        rejection: Reason for refusal, or None when accepted.
        notice: Optional message for the news feed.
        launch_explorer_at: Tile where a new explorer should be launched.
    """

    grid: Grid
    stats: CityStats
    action: Action | None = None
    rejection: Rejection | None = None
    notice: Notice | None = None
    launch_explorer_at: tuple[int, int] | None = None

    @property
    def accepted(self) -> bool:
        """Return True if the command changed the world."""
        return self.rejection is None


def upgrade_cost(base: Cost, level: int, multiplier: float) -> Cost:
    """Cost of raising a building from ``level`` to ``level + 1``."""
    return base.scaled(multiplier**level)


def apply_command(
    grid: Grid,
    stats: CityStats,
    x: int,
    y: int,
    tool: BuildingType,
    config: SimulationConfig,
) -> TransactionResult:
    """Resolve a click at ``(x, y)`` with the selected ``tool``.

    Args:
        grid: Current grid.
        stats: Current ledger.
        x: Column clicked.
        y: Row clicked.
        tool: Selected building, or ``BuildingType.NONE`` to bulldoze.
        config: Costs and fees.

    Returns:
        The resolved transaction.  Callers publish ``result.grid`` and
        ``result.stats`` together.
    """
    if not grid.in_bounds(x, y):
        return TransactionResult(grid, stats, rejection=Rejection.OUT_OF_BOUNDS)

    tile = grid.tile_at(x, y)
    if not tile.explored:
        return _reject(grid, stats, Rejection.UNEXPLORED, "This land is unexplored.")

    if tile.has_building and tile.building is tool:
        return _upgrade(grid, stats, tile, config)
    if tool is BuildingType.NONE:
        return _demolish(grid, stats, tile, config)
    return _build(grid, stats, tile, tool, config)


def _upgrade(
    grid: Grid,
    stats: CityStats,
    tile: Tile,
    config: SimulationConfig,
) -> TransactionResult:
    spec = config.buildings[tile.building]
    if tile.level >= MAX_LEVEL:
        return _reject(
            grid,
            stats,
            Rejection.MAX_LEVEL,
            f"{spec.name} is already at max level.",
            action=Action.UPGRADE,
        )

    cost = upgrade_cost(spec.cost, tile.level, config.upgrade_multiplier)
    if not stats.can_afford(cost):
        return _reject(
            grid,
            stats,
            Rejection.INSUFFICIENT_RESOURCES,
            f"Need ${cost.money}, {cost.wood} wood, {cost.stone} stone "
            f"to upgrade {spec.name}.",
            action=Action.UPGRADE,
        )

    level = tile.level + 1
    new_grid = grid.replace_tile(tile.x, tile.y, level=level)
    new_grid = recompute_block(new_grid, tile.x, tile.y)
    logger.debug(
        "Upgraded %s at (%d, %d) to level %d",
        spec.name,
        tile.x,
        tile.y,
        level,
    )
    return TransactionResult(
        grid=new_grid,
        stats=stats.debit(cost),
        action=Action.UPGRADE,
        notice=Notice(f"Upgraded {spec.name} to level {level}.", NewsKind.POSITIVE),
    )


def _demolish(
    grid: Grid,
    stats: CityStats,
    tile: Tile,
    config: SimulationConfig,
) -> TransactionResult:
    if not tile.has_building:
        return TransactionResult(
            grid,
            stats,
            action=Action.DEMOLISH,
            rejection=Rejection.NOTHING_TO_DEMOLISH,
        )
    if stats.money < config.demolish_fee:
        return TransactionResult(
            grid,
            stats,
            action=Action.DEMOLISH,
            rejection=Rejection.INSUFFICIENT_RESOURCES,
        )

    new_grid = grid.replace_tile(
        tile.x,
        tile.y,
        building=BuildingType.NONE,
        level=MIN_LEVEL,
    )
    new_grid = recompute_block(new_grid, tile.x, tile.y)
    new_stats = dataclasses.replace(stats, money=stats.money - config.demolish_fee)
    notice = None
    if tile.resource is ResourceType.FOREST:
        new_stats = new_stats.credit(wood=config.demolish_forest_wood)
        notice = Notice(
            f"Cleared forest. +{config.demolish_forest_wood} Wood.",
            NewsKind.NEUTRAL,
        )
    logger.debug("Demolished %s at (%d, %d)", tile.building.value, tile.x, tile.y)
    return TransactionResult(
        grid=new_grid,
        stats=new_stats,
        action=Action.DEMOLISH,
        notice=notice,
    )


def _build(
    grid: Grid,
    stats: CityStats,
    tile: Tile,
    tool: BuildingType,
    config: SimulationConfig,
) -> TransactionResult:
    if tile.has_building:
        return TransactionResult(
            grid,
            stats,
            action=Action.BUILD,
            rejection=Rejection.OCCUPIED,
        )
    if tile.is_water and tool not in (BuildingType.PORT, BuildingType.ROAD):
        return _reject(
            grid,
            stats,
            Rejection.ILLEGAL_PLACEMENT,
            "Cannot build on water.",
            action=Action.BUILD,
        )
    if tool is BuildingType.PORT and not tile.is_water:
        return _reject(
            grid,
            stats,
            Rejection.ILLEGAL_PLACEMENT,
            "Ports must be built on water.",
            action=Action.BUILD,
        )

    spec = config.buildings[tool]
    if not stats.can_afford(spec.cost):
        return _reject(
            grid,
            stats,
            Rejection.INSUFFICIENT_RESOURCES,
            f"Insufficient resources for {spec.name}.",
            action=Action.BUILD,
        )

    new_grid = grid.replace_tile(tile.x, tile.y, building=tool, level=MIN_LEVEL)
    new_grid = recompute_block(new_grid, tile.x, tile.y)
    launch = (tile.x, tile.y) if tool is BuildingType.PORT else None
    logger.debug("Built %s at (%d, %d)", spec.name, tile.x, tile.y)
    return TransactionResult(
        grid=new_grid,
        stats=stats.debit(spec.cost),
        action=Action.BUILD,
        launch_explorer_at=launch,
    )


def _reject(
    grid: Grid,
    stats: CityStats,
    rejection: Rejection,
    message: str,
    *,
    action: Action | None = None,
) -> TransactionResult:
    return TransactionResult(
        grid,
        stats,
        action=action,
        rejection=rejection,
        notice=Notice(message, NewsKind.NEGATIVE),
    )
