"""Explorers — boats launched from ports that push back the fog of war.

Each explorer heads for the nearest unexplored tile, lifts the fog around
it on arrival, and loots any forest or stone it uncovers.  Explorers are
never destroyed: ports are permanent infrastructure, and a boat keeps
sailing even if its home port is later bulldozed.
"""

from __future__ import annotations

import dataclasses
import itertools
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

from frontier.agents.steering import nearest_cell, step_toward
from frontier.simulation.events import NewsKind, Notice
from frontier.world.tile import ResourceType

if TYPE_CHECKING:
    from frontier.simulation.config import SimulationConfig
    from frontier.world.grid import Grid
    from frontier.world.tile import Tile

logger = logging.getLogger(__name__)


class ExplorerState(Enum):
    """What an explorer is currently doing."""

    IDLE = "idle"
    EXPLORING = "exploring"


@dataclass
class ExplorerAgent:
    """A single exploration boat.

    Attributes:
        id: Unique identifier within the session.
        x: Continuous column position.
        y: Continuous row position.
        target_x: Column of the tile being explored, if any.
        target_y: Row of the tile being explored, if any.
        state: Current activity.
    """

    id: int
    x: float
    y: float
    target_x: int | None = None
    target_y: int | None = None
    state: ExplorerState = ExplorerState.IDLE

    @property
    def has_target(self) -> bool:
        return self.target_x is not None and self.target_y is not None

    def clear_target(self) -> None:
        self.target_x = None
        self.target_y = None
        self.state = ExplorerState.IDLE


@dataclass(frozen=True)
class Discovery:
    """Loot gathered by the fleet during one tick."""

    wood: int = 0
    stone: int = 0
    money: int = 0
    tiles: tuple[tuple[int, int], ...] = ()
    notice: Notice | None = None

    @property
    def found_anything(self) -> bool:
        return bool(self.tiles)


@dataclass
class ExplorerFleet:
    """All exploration boats of a session.

    Attributes:
        config: Explorer tunables.
        agents: Boats launched so far.
    """

    config: SimulationConfig
    agents: list[ExplorerAgent] = field(default_factory=list)
    _ids: itertools.count[int] = field(
        default_factory=lambda: itertools.count(1),
        init=False,
        repr=False,
    )

    def launch(self, x: int, y: int) -> ExplorerAgent:
        """Put a new idle boat in the water at ``(x, y)``."""
        agent = ExplorerAgent(id=next(self._ids), x=float(x), y=float(y))
        self.agents.append(agent)
        logger.info("Explorer %d launched at (%d, %d)", agent.id, x, y)
        return agent

    def update(self, grid: Grid) -> tuple[Grid, Discovery]:
        """Run one explorer tick.

        Boats without a target (or whose target was revealed by someone
        else) pick the nearest unexplored tile.  Every boat then steps
        toward its target; on arrival the fog is lifted around it and the
        newly revealed resources are harvested.

        Args:
            grid: Current grid.

        Returns:
            The grid with any revealed tiles, and the tick's loot.
        """
        cfg = self.config
        if not self.agents:
            return grid, Discovery()

        if not grid.fog_mask.any():
            for agent in self.agents:
                agent.clear_target()
            return grid, Discovery()

        found: list[Tile] = []
        for agent in self.agents:
            if not self._target_pending(agent, grid):
                nearest = nearest_cell(grid.fog_mask, agent.x, agent.y)
                if nearest is None:
                    agent.clear_target()
                    continue
                agent.target_x, agent.target_y, _ = nearest
                agent.state = ExplorerState.EXPLORING

            agent.x, agent.y = step_toward(
                agent.x,
                agent.y,
                agent.target_x,
                agent.target_y,
                cfg.explorer_speed,
            )
            reach = max(abs(agent.x - agent.target_x), abs(agent.y - agent.target_y))
            if reach <= cfg.explorer_arrival_distance:
                grid, revealed = grid.reveal_area(
                    agent.target_x,
                    agent.target_y,
                    cfg.explorer_reveal_radius,
                )
                found.extend(revealed)
                agent.clear_target()

        return grid, self._harvest(found)

    @staticmethod
    def _target_pending(agent: ExplorerAgent, grid: Grid) -> bool:
        if not agent.has_target:
            return False
        return not grid.tile_at(agent.target_x, agent.target_y).explored

    def _harvest(self, found: list[Tile]) -> Discovery:
        if not found:
            return Discovery()
        cfg = self.config
        forests = sum(1 for t in found if t.resource is ResourceType.FOREST)
        quarries = sum(1 for t in found if t.resource is ResourceType.STONE)
        wood = forests * cfg.explorer_forest_wood
        stone = quarries * cfg.explorer_stone_stone
        money = len(found) * cfg.explorer_money_bonus
        parts = [f"+${money}"]
        if wood:
            parts.append(f"+{wood} Wood")
        if stone:
            parts.append(f"+{stone} Stone")
        notice = Notice(
            f"Explorers discovered {len(found)} new resource site(s): "
            + ", ".join(parts)
            + ".",
            NewsKind.POSITIVE,
        )
        return Discovery(
            wood=wood,
            stone=stone,
            money=money,
            tiles=tuple((t.x, t.y) for t in found),
            notice=notice,
        )

    def snapshot(self) -> tuple[ExplorerAgent, ...]:
        """Return detached copies of all boats."""
        return tuple(dataclasses.replace(a) for a in self.agents)
