"""Hostiles — raiders that march on the settlement.

Raiders appear on the map edge more often as the population grows, walk
toward the nearest structure, get shot by defense towers along the way,
and now and then steal money and food once they reach a building.
"""

from __future__ import annotations

import dataclasses
import itertools
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from frontier.agents.steering import nearest_cell, round_half_up, step_toward
from frontier.economy.stats import Era
from frontier.simulation.events import NewsKind, Notice
from frontier.world.tile import BuildingType

if TYPE_CHECKING:
    from numpy.random import Generator

    from frontier.economy.stats import CityStats
    from frontier.simulation.config import SimulationConfig
    from frontier.world.grid import Grid


logger = logging.getLogger(__name__)


@dataclass
class HostileAgent:
    """A single raider.

    Attributes:
        id: Unique identifier within the session.
        x: Continuous column position.
        y: Continuous row position.
        hp: Remaining hit-points (removed at 0).
        max_hp: Hit-points at spawn.
        attack_cooldown: Ticks until the next attack attempt.
    """

    id: int
    x: float
    y: float
    hp: float
    max_hp: float
    attack_cooldown: int = 0

    @property
    def is_alive(self) -> bool:
        """Return True if this raider is still standing."""
        return self.hp > 0


@dataclass(frozen=True)
class RaidReport:
    """What the raiders did during one tick.

    Attributes:
        stolen_money: Money taken from the treasury.
        stolen_food: Food taken from the stockpile.
        killed: Ids of raiders that died this tick.
        notices: Narrative events to post.
    """

    stolen_money: int = 0
    stolen_food: int = 0
    killed: tuple[int, ...] = ()
    notices: tuple[Notice, ...] = ()


@dataclass
class HostileHorde:
    """All active raiders of a session.

    Attributes:
        config: Hostile tunables.
        agents: Raiders currently on the map.
    """

    config: SimulationConfig
    agents: list[HostileAgent] = field(default_factory=list)
    _ids: itertools.count[int] = field(
        default_factory=lambda: itertools.count(1),
        init=False,
        repr=False,
    )

    def spawn_chance(self, population: int) -> float:
        """Per-tick chance of a new raider for the given population."""
        return min(
            self.config.hostile_spawn_cap,
            population / self.config.hostile_spawn_divisor,
        )

    def spawn(self, x: float, y: float, era: Era) -> HostileAgent:
        """Place a new raider at ``(x, y)`` with era-scaled hit-points."""
        hp = self.config.hostile_base_hp
        if era is Era.FUTURE:
            hp += self.config.hostile_future_bonus_hp
        agent = HostileAgent(id=next(self._ids), x=x, y=y, hp=hp, max_hp=hp)
        self.agents.append(agent)
        return agent

    def maybe_spawn(
        self,
        stats: CityStats,
        size: int,
        rng: Generator,
    ) -> HostileAgent | None:
        """Roll for a new raider on a random map edge.

        Args:
            stats: Current ledger (population and era drive the roll).
            size: Grid size.
            rng: Seeded random generator.

        Returns:
            The new raider, or None if nothing spawned.
        """
        if len(self.agents) >= self.config.max_hostiles:
            return None
        if rng.random() >= self.spawn_chance(stats.population):
            return None

        edge = int(rng.integers(0, 4))
        along = float(rng.random()) * size
        far = float(size - 1)
        if edge == 0:
            x, y = along, 0.0
        elif edge == 1:
            x, y = along, far
        elif edge == 2:
            x, y = 0.0, along
        else:
            x, y = far, along
        agent = self.spawn(x, y, stats.era)
        logger.debug("Raider %d spawned at (%.1f, %.1f)", agent.id, x, y)
        return agent

    def defense_damage(self, agent: HostileAgent, grid: Grid) -> float:
        """Damage dealt by every defense tower covering the raider's tile.

        Towers in the 3x3 block around the raider's rounded position each
        fire once, scaled by their level.
        """
        gx = round_half_up(agent.x)
        gy = round_half_up(agent.y)
        damage = 0.0
        for ty in range(gy - 1, gy + 2):
            for tx in range(gx - 1, gx + 2):
                if not grid.in_bounds(tx, ty):
                    continue
                tile = grid.tile_at(tx, ty)
                if tile.building is BuildingType.DEFENSE:
                    damage += self.config.defense_damage * tile.level
        return damage

    def update(self, grid: Grid, stats: CityStats, rng: Generator) -> RaidReport:
        """Run one hostile tick: spawn, take fire, advance, and raid.

        Towers fire first; a raider brought to 0 hit-points is removed
        before it can move or attack.  Survivors march toward the nearest
        non-road structure and attack once they are close enough and their
        cooldown has run out.

        Args:
            grid: Current grid (read only).
            stats: Current ledger (read only).
            rng: Seeded random generator.

        Returns:
            Totals of stolen resources plus casualties and notices.
        """
        cfg = self.config
        notices: list[Notice] = []

        spawned = self.maybe_spawn(stats, grid.size, rng)
        if spawned is not None and rng.random() < cfg.hostile_alert_chance:
            notices.append(
                Notice(
                    "Hostiles detected approaching the settlement!",
                    NewsKind.NEGATIVE,
                ),
            )

        stolen_money = 0
        stolen_food = 0
        mask = grid.target_mask
        for agent in self.agents:
            target = nearest_cell(mask, agent.x, agent.y)
            if target is None:
                continue

            agent.hp -= self.defense_damage(agent, grid)
            if not agent.is_alive:
                continue

            tx, ty, dist = target
            if dist > cfg.hostile_move_threshold:
                agent.x, agent.y = step_toward(
                    agent.x,
                    agent.y,
                    tx,
                    ty,
                    cfg.hostile_speed,
                )

            if dist < cfg.hostile_attack_range and agent.attack_cooldown <= 0:
                if rng.random() < cfg.hostile_theft_chance:
                    stolen_money += cfg.hostile_theft_money
                    stolen_food += cfg.hostile_theft_food
                agent.attack_cooldown = cfg.hostile_attack_cooldown
            else:
                agent.attack_cooldown = max(0, agent.attack_cooldown - 1)

        killed = self.remove_dead()
        if killed:
            logger.debug("Raiders killed by defenses: %s", killed)
        return RaidReport(
            stolen_money=stolen_money,
            stolen_food=stolen_food,
            killed=tuple(killed),
            notices=tuple(notices),
        )

    def strike(self, agent_id: int, damage: float) -> bool:
        """Hit a single raider directly and drop it if it dies.

        Args:
            agent_id: Raider to hit.
            damage: Hit-points removed.

        Returns:
            True if a raider with that id was found.
        """
        for agent in self.agents:
            if agent.id == agent_id:
                agent.hp -= damage
                self.remove_dead()
                return True
        return False

    def remove_dead(self) -> list[int]:
        """Remove raiders at 0 hit-points and return their ids."""
        dead = [a.id for a in self.agents if not a.is_alive]
        self.agents = [a for a in self.agents if a.is_alive]
        return dead

    def snapshot(self) -> tuple[HostileAgent, ...]:
        """Return detached copies of all raiders."""
        return tuple(dataclasses.replace(a) for a in self.agents)
