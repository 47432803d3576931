"""SimulationEngine — the single writer of a settlement session.

Owns all top-level simulation state and advances it through three
independent periodic drivers:

1. Economy (production, food, population, era, weather, goal check)
2. Hostiles (spawn, defense fire, march, raid)
3. Explorers (target, sail, reveal, harvest)

Player commands are resolved synchronously between driver ticks, and oracle
answers are harvested before each driver tick, so no two mutations of the
grid or ledger ever overlap.
"""

from __future__ import annotations

import dataclasses
import logging
from collections import Counter
from dataclasses import dataclass, field

import numpy as np
from numpy.random import Generator

from frontier.agents.explorer import ExplorerAgent, ExplorerFleet
from frontier.agents.hostile import HostileAgent, HostileHorde
from frontier.economy.stats import CityStats
from frontier.economy.ticker import run_economy_tick
from frontier.economy.transactions import Rejection, TransactionResult, apply_command
from frontier.goals.oracle import Oracle, OracleBridge, RequestKind
from frontier.goals.tracker import Goal, GoalTracker
from frontier.simulation.config import SimulationConfig
from frontier.simulation.events import EventLog, NewsItem, NewsKind, Notice
from frontier.simulation.scheduler import Scheduler
from frontier.world.grid import Grid
from frontier.world.tile import BuildingType

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Snapshot:
    """Read-only view of a session for presentation layers.

    Attributes:
        grid: Current grid (immutable).
        stats: Current ledger (immutable).
        hostiles: Copies of the active raiders.
        explorers: Copies of the exploration boats.
        goal: Active goal, if any.
        events: Recent news, oldest first.
        time_ms: Simulated clock.
    """

    grid: Grid
    stats: CityStats
    hostiles: tuple[HostileAgent, ...]
    explorers: tuple[ExplorerAgent, ...]
    goal: Goal | None
    events: tuple[NewsItem, ...]
    time_ms: int


@dataclass
class SimulationEngine:
    """Drives a settlement session.

    Attributes:
        config: Loaded simulation configuration.
        oracle: Goal/news generator, or None to run without one.
        grid: The tile matrix.
        stats: The ledger.
        hostiles: Active raiders.
        explorers: Exploration boats.
        goals: Active-goal tracker.
        events: Recent-events log.
        scheduler: Periodic drivers and the simulated clock.
        rng: Master seeded random generator.
        census: Building counts from the latest economy tick.
        started: Whether ``start_session`` has been called.
        closed: Whether the session has been torn down.
        ai_enabled: Whether the oracle is consulted.
    """

    config: SimulationConfig
    oracle: Oracle | None = None
    grid: Grid = field(init=False)
    stats: CityStats = field(init=False)
    hostiles: HostileHorde = field(init=False)
    explorers: ExplorerFleet = field(init=False)
    goals: GoalTracker = field(init=False)
    events: EventLog = field(init=False)
    scheduler: Scheduler = field(init=False)
    rng: Generator = field(init=False)
    census: Counter[BuildingType] = field(init=False, default_factory=Counter)
    started: bool = False
    closed: bool = False
    ai_enabled: bool = False
    _bridge: OracleBridge | None = field(init=False, default=None, repr=False)
    _goal_request_at: int | None = field(init=False, default=None, repr=False)

    def __post_init__(self) -> None:
        """Generate the island and an opening ledger from config."""
        cfg = self.config
        self.rng = np.random.default_rng(cfg.seed)
        self.grid = Grid.generate(
            cfg.grid_size,
            self.rng,
            reveal_radius=cfg.reveal_radius,
            island_count=cfg.island_count,
            stone_chance=cfg.stone_chance,
            forest_chance=cfg.forest_chance,
        )
        self.stats = CityStats(**cfg.starting_stats())
        self.hostiles = HostileHorde(config=cfg)
        self.explorers = ExplorerFleet(config=cfg)
        self.goals = GoalTracker()
        self.events = EventLog(capacity=cfg.max_events)
        self.scheduler = Scheduler()

    # -- Session lifecycle ---------------------------------------------------

    def start_session(self, ai_enabled: bool = True) -> None:
        """Start the periodic drivers and, optionally, the oracle.

        Calling it a second time has no effect.

        Args:
            ai_enabled: Whether to consult the oracle for goals and news.
        """
        if self.started or self.closed:
            return
        cfg = self.config
        self.started = True
        self.ai_enabled = ai_enabled and self.oracle is not None

        self.scheduler.before_each_step(self._pump_oracle)
        self.scheduler.every("economy", cfg.economy_period_ms, self.step_economy)
        self.scheduler.every("hostiles", cfg.hostile_period_ms, self.step_hostiles)
        self.scheduler.every("explorers", cfg.explorer_period_ms, self.step_explorers)

        self._post(
            Notice(
                "Settlement established. Beware of wild bands.",
                NewsKind.POSITIVE,
            ),
        )
        if self.ai_enabled:
            self._bridge = OracleBridge(self.oracle, workers=cfg.oracle_workers)
            self._schedule_goal_request(cfg.goal_request_delay_ms)
        logger.info(
            "Session started: %dx%d grid, ai=%s",
            self.grid.size,
            self.grid.size,
            self.ai_enabled,
        )

    def shutdown(self) -> None:
        """Stop all drivers and abandon in-flight oracle requests."""
        if self.closed:
            return
        self.closed = True
        self.scheduler.clear()
        if self._bridge is not None:
            self._bridge.shutdown()
        logger.info("Session closed on day %d", self.stats.day)

    @property
    def running(self) -> bool:
        return self.started and not self.closed

    @property
    def bridge(self) -> OracleBridge | None:
        """The oracle bridge, when AI is enabled."""
        return self._bridge

    # -- Clock ---------------------------------------------------------------

    def advance(self, elapsed_ms: int) -> list[str]:
        """Advance simulated time, firing every driver that comes due.

        Args:
            elapsed_ms: Simulated milliseconds to advance.

        Returns:
            Names of the drivers fired, in order.
        """
        if not self.running:
            return []
        self._pump_oracle()
        return self.scheduler.advance(elapsed_ms)

    def run(self, ticks: int) -> None:
        """Advance by a whole number of economy periods.

        Args:
            ticks: Number of economy ticks to run.
        """
        for _ in range(ticks):
            self.advance(self.config.economy_period_ms)

    # -- Periodic drivers ----------------------------------------------------

    def step_economy(self) -> None:
        """Run one economy tick and check the active goal."""
        report = run_economy_tick(self.grid, self.stats, self.config, self.rng)
        self.stats = report.stats
        self.census = report.census
        for notice in report.notices:
            self._post(notice)

        if self.goals.evaluate(self.stats, self.census):
            self._post(Notice("Goal complete! Claim your reward.", NewsKind.POSITIVE))

        if self._bridge is not None and self.rng.random() < self.config.news_chance:
            self._bridge.submit_news(self.stats)

    def step_hostiles(self) -> None:
        """Run one hostile tick and apply any theft to the ledger."""
        report = self.hostiles.update(self.grid, self.stats, self.rng)
        if report.stolen_money or report.stolen_food:
            self.stats = dataclasses.replace(
                self.stats,
                money=max(0, self.stats.money - report.stolen_money),
                food=max(0, self.stats.food - report.stolen_food),
            )
        for notice in report.notices:
            self._post(notice)

    def step_explorers(self) -> None:
        """Run one explorer tick and bank whatever was discovered."""
        self.grid, discovery = self.explorers.update(self.grid)
        if not discovery.found_anything:
            return
        self.stats = self.stats.credit(
            wood=discovery.wood,
            stone=discovery.stone,
            money=discovery.money,
        )
        if discovery.notice is not None:
            self._post(discovery.notice)

    # -- Commands ------------------------------------------------------------

    def build_or_upgrade_or_demolish(
        self,
        x: int,
        y: int,
        tool: BuildingType,
    ) -> TransactionResult:
        """Resolve a tile click with the selected tool.

        Grid and ledger are published together only if the command is
        accepted; a Port additionally launches an explorer.

        Args:
            x: Column clicked.
            y: Row clicked.
            tool: Selected building, or ``BuildingType.NONE`` to bulldoze.
        """
        if not self.running:
            return TransactionResult(
                self.grid,
                self.stats,
                rejection=Rejection.NOT_STARTED,
            )

        result = apply_command(self.grid, self.stats, x, y, tool, self.config)
        if result.accepted:
            self.grid = result.grid
            self.stats = result.stats
            if result.launch_explorer_at is not None:
                self.explorers.launch(*result.launch_explorer_at)
        if result.notice is not None:
            self._post(result.notice)
        return result

    def click_agent(self, agent_id: int) -> bool:
        """Hit a raider directly.

        Returns:
            True if the raider existed.
        """
        if not self.running:
            return False
        return self.hostiles.strike(agent_id, self.config.click_damage)

    def claim_goal_reward(self) -> int | None:
        """Cash in a completed goal and ask the oracle for the next one.

        Returns:
            The reward credited, or None if there was nothing to claim.
        """
        if not self.running:
            return None
        reward = self.goals.claim()
        if reward is None:
            return None
        self.stats = self.stats.credit(money=reward)
        self._post(Notice("Goal achieved!", NewsKind.POSITIVE))
        self._schedule_goal_request(self.config.goal_request_delay_ms)
        return reward

    def snapshot(self) -> Snapshot:
        """Return a consistent read-only view of the session."""
        return Snapshot(
            grid=self.grid,
            stats=self.stats,
            hostiles=self.hostiles.snapshot(),
            explorers=self.explorers.snapshot(),
            goal=self.goals.goal,
            events=self.events.items(),
            time_ms=self.scheduler.now_ms,
        )

    # -- Oracle plumbing -----------------------------------------------------

    def _schedule_goal_request(self, delay_ms: int) -> None:
        if self._bridge is None:
            return
        self._goal_request_at = self.scheduler.now_ms + delay_ms

    def _pump_oracle(self) -> None:
        """Harvest oracle answers and send any goal request that is due."""
        bridge = self._bridge
        if bridge is None:
            return

        for completion in bridge.poll():
            if completion.kind is RequestKind.GOAL:
                if isinstance(completion.value, Goal):
                    self.goals.assign(completion.value)
                else:
                    logger.debug("No goal from oracle, retrying later")
                    self._schedule_goal_request(self.config.goal_retry_delay_ms)
            elif completion.value is not None:
                self._post(Notice(completion.value.text, completion.value.kind))

        due = self._goal_request_at
        if due is None or self.scheduler.now_ms < due or self.goals.goal is not None:
            return
        if bridge.submit_goal(self.stats, self.grid):
            self._goal_request_at = None

    def _post(self, notice: Notice) -> NewsItem:
        return self.events.post(notice.text, notice.kind, self.stats.day)
