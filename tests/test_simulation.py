"""Tests for frontier.simulation — config, scheduler, event log and engine."""

from __future__ import annotations

import dataclasses
import threading
from pathlib import Path

import pytest

from frontier.economy.stats import CityStats, Era
from frontier.economy.transactions import Rejection
from frontier.goals.oracle import NewsEvent, ScriptedOracle
from frontier.goals.tracker import Goal
from frontier.simulation.config import SimulationConfig
from frontier.simulation.engine import SimulationEngine
from frontier.simulation.events import EventLog, NewsKind
from frontier.simulation.scheduler import Scheduler
from frontier.world.grid import Grid
from frontier.world.tile import BuildingType, ResourceType

DEFAULT_YAML = Path(__file__).resolve().parent.parent / "config" / "default.yaml"


class CountingOracle:
    """Oracle that never has a goal but counts how often it is asked."""

    def __init__(self) -> None:
        self.goal_calls = 0
        self._lock = threading.Lock()

    def request_goal(self, stats: CityStats, grid: Grid) -> Goal | None:
        with self._lock:
            self.goal_calls += 1
        return None

    def request_news(self, stats: CityStats) -> NewsEvent | None:
        return None


def _clear_centre(engine: SimulationEngine, x: int = 10, y: int = 10) -> None:
    engine.grid = engine.grid.replace_tile(
        x,
        y,
        building=BuildingType.NONE,
        resource=ResourceType.NONE,
        explored=True,
    )


class TestSimulationConfig:
    """Tests for YAML config loading."""

    def test_defaults(self) -> None:
        cfg = SimulationConfig()
        assert cfg.seed == 42
        assert cfg.grid_size == 20
        assert cfg.buildings[BuildingType.COMMERCIAL].cost.money == 100
        assert cfg.era_thresholds[Era.MODERN].population == 300

    def test_from_yaml(self, tmp_path: Path) -> None:
        yaml_file = tmp_path / "test.yaml"
        yaml_file.write_text(
            "seed: 99\n"
            "grid_size: 12\n"
            "buildings:\n"
            "  Farm:\n"
            "    cost_money: 40\n"
            "era_thresholds:\n"
            "  Modern: {population: 10}\n",
        )
        cfg = SimulationConfig.from_yaml(yaml_file)
        assert cfg.seed == 99
        assert cfg.grid_size == 12
        farm = cfg.buildings[BuildingType.FARM]
        assert farm.cost.money == 40
        assert farm.cost.wood == 5
        assert cfg.era_thresholds[Era.MODERN].population == 10
        assert cfg.era_thresholds[Era.MODERN].money == 15000

    def test_unknown_building_rejected(self, tmp_path: Path) -> None:
        yaml_file = tmp_path / "bad.yaml"
        yaml_file.write_text("buildings:\n  Castle:\n    cost_money: 1\n")
        with pytest.raises(ValueError):
            SimulationConfig.from_yaml(yaml_file)

    def test_empty_file_gives_defaults(self, tmp_path: Path) -> None:
        yaml_file = tmp_path / "empty.yaml"
        yaml_file.write_text("")
        assert SimulationConfig.from_yaml(yaml_file) == SimulationConfig()

    def test_bundled_config_loads(self) -> None:
        cfg = SimulationConfig.from_yaml(DEFAULT_YAML)
        assert len(cfg.goal_pool) == 4
        assert len(cfg.news_lines) == 3
        ScriptedOracle(cfg.goal_pool, cfg.news_lines)

    def test_starting_stats(self) -> None:
        stats = CityStats(**SimulationConfig().starting_stats())
        assert (stats.money, stats.wood, stats.stone, stats.food) == (
            1500,
            100,
            50,
            200,
        )
        assert stats.day == 1
        assert stats.era is Era.PRIMITIVE


class TestScheduler:
    """Tests for the periodic driver clock."""

    def test_fires_in_due_order(self) -> None:
        sched = Scheduler()
        for name, period in (("economy", 2000), ("hostiles", 500), ("explorers", 800)):
            sched.every(name, period, lambda: None)
        fired = sched.advance(2000)
        assert fired == [
            "hostiles",
            "explorers",
            "hostiles",
            "hostiles",
            "explorers",
            "economy",
            "hostiles",
        ]
        assert sched.now_ms == 2000

    def test_nothing_fires_early(self) -> None:
        sched = Scheduler()
        sched.every("slow", 1000, lambda: None)
        assert sched.advance(999) == []
        assert sched.advance(1) == ["slow"]

    def test_hooks_run_before_each_task(self) -> None:
        sched = Scheduler()
        calls: list[str] = []
        sched.before_each_step(lambda: calls.append("hook"))
        sched.every("a", 100, lambda: calls.append("a"))
        sched.advance(200)
        assert calls == ["hook", "a", "hook", "a"]

    def test_rejects_non_positive_period(self) -> None:
        with pytest.raises(ValueError):
            Scheduler().every("bad", 0, lambda: None)

    def test_clear_stops_everything(self) -> None:
        sched = Scheduler()
        sched.every("a", 10, lambda: None)
        sched.clear()
        assert sched.advance(1000) == []


class TestEventLog:
    """Tests for the bounded news feed."""

    def test_keeps_newest(self) -> None:
        log = EventLog(capacity=13)
        for i in range(20):
            log.post(f"event {i}", NewsKind.NEUTRAL, day=1)
        items = log.items()
        assert len(log) == 13
        assert items[0].text == "event 7"
        assert items[-1].text == "event 19"

    def test_ids_increase(self) -> None:
        log = EventLog(capacity=3)
        ids = [log.post("x", NewsKind.NEUTRAL, day=1).id for _ in range(5)]
        assert ids == sorted(set(ids))


class TestSimulationEngine:
    """Tests for the session lifecycle and commands."""

    def test_start_posts_welcome(self, engine: SimulationEngine) -> None:
        assert engine.running
        [welcome] = engine.snapshot().events
        assert welcome.text == "Settlement established. Beware of wild bands."
        assert welcome.kind is NewsKind.POSITIVE

    def test_commands_need_a_session(self, config: SimulationConfig) -> None:
        eng = SimulationEngine(config=config)
        result = eng.build_or_upgrade_or_demolish(10, 10, BuildingType.ROAD)
        assert result.rejection is Rejection.NOT_STARTED
        assert eng.advance(5000) == []
        assert not eng.click_agent(1)

    def test_run_advances_days(self, engine: SimulationEngine) -> None:
        engine.run(ticks=3)
        assert engine.stats.day == 4
        assert engine.snapshot().time_ms == 6000

    def test_build_publishes_grid_and_stats(self, engine: SimulationEngine) -> None:
        _clear_centre(engine)
        before = engine.stats
        result = engine.build_or_upgrade_or_demolish(10, 10, BuildingType.FARM)
        assert result.accepted
        assert engine.grid.tile_at(10, 10).building is BuildingType.FARM
        assert engine.stats.money == before.money - 30
        assert engine.stats.wood == before.wood - 5

    def test_rejection_leaves_state_alone(self, engine: SimulationEngine) -> None:
        _clear_centre(engine)
        engine.stats = dataclasses.replace(engine.stats, money=10)
        grid, stats = engine.grid, engine.stats
        result = engine.build_or_upgrade_or_demolish(10, 10, BuildingType.PORT)
        assert not result.accepted
        assert engine.grid is grid
        assert engine.stats is stats
        assert engine.snapshot().events[-1].kind is NewsKind.NEGATIVE

    def test_port_launches_explorer(self, engine: SimulationEngine) -> None:
        engine.grid = engine.grid.replace_tile(
            10,
            11,
            building=BuildingType.NONE,
            resource=ResourceType.WATER,
            explored=True,
        )
        result = engine.build_or_upgrade_or_demolish(10, 11, BuildingType.PORT)
        assert result.accepted
        [boat] = engine.snapshot().explorers
        assert (boat.x, boat.y) == (10.0, 11.0)

    def test_explorers_reveal_the_map(self, engine: SimulationEngine) -> None:
        engine.explorers.launch(10, 10)
        fog_before = int(engine.grid.fog_mask.sum())
        engine.run(ticks=20)
        assert int(engine.grid.fog_mask.sum()) < fog_before

    def test_click_agent(self, engine: SimulationEngine) -> None:
        agent = engine.hostiles.spawn(1.0, 1.0, Era.PRIMITIVE)
        assert engine.click_agent(agent.id)
        assert engine.snapshot().hostiles[0].hp == 30.0
        assert not engine.click_agent(agent.id + 100)

    def test_theft_never_drives_ledger_negative(
        self,
        engine: SimulationEngine,
        fixed_random: type,
    ) -> None:
        engine.grid = engine.grid.replace_tile(10, 10, building=BuildingType.FARM)
        engine.stats = dataclasses.replace(engine.stats, money=3, food=2)
        engine.hostiles.spawn(10.3, 10.0, Era.PRIMITIVE)
        engine.rng = fixed_random(0.0)
        engine.step_hostiles()
        assert engine.stats.money == 0
        assert engine.stats.food == 0

    def test_event_log_is_bounded(self, engine: SimulationEngine) -> None:
        for _ in range(30):
            engine.build_or_upgrade_or_demolish(-1, -1, BuildingType.ROAD)
            engine.grid = engine.grid.replace_tile(0, 0, explored=False)
            engine.build_or_upgrade_or_demolish(0, 0, BuildingType.ROAD)
        assert len(engine.snapshot().events) == 13

    def test_claim_without_goal(self, engine: SimulationEngine) -> None:
        assert engine.claim_goal_reward() is None

    def test_shutdown(self, config: SimulationConfig) -> None:
        eng = SimulationEngine(config=config, oracle=ScriptedOracle())
        eng.start_session()
        eng.shutdown()
        assert not eng.running
        assert eng.bridge is not None
        assert eng.bridge.closed
        assert eng.advance(10_000) == []
        eng.shutdown()

    def test_deterministic_replay(self) -> None:
        cfg = SimulationConfig(seed=777, grid_size=12)
        runs = []
        for _ in range(2):
            eng = SimulationEngine(config=cfg)
            eng.start_session(ai_enabled=False)
            _clear_centre(eng, 6, 6)
            eng.build_or_upgrade_or_demolish(6, 6, BuildingType.RESIDENTIAL)
            eng.run(ticks=15)
            runs.append((eng.grid, eng.stats))
            eng.shutdown()
        assert runs[0] == runs[1]


class TestGoalFlow:
    """Tests for goals arriving through the oracle bridge."""

    def test_goal_assigned_completed_and_claimed(
        self,
        config: SimulationConfig,
    ) -> None:
        oracle = ScriptedOracle(
            [
                {
                    "description": "Have a dollar",
                    "targetType": "money",
                    "targetValue": 1,
                    "reward": 250,
                },
            ],
            seed=3,
        )
        eng = SimulationEngine(config=config, oracle=oracle)
        eng.start_session()
        try:
            eng.advance(500)
            assert eng.bridge.goal_pending
            eng.bridge.join(timeout=5)
            eng.advance(500)
            assert eng.goals.goal is not None
            assert not eng.goals.goal.completed

            eng.advance(1000)
            assert eng.goals.goal.completed
            texts = [item.text for item in eng.snapshot().events]
            assert "Goal complete! Claim your reward." in texts

            money = eng.stats.money
            assert eng.claim_goal_reward() == 250
            assert eng.stats.money == money + 250
            assert eng.goals.goal is None
            assert eng.snapshot().events[-1].text == "Goal achieved!"
        finally:
            eng.shutdown()

    def test_empty_answer_is_retried_later(self, config: SimulationConfig) -> None:
        oracle = CountingOracle()
        eng = SimulationEngine(config=config, oracle=oracle)
        eng.start_session()
        try:
            eng.advance(500)
            eng.bridge.join(timeout=5)
            eng.advance(500)
            assert eng.goals.goal is None

            eng.advance(4000)
            eng.bridge.join(timeout=5)
            assert oracle.goal_calls == 1

            eng.advance(1000)
            eng.bridge.join(timeout=5)
            assert oracle.goal_calls == 2
        finally:
            eng.shutdown()

    def test_ai_disabled_never_asks(self, config: SimulationConfig) -> None:
        oracle = CountingOracle()
        eng = SimulationEngine(config=config, oracle=oracle)
        eng.start_session(ai_enabled=False)
        eng.run(ticks=5)
        eng.shutdown()
        assert eng.bridge is None
        assert oracle.goal_calls == 0
