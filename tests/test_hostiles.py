"""Tests for frontier.agents.hostile — raider spawning, movement and combat."""

from __future__ import annotations

import pytest
from numpy.random import Generator

from frontier.agents.hostile import HostileAgent, HostileHorde
from frontier.agents.steering import nearest_cell, round_half_up, step_toward
from frontier.economy.stats import CityStats, Era
from frontier.simulation.config import SimulationConfig
from frontier.world.grid import Grid
from frontier.world.tile import BuildingType


@pytest.fixture
def horde(config: SimulationConfig) -> HostileHorde:
    return HostileHorde(config=config)


@pytest.fixture
def calm() -> CityStats:
    """Ledger with no population, so nothing spawns."""
    return CityStats(population=0)


class TestSteering:
    """Tests for the shared movement helpers."""

    def test_nearest_cell_manhattan(self) -> None:
        grid = Grid.blank(6).replace_tiles(
            {
                (5, 5): {"building": BuildingType.FARM},
                (1, 2): {"building": BuildingType.FARM},
            },
        )
        assert nearest_cell(grid.target_mask, 0.0, 0.0) == (1, 2, 3.0)

    def test_nearest_cell_ties_go_row_major(self) -> None:
        grid = Grid.blank(5).replace_tiles(
            {
                (2, 0): {"building": BuildingType.FARM},
                (0, 2): {"building": BuildingType.FARM},
            },
        )
        assert nearest_cell(grid.target_mask, 0.0, 0.0) == (2, 0, 2.0)

    def test_nearest_cell_empty(self) -> None:
        assert nearest_cell(Grid.blank(3).target_mask, 1.0, 1.0) is None

    def test_step_toward_is_per_axis(self) -> None:
        assert step_toward(0.0, 0.0, 3.0, 3.0, 0.1) == pytest.approx((0.1, 0.1))
        assert step_toward(2.0, 2.0, 2.0, 0.0, 0.1) == pytest.approx((2.0, 1.9))

    def test_step_toward_holds_axis_on_target(self) -> None:
        x, y = step_toward(3.0, 1.0, 3.0, 4.0, 0.2)
        assert isinstance(x, float)
        assert x == 3.0
        assert y == pytest.approx(1.2)

    def test_round_half_up(self) -> None:
        assert round_half_up(0.5) == 1
        assert round_half_up(2.5) == 3
        assert round_half_up(-0.5) == 0
        assert round_half_up(1.49) == 1


class TestSpawn:
    """Tests for the spawn rule."""

    def test_spawn_chance_scales_with_population(self, horde: HostileHorde) -> None:
        assert horde.spawn_chance(0) == 0.0
        assert horde.spawn_chance(50) == pytest.approx(0.1)
        assert horde.spawn_chance(10_000) == pytest.approx(0.3)

    def test_spawns_on_edge(
        self,
        horde: HostileHorde,
        fixed_random: type,
    ) -> None:
        stats = CityStats(population=1000)
        agent = horde.maybe_spawn(stats, 20, fixed_random(0.0))
        assert agent is not None
        assert agent.y == 0.0
        assert agent.hp == agent.max_hp == 50.0

    def test_future_era_is_tougher(
        self,
        horde: HostileHorde,
        fixed_random: type,
    ) -> None:
        stats = CityStats(population=1000, era=Era.FUTURE)
        agent = horde.maybe_spawn(stats, 20, fixed_random(0.0))
        assert agent is not None
        assert agent.max_hp == 250.0

    def test_respects_cap(
        self,
        horde: HostileHorde,
        config: SimulationConfig,
        fixed_random: type,
    ) -> None:
        stats = CityStats(population=1000)
        for _ in range(config.max_hostiles + 5):
            horde.maybe_spawn(stats, 20, fixed_random(0.0))
        assert len(horde.agents) == config.max_hostiles

    def test_no_spawn_without_population(
        self,
        horde: HostileHorde,
        rng: Generator,
    ) -> None:
        for _ in range(100):
            horde.maybe_spawn(CityStats(population=0), 20, rng)
        assert horde.agents == []

    def test_ids_are_unique(self, horde: HostileHorde) -> None:
        a = horde.spawn(0.0, 0.0, Era.PRIMITIVE)
        b = horde.spawn(0.0, 0.0, Era.PRIMITIVE)
        assert a.id != b.id


class TestMovement:
    """Tests for marching and attacking."""

    def test_marches_toward_nearest_structure(
        self,
        horde: HostileHorde,
        calm: CityStats,
        rng: Generator,
    ) -> None:
        grid = Grid.blank(10).replace_tile(5, 0, building=BuildingType.FARM)
        agent = horde.spawn(0.0, 3.0, Era.PRIMITIVE)
        horde.update(grid, calm, rng)
        assert agent.x == pytest.approx(0.1)
        assert agent.y == pytest.approx(2.9)

    def test_ignores_roads(
        self,
        horde: HostileHorde,
        calm: CityStats,
        rng: Generator,
    ) -> None:
        grid = Grid.blank(10).replace_tile(1, 0, building=BuildingType.ROAD)
        agent = horde.spawn(0.0, 0.0, Era.PRIMITIVE)
        horde.update(grid, calm, rng)
        assert (agent.x, agent.y) == (0.0, 0.0)

    def test_close_raider_holds_position_and_resets_cooldown(
        self,
        horde: HostileHorde,
        calm: CityStats,
        fixed_random: type,
    ) -> None:
        grid = Grid.blank(10).replace_tile(5, 5, building=BuildingType.FARM)
        agent = horde.spawn(5.3, 5.0, Era.PRIMITIVE)
        horde.update(grid, calm, fixed_random(0.99))
        assert agent.x == pytest.approx(5.3)
        assert agent.y == pytest.approx(5.0)
        assert agent.attack_cooldown == 5

    def test_successful_theft(
        self,
        horde: HostileHorde,
        calm: CityStats,
        fixed_random: type,
    ) -> None:
        grid = Grid.blank(10).replace_tile(5, 5, building=BuildingType.FARM)
        horde.spawn(5.3, 5.0, Era.PRIMITIVE)
        report = horde.update(grid, calm, fixed_random(0.0))
        assert report.stolen_money == 10
        assert report.stolen_food == 5

    def test_cooldown_decrements(
        self,
        horde: HostileHorde,
        calm: CityStats,
        rng: Generator,
    ) -> None:
        grid = Grid.blank(10).replace_tile(5, 5, building=BuildingType.FARM)
        agent = horde.spawn(5.0, 5.0, Era.PRIMITIVE)
        agent.attack_cooldown = 3
        horde.update(grid, calm, rng)
        assert agent.attack_cooldown == 2


class TestDefense:
    """Tests for tower damage and removal."""

    def test_towers_stack_and_scale_with_level(
        self,
        horde: HostileHorde,
        calm: CityStats,
        rng: Generator,
    ) -> None:
        grid = Grid.blank(10).replace_tiles(
            {
                (4, 4): {"building": BuildingType.DEFENSE, "level": 2},
                (6, 6): {"building": BuildingType.DEFENSE},
                (9, 9): {"building": BuildingType.DEFENSE},
            },
        )
        agent = horde.spawn(5.0, 5.0, Era.PRIMITIVE)
        horde.update(grid, calm, rng)
        assert agent.hp == pytest.approx(50.0 - 10.0 - 5.0)

    def test_dead_raider_removed_before_acting(
        self,
        horde: HostileHorde,
        calm: CityStats,
        fixed_random: type,
    ) -> None:
        grid = Grid.blank(10).replace_tile(5, 5, building=BuildingType.DEFENSE)
        agent = horde.spawn(5.3, 5.0, Era.PRIMITIVE)
        agent.hp = 4.0
        report = horde.update(grid, calm, fixed_random(0.0))
        assert horde.agents == []
        assert report.killed == (agent.id,)
        assert report.stolen_money == 0
        assert agent.x == pytest.approx(5.3)

    def test_hp_never_increases(
        self,
        horde: HostileHorde,
        calm: CityStats,
        rng: Generator,
    ) -> None:
        grid = Grid.blank(10).replace_tile(8, 8, building=BuildingType.DEFENSE)
        agent = horde.spawn(0.0, 0.0, Era.PRIMITIVE)
        history = [agent.hp]
        for _ in range(200):
            horde.update(grid, calm, rng)
            if agent not in horde.agents:
                break
            history.append(agent.hp)
        assert history == sorted(history, reverse=True)
        assert agent not in horde.agents


class TestStrike:
    """Tests for direct player hits."""

    def test_strike_damages(self, horde: HostileHorde) -> None:
        agent = horde.spawn(0.0, 0.0, Era.PRIMITIVE)
        assert horde.strike(agent.id, 20.0)
        assert agent.hp == 30.0
        assert agent in horde.agents

    def test_strike_kills_immediately(self, horde: HostileHorde) -> None:
        agent = horde.spawn(0.0, 0.0, Era.PRIMITIVE)
        agent.hp = 20.0
        horde.strike(agent.id, 20.0)
        assert horde.agents == []

    def test_strike_unknown_id(self, horde: HostileHorde) -> None:
        assert not horde.strike(999, 20.0)

    def test_snapshot_is_detached(self, horde: HostileHorde) -> None:
        agent = horde.spawn(0.0, 0.0, Era.PRIMITIVE)
        snap = horde.snapshot()
        agent.hp = 1.0
        assert isinstance(snap[0], HostileAgent)
        assert snap[0].hp == 50.0
