"""Config — load simulation parameters from YAML files.

All tunable constants (grid size, tick periods, production rates, agent
behaviour, building costs, era thresholds) live in YAML and are parsed into
a typed dataclass here.  This keeps the simulation core data-driven and easy
to rebalance.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from frontier.economy.buildings import BuildingSpec, Cost, default_catalog
from frontier.economy.stats import Era, EraThreshold, default_era_thresholds
from frontier.world.tile import BuildingType


@dataclass
class SimulationConfig:
    """Top-level simulation configuration.

    Attributes:
        seed: RNG seed for deterministic replay.
        grid_size: Number of rows and columns of the grid.
        reveal_radius: Tiles within this distance of the centre start
            explored.
        island_count: Satellite islands attempted during generation.
        stone_chance: Probability a land tile carries stone.
        forest_chance: Probability a land tile carries forest.
        starting_money: Initial treasury.
        starting_wood: Initial wood stockpile.
        starting_stone: Initial stone stockpile.
        starting_food: Initial food stockpile.
        economy_period_ms: Wall time between economy ticks.
        hostile_period_ms: Wall time between hostile ticks.
        explorer_period_ms: Wall time between explorer ticks.
        upgrade_multiplier: Upgrade cost factor, raised to the current level.
        demolish_fee: Money charged to bulldoze a building.
        demolish_forest_wood: Wood gained when clearing a forest tile.
        farm_food: Food per farm level per tick.
        industrial_wood: Wood per level from industry on forest.
        industrial_stone: Stone per level from industry on stone.
        industrial_bonus_income: Money per level from industry on bare land.
        port_trade_income: Flat money per port per tick.
        food_per_capita: Food eaten per inhabitant per tick (rounded up).
        starvation_penalty: Population lost per starving tick.
        starvation_notice_every: Starvation news is posted on days divisible
            by this.
        pop_per_residential: Population capacity of each residential tile.
        weather_change_chance: Per-tick probability of a weather re-roll.
        max_hostiles: Cap on simultaneous hostiles.
        hostile_spawn_cap: Upper bound on the per-tick spawn chance.
        hostile_spawn_divisor: Population divisor for the spawn chance.
        hostile_base_hp: Hit-points of a fresh hostile.
        hostile_future_bonus_hp: Extra hit-points in the Future era.
        hostile_speed: Per-axis step of a hostile per tick.
        hostile_move_threshold: Hostiles closer than this stop moving.
        hostile_attack_range: Hostiles closer than this may attack.
        hostile_attack_cooldown: Ticks between attack attempts.
        hostile_theft_chance: Probability an attack steals resources.
        hostile_theft_money: Money stolen per successful attack.
        hostile_theft_food: Food stolen per successful attack.
        hostile_alert_chance: Probability a spawn is announced.
        defense_damage: Damage per defense level per tick.
        click_damage: Damage dealt by clicking a hostile.
        explorer_speed: Per-axis step of an explorer per tick.
        explorer_arrival_distance: Chebyshev distance counting as arrived.
        explorer_reveal_radius: Radius of the square revealed on arrival.
        explorer_forest_wood: Wood per newly found forest tile.
        explorer_stone_stone: Stone per newly found stone tile.
        explorer_money_bonus: Money per newly found resource tile.
        max_events: Capacity of the recent-events log.
        news_chance: Per-economy-tick probability of requesting news.
        goal_request_delay_ms: Delay before a goal request is sent.
        goal_retry_delay_ms: Delay before retrying an empty goal request.
        oracle_workers: Thread-pool size for oracle calls.
        buildings: Building catalog.
        era_thresholds: Requirements to enter each era.
        goal_pool: Goal payloads for the scripted oracle.
        news_lines: News payloads for the scripted oracle.
    """

    seed: int = 42
    grid_size: int = 20

    # Generation
    reveal_radius: float = 5.0
    island_count: int = 2
    stone_chance: float = 0.10
    forest_chance: float = 0.15

    # Starting ledger
    starting_money: int = 1500
    starting_wood: int = 100
    starting_stone: int = 50
    starting_food: int = 200

    # Driver periods
    economy_period_ms: int = 2000
    hostile_period_ms: int = 500
    explorer_period_ms: int = 800

    # Transactions
    upgrade_multiplier: float = 1.5
    demolish_fee: int = 5
    demolish_forest_wood: int = 10

    # Economy
    farm_food: int = 15
    industrial_wood: int = 5
    industrial_stone: int = 3
    industrial_bonus_income: int = 5
    port_trade_income: int = 15
    food_per_capita: float = 0.2
    starvation_penalty: int = 5
    starvation_notice_every: int = 3
    pop_per_residential: int = 50
    weather_change_chance: float = 0.05

    # Hostiles
    max_hostiles: int = 10
    hostile_spawn_cap: float = 0.3
    hostile_spawn_divisor: float = 500.0
    hostile_base_hp: float = 50.0
    hostile_future_bonus_hp: float = 200.0
    hostile_speed: float = 0.1
    hostile_move_threshold: float = 0.5
    hostile_attack_range: float = 1.0
    hostile_attack_cooldown: int = 5
    hostile_theft_chance: float = 0.2
    hostile_theft_money: int = 10
    hostile_theft_food: int = 5
    hostile_alert_chance: float = 0.3
    defense_damage: float = 5.0
    click_damage: float = 20.0

    # Explorers
    explorer_speed: float = 0.2
    explorer_arrival_distance: float = 0.5
    explorer_reveal_radius: int = 1
    explorer_forest_wood: int = 15
    explorer_stone_stone: int = 10
    explorer_money_bonus: int = 25

    # News and goals
    max_events: int = 13
    news_chance: float = 0.2
    goal_request_delay_ms: int = 500
    goal_retry_delay_ms: int = 5000
    oracle_workers: int = 2

    buildings: dict[BuildingType, BuildingSpec] = field(default_factory=default_catalog)
    era_thresholds: dict[Era, EraThreshold] = field(
        default_factory=default_era_thresholds,
    )
    goal_pool: list[dict[str, Any]] = field(default_factory=list)
    news_lines: list[dict[str, Any]] = field(default_factory=list)

    @classmethod
    def from_yaml(cls, path: str | Path) -> SimulationConfig:
        """Load configuration from a YAML file.

        Scalar keys override the matching defaults.  ``buildings`` entries
        are merged over the stock catalog by building name, and
        ``era_thresholds`` entries over the stock thresholds by era name.

        Args:
            path: Path to the YAML config file.

        Returns:
            A populated SimulationConfig instance.

        Raises:
            FileNotFoundError: If the config file does not exist.
            ValueError: If a building or era name is unknown.
        """
        path = Path(path)
        with path.open("r") as f:
            data = yaml.safe_load(f) or {}

        nested = {"buildings", "era_thresholds"}
        kwargs = {
            f.name: data[f.name]
            for f in dataclasses.fields(cls)
            if f.name in data and f.name not in nested
        }
        config = cls(**kwargs)
        config.buildings = _merge_buildings(
            config.buildings,
            data.get("buildings") or {},
        )
        config.era_thresholds = _merge_eras(
            config.era_thresholds,
            data.get("era_thresholds") or {},
        )
        return config

    def starting_stats(self) -> dict[str, int]:
        """Return the opening ledger counters."""
        return {
            "money": self.starting_money,
            "wood": self.starting_wood,
            "stone": self.starting_stone,
            "food": self.starting_food,
        }


def _merge_buildings(
    catalog: dict[BuildingType, BuildingSpec],
    overrides: dict[str, dict[str, Any]],
) -> dict[BuildingType, BuildingSpec]:
    merged = dict(catalog)
    for name, values in overrides.items():
        try:
            building = BuildingType(name)
        except ValueError:
            msg = f"unknown building {name!r} in config"
            raise ValueError(msg) from None
        spec = merged[building]
        cost = Cost(
            money=values.get("cost_money", spec.cost.money),
            wood=values.get("cost_wood", spec.cost.wood),
            stone=values.get("cost_stone", spec.cost.stone),
        )
        merged[building] = dataclasses.replace(
            spec,
            name=values.get("name", spec.name),
            cost=cost,
            pop_gen=values.get("pop_gen", spec.pop_gen),
            income_gen=values.get("income_gen", spec.income_gen),
        )
    return merged


def _merge_eras(
    thresholds: dict[Era, EraThreshold],
    overrides: dict[str, dict[str, int]],
) -> dict[Era, EraThreshold]:
    merged = dict(thresholds)
    for name, values in overrides.items():
        try:
            era = Era(name)
        except ValueError:
            msg = f"unknown era {name!r} in config"
            raise ValueError(msg) from None
        current = merged[era]
        merged[era] = EraThreshold(
            population=values.get("population", current.population),
            money=values.get("money", current.money),
        )
    return merged
