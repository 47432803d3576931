"""Economy ticker — one discrete step of the settlement economy.

A tick sweeps the whole grid, turns buildings into money, materials and
population growth, feeds the population, enforces the housing cap, and
checks whether the settlement has earned the next era.
"""

from __future__ import annotations

import logging
import math
from collections import Counter
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from frontier.economy.stats import CityStats, Era
from frontier.simulation.events import NewsKind, Notice
from frontier.world.environment import roll_weather
from frontier.world.tile import BuildingType, ResourceType

if TYPE_CHECKING:
    from numpy.random import Generator

    from frontier.simulation.config import SimulationConfig
    from frontier.world.grid import Grid

logger = logging.getLogger(__name__)


@dataclass
class Production:
    """Raw yields accumulated during the grid sweep."""

    income: float = 0.0
    population: int = 0
    wood: int = 0
    stone: int = 0
    food: int = 0
    census: Counter[BuildingType] = field(default_factory=Counter)


@dataclass(frozen=True)
class EconomyReport:
    """Outcome of one economy tick.

    Attributes:
        stats: The ledger after the tick.
        census: Number of tiles per building type.
        starving: Whether food ran out this tick.
        era_advanced: Whether the era moved forward this tick.
        notices: Narrative events to post.
    """

    stats: CityStats
    census: Counter[BuildingType]
    starving: bool
    era_advanced: bool
    notices: tuple[Notice, ...]


def sweep(grid: Grid, config: SimulationConfig) -> Production:
    """Accumulate the yields of every building on the grid.

    Generic income scales with level and land value; population growth and
    the special production rules scale with level only.  Ports add a flat
    trade income on top of their generic yield.

    Args:
        grid: Current grid.
        config: Production rates and the building catalog.
    """
    out = Production()
    for tile in grid.tiles():
        if not tile.has_building:
            continue
        spec = config.buildings[tile.building]
        out.census[tile.building] += 1
        out.income += spec.income_gen * tile.level * tile.land_value
        out.population += spec.pop_gen * tile.level

        if tile.building is BuildingType.FARM:
            out.food += config.farm_food * tile.level
        elif tile.building is BuildingType.INDUSTRIAL:
            if tile.resource is ResourceType.FOREST:
                out.wood += config.industrial_wood * tile.level
            elif tile.resource is ResourceType.STONE:
                out.stone += config.industrial_stone * tile.level
            else:
                out.income += config.industrial_bonus_income * tile.level
        elif tile.building is BuildingType.PORT:
            out.income += config.port_trade_income
    return out


def next_era(
    era: Era,
    population: int,
    money: int,
    config: SimulationConfig,
) -> Era:
    """Return the era after this tick, advancing at most one step.

    Both the population and the money requirement of the following era must
    be met at the same time.  Callers pass the population after this tick
    and the treasury from before it.
    """
    candidate = era.next()
    if candidate is None:
        return era
    threshold = config.era_thresholds[candidate]
    if population >= threshold.population and money >= threshold.money:
        return candidate
    return era


def run_economy_tick(
    grid: Grid,
    stats: CityStats,
    config: SimulationConfig,
    rng: Generator,
) -> EconomyReport:
    """Advance the economy by one tick.

    Args:
        grid: Current grid (read only).
        stats: Ledger before the tick.
        config: Economy tunables.
        rng: Seeded random generator (weather only).

    Returns:
        The new ledger together with the census and notifications.
    """
    production = sweep(grid, config)
    notices: list[Notice] = []

    consumption = math.ceil(stats.population * config.food_per_capita)
    food = stats.food + production.food - consumption
    starving = food < 0
    if starving:
        food = 0

    growth = -config.starvation_penalty if starving else production.population
    housing = production.census[BuildingType.RESIDENTIAL] * config.pop_per_residential
    population = max(0, min(housing, stats.population + growth))

    money = max(0, math.floor(stats.money + production.income))

    era = next_era(stats.era, population, stats.money, config)
    era_advanced = era is not stats.era
    if era_advanced:
        logger.info("Era advanced to %s on day %d", era.value, stats.day)
        notices.append(
            Notice(
                f"SOCIETAL ADVANCEMENT: Welcome to the {era.value} Era!",
                NewsKind.POSITIVE,
            ),
        )

    if (
        starving
        and stats.population > 0
        and stats.day % config.starvation_notice_every == 0
    ):
        notices.append(
            Notice("Food shortage! Population is starving.", NewsKind.NEGATIVE),
        )

    new_stats = CityStats(
        money=money,
        wood=stats.wood + production.wood,
        stone=stats.stone + production.stone,
        food=food,
        population=population,
        day=stats.day + 1,
        era=era,
        weather=roll_weather(stats.weather, rng, config.weather_change_chance),
    )
    logger.debug(
        "Day %d: income=%.1f pop=%d->%d food=%d starving=%s",
        stats.day,
        production.income,
        stats.population,
        population,
        food,
        starving,
    )
    return EconomyReport(
        stats=new_stats,
        census=production.census,
        starving=starving,
        era_advanced=era_advanced,
        notices=tuple(notices),
    )
