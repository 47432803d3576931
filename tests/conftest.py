"""Shared fixtures for the Frontier test suite."""

from __future__ import annotations

import numpy as np
import pytest
from numpy.random import Generator

from frontier.economy.stats import CityStats
from frontier.simulation.config import SimulationConfig
from frontier.simulation.engine import SimulationEngine
from frontier.world.grid import Grid


class FixedRandom:
    """Stand-in generator whose draws are scripted.

    ``random()`` always returns ``value``; ``integers()`` returns ``low``.
    """

    def __init__(self, value: float) -> None:
        self.value = value

    def random(self, size: object = None) -> float:
        return self.value

    def integers(self, low: int, high: int | None = None) -> int:
        return low


@pytest.fixture
def rng() -> Generator:
    """A deterministic random generator for reproducible tests."""
    return np.random.default_rng(seed=12345)


@pytest.fixture
def config() -> SimulationConfig:
    """Default simulation config (no YAML file needed)."""
    return SimulationConfig()


@pytest.fixture
def small_grid() -> Grid:
    """A fully explored, featureless 8x8 land grid."""
    return Grid.blank(8)


@pytest.fixture
def rich_stats() -> CityStats:
    """A ledger that can afford anything in the catalog."""
    return CityStats(money=100_000, wood=10_000, stone=10_000, food=10_000)


@pytest.fixture
def engine(config: SimulationConfig) -> SimulationEngine:
    """A started engine without an oracle."""
    eng = SimulationEngine(config=config)
    eng.start_session(ai_enabled=False)
    yield eng
    eng.shutdown()


@pytest.fixture
def fixed_random() -> type[FixedRandom]:
    """The scripted generator class, for tests that pin every draw."""
    return FixedRandom
