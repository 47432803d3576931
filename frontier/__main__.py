"""Entry point for ``python -m frontier``.

Loads the default YAML config, builds a simulation engine, places any
requested buildings, and runs the settlement headless for a while before
logging a summary.
"""

from __future__ import annotations

import argparse
import logging
import pathlib

from frontier.goals.oracle import NullOracle, ScriptedOracle
from frontier.simulation.config import SimulationConfig
from frontier.simulation.engine import SimulationEngine
from frontier.world.tile import BuildingType

_DEFAULT_CONFIG = (
    pathlib.Path(__file__).resolve().parent.parent / "config" / "default.yaml"
)

logger = logging.getLogger("frontier")


def _build_order(text: str) -> tuple[int, int, BuildingType]:
    """Parse ``X,Y,TOOL`` (e.g. ``10,10,Residential``)."""
    try:
        x, y, tool = text.split(",")
        return int(x), int(y), BuildingType(tool.strip())
    except ValueError as exc:
        msg = f"expected X,Y,TOOL with a known building, got {text!r}"
        raise argparse.ArgumentTypeError(msg) from exc


def _positive_int(text: str) -> int:
    """Parse a strictly positive integer."""
    try:
        value = int(text)
    except ValueError as exc:
        msg = f"expected an integer, got {text!r}"
        raise argparse.ArgumentTypeError(msg) from exc
    if value <= 0:
        msg = f"must be positive, got {value}"
        raise argparse.ArgumentTypeError(msg)
    return value


def main() -> None:
    """Parse CLI args, create engine, run the session."""
    parser = argparse.ArgumentParser(
        prog="frontier",
        description="Frontier - headless settlement simulator",
    )
    parser.add_argument(
        "-c",
        "--config",
        type=pathlib.Path,
        default=_DEFAULT_CONFIG,
        help="Path to YAML config file (default: config/default.yaml)",
    )
    parser.add_argument(
        "--seconds",
        type=float,
        default=120.0,
        help="Simulated seconds to run (default: 120)",
    )
    parser.add_argument(
        "--step-ms",
        type=_positive_int,
        default=100,
        help="Clock granularity in milliseconds (default: 100)",
    )
    parser.add_argument(
        "--no-ai",
        action="store_true",
        help="Run without the goal/news oracle",
    )
    parser.add_argument(
        "--build",
        type=_build_order,
        action="append",
        default=[],
        metavar="X,Y,TOOL",
        help="Click a tile with a tool before starting (repeatable)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity (default: INFO)",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=args.log_level,
        format="%(asctime)s %(levelname)-7s %(name)s: %(message)s",
    )

    config = SimulationConfig.from_yaml(args.config)
    oracle = (
        NullOracle()
        if args.no_ai
        else ScriptedOracle(config.goal_pool, config.news_lines, seed=config.seed)
    )
    engine = SimulationEngine(config=config, oracle=oracle)
    engine.start_session(ai_enabled=not args.no_ai)

    for x, y, tool in args.build:
        result = engine.build_or_upgrade_or_demolish(x, y, tool)
        if not result.accepted:
            logger.warning(
                "Could not place %s at (%d, %d): %s",
                tool.value,
                x,
                y,
                result.rejection.name,
            )

    elapsed = 0
    total_ms = int(args.seconds * 1000)
    try:
        while elapsed < total_ms:
            engine.advance(args.step_ms)
            elapsed += args.step_ms
    finally:
        engine.shutdown()

    snap = engine.snapshot()
    stats = snap.stats
    logger.info(
        "Day %d (%s era, %s): $%d, %d wood, %d stone, %d food, %d people",
        stats.day,
        stats.era.value,
        stats.weather.value,
        stats.money,
        stats.wood,
        stats.stone,
        stats.food,
        stats.population,
    )
    logger.info(
        "%d raiders on the map, %d explorers at sea",
        len(snap.hostiles),
        len(snap.explorers),
    )
    for item in snap.events:
        logger.info("[%s] %s", item.kind.value, item.text)


if __name__ == "__main__":
    main()
