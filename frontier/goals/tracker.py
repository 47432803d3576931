"""Goals — externally supplied objectives and their progress tracking.

At most one goal is active.  The tracker re-checks it after every economy
tick against the freshly updated ledger; a satisfied goal stays on display
(marked completed) until the player claims its reward.
"""

from __future__ import annotations

import dataclasses
import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

from frontier.world.tile import BuildingType

if TYPE_CHECKING:
    from collections import Counter

    from frontier.economy.stats import CityStats

logger = logging.getLogger(__name__)


class GoalType(Enum):
    """Quantity a goal is measured against."""

    POPULATION = "population"
    MONEY = "money"
    BUILDING_COUNT = "building_count"
    RESOURCE_STOCKPILE = "resource_stockpile"


@dataclass(frozen=True)
class Goal:
    """An objective for the player.

    Attributes:
        description: Player-facing text.
        target_type: What is measured.
        target_value: Threshold that satisfies the goal.
        building: Building counted for ``BUILDING_COUNT`` goals.
        reward: Money credited on claim.
        completed: Whether the threshold has been reached.
    """

    description: str
    target_type: GoalType
    target_value: float
    building: BuildingType | None = None
    reward: int = 0
    completed: bool = False

    def is_met(self, stats: CityStats, census: Counter[BuildingType]) -> bool:
        """Return True if ``stats`` and ``census`` satisfy this goal."""
        if self.target_type is GoalType.MONEY:
            return stats.money >= self.target_value
        if self.target_type is GoalType.POPULATION:
            return stats.population >= self.target_value
        if self.target_type is GoalType.BUILDING_COUNT:
            if self.building is None:
                return False
            return census.get(self.building, 0) >= self.target_value
        stockpile = stats.wood + stats.stone + stats.food
        return stockpile >= self.target_value


def parse_goal(payload: str | Mapping[str, Any]) -> Goal:
    """Build a Goal from an oracle payload.

    Accepts either a JSON object string or an already-decoded mapping using
    the keys ``description``, ``targetType``, ``targetValue``,
    ``buildingType`` and ``reward``.  Snake-case keys are accepted too.

    Raises:
        ValueError: If the payload is malformed or names unknown types.
    """
    data: Any = json.loads(payload) if isinstance(payload, str) else payload
    if not isinstance(data, Mapping):
        msg = f"Expected a goal object, got {type(data).__name__}"
        raise ValueError(msg)

    def pick(camel: str, snake: str, default: Any = None) -> Any:
        return data.get(camel, data.get(snake, default))

    try:
        target_type = GoalType(pick("targetType", "target_type"))
        target_value = float(pick("targetValue", "target_value"))
        reward = int(pick("reward", "reward", 0))
    except (TypeError, ValueError) as exc:
        msg = f"Malformed goal payload: {exc}"
        raise ValueError(msg) from exc

    building = None
    raw_building = pick("buildingType", "building_type")
    if raw_building is not None:
        building = BuildingType(raw_building)
    if target_type is GoalType.BUILDING_COUNT and building is None:
        msg = "building_count goals need a buildingType"
        raise ValueError(msg)

    return Goal(
        description=str(pick("description", "description", "")),
        target_type=target_type,
        target_value=target_value,
        building=building,
        reward=reward,
    )


class GoalTracker:
    """Holds the active goal and evaluates it each economy tick."""

    def __init__(self) -> None:
        self.goal: Goal | None = None

    def assign(self, goal: Goal) -> None:
        """Make ``goal`` the active goal, replacing any previous one."""
        self.goal = dataclasses.replace(goal, completed=False)
        logger.info("New goal: %s", goal.description)

    def evaluate(self, stats: CityStats, census: Counter[BuildingType]) -> bool:
        """Mark the active goal completed if it is now satisfied.

        Returns:
            True if the goal became completed during this call.
        """
        goal = self.goal
        if goal is None or goal.completed:
            return False
        if goal.is_met(stats, census):
            self.goal = dataclasses.replace(goal, completed=True)
            return True
        return False

    def claim(self) -> int | None:
        """Clear a completed goal and return its reward.

        Returns:
            The reward, or None if there is no completed goal to claim.
        """
        goal = self.goal
        if goal is None or not goal.completed:
            return None
        self.goal = None
        logger.info("Goal claimed: %s (+$%d)", goal.description, goal.reward)
        return goal.reward
