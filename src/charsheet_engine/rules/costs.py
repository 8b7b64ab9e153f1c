"""Cost and point-economy calculator.

Skills are priced in two ways: a flat activation fee and a progressive
per-point price for raising ``current``. Both depend on the skill's cost
category and are scaled by the caller's learning method. The bracket
schedule comes from :class:`~charsheet_engine.core.config.CostSettings`.

Example:
    >>> calculator = CostCalculator()
    >>> calculator.increase_cost(16, 3, CostCategory.CAT_2, LearningMethod.LOW_PRICED)
    1.5
"""

from __future__ import annotations

from charsheet_engine.core.config import CostSettings, get_settings
from charsheet_engine.core.exceptions import (
    InvalidLearningMethodError,
    InvalidPointsError,
    RuleConfigurationError,
)
from charsheet_engine.core.logging import get_logger
from charsheet_engine.models.character import Skill
from charsheet_engine.models.enums import CostCategory, LearningMethod
from charsheet_engine.models.requests import SkillCostQuote
from charsheet_engine.rules.tables import MAX_COST_CATEGORY, MIN_COST_CATEGORY


logger = get_logger(__name__)


def shift_cost_category(category: CostCategory, steps: int) -> CostCategory:
    """Move a cost category by ``steps`` tiers.

    Raises:
        RuleConfigurationError: If the result leaves the CAT_0..CAT_4 range.
    """
    shifted = int(category) + steps
    if shifted > MAX_COST_CATEGORY or shifted < MIN_COST_CATEGORY:
        raise RuleConfigurationError(
            f"Cost category {category.name} cannot be shifted by {steps}",
            rule="cost_category_shift",
            details={"category": int(category), "steps": steps, "maximum": int(MAX_COST_CATEGORY)},
        )
    return CostCategory(shifted)


def require_learning_method(learning_method: LearningMethod | None) -> LearningMethod:
    """Return the learning method or fail if it was omitted.

    Raises:
        InvalidLearningMethodError: If no learning method was supplied.
    """
    if learning_method is None:
        raise InvalidLearningMethodError(
            "A learning method is required to activate or increase a skill",
            field_name="learning_method",
        )
    return LearningMethod(learning_method)


class CostCalculator:
    """Prices skill activations and increases.

    Args:
        settings: Cost schedule to use. Defaults to the application settings.
    """

    def __init__(self, settings: CostSettings | None = None) -> None:
        self._settings = settings or get_settings().cost

    @property
    def settings(self) -> CostSettings:
        return self._settings

    def multiplier(self, learning_method: LearningMethod | None) -> float:
        """Price multiplier of a learning method.

        Raises:
            InvalidLearningMethodError: If the method is missing or unknown.
        """
        method = require_learning_method(learning_method)
        try:
            return self._settings.learning_method_multipliers[method.value]
        except KeyError as exc:
            raise InvalidLearningMethodError(
                "Learning method has no configured multiplier",
                field_name="learning_method",
                invalid_value=method.value,
            ) from exc

    def price_per_point(self, value: int, cost_category: CostCategory) -> float:
        """Base price of raising a skill by one point from ``value``."""
        thresholds = self._settings.skill_thresholds
        row = self._settings.cost_matrix[int(cost_category)]
        for index, threshold in enumerate(thresholds):
            if value < threshold:
                return row[index]
        # Values past the last threshold keep the top bracket price
        return row[-1]

    def activation_cost(
        self,
        cost_category: CostCategory,
        learning_method: LearningMethod | None,
    ) -> float:
        """Flat fee for activating a skill of the given cost category."""
        cost = self._settings.activation_costs[int(cost_category)] * self.multiplier(learning_method)
        logger.debug(
            "Activation cost",
            cost_category=int(cost_category),
            learning_method=learning_method,
            cost=cost,
        )
        return cost

    def increase_cost(
        self,
        current: int,
        points: int,
        cost_category: CostCategory,
        learning_method: LearningMethod | None,
    ) -> float:
        """Price of raising ``current`` by ``points``.

        Each point is priced by the bracket of the value it is raised from,
        so an increase crossing a bracket boundary pays both prices.

        Raises:
            InvalidPointsError: If ``points`` is zero or negative.
            InvalidLearningMethodError: If the learning method is missing.
        """
        if points <= 0:
            raise InvalidPointsError(
                "Points to increase must be positive",
                field_name="increased_points",
                invalid_value=points,
            )
        multiplier = self.multiplier(learning_method)

        total = 0.0
        for value in range(current, current + points):
            price = self.price_per_point(value, cost_category) * multiplier
            logger.debug("Point price", value=value, price=price)
            total += price
        return total

    def next_point_cost(
        self,
        current: int,
        cost_category: CostCategory,
        learning_method: LearningMethod | None,
    ) -> float:
        """Price of the next single point."""
        return self.price_per_point(current, cost_category) * self.multiplier(learning_method)

    def quote(self, skill_name: str, skill: Skill, learning_method: LearningMethod | None) -> SkillCostQuote:
        """Price of activating ``skill`` if needed and of its next point."""
        method = require_learning_method(learning_method)
        activation = 0.0
        if not skill.activated:
            activation = self.activation_cost(skill.default_cost_category, method)
        return SkillCostQuote(
            skill=skill_name,
            learning_method=method,
            activated=skill.activated,
            activation_cost=activation,
            increase_cost=self.next_point_cost(skill.current, skill.default_cost_category, method),
        )


__all__ = [
    "CostCalculator",
    "require_learning_method",
    "shift_cost_category",
]
