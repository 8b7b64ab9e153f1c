"""Tests for skill pricing."""

from __future__ import annotations

import pytest

from charsheet_engine.core.config import CostSettings
from charsheet_engine.core.exceptions import InvalidLearningMethodError, InvalidPointsError, RuleConfigurationError
from charsheet_engine.models import CostCategory, LearningMethod, Skill
from charsheet_engine.rules.costs import CostCalculator, require_learning_method, shift_cost_category


@pytest.fixture
def calculator() -> CostCalculator:
    return CostCalculator(CostSettings())


class TestPricePerPoint:
    """Tests for the bracket lookup."""

    @pytest.mark.parametrize(
        ("value", "category", "expected"),
        [
            (0, CostCategory.CAT_2, 1),
            (49, CostCategory.CAT_2, 1),
            (50, CostCategory.CAT_2, 2),
            (74, CostCategory.CAT_3, 3),
            (75, CostCategory.CAT_3, 4),
            (120, CostCategory.CAT_1, 2),
            (10, CostCategory.CAT_0, 0),
        ],
    )
    def test_brackets(self, calculator: CostCalculator, value: int, category: CostCategory, expected: float) -> None:
        """Test the bracket is chosen by the value being raised from."""
        assert calculator.price_per_point(value, category) == expected

    def test_values_past_last_threshold(self) -> None:
        """Test values beyond the schedule keep the top price."""
        calculator = CostCalculator(
            CostSettings(skill_thresholds=[10, 20], cost_matrix=[[0, 0], [1, 2], [1, 2], [2, 3], [3, 4]])
        )
        assert calculator.price_per_point(25, CostCategory.CAT_4) == 4


class TestIncreaseCost:
    """Tests for multi-point increases."""

    def test_low_priced_increase(self, calculator: CostCalculator) -> None:
        """Test three points from 16 at half price."""
        assert calculator.increase_cost(16, 3, CostCategory.CAT_2, LearningMethod.LOW_PRICED) == 1.5

    def test_free_increase(self, calculator: CostCalculator) -> None:
        """Test the free learning method costs nothing."""
        assert calculator.increase_cost(30, 10, CostCategory.CAT_3, LearningMethod.FREE) == 0

    def test_crossing_a_bracket(self, calculator: CostCalculator) -> None:
        """Test an increase crossing 50 pays both prices."""
        # 48 and 49 cost 1 each, 50 and 51 cost 2 each
        assert calculator.increase_cost(48, 4, CostCategory.CAT_2, LearningMethod.NORMAL) == 6

    def test_expensive_multiplier(self, calculator: CostCalculator) -> None:
        """Test the expensive method doubles the price."""
        assert calculator.increase_cost(74, 2, CostCategory.CAT_4, LearningMethod.EXPENSIVE) == (4 + 5) * 2

    @pytest.mark.parametrize("points", [0, -3])
    def test_non_positive_points(self, calculator: CostCalculator, points: int) -> None:
        """Test zero and negative increases are rejected."""
        with pytest.raises(InvalidPointsError):
            calculator.increase_cost(10, points, CostCategory.CAT_2, LearningMethod.NORMAL)

    def test_missing_learning_method(self, calculator: CostCalculator) -> None:
        """Test increases need a learning method."""
        with pytest.raises(InvalidLearningMethodError):
            calculator.increase_cost(10, 1, CostCategory.CAT_2, None)


class TestActivationCost:
    """Tests for activation fees."""

    @pytest.mark.parametrize(
        ("category", "method", "expected"),
        [
            (CostCategory.CAT_2, LearningMethod.NORMAL, 50),
            (CostCategory.CAT_3, LearningMethod.EXPENSIVE, 120),
            (CostCategory.CAT_1, LearningMethod.LOW_PRICED, 20),
            (CostCategory.CAT_4, LearningMethod.FREE, 0),
        ],
    )
    def test_fees(
        self,
        calculator: CostCalculator,
        category: CostCategory,
        method: LearningMethod,
        expected: float,
    ) -> None:
        """Test the fee is scaled by the learning method."""
        assert calculator.activation_cost(category, method) == expected

    def test_unconfigured_method(self) -> None:
        """Test a method without multiplier is rejected."""
        calculator = CostCalculator(CostSettings(learning_method_multipliers={"NORMAL": 1}))
        with pytest.raises(InvalidLearningMethodError):
            calculator.activation_cost(CostCategory.CAT_2, LearningMethod.FREE)


class TestQuote:
    """Tests for cost quotes."""

    def test_inactive_skill(self, calculator: CostCalculator) -> None:
        """Test an inactive skill is quoted with its activation fee."""
        quote = calculator.quote("nature/fishing", Skill(current=0), LearningMethod.NORMAL)

        assert quote.activated is False
        assert quote.activation_cost == 50
        assert quote.increase_cost == 1

    def test_active_skill(self, calculator: CostCalculator) -> None:
        """Test an active skill is quoted without fee."""
        skill = Skill(activated=True, current=60, default_cost_category=CostCategory.CAT_3)

        quote = calculator.quote("combat/daggers", skill, LearningMethod.LOW_PRICED)

        assert quote.activation_cost == 0
        assert quote.increase_cost == 1.5

    def test_quote_requires_method(self, calculator: CostCalculator) -> None:
        """Test quotes need a learning method."""
        with pytest.raises(InvalidLearningMethodError):
            calculator.quote("body/athletics", Skill(), None)


class TestCostCategories:
    """Tests for cost category shifts."""

    def test_shift_up(self) -> None:
        """Test a one-tier shift."""
        assert shift_cost_category(CostCategory.CAT_2, 1) is CostCategory.CAT_3

    def test_shift_past_maximum(self) -> None:
        """Test shifting beyond CAT_4 is a rule configuration error."""
        with pytest.raises(RuleConfigurationError):
            shift_cost_category(CostCategory.CAT_4, 1)

    def test_require_learning_method(self) -> None:
        """Test string methods are normalized."""
        assert require_learning_method("FREE") is LearningMethod.FREE
