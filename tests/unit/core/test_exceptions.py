"""Tests for the exception hierarchy."""

from __future__ import annotations

import pytest

from charsheet_engine.core.exceptions import (
    CharsheetError,
    ConfigurationError,
    ConflictError,
    DiceRollError,
    InsufficientBudgetError,
    InvalidEffectError,
    InvalidLearningMethodError,
    InvalidPointsError,
    NotFoundError,
    RuleConfigurationError,
    StorageError,
    ValidationError,
)


class TestCharsheetError:
    """Tests for the base CharsheetError exception."""

    def test_basic_message(self) -> None:
        """Test exception with basic message."""
        exc = CharsheetError("Test error message")
        assert exc.message == "Test error message"
        assert exc.details == {}
        assert str(exc) == "Test error message"

    def test_with_details(self) -> None:
        """Test exception with additional details."""
        exc = CharsheetError("Test error", details={"key": "value", "count": 42})
        assert "key='value'" in str(exc)
        assert "count=42" in str(exc)

    def test_repr(self) -> None:
        """Test exception repr output."""
        repr_str = repr(CharsheetError("Test", details={"x": 1}))
        assert "CharsheetError" in repr_str
        assert "x" in repr_str


class TestCallerErrors:
    """Tests for the 4xx exceptions."""

    def test_validation_error_context(self) -> None:
        """Test ValidationError records field and value."""
        exc = ValidationError("Bad value", field_name="start", invalid_value=-1)
        assert exc.details == {"field_name": "start", "invalid_value": -1}
        assert exc.status_code == 400

    @pytest.mark.parametrize(
        "exc_type",
        [InvalidPointsError, InvalidLearningMethodError, InvalidEffectError],
    )
    def test_validation_subclasses(self, exc_type: type[ValidationError]) -> None:
        """Test the narrower validation errors keep the 400 status."""
        exc = exc_type("Nope", field_name="x")
        assert isinstance(exc, ValidationError)
        assert exc.status_code == 400

    def test_insufficient_budget(self) -> None:
        """Test InsufficientBudgetError carries the price context."""
        exc = InsufficientBudgetError("Too expensive", required=50, available=12.5)
        assert exc.details["required"] == 50
        assert exc.details["available"] == 12.5
        assert isinstance(exc, ValidationError)

    def test_dice_roll_error(self) -> None:
        """Test DiceRollError with expression."""
        exc = DiceRollError("Invalid", expression="1d4+x")
        assert exc.details["expression"] == "1d4+x"
        assert exc.status_code == 400

    def test_conflict_error(self) -> None:
        """Test ConflictError carries expected and actual values."""
        exc = ConflictError("Stale", field_name="current", expected=16, actual=18)
        assert exc.details == {"field_name": "current", "expected": 16, "actual": 18}
        assert exc.status_code == 409

    def test_conflict_keeps_falsy_values(self) -> None:
        """Test a stored value of zero is still reported."""
        exc = ConflictError("Stale", field_name="mod", expected=3, actual=0)
        assert exc.details["actual"] == 0

    def test_not_found_error(self) -> None:
        """Test NotFoundError carries lookup keys."""
        exc = NotFoundError("Missing", user_id="u", character_id="c")
        assert exc.details == {"user_id": "u", "character_id": "c"}
        assert exc.status_code == 404


class TestServerErrors:
    """Tests for the 5xx exceptions."""

    def test_rule_configuration_error(self) -> None:
        """Test RuleConfigurationError names the rule."""
        exc = RuleConfigurationError("Broken table", rule="college_education")
        assert exc.details["rule"] == "college_education"
        assert exc.status_code == 500

    def test_configuration_error(self) -> None:
        """Test ConfigurationError with config key."""
        exc = ConfigurationError("Missing", config_key="cost_matrix")
        assert exc.details["config_key"] == "cost_matrix"

    def test_storage_error_inheritance(self) -> None:
        """Test StorageError is a server-side CharsheetError."""
        exc = StorageError("Corrupt")
        assert isinstance(exc, CharsheetError)
        assert exc.status_code == 500

    def test_to_dict(self) -> None:
        """Test the error body for the request boundary."""
        body = ConflictError("Stale", field_name="mod", expected=3, actual=0).to_dict()

        assert body == {
            "error": "ConflictError",
            "status_code": 409,
            "message": "Stale",
            "details": {"field_name": "mod", "expected": 3, "actual": 0},
        }

    def test_details_not_mutated(self) -> None:
        """Test caller supplied details are copied."""
        details = {"target": 19}
        exc = ConflictError("Stale", field_name="current", details=details)

        assert details == {"target": 19}
        assert exc.details == {"target": 19, "field_name": "current"}
