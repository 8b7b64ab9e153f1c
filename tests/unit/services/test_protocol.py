"""Tests for the compare-and-swap building blocks."""

from __future__ import annotations

import pytest
import structlog

from charsheet_engine.core.exceptions import ConflictError, InvalidPointsError, ValidationError
from charsheet_engine.models import Attribute, Changes, RecordType
from charsheet_engine.services.protocol import (
    SheetService,
    dump_state,
    operation_context,
    require_minimum,
    require_positive,
    resolve_field,
)
from charsheet_engine.storage import Database


class TestResolveField:
    """Tests for the three-way field group decision."""

    def test_apply(self) -> None:
        """Test stored equal to initial means apply."""
        assert resolve_field("current", 16, 16, 19) is True

    def test_already_satisfied(self) -> None:
        """Test stored equal to target means nothing to do."""
        assert resolve_field("current", 19, 16, 19) is False

    def test_satisfied_wins_when_initial_equals_target(self) -> None:
        """Test a no-op request is satisfied, not applied."""
        assert resolve_field("mod", 3, 3, 3) is False

    def test_conflict(self) -> None:
        """Test stored equal to neither is a conflict."""
        with pytest.raises(ConflictError) as exc_info:
            resolve_field("current", 18, 16, 19)

        assert exc_info.value.details == {"field_name": "current", "expected": 16, "actual": 18, "target": 19}

    def test_float_values(self) -> None:
        """Test point totals with halves compare exactly."""
        assert resolve_field("total", 12.5, 12.5, 22.5) is True


class TestGuards:
    """Tests for request guards."""

    @pytest.mark.parametrize("points", [0, -1])
    def test_require_positive(self, points: int) -> None:
        """Test non-positive point deltas are rejected."""
        with pytest.raises(InvalidPointsError):
            require_positive(points, "increased_points")

    def test_require_positive_accepts(self) -> None:
        """Test a positive delta passes."""
        require_positive(1, "increased_points")

    def test_require_minimum(self) -> None:
        """Test values below the floor are rejected."""
        require_minimum(0, 0, "start")
        with pytest.raises(ValidationError):
            require_minimum(-1, 0, "start")


class TestOperationContext:
    """Tests for log context binding."""

    def test_binds_and_clears(self) -> None:
        """Test context is bound inside and cleared after."""
        with operation_context("update_skill", "user-1", "char-1"):
            context = structlog.contextvars.get_contextvars()
            assert context["operation"] == "update_skill"
            assert context["character_id"] == "char-1"

        assert structlog.contextvars.get_contextvars() == {}

    def test_clears_on_error(self) -> None:
        """Test context is cleared when the operation fails."""
        with pytest.raises(ConflictError):
            with operation_context("update_skill", "user-1"):
                raise ConflictError("Stale")

        assert structlog.contextvars.get_contextvars() == {}


class TestSheetService:
    """Tests for the shared service base."""

    def test_record_numbers(self, database: Database, character_id: str) -> None:
        """Test records are numbered after the latest one."""
        service = SheetService(database)

        record = service._record(character_id, RecordType.SKILL_CHANGED, "body/athletics", Changes())
        first_elsewhere = service._record("unknown", RecordType.SKILL_CHANGED, "body/athletics", Changes())

        assert record.number == 2
        assert first_elsewhere.number == 1
        assert database.get_latest_history_record(character_id) == record

    def test_dump_state(self) -> None:
        """Test models and model mappings are serialized."""
        dumped = dump_state(
            {
                "attributes.courage": Attribute(current=5),
                "combat.melee": {"daggers": Attribute(current=1)},
                "general_information.level": 2,
            }
        )

        assert dumped["attributes.courage"]["current"] == 5
        assert dumped["combat.melee"]["daggers"]["current"] == 1
        assert dumped["general_information.level"] == 2

    def test_replay_result(self, database: Database, character_id: str, user_id: str) -> None:
        """Test a replay returns old equal to new without a record."""
        character = database.get_character(user_id, character_id)

        result = SheetService._replay(character, "courage", {"attributes.courage": {"current": 5}})

        assert result.is_idempotent_replay
        assert result.changes.old == result.changes.new
        assert database.get_latest_history_record(character_id).type is RecordType.CHARACTER_CREATED
