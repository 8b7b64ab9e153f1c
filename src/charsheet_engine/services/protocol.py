"""Compare-and-swap building blocks shared by every mutating operation.

Each field group of a request names the value the caller saw and the
value it wants. Against the stored value that gives three cases:

* stored equals neither: someone else changed the field, reject.
* stored equals the target: an identical request already succeeded,
  nothing to do for this group.
* stored equals the initial value: apply the group.

An operation whose groups are all already satisfied is an idempotent
replay: it returns the unchanged state and writes nothing.
"""

from __future__ import annotations

from collections.abc import Generator
from contextlib import contextmanager
from typing import Any

from charsheet_engine.core.exceptions import ConflictError, InvalidPointsError, ValidationError
from charsheet_engine.core.logging import bind_context, clear_context, get_logger
from charsheet_engine.models.character import Character
from charsheet_engine.models.enums import LearningMethod, RecordType
from charsheet_engine.models.history import HistoryRecord, PointsDelta, RecordData, RecordPoints
from charsheet_engine.models.requests import Changes, UpdateResult
from charsheet_engine.storage.database import Database, get_database


logger = get_logger(__name__)


def resolve_field(field_name: str, stored: Any, initial: Any, target: Any) -> bool:
    """Decide what to do with one field group.

    Returns:
        True if the group must be applied, False if it is already satisfied.

    Raises:
        ConflictError: If the stored value matches neither initial nor target.
    """
    if stored == target:
        logger.info("Field group already satisfied", field=field_name, value=stored)
        return False
    if stored != initial:
        raise ConflictError(
            f"Stored value of '{field_name}' does not match the initial value",
            field_name=field_name,
            expected=initial,
            actual=stored,
            details={"target": target},
        )
    return True


def require_positive(points: int, field_name: str) -> None:
    """Raises InvalidPointsError unless ``points`` is greater than zero."""
    if points <= 0:
        raise InvalidPointsError(
            "Points to increase must be positive",
            field_name=field_name,
            invalid_value=points,
        )


def require_minimum(value: float, minimum: float, field_name: str) -> None:
    """Raises ValidationError if ``value`` is below ``minimum``."""
    if value < minimum:
        raise ValidationError(
            f"'{field_name}' must not be below {minimum}",
            field_name=field_name,
            invalid_value=value,
        )


@contextmanager
def operation_context(operation: str, user_id: str, character_id: str | None = None) -> Generator[None, None, None]:
    """Bind logging context for the duration of one service operation."""
    bind_context(operation=operation, user_id=user_id, character_id=character_id)
    try:
        yield
    finally:
        clear_context()


class SheetService:
    """Base class for services working on stored characters.

    Args:
        database: Storage collaborator. Defaults to the global database.
    """

    def __init__(self, database: Database | None = None) -> None:
        self._db = database or get_database()

    @property
    def database(self) -> Database:
        return self._db

    def _load(self, user_id: str, character_id: str) -> Character:
        return self._db.get_character(user_id, character_id)

    def _record(
        self,
        character_id: str,
        record_type: RecordType,
        name: str,
        changes: Changes,
        *,
        learning_method: LearningMethod | None = None,
        adventure_points: PointsDelta | None = None,
        attribute_points: PointsDelta | None = None,
    ) -> HistoryRecord:
        """Append the audit record of a state-changing operation."""
        record = self._db.append_next_history_record(
            character_id,
            {
                "type": record_type,
                "name": name,
                "data": RecordData(old=changes.old, new=changes.new),
                "learning_method": learning_method,
                "calculation_points": RecordPoints(
                    adventure_points=adventure_points,
                    attribute_points=attribute_points,
                ),
            },
        )
        logger.info("History record written", type=record_type.name, number=record.number, name=name)
        return record

    @staticmethod
    def _replay(character: Character, target: str, state: dict[str, Any]) -> UpdateResult:
        """Result of an operation whose field groups were all satisfied."""
        logger.info("Idempotent replay, nothing written", target=target)
        return UpdateResult(
            user_id=character.user_id,
            character_id=character.character_id,
            target=target,
            changes=Changes(old=state, new=state),
        )


def dump_state(values: dict[str, Any]) -> dict[str, Any]:
    """Serialize sheet sections keyed by dotted path for results and records."""
    dumped: dict[str, Any] = {}
    for path, value in values.items():
        if hasattr(value, "model_dump"):
            dumped[path] = value.model_dump(mode="json")
        elif isinstance(value, dict):
            dumped[path] = {
                str(key): item.model_dump(mode="json") if hasattr(item, "model_dump") else item
                for key, item in value.items()
            }
        else:
            dumped[path] = value
    return dumped


__all__ = [
    "SheetService",
    "dump_state",
    "operation_context",
    "require_minimum",
    "require_positive",
    "resolve_field",
]
