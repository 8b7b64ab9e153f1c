"""History of a character: listing, commenting and reverting records.

Record data is keyed by dotted sheet paths (``attributes.courage``,
``combat.melee``, ...), so reverting a record writes its ``old`` side back
to exactly the sections it changed.
"""

from __future__ import annotations

from typing import Any

from charsheet_engine.core.exceptions import NotFoundError, ValidationError
from charsheet_engine.core.logging import get_logger
from charsheet_engine.models.enums import RecordType
from charsheet_engine.models.history import HistoryRecord
from charsheet_engine.services.protocol import SheetService, operation_context


logger = get_logger(__name__)


class HistoryService(SheetService):
    """Read and maintain the audit log of stored characters."""

    def get_history(self, user_id: str, character_id: str) -> list[HistoryRecord]:
        """All records of a character, oldest first."""
        with operation_context("get_history", user_id, character_id):
            self._load(user_id, character_id)
            return self._db.get_history(character_id)

    def set_history_comment(
        self,
        user_id: str,
        character_id: str,
        record_id: str,
        comment: str | None,
    ) -> HistoryRecord:
        """Attach (or clear, with None) the comment of a record.

        Raises:
            NotFoundError: If the record does not belong to the character.
        """
        with operation_context("set_history_comment", user_id, character_id):
            self._load(user_id, character_id)
            record = self._db.get_history_record(character_id, record_id)
            updated = record.model_copy(update={"comment": comment})
            self._db.update_history_record(character_id, updated)
            logger.info("History comment set", number=record.number)
            return updated

    def revert_latest_record(self, user_id: str, character_id: str, record_id: str) -> HistoryRecord:
        """Undo the latest record and delete it.

        Raises:
            NotFoundError: If ``record_id`` is not the character's latest record.
            ValidationError: If the latest record is the creation record.
        """
        with operation_context("revert_latest_record", user_id, character_id):
            self._load(user_id, character_id)
            latest = self._db.get_latest_history_record(character_id)
            if latest is None or latest.id != record_id:
                raise NotFoundError(
                    "Only the latest history record can be reverted",
                    character_id=character_id,
                    record_id=record_id,
                )
            if latest.type is RecordType.CHARACTER_CREATED:
                raise ValidationError(
                    "The creation record cannot be reverted",
                    field_name="record_id",
                    invalid_value=record_id,
                )

            values: dict[str, Any] = dict(latest.data.old)
            points = latest.calculation_points
            if points.adventure_points is not None:
                values["calculation_points.adventure_points"] = points.adventure_points.old
            if points.attribute_points is not None:
                values["calculation_points.attribute_points"] = points.attribute_points.old

            if values:
                self._db.update_sheet_paths(user_id, character_id, values)
            self._db.delete_history_record(character_id, latest.id)
            logger.info("History record reverted", number=latest.number, type=latest.type.name)
            return latest


__all__ = ["HistoryService"]
