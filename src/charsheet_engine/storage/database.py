"""SQLite persistence for character sheets and their history.

Provides persistent storage for:
- Character records, one per (user_id, character_id), holding the full sheet
- Append-only history records, numbered per character

The sheet is stored as one JSON document. Mutations never rewrite the
whole document from a caller's copy: each writer takes the write lock
with ``BEGIN IMMEDIATE`` before reading the stored document, replaces only
the sections it owns, and commits. Writers on other connections wait for
the lock (``busy_timeout``), so no section written concurrently is lost.
History numbers are allocated under the same lock as the insert.

A mutation touching several sections (for example a base value and the
combat stats depending on it) issues several such writes one after
another.

Storage location: configured by ``CHARSHEET_DATABASE_PATH``.
"""

from __future__ import annotations

import json
import sqlite3
from collections.abc import Generator, Mapping
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from charsheet_engine.core.config import get_settings
from charsheet_engine.core.exceptions import NotFoundError, StorageError
from charsheet_engine.core.logging import get_logger
from charsheet_engine.models.character import (
    Attribute,
    BaseValue,
    CalculationPoints,
    Character,
    CharacterSheet,
    CombatStats,
    LevelUpProgress,
    Skill,
)
from charsheet_engine.models.enums import AttributeName, BaseValueName, CombatCategory, SkillCategory
from charsheet_engine.models.history import HistoryRecord


logger = get_logger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


def _to_json_value(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, list):
        return [_to_json_value(item) for item in value]
    if isinstance(value, dict):
        return {str(key): _to_json_value(item) for key, item in value.items()}
    return value


def set_path(document: dict[str, Any], path: str, value: Any) -> None:
    """Set a dotted path inside a JSON document.

    Raises:
        StorageError: If an intermediate section does not exist.
    """
    *parents, leaf = path.split(".")
    node = document
    for key in parents:
        if not isinstance(node.get(key), dict):
            raise StorageError(f"Sheet has no section '{key}'", details={"path": path})
        node = node[key]
    node[leaf] = _to_json_value(value)


# =============================================================================
# Database Class
# =============================================================================


class Database:
    """SQLite database for character sheets.

    Manages storage of:
    - Character records (sheet JSON keyed by user and character id)
    - History records (per character, sequentially numbered)
    """

    SCHEMA_VERSION = 1

    def __init__(self, db_path: str | Path | None = None, *, busy_timeout: float = 5.0) -> None:
        """Initialize database.

        Args:
            db_path: Path to database file. If None, uses the configured path.
            busy_timeout: Seconds a writer waits for another connection's lock.
        """
        self.busy_timeout = busy_timeout
        if db_path is None:
            self.db_path = get_settings().storage.database_path
        else:
            self.db_path = Path(db_path)

        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_schema()

        logger.info("Database initialized", path=str(self.db_path))

    @contextmanager
    def _get_connection(self, *, write: bool = False) -> Generator[sqlite3.Connection, None, None]:
        """Get a database connection; commits on success, rolls back on error.

        With ``write`` the transaction starts with ``BEGIN IMMEDIATE``, so the
        write lock is held from the first read to the commit.
        """
        conn = sqlite3.connect(str(self.db_path), timeout=self.busy_timeout, isolation_level=None)
        conn.row_factory = sqlite3.Row
        try:
            if write:
                conn.execute("BEGIN IMMEDIATE")
            yield conn
            if conn.in_transaction:
                conn.execute("COMMIT")
        except Exception:
            if conn.in_transaction:
                conn.execute("ROLLBACK")
            raise
        finally:
            conn.close()

    def _init_schema(self) -> None:
        with self._get_connection(write=True) as conn:
            cursor = conn.cursor()

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS schema_version (
                    version INTEGER PRIMARY KEY
                )
            """)

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS characters (
                    user_id TEXT NOT NULL,
                    character_id TEXT NOT NULL,
                    sheet_json TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL,
                    PRIMARY KEY (user_id, character_id)
                )
            """)

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS history (
                    character_id TEXT NOT NULL,
                    number INTEGER NOT NULL,
                    record_id TEXT NOT NULL UNIQUE,
                    record_json TEXT NOT NULL,
                    PRIMARY KEY (character_id, number)
                )
            """)

            cursor.execute("""
                CREATE INDEX IF NOT EXISTS idx_characters_user
                ON characters(user_id)
            """)

            cursor.execute("""
                INSERT OR REPLACE INTO schema_version (version) VALUES (?)
            """, (self.SCHEMA_VERSION,))

    # =========================================================================
    # Character Records
    # =========================================================================

    def create_character(self, character: Character) -> None:
        """Insert a new character record.

        Raises:
            StorageError: If the (user_id, character_id) pair already exists.
        """
        now = _now()
        try:
            with self._get_connection(write=True) as conn:
                conn.execute("""
                    INSERT INTO characters (user_id, character_id, sheet_json, created_at, updated_at)
                    VALUES (?, ?, ?, ?, ?)
                """, (
                    character.user_id,
                    character.character_id,
                    character.character_sheet.model_dump_json(),
                    now,
                    now,
                ))
        except sqlite3.IntegrityError as exc:
            raise StorageError(
                "Character already exists",
                details={"user_id": character.user_id, "character_id": character.character_id},
            ) from exc

        logger.info("Character stored", user_id=character.user_id, character_id=character.character_id)

    def get_character(self, user_id: str, character_id: str) -> Character:
        """Load a character record.

        Raises:
            NotFoundError: If the pair does not exist.
            StorageError: If the stored sheet cannot be parsed.
        """
        with self._get_connection() as conn:
            row = conn.execute("""
                SELECT sheet_json FROM characters WHERE user_id = ? AND character_id = ?
            """, (user_id, character_id)).fetchone()

        if row is None:
            raise NotFoundError("Character not found", user_id=user_id, character_id=character_id)
        return self._parse_character(user_id, character_id, row["sheet_json"])

    def list_characters(self, user_id: str) -> list[Character]:
        """Get all characters of a user, oldest first."""
        with self._get_connection() as conn:
            rows = conn.execute("""
                SELECT character_id, sheet_json FROM characters
                WHERE user_id = ? ORDER BY created_at, character_id
            """, (user_id,)).fetchall()

        return [self._parse_character(user_id, row["character_id"], row["sheet_json"]) for row in rows]

    def delete_character(self, user_id: str, character_id: str) -> bool:
        """Delete a character and its history.

        Returns:
            True if deleted, False if not found.
        """
        with self._get_connection(write=True) as conn:
            cursor = conn.execute(
                "DELETE FROM characters WHERE user_id = ? AND character_id = ?",
                (user_id, character_id),
            )
            deleted = cursor.rowcount > 0
            if deleted:
                conn.execute("DELETE FROM history WHERE character_id = ?", (character_id,))

        if deleted:
            logger.info("Character deleted", user_id=user_id, character_id=character_id)
        return deleted

    def save_sheet(self, user_id: str, character_id: str, sheet: CharacterSheet) -> None:
        """Replace the whole sheet of an existing character."""
        with self._get_connection(write=True) as conn:
            cursor = conn.execute("""
                UPDATE characters SET sheet_json = ?, updated_at = ?
                WHERE user_id = ? AND character_id = ?
            """, (sheet.model_dump_json(), _now(), user_id, character_id))
            if cursor.rowcount == 0:
                raise NotFoundError("Character not found", user_id=user_id, character_id=character_id)

    def update_sheet_paths(self, user_id: str, character_id: str, values: Mapping[str, Any]) -> None:
        """Replace sheet sections addressed by dotted paths in one transaction.

        Args:
            user_id: Owner of the character.
            character_id: Character to update.
            values: Mapping of path (``attributes.courage``,
                ``combat.melee.daggers``, ...) to its new value.

        Raises:
            NotFoundError: If the character does not exist.
        """
        with self._get_connection(write=True) as conn:
            row = conn.execute("""
                SELECT sheet_json FROM characters WHERE user_id = ? AND character_id = ?
            """, (user_id, character_id)).fetchone()
            if row is None:
                raise NotFoundError("Character not found", user_id=user_id, character_id=character_id)

            document = json.loads(row["sheet_json"])
            for path, value in values.items():
                set_path(document, path, value)

            conn.execute("""
                UPDATE characters SET sheet_json = ?, updated_at = ?
                WHERE user_id = ? AND character_id = ?
            """, (json.dumps(document), _now(), user_id, character_id))

        logger.debug("Sheet sections written", character_id=character_id, paths=sorted(values))

    # -------------------------------------------------------------------------
    # Fine-grained writers
    # -------------------------------------------------------------------------

    def update_attribute(
        self,
        user_id: str,
        character_id: str,
        name: AttributeName | str,
        attribute: Attribute,
        *,
        attribute_points: CalculationPoints | None = None,
    ) -> None:
        """Write an attribute together with the attribute points paying for it."""
        values: dict[str, Any] = {f"attributes.{AttributeName(name)}": attribute}
        if attribute_points is not None:
            values["calculation_points.attribute_points"] = attribute_points
        self.update_sheet_paths(user_id, character_id, values)

    def update_skill(
        self,
        user_id: str,
        character_id: str,
        category: SkillCategory | str,
        name: str,
        skill: Skill,
        *,
        adventure_points: CalculationPoints | None = None,
    ) -> None:
        """Write a skill together with the adventure points paying for it."""
        values: dict[str, Any] = {f"skills.{SkillCategory(category)}.{name}": skill}
        if adventure_points is not None:
            values["calculation_points.adventure_points"] = adventure_points
        self.update_sheet_paths(user_id, character_id, values)

    def update_base_values(
        self, user_id: str, character_id: str, base_values: Mapping[BaseValueName, BaseValue]
    ) -> None:
        self.update_sheet_paths(
            user_id,
            character_id,
            {f"base_values.{BaseValueName(name)}": value for name, value in base_values.items()},
        )

    def update_base_value(
        self, user_id: str, character_id: str, name: BaseValueName | str, base_value: BaseValue
    ) -> None:
        self.update_base_values(user_id, character_id, {BaseValueName(name): base_value})

    def update_combat_stats(
        self,
        user_id: str,
        character_id: str,
        category: CombatCategory | str,
        stats: Mapping[str, CombatStats],
    ) -> None:
        """Write the combat stats of one or more skills of one combat section."""
        category = CombatCategory(category)
        self.update_sheet_paths(
            user_id,
            character_id,
            {f"combat.{category}.{name}": value for name, value in stats.items()},
        )

    def update_calculation_points(
        self,
        user_id: str,
        character_id: str,
        *,
        adventure_points: CalculationPoints | None = None,
        attribute_points: CalculationPoints | None = None,
    ) -> None:
        values: dict[str, Any] = {}
        if adventure_points is not None:
            values["calculation_points.adventure_points"] = adventure_points
        if attribute_points is not None:
            values["calculation_points.attribute_points"] = attribute_points
        if values:
            self.update_sheet_paths(user_id, character_id, values)

    def set_level(
        self, user_id: str, character_id: str, level: int, progress: LevelUpProgress
    ) -> None:
        self.update_sheet_paths(
            user_id,
            character_id,
            {
                "general_information.level": level,
                "general_information.level_up_progress": progress,
            },
        )

    def set_special_abilities(self, user_id: str, character_id: str, abilities: list[str]) -> None:
        self.update_sheet_paths(user_id, character_id, {"special_abilities": list(abilities)})

    # =========================================================================
    # History Records
    # =========================================================================

    def append_history_record(self, character_id: str, record: HistoryRecord) -> HistoryRecord:
        """Store a history record under its number.

        Raises:
            StorageError: If the number is already taken.
        """
        try:
            with self._get_connection(write=True) as conn:
                conn.execute("""
                    INSERT INTO history (character_id, number, record_id, record_json)
                    VALUES (?, ?, ?, ?)
                """, (character_id, record.number, record.id, record.model_dump_json()))
        except sqlite3.IntegrityError as exc:
            raise StorageError(
                "History record number already taken",
                details={"character_id": character_id, "number": record.number},
            ) from exc

        logger.debug("History record stored", character_id=character_id, number=record.number)
        return record

    def append_next_history_record(self, character_id: str, fields: Mapping[str, Any]) -> HistoryRecord:
        """Store a new history record under the next free number.

        The number is read and the record inserted under one write lock, so
        concurrent writers on the same character get consecutive numbers.

        Args:
            character_id: Character the record belongs to.
            fields: HistoryRecord fields other than ``number``.

        Returns:
            The stored record with its number.
        """
        with self._get_connection(write=True) as conn:
            row = conn.execute("""
                SELECT COALESCE(MAX(number), 0) + 1 AS next_number FROM history WHERE character_id = ?
            """, (character_id,)).fetchone()
            record = HistoryRecord.model_validate({**fields, "number": row["next_number"]})
            conn.execute("""
                INSERT INTO history (character_id, number, record_id, record_json)
                VALUES (?, ?, ?, ?)
            """, (character_id, record.number, record.id, record.model_dump_json()))

        logger.debug("History record stored", character_id=character_id, number=record.number)
        return record

    def get_history(self, character_id: str) -> list[HistoryRecord]:
        """Get all history records of a character in number order."""
        with self._get_connection() as conn:
            rows = conn.execute("""
                SELECT record_json FROM history WHERE character_id = ? ORDER BY number
            """, (character_id,)).fetchall()

        return [self._parse_record(row["record_json"]) for row in rows]

    def get_latest_history_record(self, character_id: str) -> HistoryRecord | None:
        with self._get_connection() as conn:
            row = conn.execute("""
                SELECT record_json FROM history WHERE character_id = ?
                ORDER BY number DESC LIMIT 1
            """, (character_id,)).fetchone()

        return self._parse_record(row["record_json"]) if row else None

    def get_history_record(self, character_id: str, record_id: str) -> HistoryRecord:
        """Load one history record.

        Raises:
            NotFoundError: If the record does not exist for the character.
        """
        with self._get_connection() as conn:
            row = conn.execute("""
                SELECT record_json FROM history WHERE character_id = ? AND record_id = ?
            """, (character_id, record_id)).fetchone()

        if row is None:
            raise NotFoundError("History record not found", character_id=character_id, record_id=record_id)
        return self._parse_record(row["record_json"])

    def update_history_record(self, character_id: str, record: HistoryRecord) -> None:
        """Rewrite an existing history record in place.

        Raises:
            NotFoundError: If the record does not exist for the character.
        """
        with self._get_connection(write=True) as conn:
            cursor = conn.execute("""
                UPDATE history SET record_json = ? WHERE character_id = ? AND record_id = ?
            """, (record.model_dump_json(), character_id, record.id))
            if cursor.rowcount == 0:
                raise NotFoundError("History record not found", character_id=character_id, record_id=record.id)

    def delete_history_record(self, character_id: str, record_id: str) -> bool:
        """Delete one history record.

        Returns:
            True if deleted, False if not found.
        """
        with self._get_connection(write=True) as conn:
            cursor = conn.execute(
                "DELETE FROM history WHERE character_id = ? AND record_id = ?",
                (character_id, record_id),
            )
            return cursor.rowcount > 0

    # -------------------------------------------------------------------------
    # Parsing
    # -------------------------------------------------------------------------

    @staticmethod
    def _parse_character(user_id: str, character_id: str, sheet_json: str) -> Character:
        try:
            sheet = CharacterSheet.model_validate_json(sheet_json)
        except PydanticValidationError as exc:
            raise StorageError(
                "Stored character sheet is unreadable",
                details={"user_id": user_id, "character_id": character_id, "errors": exc.errors()},
            ) from exc
        return Character(user_id=user_id, character_id=character_id, character_sheet=sheet)

    @staticmethod
    def _parse_record(record_json: str) -> HistoryRecord:
        try:
            return HistoryRecord.model_validate_json(record_json)
        except PydanticValidationError as exc:
            raise StorageError("Stored history record is unreadable", details={"errors": exc.errors()}) from exc


# =============================================================================
# Singleton Instance
# =============================================================================


_database_instance: Database | None = None


def get_database() -> Database:
    """Get the global database instance.

    Returns:
        Database singleton instance.
    """
    global _database_instance

    if _database_instance is None:
        _database_instance = Database()

    return _database_instance


def reset_database() -> None:
    """Drop the global database instance so the next access reopens it."""
    global _database_instance
    _database_instance = None


__all__ = [
    "Database",
    "get_database",
    "reset_database",
    "set_path",
]
