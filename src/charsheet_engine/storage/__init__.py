"""Persistence layer for character sheets and history (SQLite)."""

from __future__ import annotations

from charsheet_engine.storage.database import Database, get_database, reset_database


__all__ = [
    "Database",
    "get_database",
    "reset_database",
]
