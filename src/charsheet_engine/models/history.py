"""Audit records of a character's history.

Records are append-only and numbered sequentially per character starting
at 1. One record is written for every state-changing mutation and none
for idempotent replays.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

from charsheet_engine.models.character import CalculationPoints
from charsheet_engine.models.enums import LearningMethod, RecordType


class PointsDelta(BaseModel):
    """Before/after snapshot of one calculation point budget."""

    model_config = ConfigDict(extra="forbid")

    old: CalculationPoints
    new: CalculationPoints


class RecordPoints(BaseModel):
    """Calculation point deltas caused by the recorded change."""

    model_config = ConfigDict(extra="forbid")

    adventure_points: PointsDelta | None = None
    attribute_points: PointsDelta | None = None


class RecordData(BaseModel):
    """Old and new state of the structures a change touched."""

    model_config = ConfigDict(extra="forbid")

    old: dict[str, Any] = Field(default_factory=dict)
    new: dict[str, Any] = Field(default_factory=dict)


class HistoryRecord(BaseModel):
    """One entry of the audit log."""

    model_config = ConfigDict(extra="forbid")

    type: RecordType
    name: str
    number: int = Field(ge=1)
    id: str = Field(default_factory=lambda: str(uuid4()))
    data: RecordData
    learning_method: LearningMethod | None = None
    calculation_points: RecordPoints = Field(default_factory=RecordPoints)
    comment: str | None = None
    timestamp: str = Field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat(timespec="seconds")
    )


__all__ = [
    "PointsDelta",
    "RecordPoints",
    "RecordData",
    "HistoryRecord",
]
