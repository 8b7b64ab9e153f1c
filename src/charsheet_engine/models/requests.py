"""Request and result schemas for the mutation services.

Every field group of an update request names the value the caller last
saw (``initial_value``) together with either the value it wants
(``new_value``) or the number of points to add (``increased_points``).
The services compare both against the stored record to tell a fresh
request from a replay or a stale one.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from charsheet_engine.models.character import (
    AdvantageEntry,
    DisadvantageEntry,
    GeneralInformation,
    LevelUpEffect,
)
from charsheet_engine.models.enums import LearningMethod, LevelUpEffectKind
from charsheet_engine.models.history import HistoryRecord, PointsDelta


class RequestModel(BaseModel):
    """Base class for immutable request payloads."""

    model_config = ConfigDict(frozen=True, extra="forbid")


class InitialNew(RequestModel):
    """Set a field from ``initial_value`` to ``new_value``."""

    initial_value: int
    new_value: int

    @property
    def target(self) -> int:
        return self.new_value


class InitialIncreased(RequestModel):
    """Raise a field from ``initial_value`` by ``increased_points``."""

    initial_value: float
    increased_points: int

    @property
    def target(self) -> float:
        return self.initial_value + self.increased_points


# =============================================================================
# Field Group Updates
# =============================================================================


class AttributeUpdate(RequestModel):
    """Update of one attribute."""

    start: InitialNew | None = None
    current: InitialIncreased | None = None
    mod: InitialNew | None = None


class SkillUpdate(RequestModel):
    """Update of one skill.

    ``learning_method`` is required whenever ``activated`` or ``current``
    is present.
    """

    activated: bool | None = None
    start: InitialNew | None = None
    current: InitialIncreased | None = None
    mod: InitialNew | None = None
    learning_method: LearningMethod | None = None


class BaseValueUpdate(RequestModel):
    """Update of one base value."""

    start: InitialNew | None = None
    by_lvl_up: InitialNew | None = None
    mod: InitialNew | None = None


class CombatStatsUpdate(RequestModel):
    """Distribution of combat points onto skilled attack and parade."""

    skilled_attack_value: InitialIncreased
    skilled_parade_value: InitialIncreased


class PointsUpdate(RequestModel):
    """Update of one calculation point budget."""

    start: InitialNew | None = None
    total: InitialIncreased | None = None


class CalculationPointsUpdate(RequestModel):
    """Update of the adventure and/or attribute point budgets."""

    adventure_points: PointsUpdate | None = None
    attribute_points: PointsUpdate | None = None


class LevelUpRequest(RequestModel):
    """Choice of a level-up effect, guarded by the observed level and options hash."""

    initial_level: int
    options_hash: str
    effect: LevelUpEffect


class CharacterCreationRequest(RequestModel):
    """Everything needed to assemble a new character."""

    general_information: GeneralInformation
    attributes: dict[str, int]
    advantages: list[AdvantageEntry] = Field(default_factory=list)
    disadvantages: list[DisadvantageEntry] = Field(default_factory=list)
    activated_skills: list[str] = Field(default_factory=list)
    combat_skills_start_values: dict[str, int] = Field(default_factory=dict)


# =============================================================================
# Results
# =============================================================================


class Changes(BaseModel):
    """Old and new state of every structure an operation touched."""

    old: dict[str, Any] = Field(default_factory=dict)
    new: dict[str, Any] = Field(default_factory=dict)


class UpdateResult(BaseModel):
    """Outcome of a mutation.

    ``history_record`` is None exactly when the request was an idempotent
    replay and nothing was written.
    """

    user_id: str
    character_id: str
    target: str
    changes: Changes
    adventure_points: PointsDelta | None = None
    attribute_points: PointsDelta | None = None
    learning_method: LearningMethod | None = None
    increase_cost: float | None = None
    history_record: HistoryRecord | None = None

    @property
    def is_idempotent_replay(self) -> bool:
        return self.history_record is None


class LevelUpOption(BaseModel):
    """A level-up effect as offered for the next level."""

    kind: LevelUpEffectKind
    description: str
    allowed: bool
    first_level: int
    selection_count: int
    max_selection_count: int
    cooldown_levels: int
    reason_if_denied: str | None = None
    dice_expression: str | None = None
    first_chosen_level: int | None = None
    last_chosen_level: int | None = None


class LevelUpOptions(BaseModel):
    """Options for the next level plus the hash that must be echoed back."""

    user_id: str
    character_id: str
    next_level: int
    options: list[LevelUpOption]
    options_hash: str


class SkillCostQuote(BaseModel):
    """Price of activating a skill and of raising it by one point."""

    skill: str
    learning_method: LearningMethod
    activated: bool
    activation_cost: float
    increase_cost: float


class CreationResult(BaseModel):
    """Outcome of character assembly."""

    user_id: str
    character_id: str
    character_name: str
    generation_points_through_disadvantages: int
    generation_points_spent: int
    generation_points_total: int
    activated_skills: list[str]
    history_record: HistoryRecord


__all__ = [
    "RequestModel",
    "InitialNew",
    "InitialIncreased",
    "AttributeUpdate",
    "SkillUpdate",
    "BaseValueUpdate",
    "CombatStatsUpdate",
    "PointsUpdate",
    "CalculationPointsUpdate",
    "LevelUpRequest",
    "CharacterCreationRequest",
    "Changes",
    "UpdateResult",
    "LevelUpOption",
    "LevelUpOptions",
    "SkillCostQuote",
    "CreationResult",
]
