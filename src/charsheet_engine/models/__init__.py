"""Pydantic V2 schemas for character sheets, requests and history records.

Modules:
    enums: Names and vocabularies (attributes, skills, learning methods, ...).
    character: The persisted character sheet.
    history: Append-only audit records.
    requests: Mutation request payloads and operation results.
"""

from __future__ import annotations

from charsheet_engine.models.character import (
    AdvantageEntry,
    Attribute,
    Attributes,
    BaseValue,
    BaseValues,
    CalculationPoints,
    CalculationPointsSection,
    Character,
    CharacterSheet,
    CombatSection,
    CombatStats,
    DisadvantageEntry,
    EffectProgress,
    GeneralInformation,
    LevelUpEffect,
    LevelUpProgress,
    LevelUpRoll,
    ProfessionHobby,
    Skill,
    Skills,
)
from charsheet_engine.models.enums import (
    AdvantageName,
    AttributeName,
    BaseValueName,
    CombatCategory,
    CostCategory,
    DisadvantageName,
    LearningMethod,
    LevelUpEffectKind,
    RecordType,
    SkillCategory,
)
from charsheet_engine.models.history import HistoryRecord, PointsDelta, RecordData, RecordPoints
from charsheet_engine.models.requests import (
    AttributeUpdate,
    BaseValueUpdate,
    CalculationPointsUpdate,
    CharacterCreationRequest,
    Changes,
    CombatStatsUpdate,
    CreationResult,
    InitialIncreased,
    InitialNew,
    LevelUpOption,
    LevelUpOptions,
    LevelUpRequest,
    PointsUpdate,
    SkillCostQuote,
    SkillUpdate,
    UpdateResult,
)


__all__ = [
    # Enums
    "AdvantageName",
    "AttributeName",
    "BaseValueName",
    "CombatCategory",
    "CostCategory",
    "DisadvantageName",
    "LearningMethod",
    "LevelUpEffectKind",
    "RecordType",
    "SkillCategory",
    # Sheet
    "AdvantageEntry",
    "Attribute",
    "Attributes",
    "BaseValue",
    "BaseValues",
    "CalculationPoints",
    "CalculationPointsSection",
    "Character",
    "CharacterSheet",
    "CombatSection",
    "CombatStats",
    "DisadvantageEntry",
    "EffectProgress",
    "GeneralInformation",
    "LevelUpEffect",
    "LevelUpProgress",
    "LevelUpRoll",
    "ProfessionHobby",
    "Skill",
    "Skills",
    # History
    "HistoryRecord",
    "PointsDelta",
    "RecordData",
    "RecordPoints",
    # Requests and results
    "AttributeUpdate",
    "BaseValueUpdate",
    "CalculationPointsUpdate",
    "CharacterCreationRequest",
    "Changes",
    "CombatStatsUpdate",
    "CreationResult",
    "InitialIncreased",
    "InitialNew",
    "LevelUpOption",
    "LevelUpOptions",
    "LevelUpRequest",
    "PointsUpdate",
    "SkillCostQuote",
    "SkillUpdate",
    "UpdateResult",
]
