"""Charsheet Engine - character progression rules for tabletop RPG sheets.

The engine owns the rules of a character sheet: derived values, the
point economy, level-up progression and character creation. Every
mutation goes through a compare-and-swap protocol so retried requests
are never charged twice and concurrent edits are never silently lost.

Example:
    >>> from charsheet_engine import MutationService, SkillUpdate, InitialIncreased
    >>>
    >>> service = MutationService()
    >>> result = service.update_skill(
    ...     user_id,
    ...     character_id,
    ...     "body/athletics",
    ...     SkillUpdate(
    ...         current=InitialIncreased(initial_value=16, increased_points=3),
    ...         learning_method="LOW_PRICED",
    ...     ),
    ... )
    >>> result.adventure_points.new.available

Modules:
    core: Configuration, logging, and base exceptions.
    models: Pydantic V2 schemas for sheets, requests and history.
    rules: Rule tables, derived values, costs, level-up and assembly.
    engine: Dice rolling (d20).
    services: Character operations and the mutation protocol.
    storage: SQLite persistence.
"""

from __future__ import annotations

# Core
from charsheet_engine.core.config import Settings, get_settings
from charsheet_engine.core.exceptions import CharsheetError, ConflictError, NotFoundError, ValidationError
from charsheet_engine.core.logging import configure_logging, get_logger

# Models
from charsheet_engine.models import (
    AttributeUpdate,
    BaseValueUpdate,
    CalculationPointsUpdate,
    Character,
    CharacterCreationRequest,
    CharacterSheet,
    CombatStatsUpdate,
    HistoryRecord,
    InitialIncreased,
    InitialNew,
    LevelUpRequest,
    PointsUpdate,
    SkillUpdate,
    UpdateResult,
)

# Services
from charsheet_engine.services import (
    CharacterService,
    HistoryService,
    LevelUpService,
    MutationService,
)

# Storage
from charsheet_engine.storage import Database, get_database


__version__ = "0.1.0"
__all__ = [
    # Version info
    "__version__",
    # Core
    "CharsheetError",
    "ConflictError",
    "NotFoundError",
    "ValidationError",
    "Settings",
    "get_settings",
    "configure_logging",
    "get_logger",
    # Models
    "AttributeUpdate",
    "BaseValueUpdate",
    "CalculationPointsUpdate",
    "Character",
    "CharacterCreationRequest",
    "CharacterSheet",
    "CombatStatsUpdate",
    "HistoryRecord",
    "InitialIncreased",
    "InitialNew",
    "LevelUpRequest",
    "PointsUpdate",
    "SkillUpdate",
    "UpdateResult",
    # Services
    "CharacterService",
    "HistoryService",
    "LevelUpService",
    "MutationService",
    # Storage
    "Database",
    "get_database",
]
