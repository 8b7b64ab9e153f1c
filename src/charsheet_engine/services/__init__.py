"""Service layer: the operations callers invoke on stored characters.

Submodules:
    protocol: Compare-and-swap field resolution shared by all mutations
    mutations: Attribute, skill, base value, combat stat and point updates
    level_up: Level-up options and application
    characters: Character creation, lookup, deletion and cloning
    history: History listing, comments and reverting
"""

from __future__ import annotations

from charsheet_engine.services.characters import CharacterService
from charsheet_engine.services.history import HistoryService
from charsheet_engine.services.level_up import LevelUpService
from charsheet_engine.services.mutations import MutationService, skill_record_name
from charsheet_engine.services.protocol import SheetService, resolve_field


__all__ = [
    "CharacterService",
    "HistoryService",
    "LevelUpService",
    "MutationService",
    "SheetService",
    "resolve_field",
    "skill_record_name",
]
