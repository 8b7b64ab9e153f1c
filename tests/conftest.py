"""Pytest configuration and shared fixtures.

This module provides common fixtures and configuration for all tests
in the charsheet engine test suite.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import pytest

from charsheet_engine.core.config import clear_settings_cache
from charsheet_engine.engine.dice import DiceRoller
from charsheet_engine.models import (
    CalculationPointsUpdate,
    CharacterCreationRequest,
    CreationResult,
    GeneralInformation,
    InitialIncreased,
    PointsUpdate,
    ProfessionHobby,
)
from charsheet_engine.services import CharacterService, HistoryService, LevelUpService, MutationService
from charsheet_engine.storage import Database, reset_database


if TYPE_CHECKING:
    from collections.abc import Generator
    from pathlib import Path


USER_ID = "user-1"


# =============================================================================
# Configuration Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def reset_settings_cache() -> Generator[None, None, None]:
    """Reset the settings cache and the global database before and after each test."""
    clear_settings_cache()
    reset_database()
    yield
    clear_settings_cache()
    reset_database()


# =============================================================================
# Storage and Engine Fixtures
# =============================================================================


@pytest.fixture
def database(tmp_path: Path) -> Database:
    """Provide a fresh SQLite database in a temporary directory."""
    return Database(tmp_path / "test.db")


@pytest.fixture
def dice_roller() -> DiceRoller:
    """Provide a seeded dice roller for reproducible tests."""
    return DiceRoller(seed=42)


# =============================================================================
# Service Fixtures
# =============================================================================


@pytest.fixture
def character_service(database: Database) -> CharacterService:
    return CharacterService(database)


@pytest.fixture
def mutation_service(database: Database) -> MutationService:
    return MutationService(database)


@pytest.fixture
def level_up_service(database: Database, dice_roller: DiceRoller) -> LevelUpService:
    return LevelUpService(database, dice_roller)


@pytest.fixture
def history_service(database: Database) -> HistoryService:
    return HistoryService(database)


# =============================================================================
# Character Fixtures
# =============================================================================


@pytest.fixture
def user_id() -> str:
    return USER_ID


@pytest.fixture
def general_information() -> GeneralInformation:
    """Provide descriptive data with a profession and a hobby skill."""
    return GeneralInformation(
        name="Mara Quill",
        sex="female",
        profession=ProfessionHobby(name="Locksmith", skill="handcraft/lockpicking"),
        hobby=ProfessionHobby(name="Angler", skill="nature/fishing"),
        birthplace="Harbor Town",
    )


@pytest.fixture
def creation_data(general_information: GeneralInformation) -> dict[str, Any]:
    """Provide a valid creation payload: all attributes at 5, five inactive skills."""
    return {
        "general_information": general_information,
        "attributes": {
            "courage": 5,
            "intelligence": 5,
            "concentration": 5,
            "charisma": 5,
            "mental_resilience": 5,
            "dexterity": 5,
            "endurance": 5,
            "strength": 5,
        },
        "advantages": [],
        "disadvantages": [],
        "activated_skills": [
            "social/seduction",
            "social/teaching",
            "nature/tracking",
            "knowledge/anatomy",
            "handcraft/training",
        ],
        "combat_skills_start_values": {},
    }


@pytest.fixture
def creation_request(creation_data: dict[str, Any]) -> CharacterCreationRequest:
    return CharacterCreationRequest(**creation_data)


@pytest.fixture
def created(
    character_service: CharacterService,
    creation_request: CharacterCreationRequest,
    user_id: str,
) -> CreationResult:
    """Create and store a character, returning the creation result."""
    return character_service.create_character(user_id, creation_request)


@pytest.fixture
def character_id(created: CreationResult) -> str:
    return created.character_id


@pytest.fixture
def funded_character_id(
    mutation_service: MutationService,
    user_id: str,
    character_id: str,
) -> str:
    """A created character with 200 adventure points and 10 attribute points available."""
    mutation_service.update_calculation_points(
        user_id,
        character_id,
        CalculationPointsUpdate(
            adventure_points=PointsUpdate(total=InitialIncreased(initial_value=0, increased_points=200)),
            attribute_points=PointsUpdate(total=InitialIncreased(initial_value=40, increased_points=10)),
        ),
    )
    return character_id
