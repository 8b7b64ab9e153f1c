"""Tests for level-up options and application."""

from __future__ import annotations

import pytest

from charsheet_engine.core.exceptions import ConflictError, InvalidEffectError, ValidationError
from charsheet_engine.models import (
    CharacterSheet,
    LevelUpEffect,
    LevelUpEffectKind,
    LevelUpProgress,
    LevelUpRequest,
    LevelUpRoll,
    RecordType,
    UpdateResult,
)
from charsheet_engine.services import LevelUpService
from charsheet_engine.storage import Database


def level_up(
    service: LevelUpService,
    user_id: str,
    character_id: str,
    effect: LevelUpEffect,
) -> UpdateResult:
    options = service.get_level_up_options(user_id, character_id)
    request = LevelUpRequest(initial_level=options.next_level - 1, options_hash=options.options_hash, effect=effect)
    return service.apply_level_up(user_id, character_id, request)


def load(database: Database, user_id: str, character_id: str) -> CharacterSheet:
    return database.get_character(user_id, character_id).character_sheet


HP_ROLL_OF_5 = LevelUpEffect(kind=LevelUpEffectKind.HP_ROLL, roll=LevelUpRoll(dice="1d4+2", value=5))


class TestLevelUpOptions:
    """Tests for fetching options."""

    def test_fresh_character(self, level_up_service: LevelUpService, user_id: str, character_id: str) -> None:
        """Test a new character is offered level 2."""
        options = level_up_service.get_level_up_options(user_id, character_id)

        assert options.next_level == 2
        assert len(options.options_hash) == 64
        assert [option.kind for option in options.options] == list(LevelUpEffectKind)

    def test_hash_stable_between_calls(self, level_up_service: LevelUpService, user_id: str, character_id: str) -> None:
        """Test the hash does not change without a level-up."""
        first = level_up_service.get_level_up_options(user_id, character_id)
        second = level_up_service.get_level_up_options(user_id, character_id)

        assert first.options_hash == second.options_hash

    def test_maximum_level(
        self, level_up_service: LevelUpService, database: Database, user_id: str, character_id: str
    ) -> None:
        """Test no options exist past the maximum level."""
        database.set_level(user_id, character_id, 100, LevelUpProgress())

        with pytest.raises(ValidationError):
            level_up_service.get_level_up_options(user_id, character_id)


class TestApplyLevelUp:
    """Tests for applying a chosen effect."""

    def test_hp_roll(
        self, level_up_service: LevelUpService, database: Database, user_id: str, character_id: str
    ) -> None:
        """Test a health point roll raises health and the level."""
        result = level_up(level_up_service, user_id, character_id, HP_ROLL_OF_5)

        sheet = load(database, user_id, character_id)
        assert sheet.general_information.level == 2
        assert sheet.base_values.health_points.current == 40
        assert sheet.base_values.health_points.by_lvl_up == 5
        assert sheet.general_information.level_up_progress.effects_by_level["2"] == HP_ROLL_OF_5
        assert result.target == "level"
        assert result.history_record.type is RecordType.LEVEL_CHANGED
        assert result.history_record.name == "level 2"
        assert result.changes.old["general_information.level"] == 1
        assert result.changes.new["base_values.health_points"]["current"] == 40

    def test_same_request_twice_conflicts(
        self, level_up_service: LevelUpService, database: Database, user_id: str, character_id: str
    ) -> None:
        """Test applying a level-up is not idempotent."""
        options = level_up_service.get_level_up_options(user_id, character_id)
        request = LevelUpRequest(initial_level=1, options_hash=options.options_hash, effect=HP_ROLL_OF_5)
        level_up_service.apply_level_up(user_id, character_id, request)

        with pytest.raises(ConflictError):
            level_up_service.apply_level_up(user_id, character_id, request)

        assert load(database, user_id, character_id).general_information.level == 2

    def test_stale_hash(self, level_up_service: LevelUpService, user_id: str, character_id: str) -> None:
        """Test a hash that does not match the current options conflicts."""
        request = LevelUpRequest(initial_level=1, options_hash="0" * 64, effect=HP_ROLL_OF_5)

        with pytest.raises(ConflictError) as exc_info:
            level_up_service.apply_level_up(user_id, character_id, request)

        assert exc_info.value.details["field_name"] == "options_hash"

    def test_wrong_level(self, level_up_service: LevelUpService, user_id: str, character_id: str) -> None:
        """Test a stale initial level conflicts."""
        options = level_up_service.get_level_up_options(user_id, character_id)
        request = LevelUpRequest(initial_level=3, options_hash=options.options_hash, effect=HP_ROLL_OF_5)

        with pytest.raises(ConflictError):
            level_up_service.apply_level_up(user_id, character_id, request)

    def test_denied_effect(
        self, level_up_service: LevelUpService, database: Database, user_id: str, character_id: str
    ) -> None:
        """Test bonus actions cannot be chosen before level 6."""
        with pytest.raises(InvalidEffectError) as exc_info:
            level_up(
                level_up_service,
                user_id,
                character_id,
                LevelUpEffect(kind=LevelUpEffectKind.BONUS_ACTION_PLUS_ONE),
            )

        assert exc_info.value.details["reason"] == "Only available at level 6."
        assert load(database, user_id, character_id).general_information.level == 1

    def test_reroll_only_once(
        self, level_up_service: LevelUpService, database: Database, user_id: str, character_id: str
    ) -> None:
        """Test the reroll unlock grants the ability once."""
        level_up(level_up_service, user_id, character_id, LevelUpEffect(kind=LevelUpEffectKind.REROLL_UNLOCK))
        assert load(database, user_id, character_id).special_abilities == ["Reroll"]

        with pytest.raises(InvalidEffectError):
            level_up(level_up_service, user_id, character_id, LevelUpEffect(kind=LevelUpEffectKind.REROLL_UNLOCK))

    def test_initiative(
        self, level_up_service: LevelUpService, database: Database, user_id: str, character_id: str
    ) -> None:
        """Test a flat effect adds one."""
        result = level_up(
            level_up_service, user_id, character_id, LevelUpEffect(kind=LevelUpEffectKind.INITIATIVE_PLUS_ONE)
        )

        initiative = load(database, user_id, character_id).base_values.initiative_base_value
        assert (initiative.current, initiative.by_lvl_up) == (5, 1)
        assert not any(key.startswith("combat.") for key in result.changes.new)

    def test_roll_made_when_omitted(
        self, level_up_service: LevelUpService, database: Database, user_id: str, character_id: str
    ) -> None:
        """Test a roll is made for roll effects submitted without one."""
        level_up(level_up_service, user_id, character_id, LevelUpEffect(kind=LevelUpEffectKind.HP_ROLL))

        sheet = load(database, user_id, character_id)
        stored = sheet.general_information.level_up_progress.effects_by_level["2"]
        assert stored.roll is not None
        assert 3 <= stored.roll.value <= 6
        assert sheet.base_values.health_points.current == 35 + stored.roll.value

    def test_progress_recorded(
        self, level_up_service: LevelUpService, database: Database, user_id: str, character_id: str
    ) -> None:
        """Test repeated selections are counted."""
        level_up(level_up_service, user_id, character_id, HP_ROLL_OF_5)
        level_up(
            level_up_service,
            user_id,
            character_id,
            LevelUpEffect(kind=LevelUpEffectKind.HP_ROLL, roll=LevelUpRoll(dice="1d4+2", value=3)),
        )

        sheet = load(database, user_id, character_id)
        progress = sheet.general_information.level_up_progress.effects[LevelUpEffectKind.HP_ROLL]
        assert (progress.selection_count, progress.first_chosen_level, progress.last_chosen_level) == (2, 2, 3)
        assert sheet.base_values.health_points.current == 43
        assert len(database.get_history(character_id)) == 3
