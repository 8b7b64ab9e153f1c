"""Integration tests for a character's life from creation to cloning."""

from __future__ import annotations

from charsheet_engine.models import (
    AttributeUpdate,
    CalculationPointsUpdate,
    InitialIncreased,
    InitialNew,
    LevelUpEffect,
    LevelUpEffectKind,
    LevelUpOption,
    LevelUpRequest,
    LevelUpRoll,
    PointsUpdate,
    RecordType,
    SkillUpdate,
    UpdateResult,
)
from charsheet_engine.services import CharacterService, HistoryService, LevelUpService, MutationService
from charsheet_engine.storage import Database


HP_ROLL = LevelUpEffect(kind=LevelUpEffectKind.HP_ROLL, roll=LevelUpRoll(dice="1d4+2", value=3))


def choose(service: LevelUpService, user_id: str, character_id: str, effect: LevelUpEffect) -> UpdateResult:
    options = service.get_level_up_options(user_id, character_id)
    request = LevelUpRequest(initial_level=options.next_level - 1, options_hash=options.options_hash, effect=effect)
    return service.apply_level_up(user_id, character_id, request)


def option_for(
    service: LevelUpService, user_id: str, character_id: str, kind: LevelUpEffectKind
) -> LevelUpOption:
    options = service.get_level_up_options(user_id, character_id)
    return next(option for option in options.options if option.kind == kind)


class TestCourageCascade:
    """Tests for courage feeding mental health, initiative and attack."""

    def test_mod_changes(
        self, mutation_service: MutationService, database: Database, user_id: str, character_id: str
    ) -> None:
        """Test two mod changes reach exactly the dependent values."""
        before = database.get_character(user_id, character_id).character_sheet

        mutation_service.update_attribute(
            user_id, character_id, "courage", AttributeUpdate(mod=InitialNew(initial_value=0, new_value=3))
        )
        result = mutation_service.update_attribute(
            user_id, character_id, "courage", AttributeUpdate(mod=InitialNew(initial_value=3, new_value=10))
        )

        sheet = database.get_character(user_id, character_id).character_sheet
        assert sheet.base_values.mental_health.current == 33
        assert sheet.base_values.initiative_base_value.current == 8
        assert sheet.base_values.attack_base_value.current == 50
        assert all(stats.attack_value == 50 for stats in sheet.combat.melee.values())
        assert sheet.combat.ranged == before.combat.ranged
        assert sheet.base_values.health_points == before.base_values.health_points
        assert sheet.base_values.parade_base_value == before.base_values.parade_base_value
        assert set(result.changes.new) == {
            "attributes.courage",
            "base_values.mental_health",
            "base_values.initiative_base_value",
            "base_values.attack_base_value",
            "combat.melee",
        }


class TestLegendaryActions:
    """Tests for the legendary action schedule across many levels."""

    def test_schedule(
        self, level_up_service: LevelUpService, database: Database, user_id: str, character_id: str
    ) -> None:
        """Test first availability at 11 and the nine level cooldown."""
        kind = LevelUpEffectKind.LEGENDARY_ACTION_PLUS_ONE
        for _ in range(8):
            choose(level_up_service, user_id, character_id, HP_ROLL)

        denied = option_for(level_up_service, user_id, character_id, kind)
        assert not denied.allowed
        assert denied.reason_if_denied == "Only available at level 11."

        choose(level_up_service, user_id, character_id, HP_ROLL)
        assert option_for(level_up_service, user_id, character_id, kind).allowed
        choose(level_up_service, user_id, character_id, LevelUpEffect(kind=kind))

        for _ in range(7):
            choose(level_up_service, user_id, character_id, HP_ROLL)
        cooling = option_for(level_up_service, user_id, character_id, kind)
        assert level_up_service.get_level_up_options(user_id, character_id).next_level == 19
        assert not cooling.allowed
        assert cooling.reason_if_denied == "Next available at level 20."

        choose(level_up_service, user_id, character_id, HP_ROLL)
        assert option_for(level_up_service, user_id, character_id, kind).allowed

        sheet = database.get_character(user_id, character_id).character_sheet
        assert sheet.general_information.level == 19
        assert sheet.base_values.legendary_actions.current == 1
        assert sheet.base_values.health_points.current == 35 + 17 * 3


class TestFullFlow:
    """Tests for a complete session on one character."""

    def test_session(
        self,
        character_service: CharacterService,
        mutation_service: MutationService,
        level_up_service: LevelUpService,
        history_service: HistoryService,
        database: Database,
        user_id: str,
        character_id: str,
    ) -> None:
        """Test funding, spending, levelling, reverting and cloning together."""
        mutation_service.update_calculation_points(
            user_id,
            character_id,
            CalculationPointsUpdate(
                adventure_points=PointsUpdate(total=InitialIncreased(initial_value=0, increased_points=100))
            ),
        )
        mutation_service.update_skill(
            user_id,
            character_id,
            "social/persuading",
            SkillUpdate(current=InitialIncreased(initial_value=0, increased_points=10), learning_method="NORMAL"),
        )
        choose(level_up_service, user_id, character_id, LevelUpEffect(kind=LevelUpEffectKind.LUCK_PLUS_ONE))
        spent = mutation_service.update_skill(
            user_id,
            character_id,
            "social/persuading",
            SkillUpdate(current=InitialIncreased(initial_value=10, increased_points=5), learning_method="EXPENSIVE"),
        )

        history_service.revert_latest_record(user_id, character_id, spent.history_record.id)

        sheet = database.get_character(user_id, character_id).character_sheet
        assert sheet.skills.social["persuading"].current == 10
        assert sheet.calculation_points.adventure_points.available == 90
        assert sheet.general_information.level == 2
        assert sheet.base_values.luck_points.current == 1

        history = history_service.get_history(user_id, character_id)
        assert [record.type for record in history] == [
            RecordType.CHARACTER_CREATED,
            RecordType.CALCULATION_POINTS_CHANGED,
            RecordType.SKILL_CHANGED,
            RecordType.LEVEL_CHANGED,
        ]

        clone = character_service.clone_character(user_id, character_id, "user-2")
        assert clone.character_sheet.skills.social["persuading"].current == 10
        assert len(history_service.get_history("user-2", clone.character_id)) == 4
