"""Level-up operations of stored characters.

Callers first fetch the options for the next level together with their
hash, then submit the chosen effect with the level and hash they saw.
Applying a level-up is deliberately not idempotent: once it succeeded the
stored level has moved on and the same request conflicts.
"""

from __future__ import annotations

from typing import Any

from charsheet_engine.core.constants import MAX_LEVEL
from charsheet_engine.core.exceptions import ConflictError, InvalidEffectError, ValidationError
from charsheet_engine.core.logging import get_logger
from charsheet_engine.engine.dice import DiceRoller
from charsheet_engine.models.enums import RecordType
from charsheet_engine.models.requests import Changes, LevelUpOptions, LevelUpRequest, UpdateResult
from charsheet_engine.rules.derived import combat_categories_consuming, recompute_combat_category
from charsheet_engine.rules.level_up import compute_options, compute_options_hash, plan_level_up, resolve_effect
from charsheet_engine.services.protocol import SheetService, dump_state, operation_context
from charsheet_engine.storage.database import Database


logger = get_logger(__name__)


class LevelUpService(SheetService):
    """Computes level-up options and applies chosen effects.

    Args:
        database: Storage collaborator. Defaults to the global database.
        roller: Dice roller for roll-based effects submitted without a roll.
    """

    def __init__(self, database: Database | None = None, roller: DiceRoller | None = None) -> None:
        super().__init__(database)
        self._roller = roller or DiceRoller()

    def get_level_up_options(self, user_id: str, character_id: str) -> LevelUpOptions:
        """Options for the next level and the hash to echo back when applying.

        Raises:
            ValidationError: If the character is already at the maximum level.
        """
        with operation_context("get_level_up_options", user_id, character_id):
            character = self._load(user_id, character_id)
            info = character.character_sheet.general_information
            next_level = self._next_level(info.level)
            options = compute_options(next_level, info.level_up_progress)
            return LevelUpOptions(
                user_id=user_id,
                character_id=character_id,
                next_level=next_level,
                options=options,
                options_hash=compute_options_hash(options),
            )

    def apply_level_up(self, user_id: str, character_id: str, request: LevelUpRequest) -> UpdateResult:
        """Advance the character one level with the chosen effect.

        Raises:
            ConflictError: If the stored level or the recomputed options hash
                differs from what the caller saw.
            InvalidEffectError: If the chosen effect is not currently allowed.
            DiceRollError: If a supplied roll does not match the dice expression.
        """
        with operation_context("apply_level_up", user_id, character_id):
            character = self._load(user_id, character_id)
            sheet = character.character_sheet
            info = sheet.general_information

            if request.initial_level != info.level:
                raise ConflictError(
                    "Stored level differs from the initial level",
                    field_name="level",
                    expected=request.initial_level,
                    actual=info.level,
                )
            next_level = self._next_level(info.level)
            options = compute_options(next_level, info.level_up_progress)
            options_hash = compute_options_hash(options)
            if options_hash != request.options_hash:
                raise ConflictError(
                    "Level-up options changed since they were fetched",
                    field_name="options_hash",
                    expected=request.options_hash,
                    actual=options_hash,
                )

            option = next((o for o in options if o.kind == request.effect.kind), None)
            if option is None or not option.allowed:
                raise InvalidEffectError(
                    f"Level-up effect '{request.effect.kind}' is not allowed at level {next_level}",
                    field_name="effect.kind",
                    invalid_value=str(request.effect.kind),
                    details={"reason": option.reason_if_denied if option else None},
                )

            effect = resolve_effect(request.effect, self._roller)
            plan = plan_level_up(sheet, effect)
            logger.info("Level-up planned", level=plan.level, effect=effect.kind)

            old_state: dict[str, Any] = {
                "general_information.level": info.level,
                "general_information.level_up_progress": info.level_up_progress,
            }
            new_state: dict[str, Any] = {
                "general_information.level": plan.level,
                "general_information.level_up_progress": plan.progress,
            }
            for name, base_value in plan.base_values.items():
                old_state[f"base_values.{name}"] = sheet.base_values.get(name)
                new_state[f"base_values.{name}"] = base_value
            if plan.special_abilities is not None:
                old_state["special_abilities"] = list(sheet.special_abilities)
                new_state["special_abilities"] = plan.special_abilities

            changed_combat = {}
            categories = combat_categories_consuming(plan.base_values)
            if categories:
                base_values = sheet.base_values.model_copy(deep=True)
                for name, base_value in plan.base_values.items():
                    base_values.set(name, base_value)
                for category in sorted(categories):
                    changed_combat[category] = recompute_combat_category(
                        sheet.combat.category(category), base_values, category
                    )
                    old_state[f"combat.{category}"] = sheet.combat.category(category)
                    new_state[f"combat.{category}"] = changed_combat[category]

            self._db.set_level(user_id, character_id, plan.level, plan.progress)
            if plan.base_values:
                self._db.update_base_values(user_id, character_id, plan.base_values)
            for category, stats in changed_combat.items():
                self._db.update_combat_stats(user_id, character_id, category, stats)
            if plan.special_abilities is not None:
                self._db.set_special_abilities(user_id, character_id, plan.special_abilities)

            changes = Changes(old=dump_state(old_state), new=dump_state(new_state))
            record = self._record(character_id, RecordType.LEVEL_CHANGED, f"level {plan.level}", changes)
            return UpdateResult(
                user_id=user_id,
                character_id=character_id,
                target="level",
                changes=changes,
                history_record=record,
            )

    @staticmethod
    def _next_level(level: int) -> int:
        if level >= MAX_LEVEL:
            raise ValidationError(
                f"Maximum level {MAX_LEVEL} reached",
                field_name="level",
                invalid_value=level,
            )
        return level + 1


__all__ = ["LevelUpService"]
