"""Level-up progression.

A character advances one level at a time by choosing one effect from the
options computed for the next level. Options are fetched first together
with a hash of the full option list; the hash is echoed back when the
choice is applied so that a choice made against outdated options is
rejected instead of silently applied.
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import dataclass, field

from charsheet_engine.core.constants import REROLL_ABILITY
from charsheet_engine.core.exceptions import InvalidEffectError
from charsheet_engine.core.logging import get_logger
from charsheet_engine.engine.dice import DiceRoller, validate_roll
from charsheet_engine.models.character import (
    BaseValue,
    CharacterSheet,
    EffectProgress,
    LevelUpEffect,
    LevelUpProgress,
)
from charsheet_engine.models.enums import BaseValueName, LevelUpEffectKind
from charsheet_engine.models.requests import LevelUpOption
from charsheet_engine.rules.tables import LEVEL_UP_RULES, LevelUpRule


logger = get_logger(__name__)


def _denial_reason(rule: LevelUpRule, next_level: int, progress: EffectProgress | None) -> str | None:
    reasons: list[str] = []
    if next_level < rule.first_level:
        reasons.append(f"Only available at level {rule.first_level}.")
    if progress is not None and progress.selection_count > 0 and progress.last_chosen_level is not None:
        if next_level - progress.last_chosen_level < rule.cooldown_levels:
            reasons.append(f"Next available at level {progress.last_chosen_level + rule.cooldown_levels}.")
    selection_count = progress.selection_count if progress is not None else 0
    if selection_count >= rule.max_selection_count:
        reasons.append(f"Maximum of {rule.max_selection_count} reached.")
    return " ".join(reasons).strip() or None


def compute_options(next_level: int, progress: LevelUpProgress) -> list[LevelUpOption]:
    """Compute one option per effect kind for ``next_level``.

    An option is allowed iff the first level is reached, the selection
    cap is not reached, and the cooldown since the last selection has
    passed. Denied options always carry a reason.
    """
    options: list[LevelUpOption] = []
    for kind, rule in LEVEL_UP_RULES.items():
        effect_progress = progress.effects.get(kind)
        reason = _denial_reason(rule, next_level, effect_progress)
        options.append(
            LevelUpOption(
                kind=kind,
                description=rule.description,
                allowed=reason is None,
                first_level=rule.first_level,
                selection_count=effect_progress.selection_count if effect_progress else 0,
                max_selection_count=rule.max_selection_count,
                cooldown_levels=rule.cooldown_levels,
                reason_if_denied=reason,
                dice_expression=rule.dice_expression,
                first_chosen_level=effect_progress.first_chosen_level if effect_progress else None,
                last_chosen_level=effect_progress.last_chosen_level if effect_progress else None,
            )
        )
    logger.debug("Level-up options computed", next_level=next_level, allowed=[o.kind for o in options if o.allowed])
    return options


def compute_options_hash(options: list[LevelUpOption]) -> str:
    """SHA-256 hex digest of the serialized option list."""
    payload = json.dumps(
        [option.model_dump(mode="json") for option in options],
        separators=(",", ":"),
    )
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


def resolve_effect(effect: LevelUpEffect, roller: DiceRoller | None = None) -> LevelUpEffect:
    """Normalize a chosen effect into the form that is stored.

    Roll-based kinds get a validated roll, rolling one if the caller did
    not bring one. Flat kinds get the fixed delta. The unlock carries
    neither.

    Raises:
        DiceRollError: If a supplied roll does not match the dice expression.
        InvalidEffectError: If a flat kind carries a different delta.
    """
    rule = LEVEL_UP_RULES[effect.kind]
    if rule.dice_expression is not None:
        if effect.roll is None:
            roll = (roller or DiceRoller()).roll_level_up().to_level_up_roll()
        else:
            roll = validate_roll(effect.roll, rule.dice_expression)
        return LevelUpEffect(kind=effect.kind, roll=roll)

    if rule.delta is not None:
        if effect.delta is not None and effect.delta != rule.delta:
            raise InvalidEffectError(
                f"Effect {effect.kind} always adds {rule.delta}",
                field_name="effect.delta",
                invalid_value=effect.delta,
            )
        return LevelUpEffect(kind=effect.kind, delta=rule.delta)

    return LevelUpEffect(kind=effect.kind)


def effect_delta(effect: LevelUpEffect) -> int:
    if effect.roll is not None:
        return effect.roll.value
    return effect.delta if effect.delta is not None else 0


@dataclass
class LevelUpPlan:
    """Everything an applied level-up changes.

    Attributes:
        level: The new level.
        progress: Updated level-up progress.
        base_values: Changed base values, keyed by name.
        special_abilities: New special ability list, None if unchanged.
        effect: The stored form of the chosen effect.
    """

    level: int
    progress: LevelUpProgress
    effect: LevelUpEffect
    base_values: dict[BaseValueName, BaseValue] = field(default_factory=dict)
    special_abilities: list[str] | None = None


def plan_level_up(sheet: CharacterSheet, effect: LevelUpEffect) -> LevelUpPlan:
    """Compute the sheet changes of applying a resolved effect.

    The sheet is not modified.
    """
    rule = LEVEL_UP_RULES[effect.kind]
    next_level = sheet.general_information.level + 1

    plan_base_values: dict[BaseValueName, BaseValue] = {}
    special_abilities: list[str] | None = None
    if rule.target is not None:
        delta = effect_delta(effect)
        old = sheet.base_values.get(rule.target)
        plan_base_values[rule.target] = old.model_copy(
            update={
                "by_lvl_up": (old.by_lvl_up or 0) + delta,
                "current": old.current + delta,
            }
        )
    elif effect.kind is LevelUpEffectKind.REROLL_UNLOCK:
        special_abilities = [*sheet.special_abilities, REROLL_ABILITY]

    progress = sheet.general_information.level_up_progress.model_copy(deep=True)
    progress.effects_by_level[str(next_level)] = effect
    existing = progress.effects.get(effect.kind)
    progress.effects[effect.kind] = EffectProgress(
        selection_count=(existing.selection_count if existing else 0) + 1,
        first_chosen_level=(
            existing.first_chosen_level if existing and existing.first_chosen_level is not None else next_level
        ),
        last_chosen_level=next_level,
    )

    return LevelUpPlan(
        level=next_level,
        progress=progress,
        effect=effect,
        base_values=plan_base_values,
        special_abilities=special_abilities,
    )


__all__ = [
    "LevelUpPlan",
    "compute_options",
    "compute_options_hash",
    "effect_delta",
    "plan_level_up",
    "resolve_effect",
]
