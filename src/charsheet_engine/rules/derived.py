"""Derived-value propagation.

Pure transforms from attributes to base values and from base values and
skilled points to combat statistics. Nothing here reads or writes storage;
the mutation services call these functions and persist the results.

Propagation is selective: :func:`base_values_reading` tells which base
values depend on an attribute and :func:`combat_categories_consuming`
tells which combat sections depend on a set of base values, so callers
only recompute (and rewrite) what actually depends on the change.
"""

from __future__ import annotations

import math
from collections.abc import Callable, Iterable
from types import MappingProxyType
from typing import Mapping

from charsheet_engine.models.character import Attributes, BaseValue, BaseValues, CombatStats, Skill
from charsheet_engine.models.enums import AttributeName, BaseValueName, CombatCategory
from charsheet_engine.rules.tables import COMBAT_BASE_VALUES


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives.

    Python's ``round`` uses banker's rounding, which would turn 2.5 into 2.
    """
    return math.floor(value + 0.5)


# =============================================================================
# Base Value Formulas
# =============================================================================

_A = AttributeName

_Formula = Callable[[Attributes], float]


def _term(attributes: Attributes, name: AttributeName) -> int:
    return attributes.get(name).effective


BASE_VALUE_FORMULAS: Mapping[BaseValueName, tuple[frozenset[AttributeName], _Formula]] = MappingProxyType(
    {
        BaseValueName.HEALTH_POINTS: (
            frozenset({_A.ENDURANCE, _A.STRENGTH}),
            lambda attrs: 2 * _term(attrs, _A.ENDURANCE) + _term(attrs, _A.STRENGTH) + 20,
        ),
        BaseValueName.MENTAL_HEALTH: (
            frozenset({_A.COURAGE, _A.MENTAL_RESILIENCE}),
            lambda attrs: _term(attrs, _A.COURAGE) + 2 * _term(attrs, _A.MENTAL_RESILIENCE) + 8,
        ),
        BaseValueName.INITIATIVE_BASE_VALUE: (
            frozenset({_A.COURAGE, _A.DEXTERITY, _A.ENDURANCE}),
            lambda attrs: (
                2 * _term(attrs, _A.COURAGE) + _term(attrs, _A.DEXTERITY) + _term(attrs, _A.ENDURANCE)
            )
            / 5,
        ),
        BaseValueName.ATTACK_BASE_VALUE: (
            frozenset({_A.COURAGE, _A.DEXTERITY, _A.STRENGTH}),
            lambda attrs: 10
            * (_term(attrs, _A.COURAGE) + _term(attrs, _A.DEXTERITY) + _term(attrs, _A.STRENGTH))
            / 5,
        ),
        BaseValueName.PARADE_BASE_VALUE: (
            frozenset({_A.ENDURANCE, _A.DEXTERITY, _A.STRENGTH}),
            lambda attrs: 10
            * (_term(attrs, _A.ENDURANCE) + _term(attrs, _A.DEXTERITY) + _term(attrs, _A.STRENGTH))
            / 5,
        ),
        BaseValueName.RANGED_ATTACK_BASE_VALUE: (
            frozenset({_A.CONCENTRATION, _A.DEXTERITY, _A.STRENGTH}),
            lambda attrs: 10
            * (_term(attrs, _A.CONCENTRATION) + _term(attrs, _A.DEXTERITY) + _term(attrs, _A.STRENGTH))
            / 5,
        ),
    }
)
"""Formula-driven base values with the attributes each formula reads."""


def derive_base_values(
    attributes: Attributes,
    only: Iterable[BaseValueName] | None = None,
) -> dict[BaseValueName, int]:
    """Evaluate base value formulas.

    Args:
        attributes: Attributes to read.
        only: Restrict evaluation to these base values. Names without a
            formula are skipped.

    Returns:
        Mapping of base value name to its ``by_formula`` value.
    """
    names = BASE_VALUE_FORMULAS.keys() if only is None else only
    return {
        name: round_half_up(BASE_VALUE_FORMULAS[name][1](attributes))
        for name in names
        if name in BASE_VALUE_FORMULAS
    }


def base_values_reading(attribute: AttributeName | str) -> frozenset[BaseValueName]:
    """Return the base values whose formula reads the given attribute."""
    attribute = AttributeName(attribute)
    return frozenset(name for name, (reads, _) in BASE_VALUE_FORMULAS.items() if attribute in reads)


def apply_formula_value(base_value: BaseValue, by_formula: int) -> BaseValue:
    """Return a copy with ``by_formula`` replaced and ``current`` recomputed."""
    return base_value.model_copy(
        update={
            "by_formula": by_formula,
            "current": by_formula + (base_value.by_lvl_up or 0),
        }
    )


def recompute_base_values(
    attributes: Attributes,
    base_values: BaseValues,
    names: Iterable[BaseValueName],
) -> dict[BaseValueName, BaseValue]:
    """Recompute the given base values from attributes.

    Returns:
        Only the base values whose stored state actually changed.
    """
    changed: dict[BaseValueName, BaseValue] = {}
    for name, by_formula in derive_base_values(attributes, names).items():
        old = base_values.get(name)
        new = apply_formula_value(old, by_formula)
        if new != old:
            changed[name] = new
    return changed


# =============================================================================
# Combat Statistics
# =============================================================================


def combat_categories_consuming(names: Iterable[BaseValueName | str]) -> frozenset[CombatCategory]:
    """Return the combat sections that read any of the given base values."""
    return frozenset(
        COMBAT_BASE_VALUES[BaseValueName(name)]
        for name in names
        if BaseValueName(name) in COMBAT_BASE_VALUES
    )


def shift_available_points(stats: CombatStats, old_skill: Skill, new_skill: Skill) -> CombatStats:
    """Move ``available_points`` by the change of the combat skill's value."""
    delta = (new_skill.current - old_skill.current) + (new_skill.mod - old_skill.mod)
    if delta == 0:
        return stats
    return stats.model_copy(update={"available_points": stats.available_points + delta})


def derive_combat_stats(
    stats: CombatStats,
    base_values: BaseValues,
    category: CombatCategory | str,
) -> CombatStats:
    """Recompute attack and parade values of one combat skill.

    Ranged skills have no parade: both parade fields are forced to 0.
    """
    category = CombatCategory(category)
    if category is CombatCategory.MELEE:
        attack = base_values.attack_base_value
        parade = base_values.parade_base_value
        return stats.model_copy(
            update={
                "attack_value": stats.skilled_attack_value + attack.current + attack.mod,
                "parade_value": stats.skilled_parade_value + parade.current + parade.mod,
            }
        )

    ranged = base_values.ranged_attack_base_value
    return stats.model_copy(
        update={
            "attack_value": stats.skilled_attack_value + ranged.current + ranged.mod,
            "parade_value": 0,
            "skilled_parade_value": 0,
        }
    )


def recompute_combat_category(
    combat_stats: Mapping[str, CombatStats],
    base_values: BaseValues,
    category: CombatCategory | str,
) -> dict[str, CombatStats]:
    """Recompute every combat skill of one combat section."""
    return {
        name: derive_combat_stats(stats, base_values, category)
        for name, stats in combat_stats.items()
    }


__all__ = [
    "round_half_up",
    "BASE_VALUE_FORMULAS",
    "derive_base_values",
    "base_values_reading",
    "apply_formula_value",
    "recompute_base_values",
    "combat_categories_consuming",
    "shift_available_points",
    "derive_combat_stats",
    "recompute_combat_category",
]
