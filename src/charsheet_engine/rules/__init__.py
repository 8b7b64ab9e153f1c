"""Pure rule components of the character sheet engine.

Submodules:
    tables: Compiled, immutable rule tables
    derived: Base value formulas and combat stat propagation
    costs: Activation fees and per-point prices
    level_up: Level-up options, option hashing and effect planning
    assembly: Character creation
"""

from __future__ import annotations

from charsheet_engine.rules.assembly import CharacterBuilder, CharacterCreation
from charsheet_engine.rules.costs import CostCalculator, require_learning_method, shift_cost_category
from charsheet_engine.rules.derived import (
    base_values_reading,
    combat_categories_consuming,
    derive_base_values,
    derive_combat_stats,
    recompute_base_values,
    recompute_combat_category,
    round_half_up,
    shift_available_points,
)
from charsheet_engine.rules.level_up import (
    LevelUpPlan,
    compute_options,
    compute_options_hash,
    plan_level_up,
    resolve_effect,
)


__all__ = [
    # Assembly
    "CharacterBuilder",
    "CharacterCreation",
    # Costs
    "CostCalculator",
    "require_learning_method",
    "shift_cost_category",
    # Derived values
    "base_values_reading",
    "combat_categories_consuming",
    "derive_base_values",
    "derive_combat_stats",
    "recompute_base_values",
    "recompute_combat_category",
    "round_half_up",
    "shift_available_points",
    # Level-up
    "LevelUpPlan",
    "compute_options",
    "compute_options_hash",
    "plan_level_up",
    "resolve_effect",
]
