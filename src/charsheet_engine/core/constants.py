"""Application-wide constants for the character sheet engine.

Fixed numbers of the rule system: level bounds, floors, creation budgets
and the level-up dice. Tunable economy values live in core.config instead.
"""

from __future__ import annotations

# =============================================================================
# Level Bounds
# =============================================================================

MIN_LEVEL = 1
"""Level of a freshly created character."""

MAX_LEVEL = 100
"""Highest reachable level."""

# =============================================================================
# Value Floors
# =============================================================================

MIN_ATTRIBUTE_VALUE = 0
"""Floor for attribute start/current values."""

MIN_SKILL_VALUE = 0
"""Floor for skill start/current values."""

MIN_BASE_VALUE = 0
"""Floor for base value start/current values."""

MIN_POINTS = 0
"""Floor for calculation point totals and combat available points."""

# =============================================================================
# Character Creation
# =============================================================================

ATTRIBUTE_POINTS_FOR_CREATION = 40
"""Attribute points that must be distributed exactly at creation."""

MIN_ATTRIBUTE_VALUE_FOR_CREATION = 4
"""Lowest value an attribute may start with."""

MAX_ATTRIBUTE_VALUE_FOR_CREATION = 7
"""Highest value an attribute may start with."""

PROFESSION_SKILL_BONUS = 50
"""Mod bonus granted to the profession skill."""

HOBBY_SKILL_BONUS = 25
"""Mod bonus granted to the hobby skill."""

NUMBER_OF_ACTIVATABLE_SKILLS_FOR_CREATION = 5
"""Skills the player activates for free at creation."""

GENERATION_POINTS = 5
"""Generation points every character starts with."""

MAX_GENERATION_POINTS_THROUGH_DISADVANTAGES = 15
"""Cap on generation points gained by taking disadvantages."""

# =============================================================================
# Point Economy
# =============================================================================

NUMBER_OF_COST_CATEGORIES = 5
"""Cost categories CAT_0 through CAT_4."""

ATTRIBUTE_INCREASE_COST = 1
"""Attribute points per attribute point increased."""

COMBAT_STATS_INCREASE_COST = 1
"""Combat available points per skilled attack/parade point."""

# =============================================================================
# Level-Up
# =============================================================================

LEVEL_UP_DICE_EXPRESSION = "1d4+2"
"""Dice rolled by the roll-based level-up effects."""

LEVEL_UP_DICE_MIN_TOTAL = 3
"""Lowest total of LEVEL_UP_DICE_EXPRESSION."""

LEVEL_UP_DICE_MAX_TOTAL = 6
"""Highest total of LEVEL_UP_DICE_EXPRESSION."""

LEVEL_UP_FLAT_DELTA = 1
"""Delta applied by the flat +1 level-up effects."""

REROLL_ABILITY = "Reroll"
"""Special ability unlocked by the reroll level-up effect."""

CLONE_NAME_SUFFIX = " (Copy)"
"""Suffix appended to the name of a cloned character."""
