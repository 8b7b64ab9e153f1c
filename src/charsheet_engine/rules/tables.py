"""Compiled rule tables.

Skill catalogue, combat handling values, advantage/disadvantage effect
bundles and level-up effect parameters. Everything here is built once at
import time and exposed through read-only views; components receive these
tables by reference and never modify them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

from charsheet_engine.core.constants import (
    LEVEL_UP_DICE_EXPRESSION,
    LEVEL_UP_FLAT_DELTA,
    MAX_LEVEL,
)
from charsheet_engine.core.exceptions import ValidationError
from charsheet_engine.models.enums import (
    AdvantageName,
    AttributeName,
    BaseValueName,
    CombatCategory,
    CostCategory,
    DisadvantageName,
    LevelUpEffectKind,
    SkillCategory,
)


# =============================================================================
# Skill Catalogue
# =============================================================================

MELEE_SKILLS: tuple[str, ...] = (
    "martial_arts",
    "barehanded",
    "chain_weapons",
    "daggers",
    "slashing_weapons_sharp_1h",
    "slashing_weapons_blunt_1h",
    "thrusting_weapons_1h",
    "slashing_weapons_sharp_2h",
    "slashing_weapons_blunt_2h",
    "thrusting_weapons_2h",
)

RANGED_SKILLS: tuple[str, ...] = (
    "missile",
    "firearm_simple",
    "firearm_medium",
    "firearm_complex",
    "heavy_weapons",
)

SKILL_CATALOGUE: Mapping[SkillCategory, tuple[str, ...]] = MappingProxyType(
    {
        SkillCategory.COMBAT: MELEE_SKILLS + RANGED_SKILLS,
        SkillCategory.BODY: (
            "athletics",
            "juggleries",
            "climbing",
            "body_control",
            "riding",
            "sneaking",
            "swimming",
            "self_control",
            "hiding",
            "singing",
            "sharpness_of_senses",
            "dancing",
            "quaffing",
            "pickpocketing",
        ),
        SkillCategory.SOCIAL: (
            "seduction",
            "etiquette",
            "teaching",
            "acting",
            "written_expression",
            "street_knowledge",
            "knowledge_of_human_nature",
            "persuading",
            "convincing",
        ),
        SkillCategory.NATURE: (
            "tracking",
            "knotting_skills",
            "trapping",
            "fishing",
            "orientation",
            "wilderness_life",
        ),
        SkillCategory.KNOWLEDGE: (
            "anatomy",
            "architecture",
            "geography",
            "history",
            "petrology",
            "botany",
            "philosophy",
            "astronomy",
            "mathematics",
            "knowledge_of_the_law",
            "estimating",
            "zoology",
            "technology",
            "chemistry",
            "warfare",
            "it_skills",
            "mechanics",
        ),
        SkillCategory.HANDCRAFT: (
            "training",
            "woodwork",
            "food_processing",
            "leather_processing",
            "metalwork",
            "stonework",
            "fabric_processing",
            "alcohol_production",
            "steering_vehicles",
            "fine_mechanics",
            "cheating",
            "bargaining",
            "first_aid",
            "calming_sb_down",
            "drawing_and_painting",
            "making_music",
            "lockpicking",
        ),
    }
)

START_SKILLS: frozenset[str] = frozenset(
    {
        "body/athletics",
        "body/climbing",
        "body/body_control",
        "body/sneaking",
        "body/swimming",
        "body/self_control",
        "body/hiding",
        "body/singing",
        "body/sharpness_of_senses",
        "body/quaffing",
        "social/etiquette",
        "social/knowledge_of_human_nature",
        "social/persuading",
        "nature/knotting_skills",
        "knowledge/mathematics",
        "knowledge/zoology",
        "handcraft/woodwork",
        "handcraft/food_processing",
        "handcraft/fabric_processing",
        "handcraft/steering_vehicles",
        "handcraft/bargaining",
        "handcraft/first_aid",
        "handcraft/calming_sb_down",
        "handcraft/drawing_and_painting",
    }
    | {f"combat/{name}" for name in MELEE_SKILLS + RANGED_SKILLS}
)
"""Skills every new character has activated from the start."""

COST_CATEGORY_DEFAULT = CostCategory.CAT_2
COST_CATEGORY_COMBAT_SKILLS = CostCategory.CAT_3
MAX_COST_CATEGORY = CostCategory.CAT_4
MIN_COST_CATEGORY = CostCategory.CAT_0

COMBAT_SKILL_HANDLING: Mapping[str, int] = MappingProxyType(
    {
        "martial_arts": 12,
        **{name: 18 for name in MELEE_SKILLS if name != "martial_arts"},
        "missile": 8,
        "firearm_simple": 10,
        "firearm_medium": 18,
        "firearm_complex": 18,
        "heavy_weapons": 18,
    }
)
"""Fixed handling value per combat skill; also the initial available points."""


def parse_skill_reference(reference: str) -> tuple[SkillCategory, str]:
    """Split a ``category/name`` reference and check it names a known skill.

    Raises:
        ValidationError: If the reference is malformed or unknown.
    """
    category_str, _, name = reference.partition("/")
    try:
        category = SkillCategory(category_str)
    except ValueError as exc:
        raise ValidationError("Unknown skill category", field_name="skill", invalid_value=reference) from exc
    if name not in SKILL_CATALOGUE[category]:
        raise ValidationError("Unknown skill", field_name="skill", invalid_value=reference)
    return category, name


def combat_category_of(skill_name: str) -> CombatCategory:
    """Return the combat section a combat skill belongs to.

    Raises:
        ValidationError: If the name is not a combat skill.
    """
    if skill_name in MELEE_SKILLS:
        return CombatCategory.MELEE
    if skill_name in RANGED_SKILLS:
        return CombatCategory.RANGED
    raise ValidationError("Not a combat skill", field_name="skill", invalid_value=skill_name)


# =============================================================================
# Base Values
# =============================================================================

BASE_VALUES_UPDATABLE_BY_LEVEL_UP: frozenset[BaseValueName] = frozenset(
    {
        BaseValueName.HEALTH_POINTS,
        BaseValueName.ARMOR_LEVEL,
        BaseValueName.INITIATIVE_BASE_VALUE,
        BaseValueName.LUCK_POINTS,
        BaseValueName.BONUS_ACTIONS_PER_COMBAT_ROUND,
        BaseValueName.LEGENDARY_ACTIONS,
    }
)

COMBAT_BASE_VALUES: Mapping[BaseValueName, CombatCategory] = MappingProxyType(
    {
        BaseValueName.ATTACK_BASE_VALUE: CombatCategory.MELEE,
        BaseValueName.PARADE_BASE_VALUE: CombatCategory.MELEE,
        BaseValueName.RANGED_ATTACK_BASE_VALUE: CombatCategory.RANGED,
    }
)
"""Base values consumed by combat stats, with the category consuming each."""


# =============================================================================
# Advantages and Disadvantages
# =============================================================================


@dataclass(frozen=True)
class EffectBundle:
    """Fixed sheet adjustments applied by an advantage or disadvantage.

    Attributes:
        activate: Skills (``category/name``) activated for free.
        skill_mods: ``(skill, delta)`` pairs added to skill mods.
        attribute_mods: ``(attribute, delta)`` pairs added to attribute mods.
        cost_category_shifts: ``(category, steps)`` applied to every skill
            of the category's default cost category.
        bonus_target_mod: Mod added to a caller-chosen skill, if any.
        bonus_target_category: Category the chosen skill must belong to.
        bonus_target_excluded: Skills of that category that may not be chosen.
    """

    activate: tuple[str, ...] = ()
    skill_mods: tuple[tuple[str, int], ...] = ()
    attribute_mods: tuple[tuple[AttributeName, int], ...] = ()
    cost_category_shifts: tuple[tuple[SkillCategory, int], ...] = ()
    bonus_target_mod: int = 0
    bonus_target_category: SkillCategory | None = None
    bonus_target_excluded: frozenset[str] = field(default_factory=frozenset)


def _whole_category(category: SkillCategory, delta: int) -> tuple[tuple[str, int], ...]:
    return tuple((f"{category}/{name}", delta) for name in SKILL_CATALOGUE[category])


_DEGREE_SKILLS = (
    "knowledge/anatomy",
    "knowledge/chemistry",
    "knowledge/geography",
    "knowledge/history",
    "knowledge/botany",
)

_HIGH_SCHOOL_DEGREE = EffectBundle(
    activate=_DEGREE_SKILLS,
    skill_mods=tuple((skill, 10) for skill in _DEGREE_SKILLS),
)

ADVANTAGES: Mapping[AdvantageName, int] = MappingProxyType(
    {
        AdvantageName.HIGH_SCHOOL_DEGREE: 3,
        AdvantageName.CHARMER: 5,
        AdvantageName.DARK_VISION: 2,
        AdvantageName.LUCKY: 3,
        AdvantageName.GOOD_LOOKING: 2,
        AdvantageName.GOOD_MEMORY: 3,
        AdvantageName.OUTSTANDING_SENSE_SIGHT_HEARING: 3,
        AdvantageName.MASTER_OF_THE_SITUATION: 7,
        AdvantageName.HIGH_GENERAL_KNOWLEDGE: 6,
        AdvantageName.MASTER_OF_IMPROVISATION: 5,
        AdvantageName.MILITARY_TRAINING: 8,
        AdvantageName.BRAVE: 2,
        AdvantageName.ATHLETIC: 4,
        AdvantageName.COLLEGE_EDUCATION: 5,
        AdvantageName.DARING: 4,
        AdvantageName.MELODIOUS_VOICE: 2,
    }
)
"""Generation point value of each advantage."""

ADVANTAGE_EFFECTS: Mapping[AdvantageName, EffectBundle] = MappingProxyType(
    {
        AdvantageName.HIGH_SCHOOL_DEGREE: _HIGH_SCHOOL_DEGREE,
        AdvantageName.CHARMER: EffectBundle(
            skill_mods=(
                ("social/seduction", 10),
                ("social/etiquette", 10),
                ("social/persuading", 10),
                ("social/convincing", 10),
            ),
            attribute_mods=((AttributeName.CHARISMA, 1),),
        ),
        AdvantageName.GOOD_LOOKING: EffectBundle(
            skill_mods=(
                ("social/seduction", 20),
                ("social/persuading", 10),
                ("social/convincing", 10),
            ),
        ),
        AdvantageName.GOOD_MEMORY: EffectBundle(
            skill_mods=_whole_category(SkillCategory.KNOWLEDGE, 10),
            attribute_mods=((AttributeName.INTELLIGENCE, 1),),
        ),
        AdvantageName.OUTSTANDING_SENSE_SIGHT_HEARING: EffectBundle(
            skill_mods=(("body/sharpness_of_senses", 10),),
        ),
        AdvantageName.MILITARY_TRAINING: EffectBundle(
            skill_mods=(
                ("body/athletics", 10),
                ("body/body_control", 10),
                ("body/self_control", 10),
                ("knowledge/warfare", 10),
            ),
        ),
        AdvantageName.DARING: EffectBundle(
            attribute_mods=((AttributeName.COURAGE, 1),),
        ),
        AdvantageName.ATHLETIC: EffectBundle(
            skill_mods=(
                ("body/athletics", 10),
                ("body/climbing", 10),
                ("body/body_control", 10),
                ("body/swimming", 10),
                ("body/dancing", 10),
            ),
        ),
        AdvantageName.COLLEGE_EDUCATION: EffectBundle(
            activate=_HIGH_SCHOOL_DEGREE.activate,
            skill_mods=_HIGH_SCHOOL_DEGREE.skill_mods,
            bonus_target_mod=20,
            bonus_target_category=SkillCategory.KNOWLEDGE,
            bonus_target_excluded=frozenset({"warfare", "estimating"}),
        ),
        AdvantageName.MELODIOUS_VOICE: EffectBundle(
            skill_mods=(
                ("social/persuading", 10),
                ("social/convincing", 10),
                ("handcraft/bargaining", 10),
            ),
        ),
    }
)
"""Sheet effects of advantages; advantages not listed have no direct effect."""

DISADVANTAGES: Mapping[DisadvantageName, frozenset[int]] = MappingProxyType(
    {
        DisadvantageName.SUPERSTITION: frozenset({4}),
        DisadvantageName.COWARD: frozenset({4}),
        DisadvantageName.LOW_GENERAL_KNOWLEDGE: frozenset({6}),
        DisadvantageName.SOCIALLY_INEPT: frozenset({5}),
        DisadvantageName.NO_DEGREE: frozenset({3}),
        DisadvantageName.PACIFIST: frozenset({6}),
        DisadvantageName.UNLUCKY: frozenset({3}),
        DisadvantageName.EARLY_SCHOOL_DROPOUT: frozenset({7}),
        DisadvantageName.FEAR_OF: frozenset({2, 3, 4, 5}),
        DisadvantageName.MISER: frozenset({3}),
        DisadvantageName.SENSE_OF_JUSTICE: frozenset({5}),
        DisadvantageName.IMPULSIVE: frozenset({3}),
        DisadvantageName.HOT_TEMPERED: frozenset({4}),
        DisadvantageName.LETHARGIC: frozenset({3}),
        DisadvantageName.VENGEFUL: frozenset({2}),
        DisadvantageName.QUARRELSOME: frozenset({5}),
        DisadvantageName.SPEECH_IMPEDIMENT: frozenset({1}),
        DisadvantageName.SLEEP_DISORDER: frozenset({3}),
        DisadvantageName.SPENDTHRIFT: frozenset({3}),
        DisadvantageName.NIGHT_BLIND: frozenset({2}),
        DisadvantageName.BAD_HABIT: frozenset({2}),
        DisadvantageName.BAD_TRAIT: frozenset({4}),
        DisadvantageName.ADDICTION_CAFFEINE: frozenset({2}),
        DisadvantageName.ADDICTION_NICOTINE: frozenset({3}),
        DisadvantageName.ADDICTION_GAMBLING: frozenset({3}),
        DisadvantageName.ADDICTION_ALCOHOL: frozenset({10}),
        DisadvantageName.ADDICTION_DRUGS: frozenset({10}),
        DisadvantageName.IMPAIRED_SENSE: frozenset({4}),
        DisadvantageName.UNATTRACTIVE: frozenset({2}),
        DisadvantageName.UNPLEASANT_VOICE: frozenset({2}),
        DisadvantageName.POOR_MEMORY: frozenset({3}),
    }
)
"""Valid generation point values of each disadvantage."""

DISADVANTAGE_EFFECTS: Mapping[DisadvantageName, EffectBundle] = MappingProxyType(
    {
        DisadvantageName.SOCIALLY_INEPT: EffectBundle(
            skill_mods=(
                ("social/seduction", -10),
                ("social/etiquette", -10),
                ("social/knowledge_of_human_nature", -10),
                ("social/convincing", -10),
                ("social/persuading", -10),
                ("handcraft/bargaining", -10),
            ),
        ),
        DisadvantageName.NO_DEGREE: EffectBundle(
            skill_mods=(
                ("knowledge/anatomy", -10),
                ("knowledge/chemistry", -10),
                ("knowledge/geography", -10),
                ("knowledge/history", -10),
                ("knowledge/botany", -10),
                ("knowledge/zoology", -10),
                ("knowledge/mathematics", -10),
            ),
        ),
        DisadvantageName.PACIFIST: EffectBundle(
            skill_mods=(("knowledge/warfare", -20),),
        ),
        DisadvantageName.EARLY_SCHOOL_DROPOUT: EffectBundle(
            cost_category_shifts=((SkillCategory.KNOWLEDGE, 1),),
        ),
    }
)
"""Sheet effects of disadvantages; disadvantages not listed have no direct effect."""


def is_valid_advantage(kind: AdvantageName, value: int) -> bool:
    return ADVANTAGES.get(kind) == value


def is_valid_disadvantage(kind: DisadvantageName, value: int) -> bool:
    return value in DISADVANTAGES.get(kind, frozenset())


# =============================================================================
# Level-Up Effects
# =============================================================================


@dataclass(frozen=True)
class LevelUpRule:
    """Parameters of one level-up effect kind.

    Attributes:
        kind: The effect kind.
        description: Human-readable label offered to the player.
        first_level: Lowest level at which the effect may be chosen.
        cooldown_levels: Levels that must pass between two selections.
        max_selection_count: How often the effect may be chosen in total.
        target: Base value raised by the effect, None for the unlock.
        dice_expression: Dice rolled for the delta, None for flat effects.
        delta: Fixed delta of flat effects.
    """

    kind: LevelUpEffectKind
    description: str
    first_level: int
    cooldown_levels: int
    max_selection_count: int
    target: BaseValueName | None = None
    dice_expression: str | None = None
    delta: int | None = None


LEVEL_UP_RULES: Mapping[LevelUpEffectKind, LevelUpRule] = MappingProxyType(
    {
        LevelUpEffectKind.HP_ROLL: LevelUpRule(
            kind=LevelUpEffectKind.HP_ROLL,
            description=f"+{LEVEL_UP_DICE_EXPRESSION} Health Points",
            first_level=2,
            cooldown_levels=0,
            max_selection_count=MAX_LEVEL,
            target=BaseValueName.HEALTH_POINTS,
            dice_expression=LEVEL_UP_DICE_EXPRESSION,
        ),
        LevelUpEffectKind.ARMOR_LEVEL_ROLL: LevelUpRule(
            kind=LevelUpEffectKind.ARMOR_LEVEL_ROLL,
            description=f"+{LEVEL_UP_DICE_EXPRESSION} Armor Level",
            first_level=2,
            cooldown_levels=2,
            max_selection_count=MAX_LEVEL,
            target=BaseValueName.ARMOR_LEVEL,
            dice_expression=LEVEL_UP_DICE_EXPRESSION,
        ),
        LevelUpEffectKind.INITIATIVE_PLUS_ONE: LevelUpRule(
            kind=LevelUpEffectKind.INITIATIVE_PLUS_ONE,
            description="+1 Initiative Base Value",
            first_level=2,
            cooldown_levels=1,
            max_selection_count=MAX_LEVEL,
            target=BaseValueName.INITIATIVE_BASE_VALUE,
            delta=LEVEL_UP_FLAT_DELTA,
        ),
        LevelUpEffectKind.LUCK_PLUS_ONE: LevelUpRule(
            kind=LevelUpEffectKind.LUCK_PLUS_ONE,
            description="+1 Luck",
            first_level=2,
            cooldown_levels=2,
            max_selection_count=3,
            target=BaseValueName.LUCK_POINTS,
            delta=LEVEL_UP_FLAT_DELTA,
        ),
        LevelUpEffectKind.BONUS_ACTION_PLUS_ONE: LevelUpRule(
            kind=LevelUpEffectKind.BONUS_ACTION_PLUS_ONE,
            description="+1 Bonus Action per Combat Round",
            first_level=6,
            cooldown_levels=9,
            max_selection_count=3,
            target=BaseValueName.BONUS_ACTIONS_PER_COMBAT_ROUND,
            delta=LEVEL_UP_FLAT_DELTA,
        ),
        LevelUpEffectKind.LEGENDARY_ACTION_PLUS_ONE: LevelUpRule(
            kind=LevelUpEffectKind.LEGENDARY_ACTION_PLUS_ONE,
            description="+1 Legendary Action",
            first_level=11,
            cooldown_levels=9,
            max_selection_count=3,
            target=BaseValueName.LEGENDARY_ACTIONS,
            delta=LEVEL_UP_FLAT_DELTA,
        ),
        LevelUpEffectKind.REROLL_UNLOCK: LevelUpRule(
            kind=LevelUpEffectKind.REROLL_UNLOCK,
            description="Unlock reroll",
            first_level=2,
            cooldown_levels=MAX_LEVEL,
            max_selection_count=1,
        ),
    }
)
"""Level-up effect parameters, in the order options are offered."""


__all__ = [
    "MELEE_SKILLS",
    "RANGED_SKILLS",
    "SKILL_CATALOGUE",
    "START_SKILLS",
    "COST_CATEGORY_DEFAULT",
    "COST_CATEGORY_COMBAT_SKILLS",
    "MAX_COST_CATEGORY",
    "MIN_COST_CATEGORY",
    "COMBAT_SKILL_HANDLING",
    "parse_skill_reference",
    "combat_category_of",
    "BASE_VALUES_UPDATABLE_BY_LEVEL_UP",
    "COMBAT_BASE_VALUES",
    "EffectBundle",
    "ADVANTAGES",
    "ADVANTAGE_EFFECTS",
    "DISADVANTAGES",
    "DISADVANTAGE_EFFECTS",
    "is_valid_advantage",
    "is_valid_disadvantage",
    "LevelUpRule",
    "LEVEL_UP_RULES",
]
