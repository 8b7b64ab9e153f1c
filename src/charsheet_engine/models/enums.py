"""Enumeration types for the character sheet engine.

Names of the fixed sheet structures (attributes, base values, skill and
combat categories) and the vocabularies of the point economy, level-up
progression and history log.
"""

from __future__ import annotations

from enum import IntEnum, StrEnum


class AttributeName(StrEnum):
    """The eight primary attributes."""

    COURAGE = "courage"
    INTELLIGENCE = "intelligence"
    CONCENTRATION = "concentration"
    CHARISMA = "charisma"
    MENTAL_RESILIENCE = "mental_resilience"
    DEXTERITY = "dexterity"
    ENDURANCE = "endurance"
    STRENGTH = "strength"


class BaseValueName(StrEnum):
    """Derived secondary statistics."""

    HEALTH_POINTS = "health_points"
    MENTAL_HEALTH = "mental_health"
    ARMOR_LEVEL = "armor_level"
    NATURAL_ARMOR = "natural_armor"
    INITIATIVE_BASE_VALUE = "initiative_base_value"
    ATTACK_BASE_VALUE = "attack_base_value"
    PARADE_BASE_VALUE = "parade_base_value"
    RANGED_ATTACK_BASE_VALUE = "ranged_attack_base_value"
    LUCK_POINTS = "luck_points"
    BONUS_ACTIONS_PER_COMBAT_ROUND = "bonus_actions_per_combat_round"
    LEGENDARY_ACTIONS = "legendary_actions"


class SkillCategory(StrEnum):
    """Skill groups of the sheet."""

    COMBAT = "combat"
    BODY = "body"
    SOCIAL = "social"
    NATURE = "nature"
    KNOWLEDGE = "knowledge"
    HANDCRAFT = "handcraft"


class CombatCategory(StrEnum):
    """Combat sections; each combat skill belongs to exactly one."""

    MELEE = "melee"
    RANGED = "ranged"


class CostCategory(IntEnum):
    """Tier classifying how expensive a skill is to raise."""

    CAT_0 = 0
    CAT_1 = 1
    CAT_2 = 2
    CAT_3 = 3
    CAT_4 = 4


class LearningMethod(StrEnum):
    """Price multiplier selected by the caller for an activation or increase."""

    FREE = "FREE"
    LOW_PRICED = "LOW_PRICED"
    NORMAL = "NORMAL"
    EXPENSIVE = "EXPENSIVE"


class LevelUpEffectKind(StrEnum):
    """Effects selectable when gaining a level."""

    HP_ROLL = "hp_roll"
    ARMOR_LEVEL_ROLL = "armor_level_roll"
    INITIATIVE_PLUS_ONE = "initiative_plus_one"
    LUCK_PLUS_ONE = "luck_plus_one"
    BONUS_ACTION_PLUS_ONE = "bonus_action_plus_one"
    LEGENDARY_ACTION_PLUS_ONE = "legendary_action_plus_one"
    REROLL_UNLOCK = "reroll_unlock"

    @property
    def takes_dice(self) -> bool:
        """Whether the effect's delta comes from a dice roll."""
        return self in (LevelUpEffectKind.HP_ROLL, LevelUpEffectKind.ARMOR_LEVEL_ROLL)


class AdvantageName(StrEnum):
    """Advantages selectable at creation."""

    HIGH_SCHOOL_DEGREE = "high_school_degree"
    CHARMER = "charmer"
    DARK_VISION = "dark_vision"
    LUCKY = "lucky"
    GOOD_LOOKING = "good_looking"
    GOOD_MEMORY = "good_memory"
    OUTSTANDING_SENSE_SIGHT_HEARING = "outstanding_sense_sight_hearing"
    MASTER_OF_THE_SITUATION = "master_of_the_situation"
    HIGH_GENERAL_KNOWLEDGE = "high_general_knowledge"
    MASTER_OF_IMPROVISATION = "master_of_improvisation"
    MILITARY_TRAINING = "military_training"
    BRAVE = "brave"
    ATHLETIC = "athletic"
    COLLEGE_EDUCATION = "college_education"
    DARING = "daring"
    MELODIOUS_VOICE = "melodious_voice"


class DisadvantageName(StrEnum):
    """Disadvantages selectable at creation."""

    SUPERSTITION = "superstition"
    COWARD = "coward"
    LOW_GENERAL_KNOWLEDGE = "low_general_knowledge"
    SOCIALLY_INEPT = "socially_inept"
    NO_DEGREE = "no_degree"
    PACIFIST = "pacifist"
    UNLUCKY = "unlucky"
    EARLY_SCHOOL_DROPOUT = "early_school_dropout"
    FEAR_OF = "fear_of"
    MISER = "miser"
    SENSE_OF_JUSTICE = "sense_of_justice"
    IMPULSIVE = "impulsive"
    HOT_TEMPERED = "hot_tempered"
    LETHARGIC = "lethargic"
    VENGEFUL = "vengeful"
    QUARRELSOME = "quarrelsome"
    SPEECH_IMPEDIMENT = "speech_impediment"
    SLEEP_DISORDER = "sleep_disorder"
    SPENDTHRIFT = "spendthrift"
    NIGHT_BLIND = "night_blind"
    BAD_HABIT = "bad_habit"
    BAD_TRAIT = "bad_trait"
    ADDICTION_CAFFEINE = "addiction_caffeine"
    ADDICTION_NICOTINE = "addiction_nicotine"
    ADDICTION_GAMBLING = "addiction_gambling"
    ADDICTION_ALCOHOL = "addiction_alcohol"
    ADDICTION_DRUGS = "addiction_drugs"
    IMPAIRED_SENSE = "impaired_sense"
    UNATTRACTIVE = "unattractive"
    UNPLEASANT_VOICE = "unpleasant_voice"
    POOR_MEMORY = "poor_memory"


class RecordType(IntEnum):
    """Kinds of audit records in a character's history."""

    CHARACTER_CREATED = 0
    LEVEL_CHANGED = 1
    CALCULATION_POINTS_CHANGED = 2
    BASE_VALUE_CHANGED = 3
    SPECIAL_ABILITIES_CHANGED = 4
    ATTRIBUTE_CHANGED = 5
    SKILL_CHANGED = 6
    COMBAT_STATS_CHANGED = 7


__all__ = [
    "AttributeName",
    "BaseValueName",
    "SkillCategory",
    "CombatCategory",
    "CostCategory",
    "LearningMethod",
    "LevelUpEffectKind",
    "AdvantageName",
    "DisadvantageName",
    "RecordType",
]
