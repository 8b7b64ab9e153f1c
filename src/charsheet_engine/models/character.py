"""Pydantic V2 schemas for the character sheet.

The sheet is the persisted record owned by the storage collaborator. It is
created once by character assembly and afterwards only changed one field
group at a time by the mutation services, so every structure here is a
plain mutable data container without behavior of its own.
"""

from __future__ import annotations

from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field

from charsheet_engine.core.constants import MAX_LEVEL, MIN_LEVEL
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


Level = Annotated[int, Field(ge=MIN_LEVEL, le=MAX_LEVEL)]
NonNegativeInt = Annotated[int, Field(ge=0)]


class SheetModel(BaseModel):
    """Base class for all sheet structures."""

    model_config = ConfigDict(
        validate_assignment=True,
        extra="forbid",
    )


# =============================================================================
# Sheet Building Blocks
# =============================================================================


class Attribute(SheetModel):
    """A primary attribute.

    ``current`` is only ever set at creation or by the attribute-increase
    path, never by formulas.
    """

    start: NonNegativeInt = 0
    current: NonNegativeInt = 0
    mod: int = 0
    total_cost: NonNegativeInt = 0

    @property
    def effective(self) -> int:
        """Value fed into base value formulas."""
        return self.current + self.mod


class BaseValue(SheetModel):
    """A derived secondary statistic.

    ``current`` equals ``by_formula + by_lvl_up`` for formula-driven values.
    ``mod`` is not folded into ``current``; it is only added when deriving
    combat statistics.
    """

    start: int = 0
    current: int = 0
    by_formula: int | None = None
    by_lvl_up: int | None = None
    mod: int = 0


class Skill(SheetModel):
    """A skill. Once ``activated`` is true it never becomes false again."""

    activated: bool = False
    start: NonNegativeInt = 0
    current: NonNegativeInt = 0
    mod: int = 0
    total_cost: float = Field(default=0, ge=0)
    default_cost_category: CostCategory = CostCategory.CAT_2


class CombatStats(SheetModel):
    """Derived combat values of one combat skill."""

    available_points: int = 0
    handling: int = 0
    attack_value: int = 0
    skilled_attack_value: NonNegativeInt = 0
    parade_value: int = 0
    skilled_parade_value: NonNegativeInt = 0


class CalculationPoints(SheetModel):
    """A point budget: ``available`` is ``total`` minus everything spent so far."""

    start: float = 0
    available: float = Field(default=0, ge=0)
    total: float = 0


class CalculationPointsSection(SheetModel):
    """Adventure points pay for skills; attribute points pay for attributes."""

    adventure_points: CalculationPoints = Field(default_factory=CalculationPoints)
    attribute_points: CalculationPoints = Field(default_factory=CalculationPoints)


class AdvantageEntry(SheetModel):
    """An advantage taken at creation."""

    kind: AdvantageName
    info: str | None = None
    value: int


class DisadvantageEntry(SheetModel):
    """A disadvantage taken at creation."""

    kind: DisadvantageName
    info: str | None = None
    value: int


# =============================================================================
# Level-Up Progress
# =============================================================================


class LevelUpRoll(SheetModel):
    """A dice roll backing a roll-based level-up effect."""

    dice: str
    value: int


class LevelUpEffect(SheetModel):
    """A chosen level-up effect.

    Roll-based kinds carry ``roll``; flat kinds carry ``delta``; the unlock
    kind carries neither.
    """

    kind: LevelUpEffectKind
    roll: LevelUpRoll | None = None
    delta: int | None = None


class EffectProgress(SheetModel):
    """Aggregate of how often and when an effect kind was chosen."""

    selection_count: NonNegativeInt = 0
    first_chosen_level: int | None = None
    last_chosen_level: int | None = None


class LevelUpProgress(SheetModel):
    """Per-level choices plus per-kind aggregates."""

    effects_by_level: dict[str, LevelUpEffect] = Field(default_factory=dict)
    effects: dict[LevelUpEffectKind, EffectProgress] = Field(default_factory=dict)


# =============================================================================
# Sheet Sections
# =============================================================================


class ProfessionHobby(SheetModel):
    """Profession or hobby with its linked ``category/name`` skill."""

    name: str = ""
    skill: str = ""


class GeneralInformation(SheetModel):
    """Descriptive data and level of a character."""

    name: str = ""
    level: Level = MIN_LEVEL
    level_up_progress: LevelUpProgress = Field(default_factory=LevelUpProgress)
    sex: str = ""
    profession: ProfessionHobby = Field(default_factory=ProfessionHobby)
    hobby: ProfessionHobby = Field(default_factory=ProfessionHobby)
    birthday: str = ""
    birthplace: str = ""
    size: str = ""
    weight: str = ""
    hair_color: str = ""
    eye_color: str = ""
    residence: str = ""
    appearance: str = ""
    special_characteristics: str = ""


class Attributes(SheetModel):
    """The eight attributes, addressable by AttributeName."""

    courage: Attribute = Field(default_factory=Attribute)
    intelligence: Attribute = Field(default_factory=Attribute)
    concentration: Attribute = Field(default_factory=Attribute)
    charisma: Attribute = Field(default_factory=Attribute)
    mental_resilience: Attribute = Field(default_factory=Attribute)
    dexterity: Attribute = Field(default_factory=Attribute)
    endurance: Attribute = Field(default_factory=Attribute)
    strength: Attribute = Field(default_factory=Attribute)

    def get(self, name: AttributeName | str) -> Attribute:
        """Look up an attribute by name.

        Raises:
            ValidationError: If the name is not an attribute.
        """
        try:
            return getattr(self, AttributeName(name).value)
        except ValueError as exc:
            raise ValidationError("Unknown attribute", field_name="attribute", invalid_value=name) from exc

    def set(self, name: AttributeName | str, attribute: Attribute) -> None:
        """Replace an attribute by name."""
        setattr(self, AttributeName(name).value, attribute)


class BaseValues(SheetModel):
    """The eleven base values, addressable by BaseValueName."""

    health_points: BaseValue = Field(default_factory=BaseValue)
    mental_health: BaseValue = Field(default_factory=BaseValue)
    armor_level: BaseValue = Field(default_factory=BaseValue)
    natural_armor: BaseValue = Field(default_factory=BaseValue)
    initiative_base_value: BaseValue = Field(default_factory=BaseValue)
    attack_base_value: BaseValue = Field(default_factory=BaseValue)
    parade_base_value: BaseValue = Field(default_factory=BaseValue)
    ranged_attack_base_value: BaseValue = Field(default_factory=BaseValue)
    luck_points: BaseValue = Field(default_factory=BaseValue)
    bonus_actions_per_combat_round: BaseValue = Field(default_factory=BaseValue)
    legendary_actions: BaseValue = Field(default_factory=BaseValue)

    def get(self, name: BaseValueName | str) -> BaseValue:
        """Look up a base value by name.

        Raises:
            ValidationError: If the name is not a base value.
        """
        try:
            return getattr(self, BaseValueName(name).value)
        except ValueError as exc:
            raise ValidationError("Unknown base value", field_name="base_value", invalid_value=name) from exc

    def set(self, name: BaseValueName | str, base_value: BaseValue) -> None:
        """Replace a base value by name."""
        setattr(self, BaseValueName(name).value, base_value)


class Skills(SheetModel):
    """All skills, grouped by category and keyed by skill name."""

    combat: dict[str, Skill] = Field(default_factory=dict)
    body: dict[str, Skill] = Field(default_factory=dict)
    social: dict[str, Skill] = Field(default_factory=dict)
    nature: dict[str, Skill] = Field(default_factory=dict)
    knowledge: dict[str, Skill] = Field(default_factory=dict)
    handcraft: dict[str, Skill] = Field(default_factory=dict)

    def category(self, category: SkillCategory | str) -> dict[str, Skill]:
        """Return the skills of one category.

        Raises:
            ValidationError: If the category is unknown.
        """
        try:
            return getattr(self, SkillCategory(category).value)
        except ValueError as exc:
            raise ValidationError(
                "Unknown skill category", field_name="skill_category", invalid_value=category
            ) from exc

    def get(self, category: SkillCategory | str, name: str) -> Skill:
        """Look up a skill by category and name.

        Raises:
            ValidationError: If the skill does not exist.
        """
        skills = self.category(category)
        if name not in skills:
            raise ValidationError(
                "Unknown skill", field_name="skill", invalid_value=f"{category}/{name}"
            )
        return skills[name]


class CombatSection(SheetModel):
    """Combat stats of every combat skill, split into melee and ranged."""

    melee: dict[str, CombatStats] = Field(default_factory=dict)
    ranged: dict[str, CombatStats] = Field(default_factory=dict)

    def category(self, category: CombatCategory | str) -> dict[str, CombatStats]:
        """Return the combat stats of one combat category.

        Raises:
            ValidationError: If the category is unknown.
        """
        try:
            return getattr(self, CombatCategory(category).value)
        except ValueError as exc:
            raise ValidationError(
                "Unknown combat category", field_name="combat_category", invalid_value=category
            ) from exc

    def get(self, category: CombatCategory | str, name: str) -> CombatStats:
        """Look up the combat stats of one combat skill.

        Raises:
            ValidationError: If the skill is not part of the category.
        """
        stats = self.category(category)
        if name not in stats:
            raise ValidationError(
                "Unknown combat skill", field_name="combat_skill", invalid_value=f"{category}/{name}"
            )
        return stats[name]


# =============================================================================
# Character Record
# =============================================================================


class CharacterSheet(SheetModel):
    """The complete character sheet."""

    general_information: GeneralInformation = Field(default_factory=GeneralInformation)
    calculation_points: CalculationPointsSection = Field(default_factory=CalculationPointsSection)
    advantages: list[AdvantageEntry] = Field(default_factory=list)
    disadvantages: list[DisadvantageEntry] = Field(default_factory=list)
    special_abilities: list[str] = Field(default_factory=list)
    base_values: BaseValues = Field(default_factory=BaseValues)
    attributes: Attributes = Field(default_factory=Attributes)
    skills: Skills = Field(default_factory=Skills)
    combat: CombatSection = Field(default_factory=CombatSection)


class Character(SheetModel):
    """A stored character: the sheet plus its owner and identifier."""

    user_id: str
    character_id: str
    character_sheet: CharacterSheet


__all__ = [
    "SheetModel",
    "Attribute",
    "BaseValue",
    "Skill",
    "CombatStats",
    "CalculationPoints",
    "CalculationPointsSection",
    "AdvantageEntry",
    "DisadvantageEntry",
    "LevelUpRoll",
    "LevelUpEffect",
    "EffectProgress",
    "LevelUpProgress",
    "ProfessionHobby",
    "GeneralInformation",
    "Attributes",
    "BaseValues",
    "Skills",
    "CombatSection",
    "CharacterSheet",
    "Character",
]
