"""Character assembly.

:class:`CharacterBuilder` produces the initial sheet of a new character.
Each step validates its input against the rule tables and works on a
private in-memory sheet; nothing exists outside the builder until
:meth:`CharacterBuilder.build` succeeds, so a failed step never leaves a
partial character behind.

Example:
    >>> creation = (
    ...     CharacterBuilder()
    ...     .set_general_information(info)
    ...     .set_advantages_and_disadvantages(advantages, disadvantages)
    ...     .set_attributes(attributes)
    ...     .activate_skills(skills)
    ...     .set_combat_skills_start_values({})
    ...     .build(user_id)
    ... )
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from uuid import uuid4

from charsheet_engine.core.constants import (
    ATTRIBUTE_POINTS_FOR_CREATION,
    GENERATION_POINTS,
    HOBBY_SKILL_BONUS,
    MAX_ATTRIBUTE_VALUE_FOR_CREATION,
    MAX_GENERATION_POINTS_THROUGH_DISADVANTAGES,
    MIN_ATTRIBUTE_VALUE_FOR_CREATION,
    MIN_LEVEL,
    NUMBER_OF_ACTIVATABLE_SKILLS_FOR_CREATION,
    PROFESSION_SKILL_BONUS,
)
from charsheet_engine.core.exceptions import RuleConfigurationError, ValidationError
from charsheet_engine.core.logging import get_logger
from charsheet_engine.models.character import (
    AdvantageEntry,
    Attribute,
    CalculationPoints,
    Character,
    CharacterSheet,
    CombatStats,
    DisadvantageEntry,
    GeneralInformation,
    LevelUpProgress,
    Skill,
)
from charsheet_engine.models.enums import AttributeName, SkillCategory
from charsheet_engine.rules.costs import shift_cost_category
from charsheet_engine.rules.derived import (
    apply_formula_value,
    derive_base_values,
    derive_combat_stats,
    shift_available_points,
)
from charsheet_engine.rules.tables import (
    ADVANTAGE_EFFECTS,
    ADVANTAGES,
    BASE_VALUES_UPDATABLE_BY_LEVEL_UP,
    COMBAT_SKILL_HANDLING,
    COST_CATEGORY_COMBAT_SKILLS,
    COST_CATEGORY_DEFAULT,
    DISADVANTAGE_EFFECTS,
    SKILL_CATALOGUE,
    START_SKILLS,
    EffectBundle,
    combat_category_of,
    is_valid_advantage,
    is_valid_disadvantage,
    parse_skill_reference,
)


logger = get_logger(__name__)


@dataclass(frozen=True)
class CharacterCreation:
    """A freshly assembled character plus its generation point summary."""

    character: Character
    generation_points_through_disadvantages: int
    generation_points_spent: int
    generation_points_total: int
    activated_skills: list[str]


def _zero_skill(category: SkillCategory, name: str) -> Skill:
    return Skill(
        activated=f"{category}/{name}" in START_SKILLS,
        default_cost_category=(
            COST_CATEGORY_COMBAT_SKILLS if category is SkillCategory.COMBAT else COST_CATEGORY_DEFAULT
        ),
    )


def _zero_combat_stats(name: str) -> CombatStats:
    handling = COMBAT_SKILL_HANDLING[name]
    return CombatStats(available_points=handling, handling=handling)


def _zero_sheet() -> CharacterSheet:
    sheet = CharacterSheet()
    for category, names in SKILL_CATALOGUE.items():
        skills = sheet.skills.category(category)
        for name in names:
            skills[name] = _zero_skill(category, name)
    for name in SKILL_CATALOGUE[SkillCategory.COMBAT]:
        sheet.combat.category(combat_category_of(name))[name] = _zero_combat_stats(name)
    for name in BASE_VALUES_UPDATABLE_BY_LEVEL_UP:
        sheet.base_values.get(name).by_lvl_up = 0
    sheet.calculation_points.attribute_points = CalculationPoints(
        start=ATTRIBUTE_POINTS_FOR_CREATION,
        available=0,
        total=ATTRIBUTE_POINTS_FOR_CREATION,
    )
    return sheet


class CharacterBuilder:
    """Step-by-step assembly of a new character sheet.

    All steps must be run once before :meth:`build`. Skill activation has
    to come after general information and advantages because it rejects
    skills those steps already activated.
    """

    def __init__(self) -> None:
        self._sheet = _zero_sheet()
        self._general_information_set = False
        self._advantages_set = False
        self._attributes_set = False
        self._skills_activated = False
        self._combat_start_values_set = False

        self._generation_points_through_disadvantages = 0
        self._generation_points_spent = 0
        self._generation_points_total = GENERATION_POINTS
        self._activated_skills: list[str] = []

    # -------------------------------------------------------------------------
    # Steps
    # -------------------------------------------------------------------------

    def set_general_information(self, general_information: GeneralInformation) -> CharacterBuilder:
        """Store descriptive data and grant the profession and hobby bonuses."""
        self._grant_skill_bonus(general_information.profession.skill, PROFESSION_SKILL_BONUS, "profession")
        self._grant_skill_bonus(general_information.hobby.skill, HOBBY_SKILL_BONUS, "hobby")

        self._sheet.general_information = general_information.model_copy(
            update={"level": MIN_LEVEL, "level_up_progress": LevelUpProgress()},
            deep=True,
        )
        self._general_information_set = True
        return self

    def set_advantages_and_disadvantages(
        self,
        advantages: Iterable[AdvantageEntry],
        disadvantages: Iterable[DisadvantageEntry],
    ) -> CharacterBuilder:
        """Validate the generation point budget and apply effect bundles.

        Raises:
            ValidationError: On an unknown (kind, value) pair or an
                exceeded generation point budget.
            RuleConfigurationError: On an inconsistent effect bundle or an
                invalid bonus target.
        """
        advantages = list(advantages)
        disadvantages = list(disadvantages)

        for entry in disadvantages:
            if not is_valid_disadvantage(entry.kind, entry.value):
                raise ValidationError(
                    f"Invalid disadvantage: [{entry.kind}, {entry.value}]",
                    field_name="disadvantages",
                    invalid_value=entry.model_dump(mode="json"),
                )
        through_disadvantages = sum(entry.value for entry in disadvantages)
        if through_disadvantages > MAX_GENERATION_POINTS_THROUGH_DISADVANTAGES:
            raise ValidationError(
                "Generation points through disadvantages exceed the maximum "
                f"of {MAX_GENERATION_POINTS_THROUGH_DISADVANTAGES}",
                field_name="disadvantages",
                invalid_value=through_disadvantages,
            )

        for entry in advantages:
            if not is_valid_advantage(entry.kind, entry.value):
                raise ValidationError(
                    f"Invalid advantage: [{entry.kind}, {entry.value}]",
                    field_name="advantages",
                    invalid_value=entry.model_dump(mode="json"),
                )
        total = GENERATION_POINTS + through_disadvantages
        spent = sum(entry.value for entry in advantages)
        if spent > total:
            raise ValidationError(
                f"Generation points spent on advantages ({spent}) exceed available generation points ({total})",
                field_name="advantages",
                invalid_value=spent,
            )

        for entry in disadvantages:
            bundle = DISADVANTAGE_EFFECTS.get(entry.kind)
            if bundle is not None:
                logger.debug("Applying disadvantage effect", disadvantage=entry.kind)
                self._apply_bundle(bundle, entry.info, str(entry.kind))
        for entry in advantages:
            bundle = ADVANTAGE_EFFECTS.get(entry.kind)
            if bundle is not None:
                logger.debug("Applying advantage effect", advantage=entry.kind)
                self._apply_bundle(bundle, entry.info, str(entry.kind))

        self._sheet.advantages = advantages
        self._sheet.disadvantages = disadvantages
        self._generation_points_through_disadvantages = through_disadvantages
        self._generation_points_spent = spent
        self._generation_points_total = total
        self._advantages_set = True
        return self

    def set_attributes(self, attributes: Mapping[str, int]) -> CharacterBuilder:
        """Distribute the attribute point budget.

        Raises:
            ValidationError: If an attribute is missing or unknown, a value
                is outside the creation range, or the sum misses the budget.
        """
        names = {str(name) for name in attributes}
        expected = {name.value for name in AttributeName}
        if names != expected:
            raise ValidationError(
                "All eight attributes must be distributed",
                field_name="attributes",
                invalid_value=sorted(names ^ expected),
            )
        for name, value in attributes.items():
            if not MIN_ATTRIBUTE_VALUE_FOR_CREATION <= value <= MAX_ATTRIBUTE_VALUE_FOR_CREATION:
                raise ValidationError(
                    f"Attribute {name} must be between {MIN_ATTRIBUTE_VALUE_FOR_CREATION} "
                    f"and {MAX_ATTRIBUTE_VALUE_FOR_CREATION} at creation",
                    field_name=f"attributes.{name}",
                    invalid_value=value,
                )
        spent = sum(attributes.values())
        if spent != ATTRIBUTE_POINTS_FOR_CREATION:
            raise ValidationError(
                f"Expected {ATTRIBUTE_POINTS_FOR_CREATION} distributed attribute points, got {spent}",
                field_name="attributes",
                invalid_value=spent,
            )

        for name, value in attributes.items():
            old = self._sheet.attributes.get(name)
            self._sheet.attributes.set(
                name,
                Attribute(start=value, current=value, mod=old.mod, total_cost=value),
            )
        self._attributes_set = True
        return self

    def activate_skills(self, skills: Iterable[str]) -> CharacterBuilder:
        """Activate the caller's free skill choices.

        Raises:
            ValidationError: If the number of skills is wrong, a skill is
                unknown or a skill is already active.
        """
        skills = list(skills)
        if len(skills) != NUMBER_OF_ACTIVATABLE_SKILLS_FOR_CREATION:
            raise ValidationError(
                f"Exactly {NUMBER_OF_ACTIVATABLE_SKILLS_FOR_CREATION} skills must be activated",
                field_name="activated_skills",
                invalid_value=skills,
            )
        for reference in skills:
            category, name = parse_skill_reference(reference)
            skill = self._sheet.skills.get(category, name)
            if skill.activated:
                raise ValidationError(
                    f"Skill '{reference}' is already activated",
                    field_name="activated_skills",
                    invalid_value=reference,
                )
            skill.activated = True
        self._activated_skills = skills
        self._skills_activated = True
        return self

    def set_combat_skills_start_values(self, start_values: Mapping[str, int]) -> CharacterBuilder:
        """Add starting values to combat skills.

        Raises:
            ValidationError: On an unknown combat skill or a negative value.
        """
        for name, value in start_values.items():
            if name not in SKILL_CATALOGUE[SkillCategory.COMBAT]:
                raise ValidationError("Unknown combat skill", field_name="combat_skills_start_values", invalid_value=name)
            if value < 0:
                raise ValidationError(
                    "Combat skill start values must not be negative",
                    field_name=f"combat_skills_start_values.{name}",
                    invalid_value=value,
                )
        for name, value in start_values.items():
            skill = self._sheet.skills.get(SkillCategory.COMBAT, name)
            skill.start += value
            skill.current += value
        self._combat_start_values_set = True
        return self

    def build(self, user_id: str) -> CharacterCreation:
        """Seed derived values and return the finished character.

        Raises:
            ValidationError: If a step was skipped.
        """
        missing = [
            step
            for step, done in (
                ("general_information", self._general_information_set),
                ("advantages_and_disadvantages", self._advantages_set),
                ("attributes", self._attributes_set),
                ("activated_skills", self._skills_activated),
                ("combat_skills_start_values", self._combat_start_values_set),
            )
            if not done
        ]
        if missing:
            raise ValidationError("All steps must be completed before building the character", details={"missing": missing})

        sheet = self._sheet.model_copy(deep=True)
        for name, by_formula in derive_base_values(sheet.attributes).items():
            seeded = apply_formula_value(sheet.base_values.get(name), by_formula)
            seeded.start = seeded.current
            sheet.base_values.set(name, seeded)

        # Combat stats depend on every previous step, so they come last
        for name, skill in sheet.skills.combat.items():
            category = combat_category_of(name)
            stats = sheet.combat.get(category, name)
            stats = shift_available_points(stats, _zero_skill(SkillCategory.COMBAT, name), skill)
            sheet.combat.category(category)[name] = derive_combat_stats(stats, sheet.base_values, category)

        character = Character(user_id=user_id, character_id=str(uuid4()), character_sheet=sheet)
        logger.info(
            "Character assembled",
            user_id=user_id,
            character_id=character.character_id,
            name=sheet.general_information.name,
        )
        return CharacterCreation(
            character=character,
            generation_points_through_disadvantages=self._generation_points_through_disadvantages,
            generation_points_spent=self._generation_points_spent,
            generation_points_total=self._generation_points_total,
            activated_skills=list(self._activated_skills),
        )

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _grant_skill_bonus(self, reference: str, bonus: int, source: str) -> None:
        category, name = parse_skill_reference(reference)
        skill = self._sheet.skills.get(category, name)
        skill.activated = True
        skill.mod += bonus
        logger.debug("Skill bonus granted", source=source, skill=reference, bonus=bonus)

    def _apply_bundle(self, bundle: EffectBundle, info: str | None, source: str) -> None:
        skills = self._sheet.skills
        for reference in bundle.activate:
            category, name = self._bundle_skill(reference, source)
            skills.get(category, name).activated = True
        for reference, delta in bundle.skill_mods:
            category, name = self._bundle_skill(reference, source)
            skills.get(category, name).mod += delta
        for attribute, delta in bundle.attribute_mods:
            self._sheet.attributes.get(attribute).mod += delta
        for category, steps in bundle.cost_category_shifts:
            for skill in skills.category(category).values():
                skill.default_cost_category = shift_cost_category(skill.default_cost_category, steps)
        if bundle.bonus_target_category is not None:
            name = self._bonus_target(bundle, info, source)
            skills.get(bundle.bonus_target_category, name).mod += bundle.bonus_target_mod

    @staticmethod
    def _bundle_skill(reference: str, source: str) -> tuple[SkillCategory, str]:
        try:
            return parse_skill_reference(reference)
        except ValidationError as exc:
            raise RuleConfigurationError(
                f"Effect of '{source}' references unknown skill '{reference}'",
                rule=source,
            ) from exc

    @staticmethod
    def _bonus_target(bundle: EffectBundle, info: str | None, source: str) -> str:
        category = bundle.bonus_target_category
        name = (info or "").removeprefix(f"{category}/")
        if name not in SKILL_CATALOGUE[category]:
            raise RuleConfigurationError(
                f"Bonus target of '{source}' must be a {category} skill, got '{info}'",
                rule=source,
                details={"info": info},
            )
        if name in bundle.bonus_target_excluded:
            raise RuleConfigurationError(
                f"Skills {', '.join(sorted(bundle.bonus_target_excluded))} cannot be chosen "
                f"as bonus target of '{source}'",
                rule=source,
                details={"info": info},
            )
        return name


__all__ = [
    "CharacterBuilder",
    "CharacterCreation",
]
