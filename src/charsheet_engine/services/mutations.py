"""Field-group mutations of stored characters.

Every operation follows the same sequence: load the character once,
validate the request, resolve each field group against the stored value
(see :mod:`charsheet_engine.services.protocol`), price and budget-check
what is left to apply, propagate into derived structures, and only then
write. The primary structure is written first, in the same transaction
as the calculation points paying for it, and every cascaded structure
afterwards in its own transaction; a failure between those
writes leaves the derived structure stale until the next successful
mutation of its source recomputes it.
"""

from __future__ import annotations

from typing import Any

from charsheet_engine.core.constants import (
    ATTRIBUTE_INCREASE_COST,
    COMBAT_STATS_INCREASE_COST,
    MIN_ATTRIBUTE_VALUE,
    MIN_BASE_VALUE,
    MIN_POINTS,
    MIN_SKILL_VALUE,
)
from charsheet_engine.core.exceptions import ConflictError, InsufficientBudgetError, InvalidPointsError, ValidationError
from charsheet_engine.core.logging import get_logger
from charsheet_engine.models.character import (
    BaseValue,
    BaseValues,
    CalculationPoints,
    Character,
    CombatStats,
)
from charsheet_engine.models.enums import (
    AttributeName,
    BaseValueName,
    CombatCategory,
    LearningMethod,
    RecordType,
    SkillCategory,
)
from charsheet_engine.models.history import PointsDelta
from charsheet_engine.models.requests import (
    AttributeUpdate,
    BaseValueUpdate,
    CalculationPointsUpdate,
    Changes,
    CombatStatsUpdate,
    PointsUpdate,
    SkillCostQuote,
    SkillUpdate,
    UpdateResult,
)
from charsheet_engine.rules.costs import CostCalculator, require_learning_method
from charsheet_engine.rules.derived import (
    base_values_reading,
    combat_categories_consuming,
    derive_combat_stats,
    recompute_base_values,
    recompute_combat_category,
    shift_available_points,
)
from charsheet_engine.rules.tables import (
    BASE_VALUES_UPDATABLE_BY_LEVEL_UP,
    combat_category_of,
    parse_skill_reference,
)
from charsheet_engine.services.protocol import (
    SheetService,
    dump_state,
    operation_context,
    require_minimum,
    require_positive,
    resolve_field,
)
from charsheet_engine.storage.database import Database


logger = get_logger(__name__)


def skill_record_name(category: SkillCategory, name: str) -> str:
    """History name of a skill; combat skills also name their combat section."""
    if category is SkillCategory.COMBAT:
        return f"{category}/{name} ({combat_category_of(name)})"
    return f"{category}/{name}"


def _debit(points: CalculationPoints, cost: float, field_name: str) -> CalculationPoints:
    if cost > points.available:
        raise InsufficientBudgetError(
            f"Not enough {field_name} available",
            required=cost,
            available=points.available,
            details={"field_name": field_name},
        )
    return points.model_copy(update={"available": points.available - cost})


class MutationService(SheetService):
    """Applies field-group updates to stored characters.

    Args:
        database: Storage collaborator. Defaults to the global database.
        calculator: Skill price calculator. Defaults to one built from settings.
    """

    def __init__(self, database: Database | None = None, calculator: CostCalculator | None = None) -> None:
        super().__init__(database)
        self._calculator = calculator or CostCalculator()

    # =========================================================================
    # Attributes
    # =========================================================================

    def update_attribute(
        self,
        user_id: str,
        character_id: str,
        attribute_name: AttributeName | str,
        update: AttributeUpdate,
    ) -> UpdateResult:
        """Update start, current and/or mod of one attribute.

        Raising ``current`` costs attribute points. A change of ``current``
        or ``mod`` recomputes the base values whose formula reads the
        attribute and the combat sections consuming any of them.
        """
        with operation_context("update_attribute", user_id, character_id):
            character = self._load(user_id, character_id)
            sheet = character.character_sheet
            attribute = sheet.attributes.get(attribute_name)
            name = AttributeName(attribute_name)
            path = f"attributes.{name}"

            if update.start is None and update.current is None and update.mod is None:
                raise ValidationError("Attribute update names no field group", field_name="attribute")
            if update.current is not None:
                require_positive(update.current.increased_points, "current.increased_points")
            if update.start is not None:
                require_minimum(update.start.new_value, MIN_ATTRIBUTE_VALUE, "start")

            apply_start = update.start is not None and resolve_field(
                "start", attribute.start, update.start.initial_value, update.start.target
            )
            apply_current = update.current is not None and resolve_field(
                "current", attribute.current, update.current.initial_value, update.current.target
            )
            apply_mod = update.mod is not None and resolve_field(
                "mod", attribute.mod, update.mod.initial_value, update.mod.target
            )

            if not (apply_start or apply_current or apply_mod):
                return self._replay(character, str(name), dump_state({path: attribute}))

            new_attribute = attribute.model_copy()
            attribute_points = sheet.calculation_points.attribute_points
            new_attribute_points = attribute_points
            if apply_start:
                new_attribute.start = update.start.new_value
            if apply_mod:
                new_attribute.mod = update.mod.new_value
            if apply_current:
                cost = update.current.increased_points * ATTRIBUTE_INCREASE_COST
                new_attribute_points = _debit(attribute_points, cost, "attribute_points")
                new_attribute.current = int(update.current.target)
                new_attribute.total_cost = attribute.total_cost + cost
                logger.info("Attribute increased", attribute=name, points=update.current.increased_points, cost=cost)

            old_state: dict[str, Any] = {path: attribute}
            new_state: dict[str, Any] = {path: new_attribute}

            changed_base_values: dict[BaseValueName, BaseValue] = {}
            changed_combat: dict[CombatCategory, dict[str, CombatStats]] = {}
            if apply_current or apply_mod:
                attributes = sheet.attributes.model_copy(deep=True)
                attributes.set(name, new_attribute)
                changed_base_values = recompute_base_values(attributes, sheet.base_values, base_values_reading(name))
                changed_combat = self._cascade_combat(sheet.base_values, changed_base_values, character)
                for base_value_name, base_value in changed_base_values.items():
                    old_state[f"base_values.{base_value_name}"] = sheet.base_values.get(base_value_name)
                    new_state[f"base_values.{base_value_name}"] = base_value
                for category, stats in changed_combat.items():
                    old_state[f"combat.{category}"] = sheet.combat.category(category)
                    new_state[f"combat.{category}"] = stats

            self._db.update_attribute(
                user_id,
                character_id,
                name,
                new_attribute,
                attribute_points=new_attribute_points if new_attribute_points is not attribute_points else None,
            )
            if changed_base_values:
                self._db.update_base_values(user_id, character_id, changed_base_values)
            for category, stats in changed_combat.items():
                self._db.update_combat_stats(user_id, character_id, category, stats)

            points_delta = (
                PointsDelta(old=attribute_points, new=new_attribute_points)
                if new_attribute_points is not attribute_points
                else None
            )
            changes = Changes(old=dump_state(old_state), new=dump_state(new_state))
            record = self._record(
                character_id,
                RecordType.ATTRIBUTE_CHANGED,
                str(name),
                changes,
                attribute_points=points_delta,
            )
            return UpdateResult(
                user_id=user_id,
                character_id=character_id,
                target=str(name),
                changes=changes,
                attribute_points=points_delta,
                history_record=record,
            )

    # =========================================================================
    # Skills
    # =========================================================================

    def update_skill(
        self,
        user_id: str,
        character_id: str,
        skill_reference: str,
        update: SkillUpdate,
    ) -> UpdateResult:
        """Activate a skill and/or update its start, current and mod.

        Activation and raising ``current`` are paid with adventure points
        and need a learning method. A combat skill's change moves its
        combat ``available_points`` by the change of ``current + mod``.
        """
        with operation_context("update_skill", user_id, character_id):
            category, name = parse_skill_reference(skill_reference)
            character = self._load(user_id, character_id)
            sheet = character.character_sheet
            skill = sheet.skills.get(category, name)
            path = f"skills.{category}.{name}"
            record_name = skill_record_name(category, name)

            if update.activated is None and update.start is None and update.current is None and update.mod is None:
                raise ValidationError("Skill update names no field group", field_name="skill")
            if update.activated is not None or update.current is not None:
                require_learning_method(update.learning_method)
            if update.activated is False:
                raise ConflictError(
                    "Skills cannot be deactivated",
                    field_name="activated",
                    expected=True,
                    actual=skill.activated,
                )
            if update.current is not None:
                require_positive(update.current.increased_points, "current.increased_points")
            if update.start is not None:
                require_minimum(update.start.new_value, MIN_SKILL_VALUE, "start")

            apply_activation = update.activated is True and not skill.activated
            if update.activated is True and skill.activated:
                logger.info("Skill already activated", skill=record_name)
            if not (skill.activated or apply_activation) and (
                update.start is not None or update.current is not None or update.mod is not None
            ):
                raise ConflictError(
                    f"Skill '{record_name}' is not activated",
                    field_name="activated",
                    expected=True,
                    actual=False,
                )

            apply_start = update.start is not None and resolve_field(
                "start", skill.start, update.start.initial_value, update.start.target
            )
            apply_current = update.current is not None and resolve_field(
                "current", skill.current, update.current.initial_value, update.current.target
            )
            apply_mod = update.mod is not None and resolve_field(
                "mod", skill.mod, update.mod.initial_value, update.mod.target
            )

            if not (apply_activation or apply_start or apply_current or apply_mod):
                result = self._replay(character, record_name, dump_state({path: skill}))
                return result.model_copy(update={"learning_method": update.learning_method})

            cost = 0.0
            if apply_activation:
                cost += self._calculator.activation_cost(skill.default_cost_category, update.learning_method)
            if apply_current:
                cost += self._calculator.increase_cost(
                    skill.current,
                    update.current.increased_points,
                    skill.default_cost_category,
                    update.learning_method,
                )
            adventure_points = sheet.calculation_points.adventure_points
            new_adventure_points = adventure_points
            if apply_activation or apply_current:
                new_adventure_points = _debit(adventure_points, cost, "adventure_points")

            new_skill = skill.model_copy()
            if apply_activation:
                new_skill.activated = True
            if apply_start:
                new_skill.start = update.start.new_value
            if apply_current:
                new_skill.current = int(update.current.target)
            if apply_mod:
                new_skill.mod = update.mod.new_value
            new_skill.total_cost = skill.total_cost + cost
            logger.info(
                "Skill updated",
                skill=record_name,
                activated=apply_activation,
                current=new_skill.current,
                mod=new_skill.mod,
                cost=cost,
            )

            old_state: dict[str, Any] = {path: skill}
            new_state: dict[str, Any] = {path: new_skill}

            new_stats: CombatStats | None = None
            if category is SkillCategory.COMBAT:
                combat_category = combat_category_of(name)
                stats = sheet.combat.get(combat_category, name)
                new_stats = derive_combat_stats(
                    shift_available_points(stats, skill, new_skill),
                    sheet.base_values,
                    combat_category,
                )
                if new_stats != stats:
                    old_state[f"combat.{combat_category}.{name}"] = stats
                    new_state[f"combat.{combat_category}.{name}"] = new_stats
                else:
                    new_stats = None

            self._db.update_skill(
                user_id,
                character_id,
                category,
                name,
                new_skill,
                adventure_points=new_adventure_points if new_adventure_points is not adventure_points else None,
            )
            if new_stats is not None:
                self._db.update_combat_stats(user_id, character_id, combat_category_of(name), {name: new_stats})

            points_delta = (
                PointsDelta(old=adventure_points, new=new_adventure_points)
                if new_adventure_points is not adventure_points
                else None
            )
            changes = Changes(old=dump_state(old_state), new=dump_state(new_state))
            record = self._record(
                character_id,
                RecordType.SKILL_CHANGED,
                record_name,
                changes,
                learning_method=update.learning_method,
                adventure_points=points_delta,
            )
            increase_cost = None
            if update.learning_method is not None:
                increase_cost = self._calculator.next_point_cost(
                    new_skill.current, new_skill.default_cost_category, update.learning_method
                )
            return UpdateResult(
                user_id=user_id,
                character_id=character_id,
                target=record_name,
                changes=changes,
                adventure_points=points_delta,
                learning_method=update.learning_method,
                increase_cost=increase_cost,
                history_record=record,
            )

    def get_skill_cost_quote(
        self,
        user_id: str,
        character_id: str,
        skill_reference: str,
        learning_method: LearningMethod | None,
    ) -> SkillCostQuote:
        """Price of activating a skill if needed and of its next point."""
        with operation_context("get_skill_cost_quote", user_id, character_id):
            category, name = parse_skill_reference(skill_reference)
            character = self._load(user_id, character_id)
            skill = character.character_sheet.skills.get(category, name)
            return self._calculator.quote(f"{category}/{name}", skill, learning_method)

    # =========================================================================
    # Base Values
    # =========================================================================

    def update_base_value(
        self,
        user_id: str,
        character_id: str,
        base_value_name: BaseValueName | str,
        update: BaseValueUpdate,
    ) -> UpdateResult:
        """Update start, by_lvl_up and/or mod of one base value.

        A ``by_lvl_up`` change moves ``current`` by the same amount. Changes
        to attack, parade or ranged attack base values recompute the
        combat section consuming them.
        """
        with operation_context("update_base_value", user_id, character_id):
            character = self._load(user_id, character_id)
            sheet = character.character_sheet
            base_value = sheet.base_values.get(base_value_name)
            name = BaseValueName(base_value_name)
            path = f"base_values.{name}"

            if update.start is None and update.by_lvl_up is None and update.mod is None:
                raise ValidationError("Base value update names no field group", field_name="base_value")
            if update.by_lvl_up is not None and name not in BASE_VALUES_UPDATABLE_BY_LEVEL_UP:
                raise ValidationError(
                    f"Base value '{name}' cannot be changed by level-up",
                    field_name="by_lvl_up",
                    invalid_value=str(name),
                )
            if update.start is not None:
                require_minimum(update.start.new_value, MIN_BASE_VALUE, "start")

            apply_start = update.start is not None and resolve_field(
                "start", base_value.start, update.start.initial_value, update.start.target
            )
            apply_by_lvl_up = update.by_lvl_up is not None and resolve_field(
                "by_lvl_up", base_value.by_lvl_up or 0, update.by_lvl_up.initial_value, update.by_lvl_up.target
            )
            apply_mod = update.mod is not None and resolve_field(
                "mod", base_value.mod, update.mod.initial_value, update.mod.target
            )

            if not (apply_start or apply_by_lvl_up or apply_mod):
                return self._replay(character, str(name), dump_state({path: base_value}))

            new_base_value = base_value.model_copy()
            if apply_start:
                new_base_value.start = update.start.new_value
            if apply_mod:
                new_base_value.mod = update.mod.new_value
            if apply_by_lvl_up:
                delta = update.by_lvl_up.new_value - (base_value.by_lvl_up or 0)
                new_base_value.by_lvl_up = update.by_lvl_up.new_value
                new_base_value.current = base_value.current + delta
            logger.info("Base value updated", base_value=name, current=new_base_value.current, mod=new_base_value.mod)

            old_state: dict[str, Any] = {path: base_value}
            new_state: dict[str, Any] = {path: new_base_value}
            changed_combat = self._cascade_combat(sheet.base_values, {name: new_base_value}, character)
            for category, stats in changed_combat.items():
                old_state[f"combat.{category}"] = sheet.combat.category(category)
                new_state[f"combat.{category}"] = stats

            self._db.update_base_value(user_id, character_id, name, new_base_value)
            for category, stats in changed_combat.items():
                self._db.update_combat_stats(user_id, character_id, category, stats)

            changes = Changes(old=dump_state(old_state), new=dump_state(new_state))
            record = self._record(character_id, RecordType.BASE_VALUE_CHANGED, str(name), changes)
            return UpdateResult(
                user_id=user_id,
                character_id=character_id,
                target=str(name),
                changes=changes,
                history_record=record,
            )

    # =========================================================================
    # Combat Stats
    # =========================================================================

    def update_combat_stats(
        self,
        user_id: str,
        character_id: str,
        combat_category: CombatCategory | str,
        skill_name: str,
        update: CombatStatsUpdate,
    ) -> UpdateResult:
        """Distribute a combat skill's available points onto attack and parade.

        Each point costs one available point. Ranged skills have no parade.
        """
        with operation_context("update_combat_stats", user_id, character_id):
            character = self._load(user_id, character_id)
            sheet = character.character_sheet
            stats = sheet.combat.get(combat_category, skill_name)
            category = CombatCategory(combat_category)
            path = f"combat.{category}.{skill_name}"
            record_name = f"{category}/{skill_name}"

            attack_points = update.skilled_attack_value.increased_points
            parade_points = update.skilled_parade_value.increased_points
            for field_name, points in (
                ("skilled_attack_value", attack_points),
                ("skilled_parade_value", parade_points),
            ):
                if points < 0:
                    raise InvalidPointsError(
                        "Points to increase must not be negative",
                        field_name=f"{field_name}.increased_points",
                        invalid_value=points,
                    )
            if category is CombatCategory.RANGED and parade_points != 0:
                raise ValidationError(
                    "Ranged combat skills have no parade value",
                    field_name="skilled_parade_value.increased_points",
                    invalid_value=parade_points,
                )

            apply_attack = resolve_field(
                "skilled_attack_value",
                stats.skilled_attack_value,
                update.skilled_attack_value.initial_value,
                update.skilled_attack_value.target,
            )
            apply_parade = resolve_field(
                "skilled_parade_value",
                stats.skilled_parade_value,
                update.skilled_parade_value.initial_value,
                update.skilled_parade_value.target,
            )

            if not (apply_attack or apply_parade):
                return self._replay(character, record_name, dump_state({path: stats}))

            spent = (attack_points if apply_attack else 0) + (parade_points if apply_parade else 0)
            cost = spent * COMBAT_STATS_INCREASE_COST
            if cost > stats.available_points:
                raise InsufficientBudgetError(
                    f"Not enough points to increase the combat stats of '{record_name}'",
                    required=cost,
                    available=stats.available_points,
                )

            new_stats = stats.model_copy()
            if apply_attack:
                new_stats.skilled_attack_value = int(update.skilled_attack_value.target)
            if apply_parade:
                new_stats.skilled_parade_value = int(update.skilled_parade_value.target)
            new_stats.available_points = stats.available_points - cost
            new_stats = derive_combat_stats(new_stats, sheet.base_values, category)
            logger.info("Combat stats updated", skill=record_name, cost=cost, available=new_stats.available_points)

            self._db.update_combat_stats(user_id, character_id, category, {skill_name: new_stats})

            changes = Changes(old=dump_state({path: stats}), new=dump_state({path: new_stats}))
            record = self._record(character_id, RecordType.COMBAT_STATS_CHANGED, record_name, changes)
            return UpdateResult(
                user_id=user_id,
                character_id=character_id,
                target=record_name,
                changes=changes,
                history_record=record,
            )

    # =========================================================================
    # Calculation Points
    # =========================================================================

    def update_calculation_points(
        self,
        user_id: str,
        character_id: str,
        update: CalculationPointsUpdate,
    ) -> UpdateResult:
        """Set the start and/or raise the total of the point budgets.

        Raising ``total`` raises ``available`` by the same amount.
        """
        with operation_context("update_calculation_points", user_id, character_id):
            character = self._load(user_id, character_id)
            section = character.character_sheet.calculation_points
            target = "calculation_points"

            if update.adventure_points is None and update.attribute_points is None:
                raise ValidationError("Calculation points update names no budget", field_name=target)

            resolved: dict[str, CalculationPoints] = {}
            for field_name, points_update in (
                ("adventure_points", update.adventure_points),
                ("attribute_points", update.attribute_points),
            ):
                if points_update is None:
                    continue
                new_points = self._resolve_points(field_name, getattr(section, field_name), points_update)
                if new_points is not None:
                    resolved[field_name] = new_points

            old_state = {f"calculation_points.{name}": getattr(section, name) for name in resolved}
            if not resolved:
                requested = [
                    name for name in ("adventure_points", "attribute_points") if getattr(update, name) is not None
                ]
                return self._replay(
                    character,
                    target,
                    dump_state({f"calculation_points.{name}": getattr(section, name) for name in requested}),
                )

            self._db.update_calculation_points(
                user_id,
                character_id,
                adventure_points=resolved.get("adventure_points"),
                attribute_points=resolved.get("attribute_points"),
            )

            deltas = {
                name: PointsDelta(old=getattr(section, name), new=points) for name, points in resolved.items()
            }
            new_state = {f"calculation_points.{name}": points for name, points in resolved.items()}
            changes = Changes(old=dump_state(old_state), new=dump_state(new_state))
            record = self._record(
                character_id,
                RecordType.CALCULATION_POINTS_CHANGED,
                target,
                changes,
                adventure_points=deltas.get("adventure_points"),
                attribute_points=deltas.get("attribute_points"),
            )
            return UpdateResult(
                user_id=user_id,
                character_id=character_id,
                target=target,
                changes=changes,
                adventure_points=deltas.get("adventure_points"),
                attribute_points=deltas.get("attribute_points"),
                history_record=record,
            )

    @staticmethod
    def _resolve_points(
        field_name: str, points: CalculationPoints, update: PointsUpdate
    ) -> CalculationPoints | None:
        if update.start is None and update.total is None:
            raise ValidationError(f"'{field_name}' update names no field group", field_name=field_name)
        if update.total is not None:
            require_positive(update.total.increased_points, f"{field_name}.total.increased_points")
        if update.start is not None:
            require_minimum(update.start.new_value, MIN_POINTS, f"{field_name}.start")

        apply_start = update.start is not None and resolve_field(
            f"{field_name}.start", points.start, update.start.initial_value, update.start.target
        )
        apply_total = update.total is not None and resolve_field(
            f"{field_name}.total", points.total, update.total.initial_value, update.total.target
        )
        if not (apply_start or apply_total):
            return None

        new_points = points.model_copy()
        if apply_start:
            new_points.start = update.start.new_value
        if apply_total:
            new_points.total = update.total.target
            new_points.available = points.available + update.total.increased_points
        logger.info("Calculation points updated", budget=field_name, total=new_points.total)
        return new_points

    # =========================================================================
    # Special Abilities
    # =========================================================================

    def add_special_ability(self, user_id: str, character_id: str, ability: str) -> UpdateResult:
        """Add a special ability; adding one the character has is a replay."""
        with operation_context("add_special_ability", user_id, character_id):
            ability = ability.strip()
            if not ability:
                raise ValidationError("Special ability must not be empty", field_name="special_ability")
            character = self._load(user_id, character_id)
            abilities = character.character_sheet.special_abilities
            path = "special_abilities"

            if ability in abilities:
                return self._replay(character, ability, {path: list(abilities)})

            new_abilities = [*abilities, ability]
            self._db.set_special_abilities(user_id, character_id, new_abilities)

            changes = Changes(old={path: list(abilities)}, new={path: new_abilities})
            record = self._record(character_id, RecordType.SPECIAL_ABILITIES_CHANGED, ability, changes)
            return UpdateResult(
                user_id=user_id,
                character_id=character_id,
                target=ability,
                changes=changes,
                history_record=record,
            )

    # =========================================================================
    # Helpers
    # =========================================================================

    @staticmethod
    def _cascade_combat(
        base_values: BaseValues,
        changed: dict[BaseValueName, BaseValue],
        character: Character,
    ) -> dict[CombatCategory, dict[str, CombatStats]]:
        """Recompute the combat sections consuming any changed base value."""
        categories = combat_categories_consuming(changed)
        if not categories:
            return {}
        updated = base_values.model_copy(deep=True)
        for name, value in changed.items():
            updated.set(name, value)
        combat = character.character_sheet.combat
        recomputed: dict[CombatCategory, dict[str, CombatStats]] = {}
        for category in sorted(categories):
            stats = recompute_combat_category(combat.category(category), updated, category)
            if stats != combat.category(category):
                recomputed[category] = stats
        return recomputed


__all__ = [
    "MutationService",
    "skill_record_name",
]
