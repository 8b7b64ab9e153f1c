"""Tests for base value and combat stat propagation."""

from __future__ import annotations

import pytest

from charsheet_engine.models import (
    Attribute,
    AttributeName,
    Attributes,
    BaseValue,
    BaseValueName,
    BaseValues,
    CombatCategory,
    CombatStats,
    Skill,
)
from charsheet_engine.rules.derived import (
    apply_formula_value,
    base_values_reading,
    combat_categories_consuming,
    derive_base_values,
    derive_combat_stats,
    recompute_base_values,
    round_half_up,
    shift_available_points,
)


def make_attributes(value: int = 5, **overrides: int) -> Attributes:
    attributes = Attributes()
    for name in AttributeName:
        attributes.set(name, Attribute(start=value, current=overrides.get(name.value, value)))
    return attributes


class TestRounding:
    """Tests for half-up rounding."""

    @pytest.mark.parametrize(("value", "expected"), [(2.5, 3), (3.5, 4), (4.4, 4), (5.2, 5), (0.5, 1)])
    def test_round_half_up(self, value: float, expected: int) -> None:
        """Test halves round up instead of to even."""
        assert round_half_up(value) == expected


class TestBaseValueFormulas:
    """Tests for the attribute to base value formulas."""

    def test_all_fives(self) -> None:
        """Test formula results for a balanced character."""
        values = derive_base_values(make_attributes())

        assert values == {
            BaseValueName.HEALTH_POINTS: 35,
            BaseValueName.MENTAL_HEALTH: 23,
            BaseValueName.INITIATIVE_BASE_VALUE: 4,
            BaseValueName.ATTACK_BASE_VALUE: 30,
            BaseValueName.PARADE_BASE_VALUE: 30,
            BaseValueName.RANGED_ATTACK_BASE_VALUE: 30,
        }

    def test_mods_count(self) -> None:
        """Test attribute mods are part of every term."""
        attributes = make_attributes()
        attributes.courage.mod = 3

        values = derive_base_values(attributes, [BaseValueName.INITIATIVE_BASE_VALUE, BaseValueName.ATTACK_BASE_VALUE])

        # (2 * 8 + 5 + 5) / 5 = 5.2
        assert values == {BaseValueName.INITIATIVE_BASE_VALUE: 5, BaseValueName.ATTACK_BASE_VALUE: 36}

    def test_initiative_rounding(self) -> None:
        """Test initiative rounds to the nearest integer."""
        attributes = make_attributes(courage=6, dexterity=5, endurance=4)
        attributes.endurance.mod = 1
        # (12 + 5 + 5) / 5 = 4.4, then one more dexterity gives 4.6
        assert derive_base_values(attributes, [BaseValueName.INITIATIVE_BASE_VALUE]) == {
            BaseValueName.INITIATIVE_BASE_VALUE: 4
        }
        attributes.dexterity.mod = 1
        assert derive_base_values(attributes, [BaseValueName.INITIATIVE_BASE_VALUE]) == {
            BaseValueName.INITIATIVE_BASE_VALUE: 5
        }

    def test_names_without_formula_skipped(self) -> None:
        """Test base values without a formula are ignored."""
        assert derive_base_values(make_attributes(), [BaseValueName.LUCK_POINTS]) == {}

    def test_readers(self) -> None:
        """Test which base values read an attribute."""
        assert base_values_reading(AttributeName.COURAGE) == {
            BaseValueName.MENTAL_HEALTH,
            BaseValueName.INITIATIVE_BASE_VALUE,
            BaseValueName.ATTACK_BASE_VALUE,
        }
        assert base_values_reading("intelligence") == frozenset()
        assert base_values_reading("charisma") == frozenset()

    def test_apply_formula_keeps_level_up_part(self) -> None:
        """Test current is the formula value plus level-up increments."""
        base_value = BaseValue(start=35, current=39, by_formula=35, by_lvl_up=4)

        updated = apply_formula_value(base_value, 37)

        assert updated.by_formula == 37
        assert updated.current == 41
        assert base_value.current == 39

    def test_recompute_returns_only_changes(self) -> None:
        """Test unchanged base values are left out."""
        attributes = make_attributes()
        base_values = BaseValues()
        for name, value in derive_base_values(attributes).items():
            base_values.set(name, apply_formula_value(base_values.get(name), value))

        attributes.courage.current = 6
        changed = recompute_base_values(attributes, base_values, base_values_reading("courage"))

        # initiative stays at round(4.4) = 4
        assert set(changed) == {BaseValueName.MENTAL_HEALTH, BaseValueName.ATTACK_BASE_VALUE}
        assert changed[BaseValueName.ATTACK_BASE_VALUE].current == 32


class TestCombatStats:
    """Tests for combat stat derivation."""

    @pytest.fixture
    def base_values(self) -> BaseValues:
        base_values = BaseValues()
        base_values.attack_base_value = BaseValue(current=30, mod=2)
        base_values.parade_base_value = BaseValue(current=28)
        base_values.ranged_attack_base_value = BaseValue(current=31, mod=-1)
        return base_values

    def test_melee(self, base_values: BaseValues) -> None:
        """Test melee attack and parade include base value mods."""
        stats = CombatStats(available_points=10, handling=18, skilled_attack_value=4, skilled_parade_value=3)

        derived = derive_combat_stats(stats, base_values, CombatCategory.MELEE)

        assert derived.attack_value == 36
        assert derived.parade_value == 31
        assert derived.available_points == 10

    def test_ranged_has_no_parade(self, base_values: BaseValues) -> None:
        """Test ranged parade fields are forced to zero."""
        stats = CombatStats(skilled_attack_value=5, skilled_parade_value=2, parade_value=9)

        derived = derive_combat_stats(stats, base_values, "ranged")

        assert derived.attack_value == 35
        assert derived.parade_value == 0
        assert derived.skilled_parade_value == 0

    def test_shift_available_points(self) -> None:
        """Test available points follow current plus mod of the skill."""
        stats = CombatStats(available_points=18, handling=18)

        shifted = shift_available_points(stats, Skill(current=10, mod=0), Skill(current=13, mod=-1))

        assert shifted.available_points == 20

    def test_consumers(self) -> None:
        """Test which combat sections read which base values."""
        assert combat_categories_consuming([BaseValueName.ATTACK_BASE_VALUE]) == {CombatCategory.MELEE}
        assert combat_categories_consuming(["ranged_attack_base_value", "mental_health"]) == {CombatCategory.RANGED}
        assert combat_categories_consuming([BaseValueName.HEALTH_POINTS]) == frozenset()
