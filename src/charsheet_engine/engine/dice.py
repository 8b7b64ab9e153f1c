"""Dice rolling for roll-based level-up effects.

Rolls are evaluated with the d20 library. A caller may also bring its own
roll (for example one made at the table); :func:`validate_roll` checks such
a roll against the expression it claims to come from.
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Any

import d20

from charsheet_engine.core.constants import (
    LEVEL_UP_DICE_EXPRESSION,
    LEVEL_UP_DICE_MAX_TOTAL,
    LEVEL_UP_DICE_MIN_TOTAL,
)
from charsheet_engine.core.exceptions import DiceRollError
from charsheet_engine.core.logging import get_logger
from charsheet_engine.models.character import LevelUpRoll


logger = get_logger(__name__)


@dataclass(frozen=True)
class DiceResult:
    """Outcome of one roll.

    Attributes:
        expression: The dice expression that was rolled.
        total: Sum of dice and modifier.
        dice: Individual die faces that were kept.
        modifier: Static part of the total.
    """

    expression: str
    total: int
    dice: list[int]
    modifier: int

    def to_level_up_roll(self) -> LevelUpRoll:
        return LevelUpRoll(dice=self.expression, value=self.total)


class DiceRoller:
    """Rolls dice expressions with d20.

    Example:
        >>> roller = DiceRoller(seed=7)
        >>> 3 <= roller.roll_level_up().total <= 6
        True
    """

    def __init__(self, *, seed: int | None = None) -> None:
        """Initialize the dice roller.

        Args:
            seed: Optional random seed for reproducible rolls.
        """
        self._seed = seed
        if seed is not None:
            random.seed(seed)

    def roll(self, expression: str) -> DiceResult:
        """Roll dice according to the given expression.

        Args:
            expression: Dice expression such as ``1d4+2``.

        Returns:
            DiceResult with the total and the individual dice.

        Raises:
            DiceRollError: If the expression is empty or invalid.
        """
        if not expression or not expression.strip():
            raise DiceRollError("Empty dice expression", expression=expression)

        try:
            result: d20.RollResult = d20.roll(expression)
        except d20.RollError as exc:
            raise DiceRollError(f"Invalid dice expression: {exc}", expression=expression) from exc

        dice_values = self._extract_dice_values(result.expr)
        rolled = DiceResult(
            expression=expression,
            total=result.total,
            dice=dice_values,
            modifier=result.total - sum(dice_values),
        )
        logger.info("Dice rolled", expression=expression, total=result.total)
        return rolled

    def roll_level_up(self) -> DiceResult:
        """Roll the dice of roll-based level-up effects."""
        return self.roll(LEVEL_UP_DICE_EXPRESSION)

    def _extract_dice_values(self, expr: Any) -> list[int]:
        values: list[int] = []

        def traverse(node: Any) -> None:
            if isinstance(node, d20.Dice):
                for die in node.values:
                    if die.kept:
                        values.append(die.number)
            elif hasattr(node, "children"):
                for child in node.children:
                    traverse(child)

        traverse(expr)
        return values


def validate_roll(roll: LevelUpRoll, expression: str = LEVEL_UP_DICE_EXPRESSION) -> LevelUpRoll:
    """Check a caller-supplied roll against the expected dice expression.

    Raises:
        DiceRollError: If the expression differs or the value is out of range.
    """
    if roll.dice != expression:
        raise DiceRollError(
            f"Roll must use dice expression {expression}",
            expression=roll.dice,
            details={"expected_expression": expression},
        )
    if not LEVEL_UP_DICE_MIN_TOTAL <= roll.value <= LEVEL_UP_DICE_MAX_TOTAL:
        raise DiceRollError(
            f"Roll value must be between {LEVEL_UP_DICE_MIN_TOTAL} and {LEVEL_UP_DICE_MAX_TOTAL}",
            expression=roll.dice,
            details={"value": roll.value},
        )
    return roll


__all__ = [
    "DiceResult",
    "DiceRoller",
    "validate_roll",
]
