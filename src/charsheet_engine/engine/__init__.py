"""Dice engine for the character sheet engine.

Submodules:
    dice: Level-up dice rolling and roll validation (d20 library)
"""

from __future__ import annotations

from charsheet_engine.engine.dice import DiceResult, DiceRoller, validate_roll


__all__ = [
    "DiceResult",
    "DiceRoller",
    "validate_roll",
]
