"""Error taxonomy raised by the game engine."""

from __future__ import annotations


class BattleshipError(ValueError):
    """Base class for rule violations reported by the engine."""


class InvalidArgumentError(BattleshipError):
    """A board, ship, position or orientation is malformed."""


class OutOfRangeError(BattleshipError):
    """A position lies outside the board."""


class ConflictError(BattleshipError):
    """The move clashes with existing board state (overlap, duplicate, re-attack)."""
