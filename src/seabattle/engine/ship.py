"""Ship domain model for the Battleship engine."""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any

from .errors import InvalidArgumentError

MIN_SHIP_LENGTH = 2
MAX_SHIP_LENGTH = 5


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


@dataclass(frozen=True)
class Coordinate:
    """Immutable board coordinate."""

    row: int
    col: int

    def __post_init__(self) -> None:
        if not (_is_int(self.row) and _is_int(self.col)):
            raise InvalidArgumentError(
                f"Coordinate must be a pair of integers, got ({self.row!r}, {self.col!r})."
            )

    @classmethod
    def parse(cls, value: Any) -> Coordinate:
        """Accept a Coordinate or a ``(row, col)`` pair."""
        if isinstance(value, Coordinate):
            return value
        if isinstance(value, (tuple, list)) and len(value) == 2:
            return cls(value[0], value[1])
        raise InvalidArgumentError(f"Position must be a (row, col) pair, got {value!r}.")

    def offset(self, delta: int, horizontal: bool) -> Coordinate:
        if horizontal:
            return Coordinate(self.row, self.col + delta)
        return Coordinate(self.row + delta, self.col)


class Orientation(Enum):
    """Allowed ship orientations."""

    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"

    @property
    def is_horizontal(self) -> bool:
        return self is Orientation.HORIZONTAL


class ShipType(Enum):
    """Ships of the standard fleet, keyed by identifier and length."""

    CARRIER = ("carrier", 5)
    BATTLESHIP = ("battleship", 4)
    CRUISER = ("cruiser", 3)
    SUBMARINE = ("submarine", 3)
    DESTROYER = ("destroyer", 2)

    def __init__(self, ship_id: str, length: int) -> None:
        self.ship_id = ship_id
        self.length = length


@dataclass(frozen=True)
class Ship:
    """A ship tracked by identifier, length and the number of hits taken."""

    id: str
    length: int
    hits: int = 0

    def __post_init__(self) -> None:
        if not isinstance(self.id, str) or not self.id:
            raise InvalidArgumentError(f"Ship id must be a non-empty string, got {self.id!r}.")
        if not _is_int(self.length):
            raise InvalidArgumentError(f"Ship length must be an integer, got {self.length!r}.")
        if not MIN_SHIP_LENGTH <= self.length <= MAX_SHIP_LENGTH:
            raise InvalidArgumentError(
                f"Ship length must be between {MIN_SHIP_LENGTH} and {MAX_SHIP_LENGTH}, "
                f"got {self.length}."
            )
        if not _is_int(self.hits) or self.hits < 0:
            raise InvalidArgumentError(f"Ship hits must be a non-negative integer, got {self.hits!r}.")

    @classmethod
    def create(cls, id: str, length: int) -> Ship:
        """Build an undamaged ship."""
        return cls(id=id, length=length)

    @classmethod
    def from_type(cls, ship_type: ShipType) -> Ship:
        return cls.create(ship_type.ship_id, ship_type.length)

    def hit(self) -> Ship:
        """Return a copy of the ship with one more hit recorded."""
        return replace(self, hits=self.hits + 1)

    def is_sunk(self) -> bool:
        """Determine whether the ship has taken at least ``length`` hits."""
        return self.length <= self.hits


def standard_fleet() -> list[Ship]:
    """Return one undamaged ship of each standard type."""
    return [Ship.from_type(ship_type) for ship_type in ShipType]
