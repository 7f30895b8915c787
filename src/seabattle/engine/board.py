"""Immutable 10×10 board for the Battleship engine."""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field, replace
from enum import Enum
from types import MappingProxyType
from typing import Any, Iterable, Iterator, Mapping

from seabattle.telemetry import get_meter, get_tracer

from .errors import ConflictError, InvalidArgumentError, OutOfRangeError
from .ship import Coordinate, Orientation, Ship

logger = logging.getLogger(__name__)
tracer = get_tracer("seabattle.engine.board")
meter = get_meter("seabattle.engine.board")

BOARD_SIZE = 10
DEFAULT_MAX_PLACEMENT_ATTEMPTS = 10_000

PLACEMENT_COUNTER = meter.create_counter(
    "seabattle_engine_ship_placements",
    unit="1",
    description="Number of attempted ship placements",
)

ATTACK_COUNTER = meter.create_counter(
    "seabattle_engine_attacks",
    unit="1",
    description="Attacks received by a board",
)


class CellState(Enum):
    """What a cell shows once ships and attacks are taken into account."""

    EMPTY = "empty"
    SHIP = "ship"
    HIT = "hit"
    MISS = "miss"


@dataclass(frozen=True)
class Cell:
    """One grid position: optional ship occupancy plus an attacked flag."""

    ship_id: str | None = None
    is_attacked: bool = False

    @property
    def state(self) -> CellState:
        if self.is_attacked:
            return CellState.HIT if self.ship_id is not None else CellState.MISS
        return CellState.SHIP if self.ship_id is not None else CellState.EMPTY


Grid = tuple[tuple[Cell, ...], ...]

_EMPTY_CELL = Cell()


def _empty_grid() -> Grid:
    row = tuple(_EMPTY_CELL for _ in range(BOARD_SIZE))
    return tuple(row for _ in range(BOARD_SIZE))


@dataclass(frozen=True)
class Board:
    """A player's grid and the registry of ships placed on it.

    Boards are values: ``place_ship`` and ``receive_attack`` return a new
    board and leave the receiver untouched. Rows that an operation does not
    touch are shared between the old and the new board.
    """

    cells: Grid = field(default_factory=_empty_grid)
    ships: Mapping[str, Ship] = field(default_factory=dict, hash=False)
    owner: str = field(default="unknown", compare=False)

    def __post_init__(self) -> None:
        cells = self.cells
        if not isinstance(cells, (tuple, list)) or len(cells) != BOARD_SIZE:
            raise InvalidArgumentError(f"Board must have {BOARD_SIZE} rows.")
        rows = []
        for row in cells:
            if not isinstance(row, (tuple, list)) or len(row) != BOARD_SIZE:
                raise InvalidArgumentError(f"Every board row must have {BOARD_SIZE} cells.")
            if not all(isinstance(cell, Cell) for cell in row):
                raise InvalidArgumentError("Board rows may only contain Cell values.")
            rows.append(tuple(row))

        if not isinstance(self.ships, Mapping):
            raise InvalidArgumentError("Board ships must be a mapping of ship id to Ship.")
        for ship_id, ship in self.ships.items():
            if not isinstance(ship, Ship) or ship.id != ship_id:
                raise InvalidArgumentError(f"Ship registry entry {ship_id!r} is inconsistent.")
        for row in rows:
            for cell in row:
                if cell.ship_id is not None and cell.ship_id not in self.ships:
                    raise InvalidArgumentError(
                        f"Cell references unregistered ship {cell.ship_id!r}."
                    )

        object.__setattr__(self, "cells", tuple(rows))
        object.__setattr__(self, "ships", MappingProxyType(dict(self.ships)))

    @classmethod
    def empty(cls, owner: str = "unknown") -> Board:
        """Return a board with no ships and no attacks."""
        return cls(owner=owner)

    def is_valid_coordinate(self, coord: Coordinate) -> bool:
        """Check whether a coordinate lies inside the board boundaries."""
        return 0 <= coord.row < BOARD_SIZE and 0 <= coord.col < BOARD_SIZE

    def _checked(self, pos: Any) -> Coordinate:
        coord = Coordinate.parse(pos)
        if not self.is_valid_coordinate(coord):
            raise OutOfRangeError(f"Position ({coord.row}, {coord.col}) is outside the board.")
        return coord

    def cell_at(self, pos: Any) -> Cell:
        coord = self._checked(pos)
        return self.cells[coord.row][coord.col]

    def coordinates(self) -> Iterator[Coordinate]:
        for row in range(BOARD_SIZE):
            for col in range(BOARD_SIZE):
                yield Coordinate(row, col)

    def _with_cells(self, updates: Mapping[Coordinate, Cell], ships: Mapping[str, Ship]) -> Board:
        rows = list(self.cells)
        for row_index in {coord.row for coord in updates}:
            row = list(rows[row_index])
            for coord, cell in updates.items():
                if coord.row == row_index:
                    row[coord.col] = cell
            rows[row_index] = tuple(row)
        return replace(self, cells=tuple(rows), ships=ships)

    def place_ship(self, ship: Ship, start: Any, horizontal: bool) -> Board:
        """Return a new board with ``ship`` covering ``length`` cells from ``start``.

        The run extends to the right when ``horizontal`` is true and downward
        otherwise.
        """
        if not isinstance(ship, Ship):
            raise InvalidArgumentError(f"Expected a Ship, got {ship!r}.")
        if not isinstance(horizontal, bool):
            raise InvalidArgumentError(f"Orientation flag must be a bool, got {horizontal!r}.")
        start = Coordinate.parse(start)

        with tracer.start_as_current_span("board.place_ship") as span:
            span.set_attribute("ship.id", ship.id)
            span.set_attribute("ship.length", ship.length)
            span.set_attribute("ship.start.row", start.row)
            span.set_attribute("ship.start.col", start.col)
            span.set_attribute("ship.horizontal", horizontal)
            span.set_attribute("board.owner", self.owner)

            end = start.offset(ship.length - 1, horizontal)
            if not (self.is_valid_coordinate(start) and self.is_valid_coordinate(end)):
                PLACEMENT_COUNTER.add(1, attributes={"result": "out_of_range", "owner": self.owner})
                logger.debug(
                    "ship_placement_out_of_range",
                    extra={"owner": self.owner, "ship_id": ship.id, "row": start.row, "col": start.col},
                )
                raise OutOfRangeError(
                    f"Ship {ship.id!r} from ({start.row}, {start.col}) would end at "
                    f"({end.row}, {end.col}), outside the board."
                )

            if ship.id in self.ships:
                PLACEMENT_COUNTER.add(1, attributes={"result": "duplicate", "owner": self.owner})
                logger.warning(
                    "ship_placement_duplicate", extra={"owner": self.owner, "ship_id": ship.id}
                )
                raise ConflictError(f"Ship {ship.id!r} is already placed on this board.")

            covered = [start.offset(delta, horizontal) for delta in range(ship.length)]
            for coord in covered:
                occupant = self.cells[coord.row][coord.col].ship_id
                if occupant is not None:
                    PLACEMENT_COUNTER.add(1, attributes={"result": "overlap", "owner": self.owner})
                    logger.debug(
                        "ship_placement_overlap",
                        extra={"owner": self.owner, "ship_id": ship.id, "occupant": occupant},
                    )
                    raise ConflictError(
                        f"Ship {ship.id!r} overlaps {occupant!r} at ({coord.row}, {coord.col})."
                    )

            placed = Cell(ship_id=ship.id, is_attacked=False)
            ships = dict(self.ships)
            ships[ship.id] = ship
            board = self._with_cells({coord: placed for coord in covered}, ships)

            PLACEMENT_COUNTER.add(1, attributes={"result": "success", "owner": self.owner})
            logger.info(
                "ship_placed",
                extra={
                    "owner": self.owner,
                    "ship_id": ship.id,
                    "horizontal": horizontal,
                    "row": start.row,
                    "col": start.col,
                },
            )
            return board

    @classmethod
    def random_placement(
        cls,
        ships: Iterable[Ship],
        rng: random.Random | None = None,
        max_attempts: int = DEFAULT_MAX_PLACEMENT_ATTEMPTS,
        owner: str = "unknown",
    ) -> Board:
        """Place every ship at a uniformly random start and orientation."""
        rng = rng or random.Random()
        board = cls.empty(owner=owner)
        with tracer.start_as_current_span("board.random_placement") as span:
            span.set_attribute("board.owner", owner)
            for ship in ships:
                if not isinstance(ship, Ship):
                    raise InvalidArgumentError(f"Expected a Ship in the fleet, got {ship!r}.")
                if ship.id in board.ships:
                    raise ConflictError(f"Ship {ship.id!r} appears twice in the fleet.")
                for attempt in range(1, max_attempts + 1):
                    start = Coordinate(rng.randrange(BOARD_SIZE), rng.randrange(BOARD_SIZE))
                    orientation = rng.choice(list(Orientation))
                    try:
                        board = board.place_ship(ship, start, orientation.is_horizontal)
                    except (OutOfRangeError, ConflictError):
                        continue
                    logger.debug(
                        "random_ship_placed",
                        extra={"ship_id": ship.id, "attempts": attempt, "owner": owner},
                    )
                    break
                else:
                    logger.error(
                        "random_placement_exhausted",
                        extra={"ship_id": ship.id, "attempts": max_attempts, "owner": owner},
                    )
                    raise ConflictError(
                        f"Could not place ship {ship.id!r} after {max_attempts} attempts."
                    )
            span.set_attribute("board.ship_count", len(board.ships))
        return board

    def receive_attack(self, pos: Any) -> Board:
        """Return a new board with the cell at ``pos`` marked as attacked."""
        coord = Coordinate.parse(pos)
        with tracer.start_as_current_span("board.receive_attack") as span:
            span.set_attribute("attack.row", coord.row)
            span.set_attribute("attack.col", coord.col)
            span.set_attribute("board.owner", self.owner)
            if not self.is_valid_coordinate(coord):
                logger.error(
                    "attack_out_of_bounds",
                    extra={"row": coord.row, "col": coord.col, "owner": self.owner},
                )
                raise OutOfRangeError(f"Position ({coord.row}, {coord.col}) is outside the board.")

            cell = self.cells[coord.row][coord.col]
            if cell.is_attacked:
                logger.info(
                    "attack_duplicate",
                    extra={"row": coord.row, "col": coord.col, "owner": self.owner},
                )
                raise ConflictError("This position has already been attacked.")

            ships: Mapping[str, Ship] = self.ships
            if cell.ship_id is not None:
                ships = dict(self.ships)
                ships[cell.ship_id] = ships[cell.ship_id].hit()
            board = self._with_cells({coord: replace(cell, is_attacked=True)}, ships)

            outcome = board.cells[coord.row][coord.col].state.value
            span.set_attribute("attack.outcome", outcome)
            ATTACK_COUNTER.add(1, attributes={"outcome": outcome, "owner": self.owner})
            logger.info(
                "attack_resolved",
                extra={
                    "row": coord.row,
                    "col": coord.col,
                    "outcome": outcome,
                    "ship_id": cell.ship_id,
                    "owner": self.owner,
                },
            )
            return board

    def all_ships_sunk(self) -> bool:
        """Check whether every registered ship is sunk (true for an empty registry)."""
        return all(ship.is_sunk() for ship in self.ships.values())

    def cell_states(self) -> tuple[tuple[CellState, ...], ...]:
        return tuple(tuple(cell.state for cell in row) for row in self.cells)

    def has_received_attack(self) -> bool:
        return any(cell.is_attacked for row in self.cells for cell in row)

    def ship_cells(self, ship_id: str) -> list[Coordinate]:
        """Return the coordinates covered by ``ship_id`` in row-major order."""
        return [
            coord
            for coord in self.coordinates()
            if self.cells[coord.row][coord.col].ship_id == ship_id
        ]

    def unattacked_coordinates(self) -> list[Coordinate]:
        return [
            coord
            for coord in self.coordinates()
            if not self.cells[coord.row][coord.col].is_attacked
        ]
