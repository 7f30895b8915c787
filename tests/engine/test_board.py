"""Tests for the Board mechanics."""

import itertools
import random

import pytest

from seabattle.engine.board import BOARD_SIZE, Board, Cell, CellState
from seabattle.engine.errors import ConflictError, InvalidArgumentError, OutOfRangeError
from seabattle.engine.ship import Coordinate, Orientation, Ship, standard_fleet


def _count(board: Board, state: CellState) -> int:
    return sum(cell is state for row in board.cell_states() for cell in row)


def test_empty_board_has_no_ships_and_no_attacks() -> None:
    board = Board.empty()
    assert len(board.cells) == BOARD_SIZE
    assert all(len(row) == BOARD_SIZE for row in board.cells)
    assert _count(board, CellState.EMPTY) == BOARD_SIZE * BOARD_SIZE
    assert dict(board.ships) == {}
    assert not board.has_received_attack()


def test_board_without_ships_is_vacuously_sunk() -> None:
    assert Board.empty().all_ships_sunk()


@pytest.mark.parametrize("length", [2, 3, 4, 5])
@pytest.mark.parametrize("horizontal", [True, False])
def test_every_in_bounds_placement_covers_length_cells(length: int, horizontal: bool) -> None:
    ship = Ship.create("scout", length)
    empty = Board.empty()
    last_start = BOARD_SIZE - length
    for row in range(BOARD_SIZE if horizontal else last_start + 1):
        for col in range(last_start + 1 if horizontal else BOARD_SIZE):
            board = empty.place_ship(ship, (row, col), horizontal)
            assert _count(board, CellState.SHIP) == length
            assert board.ships["scout"] == ship


@pytest.mark.parametrize("length", [2, 3, 4, 5])
@pytest.mark.parametrize("horizontal", [True, False])
def test_placement_past_the_edge_is_out_of_range(length: int, horizontal: bool) -> None:
    ship = Ship.create("scout", length)
    board = Board.empty()
    first_overflow = BOARD_SIZE - length + 1
    for lane in range(BOARD_SIZE):
        for offset in range(first_overflow, BOARD_SIZE):
            start = (lane, offset) if horizontal else (offset, lane)
            with pytest.raises(OutOfRangeError):
                board.place_ship(ship, start, horizontal)
    with pytest.raises(OutOfRangeError):
        board.place_ship(ship, (-1, 0), horizontal)


def test_overlapping_placement_conflicts_and_leaves_board_unchanged() -> None:
    board = Board.empty().place_ship(Ship.create("cruiser", 3), (0, 0), True)
    cells_before = board.cells

    with pytest.raises(ConflictError):
        board.place_ship(Ship.create("destroyer", 2), (0, 1), False)

    assert board.cells == cells_before
    assert set(board.ships) == {"cruiser"}


def test_placing_the_same_ship_twice_conflicts() -> None:
    ship = Ship.create("destroyer", 2)
    board = Board.empty().place_ship(ship, (0, 0), True)
    with pytest.raises(ConflictError):
        board.place_ship(ship, (5, 5), True)


def test_place_ship_does_not_mutate_input() -> None:
    empty = Board.empty()
    placed = empty.place_ship(Ship.create("destroyer", 2), Coordinate(4, 4), False)
    assert _count(empty, CellState.SHIP) == 0
    assert placed.cell_at((4, 4)) == Cell(ship_id="destroyer", is_attacked=False)
    assert placed.cell_at((5, 4)) == Cell(ship_id="destroyer", is_attacked=False)


@pytest.mark.parametrize(
    ("ship", "start", "horizontal"),
    [
        ("destroyer", (0, 0), True),
        (Ship.create("destroyer", 2), "A1", True),
        (Ship.create("destroyer", 2), (0, 0), 1),
        (Ship.create("destroyer", 2), (0, 0), None),
    ],
)
def test_place_ship_rejects_malformed_arguments(ship, start, horizontal) -> None:
    with pytest.raises(InvalidArgumentError):
        Board.empty().place_ship(ship, start, horizontal)


def test_board_rejects_malformed_shapes() -> None:
    with pytest.raises(InvalidArgumentError):
        Board(cells=((Cell(),) * BOARD_SIZE,) * (BOARD_SIZE - 1))
    with pytest.raises(InvalidArgumentError):
        Board(cells=((Cell(),) * (BOARD_SIZE + 1),) * BOARD_SIZE)
    with pytest.raises(InvalidArgumentError):
        Board(cells=(("x",) * BOARD_SIZE,) * BOARD_SIZE)


def test_board_rejects_cells_pointing_at_unregistered_ships() -> None:
    row = (Cell(ship_id="ghost"),) + (Cell(),) * (BOARD_SIZE - 1)
    cells = (row,) + ((Cell(),) * BOARD_SIZE,) * (BOARD_SIZE - 1)
    with pytest.raises(InvalidArgumentError):
        Board(cells=cells)


def test_ship_registry_is_read_only() -> None:
    board = Board.empty().place_ship(Ship.create("destroyer", 2), (0, 0), True)
    with pytest.raises(TypeError):
        board.ships["destroyer"] = Ship.create("destroyer", 2)  # type: ignore[index]


def test_attack_on_empty_board_is_a_miss() -> None:
    board = Board.empty().receive_attack((0, 0))
    states = board.cell_states()
    assert states[0][0] is CellState.MISS
    assert _count(board, CellState.EMPTY) == BOARD_SIZE * BOARD_SIZE - 1
    assert board.has_received_attack()


def test_repeated_attack_conflicts_and_first_attack_changes_one_cell() -> None:
    before = Board.empty().place_ship(Ship.create("cruiser", 3), (2, 2), False)
    after = before.receive_attack((3, 2))

    with pytest.raises(ConflictError):
        after.receive_attack((3, 2))

    changed = [
        (row, col)
        for row in range(BOARD_SIZE)
        for col in range(BOARD_SIZE)
        if before.cells[row][col] != after.cells[row][col]
    ]
    assert changed == [(3, 2)]
    assert before.ships["cruiser"].hits == 0
    assert after.ships["cruiser"].hits == 1


@pytest.mark.parametrize(
    ("pos", "error"),
    [
        ((10, 0), OutOfRangeError),
        ((0, 10), OutOfRangeError),
        ((-1, 3), OutOfRangeError),
        ("B2", InvalidArgumentError),
        ((1.0, 2), InvalidArgumentError),
    ],
)
def test_attack_rejects_bad_positions(pos, error) -> None:
    with pytest.raises(error):
        Board.empty().receive_attack(pos)


def test_two_cell_ship_sinks_after_both_cells_hit() -> None:
    board = Board.empty().place_ship(Ship.create("destroyer", 2), (0, 0), True)
    board = board.receive_attack((0, 0))
    assert not board.all_ships_sunk()
    board = board.receive_attack((0, 1))

    assert board.ships["destroyer"].is_sunk()
    assert board.all_ships_sunk()
    states = board.cell_states()
    assert states[0][0] is CellState.HIT
    assert states[0][1] is CellState.HIT


@pytest.mark.parametrize("length", [2, 3, 4, 5])
def test_ship_sinks_after_its_cells_are_hit_in_any_order(length: int) -> None:
    placed = Board.empty().place_ship(Ship.create("scout", length), (5, 5), False)
    cells = placed.ship_cells("scout")
    assert cells == [Coordinate(5, 5).offset(step, False) for step in range(length)]

    for order in itertools.permutations(cells):
        board = placed
        for index, coord in enumerate(order, start=1):
            board = board.receive_attack(coord)
            assert board.ships["scout"].hits == index
            assert board.ships["scout"].is_sunk() is (index == length)


def test_hits_are_attributed_to_the_ship_in_the_cell() -> None:
    board = (
        Board.empty()
        .place_ship(Ship.create("destroyer", 2), (0, 0), True)
        .place_ship(Ship.create("submarine", 3), (2, 0), False)
    )
    board = board.receive_attack((3, 0)).receive_attack((9, 9))
    assert board.ships["submarine"].hits == 1
    assert board.ships["destroyer"].hits == 0


def test_cell_states_are_exhaustive_and_exclusive() -> None:
    board = (
        Board.empty()
        .place_ship(Ship.create("battleship", 4), (1, 1), True)
        .receive_attack((1, 1))
        .receive_attack((8, 8))
    )
    flat = [state for row in board.cell_states() for state in row]
    assert len(flat) == BOARD_SIZE * BOARD_SIZE
    assert all(isinstance(state, CellState) for state in flat)
    assert flat.count(CellState.HIT) == 1
    assert flat.count(CellState.MISS) == 1
    assert flat.count(CellState.SHIP) == 3
    assert flat.count(CellState.EMPTY) == BOARD_SIZE * BOARD_SIZE - 5


def test_random_placement_populates_full_fleet_without_overlap() -> None:
    board = Board.random_placement(standard_fleet(), rng=random.Random(123))
    assert set(board.ships) == {"carrier", "battleship", "cruiser", "submarine", "destroyer"}
    assert _count(board, CellState.SHIP) == 17
    for ship_id, ship in board.ships.items():
        coords = board.ship_cells(ship_id)
        assert len(coords) == ship.length
        rows = {coord.row for coord in coords}
        cols = {coord.col for coord in coords}
        assert len(rows) == 1 or len(cols) == 1


def test_random_placement_is_reproducible_with_seed() -> None:
    first = Board.random_placement(standard_fleet(), rng=random.Random(9))
    second = Board.random_placement(standard_fleet(), rng=random.Random(9))
    assert first == second


def test_random_placement_rejects_duplicate_ids() -> None:
    fleet = [Ship.create("destroyer", 2), Ship.create("destroyer", 2)]
    with pytest.raises(ConflictError):
        Board.random_placement(fleet, rng=random.Random(1))


def test_random_placement_rejects_non_ship_entries() -> None:
    with pytest.raises(InvalidArgumentError):
        Board.random_placement(["destroyer"], rng=random.Random(1))


class _CornerRandom(random.Random):
    """Always proposes the bottom-right corner, facing right."""

    def randrange(self, *args, **kwargs) -> int:
        return BOARD_SIZE - 1

    def choice(self, seq):
        return Orientation.HORIZONTAL


def test_random_placement_gives_up_after_max_attempts() -> None:
    with pytest.raises(ConflictError):
        Board.random_placement([Ship.create("carrier", 5)], rng=_CornerRandom(), max_attempts=25)


def test_unattacked_coordinates_shrink_with_each_attack() -> None:
    board = Board.empty().receive_attack((0, 0)).receive_attack((4, 7))
    remaining = board.unattacked_coordinates()
    assert len(remaining) == BOARD_SIZE * BOARD_SIZE - 2
    assert Coordinate(0, 0) not in remaining
    assert Coordinate(4, 7) not in remaining
