"""Tests for the display projection."""

import random

from seabattle.engine.board import BOARD_SIZE, Board, CellState
from seabattle.engine.display import project
from seabattle.engine.game import GameState, Winner, apply_user_attack, new_game
from seabattle.engine.ship import Ship


def _state_with_destroyers() -> GameState:
    board = Board.empty().place_ship(Ship.create("destroyer", 2), (0, 0), True)
    return GameState(user_board=board, computer_board=board)


def test_computer_ships_are_masked_until_hit() -> None:
    state = _state_with_destroyers()
    snapshot = project(state)

    assert snapshot.user_cell_states[0][0] is CellState.SHIP
    assert snapshot.computer_cell_states[0][0] is CellState.EMPTY
    assert snapshot.computer_cell_states[0][1] is CellState.EMPTY

    snapshot = project(apply_user_attack(state, (0, 0)))
    assert snapshot.computer_cell_states[0][0] is CellState.HIT
    assert snapshot.computer_cell_states[0][1] is CellState.EMPTY


def test_misses_pass_through_on_the_computer_grid() -> None:
    snapshot = project(apply_user_attack(_state_with_destroyers(), (5, 5)))
    assert snapshot.computer_cell_states[5][5] is CellState.MISS


def test_computer_grid_never_shows_ships() -> None:
    snapshot = project(new_game(random.Random(4)))
    flat = [state for row in snapshot.computer_cell_states for state in row]
    assert CellState.SHIP not in flat
    assert len(flat) == BOARD_SIZE * BOARD_SIZE


def test_randomize_allowed_only_before_any_attack() -> None:
    state = new_game(random.Random(6))
    assert project(state).can_randomize is True
    assert project(apply_user_attack(state, (1, 1))).can_randomize is False


def test_snapshot_reports_winner() -> None:
    state = _state_with_destroyers()
    state = apply_user_attack(state, (0, 0))
    state = apply_user_attack(state, (0, 1))

    snapshot = project(state)
    assert snapshot.is_game_over is True
    assert snapshot.winner is Winner.USER


def test_as_dict_uses_plain_values() -> None:
    data = project(apply_user_attack(_state_with_destroyers(), (0, 0))).as_dict()
    assert data["winner"] == "none"
    assert data["is_game_over"] is False
    assert data["can_randomize"] is False
    assert data["user_cell_states"][0][:3] == ["ship", "ship", "empty"]
    assert data["computer_cell_states"][0][:3] == ["hit", "empty", "empty"]
