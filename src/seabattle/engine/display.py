"""Read-only projection of a game for rendering."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .board import CellState
from .game import GameState, Winner, is_game_over, winner

StateGrid = tuple[tuple[CellState, ...], ...]


@dataclass(frozen=True)
class DisplaySnapshot:
    """Everything a renderer needs to draw both grids and the game controls."""

    user_cell_states: StateGrid
    computer_cell_states: StateGrid
    is_game_over: bool
    winner: Winner
    can_randomize: bool

    def as_dict(self) -> dict[str, Any]:
        """Plain JSON-compatible form, with enum members as their string values."""
        return {
            "user_cell_states": [[state.value for state in row] for row in self.user_cell_states],
            "computer_cell_states": [
                [state.value for state in row] for row in self.computer_cell_states
            ],
            "is_game_over": self.is_game_over,
            "winner": self.winner.value,
            "can_randomize": self.can_randomize,
        }


def _mask_ships(states: StateGrid) -> StateGrid:
    return tuple(
        tuple(CellState.EMPTY if state is CellState.SHIP else state for state in row)
        for row in states
    )


def project(state: GameState) -> DisplaySnapshot:
    """Build the snapshot shown to the user, hiding the computer's unhit ships."""
    return DisplaySnapshot(
        user_cell_states=state.user_board.cell_states(),
        computer_cell_states=_mask_ships(state.computer_board.cell_states()),
        is_game_over=is_game_over(state),
        winner=winner(state),
        can_randomize=not (
            state.user_board.has_received_attack() or state.computer_board.has_received_attack()
        ),
    )
