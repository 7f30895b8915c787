"""Human-versus-computer game state and its transitions.

The state is a plain immutable value. Every transition takes the current
``GameState`` and returns a new one; the caller keeps the only reference.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any

from seabattle.telemetry import get_meter, get_tracer

from .board import BOARD_SIZE, DEFAULT_MAX_PLACEMENT_ATTEMPTS, Board
from .errors import ConflictError
from .ship import Coordinate, standard_fleet

logger = logging.getLogger(__name__)
tracer = get_tracer("seabattle.engine.game")
meter = get_meter("seabattle.engine.game")

DEFAULT_MAX_TARGETING_ATTEMPTS = 10_000

USER = "user"
COMPUTER = "computer"

MOVE_COUNTER = meter.create_counter(
    "seabattle_engine_moves",
    unit="1",
    description="Number of attacks applied to a game",
)


class GamePhase(Enum):
    """Where a match currently stands."""

    USER_TURN = "user_turn"
    COMPUTER_TURN = "computer_turn"
    GAME_OVER = "game_over"


class Winner(Enum):
    """Outcome of a match."""

    USER = "user"
    COMPUTER = "computer"
    NONE = "none"


@dataclass(frozen=True)
class GameState:
    """Immutable snapshot of a match between the user and the computer."""

    user_board: Board
    computer_board: Board
    is_user_turn: bool = True

    @property
    def phase(self) -> GamePhase:
        if is_game_over(self):
            return GamePhase.GAME_OVER
        return GamePhase.USER_TURN if self.is_user_turn else GamePhase.COMPUTER_TURN


def _random_fleet_board(owner: str, rng: random.Random, max_attempts: int) -> Board:
    return Board.random_placement(
        standard_fleet(), rng=rng, max_attempts=max_attempts, owner=owner
    )


def new_game(
    rng: random.Random | None = None,
    max_placement_attempts: int = DEFAULT_MAX_PLACEMENT_ATTEMPTS,
) -> GameState:
    """Start a match with both fleets placed at random; the user moves first."""
    rng = rng or random.Random()
    with tracer.start_as_current_span("game.new_game"):
        state = GameState(
            user_board=_random_fleet_board(USER, rng, max_placement_attempts),
            computer_board=_random_fleet_board(COMPUTER, rng, max_placement_attempts),
            is_user_turn=True,
        )
        logger.info("game_created", extra={"phase": state.phase.value})
        return state


def apply_user_attack(state: GameState, pos: Any) -> GameState:
    """Attack the computer's board and hand the turn to the computer.

    Turn ownership is not re-checked here; the controller only calls this on
    the user's turn.
    """
    coord = Coordinate.parse(pos)
    with tracer.start_as_current_span("game.apply_user_attack") as span:
        span.set_attribute("row", coord.row)
        span.set_attribute("col", coord.col)
        computer_board = state.computer_board.receive_attack(coord)
        MOVE_COUNTER.add(1, attributes={"player": USER})
        return replace(state, computer_board=computer_board, is_user_turn=False)


def _pick_computer_target(board: Board, rng: random.Random, max_attempts: int) -> Coordinate:
    remaining = board.unattacked_coordinates()
    if not remaining:
        raise ConflictError("Every cell on the user's board has already been attacked.")
    for _ in range(max_attempts):
        row, col = rng.randrange(BOARD_SIZE), rng.randrange(BOARD_SIZE)
        if not board.cells[row][col].is_attacked:
            return Coordinate(row, col)
    logger.debug("computer_targeting_fallback", extra={"remaining": len(remaining)})
    return rng.choice(remaining)


def apply_computer_attack(
    state: GameState,
    rng: random.Random | None = None,
    max_attempts: int = DEFAULT_MAX_TARGETING_ATTEMPTS,
) -> GameState:
    """Attack a uniformly random unattacked cell of the user's board."""
    rng = rng or random.Random()
    with tracer.start_as_current_span("game.apply_computer_attack") as span:
        coord = _pick_computer_target(state.user_board, rng, max_attempts)
        span.set_attribute("row", coord.row)
        span.set_attribute("col", coord.col)
        user_board = state.user_board.receive_attack(coord)
        MOVE_COUNTER.add(1, attributes={"player": COMPUTER})
        return replace(state, user_board=user_board, is_user_turn=True)


def is_game_over(state: GameState) -> bool:
    return state.user_board.all_ships_sunk() or state.computer_board.all_ships_sunk()


def winner(state: GameState) -> Winner:
    """Return who sank the other fleet; the user is checked first."""
    if state.computer_board.all_ships_sunk():
        return Winner.USER
    if state.user_board.all_ships_sunk():
        return Winner.COMPUTER
    return Winner.NONE


def randomize_user_board(
    state: GameState,
    rng: random.Random | None = None,
    max_placement_attempts: int = DEFAULT_MAX_PLACEMENT_ATTEMPTS,
) -> GameState:
    """Re-deal the user's fleet; only allowed before either board is attacked."""
    if state.user_board.has_received_attack() or state.computer_board.has_received_attack():
        logger.warning("randomize_rejected_game_started")
        raise ConflictError("The user's board can only be randomized before the first attack.")
    rng = rng or random.Random()
    with tracer.start_as_current_span("game.randomize_user_board"):
        user_board = _random_fleet_board(USER, rng, max_placement_attempts)
        logger.info("user_board_randomized")
        return replace(state, user_board=user_board)
