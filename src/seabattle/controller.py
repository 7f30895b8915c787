"""Turn protocol between a renderer and the game engine, with telemetry hooks."""

from __future__ import annotations

import random
import time
from typing import Callable

from seabattle.config import GameConfig, load_game_config
from seabattle.engine.display import DisplaySnapshot, project
from seabattle.engine.errors import ConflictError
from seabattle.engine.game import (
    GameState,
    Winner,
    apply_computer_attack,
    apply_user_attack,
    is_game_over,
    new_game,
    randomize_user_board,
    winner,
)
from seabattle.telemetry import get_logger, get_tracer, record_game_duration, record_game_metric

UpdateCallback = Callable[[DisplaySnapshot], None]


def _ignore_update(snapshot: DisplaySnapshot) -> None:
    pass


class GameController:
    """Holds the current game and turns user intents into state transitions.

    After every transition the new snapshot is pushed to ``on_update``. The
    computer replies to each user attack after ``computer_delay_seconds``,
    waited out through the injected ``sleep`` callable.
    """

    def __init__(
        self,
        config: GameConfig | None = None,
        on_update: UpdateCallback | None = None,
        sleep: Callable[[float], None] = time.sleep,
        rng: random.Random | None = None,
    ) -> None:
        self.config = config or load_game_config()
        self.state: GameState | None = None
        self._on_update = on_update or _ignore_update
        self._sleep = sleep
        self._rng = rng or random.Random(self.config.rng_seed)
        self._logger = get_logger("seabattle.controller")
        self._tracer = get_tracer("seabattle.controller")
        self._game_span_cm = None
        self._game_span = None
        self._game_start_time: float | None = None
        self._game_id_counter = 0

    def start(self) -> DisplaySnapshot:
        """Deal a fresh game and publish it."""
        self._start_game_span()
        with self._tracer.start_as_current_span("seabattle.controller.start") as span:
            span.set_attribute("game.id", self._game_id_counter)
            self.state = new_game(self._rng, self.config.max_placement_attempts)
            record_game_metric("seabattle_games_started_total", 1)
            self._logger.info("Game %d started", self._game_id_counter)
        return self._publish()

    def play_again(self) -> DisplaySnapshot:
        if self.state is not None and not is_game_over(self.state):
            record_game_metric("seabattle_games_abandoned_total", 1)
            self._logger.info("Game %d abandoned", self._game_id_counter)
        return self.start()

    def snapshot(self) -> DisplaySnapshot:
        return project(self._require_state())

    def handle_user_attack(self, row: int, col: int) -> bool:
        """Apply the user's shot and, unless it ended the game, the computer's reply.

        Returns False when the click is ignored: it is not the user's turn,
        the game is over, or the cell was already attacked.
        """
        state = self._require_state()
        if not state.is_user_turn or is_game_over(state):
            self._logger.debug("Ignoring attack at (%d,%d): not the user's turn", row, col)
            return False

        with self._tracer.start_as_current_span("seabattle.controller.user_attack") as span:
            span.set_attribute("game.id", self._game_id_counter)
            span.set_attribute("coord.row", row)
            span.set_attribute("coord.col", col)
            try:
                self.state = apply_user_attack(state, (row, col))
            except ConflictError as exc:
                record_game_metric("seabattle_repeated_attacks_total", 1, {"player": "user"})
                span.record_exception(exc)
                self._logger.info("Ignoring repeated attack at (%d,%d)", row, col)
                return False
            outcome = self.state.computer_board.cells[row][col].state.value
            span.set_attribute("attack.outcome", outcome)
            record_game_metric(
                "seabattle_attacks_total", 1, {"player": "user", "outcome": outcome}
            )
            self._logger.info("User fired at (%d,%d): %s", row, col, outcome)

        self._publish()
        if self._finish_if_over():
            return True

        self._sleep(self.config.computer_delay_seconds)
        self._computer_turn()
        return True

    def handle_randomize(self) -> bool:
        """Re-deal the user's fleet while no shot has been fired yet."""
        if not self.snapshot().can_randomize:
            self._logger.debug("Ignoring randomize request: game already under way")
            return False
        self.state = randomize_user_board(
            self._require_state(), self._rng, self.config.max_placement_attempts
        )
        record_game_metric("seabattle_board_randomizations_total", 1)
        self._publish()
        return True

    def close(self) -> None:
        """End the game span of an unfinished game, e.g. when the player quits."""
        self._close_game_span()

    def _computer_turn(self) -> None:
        with self._tracer.start_as_current_span("seabattle.controller.computer_attack") as span:
            span.set_attribute("game.id", self._game_id_counter)
            before = self._require_state()
            self.state = apply_computer_attack(
                before, self._rng, self.config.max_targeting_attempts
            )
            target = next(
                coord
                for coord in before.user_board.unattacked_coordinates()
                if self.state.user_board.cells[coord.row][coord.col].is_attacked
            )
            outcome = self.state.user_board.cells[target.row][target.col].state.value
            span.set_attribute("coord.row", target.row)
            span.set_attribute("coord.col", target.col)
            span.set_attribute("attack.outcome", outcome)
            record_game_metric(
                "seabattle_attacks_total", 1, {"player": "computer", "outcome": outcome}
            )
            self._logger.info("Computer fired at (%d,%d): %s", target.row, target.col, outcome)
        self._publish()
        self._finish_if_over()

    def _require_state(self) -> GameState:
        if self.state is None:
            raise RuntimeError("Game has not been started.")
        return self.state

    def _publish(self) -> DisplaySnapshot:
        snapshot = self.snapshot()
        self._on_update(snapshot)
        return snapshot

    def _finish_if_over(self) -> bool:
        state = self._require_state()
        if not is_game_over(state):
            return False
        self._finish_game(winner(state))
        return True

    def _start_game_span(self) -> None:
        self._close_game_span()
        self._game_start_time = time.perf_counter()
        self._game_id_counter += 1
        self._game_span_cm = self._tracer.start_as_current_span("seabattle.controller.game")
        self._game_span = self._game_span_cm.__enter__()
        self._game_span.set_attribute("game.id", self._game_id_counter)

    def _finish_game(self, result: Winner) -> None:
        duration = (time.perf_counter() - self._game_start_time) if self._game_start_time else 0.0
        state = self._require_state()
        total_turns = sum(
            cell.is_attacked
            for board in (state.user_board, state.computer_board)
            for row in board.cells
            for cell in row
        )

        record_game_metric("seabattle_games_completed_total", 1, {"winner": result.value})
        record_game_duration(
            "seabattle_game_duration_seconds", duration, {"winner": result.value}
        )

        if self._game_span is not None:
            self._game_span.set_attribute("winner", result.value)
            self._game_span.set_attribute("turns", total_turns)
            self._game_span.set_attribute("duration_ms", duration * 1000)

        self._logger.info(
            "Game %d finished. Winner=%s turns=%d duration_s=%.3f",
            self._game_id_counter,
            result.value,
            total_turns,
            duration,
        )
        self._close_game_span()

    def _close_game_span(self) -> None:
        if self._game_span_cm is not None:
            self._game_span_cm.__exit__(None, None, None)
            self._game_span_cm = None
            self._game_span = None
