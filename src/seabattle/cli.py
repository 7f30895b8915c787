"""Terminal front end: play SeaBattle against a random-firing computer."""

from __future__ import annotations

import argparse
from typing import Sequence

from seabattle.config import GameConfig
from seabattle.controller import GameController
from seabattle.engine.board import BOARD_SIZE, CellState
from seabattle.engine.display import DisplaySnapshot, StateGrid
from seabattle.engine.game import Winner
from seabattle.engine.ship import Coordinate
from seabattle.telemetry import configure_logging, init_telemetry

ROW_LABELS = "ABCDEFGHIJ"

SYMBOLS = {
    CellState.EMPTY: ".",
    CellState.SHIP: "S",
    CellState.HIT: "X",
    CellState.MISS: "o",
}

RANDOMIZE = "randomize"
ATTACK = "attack"


def _coordinate_from_input(text: str) -> Coordinate:
    cleaned = text.strip().upper()
    if not cleaned:
        raise ValueError("Empty coordinate.")
    if cleaned[0].isalpha():
        if cleaned[0] not in ROW_LABELS:
            raise ValueError("Row must be between A and J.")
        row = ROW_LABELS.index(cleaned[0])
        try:
            col = int(cleaned[1:]) - 1
        except ValueError as exc:
            raise ValueError("Column must be a number between 1 and 10.") from exc
    else:
        parts = cleaned.split()
        if len(parts) != 2:
            raise ValueError("Use formats like A5 or '3 7' (row and column, counted from 1).")
        try:
            row, col = map(int, parts)
        except ValueError as exc:
            raise ValueError("Row and column must be numbers.") from exc
        row, col = row - 1, col - 1
    if row not in range(BOARD_SIZE) or col not in range(BOARD_SIZE):
        raise ValueError("Coordinates must be within the 10x10 board.")
    return Coordinate(row, col)


def _format_grid(states: StateGrid) -> list[str]:
    header = "    " + " ".join(f"{col + 1:>2}" for col in range(BOARD_SIZE))
    rows = [header]
    for row, row_states in enumerate(states):
        symbols = " ".join(f"{SYMBOLS[state]:>2}" for state in row_states)
        rows.append(f"{ROW_LABELS[row]} |{symbols}")
    return rows


def render(snapshot: DisplaySnapshot) -> str:
    """Draw both grids side by side, plus the randomize hint or the result."""
    left = ["Your Grid"] + _format_grid(snapshot.user_cell_states)
    right = ["Opponent's Grid"] + _format_grid(snapshot.computer_cell_states)
    width = max(len(line) for line in left) + 4
    lines = [f"{mine:<{width}}{theirs}" for mine, theirs in zip(left, right)]
    if snapshot.can_randomize:
        lines.append("")
        lines.append("Type 'r' to randomize your fleet before the first shot.")
    if snapshot.is_game_over:
        lines.append("")
        lines.append("You win!" if snapshot.winner is Winner.USER else "You lose.")
    return "\n".join(lines)


def _prompt_command(snapshot: DisplaySnapshot) -> tuple[str, Coordinate | None]:
    while True:
        raw = input(
            "Enter target coordinate (e.g., A5 or '5 1'), 'r' to randomize or 'q' to quit: "
        )
        choice = raw.strip().lower()
        if choice == "q":
            raise SystemExit("Goodbye!")
        if choice == "r":
            if snapshot.can_randomize:
                return RANDOMIZE, None
            print("Your fleet can only be randomized before the first shot.")
            continue
        try:
            return ATTACK, _coordinate_from_input(raw)
        except ValueError as exc:
            print(f"Invalid input: {exc}")


def _prompt_play_again() -> bool:
    while True:
        raw = input("Play again? [Y/n]: ").strip().lower()
        if raw in {"", "y", "yes"}:
            return True
        if raw in {"n", "no"}:
            return False
        print("Please answer with 'y' or 'n'.")


def play_game(config: GameConfig | None = None) -> None:
    print("Welcome to SeaBattle!\n")
    controller = GameController(config, on_update=lambda snapshot: print("\n" + render(snapshot)))
    controller.start()
    try:
        _game_loop(controller)
    finally:
        controller.close()


def _game_loop(controller: GameController) -> None:
    while True:
        snapshot = controller.snapshot()
        if snapshot.is_game_over:
            if not _prompt_play_again():
                print("Thanks for playing!")
                return
            controller.play_again()
            continue

        action, coord = _prompt_command(snapshot)
        if action == RANDOMIZE:
            controller.handle_randomize()
        elif coord is not None and not controller.handle_user_attack(coord.row, coord.col):
            print("That cell has already been targeted. Choose another.")


def main(argv: Sequence[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Play SeaBattle via the CLI.")
    parser.add_argument(
        "--seed", type=int, default=None, help="Optional RNG seed for reproducibility."
    )
    parser.add_argument(
        "--delay",
        type=float,
        default=None,
        help="Seconds the computer waits before firing back.",
    )
    parser.add_argument("--log-level", default=None, help="Logging level, e.g. INFO or DEBUG.")
    args = parser.parse_args(argv)

    config = GameConfig.from_env(
        rng_seed=args.seed, computer_delay_seconds=args.delay, log_level=args.log_level
    )
    configure_logging(config.log_level)
    init_telemetry()
    play_game(config)


if __name__ == "__main__":
    main()
