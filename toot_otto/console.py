"""
Console front end for TOOT-OTTO.

Usage:
    toot-otto [--rows 6] [--cols 7] [--depth 3] [--no-ai] [--seed 42]

Moves are typed as '<T|O> <column>', e.g. 'T 3'. Type 'q' to quit.
"""

import argparse
import logging
import random
import sys
import time
from typing import Callable, Optional

from toot_otto.app.core.config import load_settings
from toot_otto.app.core.events import GameEvents
from toot_otto.app.engine.board import render
from toot_otto.app.engine.game import TootOtto, parse_chip
from toot_otto.app.engine.errors import InvalidInput


class QuitGame(Exception):
    pass


class ConsoleEvents(GameEvents):
    def __init__(
        self,
        p1_name: str,
        p2_name: str,
        input_fn: Callable[[str], str] = input,
        output: Callable[[str], None] = print,
        animation_delay: float = 0.0,
    ):
        self.p1_name = p1_name
        self.p2_name = p2_name
        self.input_fn = input_fn
        self.output = output
        self.animation_delay = animation_delay

    def introduction(self):
        self.output("=======================================")
        self.output(f"   TOOT-OTTO: {self.p1_name} vs {self.p2_name}")
        self.output("=======================================")
        self.output(f"{self.p1_name} wins with T-O-O-T, {self.p2_name} wins with O-T-T-O.")
        self.output("Either player may drop a T or an O. Enter moves as '<T|O> <column>'.")

    def show_grid(self, board):
        header = "".join(f"{c} " for c in range(board.num_cols))
        self.output("\n" + header + "\n" + render(board))

    def player_turn_message(self, player: str, p1_turn: bool):
        self.output(f"{player}'s turn.")

    def player_turn(self, num_cols: int):
        user_input = self.input_fn(f"Your Move (chip and column 0-{num_cols - 1}): ").strip()
        if user_input.lower() in ("q", "quit", "exit"):
            raise QuitGame()

        parts = user_input.replace(",", " ").split()
        try:
            if len(parts) != 2:
                raise InvalidInput("Expected a chip and a column, e.g. 'T 3'")
            chip = parse_chip(parts[0])
            column = int(parts[1])
        except ValueError as e:
            # InvalidInput is a ValueError too
            self.output(f"Invalid input: {e}")
            return None
        return chip, column

    def selected_column(self, player: str, chip, column: int):
        self.output(f"{player} dropped {chip} in column {column}")

    def animate_chip(self, move):
        if self.animation_delay:
            time.sleep(self.animation_delay)

    def invalid_move(self, reason: str):
        self.output(f"Invalid move: {reason}. Try again.")

    def game_over(self, winner: str):
        if winner == "Draw":
            self.output("\nGame Over! It's a Draw.")
        else:
            self.output(f"\nGame Over! Winner: {winner}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="TOOT-OTTO on the console", prog="toot-otto")
    parser.add_argument("--config", help="Path to a settings YAML file")
    parser.add_argument("--rows", type=int, help="Board rows")
    parser.add_argument("--cols", type=int, help="Board columns")
    parser.add_argument("--depth", type=int, help="AI search depth")
    parser.add_argument("--seed", type=int, help="Seed for the AI's tie-breaking")
    parser.add_argument("--player-one", help="Name of player one")
    parser.add_argument("--player-two", help="Name of player two")
    ai_group = parser.add_mutually_exclusive_group()
    ai_group.add_argument("--ai", dest="with_ai", action="store_true", default=None, help="Play against the computer")
    ai_group.add_argument("--no-ai", dest="with_ai", action="store_false", help="Two human players")
    return parser


def main(argv: Optional[list] = None, input_fn: Callable[[str], str] = input) -> int:
    args = build_parser().parse_args(argv)
    cfg = load_settings(args.config)

    overrides = {
        "rows": args.rows,
        "cols": args.cols,
        "ai_depth": args.depth,
        "seed": args.seed,
        "player_one": args.player_one,
        "player_two": args.player_two,
        "with_ai": args.with_ai,
    }
    try:
        cfg = cfg.model_validate({**cfg.model_dump(), **{k: v for k, v in overrides.items() if v is not None}})
    except ValueError as e:
        print(f"Error: {e}")
        return 2

    logging.basicConfig(level=cfg.log_level.upper(), format="%(levelname)s %(name)s: %(message)s")

    game = TootOtto(
        rows=cfg.rows,
        cols=cfg.cols,
        with_ai=cfg.with_ai,
        player_one=cfg.player_one,
        player_two=cfg.player_two,
        max_depth=cfg.ai_depth,
        rng=random.Random(cfg.seed),
    )
    handler = ConsoleEvents(game.player_one, game.player_two, input_fn=input_fn)

    try:
        game.play(handler)
    except (QuitGame, EOFError, KeyboardInterrupt):
        print("\nBye.")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
