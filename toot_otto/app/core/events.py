from abc import ABC, abstractmethod
from typing import Any, Iterable, List, Optional, Tuple

from toot_otto.app.models.enums import ChipType


class GameEvents(ABC):
    """
    What a front end must handle while a game is played.

    Only player_turn is mandatory; the notifications default to no-ops so
    front ends override what they display.
    """

    def introduction(self):
        pass

    def show_grid(self, board):
        pass

    def player_turn_message(self, player: str, p1_turn: bool):
        pass

    @abstractmethod
    def player_turn(self, num_cols: int) -> Optional[Tuple[ChipType, int]]:
        """Returns the human's (chip, column), or None to ask again."""

    def selected_column(self, player: str, chip: ChipType, column: int):
        pass

    def animate_chip(self, move):
        pass

    def invalid_move(self, reason: str):
        pass

    def game_over(self, winner: str):
        pass


class ScriptedEvents(GameEvents):
    """
    Test harness: feeds pre-recorded moves and records every event.
    When the script runs out, player_turn raises IndexError.
    """

    def __init__(self, moves: Iterable[Tuple[Any, int]] = ()):
        self.moves: List[Tuple[Any, int]] = list(moves)
        self.log: List[Tuple[Any, ...]] = []

    def introduction(self):
        self.log.append(("introduction",))

    def show_grid(self, board):
        self.log.append(("show_grid", board.filled_count()))

    def player_turn_message(self, player: str, p1_turn: bool):
        self.log.append(("turn", player, p1_turn))

    def player_turn(self, num_cols: int):
        if not self.moves:
            raise IndexError("Scripted moves exhausted")
        return self.moves.pop(0)

    def selected_column(self, player: str, chip: ChipType, column: int):
        self.log.append(("selected", player, chip, column))

    def animate_chip(self, move):
        self.log.append(("animate", move.row, move.column))

    def invalid_move(self, reason: str):
        self.log.append(("invalid", reason))

    def game_over(self, winner: str):
        self.log.append(("game_over", winner))

    def events(self, name: str) -> List[Tuple[Any, ...]]:
        return [entry for entry in self.log if entry[0] == name]
