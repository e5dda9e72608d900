import logging
import random
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Optional, Tuple, Union

from toot_otto.app.core.events import GameEvents
from toot_otto.app.engine.board import Board
from toot_otto.app.engine.constants import (
    COMPUTER_NAME,
    DEFAULT_AI_DEPTH,
    DEFAULT_COLS,
    DEFAULT_ROWS,
    DRAW_LABEL,
    PLAYER_ONE_VALUE,
    PLAYER_TWO_VALUE,
)
from toot_otto.app.engine.errors import InvalidInput, InvalidMove, SearchExhausted
from toot_otto.app.engine.scanner import scan
from toot_otto.app.engine.search import MinimaxSearch
from toot_otto.app.models.enums import ChipType, GameStatus, Outcome

# Logger setup
logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Move:
    row: int
    column: int
    move_index: int
    chip: ChipType
    value: int
    player: str


@dataclass(frozen=True)
class GameStatusView:
    state: GameStatus
    winner: str
    move_count: int
    current_player: str


def parse_chip(chip: Union[ChipType, str]) -> ChipType:
    if isinstance(chip, ChipType):
        return chip
    if isinstance(chip, str):
        try:
            return ChipType(chip.strip().upper())
        except ValueError:
            pass
    raise InvalidInput(f"Chip must be 'T' or 'O', got {chip!r}")


class TootOtto:
    def __init__(
        self,
        rows: int = DEFAULT_ROWS,
        cols: int = DEFAULT_COLS,
        with_ai: bool = False,
        player_one: str = "Player 1",
        player_two: str = "Player 2",
        max_depth: int = DEFAULT_AI_DEPTH,
        rng: Optional[random.Random] = None,
        events: Optional[GameEvents] = None,
    ):
        """
        Player one wins with T-O-O-T, player two with O-T-T-O, no matter
        who dropped the chips. With AI enabled, player two is the computer.
        """
        self.board = Board(rows, cols)
        self.player_one = player_one
        self.player_two = COMPUTER_NAME if with_ai else player_two
        self.with_ai = with_ai
        self.max_depth = max_depth
        self.rng = rng or random.Random()
        self.events = events
        self.search = MinimaxSearch(max_depth, self.rng)
        self.state = GameStatus.NOT_STARTED
        self.winner = ""
        self.move_count = 0

    def start(self):
        self.board = Board(self.board.num_rows, self.board.num_cols)
        self.move_count = 0
        self.winner = ""
        self.state = GameStatus.RUNNING

    # --- Turn bookkeeping ---

    def player_move_value(self) -> int:
        """+1 on player one's turn, -1 on player two's."""
        return PLAYER_ONE_VALUE if self.move_count % 2 == 0 else PLAYER_TWO_VALUE

    @property
    def player_one_turn(self) -> bool:
        return self.move_count % 2 == 0

    @property
    def current_player(self) -> str:
        return self.player_one if self.player_one_turn else self.player_two

    @property
    def is_ai_turn(self) -> bool:
        return self.with_ai and not self.player_one_turn

    def status(self) -> GameStatusView:
        return GameStatusView(self.state, self.winner, self.move_count, self.current_player)

    @contextmanager
    def busy(self):
        """Marks a move in progress; other moves are refused meanwhile."""
        if self.state != GameStatus.RUNNING:
            raise InvalidMove(f"Game is {self.state}, cannot start a move")
        self.state = GameStatus.BUSY
        try:
            yield self
        finally:
            if self.state == GameStatus.BUSY:
                self.state = GameStatus.RUNNING

    # --- Moves ---

    def apply_move(self, chip: Union[ChipType, str], column: int) -> Move:
        """
        Drops a chip for the player whose turn it is.
        Raises InvalidMove (ColumnFull, InvalidInput) and leaves the game
        untouched when the move cannot be played.
        """
        if self.state != GameStatus.RUNNING:
            raise InvalidMove(f"Game is {self.state}, no move accepted")

        chip_type = parse_chip(chip)
        if isinstance(column, bool) or not isinstance(column, int):
            raise InvalidInput(f"Column must be an integer, got {column!r}")

        player = self.current_player
        row = self.board.insert(column, chip_type.cell_value, self.player_move_value())
        move = Move(row, column, self.move_count, chip_type, chip_type.cell_value, player)
        self.move_count += 1
        logger.debug("%s dropped %s in column %d (row %d)", player, chip_type, column, row)

        if self.events:
            self.events.animate_chip(move)
            self.events.selected_column(player, chip_type, column)

        self._check_result()
        return move

    def _check_result(self):
        result = scan(self.board, self.move_count, done=self.state == GameStatus.DONE)
        if result is None:
            return

        if result == Outcome.PLAYER_ONE:
            self.winner = self.player_one
        elif result == Outcome.PLAYER_TWO:
            self.winner = self.player_two
        else:
            self.winner = DRAW_LABEL
        self.state = GameStatus.DONE
        logger.info("Game over after %d moves: %s", self.move_count, self.winner)

        if self.events:
            self.events.show_grid(self.board)
            self.events.game_over(self.winner)

    def ai_select_move(self) -> Tuple[ChipType, int]:
        """
        Chooses the computer's (chip, column) without touching the board.
        """
        if self.state not in (GameStatus.RUNNING, GameStatus.BUSY):
            raise InvalidMove(f"Game is {self.state}, no move to choose")

        valid = self.board.valid_columns()
        if not valid:
            raise SearchExhausted("No playable column left")

        result = self.search.choose(self.board)
        if result.column is None or result.column not in valid:
            # Fall back to random agent
            column = self.rng.choice(valid)
            logger.warning("Search gave column %s, falling back to random column %d", result.column, column)
            return result.chip, column
        return result.chip, result.column

    def ai_make_move(self) -> Move:
        chip, column = self.ai_select_move()
        return self.apply_move(chip, column)

    # --- Interactive loop ---

    def play(self, events: Optional[GameEvents] = None) -> str:
        """
        Runs a full game against the given front end and returns the
        winner label. Invalid human moves are reported and asked again.
        """
        if events is not None:
            self.events = events
        if self.events is None:
            raise ValueError("play() needs a GameEvents handler")
        handler = self.events

        if self.state != GameStatus.RUNNING:
            self.start()
        handler.introduction()

        while self.state == GameStatus.RUNNING:
            handler.show_grid(self.board)
            handler.player_turn_message(self.current_player, self.player_one_turn)

            if self.is_ai_turn:
                self.ai_make_move()
                continue

            selection = handler.player_turn(self.board.num_cols)
            if selection is None:
                continue
            chip, column = selection
            try:
                self.apply_move(chip, column)
            except InvalidMove as e:
                handler.invalid_move(str(e))

        return self.winner
