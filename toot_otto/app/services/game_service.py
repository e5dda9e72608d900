"""
Game Service - In-memory registry of running matches

Every match owns its own TootOtto controller, board and random source,
so matches never share state. Nothing is persisted: games live as long
as the process.

Used by the HTTP routes and the WebSocket manager.
"""

import itertools
import logging
import random
import threading
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from toot_otto.app.core.config import GameSettings, settings as default_settings
from toot_otto.app.core.events import GameEvents
from toot_otto.app.engine.constants import CHIP_SYMBOLS
from toot_otto.app.engine.game import Move, TootOtto
from toot_otto.app.engine.errors import InvalidMove
from toot_otto.app.engine.scanner import winning_cells
from toot_otto.app.models.enums import ChipType, GameStatus
from toot_otto.app.schemas.game_schema import GameCreate, GameResponse, MoveRecord

logger = logging.getLogger(__name__)


class GameNotFound(LookupError):
    def __init__(self, game_id: int):
        super().__init__(f"Game {game_id} not found")
        self.game_id = game_id


class WebSessionEvents(GameEvents):
    """
    Remote front end: moves arrive over HTTP/WebSocket, so player_turn is
    never used. Notifications are queued for the connection manager to
    broadcast.
    """

    def __init__(self):
        self.pending: List[dict] = []

    def player_turn(self, num_cols: int):
        return None

    def selected_column(self, player: str, chip: ChipType, column: int):
        self.pending.append({"event": "SELECTED_COLUMN", "player": player, "chip": str(chip), "column": column})

    def invalid_move(self, reason: str):
        self.pending.append({"event": "INVALID_MOVE", "reason": reason})

    def game_over(self, winner: str):
        self.pending.append({"event": "GAME_OVER", "winner": winner})

    def drain(self) -> List[dict]:
        messages, self.pending = self.pending, []
        return messages


@dataclass
class GameSession:
    id: int
    game: TootOtto
    events: WebSessionEvents
    history: List[Move] = field(default_factory=list)
    lock: threading.Lock = field(default_factory=threading.Lock)


class GameService:
    """Centralized service for all game operations"""

    def __init__(self, config: Optional[GameSettings] = None):
        self.config = config or default_settings
        self._games: Dict[int, GameSession] = {}
        self._ids = itertools.count(1)

    def create_game(self, request: Optional[GameCreate] = None) -> GameSession:
        request = request or GameCreate()
        cfg = self.config
        pick = lambda value, default: default if value is None else value

        seed = pick(request.seed, cfg.seed)
        events = WebSessionEvents()
        game = TootOtto(
            rows=pick(request.rows, cfg.rows),
            cols=pick(request.cols, cfg.cols),
            with_ai=pick(request.with_ai, cfg.with_ai),
            player_one=pick(request.player_one, cfg.player_one),
            player_two=pick(request.player_two, cfg.player_two),
            max_depth=pick(request.ai_depth, cfg.ai_depth),
            rng=random.Random(seed),
            events=events,
        )
        game.start()

        session = GameSession(next(self._ids), game, events)
        self._games[session.id] = session
        logger.info("Created game %d (%dx%d, ai=%s)", session.id, game.board.num_rows, game.board.num_cols, game.with_ai)
        return session

    def get(self, game_id: int) -> GameSession:
        session = self._games.get(game_id)
        if session is None:
            raise GameNotFound(game_id)
        return session

    def list_games(self, status: Optional[GameStatus] = None) -> List[GameSession]:
        return [s for s in self._games.values() if status is None or s.game.state == status]

    def delete_game(self, game_id: int):
        self.get(game_id)
        del self._games[game_id]

    def process_human_move(self, game_id: int, chip: str, column: int) -> Move:
        """
        Process a human player's move with locking.
        Called from the event loop, so it never waits for the lock: a move
        arriving while the computer is thinking is refused.
        """
        session = self.get(game_id)
        game = session.game

        if not session.lock.acquire(blocking=False):
            session.events.invalid_move("The computer is thinking")
            raise InvalidMove("The computer is thinking")
        try:
            try:
                self._check_turn(game, ai_turn=False)
                move = game.apply_move(chip, column)
            except InvalidMove as e:
                session.events.invalid_move(str(e))
                raise
            session.history.append(move)
        finally:
            session.lock.release()
        return move

    def suggest_move(self, game_id: int):
        session = self.get(game_id)
        return session.game.ai_select_move()

    def step_ai_turn(self, game_id: int) -> Move:
        """
        Thinks while the game is BUSY, then plays the chosen move.
        Human moves arriving while the AI is thinking are refused. The
        session lock covers the whole step, so overlapping AI steps run one
        after the other and the later one finds the turn already taken.
        """
        session = self.get(game_id)
        game = session.game

        with session.lock:
            self._check_turn(game, ai_turn=True)
            with game.busy():
                chip, column = game.ai_select_move()
            move = game.apply_move(chip, column)
            session.history.append(move)
        return move

    @staticmethod
    def _check_turn(game: TootOtto, ai_turn: bool):
        if game.state != GameStatus.RUNNING:
            raise InvalidMove(f"Game is {game.state}, no move accepted")
        if game.is_ai_turn and not ai_turn:
            raise InvalidMove("It is the computer's turn")
        if ai_turn and not game.is_ai_turn:
            raise InvalidMove("It is not the computer's turn")

    def to_response(self, session: GameSession) -> GameResponse:
        game = session.game
        board = game.board
        return GameResponse(
            id=session.id,
            rows=board.num_rows,
            cols=board.num_cols,
            status=game.state,
            winner=game.winner,
            current_player=game.current_player,
            player_one=game.player_one,
            player_two=game.player_two,
            with_ai=game.with_ai,
            ai_depth=game.max_depth,
            move_count=game.move_count,
            board=[[CHIP_SYMBOLS[board.get(r, c)] for c in range(board.num_cols)] for r in range(board.num_rows)],
            winning_cells=winning_cells(board),
            history=[MoveRecord.model_validate(m) for m in session.history],
        )


# Singleton instance
game_service = GameService()
