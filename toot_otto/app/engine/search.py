import logging
import random
from typing import List, NamedTuple, Optional, Tuple

from toot_otto.app.engine.board import Board
from toot_otto.app.engine.constants import DEFAULT_AI_DEPTH, INFINITY, WIN_SCORE, WIN_SIGNAL
from toot_otto.app.engine.evaluator import evaluate
from toot_otto.app.models.enums import ChipType

logger = logging.getLogger(__name__)

T = ChipType.T.cell_value
O = ChipType.O.cell_value


class SearchResult(NamedTuple):
    chip: ChipType
    column: Optional[int]
    score: int
    t_score: int
    o_score: int


class MinimaxSearch:
    """
    Depth-limited minimax with alpha-beta pruning for TOOT-OTTO.

    Every ply is two choices: which chip to drop and where. Each node
    therefore searches once per chip type and merges the two results.
    Depth parity decides whose turn it is inside the tree: even depths
    merge the opponent's replies by minimum, odd depths merge the AI's
    moves by maximum.
    """

    def __init__(self, max_depth: int = DEFAULT_AI_DEPTH, rng: Optional[random.Random] = None, prune: bool = True):
        if max_depth < 1:
            raise ValueError(f"max_depth must be at least 1, got {max_depth}")
        self.max_depth = max_depth
        self.rng = rng or random.Random()
        self.prune = prune
        self.nodes = 0

    def choose(self, board: Board) -> SearchResult:
        """
        Root Entry Point.
        Searches once assuming the AI drops T and once assuming O.
        """
        self.nodes = 0
        t_val, t_col = self.max_state(board, 0, -INFINITY, INFINITY, T)
        o_val, o_col = self.max_state(board, 0, -INFINITY, INFINITY, O)

        logger.debug(
            "ChipType => (value, column) ;; T => (%s, %s) ;; O => (%s, %s) ;; nodes=%d",
            t_val, t_col, o_val, o_col, self.nodes,
        )

        if t_val > o_val:
            chip, col, score = ChipType.T, t_col, t_val
        elif t_val < o_val:
            chip, col, score = ChipType.O, o_col, o_val
        elif self.rng.random() < 0.5:
            # Play T and O have same value? Choose a random one
            chip, col, score = ChipType.T, t_col, t_val
        else:
            chip, col, score = ChipType.O, o_col, o_val

        return SearchResult(chip, col, score, t_val, o_val)

    def value(self, board: Board, depth: int, alpha: int, beta: int, chip: int) -> Tuple[int, Optional[int]]:
        self.nodes += 1
        win, chain = evaluate(board)

        if win == WIN_SIGNAL:
            return WIN_SCORE - depth * depth, None
        if win == -WIN_SIGNAL:
            return -(WIN_SCORE - depth * depth), None
        if depth >= self.max_depth:
            return chain * chip - depth * depth, None

        if depth % 2 == 0:
            # Opponent replies: it may drop either chip
            t_result = self.min_state(board, depth + 1, alpha, beta, T)
            o_result = self.min_state(board, depth + 1, alpha, beta, O)
            # AI wants player to lose, so assume the minimum
            return self._merge(t_result, o_result, minimize=True)

        t_result = self.max_state(board, depth + 1, alpha, beta, T)
        o_result = self.max_state(board, depth + 1, alpha, beta, O)
        # AI wants to win, so choose the maximum value
        return self._merge(t_result, o_result, minimize=False)

    def max_state(self, board: Board, depth: int, alpha: int, beta: int, chip: int) -> Tuple[int, Optional[int]]:
        v = -INFINITY
        move_queue: List[int] = []

        for col in range(board.num_cols):
            child = board.play(col, chip)
            if child is None:
                continue
            score, _ = self.value(child, depth, alpha, beta, chip)

            if score > v:
                v = score
                move_queue = [col]
            elif score == v:
                move_queue.append(col)

            if self.prune:
                if v > beta:
                    return v, self.rng.choice(move_queue)
                alpha = max(alpha, v)

        if not move_queue:
            return v, None
        return v, self.rng.choice(move_queue)

    def min_state(self, board: Board, depth: int, alpha: int, beta: int, chip: int) -> Tuple[int, Optional[int]]:
        v = INFINITY
        move_queue: List[int] = []

        for col in range(board.num_cols):
            child = board.play(col, -chip)
            if child is None:
                continue
            score, _ = self.value(child, depth, alpha, beta, chip)

            if score < v:
                v = score
                move_queue = [col]
            elif score == v:
                move_queue.append(col)

            if self.prune:
                if v < alpha:
                    return v, self.rng.choice(move_queue)
                beta = min(beta, v)

        if not move_queue:
            return v, None
        return v, self.rng.choice(move_queue)

    def _merge(self, t_result, o_result, minimize: bool):
        t_val, o_val = t_result[0], o_result[0]
        if t_val == o_val:
            return t_result if self.rng.random() < 0.5 else o_result
        if minimize:
            return t_result if t_val < o_val else o_result
        return t_result if t_val > o_val else o_result
