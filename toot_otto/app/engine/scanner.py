from functools import lru_cache
from typing import List, NamedTuple, Optional, Sequence, Tuple

from toot_otto.app.engine.board import Board
from toot_otto.app.engine.constants import DIRECTIONS, DIRECTION_NAMES, EMPTY, OTTO, TOOT, WIN_LENGTH
from toot_otto.app.models.enums import Outcome

# Flat storage indices of one window; None marks a cell outside the board
Window = Tuple[Optional[int], ...]


class WinningLine(NamedTuple):
    outcome: Outcome
    start: Tuple[int, int]
    direction: str
    cells: Tuple[Tuple[int, int], ...]


@lru_cache(maxsize=None)
def windows(rows: int, cols: int) -> Tuple[Tuple[int, int, Tuple[Window, ...]], ...]:
    """
    For every cell (row-major), the four length-4 windows starting there:
    right, down, down-right, up-right. Windows are clipped at the edges.
    """
    result = []
    for i in range(rows):
        for j in range(cols):
            cell_windows = []
            for dr, dc in DIRECTIONS:
                window = []
                for k in range(WIN_LENGTH):
                    r, c = i + dr * k, j + dc * k
                    if 0 <= r < rows and 0 <= c < cols:
                        window.append(c * rows + (rows - 1 - r))
                    else:
                        window.append(None)
                cell_windows.append(tuple(window))
            result.append((i, j, tuple(cell_windows)))
    return tuple(result)


def window_values(chips: Sequence[int], window: Window) -> Tuple[int, ...]:
    return tuple(EMPTY if idx is None else chips[idx] for idx in window)


def find_line(board: Board) -> Optional[WinningLine]:
    """
    Returns the first T-O-O-T / O-T-T-O line in scan order, or None.
    The whole board is scanned every time.
    """
    chips = board.chips()
    for i, j, cell_windows in windows(board.num_rows, board.num_cols):
        for d, window in enumerate(cell_windows):
            values = window_values(chips, window)
            if values == TOOT:
                outcome = Outcome.PLAYER_ONE
            elif values == OTTO:
                outcome = Outcome.PLAYER_TWO
            else:
                continue
            dr, dc = DIRECTIONS[d]
            cells = tuple((i + dr * k, j + dc * k) for k in range(WIN_LENGTH))
            return WinningLine(outcome, (i, j), DIRECTION_NAMES[d], cells)
    return None


def scan(board: Board, move_count: Optional[int] = None, done: bool = False) -> Optional[Outcome]:
    """
    Checks a board for a finished game.

    A winning line takes precedence over a draw. A draw is only reported
    when move_count equals rows * cols and the game is not already done.
    move_count defaults to the number of filled cells.
    """
    line = find_line(board)
    if line is not None:
        return line.outcome

    if move_count is None:
        move_count = board.filled_count()
    if move_count == board.num_rows * board.num_cols and not done:
        return Outcome.DRAW
    return None


def winning_cells(board: Board) -> List[Tuple[int, int]]:
    line = find_line(board)
    return list(line.cells) if line else []
