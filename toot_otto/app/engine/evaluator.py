from typing import Tuple

from toot_otto.app.engine.board import Board
from toot_otto.app.engine.constants import O_VALUE, OTTO, T_VALUE, TOOT, WIN_SIGNAL
from toot_otto.app.engine.scanner import window_values, windows

# Weight of each window position; the AI wants O-T-T-O
CHAIN_WEIGHTS = (O_VALUE, T_VALUE, T_VALUE, O_VALUE)


def evaluate(board: Board) -> Tuple[int, int]:
    """
    Scores a board from the AI's perspective.

    Returns (win_signal, chain_score):
    - win_signal: +4 if O-T-T-O is on the board, -4 if T-O-O-T is, else 0.
      When several cells start a complete line, the last one scanned wins.
    - chain_score: sum over every window of its weighted match, cubed.
      Cubing favours near-complete chains over scattered matches.
    """
    chips = board.chips()
    win_signal = 0
    chain_score = 0

    for _, _, cell_windows in windows(board.num_rows, board.num_cols):
        cell_signal = 0
        for window in cell_windows:
            values = window_values(chips, window)

            partial = sum(v * w for v, w in zip(values, CHAIN_WEIGHTS))
            chain_score += partial * partial * partial

            # Player wants TOOT, but AI hates it (-4)
            if not cell_signal:
                if values == TOOT:
                    cell_signal = -WIN_SIGNAL
                elif values == OTTO:
                    cell_signal = WIN_SIGNAL
        if cell_signal:
            win_signal = cell_signal

    return win_signal, chain_score
