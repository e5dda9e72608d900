from typing import List, NamedTuple, Optional, Sequence

from toot_otto.app.engine.constants import (
    CHIP_SYMBOLS,
    DEFAULT_COLS,
    DEFAULT_ROWS,
    EMPTY,
    MAX_CELLS,
    MOVER_SYMBOLS,
    O_VALUE,
    T_VALUE,
)
from toot_otto.app.engine.errors import ColumnFull, InvalidInput


class Cell(NamedTuple):
    """
    One board cell.
    chip:  0=Empty, 1=T, -1=O
    mover: 0=Empty, 1=Player 1, -1=Player 2
    """
    chip: int = EMPTY
    mover: int = EMPTY


EMPTY_CELL = Cell()


class Board:
    def __init__(self, rows: int = DEFAULT_ROWS, cols: int = DEFAULT_COLS):
        """
        Board uses (row, col) indexing. Row 0 is the TOP of the board.

        Storage is a flat list filled column by column from the BOTTOM:
        index = col * rows + (rows - 1 - row)
        """
        if rows < 1 or cols < 1:
            raise InvalidInput(f"Board needs at least one row and column, got {rows}x{cols}")
        if rows * cols > MAX_CELLS:
            raise InvalidInput(f"Board {rows}x{cols} exceeds capacity of {MAX_CELLS} cells")
        self.num_rows = rows
        self.num_cols = cols
        self.cells: List[Cell] = [EMPTY_CELL] * (rows * cols)

    @classmethod
    def from_rows(cls, grid: Sequence[str]) -> "Board":
        """
        Builds a board from a visual grid, top row first.
        Each row is a string of 'T', 'O' and '_' (spaces ignored).
        Chips are not checked for gravity.
        """
        rows = [row.replace(" ", "") for row in grid]
        board = cls(len(rows), len(rows[0]) if rows else 0)
        values = {"T": T_VALUE, "O": O_VALUE, "_": EMPTY, ".": EMPTY}
        for r, row in enumerate(rows):
            if len(row) != board.num_cols:
                raise InvalidInput(f"Row {r} has {len(row)} cells, expected {board.num_cols}")
            for c, symbol in enumerate(row.upper()):
                if symbol not in values:
                    raise InvalidInput(f"Unknown symbol {symbol!r} at ({r}, {c})")
                if values[symbol] != EMPTY:
                    board.set(r, c, values[symbol])
        return board

    def _index(self, row: int, col: int) -> int:
        return col * self.num_rows + (self.num_rows - 1 - row)

    def get(self, row: int, col: int) -> int:
        """Chip value at (row, col)."""
        return self.cells[self._index(row, col)].chip

    def get_mover(self, row: int, col: int) -> int:
        return self.cells[self._index(row, col)].mover

    def get_cell(self, row: int, col: int) -> Cell:
        return self.cells[self._index(row, col)]

    def set(self, row: int, col: int, value: int, mover: int = EMPTY):
        self.cells[self._index(row, col)] = Cell(value, mover)

    def chips(self) -> List[int]:
        """Chip values in storage order."""
        return [cell.chip for cell in self.cells]

    def in_bounds(self, col: int) -> bool:
        return 0 <= col < self.num_cols

    def can_play(self, col: int) -> bool:
        """Checks if the top cell of the column is empty."""
        return self.in_bounds(col) and self.get(0, col) == EMPTY

    def valid_columns(self) -> List[int]:
        """Returns a list of column indices that are not full."""
        return [c for c in range(self.num_cols) if self.get(0, c) == EMPTY]

    def filled_count(self) -> int:
        return sum(1 for cell in self.cells if cell.chip != EMPTY)

    def is_full(self) -> bool:
        return not self.valid_columns()

    def insert(self, col: int, value: int, mover: int = EMPTY) -> int:
        """
        Drops a chip into the column and returns the row it landed on.
        Raises ColumnFull if every row of the column is taken.
        """
        if not self.in_bounds(col):
            raise InvalidInput(f"Column {col} is out of range 0-{self.num_cols - 1}")

        # Gravity: Find the lowest empty row
        for r in range(self.num_rows - 1, -1, -1):
            if self.get(r, col) == EMPTY:
                self.set(r, col, value, mover)
                return r
        raise ColumnFull(col)

    def copy(self) -> "Board":
        clone = Board.__new__(Board)
        clone.num_rows = self.num_rows
        clone.num_cols = self.num_cols
        clone.cells = list(self.cells)
        return clone

    def play(self, col: int, value: int, mover: int = EMPTY) -> Optional["Board"]:
        """
        Returns a NEW board with the chip dropped, or None if the column
        cannot take it. The receiver is never modified.
        """
        if not self.can_play(col):
            return None
        clone = self.copy()
        clone.insert(col, value, mover)
        return clone

    def __eq__(self, other):
        if not isinstance(other, Board):
            return NotImplemented
        return (self.num_rows, self.num_cols, self.cells) == (other.num_rows, other.num_cols, other.cells)

    def __str__(self):
        return render(self)


def render(board: Board, layer: str = "chip") -> str:
    """
    Text grid of the board, top row first.
    layer="chip" shows T/O, layer="mover" shows who played each cell (R/Y).
    """
    if layer == "chip":
        symbols, pick = CHIP_SYMBOLS, board.get
    elif layer == "mover":
        symbols, pick = MOVER_SYMBOLS, board.get_mover
    else:
        raise ValueError(f"Unknown layer: {layer}")

    lines = []
    for r in range(board.num_rows):
        lines.append("".join(symbols[pick(r, c)] + " " for c in range(board.num_cols)) + "\n")
    return "".join(lines)


def describe_columns(board: Board) -> str:
    """
    Describes the board column by column, listing chips from Bottom to Top.
    Example: 'Column 0: T (P1), O (P2)'
    """
    lines = []
    for c in range(board.num_cols):
        pieces = []
        # Scan from Bottom to Top
        for r in range(board.num_rows - 1, -1, -1):
            cell = board.get_cell(r, c)
            if cell.chip == EMPTY:
                break  # Stop at first empty space
            owner = "P1" if cell.mover > 0 else "P2" if cell.mover < 0 else "?"
            pieces.append(f"{CHIP_SYMBOLS[cell.chip]} ({owner})")

        desc = ", ".join(pieces) if pieces else "Empty"
        lines.append(f"Column {c}: {desc}")
    return "\n".join(lines)
