from enum import StrEnum

class ChipType(StrEnum):
    T = "T"
    O = "O"

    @property
    def cell_value(self) -> int:
        """Numeric value stored on the board: T=+1, O=-1."""
        return 1 if self is ChipType.T else -1

class GameStatus(StrEnum):
    NOT_STARTED = "NOT_STARTED"
    RUNNING = "RUNNING"
    BUSY = "BUSY"  # move in progress (web front end)
    DONE = "DONE"

class Outcome(StrEnum):
    PLAYER_ONE = "PLAYER_ONE"  # T-O-O-T
    PLAYER_TWO = "PLAYER_TWO"  # O-T-T-O
    DRAW = "DRAW"
