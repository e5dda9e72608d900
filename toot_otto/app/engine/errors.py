class TootOttoError(Exception):
    """Base class for engine errors."""


class InvalidMove(TootOttoError, ValueError):
    """A move the caller should retry with different input."""


class ColumnFull(InvalidMove):
    def __init__(self, column: int):
        super().__init__(f"Column {column} is full")
        self.column = column


class InvalidInput(InvalidMove):
    """Out-of-range column, malformed chip selection or bad board size."""


class SearchExhausted(TootOttoError):
    """No playable column was left for the AI."""
