from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional, Tuple

from toot_otto.app.engine.constants import MAX_AI_DEPTH
from toot_otto.app.models.enums import ChipType, GameStatus


class GameCreate(BaseModel):
    rows: Optional[int] = Field(None, ge=1)
    cols: Optional[int] = Field(None, ge=1)
    with_ai: Optional[bool] = None
    player_one: Optional[str] = None
    player_two: Optional[str] = None
    ai_depth: Optional[int] = Field(None, ge=1, le=MAX_AI_DEPTH)
    seed: Optional[int] = None


class MoveRequest(BaseModel):
    # Allow 't'/'o' and trailing spaces from clients
    chip: str
    column: int


class MoveRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    row: int
    column: int
    move_index: int
    chip: ChipType
    value: int
    player: str


class MoveResponse(BaseModel):
    move: MoveRecord
    status: GameStatus
    winner: str


class SuggestionResponse(BaseModel):
    chip: ChipType
    column: int


class GameResponse(BaseModel):
    id: int
    rows: int
    cols: int
    status: GameStatus
    winner: str
    current_player: str
    player_one: str
    player_two: str
    with_ai: bool
    ai_depth: int
    move_count: int
    # Top row first, '_' for empty cells
    board: List[List[str]]
    winning_cells: List[Tuple[int, int]] = []
    history: List[MoveRecord] = []


class ConfigResponse(BaseModel):
    rows: int
    cols: int
    ai_depth: int
    with_ai: bool
    max_cells: int
    max_ai_depth: int
