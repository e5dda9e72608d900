import asyncio
import logging
from typing import List, Optional

from fastapi import FastAPI, HTTPException, Request, WebSocket
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from toot_otto.app.api.websocket_manager import manager
from toot_otto.app.core.config import settings
from toot_otto.app.engine.board import render
from toot_otto.app.engine.constants import MAX_AI_DEPTH, MAX_CELLS
from toot_otto.app.engine.errors import InvalidMove, SearchExhausted
from toot_otto.app.models.enums import GameStatus
from toot_otto.app.schemas.game_schema import (
    ConfigResponse,
    GameCreate,
    GameResponse,
    MoveRecord,
    MoveRequest,
    MoveResponse,
    SuggestionResponse,
)
from toot_otto.app.services.game_service import GameNotFound, game_service

logging.basicConfig(level=settings.log_level.upper())
logger = logging.getLogger(__name__)

app = FastAPI(title="TOOT-OTTO")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(GameNotFound)
async def game_not_found_handler(request: Request, exc: GameNotFound):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(InvalidMove)
async def invalid_move_handler(request: Request, exc: InvalidMove):
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.get("/config", response_model=ConfigResponse)
async def get_config():
    """Defaults used for new games."""
    cfg = game_service.config
    return ConfigResponse(
        rows=cfg.rows,
        cols=cfg.cols,
        ai_depth=cfg.ai_depth,
        with_ai=cfg.with_ai,
        max_cells=MAX_CELLS,
        max_ai_depth=MAX_AI_DEPTH,
    )


@app.post("/games", response_model=GameResponse)
async def create_game(game_data: GameCreate):
    session = game_service.create_game(game_data)
    return game_service.to_response(session)


@app.get("/games", response_model=List[GameResponse])
async def list_games(status: Optional[GameStatus] = None):
    """List games, optionally filtered by status."""
    return [game_service.to_response(s) for s in game_service.list_games(status)]


@app.get("/games/{game_id}", response_model=GameResponse)
async def get_game(game_id: int):
    return game_service.to_response(game_service.get(game_id))


@app.get("/games/{game_id}/board", response_class=PlainTextResponse)
async def get_board(game_id: int, layer: str = "chip"):
    session = game_service.get(game_id)
    if layer not in ("chip", "mover"):
        raise HTTPException(status_code=400, detail=f"Unknown layer: {layer}")
    return render(session.game.board, layer)


@app.post("/games/{game_id}/moves", response_model=MoveResponse)
async def make_move(game_id: int, payload: MoveRequest):
    session = game_service.get(game_id)
    try:
        move = game_service.process_human_move(game_id, payload.chip, payload.column)
    except InvalidMove:
        await manager.broadcast_events(session)
        raise
    await manager.broadcast_state(session)
    return MoveResponse(move=MoveRecord.model_validate(move), status=session.game.state, winner=session.game.winner)


@app.post("/games/{game_id}/ai-move", response_model=MoveResponse)
async def make_ai_move(game_id: int):
    try:
        move = await asyncio.to_thread(game_service.step_ai_turn, game_id)
    except SearchExhausted as e:
        raise HTTPException(status_code=409, detail=str(e))
    session = game_service.get(game_id)
    await manager.broadcast_state(session)
    return MoveResponse(move=MoveRecord.model_validate(move), status=session.game.state, winner=session.game.winner)


@app.get("/games/{game_id}/ai-suggestion", response_model=SuggestionResponse)
async def get_ai_suggestion(game_id: int):
    """What the computer would play now, without playing it."""
    try:
        chip, column = game_service.suggest_move(game_id)
    except SearchExhausted as e:
        raise HTTPException(status_code=409, detail=str(e))
    return SuggestionResponse(chip=chip, column=column)


@app.delete("/games/{game_id}")
async def delete_game(game_id: int):
    game_service.delete_game(game_id)
    return {"message": f"Game {game_id} deleted"}


@app.websocket("/games/{game_id}/ws")
async def game_websocket(websocket: WebSocket, game_id: int):
    await manager.handle_game_session(websocket, game_id)
