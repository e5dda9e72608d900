"""
WebSocket Manager - Remote game sessions

This manager handles WebSocket connections per game:
- Accepts human moves and forwards them to the game service
- Broadcasts game state updates and engine events to connected clients
- Triggers the computer's reply when it is the AI's turn
"""

import asyncio
import json
import logging
from typing import Dict, List, Set

from fastapi import WebSocket, WebSocketDisconnect

from toot_otto.app.engine.errors import InvalidMove
from toot_otto.app.services.game_service import GameNotFound, GameService, GameSession, game_service

logger = logging.getLogger(__name__)


class ConnectionManager:
    def __init__(self, service: GameService = game_service):
        self.service = service
        # Maps game_id -> List of connected WebSockets
        self.active_connections: Dict[int, List[WebSocket]] = {}

        # Games where the AI is currently thinking
        self.processing_game_ids: Set[int] = set()

    async def connect(self, websocket: WebSocket, game_id: int):
        await websocket.accept()
        self.active_connections.setdefault(game_id, []).append(websocket)

    def disconnect(self, websocket: WebSocket, game_id: int):
        if game_id in self.active_connections:
            if websocket in self.active_connections[game_id]:
                self.active_connections[game_id].remove(websocket)
            if not self.active_connections[game_id]:
                del self.active_connections[game_id]

    async def broadcast(self, game_id: int, message: dict):
        """Broadcast message to all connected clients for this game"""
        for connection in self.active_connections.get(game_id, [])[:]:
            try:
                await connection.send_json(message)
            except (RuntimeError, WebSocketDisconnect):
                # Drop dead connections
                self.disconnect(connection, game_id)

    async def broadcast_events(self, session: GameSession):
        for event in session.events.drain():
            await self.broadcast(session.id, {"type": "EVENT", **event})

    async def broadcast_state(self, session: GameSession):
        await self.broadcast_events(session)
        await self.broadcast(session.id, self._build_state_message(session))

    async def handle_game_session(self, websocket: WebSocket, game_id: int):
        try:
            session = self.service.get(game_id)
        except GameNotFound:
            await websocket.close(code=4004)  # Game not found
            return

        await self.connect(websocket, game_id)
        try:
            await websocket.send_json(self._build_state_message(session))
            # Resume a game left on the computer's turn
            await self._check_and_trigger_ai(session)

            while True:
                data = await websocket.receive_text()
                try:
                    payload = json.loads(data)
                except json.JSONDecodeError:
                    await websocket.send_json({"type": "ERROR", "detail": "Malformed JSON"})
                    continue
                if not isinstance(payload, dict):
                    await websocket.send_json({"type": "ERROR", "detail": "Expected a JSON object"})
                    continue

                if payload.get("action") == "MOVE":
                    await self._handle_human_move(websocket, session, payload)
                else:
                    await websocket.send_json({"type": "ERROR", "detail": f"Unknown action: {payload.get('action')}"})
        except WebSocketDisconnect:
            pass
        finally:
            self.disconnect(websocket, game_id)

    async def _handle_human_move(self, websocket: WebSocket, session: GameSession, payload: dict):
        """Process a human move and trigger the AI response if needed"""
        try:
            self.service.process_human_move(session.id, payload.get("chip"), payload.get("column"))
        except InvalidMove as e:
            logger.warning("Invalid move in game %d: %s", session.id, e)
            await websocket.send_json({"type": "ERROR", "detail": str(e)})
            await self.broadcast_events(session)
            return

        await self.broadcast_state(session)
        await self._check_and_trigger_ai(session)

    async def _check_and_trigger_ai(self, session: GameSession):
        if session.game.is_ai_turn and session.id not in self.processing_game_ids:
            await self._execute_ai_turn(session)

    async def _execute_ai_turn(self, session: GameSession):
        """Run the search in a worker thread so the event loop stays free"""
        self.processing_game_ids.add(session.id)
        try:
            await self.broadcast(session.id, {"type": "THINKING_START"})
            await asyncio.to_thread(self.service.step_ai_turn, session.id)
            await self.broadcast(session.id, {"type": "THINKING_END"})
            await self.broadcast_state(session)
        except InvalidMove as e:
            # Game ended or changed turn while thinking
            logger.warning("AI turn skipped in game %d: %s", session.id, e)
            await self.broadcast(session.id, {"type": "THINKING_END"})
        finally:
            self.processing_game_ids.discard(session.id)

    def _build_state_message(self, session: GameSession) -> dict:
        """Build WebSocket message from the game state"""
        state = self.service.to_response(session)
        return {
            "type": "UPDATE",
            "board": state.board,
            "currentPlayer": state.current_player,
            "winner": state.winner,
            "status": str(state.status),
            "moveCount": state.move_count,
            "lastMove": state.history[-1].model_dump(mode="json") if state.history else None,
        }


# Singleton instance
manager = ConnectionManager()
