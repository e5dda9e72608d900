import threading
import time
import unittest

from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from toot_otto.app.core.config import GameSettings
from toot_otto.app.engine.errors import InvalidMove
from toot_otto.app.main import app
from toot_otto.app.models.enums import GameStatus
from toot_otto.app.schemas.game_schema import GameCreate
from toot_otto.app.services.game_service import GameNotFound, GameService

SMALL_GAME = {"rows": 4, "cols": 4, "ai_depth": 1, "seed": 7}


class TestGameService(unittest.TestCase):
    def setUp(self):
        self.service = GameService(GameSettings(rows=4, cols=4, ai_depth=1, with_ai=False))

    def test_defaults_come_from_config(self):
        session = self.service.create_game()
        self.assertEqual((session.game.board.num_rows, session.game.board.num_cols), (4, 4))
        self.assertFalse(session.game.with_ai)
        self.assertEqual(session.game.state, GameStatus.RUNNING)

    def test_games_are_independent(self):
        first = self.service.create_game()
        second = self.service.create_game(GameCreate(rows=5, cols=5))
        self.service.process_human_move(first.id, "T", 0)

        self.assertEqual(first.game.move_count, 1)
        self.assertEqual(second.game.move_count, 0)
        self.assertEqual(second.game.board.num_rows, 5)

    def test_invalid_move_is_queued(self):
        session = self.service.create_game()
        with self.assertRaises(InvalidMove):
            self.service.process_human_move(session.id, "T", 4)

        events = session.events.drain()
        self.assertEqual(events[0]["event"], "INVALID_MOVE")
        self.assertEqual(session.events.drain(), [])

    def test_delete(self):
        session = self.service.create_game()
        self.service.delete_game(session.id)
        with self.assertRaises(GameNotFound):
            self.service.get(session.id)

    def test_list_by_status(self):
        done = self.service.create_game(GameCreate(rows=1, cols=4))
        self.service.create_game()
        for chip, column in [("T", 0), ("O", 1), ("O", 2), ("T", 3)]:
            self.service.process_human_move(done.id, chip, column)

        finished = self.service.list_games(GameStatus.DONE)
        self.assertEqual([s.id for s in finished], [done.id])
        self.assertEqual(len(self.service.list_games()), 2)

    def test_ai_turn(self):
        session = self.service.create_game(GameCreate(with_ai=True, seed=1))
        with self.assertRaises(InvalidMove):
            self.service.step_ai_turn(session.id)

        self.service.process_human_move(session.id, "T", 0)
        with self.assertRaises(InvalidMove):
            self.service.process_human_move(session.id, "O", 1)

        move = self.service.step_ai_turn(session.id)
        self.assertEqual(move.player, "Computer")
        self.assertEqual(len(session.history), 2)
        self.assertEqual(session.game.state, GameStatus.RUNNING)

    def test_finished_game_reports_game_over(self):
        """
        Scenario: 2x4 AI game won by the human on the fifth move, so the
        move count points at the computer. A late human move is refused
        because the game is over, not because of the turn.
        """
        session = self.service.create_game(GameCreate(rows=2, cols=4, with_ai=True))
        for chip, column in [("T", 0), ("O", 1), ("O", 2), ("T", 0), ("T", 3)]:
            session.game.apply_move(chip, column)
        self.assertEqual(session.game.state, GameStatus.DONE)
        self.assertTrue(session.game.is_ai_turn)

        with self.assertRaises(InvalidMove) as ctx:
            self.service.process_human_move(session.id, "T", 1)
        self.assertIn("DONE", str(ctx.exception))
        with self.assertRaises(InvalidMove) as ctx:
            self.service.step_ai_turn(session.id)
        self.assertIn("DONE", str(ctx.exception))


class TestComputerTurnLocking(unittest.TestCase):
    """The computer's turn is one locked step: think, then play."""

    def setUp(self):
        self.service = GameService(GameSettings(rows=4, cols=4, ai_depth=1, with_ai=True))
        self.session = self.service.create_game(GameCreate(seed=3))
        self.service.process_human_move(self.session.id, "T", 0)

        # Hold the computer inside apply_move long enough to overlap it
        self.applying = threading.Event()
        game = self.session.game
        apply_move = game.apply_move

        def slow_apply(chip, column):
            self.applying.set()
            time.sleep(0.3)
            return apply_move(chip, column)

        game.apply_move = slow_apply

    def run_step(self, moves, errors):
        try:
            moves.append(self.service.step_ai_turn(self.session.id))
        except InvalidMove as e:
            errors.append(e)

    def test_overlapping_steps_play_once(self):
        moves, errors = [], []
        first = threading.Thread(target=self.run_step, args=(moves, errors))
        second = threading.Thread(target=self.run_step, args=(moves, errors))

        first.start()
        self.assertTrue(self.applying.wait(5))
        second.start()
        first.join(10)
        second.join(10)

        self.assertEqual(len(moves), 1)
        self.assertEqual(len(errors), 1)
        self.assertEqual(self.session.game.move_count, 2)
        self.assertEqual([m.player for m in self.session.history], ["Player 1", "Computer"])

    def test_human_move_refused_while_computer_plays(self):
        moves, errors = [], []
        step = threading.Thread(target=self.run_step, args=(moves, errors))

        step.start()
        self.assertTrue(self.applying.wait(5))
        with self.assertRaises(InvalidMove):
            self.service.process_human_move(self.session.id, "O", 1)
        step.join(10)

        self.assertEqual(errors, [])
        self.assertEqual(self.session.game.move_count, 2)
        self.assertEqual(self.session.game.current_player, "Player 1")


class TestHttpApi(unittest.TestCase):
    def setUp(self):
        self.client = TestClient(app)

    def create(self, **overrides):
        response = self.client.post("/games", json={**SMALL_GAME, **overrides})
        self.assertEqual(response.status_code, 200)
        return response.json()

    def test_config(self):
        data = self.client.get("/config").json()
        self.assertEqual(data["max_cells"], 80)
        self.assertEqual(data["max_ai_depth"], 6)
        self.assertGreaterEqual(data["ai_depth"], 1)

    def test_create_and_move(self):
        game = self.create(with_ai=False)
        self.assertEqual(game["status"], "RUNNING")
        self.assertEqual(game["board"], [["_"] * 4] * 4)

        response = self.client.post(f"/games/{game['id']}/moves", json={"chip": "t", "column": 0})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["move"]["row"], 3)
        self.assertEqual(response.json()["move"]["chip"], "T")

        state = self.client.get(f"/games/{game['id']}").json()
        self.assertEqual(state["board"][3][0], "T")
        self.assertEqual(state["current_player"], "Player 2")
        self.assertEqual(len(state["history"]), 1)

        text = self.client.get(f"/games/{game['id']}/board").text
        self.assertEqual(text, "_ _ _ _ \n" * 3 + "T _ _ _ \n")
        movers = self.client.get(f"/games/{game['id']}/board", params={"layer": "mover"}).text
        self.assertEqual(movers, "_ _ _ _ \n" * 3 + "R _ _ _ \n")
        self.assertEqual(self.client.get(f"/games/{game['id']}/board", params={"layer": "x"}).status_code, 400)

    def test_rejected_requests(self):
        game = self.create(with_ai=False)
        url = f"/games/{game['id']}/moves"

        self.assertEqual(self.client.post(url, json={"chip": "X", "column": 0}).status_code, 400)
        self.assertEqual(self.client.post(url, json={"chip": "T", "column": 4}).status_code, 400)
        self.assertEqual(self.client.post("/games/999999/moves", json={"chip": "T", "column": 0}).status_code, 404)
        self.assertEqual(self.client.post("/games", json={"rows": 9, "cols": 9}).status_code, 400)
        self.assertEqual(self.client.post("/games", json={**SMALL_GAME, "ai_depth": 20}).status_code, 422)
        self.assertEqual(self.client.post("/games", json={**SMALL_GAME, "ai_depth": 0}).status_code, 422)
        self.assertEqual(self.client.get(f"/games/{game['id']}").json()["move_count"], 0)

    def test_computer_move(self):
        game = self.create(with_ai=True)
        self.assertEqual(game["player_two"], "Computer")
        self.client.post(f"/games/{game['id']}/moves", json={"chip": "O", "column": 1})

        suggestion = self.client.get(f"/games/{game['id']}/ai-suggestion")
        self.assertEqual(suggestion.status_code, 200)
        self.assertIn(suggestion.json()["column"], range(4))
        self.assertEqual(self.client.get(f"/games/{game['id']}").json()["move_count"], 1)

        response = self.client.post(f"/games/{game['id']}/ai-move")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["move"]["player"], "Computer")

        self.assertEqual(self.client.post(f"/games/{game['id']}/ai-move").status_code, 400)

    def test_game_over(self):
        game = self.create(with_ai=False, player_one="Ada", player_two="Bob")
        url = f"/games/{game['id']}/moves"
        for chip, column in [("T", 0), ("O", 1), ("O", 2)]:
            self.client.post(url, json={"chip": chip, "column": column})

        last = self.client.post(url, json={"chip": "T", "column": 3}).json()
        self.assertEqual(last["status"], "DONE")
        self.assertEqual(last["winner"], "Ada")

        state = self.client.get(f"/games/{game['id']}").json()
        self.assertEqual(state["winning_cells"], [[3, 0], [3, 1], [3, 2], [3, 3]])
        self.assertEqual(self.client.post(url, json={"chip": "T", "column": 0}).status_code, 400)

        done = self.client.get("/games", params={"status": "DONE"}).json()
        self.assertIn(game["id"], [g["id"] for g in done])

    def test_delete(self):
        game = self.create()
        self.assertEqual(self.client.delete(f"/games/{game['id']}").status_code, 200)
        self.assertEqual(self.client.get(f"/games/{game['id']}").status_code, 404)


class TestWebSocket(unittest.TestCase):
    def setUp(self):
        self.client = TestClient(app)

    def create(self, **overrides):
        return self.client.post("/games", json={**SMALL_GAME, **overrides}).json()

    def test_move_is_broadcast(self):
        game = self.create(with_ai=False)
        with self.client.websocket_connect(f"/games/{game['id']}/ws") as ws:
            first = ws.receive_json()
            self.assertEqual(first["type"], "UPDATE")
            self.assertEqual(first["moveCount"], 0)

            ws.send_json({"action": "MOVE", "chip": "T", "column": 2})
            event = ws.receive_json()
            self.assertEqual(event["type"], "EVENT")
            self.assertEqual(event["event"], "SELECTED_COLUMN")
            self.assertEqual(event["column"], 2)

            update = ws.receive_json()
            self.assertEqual(update["type"], "UPDATE")
            self.assertEqual(update["moveCount"], 1)
            self.assertEqual(update["lastMove"]["column"], 2)

    def test_errors_go_to_sender(self):
        game = self.create(with_ai=False)
        with self.client.websocket_connect(f"/games/{game['id']}/ws") as ws:
            ws.receive_json()

            ws.send_json({"action": "MOVE", "chip": "T", "column": 9})
            self.assertEqual(ws.receive_json()["type"], "ERROR")
            invalid = ws.receive_json()
            self.assertEqual(invalid["event"], "INVALID_MOVE")

            ws.send_text("not json")
            self.assertEqual(ws.receive_json()["type"], "ERROR")

            ws.send_json({"action": "DANCE"})
            self.assertEqual(ws.receive_json()["type"], "ERROR")

    def test_json_that_is_not_an_object(self):
        game = self.create(with_ai=False)
        with self.client.websocket_connect(f"/games/{game['id']}/ws") as ws:
            ws.receive_json()

            for frame in ("[1, 2]", '"x"', "3"):
                ws.send_text(frame)
                self.assertEqual(ws.receive_json()["type"], "ERROR")

            # The session survives and still takes moves
            ws.send_json({"action": "MOVE", "chip": "O", "column": 1})
            self.assertEqual(ws.receive_json()["type"], "EVENT")
            self.assertEqual(ws.receive_json()["moveCount"], 1)

    def test_computer_replies(self):
        game = self.create(with_ai=True)
        with self.client.websocket_connect(f"/games/{game['id']}/ws") as ws:
            ws.receive_json()
            ws.send_json({"action": "MOVE", "chip": "O", "column": 0})

            seen = []
            while True:
                message = ws.receive_json()
                seen.append(message["type"])
                if message["type"] == "UPDATE" and message["moveCount"] == 2:
                    break

        self.assertIn("THINKING_START", seen)
        self.assertIn("THINKING_END", seen)
        self.assertEqual(message["currentPlayer"], "Player 1")
        self.assertEqual(message["lastMove"]["player"], "Computer")

    def test_unknown_game(self):
        with self.assertRaises(WebSocketDisconnect):
            with self.client.websocket_connect("/games/999999/ws") as ws:
                ws.receive_json()


if __name__ == '__main__':
    unittest.main()
