import time
import unittest
import uuid

from llmchess_session import server


def _wait_for(client, game_id, predicate, timeout=5.0):
    deadline = time.time() + timeout
    while True:
        state = client.get(f"/api/human-games/{game_id}").get_json()
        if predicate(state) or time.time() > deadline:
            return state
        time.sleep(0.02)


class HumanGameApiTests(unittest.TestCase):
    def setUp(self):
        server.app.config["TESTING"] = True
        self.client = server.app.test_client()

    def _create(self, **payload):
        payload.setdefault("opponent", "random")
        payload.setdefault("seed", 7)
        rsp = self.client.post("/api/human-games", json=payload)
        self.assertEqual(rsp.status_code, 200, rsp.get_json())
        return rsp.get_json()

    def test_create_and_play_one_round(self):
        state = self._create()
        gid = state["human_game_id"]
        self.assertEqual(state["state"], "waiting_for_human")
        self.assertEqual(state["material"], {"white": 39, "black": 39})
        self.assertEqual(state["history"], [])
        self.assertEqual(state["opponent"], "Random")

        rsp = self.client.post(f"/api/human-games/{gid}/move", json={"human_move": {"from": "e2", "to": "e4"}})
        self.assertEqual(rsp.status_code, 200)
        body = rsp.get_json()
        self.assertEqual(body["human_move"], {"uci": "e2e4", "san": "e4"})

        state = _wait_for(self.client, gid, lambda s: s["state"] == "waiting_for_human" and not s["thinking"])
        self.assertEqual(len(state["history"]), 2)
        self.assertEqual(state["history"][0], "e4")
        self.assertEqual(state["side_to_move"], "white")

    def test_illegal_move_rejected_without_change(self):
        gid = self._create()["human_game_id"]
        rsp = self.client.post(f"/api/human-games/{gid}/move", json={"human_move": "e2e5"})
        self.assertEqual(rsp.status_code, 400)
        body = rsp.get_json()
        self.assertEqual(body["error"], "illegal_move")
        self.assertEqual(body["history"], [])
        self.assertEqual(body["invalid_move_count"], 0)

        rsp = self.client.post(f"/api/human-games/{gid}/move", json={"human_move": "e2e2"})
        self.assertEqual(rsp.status_code, 400)
        self.assertEqual(rsp.get_json()["error"], "illegal_move")

    def test_missing_move(self):
        gid = self._create()["human_game_id"]
        rsp = self.client.post(f"/api/human-games/{gid}/move", json={})
        self.assertEqual(rsp.status_code, 400)

    def test_unknown_game(self):
        self.assertEqual(self.client.get("/api/human-games/nope").status_code, 404)
        self.assertEqual(self.client.post("/api/human-games/nope/reset").status_code, 404)

    def test_bad_opponent(self):
        rsp = self.client.post("/api/human-games", json={"opponent": "stockfish"})
        self.assertEqual(rsp.status_code, 400)

    def test_duplicate_game_id_conflicts(self):
        gid = f"dup_{uuid.uuid4().hex[:8]}"
        first = self._create(human_game_id=gid)
        self.assertEqual(first["human_game_id"], gid)
        original = server.HUMAN_GAMES[gid]

        rsp = self.client.post("/api/human-games", json={"opponent": "random", "human_game_id": gid})
        self.assertEqual(rsp.status_code, 409)
        self.assertIs(server.HUMAN_GAMES[gid], original)
        self.assertFalse(original["driver"].cancelled())
        self.assertEqual(self.client.get(f"/api/human-games/{gid}").status_code, 200)

    def test_legal_moves_for_square(self):
        gid = self._create()["human_game_id"]
        rsp = self.client.get(f"/api/human-games/{gid}/legal-moves?square=e2")
        moves = {m["to"]: m["flags"] for m in rsp.get_json()["moves"]}
        self.assertEqual(moves, {"e3": "n", "e4": "b"})

    def test_reset(self):
        gid = self._create()["human_game_id"]
        self.client.post(f"/api/human-games/{gid}/move", json={"human_move": "d2d4"})
        _wait_for(self.client, gid, lambda s: len(s["history"]) == 2 and not s["thinking"])
        state = self.client.post(f"/api/human-games/{gid}/reset").get_json()
        self.assertEqual(state["history"], [])
        self.assertEqual(state["generation"], 1)
        self.assertEqual(state["invalid_move_count"], 0)
        self.assertEqual(state["status"]["kind"], "in_progress")

    def test_human_plays_black(self):
        state = self._create(human_plays="black")
        gid = state["human_game_id"]
        self.assertEqual(state["human_side"], "black")
        state = _wait_for(self.client, gid, lambda s: len(s["history"]) == 1 and not s["thinking"])
        self.assertEqual(state["state"], "waiting_for_human")
        self.assertEqual(state["side_to_move"], "black")

    def test_history_export(self):
        gid = self._create()["human_game_id"]
        self.client.post(f"/api/human-games/{gid}/move", json={"human_move": "Nf3"})
        _wait_for(self.client, gid, lambda s: len(s["history"]) == 2)
        data = self.client.get(f"/api/human-games/{gid}/history").get_json()
        self.assertEqual(len(data["moves"]), 2)
        self.assertEqual(data["moves"][0]["san"], "Nf3")
        self.assertIn("1. Nf3", data["pgn"])


if __name__ == "__main__":
    unittest.main()
