import unittest
from dataclasses import replace

from llmchess_session.material import compute_material
from llmchess_session.models import Material
from llmchess_session.session import (
    GameSession, InvalidProposal, Limits, MoveApplied, MoveRecord, TurnChanged,
    apply_event, evaluate_limits,
)
from llmchess_session.status import Draw, Forfeit, InProgress


class ApplyEventTests(unittest.TestCase):
    def test_new_session(self):
        s = GameSession.new()
        self.assertEqual(s.history, ())
        self.assertEqual(s.invalid_move_count, 0)
        self.assertIsNone(s.manual_override)
        self.assertEqual(s.material, Material(39, 39))
        self.assertEqual(s.turn, "white")
        self.assertTrue(s.human_to_move())

    def test_move_applied_appends_and_recomputes_material(self):
        s = GameSession.new()
        for uci, san in [("e2e4", "e4"), ("d7d5", "d5"), ("e4d5", "exd5")]:
            actor = "human" if s.human_to_move() else "ai"
            s = apply_event(s, MoveApplied(0, MoveRecord(actor=actor, uci=uci, san=san)))
        self.assertEqual(s.sans, ["e4", "d5", "exd5"])
        self.assertEqual(s.material, Material(39, 38))
        self.assertEqual(s.material, compute_material(s.referee().grid()))
        self.assertEqual(s.turn, "black")

    def test_invalid_proposal_increments_by_one(self):
        s = apply_event(GameSession.new(), InvalidProposal(0, "provider_error"))
        self.assertEqual(s.invalid_move_count, 1)

    def test_events_from_other_generation_are_ignored(self):
        s = GameSession.new(generation=2)
        self.assertIs(apply_event(s, InvalidProposal(1, "stale")), s)
        self.assertIs(apply_event(s, TurnChanged(2)), s)

    def test_referee_copy_is_independent(self):
        s = GameSession.new()
        ref = s.referee()
        ref.board.push_uci("e2e4")
        self.assertEqual(s.history, ())
        self.assertEqual(s.turn, "white")


class LimitWatcherTests(unittest.TestCase):
    def _with_history(self, n: int) -> GameSession:
        s = GameSession.new()
        ucis = ["g1f3", "g8f6", "f3g1", "f6g8"]
        for i in range(n):
            s = apply_event(s, MoveApplied(0, MoveRecord(actor="human", uci=ucis[i % 4], san="?")))
        return s

    def test_forfeit_on_invalid_limit(self):
        s = replace(GameSession.new(), invalid_move_count=3)
        s = evaluate_limits(s, Limits(max_invalid_moves=3))
        self.assertIsInstance(s.manual_override, Forfeit)
        self.assertEqual(s.manual_override.winner, "white")
        self.assertEqual(s.status(), s.manual_override)

    def test_draw_on_move_limit(self):
        s = evaluate_limits(self._with_history(4), Limits(max_game_moves=4))
        self.assertEqual(s.status(), Draw(reason="Max moves reached"))

    def test_forfeit_checked_before_move_limit(self):
        s = replace(self._with_history(2), invalid_move_count=3)
        s = evaluate_limits(s, Limits(max_game_moves=2, max_invalid_moves=3))
        self.assertIsInstance(s.manual_override, Forfeit)

    def test_override_is_sticky(self):
        s = evaluate_limits(self._with_history(2), Limits(max_game_moves=2))
        s = replace(s, invalid_move_count=5)
        s = evaluate_limits(s, Limits(max_game_moves=2, max_invalid_moves=3))
        self.assertEqual(s.manual_override, Draw(reason="Max moves reached"))

    def test_below_limits_in_progress(self):
        s = evaluate_limits(self._with_history(3), Limits())
        self.assertIsNone(s.manual_override)
        self.assertEqual(s.status(), InProgress())

    def test_human_black_forfeit_winner(self):
        s = replace(GameSession.new(human_color="black"), invalid_move_count=1)
        s = evaluate_limits(s, Limits(max_invalid_moves=1))
        self.assertEqual(s.manual_override.winner, "black")


if __name__ == "__main__":
    unittest.main()
