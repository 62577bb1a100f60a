import unittest

from llmchess_session.material import STARTING_MATERIAL, compute_material
from llmchess_session.models import Material, Move, Piece, PieceKind
from llmchess_session.referee import Referee


class MaterialTests(unittest.TestCase):
    def test_starting_material(self):
        self.assertEqual(compute_material(Referee().grid()), Material(STARTING_MATERIAL, STARTING_MATERIAL))

    def test_capture_reduces_material(self):
        ref = Referee("rnbqkbnr/pppp1ppp/8/4p3/3P4/8/PPP1PPPP/RNBQKBNR w KQkq e6 0 2")
        ok, san = ref.apply_move(Move.from_uci("d4e5"))
        self.assertTrue(ok)
        self.assertEqual(san, "dxe5")
        self.assertEqual(compute_material(ref.grid()), Material(39, 38))

    def test_kings_count_zero(self):
        grid = [[None] * 8 for _ in range(8)]
        grid[0][4] = Piece(PieceKind.KING, "black")
        grid[7][4] = Piece(PieceKind.KING, "white")
        grid[7][3] = Piece(PieceKind.QUEEN, "white")
        grid[1][0] = Piece(PieceKind.ROOK, "black")
        self.assertEqual(compute_material(grid), Material(9, 5))


class RefereeTests(unittest.TestCase):
    def test_grid_orientation(self):
        grid = Referee().grid()
        self.assertEqual(grid[0][0], Piece(PieceKind.ROOK, "black"))
        self.assertEqual(grid[7][4], Piece(PieceKind.KING, "white"))
        self.assertIsNone(grid[4][4])

    def test_legal_targets_with_flags(self):
        targets = {t.to: t.flags for t in Referee().legal_targets("e2")}
        self.assertEqual(targets, {"e3": "n", "e4": "b"})
        self.assertEqual(Referee().legal_targets("e5"), [])
        self.assertEqual(Referee().legal_targets("zz"), [])

    def test_capture_and_castle_flags(self):
        ref = Referee("r3k2r/8/8/8/8/8/8/R3K2R w KQkq - 0 1")
        targets = {t.to: t.flags for t in ref.legal_targets("e1")}
        self.assertEqual(targets["g1"], "k")
        self.assertEqual(targets["c1"], "q")
        rook = {t.to: t.flags for t in ref.legal_targets("a1")}
        self.assertEqual(rook["a8"], "c")

    def test_promotion_dropped_on_non_promoting_move(self):
        ref = Referee()
        ok, san = ref.apply_move(Move("e2", "e4", PieceKind.QUEEN))
        self.assertTrue(ok)
        self.assertEqual(san, "e4")

    def test_promotion_applied_on_last_rank(self):
        ref = Referee("8/P7/8/8/8/8/8/k6K w - - 0 1")
        ok, san = ref.apply_move(Move("a7", "a8", PieceKind.QUEEN))
        self.assertTrue(ok)
        self.assertTrue(san.startswith("a8=Q"))

    def test_illegal_move_leaves_board(self):
        ref = Referee()
        fen = ref.fen()
        self.assertEqual(ref.apply_move(Move("e2", "e5")), (False, None))
        self.assertEqual(ref.fen(), fen)

    def test_same_square_move_is_illegal(self):
        ref = Referee()
        fen = ref.fen()
        self.assertFalse(ref.is_legal(Move("e2", "e2")))
        self.assertEqual(ref.apply_move(Move("e2", "e2", PieceKind.QUEEN)), (False, None))
        self.assertEqual(ref.fen(), fen)

    def test_parse_move_accepts_san_and_uci(self):
        ref = Referee()
        self.assertEqual(ref.parse_move("Nf3"), Move("g1", "f3"))
        self.assertEqual(ref.parse_move("e2e4"), Move("e2", "e4"))
        self.assertIsNone(ref.parse_move("Qh5"))
        self.assertIsNone(ref.parse_move(""))

    def test_pgn_has_headers_and_result(self):
        ref = Referee()
        ref.apply_move(Move("e2", "e4"))
        ref.set_headers(white="Human", black="Random")
        pgn = ref.pgn(result="1/2-1/2", termination="Max moves reached")
        self.assertIn('[White "Human"]', pgn)
        self.assertIn('[Result "1/2-1/2"]', pgn)
        self.assertIn("1. e4", pgn)


if __name__ == "__main__":
    unittest.main()
