"""
Referee: the rules engine seen by the session controller.

- Owns a python-chess Board; applies moves (Move or UCI/SAN text) and reports SAN.
- Enumerates legal moves for the whole board or one square, with chess.js-style flags.
- Exposes terminal predicates and an 8x8 grid snapshot for material counting.
- Manages PGN headers and serializes the game.

Sessions are immutable snapshots, so a Referee is rebuilt from (start FEN, UCI list)
via Referee.replay() whenever the controller needs the live position.
"""
from __future__ import annotations
import chess, chess.pgn, datetime
from typing import Iterable, Optional

from .models import Color, Move, Piece, PieceKind, PossibleMove, color_name


class Referee:
    """Plain chess referee around python-chess Board and PGN export."""
    def __init__(self, starting_fen: str | None = None):
        self.board = chess.Board(fen=starting_fen) if starting_fen else chess.Board()
        self._headers: dict[str, str] = {}

    @classmethod
    def replay(cls, starting_fen: str | None, ucis: Iterable[str]) -> "Referee":
        ref = cls(starting_fen)
        for uci in ucis:
            ref.board.push_uci(uci)
        return ref

    # ---------------- Header Management -----------------
    def set_headers(self, event: str = "LLM Chess Session", site: str = "?", date: Optional[str] = None,
                    round_: str = "?", white: str = "?", black: str = "?") -> None:
        date = date or datetime.date.today().strftime("%Y.%m.%d")
        self._headers.update({
            "Event": event,
            "Site": site,
            "Date": date,
            "Round": round_,
            "White": white,
            "Black": black,
        })

    # ---------------- Position -----------------
    def fen(self) -> str:
        return self.board.fen()

    def turn(self) -> Color:
        return color_name(self.board.turn)

    def grid(self) -> list[list[Optional[Piece]]]:
        """8x8 snapshot, rank 8 first, file a first (same orientation as a FEN)."""
        rows: list[list[Optional[Piece]]] = []
        for rank in range(7, -1, -1):
            row: list[Optional[Piece]] = []
            for file in range(8):
                p = self.board.piece_at(chess.square(file, rank))
                row.append(Piece(PieceKind.from_piece_type(p.piece_type), color_name(p.color)) if p else None)
            rows.append(row)
        return rows

    # ---------------- Legal moves -----------------
    def legal_uci(self) -> list[str]:
        return sorted(m.uci() for m in self.board.legal_moves)

    def legal_targets(self, square: str) -> list[PossibleMove]:
        try:
            sq = chess.parse_square(square)
        except ValueError:
            return []
        return [
            PossibleMove(to=chess.square_name(m.to_square), flags=self._flags(m))
            for m in self.board.legal_moves
            if m.from_square == sq
        ]

    def _flags(self, mv: chess.Move) -> str:
        flags = ""
        if self.board.is_en_passant(mv):
            flags += "e"
        elif self.board.is_capture(mv):
            flags += "c"
        if mv.promotion:
            flags += "p"
        if self.board.is_kingside_castling(mv):
            flags += "k"
        elif self.board.is_queenside_castling(mv):
            flags += "q"
        piece = self.board.piece_at(mv.from_square)
        if piece and piece.piece_type == chess.PAWN and abs(chess.square_rank(mv.to_square) - chess.square_rank(mv.from_square)) == 2:
            flags += "b"
        return flags or "n"

    # ---------------- Move Application -----------------
    def to_chess_move(self, move: Move) -> chess.Move:
        """Convert to a python-chess move. A promotion piece is dropped unless a pawn reaches the last rank."""
        mv = chess.Move.from_uci(move.uci())
        if mv.promotion and not self._is_promotion_square(mv):
            mv = chess.Move(mv.from_square, mv.to_square)
        return mv

    def _is_promotion_square(self, mv: chess.Move) -> bool:
        piece = self.board.piece_at(mv.from_square)
        if not piece or piece.piece_type != chess.PAWN:
            return False
        last_rank = 7 if piece.color == chess.WHITE else 0
        return chess.square_rank(mv.to_square) == last_rank

    def is_legal(self, move: Move) -> bool:
        try:
            return self.to_chess_move(move) in self.board.legal_moves
        except ValueError:
            # e.g. a null move such as e7e7, which python-chess refuses to parse
            return False

    def apply_move(self, move: Move) -> tuple[bool, str | None]:
        if not self.is_legal(move):
            return False, None
        mv = self.to_chess_move(move)
        san = self.board.san(mv)
        self.board.push(mv)
        return True, san

    def parse_move(self, text: str) -> Optional[Move]:
        """Read a human move in UCI (syntax only) or SAN (must be legal); None if neither parses."""
        raw = (text or "").strip()
        if not raw:
            return None
        try:
            return Move.from_uci(raw)
        except ValueError:
            pass
        try:
            return Move.from_chess(self.board.parse_san(raw))
        except ValueError:
            return None

    # ---------------- Terminal predicates -----------------
    def is_checkmate(self) -> bool:
        return self.board.is_checkmate()

    def is_stalemate(self) -> bool:
        return self.board.is_stalemate()

    def is_threefold_repetition(self) -> bool:
        return self.board.is_repetition(3)

    def is_insufficient_material(self) -> bool:
        return self.board.is_insufficient_material()

    def is_draw(self) -> bool:
        """Generic draw: stalemate, fifty-move rule, repetition or insufficient material."""
        return (
            self.is_stalemate()
            or self.board.is_fifty_moves()
            or self.is_threefold_repetition()
            or self.is_insufficient_material()
        )

    # ---------------- PGN -----------------
    def pgn(self, result: str = "*", termination: Optional[str] = None) -> str:
        # from_board carries SetUp/FEN headers for non-standard starts
        game = chess.pgn.Game.from_board(self.board)
        for k, v in self._headers.items():
            game.headers[k] = v
        game.headers["Result"] = result
        if termination:
            game.comment = f"Termination: {termination}"
        exporter = chess.pgn.StringExporter(headers=True, variations=False, comments=bool(termination))
        return game.accept(exporter)
