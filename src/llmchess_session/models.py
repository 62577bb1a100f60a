"""
Value types shared by the session controller and its collaborators.

- Move: from/to squares plus optional promotion piece (UCI round-trip).
- Piece/PieceKind: board occupants as reported by the referee grid snapshot.
- PossibleMove: a per-square legal target with chess.js-style flags.
- Material: per-side material score.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Literal, Optional

import chess

Color = Literal["white", "black"]

SQUARE_RE = re.compile(r"^[a-h][1-8]$")
UCI_RE = re.compile(r"^[a-h][1-8][a-h][1-8][qrbn]?$")


class PieceKind(str, Enum):
    PAWN = "pawn"
    KNIGHT = "knight"
    BISHOP = "bishop"
    ROOK = "rook"
    QUEEN = "queen"
    KING = "king"

    @property
    def symbol(self) -> str:
        return chess.piece_symbol(self.piece_type)

    @property
    def piece_type(self) -> int:
        return chess.PIECE_NAMES.index(self.value)

    @classmethod
    def from_piece_type(cls, piece_type: int) -> "PieceKind":
        return cls(chess.piece_name(piece_type))

    @classmethod
    def parse(cls, raw: str) -> "PieceKind":
        """Accept a piece name ('queen') or letter ('q', 'Q')."""
        text = (raw or "").strip().lower()
        if len(text) == 1 and text in chess.PIECE_SYMBOLS:
            return cls.from_piece_type(chess.PIECE_SYMBOLS.index(text))
        return cls(text)


@dataclass(frozen=True)
class Move:
    from_square: str
    to_square: str
    promotion: Optional[PieceKind] = None

    def __post_init__(self):
        if not SQUARE_RE.match(self.from_square) or not SQUARE_RE.match(self.to_square):
            raise ValueError(f"bad square in move {self.from_square}{self.to_square}")

    def uci(self) -> str:
        promo = self.promotion.symbol if self.promotion else ""
        return f"{self.from_square}{self.to_square}{promo}"

    def with_promotion(self, kind: Optional[PieceKind]) -> "Move":
        return Move(self.from_square, self.to_square, kind)

    @classmethod
    def from_uci(cls, uci: str) -> "Move":
        text = (uci or "").strip().lower()
        if not UCI_RE.match(text):
            raise ValueError(f"bad uci move: {uci!r}")
        promo = PieceKind.parse(text[4]) if len(text) == 5 else None
        return cls(text[:2], text[2:4], promo)

    @classmethod
    def from_chess(cls, mv: chess.Move) -> "Move":
        promo = PieceKind.from_piece_type(mv.promotion) if mv.promotion else None
        return cls(chess.square_name(mv.from_square), chess.square_name(mv.to_square), promo)


@dataclass(frozen=True)
class Piece:
    kind: PieceKind
    color: Color


@dataclass(frozen=True)
class PossibleMove:
    to: str
    flags: str


@dataclass(frozen=True)
class Material:
    white: int
    black: int

    def to_dict(self) -> dict:
        return {"white": self.white, "black": self.black}


def color_name(turn: bool) -> Color:
    return "white" if turn == chess.WHITE else "black"


def opposite(color: Color) -> Color:
    return "black" if color == "white" else "white"
