"""Material count per side from a referee grid snapshot."""
from __future__ import annotations

from typing import Optional, Sequence

from .models import Material, Piece, PieceKind

PIECE_VALUES: dict[PieceKind, int] = {
    PieceKind.PAWN: 1,
    PieceKind.KNIGHT: 3,
    PieceKind.BISHOP: 3,
    PieceKind.ROOK: 5,
    PieceKind.QUEEN: 9,
    PieceKind.KING: 0,
}

STARTING_MATERIAL = 39


def compute_material(grid: Sequence[Sequence[Optional[Piece]]]) -> Material:
    white = 0
    black = 0
    for row in grid:
        for piece in row:
            if piece is None:
                continue
            if piece.color == "white":
                white += PIECE_VALUES[piece.kind]
            else:
                black += PIECE_VALUES[piece.kind]
    return Material(white=white, black=black)
