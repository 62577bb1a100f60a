"""
Game status variants and the resolver that picks exactly one of them.

Precedence, evaluated on every call:
  1. a manual override (forfeit / move-limit draw) wins unconditionally;
  2. checkmate, credited to the side that delivered mate;
  3. stalemate;
  4. any other draw, with reason threefold repetition > insufficient material > "Draw";
  5. otherwise the game is in progress.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

from .models import Color, opposite
from .referee import Referee

THREEFOLD_REASON = "Threefold Repetition"
INSUFFICIENT_REASON = "Insufficient Material"
GENERIC_DRAW_REASON = "Draw"
MAX_MOVES_REASON = "Max moves reached"
FORFEIT_REASON = "AI forfeited after too many invalid moves"


@dataclass(frozen=True)
class InProgress:
    kind = "in_progress"
    is_terminal = False

    def to_dict(self) -> dict:
        return {"kind": self.kind, "terminal": False, "winner": None, "reason": ""}


@dataclass(frozen=True)
class Checkmate:
    winner: Color
    kind = "checkmate"
    is_terminal = True

    def to_dict(self) -> dict:
        return {"kind": self.kind, "terminal": True, "winner": self.winner, "reason": "Checkmate"}


@dataclass(frozen=True)
class Stalemate:
    kind = "stalemate"
    is_terminal = True

    def to_dict(self) -> dict:
        return {"kind": self.kind, "terminal": True, "winner": "draw", "reason": "Stalemate"}


@dataclass(frozen=True)
class Draw:
    reason: str
    kind = "draw"
    is_terminal = True

    def to_dict(self) -> dict:
        return {"kind": self.kind, "terminal": True, "winner": "draw", "reason": self.reason}


@dataclass(frozen=True)
class Forfeit:
    winner: Color
    reason: str
    kind = "forfeit"
    is_terminal = True

    def to_dict(self) -> dict:
        return {"kind": self.kind, "terminal": True, "winner": self.winner, "reason": self.reason}


GameStatus = Union[InProgress, Checkmate, Stalemate, Draw, Forfeit]


def draw_reason(ref: Referee) -> str:
    if ref.is_threefold_repetition():
        return THREEFOLD_REASON
    if ref.is_insufficient_material():
        return INSUFFICIENT_REASON
    return GENERIC_DRAW_REASON


def resolve_status(manual_override: Optional[GameStatus], ref: Referee) -> GameStatus:
    if manual_override is not None:
        return manual_override
    if ref.is_checkmate():
        # the side to move is the one that got mated
        return Checkmate(winner=opposite(ref.turn()))
    if ref.is_stalemate():
        return Stalemate()
    if ref.is_draw():
        return Draw(reason=draw_reason(ref))
    return InProgress()


def pgn_result(status: GameStatus) -> str:
    """Map a status onto a PGN result token."""
    if isinstance(status, (Checkmate, Forfeit)):
        return "1-0" if status.winner == "white" else "0-1"
    if isinstance(status, (Stalemate, Draw)):
        return "1/2-1/2"
    return "*"
