"""
Immutable session snapshot and the events that move it forward.

A GameSession is never mutated: apply_event(session, event) returns the next
snapshot, and evaluate_limits(session, limits) applies the two limit watchers
(invalid-move forfeit first, then the move-count draw). Replaying the same events
from GameSession.new() always reproduces the same session.
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from functools import cached_property
from typing import Literal, Optional, Union

import chess

from .material import STARTING_MATERIAL, compute_material
from .models import Color, Material, opposite
from .referee import Referee
from .status import FORFEIT_REASON, MAX_MOVES_REASON, Draw, Forfeit, GameStatus, resolve_status

Actor = Literal["human", "ai"]


@dataclass(frozen=True)
class MoveRecord:
    """One applied half-move."""
    actor: Actor
    uci: str
    san: str
    source: str = "human"  # human | provider | fallback | random


@dataclass(frozen=True)
class Limits:
    max_game_moves: int = 200
    max_invalid_moves: int = 3


# ---------------- Events -----------------
@dataclass(frozen=True)
class MoveApplied:
    generation: int
    record: MoveRecord


@dataclass(frozen=True)
class InvalidProposal:
    generation: int
    reason: str


@dataclass(frozen=True)
class TurnChanged:
    """Enqueued once per accepted move; consumed by exactly one negotiation."""
    generation: int


Event = Union[MoveApplied, InvalidProposal, TurnChanged]


@dataclass(frozen=True)
class GameSession:
    generation: int = 0
    human_color: Color = "white"
    start_fen: str = chess.STARTING_FEN
    history: tuple[MoveRecord, ...] = ()
    invalid_move_count: int = 0
    manual_override: Optional[GameStatus] = None
    material: Material = field(default_factory=lambda: Material(STARTING_MATERIAL, STARTING_MATERIAL))

    @classmethod
    def new(cls, generation: int = 0, human_color: Color = "white", start_fen: str = chess.STARTING_FEN) -> "GameSession":
        ref = Referee(start_fen)
        return cls(
            generation=generation,
            human_color=human_color,
            start_fen=start_fen,
            material=compute_material(ref.grid()),
        )

    @cached_property
    def _referee(self) -> Referee:
        return Referee.replay(self.start_fen, (r.uci for r in self.history))

    def referee(self) -> Referee:
        """A fresh Referee for this position; callers may mutate it freely."""
        ref = Referee(self.start_fen)
        ref.board = self._referee.board.copy()
        return ref

    @property
    def ai_color(self) -> Color:
        return opposite(self.human_color)

    @property
    def fen(self) -> str:
        return self._referee.fen()

    @property
    def turn(self) -> Color:
        return self._referee.turn()

    @property
    def sans(self) -> list[str]:
        return [r.san for r in self.history]

    def status(self) -> GameStatus:
        return resolve_status(self.manual_override, self._referee)

    def is_terminal(self) -> bool:
        return self.status().is_terminal

    def human_to_move(self) -> bool:
        return self.turn == self.human_color

    def ai_to_move(self) -> bool:
        return self.turn == self.ai_color


def apply_event(session: GameSession, event: Event) -> GameSession:
    """Return the session that results from event. Events from another generation are ignored."""
    if event.generation != session.generation:
        return session
    if isinstance(event, MoveApplied):
        history = session.history + (event.record,)
        ref = Referee.replay(session.start_fen, (r.uci for r in history))
        return replace(session, history=history, material=compute_material(ref.grid()))
    if isinstance(event, InvalidProposal):
        return replace(session, invalid_move_count=session.invalid_move_count + 1)
    return session


def evaluate_limits(session: GameSession, limits: Limits) -> GameSession:
    """First writer wins: forfeit is checked before the move-count draw."""
    if session.manual_override is not None:
        return session
    if session.invalid_move_count >= limits.max_invalid_moves:
        return replace(session, manual_override=Forfeit(winner=session.human_color, reason=FORFEIT_REASON))
    if len(session.history) >= limits.max_game_moves:
        return replace(session, manual_override=Draw(reason=MAX_MOVES_REASON))
    return session
