"""
AIMoveNegotiator: turn one automated-side turn into exactly one legal move.

Resolution order for a single negotiate() call:
  1. provider error (transport, empty or malformed reply, or any other exception
     the provider raises) -> one invalid attempt, fallback;
  2. well-formed proposal rejected by the referee          -> one invalid attempt, fallback;
  3. otherwise the proposal is the move.
The fallback draws uniformly from the legal moves of a freshly built referee, so the
move is legal by construction. In "random" mode the provider is never called.
"""
from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import Optional

from .errors import IllegalProposalError, ProviderError
from .llm_opponent import MoveProvider, MoveRequest
from .models import Move
from .random_opponent import RandomOpponent
from .referee import Referee
from .session import GameSession

log = logging.getLogger("negotiator")

OPPONENT_MODES = ("llm", "random")


@dataclass(frozen=True)
class NegotiationResult:
    move: Move
    source: str  # provider | fallback | random
    invalid_attempt: bool = False
    reason: Optional[str] = None
    raw: Optional[str] = None


class AIMoveNegotiator:
    def __init__(self, provider: Optional[MoveProvider] = None, mode: str = "llm", rng: Optional[random.Random] = None):
        if mode not in OPPONENT_MODES:
            raise ValueError(f"unknown opponent mode {mode!r}; expected one of {OPPONENT_MODES}")
        if mode == "llm" and provider is None:
            raise ValueError("opponent mode 'llm' needs a move provider")
        self.provider = provider
        self.mode = mode
        self.fallback = RandomOpponent(rng)

    async def negotiate(self, session: GameSession) -> NegotiationResult:
        if self.mode == "random":
            return NegotiationResult(move=self._fallback_move(session), source="random")

        ref = session.referee()
        request = MoveRequest(
            fen=ref.fen(),
            side_to_move=ref.turn(),
            legal_moves=tuple(ref.legal_uci()),
            san_history=" ".join(session.sans),
        )
        try:
            proposal = await self.provider.propose(request)
        except ProviderError as exc:
            log.warning("Provider failed (gen %d, ply %d): %s", session.generation, len(session.history) + 1, exc)
            return self._fallback(session, f"provider_error: {exc}")
        except Exception as exc:
            log.exception("Provider raised unexpectedly (gen %d, ply %d)", session.generation, len(session.history) + 1)
            return self._fallback(session, f"provider_error: {exc!r}")
        try:
            self._check_legal(ref, proposal)
        except IllegalProposalError as exc:
            log.warning("Rejected proposal (gen %d, ply %d): %s", session.generation, len(session.history) + 1, exc)
            return self._fallback(session, str(exc), raw=proposal.uci())
        return NegotiationResult(move=proposal, source="provider", raw=getattr(self.provider, "last_raw", None))

    @staticmethod
    def _check_legal(ref: Referee, proposal: Move) -> None:
        if not ref.is_legal(proposal):
            raise IllegalProposalError(proposal.uci())

    def _fallback(self, session: GameSession, reason: str, raw: Optional[str] = None) -> NegotiationResult:
        return NegotiationResult(
            move=self._fallback_move(session),
            source="fallback",
            invalid_attempt=True,
            reason=reason,
            raw=raw if raw is not None else getattr(self.provider, "last_raw", None),
        )

    def _fallback_move(self, session: GameSession) -> Move:
        # legal list is recomputed at fallback time, not reused from the request
        return self.fallback.choose(session.referee().legal_uci())
