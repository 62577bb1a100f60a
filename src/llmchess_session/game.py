"""
Session controller and config for one human vs AI game.

- GameConfig: knobs for session limits, opponent mode, human colour and prompting.
- SessionController: owns the current GameSession snapshot and is the only writer.
  - attempt_human_move(): synchronous; illegal input is a free retry.
  - run_ai_turn(): one negotiation, tagged with the session generation and run as a
    task; reset() cancels a pending one, and a result that comes back after reset()
    is discarded.
  - TurnChanged events are queued once per accepted move that hands the turn to the AI;
    drive() (long-running task) or process_pending() consumes them.
  - Exposes structured history, PGN and summary metrics for the surrounding UI.
"""
from __future__ import annotations
import asyncio, logging, random, time
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union

from .config import SETTINGS
from .errors import SessionError
from .llm_opponent import LLMOpponent, MoveProvider, MoveRequest
from .models import Color, Move, PieceKind, PossibleMove
from .negotiator import AIMoveNegotiator, NegotiationResult
from .prompting import PromptConfig
from .session import (
    Event, GameSession, InvalidProposal, Limits, MoveApplied, MoveRecord, TurnChanged,
    apply_event, evaluate_limits,
)
from .status import GameStatus, pgn_result


@dataclass
class GameConfig:
    max_game_moves: int = SETTINGS.max_game_moves
    max_invalid_moves: int = SETTINGS.max_invalid_moves
    # "llm" asks the model provider; "random" always plays the fallback move
    opponent: str = SETTINGS.opponent
    human_color: str = SETTINGS.human_color
    model: str = SETTINGS.model
    seed: Optional[int] = None
    prompt_cfg: PromptConfig = field(default_factory=PromptConfig)
    # Console logging of moves as they happen
    game_log: bool = False

    def limits(self) -> Limits:
        return Limits(max_game_moves=self.max_game_moves, max_invalid_moves=self.max_invalid_moves)


class ControllerState(str, Enum):
    WAITING_FOR_HUMAN = "waiting_for_human"
    WAITING_FOR_AUTOMATED = "waiting_for_automated"
    TERMINAL = "terminal"


@dataclass(frozen=True)
class Accepted:
    uci: str
    san: str
    accepted = True


@dataclass(frozen=True)
class Rejected:
    reason: str
    accepted = False


MoveOutcome = Union[Accepted, Rejected]


class SessionController:
    def __init__(self, cfg: GameConfig | None = None, provider: MoveProvider | None = None,
                 negotiator: AIMoveNegotiator | None = None, rng: random.Random | None = None):
        self.log = logging.getLogger("SessionController")
        self.cfg = cfg or GameConfig()
        if self.cfg.human_color not in ("white", "black"):
            raise ValueError(f"human_color must be 'white' or 'black', got {self.cfg.human_color!r}")
        self.rng = rng or random.Random(self.cfg.seed)
        if negotiator is None:
            if self.cfg.opponent == "llm" and provider is None:
                provider = LLMOpponent(model=self.cfg.model, prompt_cfg=self.cfg.prompt_cfg)
            negotiator = AIMoveNegotiator(provider=provider, mode=self.cfg.opponent, rng=self.rng)
        self.negotiator = negotiator
        self.turn_events: asyncio.Queue[TurnChanged] = asyncio.Queue()
        self._generation = 0
        self._thinking = False
        self._negotiation: Optional[asyncio.Task] = None
        self._session = GameSession.new(self._generation, self._human_color())
        self.records: list[dict] = []  # one dict per negotiation
        self.start_ts = time.time()
        self._enqueue_if_ai_turn()

    def _human_color(self) -> Color:
        return "black" if self.cfg.human_color == "black" else "white"

    # ---------------- Read-only accessors -----------------
    @property
    def session(self) -> GameSession:
        return self._session

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def thinking(self) -> bool:
        """True while a negotiation for the current generation is in flight."""
        return self._thinking

    @property
    def state(self) -> ControllerState:
        if self._session.is_terminal():
            return ControllerState.TERMINAL
        if self._session.human_to_move():
            return ControllerState.WAITING_FOR_HUMAN
        return ControllerState.WAITING_FOR_AUTOMATED

    def status(self) -> GameStatus:
        return self._session.status()

    def legal_targets(self, square: str) -> list[PossibleMove]:
        return self._session.referee().legal_targets(square)

    def opponent_label(self) -> str:
        provider = self.negotiator.provider
        if self.negotiator.mode == "random" or provider is None:
            return "Random"
        label = getattr(provider, "label", None)
        return label() if callable(label) else type(provider).__name__

    # ---------------- Transitions -----------------
    def _commit(self, event: Event) -> GameSession:
        before = self._session
        after = evaluate_limits(apply_event(before, event), self.cfg.limits())
        self._session = after
        if before.manual_override is None and after.manual_override is not None:
            self.log.info("Session %d forced terminal: %s", after.generation, after.manual_override.reason)
        if isinstance(event, MoveApplied):
            self._enqueue_if_ai_turn()
        return after

    def _enqueue_if_ai_turn(self) -> None:
        if not self._session.is_terminal() and self._session.ai_to_move():
            self.turn_events.put_nowait(TurnChanged(self._session.generation))

    def attempt_human_move(self, move: Move | str) -> MoveOutcome:
        """Apply a human move if legal; a rejected move leaves the session untouched."""
        session = self._session
        if session.is_terminal():
            return Rejected("game_over")
        if not session.human_to_move():
            return Rejected("not_human_turn")
        ref = session.referee()
        if isinstance(move, str):
            parsed = ref.parse_move(move)
            if parsed is None:
                return Rejected("unparseable_move")
            move = parsed
        # human moves always ask for a queen; the referee drops it on non-promoting moves
        if move.promotion is None:
            move = move.with_promotion(PieceKind.QUEEN)
        ok, san = ref.apply_move(move)
        if not ok:
            return Rejected("illegal_move")
        uci = ref.board.peek().uci()
        self._commit(MoveApplied(session.generation, MoveRecord(actor="human", uci=uci, san=san, source="human")))
        if self.cfg.game_log:
            self.log.info("[ply %d] Human: %s (%s)", len(self._session.history), san, uci)
        return Accepted(uci=uci, san=san)

    async def run_ai_turn(self) -> Optional[NegotiationResult]:
        """Negotiate and apply one automated move; None if skipped or discarded as stale."""
        session = self._session
        if self._thinking:
            self.log.debug("Negotiation already in flight; ignoring trigger")
            return None
        if session.is_terminal() or not session.ai_to_move():
            return None
        generation = session.generation
        self._thinking = True
        t0 = time.time()
        self._negotiation = asyncio.ensure_future(self.negotiator.negotiate(session))
        try:
            result = await self._negotiation
        except asyncio.CancelledError:
            if generation != self._generation:
                self.log.info("Negotiation for stale generation %d cancelled", generation)
                return None
            raise
        finally:
            if generation == self._generation:
                self._thinking = False
                self._negotiation = None
        ms = int((time.time() - t0) * 1000)
        if generation != self._generation or self._session is not session:
            self.log.info("Discarding AI result %s from stale generation %d", result.move.uci(), generation)
            return None

        rec = {
            "ply": len(session.history) + 1,
            "uci": result.move.uci(),
            "source": result.source,
            "invalid": result.invalid_attempt,
            "reason": result.reason,
            "raw": result.raw,
            "ms": ms,
            "applied": False,
        }
        self.records.append(rec)
        if result.invalid_attempt:
            self._commit(InvalidProposal(generation, result.reason or "invalid"))
            if self._session.is_terminal():
                self.log.error("AI forfeited at ply %d after %d invalid attempts",
                               rec["ply"], self._session.invalid_move_count)
                return result

        ref = self._session.referee()
        ok, san = ref.apply_move(result.move)
        if not ok:
            # provider moves are checked and fallback moves come from the legal list
            raise SessionError(f"negotiated move {result.move.uci()} rejected by referee")
        uci = ref.board.peek().uci()
        self._commit(MoveApplied(generation, MoveRecord(actor="ai", uci=uci, san=san, source=result.source)))
        rec["applied"] = True
        rec["san"] = san
        if self.cfg.game_log:
            self.log.info("[ply %d] AI: %s (%s) source=%s time_ms=%d", rec["ply"], san, uci, result.source, ms)
        else:
            self.log.debug("Ply %d AI move %s san=%s source=%s", rec["ply"], uci, san, result.source)
        return result

    def reset(self) -> GameSession:
        """Discard the session wholesale and start a fresh one under a new generation."""
        self._generation += 1
        self._thinking = False
        if self._negotiation is not None and not self._negotiation.done():
            self._negotiation.cancel()
        self._negotiation = None
        self._session = GameSession.new(self._generation, self._human_color())
        self.records = []
        self.start_ts = time.time()
        self.log.info("Session reset to generation %d", self._generation)
        self._enqueue_if_ai_turn()
        return self._session

    # ---------------- TurnChanged consumption -----------------
    async def _handle(self, event: TurnChanged) -> None:
        if event.generation == self._generation:
            await self.run_ai_turn()

    async def process_pending(self) -> None:
        """Drain queued TurnChanged events (when no drive() task is running)."""
        while not self.turn_events.empty():
            event = self.turn_events.get_nowait()
            try:
                await self._handle(event)
            finally:
                self.turn_events.task_done()

    async def drive(self) -> None:
        """Consume TurnChanged events until cancelled."""
        while True:
            event = await self.turn_events.get()
            try:
                await self._handle(event)
            except Exception:
                self.log.exception("AI turn failed for generation %d", event.generation)
            finally:
                self.turn_events.task_done()

    # ---------------- Secondary provider use -----------------
    async def hint(self) -> Optional[str]:
        """Ask the provider for a SAN suggestion for the human; None if unavailable."""
        provider = self.negotiator.provider
        suggest = getattr(provider, "suggest_san", None)
        if suggest is None or not self._session.human_to_move():
            return None
        ref = self._session.referee()
        request = MoveRequest(fen=ref.fen(), side_to_move=ref.turn(), legal_moves=tuple(ref.legal_uci()),
                              san_history=" ".join(self._session.sans))
        return await suggest(request)

    # ---------------- Export -----------------
    def pgn(self) -> str:
        ref = self._session.referee()
        human, ai = "Human", self.opponent_label()
        if self._session.human_color == "white":
            ref.set_headers(white=human, black=ai)
        else:
            ref.set_headers(white=ai, black=human)
        status = self.status()
        return ref.pgn(result=pgn_result(status), termination=status.to_dict()["reason"] or None)

    def export_structured_history(self) -> dict:
        """Return a structured representation of the session suitable for visualization."""
        session = self._session
        status = self.status()
        moves = []
        for idx, rec in enumerate(session.history):
            moves.append({
                "ply": idx + 1,
                "actor": rec.actor,
                "uci": rec.uci,
                "san": rec.san,
                "source": rec.source,
            })
        return {
            "generation": session.generation,
            "initial_fen": session.start_fen,
            "final_fen": session.fen,
            "players": {"human": session.human_color, "ai": session.ai_color},
            "opponent": self.opponent_label(),
            "status": status.to_dict(),
            "result": pgn_result(status),
            "moves": moves,
            "negotiations": list(self.records),
            "invalid_move_count": session.invalid_move_count,
            "material": session.material.to_dict(),
        }

    def metrics(self) -> dict:
        latencies = [r["ms"] for r in self.records if r.get("ms") is not None]
        return {
            "plies_total": len(self._session.history),
            "ai_negotiations": len(self.records),
            "ai_provider_moves": sum(1 for r in self.records if r["source"] == "provider"),
            "ai_fallback_moves": sum(1 for r in self.records if r["source"] == "fallback" and r["applied"]),
            "ai_invalid_attempts": self._session.invalid_move_count,
            "latency_ms_avg": (sum(latencies) / len(latencies)) if latencies else 0,
            "result": pgn_result(self.status()),
            "status": self.status().to_dict(),
            "duration_s": round(time.time() - self.start_ts, 2),
            "opponent": self.opponent_label(),
        }

    def summary(self) -> dict:
        m = self.metrics()
        m["pgn"] = self.pgn()
        return m
