from __future__ import annotations
"""LLM-backed move provider for the automated side."""
import logging
from dataclasses import dataclass, field
from typing import Optional, Protocol

from .llm_client import ask_for_move_conversation
from .models import Color, Move
from .move_validator import parse_move_json, parse_san_token
from .prompting import PromptConfig, build_messages

log = logging.getLogger("llm_opponent")


@dataclass(frozen=True)
class MoveRequest:
    fen: str
    side_to_move: Color
    legal_moves: tuple[str, ...]
    san_history: str = ""

    def prompt_values(self) -> dict[str, str]:
        return {
            "FEN": self.fen,
            "SIDE_TO_MOVE": self.side_to_move.capitalize(),
            "LEGAL_MOVES": ", ".join(self.legal_moves),
            "SAN_HISTORY": self.san_history or "(none)",
        }


class MoveProvider(Protocol):
    async def propose(self, request: MoveRequest) -> Move:
        """Return a structured move or raise ProviderError."""
        ...


@dataclass
class LLMOpponent:
    model: str
    prompt_cfg: PromptConfig = field(default_factory=PromptConfig)
    name: Optional[str] = None
    last_raw: Optional[str] = None

    def label(self) -> str:
        return self.name or self.model

    async def propose(self, request: MoveRequest) -> Move:
        messages = build_messages(self.prompt_cfg.system_instructions, self.prompt_cfg.template, request.prompt_values())
        self.last_raw = None
        raw = await ask_for_move_conversation(messages, model=self.model, temperature=self.prompt_cfg.temperature)
        self.last_raw = raw
        log.debug("Model %s proposed %r", self.model, raw)
        return parse_move_json(raw)

    async def suggest_san(self, request: MoveRequest) -> str:
        """Simple mode: a single SAN token, used for hints only."""
        messages = build_messages(self.prompt_cfg.san_system_instructions, self.prompt_cfg.san_template, request.prompt_values())
        raw = await ask_for_move_conversation(messages, model=self.model, temperature=self.prompt_cfg.temperature)
        return parse_san_token(raw)
