"""Shared fakes for the test suite."""
from unittest.mock import AsyncMock

from llmchess_session.game import GameConfig, SessionController


class FirstChoice:
    """RNG stand-in: always picks the first (lowest UCI) legal move."""

    def choice(self, seq):
        return seq[0]


class ScriptedProvider:
    """Move provider whose replies (Moves or exceptions) are scripted in order."""

    def __init__(self, *replies):
        self.propose = AsyncMock(side_effect=list(replies))
        self.last_raw = None

    def label(self):
        return "scripted"


def make_controller(provider=None, **cfg_kwargs) -> SessionController:
    cfg_kwargs.setdefault("opponent", "llm" if provider is not None else "random")
    cfg_kwargs.setdefault("max_game_moves", 200)
    cfg_kwargs.setdefault("max_invalid_moves", 3)
    cfg_kwargs.setdefault("human_color", "white")
    return SessionController(GameConfig(**cfg_kwargs), provider=provider, rng=FirstChoice())
