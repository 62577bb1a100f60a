"""
Configuration and environment loading for LLM Chess sessions.

- Loads settings.yml (YAML) from repo root if present; falls back to environment variables.
- Exposes SETTINGS with keys used across the project (API key, model, session limits).
"""
from dataclasses import dataclass
import logging
import os
from typing import Any, Callable

import yaml
from dotenv import load_dotenv

load_dotenv()

log = logging.getLogger("config")


def _repo_root() -> str:
    # this file: src/llmchess_session/config.py → repo root is two levels up
    return os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))


def _load_yaml(path: str) -> dict:
    if not os.path.isfile(path):
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError):
        log.exception("Failed to read %s; using environment only", path)
        return {}
    return data if isinstance(data, dict) else {}


_cfg = _load_yaml(os.environ.get("LLMCHESS_SETTINGS", os.path.join(_repo_root(), "settings.yml")))


def _get(name: str, default: Any, cast: Callable[[Any], Any] | None = None) -> Any:
    if name in _cfg:
        val = _cfg[name]
        return cast(val) if cast else val
    env = os.environ.get(name)
    if env is not None:
        return cast(env) if cast else env
    return default


@dataclass(frozen=True)
class Settings:
    # Auth / endpoint (OpenAI-compatible wire format)
    llm_api_key: str
    api_base: str
    model: str

    # Transport knobs
    responses_timeout_s: float
    responses_retries: int

    # Session limits and opponent selection
    max_game_moves: int
    max_invalid_moves: int
    opponent: str
    human_color: str


SETTINGS = Settings(
    llm_api_key=_get("LLMCHESS_LLM_API_KEY", _get("AI_GATEWAY_API_KEY", "")),
    api_base=_get("LLMCHESS_LLM_BASE_URL", _get("AI_GATEWAY_BASE_URL", "https://ai-gateway.vercel.sh/v1")),
    model=_get("LLMCHESS_MODEL", "openai/gpt-4o-mini"),
    responses_timeout_s=float(_get("LLMCHESS_RESPONSES_TIMEOUT_S", 300.0, cast=float)),
    responses_retries=int(_get("LLMCHESS_RESPONSES_RETRIES", 0, cast=int)),
    max_game_moves=int(_get("LLMCHESS_MAX_GAME_MOVES", 200, cast=int)),
    max_invalid_moves=int(_get("LLMCHESS_MAX_INVALID_MOVES", 3, cast=int)),
    opponent=str(_get("LLMCHESS_OPPONENT", "llm")).lower(),
    human_color=str(_get("LLMCHESS_HUMAN_COLOR", "white")).lower(),
)
