from __future__ import annotations
"""
LLM client facade over an OpenAI-compatible gateway (configurable base URL).

The rest of the code should not care which SDK is in use. This module talks to
the gateway with `model` + `messages` and returns raw text responses, raising
ProviderError when no usable text comes back.
"""
from functools import lru_cache
from typing import Optional, List, Dict
import asyncio
import logging
import random

from openai import AsyncOpenAI, OpenAIError

from .config import SETTINGS
from .errors import ProviderError

log = logging.getLogger("llm_client")


@lru_cache(maxsize=1)
def _client() -> AsyncOpenAI:
    return AsyncOpenAI(api_key=SETTINGS.llm_api_key or "missing-key", base_url=SETTINGS.api_base or None)


# ------------------------- Chat wrappers -------------------------
async def ask_for_move_conversation(messages: List[Dict[str, str]], model: Optional[str] = None, temperature: float | None = None) -> str:
    """Send a chat-style conversation (including system message) and return the reply text."""
    if not model:
        raise ValueError("Model is required; set LLMCHESS_MODEL or pass --model.")
    delay = 0.5
    kwargs = {"model": model, "messages": messages, "timeout": SETTINGS.responses_timeout_s}
    if temperature is not None:
        kwargs["temperature"] = temperature
    for attempt in range(SETTINGS.responses_retries + 1):
        try:
            rsp = await _client().chat.completions.create(**kwargs)
        except OpenAIError as exc:
            if attempt >= SETTINGS.responses_retries:
                log.warning("Chat request failed after %d attempts: %s", attempt + 1, exc)
                raise ProviderError(f"transport error: {exc}") from exc
            sleep_s = delay * (2 ** attempt) * (0.8 + 0.4 * random.random())
            await asyncio.sleep(min(sleep_s, 10.0))
            continue
        text = _extract_text(rsp)
        if text:
            return text.strip()
        log.warning("Empty reply from model %s", model)
        raise ProviderError("empty reply")
    raise ProviderError("no attempts made")


def _extract_text(rsp) -> str:
    if not getattr(rsp, "choices", None):
        return ""
    msg = rsp.choices[0].message
    content = getattr(msg, "content", None)
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for c in content:
            if isinstance(c, dict):
                if c.get("type") == "text" and isinstance(c.get("text"), str):
                    parts.append(c["text"])
                continue
            t = getattr(c, "text", None)
            if isinstance(t, str):
                parts.append(t)
        return "\n".join(parts)
    return ""
