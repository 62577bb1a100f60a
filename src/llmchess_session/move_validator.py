"""
Parsing helpers for move provider replies.

- parse_move_json(): the authoritative reply, a JSON object {"from", "to", "promotion"?}.
  Code fences and prose around the object are tolerated; anything else raises ProviderError.
- parse_san_token(): the simple mode, a single SAN token (e.g. "Nf3").
Legality is not checked here; that is the rules engine's job.
"""
from __future__ import annotations

import json
import re

from .errors import ProviderError
from .models import Move, PieceKind, SQUARE_RE

JSON_OBJ_RE = re.compile(r"\{.*?\}", re.S)
SAN_RE = re.compile(r"^(O-O(-O)?|[KQRBN]?[a-h]?[1-8]?x?[a-h][1-8](=[QRBN])?)[+#]?$")
CASTLE_ZERO = {"0-0": "O-O", "0-0-0": "O-O-O", "o-o": "O-O", "o-o-o": "O-O-O"}


def _strip_code_fence(text: str) -> str:
    """Remove simple ``` fences if present."""
    text = text.strip()
    if text.startswith("```") and text.endswith("```"):
        inner = text.split("\n", 1)
        if len(inner) == 2:
            return inner[1].rsplit("\n", 1)[0].strip()
    return text


def _load_object(text: str) -> dict:
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        m = JSON_OBJ_RE.search(text)
        if not m:
            raise ProviderError("reply is not JSON")
        try:
            data = json.loads(m.group(0))
        except json.JSONDecodeError as exc:
            raise ProviderError(f"reply is not JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise ProviderError("reply is not a JSON object")
    return data


def parse_move_json(raw: str) -> Move:
    """Turn a provider reply into a Move or raise ProviderError."""
    text = _strip_code_fence(raw or "")
    if not text:
        raise ProviderError("empty reply")
    data = _load_object(text)
    src, dst = data.get("from"), data.get("to")
    if not isinstance(src, str) or not isinstance(dst, str):
        raise ProviderError("reply missing 'from'/'to'")
    src, dst = src.strip().lower(), dst.strip().lower()
    if not SQUARE_RE.match(src) or not SQUARE_RE.match(dst):
        raise ProviderError(f"bad squares in reply: {src}{dst}")
    promo = data.get("promotion")
    kind = None
    if isinstance(promo, str) and promo.strip():
        try:
            kind = PieceKind.parse(promo)
        except ValueError as exc:
            raise ProviderError(f"bad promotion in reply: {promo!r}") from exc
    return Move(src, dst, kind)


def parse_san_token(raw: str) -> str:
    """Return the first SAN-looking token of a reply, or raise ProviderError."""
    text = _strip_code_fence(raw or "").strip().strip('"\'`')
    tokens = text.replace("\n", " ").split()
    if not tokens:
        raise ProviderError("empty reply")
    token = tokens[0].rstrip(".,;")
    token = CASTLE_ZERO.get(token.lower(), token)
    if not SAN_RE.match(token):
        raise ProviderError(f"not a SAN move: {token!r}")
    return token


__all__ = ["parse_move_json", "parse_san_token"]
