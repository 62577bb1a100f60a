"""
Prompt builders and config for AI move requests using a modular template.

Callers supply system instructions and a template string with placeholders
({FEN}, {SIDE_TO_MOVE}, {LEGAL_MOVES}, {SAN_HISTORY}) that are substituted per turn.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List

DEFAULT_JSON_SYSTEM = (
    "You are a world-class chess engine. Pick the best move from the legal moves you are given "
    "and reply with a JSON object only."
)
DEFAULT_JSON_TEMPLATE = """The current board state in Forsyth-Edwards Notation (FEN): "{FEN}"
It is {SIDE_TO_MOVE}'s turn to move.
Move history (SAN): {SAN_HISTORY}
The following legal moves are available in UCI notation: {LEGAL_MOVES}.
Pick the best move from this list. Respond with a JSON object containing the fields "from" and "to"
(lowercase squares) and an optional "promotion" field ("q", "r", "b" or "n", or null).
Do not provide any other text, commentary or formatting. Only output the JSON object."""

DEFAULT_SAN_SYSTEM = "You are a strong chess player. When asked for a move, provide only the best legal move in SAN."
DEFAULT_SAN_TEMPLATE = """Position (FEN): "{FEN}"
It is {SIDE_TO_MOVE}'s turn to move.
Respond with only the next move in Standard Algebraic Notation (SAN), for example e4, Nf3 or Qxg7#.
No explanation and no formatting."""


@dataclass
class PromptConfig:
    """Configuration for shaping move prompts using a custom template."""

    system_instructions: str = DEFAULT_JSON_SYSTEM
    template: str = DEFAULT_JSON_TEMPLATE
    san_system_instructions: str = DEFAULT_SAN_SYSTEM
    san_template: str = DEFAULT_SAN_TEMPLATE
    temperature: float = 0.3


def render_custom_prompt(template: str, values: Dict[str, str]) -> str:
    """Replace known placeholders in the template. Unknown tokens are left intact."""
    rendered = template or ""
    for key, val in values.items():
        rendered = rendered.replace(f"{{{key}}}", val)
    return rendered


def build_messages(system: str, template: str, values: Dict[str, str]) -> List[Dict[str, str]]:
    return [
        {"role": "system", "content": system},
        {"role": "user", "content": render_custom_prompt(template, values)},
    ]
