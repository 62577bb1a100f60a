"""
RandomOpponent: picks a uniformly random legal move.

- Serves as the uniform-random opponent mode and as the negotiator fallback.
- The RNG is injected so a seeded random.Random makes games reproducible.
"""
from __future__ import annotations
import random
from typing import Optional, Sequence

from .models import Move


class RandomOpponent:
    """Simple opponent that picks a uniformly random legal move."""
    name: str = "Random"

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()

    def choose(self, legal_uci: Sequence[str]) -> Move:
        if not legal_uci:
            raise ValueError("no legal moves to choose from")
        return Move.from_uci(self.rng.choice(list(legal_uci)))
