"""
RandomDecisionProvider: picks a uniformly random available move.

- Fast, low-difficulty baseline for local matches and load tests.
- Also the arbiter's fallback when another provider fails.
"""
from __future__ import annotations

import random
from typing import Optional

from .decision import Decision, DecisionProvider
from .errors import DecisionError


class RandomDecisionProvider(DecisionProvider):
    name: str = "Random"

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()

    def decide(self, public_state: dict, player_id: str) -> Decision:
        moves = list(public_state.get("available_moves") or [])
        if not moves:
            raise DecisionError("No available moves")
        return Decision(move=self.rng.choice(moves))
