"""
Coin flip: both players guess heads or tails, then the arbiter flips.

- The flip uses an injectable random.Random so tests can pin the outcome.
- Best of 5 (first to 3). The sole correct guesser takes the round; both or neither correct is a tie.
"""
from __future__ import annotations

import random
from typing import Any, Dict, Iterable, Optional, Tuple

from .base import GameConfig, Player, SimultaneousGame

COIN_FLIP = GameConfig(
    id="coin-flip",
    name="Coin Flip",
    description=(
        "Guess the outcome of a coin flip. Both players call heads or tails, "
        "then the coin is flipped. Only a lone correct guess wins the round."
    ),
    win_condition="First to 3 wins",
    max_rounds=5,
)


class CoinFlip(SimultaneousGame):
    CONFIG = COIN_FLIP
    MOVES = ("heads", "tails")

    def __init__(self, match_id: str, players: Iterable[dict | Player], config: Optional[GameConfig] = None,
                 rng: Optional[random.Random] = None):
        super().__init__(match_id, players, config)
        self.rng = rng or random.Random()

    def flip(self) -> str:
        return "heads" if self.rng.random() < 0.5 else "tails"

    def evaluate(self, moves: Dict[str, str]) -> Tuple[Optional[str], str, Dict[str, Any]]:
        result = self.flip()
        details = {"coin_result": result}
        correct = [p for p in self.book.players if moves[p.id] == result]
        if len(correct) == 1:
            winner = correct[0]
            return winner.id, f"Coin landed on {result}. {winner.name} guessed correctly!", details
        if correct:
            return None, f"Coin landed on {result}. Both guessed correctly. Tie!", details
        return None, f"Coin landed on {result}. Neither guessed correctly. Tie!", details

    def instructions(self) -> str:
        return (
            f"{self.config.description} {self.config.win_condition} "
            f"(max {self.config.max_rounds} rounds). Reply with exactly one of: heads, tails."
        )
