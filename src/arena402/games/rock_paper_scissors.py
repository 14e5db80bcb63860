"""
Rock-paper-scissors: simultaneous blind moves, best of 9 (first to 5 round wins).
"""
from __future__ import annotations

from typing import Any, Dict, Optional, Tuple

from .base import GameConfig, SimultaneousGame

ROCK_PAPER_SCISSORS = GameConfig(
    id="rock-paper-scissors",
    name="Rock Paper Scissors",
    description=(
        "Classic rock-paper-scissors. Each round both players choose rock, paper or scissors "
        "without seeing the other's choice. Rock beats scissors, scissors beats paper, paper beats rock."
    ),
    win_condition="First to 5 wins",
    max_rounds=9,
)

# move -> the move it defeats
BEATS = {"rock": "scissors", "scissors": "paper", "paper": "rock"}


def compare(a: str, b: str) -> int:
    """1 if a beats b, -1 if b beats a, 0 on a tie."""
    if a == b:
        return 0
    return 1 if BEATS[a] == b else -1


class RockPaperScissors(SimultaneousGame):
    CONFIG = ROCK_PAPER_SCISSORS
    MOVES = ("rock", "paper", "scissors")

    def evaluate(self, moves: Dict[str, str]) -> Tuple[Optional[str], str, Dict[str, Any]]:
        p1, p2 = self.book.players
        m1, m2 = moves[p1.id], moves[p2.id]
        outcome = compare(m1, m2)
        if outcome == 0:
            return None, f"Both chose {m1}. Tie!", {}
        if outcome > 0:
            return p1.id, f"{m1} beats {m2}. {p1.name} wins the round!", {}
        return p2.id, f"{m2} beats {m1}. {p2.name} wins the round!", {}

    def instructions(self) -> str:
        return (
            f"{self.config.description} {self.config.win_condition} "
            f"(max {self.config.max_rounds} rounds). Reply with exactly one of: rock, paper, scissors."
        )
