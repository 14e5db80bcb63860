"""
Decision provider interface: who picks a player's next move.

- decide(public_state, player_id) returns a Decision or raises DecisionError.
- The arbiter calls providers from a worker pool with a timeout and falls back
  to a random legal move when a provider fails or its move is rejected.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass
class Decision:
    move: str
    commentary: Optional[str] = None
    raw: Optional[str] = None


class DecisionProvider:
    """Interface for move selection."""

    name: str = "provider"

    def decide(self, public_state: dict, player_id: str) -> Decision:
        raise NotImplementedError

    def label(self) -> str:
        return self.name

    def close(self) -> None:
        # Nothing to release by default
        return
