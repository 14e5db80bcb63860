"""
Lifetime per-agent statistics across matches (in memory only).

- initialize_player adds the entry fee to total_paid on every registration.
- record_round / record_match_end / record_draw update counters; win_rate and
  average_rounds_per_match are recomputed on match end.
- leaderboard: agents with at least one match, by win rate then matches won.
"""
from __future__ import annotations

import threading
from dataclasses import asdict, dataclass
from typing import Dict, List, Optional

ROUND_RESULTS = ("win", "lose", "tie")


@dataclass
class PlayerStats:
    agent_id: str
    agent_name: str
    matches_played: int = 0
    matches_won: int = 0
    matches_lost: int = 0
    matches_drawn: int = 0
    total_rounds: int = 0
    rounds_won: int = 0
    rounds_lost: int = 0
    rounds_tied: int = 0
    total_paid: float = 0.0
    total_won: float = 0.0
    win_rate: float = 0.0
    average_rounds_per_match: float = 0.0

    def _refresh(self) -> None:
        if self.matches_played:
            self.win_rate = self.matches_won / self.matches_played
            self.average_rounds_per_match = self.total_rounds / self.matches_played

    def to_dict(self) -> dict:
        return asdict(self)


class StatsTracker:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._stats: Dict[str, PlayerStats] = {}

    def initialize_player(self, agent_id: str, agent_name: str, entry_fee: float) -> None:
        with self._lock:
            entry = self._stats.get(agent_id)
            if entry is None:
                entry = self._stats[agent_id] = PlayerStats(agent_id, agent_name)
            entry.total_paid += entry_fee

    def record_round(self, agent_id: str, result: str) -> None:
        if result not in ROUND_RESULTS:
            raise ValueError(f"Unknown round result: {result}")
        with self._lock:
            entry = self._stats.get(agent_id)
            if entry is None:
                return
            entry.total_rounds += 1
            if result == "win":
                entry.rounds_won += 1
            elif result == "lose":
                entry.rounds_lost += 1
            else:
                entry.rounds_tied += 1

    def record_match_end(self, winner_id: str, loser_id: str, prize: float) -> None:
        with self._lock:
            winner = self._stats.get(winner_id)
            if winner is not None:
                winner.matches_played += 1
                winner.matches_won += 1
                winner.total_won += prize
                winner._refresh()
            loser = self._stats.get(loser_id)
            if loser is not None:
                loser.matches_played += 1
                loser.matches_lost += 1
                loser._refresh()

    def record_draw(self, agent_ids: List[str]) -> None:
        with self._lock:
            for agent_id in agent_ids:
                entry = self._stats.get(agent_id)
                if entry is not None:
                    entry.matches_played += 1
                    entry.matches_drawn += 1
                    entry._refresh()

    def get(self, agent_id: str) -> Optional[dict]:
        with self._lock:
            entry = self._stats.get(agent_id)
            return entry.to_dict() if entry else None

    def all(self) -> List[dict]:
        with self._lock:
            return [s.to_dict() for s in self._stats.values()]

    def leaderboard(self) -> List[dict]:
        rows = [s for s in self.all() if s["matches_played"] > 0]
        rows.sort(key=lambda s: (s["win_rate"], s["matches_won"]), reverse=True)
        return rows
