"""
Shared game abstractions used by every game type.

- GameConfig: static description of a game type (fees, round limits, turn-based flag).
- Player / RoundRecord: match participants and the append-only round history.
- MatchBook: match bookkeeping (round counter, scores, status, winner, history) composed into each game.
- PendingRound / TurnCursor: move collection for simultaneous games and turn order for turn-based ones.
- MoveValidation / MoveResult: accept/reject values returned instead of raising.
- BaseGame: the operation set every game implements; SimultaneousGame holds the collect-then-resolve flow.
"""
from __future__ import annotations

import logging
import math
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple

from ..errors import ConfigurationError

STATUS_ACTIVE = "active"
STATUS_FINISHED = "finished"

NOT_IN_PROGRESS = "Game not in progress"


@dataclass(frozen=True)
class GameConfig:
    id: str
    name: str
    description: str
    win_condition: str
    max_rounds: int
    turn_based: bool = False
    entry_fee: float = 0.0
    move_price: float = 0.0  # 0 disables per-move fees
    min_players: int = 2
    max_players: int = 2

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class Player:
    id: str
    name: str
    model: Optional[str] = None
    score: int = 0

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name, "model": self.model, "score": self.score}


@dataclass
class RoundRecord:
    round: int
    moves: Dict[str, str]
    winner_id: Optional[str]
    explanation: str
    details: Dict[str, Any] = field(default_factory=dict)

    @property
    def tie(self) -> bool:
        return self.winner_id is None

    def to_dict(self) -> dict:
        return {
            "round": self.round,
            "moves": dict(self.moves),
            "winner_id": self.winner_id,
            "tie": self.tie,
            "explanation": self.explanation,
            "details": dict(self.details),
        }


@dataclass
class MoveValidation:
    ok: bool
    reason: Optional[str] = None

    @classmethod
    def accept(cls) -> "MoveValidation":
        return cls(True)

    @classmethod
    def reject(cls, reason: str) -> "MoveValidation":
        return cls(False, reason)


@dataclass
class MoveResult:
    accepted: bool
    reason: Optional[str] = None
    round_completed: bool = False
    match_over: bool = False

    @classmethod
    def rejected(cls, reason: str) -> "MoveResult":
        return cls(accepted=False, reason=reason)

    def to_dict(self) -> dict:
        d: Dict[str, Any] = {"accepted": self.accepted}
        if self.reason:
            d["reason"] = self.reason
        if self.accepted:
            d["round_completed"] = self.round_completed
            d["match_over"] = self.match_over
        return d


class MatchBook:
    """Bookkeeping for one match: players, scores, round counter, status and history."""

    def __init__(self, match_id: str, config: GameConfig, players: Iterable[dict | Player]):
        self.match_id = match_id
        self.game_type = config.id
        self.max_rounds = config.max_rounds
        self.players: List[Player] = [_to_player(p) for p in players]
        if len(self.players) != 2:
            raise ConfigurationError(f"{config.name} needs exactly 2 players, got {len(self.players)}")
        if self.players[0].id == self.players[1].id:
            raise ConfigurationError("Player ids must be unique within a match")
        self.round = 0
        self.status = STATUS_ACTIVE
        self.winner_id: Optional[str] = None
        self.history: List[RoundRecord] = []

    @property
    def is_active(self) -> bool:
        return self.status == STATUS_ACTIVE

    @property
    def player_ids(self) -> List[str]:
        return [p.id for p in self.players]

    @property
    def target_score(self) -> int:
        """Round wins needed to take the match outright (first to ceil(max_rounds / 2))."""
        return math.ceil(self.max_rounds / 2)

    def player(self, player_id: str) -> Optional[Player]:
        for p in self.players:
            if p.id == player_id:
                return p
        return None

    def opponent_of(self, player_id: str) -> Optional[Player]:
        for p in self.players:
            if p.id != player_id:
                return p
        return None

    def resolve_round(self, moves: Dict[str, str], winner_id: Optional[str], explanation: str,
                      details: Optional[Dict[str, Any]] = None) -> RoundRecord:
        """Append the record, bump the round counter and credit the round winner (none on tie)."""
        record = RoundRecord(self.round + 1, dict(moves), winner_id, explanation, dict(details or {}))
        self.history.append(record)
        self.round += 1
        if winner_id is not None:
            winner = self.player(winner_id)
            if winner is not None:
                winner.score += 1
        return record

    def finish(self, winner_id: Optional[str]) -> None:
        self.status = STATUS_FINISHED
        self.winner_id = winner_id

    def check_round_limit(self) -> bool:
        """Finish the match if someone reached the target or the round cap was hit.

        At the cap the higher score wins; equal scores are a draw.
        """
        for p in self.players:
            if p.score >= self.target_score:
                self.finish(p.id)
                return True
        if self.round >= self.max_rounds:
            a, b = self.players
            if a.score > b.score:
                self.finish(a.id)
            elif b.score > a.score:
                self.finish(b.id)
            else:
                self.finish(None)
            return True
        return False

    def to_public(self) -> dict:
        return {
            "match_id": self.match_id,
            "game_type": self.game_type,
            "round": self.round,
            "max_rounds": self.max_rounds,
            "players": [p.to_dict() for p in self.players],
            "history": [r.to_dict() for r in self.history],
            "status": self.status,
            "winner_id": self.winner_id,
        }


def _to_player(p: dict | Player) -> Player:
    if isinstance(p, Player):
        return Player(p.id, p.name, p.model)
    return Player(id=str(p["id"]), name=str(p.get("name") or p["id"]), model=p.get("model"))


class PendingRound:
    """Moves submitted so far in the current simultaneous round."""

    def __init__(self, player_ids: List[str]):
        self._order = list(player_ids)
        self._moves: Dict[str, str] = {}

    def has_moved(self, player_id: str) -> bool:
        return player_id in self._moves

    def add(self, player_id: str, move: str) -> None:
        self._moves[player_id] = move

    def is_complete(self) -> bool:
        return all(pid in self._moves for pid in self._order)

    def moves(self) -> Dict[str, str]:
        return {pid: self._moves[pid] for pid in self._order if pid in self._moves}

    def submitted(self) -> List[str]:
        return [pid for pid in self._order if pid in self._moves]

    def waiting_on(self) -> List[str]:
        return [pid for pid in self._order if pid not in self._moves]

    def clear(self) -> None:
        self._moves.clear()


class TurnCursor:
    """Index of the player whose move is currently accepted."""

    def __init__(self, player_ids: List[str]):
        self._order = list(player_ids)
        self.index = 0

    @property
    def current(self) -> str:
        return self._order[self.index]

    def advance(self) -> None:
        self.index = (self.index + 1) % len(self._order)

    def reset(self) -> None:
        self.index = 0


class BaseGame:
    """Interface shared by all game types. Concrete games compose a MatchBook."""

    CONFIG: GameConfig

    def __init__(self, match_id: str, players: Iterable[dict | Player], config: Optional[GameConfig] = None):
        self.config = config or self.CONFIG
        self.book = MatchBook(match_id, self.config, players)
        self.log = logging.getLogger(f"game.{self.config.id}")

    # -- accessors ----------------------------------------------------------
    @property
    def match_id(self) -> str:
        return self.book.match_id

    @property
    def status(self) -> str:
        return self.book.status

    @property
    def winner_id(self) -> Optional[str]:
        return self.book.winner_id

    def is_turn_based(self) -> bool:
        return self.config.turn_based

    def is_over(self) -> bool:
        return not self.book.is_active

    def current_turn(self) -> Optional[str]:
        """Player whose move is accepted next (turn-based games only)."""
        return None

    def awaiting(self) -> List[str]:
        """Players the arbiter should ask for a move right now."""
        raise NotImplementedError

    # -- rules --------------------------------------------------------------
    def validate_move(self, player_id: str, raw_move: str) -> MoveValidation:
        raise NotImplementedError

    def submit_move(self, player_id: str, raw_move: str, commentary: Optional[str] = None) -> MoveResult:
        raise NotImplementedError

    def available_moves(self) -> List[str]:
        raise NotImplementedError

    def instructions(self) -> str:
        return self.config.description

    # -- projection ---------------------------------------------------------
    def public_state(self) -> dict:
        state = self.book.to_public()
        state.update({
            "game_name": self.config.name,
            "win_condition": self.config.win_condition,
            "turn_based": self.is_turn_based(),
            "current_turn": self.current_turn(),
            "awaiting": self.awaiting() if self.book.is_active else [],
            "available_moves": self.available_moves() if self.book.is_active else [],
            "instructions": self.instructions(),
        })
        state.update(self._extra_state())
        return state

    def _extra_state(self) -> dict:
        return {}

    # -- helpers ------------------------------------------------------------
    def _precheck(self, player_id: str) -> Optional[str]:
        """Common rejections: finished match and unknown player."""
        if not self.book.is_active:
            return NOT_IN_PROGRESS
        if self.book.player(player_id) is None:
            return "Player not found"
        return None


class SimultaneousGame(BaseGame):
    """Both players submit blind; the round resolves once both entries are present."""

    MOVES: Tuple[str, ...] = ()

    def __init__(self, match_id: str, players: Iterable[dict | Player], config: Optional[GameConfig] = None):
        super().__init__(match_id, players, config)
        self.pending = PendingRound(self.book.player_ids)

    def awaiting(self) -> List[str]:
        return self.pending.waiting_on()

    def available_moves(self) -> List[str]:
        return list(self.MOVES)

    def validate_move(self, player_id: str, raw_move: str) -> MoveValidation:
        problem = self._precheck(player_id)
        if problem:
            return MoveValidation.reject(problem)
        if self.pending.has_moved(player_id):
            return MoveValidation.reject("You already made your move this round")
        if _normalize(raw_move) not in self.MOVES:
            return MoveValidation.reject(f"Invalid move. Choose: {', '.join(self.MOVES)}")
        return MoveValidation.accept()

    def submit_move(self, player_id: str, raw_move: str, commentary: Optional[str] = None) -> MoveResult:
        check = self.validate_move(player_id, raw_move)
        if not check.ok:
            return MoveResult.rejected(check.reason or "Invalid move")
        self.pending.add(player_id, _normalize(raw_move))
        if not self.pending.is_complete():
            return MoveResult(accepted=True)
        moves = self.pending.moves()
        self.pending.clear()
        winner_id, explanation, details = self.evaluate(moves)
        record = self.book.resolve_round(moves, winner_id, explanation, details)
        self.log.info("Match %s round %d: %s", self.match_id, record.round, explanation)
        over = self.book.check_round_limit()
        if over:
            self.log.info("Match %s finished; winner=%s", self.match_id, self.book.winner_id)
        return MoveResult(accepted=True, round_completed=True, match_over=over)

    def evaluate(self, moves: Dict[str, str]) -> Tuple[Optional[str], str, Dict[str, Any]]:
        """Return (winner_id or None, explanation, details) for a complete set of moves."""
        raise NotImplementedError

    def _extra_state(self) -> dict:
        # which players have moved, never what they played
        return {"submitted": self.pending.submitted()}


def _normalize(raw_move: Any) -> str:
    return str(raw_move or "").strip().lower()
