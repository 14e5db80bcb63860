"""
Arbiter: match lifecycle for one two-player table.

- register(): validates the body, checks the entry gate, seats up to two agents and
  starts a match through the registry once both seats are taken.
- submit_move(): routes a move to the game under the per-match lock, then (outside the
  lock) updates stats, broadcasts, settles a finished match and requests the next moves.
- Moves for players with a DecisionProvider are decided on a worker pool with a timeout;
  a timeout, an error or a rejected move falls back to a random legal move.
- Players without a provider are external agents: they get a move_request event (and a
  POST to {agent_url}/task when they registered one) and answer via submit_move. An
  external request that is still unanswered after decision_timeout_s gets a random legal move.
- settle() pays the winner at most once, then evicts the match so a new pair can register.
"""
from __future__ import annotations

import concurrent.futures
import logging
import random
import threading
import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Optional, Set, Tuple

from .config import SETTINGS, Settings
from .decision import Decision, DecisionProvider
from .entry_gate import EntryGate, OpenEntryGate
from .errors import ConfigurationError
from .games.base import BaseGame, MoveResult, RoundRecord
from .games.registry import GameRegistry
from .notifications import EventBus
from .settlement import DryRunSettlement, Settlement, SettlementOutcome, payout_with_retry
from .stats import StatsTracker
from .validation import validate_registration
from .webhooks import WebhookNotifier, task_payload

log = logging.getLogger("arbiter")


class MatchPhase(str, Enum):
    EMPTY = "empty"
    AWAITING_SECOND_PLAYER = "awaiting_second_player"
    ACTIVE = "active"
    FINISHED = "finished"
    EVICTED = "evicted"


@dataclass
class RegisteredPlayer:
    agent_id: str
    name: str
    wallet: str
    model: Optional[str] = None
    url: Optional[str] = None

    def as_game_player(self) -> dict:
        return {"id": self.agent_id, "name": self.name, "model": self.model}

    def to_public(self) -> dict:
        return {"agent_id": self.agent_id, "agent_name": self.name, "model": self.model}


@dataclass
class RegistrationResult:
    accepted: bool
    reason: Optional[str] = None
    position: int = 0
    match_id: Optional[str] = None
    payment_required: bool = False

    def to_dict(self) -> dict:
        d = {"accepted": self.accepted, "position": self.position, "match_id": self.match_id}
        if self.reason:
            d["reason"] = self.reason
        return d


@dataclass
class MatchSession:
    game: BaseGame
    players: Dict[str, RegisteredPlayer]
    providers: Dict[str, Optional[DecisionProvider]]
    lock: threading.Lock = field(default_factory=threading.Lock)
    outstanding: Set[str] = field(default_factory=set)
    commentary: Dict[str, str] = field(default_factory=dict)
    settling: bool = False
    done: threading.Event = field(default_factory=threading.Event)
    # player id -> (request number, deadline timer) for external move requests
    timers: Dict[str, Tuple[int, threading.Timer]] = field(default_factory=dict)
    request_seq: int = 0

    @property
    def match_id(self) -> str:
        return self.game.match_id

    def cancel_timers(self) -> None:
        for _, timer in self.timers.values():
            timer.cancel()
        self.timers.clear()


class MatchStore:
    """Live matches by id."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._sessions: Dict[str, MatchSession] = {}

    def add(self, session: MatchSession) -> None:
        with self._lock:
            self._sessions[session.match_id] = session

    def get(self, match_id: str) -> Optional[MatchSession]:
        with self._lock:
            return self._sessions.get(match_id)

    def remove(self, match_id: str) -> Optional[MatchSession]:
        with self._lock:
            return self._sessions.pop(match_id, None)

    def ids(self) -> List[str]:
        with self._lock:
            return list(self._sessions)

    def claim_settlement(self, match_id: str) -> Optional[MatchSession]:
        """Atomically flag a match as settling. Returns the session only to the first caller."""
        with self._lock:
            session = self._sessions.get(match_id)
            if session is None or session.settling:
                return None
            session.settling = True
            return session


class PlayerPool:
    """Agents seated at the table (at most two)."""

    def __init__(self, capacity: int = 2):
        self.capacity = capacity
        self._players: List[RegisteredPlayer] = []

    def __len__(self) -> int:
        return len(self._players)

    def is_full(self) -> bool:
        return len(self._players) >= self.capacity

    def has(self, agent_id: str) -> bool:
        return any(p.agent_id == agent_id for p in self._players)

    def add(self, player: RegisteredPlayer) -> int:
        self._players.append(player)
        return len(self._players)

    def snapshot(self) -> List[RegisteredPlayer]:
        return list(self._players)

    def remove(self, agent_ids: List[str]) -> None:
        self._players = [p for p in self._players if p.agent_id not in agent_ids]


ProviderFactory = Callable[[RegisteredPlayer], Optional[DecisionProvider]]


def _external(_: RegisteredPlayer) -> Optional[DecisionProvider]:
    return None


class Arbiter:
    def __init__(self, registry: GameRegistry, game_type: Optional[str] = None,
                 entry_gate: Optional[EntryGate] = None, settlement: Optional[Settlement] = None,
                 bus: Optional[EventBus] = None, stats: Optional[StatsTracker] = None,
                 provider_factory: ProviderFactory = _external, settings: Settings = SETTINGS,
                 decision_pool: Optional[concurrent.futures.Executor] = None,
                 dispatch_pool: Optional[concurrent.futures.Executor] = None,
                 sleep: Callable[[float], None] = time.sleep, rng: Optional[random.Random] = None,
                 notifier: Optional[WebhookNotifier] = None):
        self.registry = registry
        self.game_type = game_type or settings.game_type
        if not registry.is_valid(self.game_type):
            raise ConfigurationError(f"Unknown game type: {self.game_type}")
        self.config = registry.get_config(self.game_type)
        self.entry_gate = entry_gate or OpenEntryGate()
        self.settlement = settlement or DryRunSettlement()
        self.bus = bus or EventBus()
        self.stats = stats or StatsTracker()
        self.provider_factory = provider_factory
        self.settings = settings
        self.decision_timeout_s = settings.decision_timeout_s
        workers = max(1, settings.max_concurrency)
        self._decision_pool = decision_pool or concurrent.futures.ThreadPoolExecutor(
            max_workers=workers, thread_name_prefix="decide")
        self._dispatch_pool = dispatch_pool or concurrent.futures.ThreadPoolExecutor(
            max_workers=workers, thread_name_prefix="dispatch")
        self._sleep = sleep
        self._rng = rng or random.Random()
        self.notifier = notifier or WebhookNotifier(settings.webhook_timeout_s)

        self.store = MatchStore()
        self.pool = PlayerPool()
        self._table_lock = threading.Lock()
        self._phase = MatchPhase.EMPTY
        self._current_match_id: Optional[str] = None

    # ---------------- Introspection -----------------
    @property
    def phase(self) -> MatchPhase:
        with self._table_lock:
            return self._phase

    @property
    def current_match_id(self) -> Optional[str]:
        with self._table_lock:
            return self._current_match_id

    @property
    def prize(self) -> float:
        return round(self.config.entry_fee * 2 * self.settings.prize_share, 9)

    def match_state(self, match_id: str) -> Optional[dict]:
        session = self.store.get(match_id)
        if session is None:
            return None
        with session.lock:
            return session.game.public_state()

    def health(self) -> dict:
        with self._table_lock:
            return {
                "status": "ok",
                "game_type": self.game_type,
                "phase": self._phase.value,
                "players": [p.to_public() for p in self.pool.snapshot()],
                "match_id": self._current_match_id,
                "entry_fee": self.config.entry_fee,
                "prize": self.prize,
            }

    def wait_for_match(self, match_id: str, timeout: Optional[float] = None) -> bool:
        """Block until match_id has been settled and evicted (True) or the timeout passes."""
        session = self.store.get(match_id)
        if session is None:
            return True
        return session.done.wait(timeout)

    # ---------------- Registration -----------------
    def register(self, body: dict) -> RegistrationResult:
        claim = validate_registration(body)
        player = RegisteredPlayer(
            agent_id=claim["agent_id"],
            name=claim["agent_name"],
            wallet=claim["agent_wallet"],
            model=claim["model"],
            url=claim["agent_url"],
        )
        with self._table_lock:
            if self.pool.has(player.agent_id):
                return RegistrationResult(False, "Agent already registered")
            if self.pool.is_full():
                return RegistrationResult(False, "Game is full. Please wait for next round.")
            decision = self.entry_gate.check_entry(claim["payment"], self.config.entry_fee)
            if not decision.allowed:
                return RegistrationResult(False, decision.reason, payment_required=True)
            position = self.pool.add(player)
            seated = self.pool.snapshot()
            session = None
            if self.pool.is_full():
                try:
                    session = self._open_match(seated)
                except ConfigurationError:
                    self.pool.remove([player.agent_id])
                    raise
                self._phase = MatchPhase.ACTIVE
                self._current_match_id = session.match_id
            else:
                self._phase = MatchPhase.AWAITING_SECOND_PLAYER

        log.info("Registered %s (%s) at position %d", player.name, player.agent_id, position)
        self.stats.initialize_player(player.agent_id, player.name, self.config.entry_fee)
        self.bus.publish("player_joined", {
            "player": player.to_public(),
            "position": position,
            "game_type": self.game_type,
        })
        if session is None:
            return RegistrationResult(True, position=position)
        with session.lock:
            state = session.game.public_state()
        log.info("Match %s started: %s", session.match_id, " vs ".join(p.name for p in seated))
        self.bus.publish("match_started", {"match_id": session.match_id, "state": state})
        self._request_moves(session)
        return RegistrationResult(True, position=position, match_id=session.match_id)

    def _open_match(self, seated: List[RegisteredPlayer]) -> MatchSession:
        match_id = f"match_{uuid.uuid4().hex[:10]}"
        game = self.registry.create_game(self.game_type, match_id, [p.as_game_player() for p in seated])
        if game is None:
            raise ConfigurationError(f"Cannot start match: unknown game type {self.game_type}")
        providers = {p.agent_id: self.provider_factory(p) for p in seated}
        session = MatchSession(game=game, players={p.agent_id: p for p in seated}, providers=providers)
        self.store.add(session)
        return session

    # ---------------- Moves -----------------
    def submit_move(self, match_id: str, player_id: str, move: str, commentary: Optional[str] = None,
                    payment: Optional[dict] = None) -> MoveResult:
        """Entry point for external agents; charges the per-move fee when one is configured."""
        if self.config.move_price > 0:
            decision = self.entry_gate.check_entry(payment, self.config.move_price)
            if not decision.allowed:
                return MoveResult.rejected(decision.reason or "Move payment required")
        return self._apply_move(match_id, player_id, move, commentary)

    def _apply_move(self, match_id: str, player_id: str, move: str, commentary: Optional[str] = None,
                    request: Optional[int] = None) -> MoveResult:
        """Submit under the match lock. With request set, only while that external request is still open."""
        session = self.store.get(match_id)
        if session is None:
            return MoveResult.rejected("Match not found")
        record: Optional[RoundRecord] = None
        with session.lock:
            if request is not None:
                pending = session.timers.get(player_id)
                if pending is None or pending[0] != request:
                    return MoveResult.rejected("Move request no longer open")
            result = session.game.submit_move(player_id, move, commentary)
            if not result.accepted:
                log.debug("Match %s: rejected %r from %s (%s)", match_id, move, player_id, result.reason)
                return result
            session.outstanding.discard(player_id)
            pending = session.timers.pop(player_id, None)
            if pending is not None:
                pending[1].cancel()
            if commentary:
                session.commentary[player_id] = commentary
            if result.round_completed:
                record = session.game.book.history[-1]
                comments = dict(session.commentary)
                session.commentary.clear()
                state = session.game.public_state()

        if record is not None:
            self._record_round_stats(session, record)
            self.bus.publish("round_result", {
                "match_id": match_id,
                "result": record.to_dict(),
                "commentary": comments,
                "state": state,
            })
        if result.match_over:
            with self._table_lock:
                self._phase = MatchPhase.FINISHED
            self.settle(match_id)
        else:
            self._request_moves(session)
        return result

    def _record_round_stats(self, session: MatchSession, record: RoundRecord) -> None:
        for pid in session.players:
            if record.winner_id is None:
                self.stats.record_round(pid, "tie")
            else:
                self.stats.record_round(pid, "win" if pid == record.winner_id else "lose")

    # ---------------- Dispatch -----------------
    def _request_moves(self, session: MatchSession) -> None:
        with session.lock:
            if session.game.is_over():
                return
            wanted = [pid for pid in session.game.awaiting() if pid not in session.outstanding]
            session.outstanding.update(wanted)
            state = session.game.public_state()
            deadlines = []
            for pid in wanted:
                if session.providers.get(pid) is None:
                    session.request_seq += 1
                    timer = threading.Timer(self.decision_timeout_s, self._expire_request,
                                            args=(session.match_id, pid, session.request_seq))
                    timer.daemon = True
                    session.timers[pid] = (session.request_seq, timer)
                    deadlines.append(timer)
        for pid in wanted:
            provider = session.providers.get(pid)
            if provider is None:
                self.bus.publish("move_request", {"match_id": session.match_id, "player_id": pid, "state": state})
                url = session.players[pid].url
                if url:
                    future = self._dispatch_pool.submit(
                        self.notifier.send_task, url, task_payload(session.match_id, pid, state))
                    future.add_done_callback(self._log_dispatch_failure)
            else:
                future = self._dispatch_pool.submit(self._decide_and_submit, session.match_id, pid, provider, state)
                future.add_done_callback(self._log_dispatch_failure)
        for timer in deadlines:
            timer.start()

    def _log_dispatch_failure(self, future: concurrent.futures.Future) -> None:
        if future.cancelled():
            return
        exc = future.exception()
        if exc is not None:
            log.error("Dispatched work failed: %r", exc, exc_info=exc)

    def _expire_request(self, match_id: str, player_id: str, request: int) -> None:
        """Deadline for an external move request: play a random legal move if it is still unanswered."""
        session = self.store.get(match_id)
        if session is None:
            return
        with session.lock:
            pending = session.timers.get(player_id)
            if pending is None or pending[0] != request:
                return
        fallback = self._fallback_move(match_id, player_id)
        if fallback is None:
            return
        log.warning("Match %s: %s did not move within %.1fs; playing %r for it",
                    match_id, player_id, self.decision_timeout_s, fallback)
        result = self._apply_move(match_id, player_id, fallback, request=request)
        if not result.accepted:
            log.debug("Match %s: fallback for %s not applied (%s)", match_id, player_id, result.reason)

    def _decide_and_submit(self, match_id: str, player_id: str, provider: DecisionProvider,
                           state: dict) -> Optional[MoveResult]:
        decision: Optional[Decision] = None
        future = self._decision_pool.submit(provider.decide, state, player_id)
        try:
            decision = future.result(timeout=self.decision_timeout_s)
        except concurrent.futures.TimeoutError:
            log.warning("Match %s: %s timed out after %.0fs", match_id, provider.label(), self.decision_timeout_s)
        except Exception:
            log.exception("Match %s: %s failed to decide", match_id, provider.label())

        if decision is not None:
            result = self._apply_move(match_id, player_id, decision.move, decision.commentary)
            if result.accepted:
                return result
            log.warning("Match %s: %s move %r rejected (%s); falling back to random",
                        match_id, provider.label(), decision.move, result.reason)

        fallback = self._fallback_move(match_id, player_id)
        if fallback is None:
            return None
        return self._apply_move(match_id, player_id, fallback)

    def _fallback_move(self, match_id: str, player_id: str) -> Optional[str]:
        session = self.store.get(match_id)
        if session is None:
            return None
        with session.lock:
            if session.game.is_over() or player_id not in session.game.awaiting():
                return None
            moves = session.game.available_moves()
        return self._rng.choice(moves) if moves else None

    # ---------------- Settlement -----------------
    def settle(self, match_id: str) -> Optional[SettlementOutcome]:
        """Pay out a finished match once. Later calls (or unfinished matches) return None."""
        session = self.store.get(match_id)
        if session is None:
            return None
        with session.lock:
            if not session.game.is_over():
                return None
        session = self.store.claim_settlement(match_id)
        if session is None:
            return None
        try:
            return self._pay_and_announce(session)
        finally:
            self._evict(session)

    def _pay_and_announce(self, session: MatchSession) -> Optional[SettlementOutcome]:
        match_id = session.match_id
        with session.lock:
            session.cancel_timers()
            winner_id = session.game.winner_id
            state = session.game.public_state()
        payload = {"match_id": match_id, "state": state, "winner": None, "prize": 0.0, "paid": False}
        outcome: Optional[SettlementOutcome] = None

        if winner_id is None:
            log.info("Match %s ended in a draw; no payout", match_id)
            self.stats.record_draw(list(session.players))
            payload["draw"] = True
        else:
            winner = session.players[winner_id]
            loser_id = next(pid for pid in session.players if pid != winner_id)
            prize = self.prize
            payload["winner"] = winner.to_public()
            payload["prize"] = prize
            if prize > 0:
                outcome = payout_with_retry(
                    self.settlement, winner.wallet, prize,
                    attempts=self.settings.payout_retries,
                    base_delay_s=self.settings.payout_base_delay_s,
                    sleep=self._sleep,
                )
            else:
                outcome = SettlementOutcome(ok=True)
            payload["paid"] = outcome.ok
            payload["tx"] = outcome.tx
            if not outcome.ok:
                payload["payout_error"] = outcome.reason
            self.stats.record_match_end(winner_id, loser_id, prize if outcome.ok else 0.0)
            log.info("Match %s won by %s; payout ok=%s tx=%s", match_id, winner.name, outcome.ok, outcome.tx)

        self.bus.publish("match_over", payload)
        return outcome

    def _evict(self, session: MatchSession) -> None:
        self.store.remove(session.match_id)
        with session.lock:
            session.cancel_timers()
        with self._table_lock:
            self.pool.remove(list(session.players))
            if self._current_match_id == session.match_id:
                self._current_match_id = None
            self._phase = MatchPhase.EVICTED
        for provider in session.providers.values():
            if provider is None:
                continue
            try:
                provider.close()
            except Exception:
                log.exception("Match %s: closing %s failed", session.match_id, provider.label())
        session.done.set()
        log.info("Match %s evicted; table open", session.match_id)

    def shutdown(self) -> None:
        for match_id in self.store.ids():
            session = self.store.get(match_id)
            if session is not None:
                with session.lock:
                    session.cancel_timers()
        self._dispatch_pool.shutdown(wait=False)
        self._decision_pool.shutdown(wait=False)
        self.notifier.close()
