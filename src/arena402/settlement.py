"""
Settlement: prize payout to the match winner.

- Settlement.payout(recipient, amount) returns a transaction reference or raises PayoutError.
- payout_with_retry retries transient failures with jittered exponential backoff and stops
  at the first permanent one. It reports the outcome instead of raising.
- DryRunSettlement logs the transfer and returns a synthetic reference (no chain client is shipped).
"""
from __future__ import annotations

import logging
import random
import threading
import time
import uuid
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from .errors import PayoutError

log = logging.getLogger("settlement")

TRANSIENT_MARKERS = (
    "fetch failed",
    "network",
    "timeout",
    "timed out",
    "econnrefused",
    "enotfound",
    "etimedout",
    "429",
    "503",
    "rate limit",
    "blockhash not found",
)

MAX_BACKOFF_S = 30.0


def is_transient(exc: BaseException) -> bool:
    """True when a payout failure is worth retrying."""
    if isinstance(exc, PayoutError):
        return exc.transient
    if isinstance(exc, (TimeoutError, ConnectionError)):
        return True
    msg = str(exc).lower()
    return any(marker in msg for marker in TRANSIENT_MARKERS)


class Settlement:
    """Interface for paying the winner."""

    def payout(self, recipient: str, amount: float) -> str:
        raise NotImplementedError


class DryRunSettlement(Settlement):
    """Records payouts in memory and returns fake transaction references."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.payouts: List[Tuple[str, float, str]] = []

    def payout(self, recipient: str, amount: float) -> str:
        tx = f"dryrun-{uuid.uuid4().hex[:16]}"
        with self._lock:
            self.payouts.append((recipient, amount, tx))
        log.info("[dry-run] paid %.6f to %s (tx=%s)", amount, recipient, tx)
        return tx


@dataclass
class SettlementOutcome:
    ok: bool
    tx: Optional[str] = None
    reason: Optional[str] = None
    attempts: int = 0


def payout_with_retry(settlement: Settlement, recipient: str, amount: float, attempts: int = 4,
                      base_delay_s: float = 1.0,
                      sleep: Callable[[float], None] = time.sleep) -> SettlementOutcome:
    attempts = max(1, attempts)
    for attempt in range(attempts):
        try:
            tx = settlement.payout(recipient, amount)
            return SettlementOutcome(ok=True, tx=tx, attempts=attempt + 1)
        except Exception as exc:
            transient = is_transient(exc)
            if not transient or attempt + 1 >= attempts:
                log.error("Payout of %.6f to %s failed after %d attempt(s): %s",
                          amount, recipient, attempt + 1, exc)
                return SettlementOutcome(ok=False, reason=str(exc) or type(exc).__name__, attempts=attempt + 1)
            delay = base_delay_s * (2 ** attempt) * (0.8 + 0.4 * random.random())
            log.warning("Payout attempt %d/%d failed (%s); retrying in %.1fs", attempt + 1, attempts, exc, delay)
            sleep(min(delay, MAX_BACKOFF_S))
    return SettlementOutcome(ok=False, reason="no attempts made", attempts=0)
