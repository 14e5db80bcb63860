"""
Entry gate: decides whether a registering agent has paid the entry fee.

- OpenEntryGate admits everyone (local play, tests).
- PaymentClaimGate requires a claim {"signature", "amount"} covering the fee and
  refuses a signature it has already accepted.
"""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Optional, Set

log = logging.getLogger("entry_gate")


@dataclass
class EntryDecision:
    allowed: bool
    reason: Optional[str] = None


class EntryGate:
    def check_entry(self, claim: Optional[dict], amount: float) -> EntryDecision:
        raise NotImplementedError


class OpenEntryGate(EntryGate):
    def check_entry(self, claim: Optional[dict], amount: float) -> EntryDecision:
        return EntryDecision(True)


class PaymentClaimGate(EntryGate):
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._seen: Set[str] = set()

    def check_entry(self, claim: Optional[dict], amount: float) -> EntryDecision:
        if amount <= 0:
            return EntryDecision(True)
        if not isinstance(claim, dict):
            return EntryDecision(False, f"Payment required: {amount} SOL")
        signature = str(claim.get("signature") or "").strip()
        if not signature:
            return EntryDecision(False, "Payment signature missing")
        try:
            paid = float(claim.get("amount", 0))
        except (TypeError, ValueError):
            return EntryDecision(False, "Invalid payment amount")
        if paid < amount:
            return EntryDecision(False, f"Insufficient payment: {paid} < {amount}")
        with self._lock:
            if signature in self._seen:
                log.warning("Replayed payment signature %s...", signature[:12])
                return EntryDecision(False, "Payment already used")
            self._seen.add(signature)
        return EntryDecision(True)
