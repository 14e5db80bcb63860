"""
Exception hierarchy for the arbiter.

Move-level problems (wrong turn, occupied cell, illegal SAN) are NOT raised;
games return them as rejections. These exceptions cover request validation,
configuration, decision providers and settlement.
"""
from __future__ import annotations

from typing import Optional


class ArenaError(Exception):
    """Base exception for all arbiter errors."""
    pass


class ValidationError(ArenaError):
    """Raised when an incoming request body is malformed."""

    def __init__(self, message: str, field: Optional[str] = None):
        self.field = field
        super().__init__(message)

    def to_dict(self) -> dict:
        return {"error": str(self), "field": self.field}


class ConfigurationError(ArenaError):
    """Unknown game type or unusable game configuration. Fatal to match creation."""
    pass


class DecisionError(ArenaError):
    """A decision provider could not produce a usable move."""

    def __init__(self, message: str, raw: Optional[str] = None):
        self.raw = raw
        super().__init__(message)


class PayoutError(ArenaError):
    """Settlement failure. transient=True means the call may be retried."""

    def __init__(self, message: str, transient: bool = False):
        self.transient = transient
        super().__init__(message)
