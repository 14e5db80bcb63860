"""Fixed-window, per-key request limiter. Expired keys are swept at most once per window."""
from __future__ import annotations

import math
import threading
import time
from typing import Callable, Dict, Tuple


class RateLimiter:
    def __init__(self, max_requests: int, window_s: float, clock: Callable[[], float] = time.monotonic):
        self.max_requests = max_requests
        self.window_s = window_s
        self._clock = clock
        self._lock = threading.Lock()
        self._windows: Dict[str, Tuple[int, float]] = {}  # key -> (count, reset_at)
        self._next_sweep = clock() + window_s

    def check(self, key: str) -> Tuple[bool, int]:
        """Count one request for key. Returns (allowed, retry_after_s)."""
        now = self._clock()
        with self._lock:
            if now >= self._next_sweep:
                self._sweep(now)
            count, reset_at = self._windows.get(key, (0, 0.0))
            if now >= reset_at:
                self._windows[key] = (1, now + self.window_s)
                return True, 0
            if count >= self.max_requests:
                return False, max(1, math.ceil(reset_at - now))
            self._windows[key] = (count + 1, reset_at)
            return True, 0

    def tracked_keys(self) -> int:
        with self._lock:
            return len(self._windows)

    def cleanup(self) -> None:
        now = self._clock()
        with self._lock:
            self._sweep(now)

    def _sweep(self, now: float) -> None:
        for key in [k for k, (_, reset_at) in self._windows.items() if now >= reset_at]:
            del self._windows[key]
        self._next_sweep = now + self.window_s
