"""
Event bus for match notifications, with Server-Sent Events framing.

- publish(event, payload) serialises once and hands the frame to a snapshot of the
  current subscribers; a subscriber whose queue is full is dropped.
- Subscription.stream() yields SSE frames (and keepalive comments) for a Flask Response.
- In-process listeners receive (event, payload copy); a listener that raises is removed.
"""
from __future__ import annotations

import json
import logging
import queue
import threading
from typing import Callable, Iterator, List, Optional

log = logging.getLogger("notifications")

Listener = Callable[[str, dict], None]


def format_sse(event: str, payload: dict) -> str:
    return f"event: {event}\ndata: {json.dumps(payload, default=str)}\n\n"


class Subscription:
    def __init__(self, bus: "EventBus", maxsize: int = 256):
        self._bus = bus
        self._queue: "queue.Queue[Optional[str]]" = queue.Queue(maxsize=maxsize)
        self.closed = False

    def deliver(self, frame: str) -> bool:
        try:
            self._queue.put_nowait(frame)
            return True
        except queue.Full:
            return False

    def get(self, timeout: Optional[float] = None) -> Optional[str]:
        """Next frame, or None on timeout or close."""
        try:
            return self._queue.get(timeout=timeout)
        except queue.Empty:
            return None

    def stream(self, keepalive_s: float = 15.0) -> Iterator[str]:
        yield ": connected\n\n"
        try:
            while True:
                try:
                    frame = self._queue.get(timeout=keepalive_s)
                except queue.Empty:
                    if self.closed:
                        break
                    yield ": keepalive\n\n"
                    continue
                if frame is None:
                    break
                yield frame
        finally:
            self._bus.unsubscribe(self)

    def close(self) -> None:
        self.closed = True
        try:
            self._queue.put_nowait(None)
        except queue.Full:
            pass


class EventBus:
    def __init__(self, queue_size: int = 256):
        self._lock = threading.Lock()
        self._subs: List[Subscription] = []
        self._listeners: List[Listener] = []
        self._queue_size = queue_size

    def subscribe(self) -> Subscription:
        sub = Subscription(self, self._queue_size)
        with self._lock:
            self._subs.append(sub)
        return sub

    def unsubscribe(self, sub: Subscription) -> None:
        with self._lock:
            if sub in self._subs:
                self._subs.remove(sub)

    def add_listener(self, fn: Listener) -> None:
        with self._lock:
            self._listeners.append(fn)

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subs)

    def publish(self, event: str, payload: dict) -> int:
        """Broadcast to everyone subscribed right now. Returns the number of deliveries."""
        frame = format_sse(event, payload)
        with self._lock:
            subs = list(self._subs)
            listeners = list(self._listeners)
        delivered = 0
        for sub in subs:
            if sub.deliver(frame):
                delivered += 1
            else:
                log.warning("Dropping slow subscriber on %s", event)
                sub.close()
                self.unsubscribe(sub)
        for fn in listeners:
            try:
                fn(event, json.loads(json.dumps(payload, default=str)))
                delivered += 1
            except Exception:
                log.exception("Listener failed on %s; removing it", event)
                with self._lock:
                    if fn in self._listeners:
                        self._listeners.remove(fn)
        return delivered
