"""
Best-effort task delivery to agents that registered an agent_url.

POST {agent_url}/task with {"type": "game_move", "match_id", "player_id", "game_state", "instruction"}.
Failures are logged and reported as False; the agent can still answer a move_request via POST /move.
"""
from __future__ import annotations

import logging
import threading
from typing import Optional

import httpx

log = logging.getLogger("webhooks")


def task_payload(match_id: str, player_id: str, state: dict) -> dict:
    return {
        "type": "game_move",
        "match_id": match_id,
        "player_id": player_id,
        "game_state": state,
        "instruction": state.get("instructions") or "Make your move",
    }


class WebhookNotifier:
    def __init__(self, timeout_s: float = 5.0, client: Optional[httpx.Client] = None):
        self.timeout_s = timeout_s
        self._client = client
        self._lock = threading.Lock()

    def _http(self) -> httpx.Client:
        with self._lock:
            if self._client is None:
                self._client = httpx.Client(timeout=self.timeout_s)
            return self._client

    def send_task(self, agent_url: str, payload: dict) -> bool:
        url = f"{agent_url.rstrip('/')}/task"
        try:
            resp = self._http().post(url, json=payload)
            resp.raise_for_status()
        except httpx.HTTPError as exc:
            log.warning("Task delivery to %s failed: %s", url, exc)
            return False
        log.debug("Task for %s delivered to %s", payload.get("player_id"), url)
        return True

    def close(self) -> None:
        with self._lock:
            if self._client is not None:
                self._client.close()
                self._client = None
