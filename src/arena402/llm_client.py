"""
LLM client facade over an OpenAI-compatible chat endpoint (base URL configurable).

The rest of the code should not care which SDK is in use. This module takes
`model` + `messages` and returns the raw reply text ("" when every attempt failed).
"""
from __future__ import annotations

import logging
import random
import threading
import time
from typing import Dict, List, Optional

from openai import OpenAI

from .config import SETTINGS

log = logging.getLogger("llm_client")

_CLIENT: Optional[OpenAI] = None
_CLIENT_LOCK = threading.Lock()


def _client() -> OpenAI:
    """Build the SDK client on first use so importing this module never needs an API key."""
    global _CLIENT
    with _CLIENT_LOCK:
        if _CLIENT is None:
            _CLIENT = OpenAI(api_key=SETTINGS.llm_api_key or None, base_url=SETTINGS.api_base or None)
        return _CLIENT


# ------------------------- Chat wrapper -------------------------
def ask_for_move_conversation(messages: List[Dict[str, str]], model: Optional[str] = None) -> str:
    """Given a chat-style conversation (including system message), request the next move."""
    if not model:
        raise ValueError("Model is required for LLM decisions.")
    delay = 0.5
    timeout = SETTINGS.responses_timeout_s
    for attempt in range(SETTINGS.responses_retries + 1):
        try:
            rsp = _client().chat.completions.create(
                model=model,
                messages=messages,
                timeout=timeout,
            )
            text = _extract_text(rsp)
            if text:
                return text.strip()
            log.warning("Empty reply from %s (attempt %d)", model, attempt + 1)
        except Exception:
            if attempt >= SETTINGS.responses_retries:
                log.exception("Chat request failed after %d attempts", attempt + 1)
                break
            log.warning("Chat request to %s failed (attempt %d); retrying", model, attempt + 1)
        if attempt < SETTINGS.responses_retries:
            sleep_s = delay * (2 ** attempt) * (0.8 + 0.4 * random.random())
            time.sleep(min(sleep_s, 10.0))
    return ""


def _extract_text(rsp) -> str:
    if not getattr(rsp, "choices", None):
        return ""
    content = getattr(rsp.choices[0].message, "content", None)
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for c in content:
            if isinstance(c, dict):
                if c.get("type") == "text" and isinstance(c.get("text"), str):
                    parts.append(c["text"])
            elif isinstance(getattr(c, "text", None), str):
                parts.append(c.text)
        return "\n".join(parts)
    return ""
