"""LLM-backed decision provider for model-vs-model matches."""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Optional

from . import llm_client
from .decision import Decision, DecisionProvider
from .errors import DecisionError
from .move_validator import parse_reply
from .prompting import PromptConfig, build_messages

log = logging.getLogger("llm_provider")


@dataclass
class LLMDecisionProvider(DecisionProvider):
    model: str
    persona: Optional[str] = None
    prompt_cfg: Optional[PromptConfig] = None
    name: Optional[str] = None

    def label(self) -> str:
        return self.name or self.model

    def decide(self, public_state: dict, player_id: str) -> Decision:
        cfg = self.prompt_cfg or PromptConfig(persona=self.persona)
        messages = build_messages(public_state, player_id, cfg)
        t0 = time.time()
        raw = llm_client.ask_for_move_conversation(messages, model=self.model)
        ms = int((time.time() - t0) * 1000)
        if not raw:
            raise DecisionError(f"{self.label()} returned no reply", raw=raw)
        parsed = parse_reply(public_state.get("game_type", ""), raw, public_state)
        if not parsed.get("ok"):
            log.warning("%s reply unusable (%s): %r", self.label(), parsed.get("reason"), raw[:200])
            raise DecisionError(f"{self.label()} gave no legal move ({parsed.get('reason')})", raw=raw)
        log.debug("%s chose %s in %d ms", self.label(), parsed["move"], ms)
        return Decision(move=parsed["move"], commentary=parsed.get("commentary"), raw=raw)
