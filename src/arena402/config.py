"""
Configuration and environment loading for the arena arbiter.

- Loads settings.yml (YAML) from repo root if present; falls back to environment variables (.env is honoured).
- Exposes SETTINGS with keys used across the project (LLM endpoint, fees, payout retry knobs, timeouts).
"""
from dataclasses import dataclass
import logging
import os
from typing import Any, Callable

import yaml
from dotenv import load_dotenv

load_dotenv()

log = logging.getLogger("config")


def _repo_root() -> str:
    # this file: src/arena402/config.py → repo root is two levels up
    return os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))


def _load_yaml(path: str) -> dict:
    if not os.path.isfile(path):
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError):
        log.warning("Could not read %s; using environment only", path, exc_info=True)
        return {}
    return data if isinstance(data, dict) else {}


_cfg = _load_yaml(os.path.join(_repo_root(), "settings.yml"))


def _as_bool(val: Any) -> bool:
    if isinstance(val, bool):
        return val
    return str(val).strip().lower() in {"1", "true", "yes", "on"}


def _get(name: str, default: Any, cast: Callable[[Any], Any] | None = None) -> Any:
    if name in _cfg:
        val = _cfg[name]
        return cast(val) if cast else val
    env = os.environ.get(name)
    if env is not None:
        return cast(env) if cast else env
    return default


@dataclass(frozen=True)
class Settings:
    # LLM endpoint (OpenAI-compatible wire format)
    llm_api_key: str
    api_base: str
    responses_timeout_s: float
    responses_retries: int
    decision_timeout_s: float
    max_concurrency: int
    webhook_timeout_s: float

    # Arena
    game_type: str
    entry_fee: float
    move_price: float
    prize_share: float
    require_payment: bool
    arbiter_port: int
    chess_max_plies: int

    # Settlement
    payout_retries: int
    payout_base_delay_s: float


SETTINGS = Settings(
    llm_api_key=_get("ARENA_LLM_API_KEY", _get("OPENAI_API_KEY", "")),
    api_base=_get("ARENA_LLM_BASE_URL", ""),
    responses_timeout_s=float(_get("ARENA_RESPONSES_TIMEOUT_S", 30.0, cast=float)),
    responses_retries=int(_get("ARENA_RESPONSES_RETRIES", 2, cast=int)),
    decision_timeout_s=float(_get("ARENA_DECISION_TIMEOUT_S", 45.0, cast=float)),
    max_concurrency=int(_get("ARENA_MAX_CONCURRENCY", 8, cast=int)),
    webhook_timeout_s=float(_get("ARENA_WEBHOOK_TIMEOUT_S", 5.0, cast=float)),
    game_type=_get("GAME_TYPE", "rock-paper-scissors"),
    entry_fee=float(_get("ENTRY_FEE", 0.001, cast=float)),
    move_price=float(_get("MOVE_PRICE", 0.0, cast=float)),
    prize_share=float(_get("PRIZE_SHARE", 0.95, cast=float)),
    require_payment=_get("REQUIRE_PAYMENT", False, cast=_as_bool),
    arbiter_port=int(_get("ARBITER_PORT", 3000, cast=int)),
    chess_max_plies=int(_get("CHESS_MAX_PLIES", 400, cast=int)),
    payout_retries=int(_get("PAYOUT_RETRIES", 4, cast=int)),
    payout_base_delay_s=float(_get("PAYOUT_BASE_DELAY_S", 1.0, cast=float)),
)
