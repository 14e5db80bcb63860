"""
Request body validation for the HTTP surface. Raises ValidationError(field=...).
"""
from __future__ import annotations

import re
from typing import Any, Optional
from urllib.parse import urlparse

from .errors import ValidationError

# base58 alphabet (no 0, O, I, l), 32-44 chars covers ed25519 public keys
WALLET_RE = re.compile(r"^[1-9A-HJ-NP-Za-km-z]{32,44}$")


def require_string(body: dict, field: str, min_len: int = 1, max_len: Optional[int] = None) -> str:
    value = body.get(field)
    if value is None or value == "":
        raise ValidationError(f"{field} is required", field)
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be a string", field)
    if len(value) < min_len:
        raise ValidationError(f"{field} must be at least {min_len} characters", field)
    if max_len is not None and len(value) > max_len:
        raise ValidationError(f"{field} must be at most {max_len} characters", field)
    return value


def optional_string(body: dict, field: str, max_len: Optional[int] = None) -> Optional[str]:
    if body.get(field) in (None, ""):
        return None
    return require_string(body, field, max_len=max_len)


def validate_wallet(value: Any, field: str = "agent_wallet") -> str:
    if not isinstance(value, str) or not WALLET_RE.match(value):
        raise ValidationError(f"{field} must be a valid wallet address", field)
    return value


def validate_url(value: Any, field: str = "agent_url") -> str:
    parsed = urlparse(value if isinstance(value, str) else "")
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValidationError(f"{field} must be a valid URL", field)
    return value


def _require_object(body: Any) -> dict:
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object")
    return body


def validate_registration(body: Any) -> dict:
    body = _require_object(body)
    claim = {
        "agent_id": require_string(body, "agent_id", 1, 100),
        "agent_name": require_string(body, "agent_name", 1, 50),
        "agent_wallet": validate_wallet(require_string(body, "agent_wallet")),
        "agent_url": None,
        "model": optional_string(body, "model", 200),
        "payment": body.get("payment"),
    }
    if body.get("agent_url") not in (None, ""):
        claim["agent_url"] = validate_url(body["agent_url"])
    if claim["payment"] is not None and not isinstance(claim["payment"], dict):
        raise ValidationError("payment must be an object", "payment")
    return claim


def validate_move_request(body: Any) -> dict:
    body = _require_object(body)
    return {
        "match_id": require_string(body, "match_id", 1, 100),
        "agent_id": require_string(body, "agent_id", 1, 100),
        "move": require_string(body, "move", 1, 100),
        "commentary": optional_string(body, "commentary", 500),
    }
