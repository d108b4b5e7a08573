"""Helpers for safe debug logging.

The printer's LAN access code doubles as the MQTT password and is echoed
back in ``get_access_code`` replies. This module redacts such fields
before payloads reach DEBUG logs.
"""

from __future__ import annotations

import enum
import json
from collections.abc import Mapping, Sequence
from typing import Any

from pydantic import BaseModel

_SENSITIVE_VALUE_KEYS: frozenset[str] = frozenset(
    {
        "password",
        "passwd",
        "access_code",
        "accesscode",
        "ftp_pass",
        "token",
        "authorization",
    }
)

_MAX_DEPTH = 20


def _truncate(text: str, limit: int) -> str:
    return text if len(text) <= limit else f"{text[:limit]}…<truncated>"


def redact_for_log(value: Any, *, max_string: int = 512, _depth: int = 0) -> Any:
    """Return a redacted, JSON-friendly copy of *value* for debug logs.

    Command and report models are dumped first, so their secrets go through
    the same key filter as raw payloads.
    """
    if _depth > _MAX_DEPTH:
        return "<max-depth>"

    match value:
        case None | bool() | int() | float():
            return value
        case enum.Enum():
            return value.value
        case str():
            return _truncate(value, max_string)
        case bytes() | bytearray():
            return f"<bytes:{len(value)}b>"
        case BaseModel():
            return redact_for_log(value.model_dump(), max_string=max_string, _depth=_depth + 1)
        case Mapping():
            return {
                str(key): "<redacted>"
                if str(key).lower() in _SENSITIVE_VALUE_KEYS
                else redact_for_log(item, max_string=max_string, _depth=_depth + 1)
                for key, item in value.items()
            }
        case Sequence():
            return [redact_for_log(item, max_string=max_string, _depth=_depth + 1) for item in value]
    return repr(value)


def redact_text(payload: bytes | str, *, max_string: int = 2048) -> str:
    """Render a wire payload for logging.

    JSON objects are parsed and redacted key by key; anything else is shown
    as (truncated) text.
    """
    text = payload.decode("utf-8", errors="replace") if isinstance(payload, (bytes, bytearray)) else payload
    try:
        parsed = json.loads(text)
    except ValueError:
        parsed = None
    if isinstance(parsed, Mapping):
        return json.dumps(redact_for_log(parsed), separators=(",", ":"), ensure_ascii=False)
    return _truncate(text, max_string)
