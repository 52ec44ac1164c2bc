"""Column codecs for flags and JSON details stored in SQLite."""

from __future__ import annotations

import json
from typing import Any, Dict, Optional


def int_to_bool(value: Any, *, default: Optional[bool] = None) -> Optional[bool]:
    if value is None:
        return default
    try:
        return bool(int(value))
    except (TypeError, ValueError):
        return default


def decode_details(value: Any) -> Optional[Dict[str, Any]]:
    """Decode the JSON ``details`` column of a game event."""

    if value in (None, ""):
        return None
    if isinstance(value, dict):
        return value
    try:
        decoded = json.loads(value)
    except (TypeError, json.JSONDecodeError):  # pragma: no cover - written by us as JSON
        return None
    return decoded if isinstance(decoded, dict) else None


def encode_details(value: Optional[Dict[str, Any]]) -> Optional[str]:
    if value is None:
        return None
    return json.dumps(value, sort_keys=True)


__all__ = [
    "decode_details",
    "encode_details",
    "int_to_bool",
]
