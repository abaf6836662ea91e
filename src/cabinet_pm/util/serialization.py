from __future__ import annotations

import dataclasses
from datetime import date, datetime
from enum import Enum
from types import MappingProxyType
from typing import Any

REDACTED_VALUE = "<redacted>"
SENSITIVE_KEY_SUBSTRINGS = (
    "password",
    "passphrase",
    "secret",
    "token",
    "session_cookie",
)


def _is_sensitive_key(key: Any) -> bool:
    if not isinstance(key, str):
        return False
    lowered = key.lower()
    return any(token in lowered for token in SENSITIVE_KEY_SUBSTRINGS)


def sanitize_for_json(value: Any) -> Any:
    """
    Convert report types (dataclasses, enums, dates, tuples, read-only mappings)
    to JSON-serializable forms and redact credential-like fields that callers
    sometimes leave on session records.
    """
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, bytes):
        return value.decode("utf-8", "replace")
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        out = {}
        for f in dataclasses.fields(value):
            if _is_sensitive_key(f.name):
                out[f.name] = REDACTED_VALUE
            else:
                out[f.name] = sanitize_for_json(getattr(value, f.name))
        return out
    if isinstance(value, (dict, MappingProxyType)):
        out = {}
        for k, v in value.items():
            key = k.value if isinstance(k, Enum) else k
            if _is_sensitive_key(key):
                out[key] = REDACTED_VALUE
            else:
                out[key] = sanitize_for_json(v)
        return out
    if isinstance(value, (list, tuple, set, frozenset)):
        return [sanitize_for_json(v) for v in value]
    return value
