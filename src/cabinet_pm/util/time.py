from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Optional, Union


def utc_now_iso(seconds: bool = True) -> str:
    """
    Return current UTC time in ISO-8601 format.
    - If seconds is True, use seconds precision (stable strings).
    - Else, use milliseconds precision.
    """
    if seconds:
        return datetime.now(timezone.utc).isoformat(timespec="seconds")
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds")


def parse_datetime(value: Union[str, date, datetime, None]) -> Optional[datetime]:
    """
    Best-effort parse of stored timestamps ("2025-03-01", "2025-03-01 10:00:00",
    "2025-03-01T10:00:00Z"). Returns None for blank or unparseable input.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    text = str(value).strip()
    if not text:
        return None
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None
