from __future__ import annotations

import math
import re
from datetime import date, datetime
from enum import Enum
from typing import Any, Optional, Union

from .time import parse_datetime

NOT_AVAILABLE = "N/A"

# Leading decimal number of a typed reading ("30V" -> 30, "12.5 VDC" -> 12.5).
_LEADING_NUMBER = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")


def format_number(value: float) -> str:
    """Render a reading the way technicians type it: 142 not 142.0, 12.25 as is."""
    if math.isfinite(value) and float(value).is_integer():
        return str(int(value))
    return repr(float(value))


def parse_reading(value: Any) -> Optional[float]:
    """
    Parse a measured value into a finite float, reading the leading number
    of typed text so a trailing unit is ignored ("30V" is 30).
    Returns None for blanks, text without a leading number and non-finite values.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        text = str(value).strip()
        if not text:
            return None
        match = _LEADING_NUMBER.match(text)
        if match is None:
            return None
        number = float(match.group(0))
    if not math.isfinite(number):
        return None
    return number


def format_date(value: Union[str, date, datetime, None]) -> str:
    """Long US date ("March 5, 2025"); N/A when missing, raw text when unparseable."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return NOT_AVAILABLE
    parsed = parse_datetime(value)
    if parsed is None:
        return str(value)
    return f"{parsed.strftime('%B')} {parsed.day}, {parsed.year}"


def format_status(status: Union[str, Enum, None]) -> str:
    if status is None:
        return NOT_AVAILABLE
    text = status.value if isinstance(status, Enum) else str(status)
    if not text:
        return NOT_AVAILABLE
    return text[0].upper() + text[1:].replace("_", " ", 1)


def format_value(value: Any) -> str:
    if value is None or value == "":
        return NOT_AVAILABLE
    if isinstance(value, float):
        return format_number(value)
    return str(value)


def format_flag(value: bool) -> str:
    return "Yes" if value else ""


def text_or(value: Optional[str], fallback: str) -> str:
    text = (value or "").strip()
    return text or fallback
