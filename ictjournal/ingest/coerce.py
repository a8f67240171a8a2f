"""
Best-effort coercion of raw CSV cells.

Every helper returns None for values it can't interpret instead of
raising, so one bad cell never sinks the whole row.
"""

import math
import re
from typing import Any, Optional, Tuple

_TRUE_VALUES = {"true", "1", "yes"}
_FALSE_VALUES = {"false", "0", "no"}

_PAREN_NEGATIVE_RE = re.compile(r"^\((.*)\)$")
_NUMBER_RE = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?$")


def to_bool(value: Any) -> Optional[bool]:
    """
    Interpret true/1/yes and false/0/no (case-insensitive).

    Anything else is None.
    """
    if value is True or value is False:
        return value
    if value is None:
        return None

    s = str(value).strip().lower()
    if s in _TRUE_VALUES:
        return True
    if s in _FALSE_VALUES:
        return False
    return None


def to_number(value: Any) -> Optional[float]:
    """
    Parse a number, tolerating money formatting.

    Examples:
        "1,234.5" -> 1234.5
        "-$7.88" -> -7.88
        "(123.45)" -> -123.45
        "abc" -> None
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value) if math.isfinite(value) else None

    cleaned = str(value).strip().replace("$", "").replace(",", "")
    cleaned = _PAREN_NEGATIVE_RE.sub(r"-\1", cleaned)
    if not cleaned or not _NUMBER_RE.match(cleaned):
        return None

    number = float(cleaned)
    return number if math.isfinite(number) else None


def to_text(value: Any) -> Optional[str]:
    """Trimmed string, None when empty."""
    if value is None:
        return None
    s = str(value).strip()
    return s or None


def split_list(value: Any) -> Tuple[str, ...]:
    """Split "a; b;;c" into ("a", "b", "c")."""
    if not value:
        return ()
    return tuple(part.strip() for part in str(value).split(";") if part.strip())


def normalize_direction(value: Any) -> Optional[str]:
    """Map buy/long -> "long", sell/short -> "short"."""
    s = str(value if value is not None else "").strip().lower()
    if s in ("buy", "long"):
        return "long"
    if s in ("sell", "short"):
        return "short"
    return None
