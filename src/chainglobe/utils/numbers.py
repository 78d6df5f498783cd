"""Defensive numeric coercion for loosely-typed provider JSON."""

import math
from typing import Any, Iterable, List, Optional


def safe_float(value: Any, default: float = 0.0) -> float:
    """
    Coerce a JSON value to float.

    Providers send numbers, numeric strings, null, or nothing at all.
    Anything that is not a finite number becomes ``default``.

    Example:
        >>> safe_float("1234.5")
        1234.5
        >>> safe_float(None)
        0.0
        >>> safe_float("n/a")
        0.0
    """
    if value is None or isinstance(value, bool):
        return default
    try:
        result = float(value)
    except (TypeError, ValueError, OverflowError):
        return default
    if math.isnan(result) or math.isinf(result):
        return default
    return result


def safe_int(value: Any, default: int = 0) -> int:
    """Coerce a JSON value to int (via float, so "42.0" works)."""
    return int(safe_float(value, float(default)))


def optional_float(value: Any) -> Optional[float]:
    """Like safe_float, but missing or malformed values stay None."""
    if value is None:
        return None
    result = safe_float(value, default=math.nan)
    return None if math.isnan(result) else result


def pct_change(current: float, previous: float) -> float:
    """Percent change from previous to current; 0 when previous is 0."""
    if not previous:
        return 0.0
    return (current - previous) / previous * 100


def middle_value(values: Iterable[float]) -> float:
    """
    Element at index n // 2 of the sorted values (0 for empty input).

    This is the upper-middle element for even-length input, not the
    arithmetic median.
    """
    ordered: List[float] = sorted(values)
    if not ordered:
        return 0.0
    return ordered[len(ordered) // 2]
