"""General-purpose numeric and date helpers used across scorers."""

import math
from datetime import datetime, timezone


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, with .5 always rounding up.

    Python's built-in ``round`` uses banker's rounding, which would make
    scores such as 72.5 drop to 72.
    """
    return int(math.floor(value + 0.5))


def round_to(value: float, digits: int) -> float:
    """Round *value* to *digits* decimals with half-up semantics."""
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def clamp(value: float, low: float, high: float) -> float:
    """Constrain *value* to the closed interval [low, high]."""
    return max(low, min(high, value))


def ensure_aware(value: datetime) -> datetime:
    """Treat naive datetimes as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def days_between(earlier: datetime, later: datetime) -> float:
    """Fractional number of days from *earlier* to *later*."""
    delta = ensure_aware(later) - ensure_aware(earlier)
    return delta.total_seconds() / 86400.0


def format_number(n: int | float) -> str:
    """Render a number without a trailing ``.0`` for whole floats.

    Examples:
        >>> format_number(12.0)
        '12'
        >>> format_number(12.5)
        '12.5'
    """
    if isinstance(n, float) and n.is_integer():
        return str(int(n))
    return str(n)
