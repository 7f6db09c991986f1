"""
Expiration value parsing.

Accepted forms:
- 0, None, "" or "0": expire when the visit ends (no durable expiration)
- int/float up to one year: relative seconds; larger numbers are Unix timestamps
- timedelta: relative; datetime: absolute (naive values are UTC)
- strings such as "20 minutes", "+3 hours", "2 weeks", or an ISO-8601 datetime
"""

import math
import re
from datetime import UTC, datetime, timedelta
from typing import Optional, Union

ExpirationValue = Union[None, int, float, str, timedelta, datetime]

# Numbers up to this many seconds are treated as relative durations
YEAR = 31557600

UNITS = {
    "s": 1,
    "sec": 1,
    "second": 1,
    "m": 60,
    "min": 60,
    "minute": 60,
    "h": 3600,
    "hour": 3600,
    "d": 86400,
    "day": 86400,
    "w": 604800,
    "week": 604800,
}

_RELATIVE_PATTERN = re.compile(r"^\+?\s*(\d+(?:\.\d+)?)\s*([a-z]+?)s?$")


def is_end_of_visit(value: ExpirationValue) -> bool:
    """Check whether the value means "expire when the visit ends"."""
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() in ("", "0")
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value == 0
    return False


def parse_relative(text: str) -> Optional[float]:
    """Parse strings like "+20 minutes" into seconds, or None if not relative."""
    match = _RELATIVE_PATTERN.match(text.strip().lower())
    if not match:
        return None
    amount, unit = match.groups()
    if unit not in UNITS:
        return None
    return float(amount) * UNITS[unit]


def to_timestamp(value: ExpirationValue, now: float) -> Optional[float]:
    """
    Convert an expiration value to an absolute Unix timestamp.

    Args:
        value: Expiration in any accepted form
        now: Current Unix time used for relative values

    Returns:
        Absolute timestamp, or None for end of visit

    Raises:
        ValueError: If the value cannot be interpreted
    """
    if is_end_of_visit(value):
        return None

    if isinstance(value, bool):
        raise ValueError(f"Invalid expiration: {value!r}")

    if isinstance(value, (int, float)):
        if value < 0:
            raise ValueError(f"Expiration must not be negative: {value!r}")
        return now + value if value <= YEAR else float(value)

    if isinstance(value, timedelta):
        return now + value.total_seconds()

    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.timestamp()

    if isinstance(value, str):
        seconds = parse_relative(value)
        if seconds is not None:
            return now + seconds
        try:
            return to_timestamp(datetime.fromisoformat(value.strip()), now)
        except ValueError:
            raise ValueError(f"Invalid expiration: {value!r}") from None

    raise ValueError(f"Invalid expiration: {value!r}")


def to_duration(value: ExpirationValue, now: float) -> Optional[int]:
    """
    Convert an expiration value to a duration in whole seconds, rounded up.

    Used for the session-level lifetime. Absolute values are measured from now.
    Returns None for end of visit.
    """
    timestamp = to_timestamp(value, now)
    if timestamp is None:
        return None
    if timestamp <= now:
        raise ValueError(f"Session expiration must lie in the future: {value!r}")
    # Microsecond rounding absorbs float noise from now + seconds - now
    return max(1, math.ceil(round(timestamp - now, 6)))
