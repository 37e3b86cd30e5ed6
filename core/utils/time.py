"""
Time Utilities

This module provides utilities for handling timestamps from the exchange.

Gate.io returns timestamps in more than one format:
- REST order/trade endpoints: integer seconds since epoch (e.g., 1704110400)
- WebSocket order records: fractional seconds since epoch (e.g., 1704110400.123456)
- We need: timezone-aware Python datetime objects in UTC

The utilities in this module normalize all timestamp formats into
consistent UTC datetime objects for use in our Pydantic schemas.
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal, InvalidOperation
from typing import Tuple, Union

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_NANOS_PER_SECOND = 1_000_000_000


def split_float_timestamp(value: Union[int, float, str]) -> Tuple[int, int]:
    """
    Split a fractional epoch-seconds value into whole seconds and nanoseconds.

    The value goes through its decimal string form so that binary float
    rounding does not leak into the sub-second part.

    Args:
        value: Seconds since epoch, possibly fractional

    Returns:
        (seconds, nanoseconds) with 0 <= nanoseconds < 1e9

    Raises:
        ValueError: If the value is not a finite, non-negative number

    Examples:
        >>> split_float_timestamp(1704110400.25)
        (1704110400, 250000000)
        >>> split_float_timestamp("1704110400")
        (1704110400, 0)
    """
    if isinstance(value, bool):
        raise ValueError(f"Invalid timestamp: {value!r}")
    try:
        number = Decimal(str(value))
    except InvalidOperation:
        raise ValueError(f"Invalid timestamp: {value!r}")

    if not number.is_finite() or number < 0:
        raise ValueError(f"Invalid timestamp: {value!r}")

    seconds = int(number)
    nanos = int((number - seconds) * _NANOS_PER_SECOND)
    return seconds, nanos


def from_unix(seconds: int, nanoseconds: int = 0) -> datetime:
    """
    Build a UTC datetime from whole seconds plus nanoseconds.

    Sub-microsecond precision is truncated (datetime resolution).

    Example:
        >>> from_unix(1704110400, 250000000)
        datetime.datetime(2024, 1, 1, 12, 0, 0, 250000, tzinfo=datetime.timezone.utc)
    """
    if seconds < 0 or not (0 <= nanoseconds < _NANOS_PER_SECOND):
        raise ValueError(f"Invalid timestamp: {seconds}s {nanoseconds}ns")
    return _EPOCH + timedelta(seconds=seconds, microseconds=nanoseconds // 1000)


def current_utc_datetime() -> datetime:
    """Get current UTC datetime (timezone-aware)."""
    return datetime.now(timezone.utc)
