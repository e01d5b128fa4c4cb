"""Relative and absolute time formatting for dashboard labels.

All functions are pure: the current time is passed in (or taken from the
clock when omitted) and nothing is cached between calls.
"""

from datetime import UTC, datetime
from decimal import ROUND_HALF_UP, Decimal

from .models import parse_timestamp

MS_PER_SECOND = 1000
MS_PER_MINUTE = 60 * MS_PER_SECOND
MS_PER_HOUR = 60 * MS_PER_MINUTE
MS_PER_DAY = 24 * MS_PER_HOUR

# Differences below this are displayed as "now".
NOW_THRESHOLD_MS = 500

Timestamp = datetime | str | int | float


def round_half_away_from_zero(value: float) -> int:
    """Round to the nearest integer, ties away from zero (2.5 -> 3, -2.5 -> -3)."""
    return int(Decimal(value).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def to_datetime(timestamp: Timestamp) -> datetime:
    """Normalize a timestamp to an aware datetime.

    Accepts aware/naive datetimes (naive is UTC), RFC 3339 strings and epoch
    milliseconds.
    """
    if isinstance(timestamp, bool):
        raise TypeError("Timestamp cannot be a bool")
    if isinstance(timestamp, int | float):
        return datetime.fromtimestamp(timestamp / MS_PER_SECOND, tz=UTC)
    return parse_timestamp(timestamp)


def _difference_ms(start: Timestamp, end: Timestamp) -> float:
    return (to_datetime(end) - to_datetime(start)).total_seconds() * MS_PER_SECOND


def _with_unit(value: int, unit: str) -> str:
    text = str(value)
    return f"{text} {unit}" + ("" if text == "1" else "s")


def pretty_time_ago(timestamp: Timestamp, now: Timestamp | None = None) -> str:
    """Format how long ago a timestamp was, e.g. "5 minutes ago".

    Args:
        timestamp: The moment to describe.
        now: Reference time; defaults to the current time.

    Returns:
        "now" for differences under 500ms, otherwise the largest unit whose
        threshold is reached (3 days, 1 hour, 1 minute, else seconds).
    """
    if now is None:
        now = datetime.now(UTC)
    difference = _difference_ms(timestamp, now)
    if difference < NOW_THRESHOLD_MS:
        return "now"
    if difference >= 3 * MS_PER_DAY:
        return _with_unit(round_half_away_from_zero(difference / MS_PER_DAY), "day") + " ago"
    if difference >= MS_PER_HOUR:
        return _with_unit(round_half_away_from_zero(difference / MS_PER_HOUR), "hour") + " ago"
    if difference >= MS_PER_MINUTE:
        return _with_unit(round_half_away_from_zero(difference / MS_PER_MINUTE), "minute") + " ago"
    return _with_unit(round_half_away_from_zero(difference / MS_PER_SECOND), "second") + " ago"


def prettify_timestamp(timestamp: Timestamp) -> str:
    """Format a timestamp as ``YYYY-MM-DD HH:mm:ss`` in local time."""
    local = to_datetime(timestamp).astimezone()
    return (
        f"{local.year}-{local.month:02d}-{local.day:02d} "
        f"{local.hour:02d}:{local.minute:02d}:{local.second:02d}"
    )


def pretty_time_difference(start: Timestamp, end: Timestamp) -> str:
    """Format the gap between two timestamps, e.g. "1 hour 5 minutes".

    Only the two most significant non-zero components are shown; the order
    of ``start`` and ``end`` does not matter.
    """
    seconds = int(abs(_difference_ms(start, end)) // MS_PER_SECOND)
    minutes = seconds // 60
    hours = minutes // 60

    if hours > 0:
        text = _with_unit(hours, "hour")
        remaining_minutes = minutes % 60
        if remaining_minutes > 0:
            text += " " + _with_unit(remaining_minutes, "minute")
        return text
    if minutes > 0:
        text = _with_unit(minutes, "minute")
        remaining_seconds = seconds % 60
        if remaining_seconds > 0:
            text += " " + _with_unit(remaining_seconds, "second")
        return text
    return _with_unit(seconds, "second")
