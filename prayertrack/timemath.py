"""Minute-level arithmetic over 'HH:MM' 24-hour clock strings."""

import datetime
import re

MINUTES_PER_DAY = 24 * 60

_HHMM = re.compile(r"([0-9]{2}):([0-9]{2})")


def to_minutes(time_str: str) -> int:
    """
    Convert 'HH:MM' to minutes since midnight.

    Raises ValueError for anything that is not a zero-padded 24-hour time.
    """
    if not isinstance(time_str, str):
        raise ValueError(f"Expected 'HH:MM' string, got {time_str!r}")
    match = _HHMM.fullmatch(time_str)
    if not match:
        raise ValueError(f"Malformed time string: {time_str!r}")
    hour, minute = int(match.group(1)), int(match.group(2))
    if hour > 23 or minute > 59:
        raise ValueError(f"Time out of range: {time_str!r}")
    return hour * 60 + minute


def from_minutes(minutes: int) -> str:
    """Format minutes since midnight as 'HH:MM', wrapping around 24h."""
    minutes %= MINUTES_PER_DAY
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def is_time_in_range(current: str, start: str, end: str) -> bool:
    """True if start <= current <= end (both ends inclusive)."""
    return to_minutes(start) <= to_minutes(current) <= to_minutes(end)


def add_minutes(time_str: str, delta: int) -> str:
    return from_minutes(to_minutes(time_str) + delta)


def subtract_minutes(time_str: str, delta: int) -> str:
    return add_minutes(time_str, -delta)


def time_difference(from_time: str, to_time: str) -> str:
    """
    Format the time from `from_time` until `to_time` as '2h 5m' or '45m'.

    A `to_time` earlier than `from_time` is taken to be tomorrow.
    """
    diff = to_minutes(to_time) - to_minutes(from_time)
    if diff < 0:
        diff += MINUTES_PER_DAY
    hours, minutes = divmod(diff, 60)
    if hours > 0:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"


def format_12h(time_str: str) -> str:
    """'17:05' -> '5:05 PM'"""
    total = to_minutes(time_str)
    hour, minute = divmod(total, 60)
    ampm = "PM" if hour >= 12 else "AM"
    return f"{hour % 12 or 12}:{minute:02d} {ampm}"


def hhmm(dt: datetime.datetime) -> str:
    """Current wall-clock reading of a datetime as 'HH:MM'."""
    return f"{dt.hour:02d}:{dt.minute:02d}"
