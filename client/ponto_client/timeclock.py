"""Time-of-day parsing and formatting helpers."""

from __future__ import annotations

import re
from datetime import datetime
from typing import Optional

_TIME_PATTERN = re.compile(r"^\s*(\d{1,2}):(\d{2})(?::(\d{2}))?\s*$")

MINUTES_PER_DAY = 24 * 60


def parse_time_of_day(value: Optional[str]) -> Optional[int]:
    """Return the minute offset since midnight for ``HH:MM`` strings.

    Seconds are accepted and ignored. Empty, malformed or out-of-range values
    yield ``None`` instead of raising.
    """
    if not value:
        return None
    match = _TIME_PATTERN.match(str(value))
    if not match:
        return None
    hours = int(match.group(1))
    minutes = int(match.group(2))
    if hours > 23 or minutes > 59:
        return None
    return hours * 60 + minutes


def format_minutes(minutes: Optional[float]) -> str:
    """Format a duration in minutes as ``HH:MM`` (hours may exceed 23)."""
    if minutes is None or minutes != minutes or minutes < 0:
        return "00:00"
    total = int(round(minutes))
    hours, rest = divmod(total, 60)
    return f"{hours:02d}:{rest:02d}"


def format_clock(moment: datetime) -> str:
    return f"{moment.hour:02d}:{moment.minute:02d}"


def parse_duration(value: Optional[str]) -> int:
    """Parse a ``HH:MM`` duration such as a stored total; hours are unbounded."""
    if not value:
        return 0
    text = str(value).split("hours")[0].strip()
    parts = text.split(":")
    if len(parts) < 2:
        return 0
    try:
        hours = int(parts[0])
        minutes = int(parts[1])
    except ValueError:
        return 0
    if hours < 0 or minutes < 0:
        return 0
    return hours * 60 + minutes


def interval_minutes(start: Optional[str], end: Optional[str]) -> Optional[int]:
    """Minutes between two times of day, ``None`` unless ``end`` is later."""
    start_minutes = parse_time_of_day(start)
    end_minutes = parse_time_of_day(end)
    if start_minutes is None or end_minutes is None:
        return None
    if end_minutes <= start_minutes:
        return None
    return end_minutes - start_minutes


def minutes_to_hours(minutes: int) -> float:
    return round(minutes / 60, 2)


def hours_to_minutes(hours: float) -> int:
    return int(round(hours * 60))


__all__ = [
    "MINUTES_PER_DAY",
    "format_clock",
    "format_minutes",
    "hours_to_minutes",
    "interval_minutes",
    "minutes_to_hours",
    "parse_duration",
    "parse_time_of_day",
]
