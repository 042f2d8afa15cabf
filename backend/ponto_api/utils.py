from __future__ import annotations

from typing import Optional


def clock_to_minutes(value: Optional[str]) -> Optional[int]:
    """Return the minute offset of an ``HH:MM`` string, or None when unusable."""
    if not value:
        return None
    parts = value.strip().split(":")
    if len(parts) < 2:
        return None
    try:
        hours, minutes = int(parts[0]), int(parts[1])
    except ValueError:
        return None
    return hours * 60 + minutes


def pair_minutes(start: Optional[str], end: Optional[str]) -> int:
    start_minutes = clock_to_minutes(start)
    end_minutes = clock_to_minutes(end)
    if start_minutes is None or end_minutes is None:
        return 0
    return max(end_minutes - start_minutes, 0)


def format_minutes(total: int) -> str:
    total = max(int(total), 0)
    return f"{total // 60:02d}:{total % 60:02d}"
