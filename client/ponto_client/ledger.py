"""Punch clock: fills a day's six punch slots in order and keeps the
session's entry map in sync with the time-entry API."""

from __future__ import annotations

import calendar
import datetime as dt
import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from .allocation import AllocationRequest, allocate
from .errors import AllSlotsFilled, CooldownActive
from .gateways import TimeEntryGateway
from .models import PUNCH_FIELDS, TimeEntry
from .timeclock import format_clock, format_minutes

logger = logging.getLogger(__name__)

PUNCH_COOLDOWN = dt.timedelta(minutes=5)


@dataclass(slots=True)
class PunchResult:
    field: str
    value: str
    entry: TimeEntry


def next_punch_field(entry: Optional[TimeEntry]) -> str:
    """Return the lowest-indexed empty punch slot of ``entry``."""
    if entry is None:
        return PUNCH_FIELDS[0]
    for name in PUNCH_FIELDS:
        if not getattr(entry, name):
            return name
    raise AllSlotsFilled(entry.day)


def compute_total_minutes(entry: TimeEntry) -> int:
    """Sum of complete, positive pairs; malformed pairs count as zero."""
    return entry.punched_minutes


def month_bounds(year: int, month: int) -> tuple[dt.date, dt.date]:
    last_day = calendar.monthrange(year, month)[1]
    return dt.date(year, month, 1), dt.date(year, month, last_day)


class PunchLedger:
    """Per-session punch state for one employee.

    The entry map is replaced wholesale on every load, and single entries are
    only ever swapped for the server's response, so readers always see a
    consistent snapshot.
    """

    def __init__(
        self,
        gateway: TimeEntryGateway,
        user_id: str,
        *,
        cooldown: dt.timedelta = PUNCH_COOLDOWN,
        clock: Callable[[], dt.datetime] = dt.datetime.now,
    ) -> None:
        self.gateway = gateway
        self.user_id = user_id
        self.cooldown = cooldown
        self._clock = clock
        self._entries: Dict[dt.date, TimeEntry] = {}
        self.last_punch_at: Optional[dt.datetime] = None

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------
    @property
    def entries(self) -> Dict[dt.date, TimeEntry]:
        return dict(self._entries)

    def load_range(self, start: dt.date, end: dt.date) -> Dict[dt.date, TimeEntry]:
        fetched = self.gateway.list_time_entries(self.user_id, start, end)
        self._entries = {entry.day: entry for entry in fetched}
        return self.entries

    def load_month(self, year: int, month: int) -> Dict[dt.date, TimeEntry]:
        start, end = month_bounds(year, month)
        return self.load_range(start, end)

    def entry_for(self, day: dt.date) -> TimeEntry:
        existing = self._entries.get(day)
        if existing is not None:
            return existing
        return TimeEntry(day=day, user_id=self.user_id)

    def fetch_day(self, day: dt.date) -> Optional[TimeEntry]:
        """Return the stored entry for ``day``, asking the API when the map has none.

        The map only covers the last loaded range, so a day outside it may
        still have a record on the server.
        """
        cached = self._entries.get(day)
        if cached is not None:
            return cached
        fetched = [entry for entry in self.gateway.list_time_entries(self.user_id, day, day) if entry.day == day]
        if not fetched:
            return None
        self._entries = {**self._entries, day: fetched[0]}
        return fetched[0]

    def days_of_month(self, year: int, month: int) -> List[TimeEntry]:
        start, end = month_bounds(year, month)
        return [self.entry_for(start + dt.timedelta(days=offset)) for offset in range((end - start).days + 1)]

    # ------------------------------------------------------------------
    # Punching
    # ------------------------------------------------------------------
    def cooldown_remaining(self, now: dt.datetime) -> dt.timedelta:
        if self.last_punch_at is None:
            return dt.timedelta(0)
        elapsed = now - self.last_punch_at
        if elapsed >= self.cooldown:
            return dt.timedelta(0)
        return self.cooldown - elapsed

    def register_punch(
        self,
        now: Optional[dt.datetime] = None,
        existing: Optional[TimeEntry] = None,
    ) -> PunchResult:
        now = now or self._clock()
        day = now.date()

        remaining = self.cooldown_remaining(now)
        if remaining > dt.timedelta(0):
            logger.warning("Punch rejected for %s: cooldown active", self.user_id)
            raise CooldownActive(remaining, self.cooldown)
        if existing is None:
            existing = self.fetch_day(day)
        field_name = next_punch_field(existing)

        value = format_clock(now)
        base = existing or TimeEntry(day=day, user_id=self.user_id)
        updated = base.with_punch(field_name, value)
        total_hours = format_minutes(compute_total_minutes(updated))

        if existing is None or existing.entry_id is None:
            stored = self.gateway.create_time_entry(
                self.user_id,
                day,
                punches={name: val for name, val in updated.punches().items() if val},
                total_hours=total_hours,
            )
        else:
            stored = self.gateway.update_time_entry(
                existing.entry_id,
                {field_name: value, "total_hours": total_hours},
            )

        self._entries = {**self._entries, stored.day: stored}
        self.last_punch_at = now
        logger.info("Registered %s=%s for %s on %s", field_name, value, self.user_id, day.isoformat())
        return PunchResult(field=field_name, value=value, entry=stored)

    # ------------------------------------------------------------------
    # Allocations
    # ------------------------------------------------------------------
    def allocate(self, day: dt.date, request: AllocationRequest) -> TimeEntry:
        entry = self.fetch_day(day) or TimeEntry(day=day, user_id=self.user_id)
        stored = allocate(self.gateway, entry, request)
        self._entries = {**self._entries, stored.day: stored}
        return stored


__all__ = [
    "PUNCH_COOLDOWN",
    "PunchLedger",
    "PunchResult",
    "compute_total_minutes",
    "month_bounds",
    "next_punch_field",
]
