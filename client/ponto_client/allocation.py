"""Validation and submission of project hour allocations."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional

from .errors import AllocationExceedsWorked, InvalidInterval, ProjectRequired, ZeroDuration
from .gateways import TimeEntryGateway
from .models import Allocation, TimeEntry
from .timeclock import hours_to_minutes, interval_minutes, minutes_to_hours

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class AllocationRequest:
    """Hours booked onto a project, entered as a start/end time of day."""

    project_id: str
    start_time: str
    end_time: str
    description: Optional[str] = None


@dataclass(slots=True)
class AllocationSummary:
    worked_minutes: int
    allocated_minutes: int

    @property
    def remaining_minutes(self) -> int:
        return max(self.worked_minutes - self.allocated_minutes, 0)

    @property
    def is_complete(self) -> bool:
        return self.worked_minutes > 0 and self.worked_minutes == self.allocated_minutes


def proposed_hours(request: AllocationRequest) -> float:
    if not (request.project_id or "").strip():
        raise ProjectRequired()
    minutes = interval_minutes(request.start_time, request.end_time)
    if minutes is None:
        raise InvalidInterval(request.start_time, request.end_time)
    hours = minutes_to_hours(minutes)
    if hours <= 0:
        raise ZeroDuration()
    return hours


def check_capacity(entry: TimeEntry, hours: float) -> None:
    """Reject ``hours`` when it would push the day past its punched total.

    Days without punches impose no cap; the backend has the final say there.
    """
    worked = entry.worked_minutes
    if worked <= 0:
        return
    allocated = entry.allocated_minutes
    requested = hours_to_minutes(hours)
    if allocated + requested > worked:
        raise AllocationExceedsWorked(requested, allocated, worked)


def validate_allocation(entry: TimeEntry, request: AllocationRequest) -> Allocation:
    hours = proposed_hours(request)
    check_capacity(entry, hours)
    return Allocation(
        project_id=request.project_id.strip(),
        hours=hours,
        description=request.description,
    )


def allocate(gateway: TimeEntryGateway, entry: TimeEntry, request: AllocationRequest) -> TimeEntry:
    """Validate ``request`` against ``entry`` and persist the full allocation list.

    Returns the entry as stored by the server, which assigns allocation ids.
    """
    try:
        allocation = validate_allocation(entry, request)
    except (AllocationExceedsWorked, ProjectRequired, InvalidInterval, ZeroDuration) as exc:
        logger.warning("Allocation rejected for %s: %s", entry.day.isoformat(), exc)
        raise
    allocations: List[Allocation] = [*entry.allocations, allocation]
    if entry.entry_id is None:
        stored = gateway.create_time_entry(entry.user_id, entry.day, allocations=allocations)
    else:
        stored = gateway.update_time_entry(entry.entry_id, {"allocations": allocations})
    logger.info(
        "Allocated %.2fh to project %s on %s",
        allocation.hours,
        allocation.project_id,
        entry.day.isoformat(),
    )
    return stored


def allocation_summary(entry: TimeEntry) -> AllocationSummary:
    return AllocationSummary(worked_minutes=entry.worked_minutes, allocated_minutes=entry.allocated_minutes)


__all__ = [
    "AllocationRequest",
    "AllocationSummary",
    "allocate",
    "allocation_summary",
    "check_capacity",
    "proposed_hours",
    "validate_allocation",
]
