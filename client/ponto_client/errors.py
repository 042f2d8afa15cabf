"""Domain errors raised by the attendance core before any API call."""

from __future__ import annotations

import datetime as dt
from typing import Iterable, Optional


class PontoError(RuntimeError):
    """Base class for all domain errors."""


class ValidationError(PontoError):
    """Input is malformed or incomplete."""


class BusinessRuleError(PontoError):
    """Input is well-formed but violates an invariant."""


def _describe_wait(length: dt.timedelta) -> str:
    seconds = max(int(length.total_seconds()), 0)
    if seconds % 60:
        return f"{seconds} seconds"
    minutes = seconds // 60
    return f"{minutes} minute" if minutes == 1 else f"{minutes} minutes"


class AllSlotsFilled(ValidationError):
    def __init__(self, day: Optional[dt.date] = None) -> None:
        suffix = f" for {day.isoformat()}" if day else ""
        super().__init__(f"All punches{suffix} have already been registered")
        self.day = day


class CooldownActive(ValidationError):
    def __init__(self, remaining: dt.timedelta, cooldown: dt.timedelta = dt.timedelta(minutes=5)) -> None:
        seconds = max(int(remaining.total_seconds()), 0)
        super().__init__(f"Wait {_describe_wait(cooldown)} between punches ({seconds}s remaining)")
        self.remaining = remaining
        self.cooldown = cooldown


class ProjectRequired(ValidationError):
    def __init__(self) -> None:
        super().__init__("A project is required for an allocation")


class InvalidInterval(ValidationError):
    def __init__(self, start: Optional[str], end: Optional[str]) -> None:
        super().__init__(f"Invalid interval {start or '?'} - {end or '?'}: end must be after start")
        self.start = start
        self.end = end


class ZeroDuration(ValidationError):
    def __init__(self) -> None:
        super().__init__("The allocation must last longer than zero hours")


class IncompleteCorrection(ValidationError):
    def __init__(self, problems: Iterable[str]) -> None:
        self.problems = list(problems)
        super().__init__("Correction request is incomplete: " + "; ".join(self.problems))


class AllocationExceedsWorked(BusinessRuleError):
    def __init__(self, requested_minutes: int, allocated_minutes: int, worked_minutes: int) -> None:
        super().__init__(
            "Allocated time would exceed the worked time "
            f"({allocated_minutes + requested_minutes} of {worked_minutes} minutes)"
        )
        self.requested_minutes = requested_minutes
        self.allocated_minutes = allocated_minutes
        self.worked_minutes = worked_minutes


class IllegalTransition(BusinessRuleError):
    def __init__(self, card_id: str, current: str, action: str) -> None:
        super().__init__(f"Cannot {action} card {card_id} while it is {current}")
        self.card_id = card_id
        self.current = current
        self.action = action


class CardNotFound(BusinessRuleError):
    def __init__(self, card_id: str) -> None:
        super().__init__(f"Card {card_id} is not on the loaded board")
        self.card_id = card_id


class ColumnNotMapped(BusinessRuleError):
    def __init__(self, status: str) -> None:
        super().__init__(f"No column on the board holds status '{status}'")
        self.status = status


class OperationInProgress(BusinessRuleError):
    def __init__(self, card_id: str) -> None:
        super().__init__(f"Another operation on card {card_id} is still running")
        self.card_id = card_id


__all__ = [
    "AllSlotsFilled",
    "AllocationExceedsWorked",
    "BusinessRuleError",
    "CardNotFound",
    "ColumnNotMapped",
    "CooldownActive",
    "IllegalTransition",
    "IncompleteCorrection",
    "InvalidInterval",
    "OperationInProgress",
    "PontoError",
    "ProjectRequired",
    "ValidationError",
    "ZeroDuration",
]
