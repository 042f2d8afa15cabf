"""Data models for the attendance client."""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Iterator, List, Optional

from .status import BackendStatus, CardStatus, card_status
from .timeclock import hours_to_minutes, interval_minutes, parse_duration

PUNCH_FIELDS = ("entrada1", "saida1", "entrada2", "saida2", "entrada3", "saida3")
PUNCH_PAIRS = (("entrada1", "saida1"), ("entrada2", "saida2"), ("entrada3", "saida3"))


@dataclass(slots=True)
class TimePair:
    """One clock-in/clock-out pair."""

    entrada: str = ""
    saida: str = ""

    @property
    def is_blank(self) -> bool:
        return not self.entrada and not self.saida

    @property
    def minutes(self) -> int:
        return interval_minutes(self.entrada, self.saida) or 0


@dataclass(slots=True)
class Allocation:
    """Share of a day's worked time booked onto a project."""

    project_id: str
    hours: float
    allocation_id: Optional[str] = None
    project_name: Optional[str] = None
    description: Optional[str] = None

    @property
    def minutes(self) -> int:
        return hours_to_minutes(self.hours)


@dataclass(slots=True)
class TimeEntry:
    """Punch record of one employee for one calendar day."""

    day: dt.date
    user_id: str
    entry_id: Optional[str] = None
    entrada1: str = ""
    saida1: str = ""
    entrada2: str = ""
    saida2: str = ""
    entrada3: str = ""
    saida3: str = ""
    total_hours: str = "00:00"
    notes: Optional[str] = None
    allocations: List[Allocation] = field(default_factory=list)

    def punches(self) -> Dict[str, str]:
        return {name: getattr(self, name) for name in PUNCH_FIELDS}

    def pairs(self) -> List[TimePair]:
        return [TimePair(getattr(self, start), getattr(self, end)) for start, end in PUNCH_PAIRS]

    @property
    def punched_minutes(self) -> int:
        return sum(pair.minutes for pair in self.pairs())

    @property
    def worked_minutes(self) -> int:
        """Total punched time; falls back to the stored total for legacy rows."""
        computed = self.punched_minutes
        if computed > 0:
            return computed
        return parse_duration(self.total_hours)

    @property
    def allocated_minutes(self) -> int:
        return sum(allocation.minutes for allocation in self.allocations)

    def with_punch(self, name: str, value: str) -> "TimeEntry":
        if name not in PUNCH_FIELDS:
            raise KeyError(name)
        return replace(self, **{name: value})


@dataclass(slots=True)
class TimeCorrection:
    """Body of a correction request disputing one day's record."""

    day: Optional[dt.date]
    times: List[TimePair] = field(default_factory=list)
    justification: str = ""
    document_name: Optional[str] = None


@dataclass(slots=True)
class ChatMessage:
    """Message in a card's local conversation."""

    message_id: str
    author_id: str
    author_name: str
    message: str
    timestamp: dt.datetime
    is_leader: bool = False


@dataclass(slots=True)
class KanbanCard:
    """Correction request as stored on the kanban board."""

    card_id: str
    board_id: str
    column_id: str
    title: str
    backend_status: BackendStatus
    description: Optional[str] = None
    position: int = 0
    project_id: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    due_date: Optional[dt.datetime] = None
    priority: str = "medium"
    assignees: List[str] = field(default_factory=list)
    correction: Optional[TimeCorrection] = None
    created_by: Optional[str] = None
    version: int = 0
    created_at: Optional[dt.datetime] = None
    updated_at: Optional[dt.datetime] = None

    @property
    def status(self) -> CardStatus:
        return card_status(self.backend_status)


@dataclass(slots=True)
class KanbanColumn:
    column_id: str
    board_id: str
    title: str
    position: int = 0
    cards: List[KanbanCard] = field(default_factory=list)
    limit: Optional[int] = None
    status: Optional[BackendStatus] = None


@dataclass(slots=True)
class KanbanBoard:
    board_id: str
    name: str
    columns: List[KanbanColumn] = field(default_factory=list)
    project_id: Optional[str] = None
    description: Optional[str] = None
    is_archived: bool = False

    def cards(self) -> Iterator[KanbanCard]:
        for column in self.columns:
            yield from column.cards

    def find_card(self, card_id: str) -> Optional[KanbanCard]:
        for card in self.cards():
            if card.card_id == card_id:
                return card
        return None


@dataclass(slots=True)
class CardActivity:
    activity_id: str
    card_id: str
    user_id: Optional[str]
    action: str
    created_at: Optional[dt.datetime] = None
    payload: Dict[str, Any] = field(default_factory=dict)


__all__ = [
    "Allocation",
    "CardActivity",
    "ChatMessage",
    "KanbanBoard",
    "KanbanCard",
    "KanbanColumn",
    "PUNCH_FIELDS",
    "PUNCH_PAIRS",
    "TimeCorrection",
    "TimeEntry",
    "TimePair",
]
