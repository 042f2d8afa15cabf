from __future__ import annotations

import datetime as dt
import re
from typing import Any, Dict, List, Optional, Union

from typing_extensions import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_serializer, model_validator

CardStatusValue = Literal["todo", "doing", "review", "done"]
PriorityValue = Literal["low", "medium", "high"]

_TIME_PATTERN = re.compile(r"^(\d{1,2}):(\d{2})$")
MAX_CORRECTION_TIMES = 3


def _serialize_datetime(value: Optional[dt.datetime]) -> Optional[str]:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=dt.timezone.utc)
    else:
        value = value.astimezone(dt.timezone.utc)
    return value.isoformat()


def _normalize_clock(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    text = value.strip()
    if not text:
        return None
    match = _TIME_PATTERN.match(text)
    if not match or int(match.group(1)) > 23 or int(match.group(2)) > 59:
        raise ValueError(f"Invalid time of day: {value}")
    return f"{int(match.group(1)):02d}:{match.group(2)}"


# ---------------------------------------------------------------------------
# Time entries
# ---------------------------------------------------------------------------


class AllocationPayload(BaseModel):
    project_id: Optional[str] = None
    project_name: Optional[str] = None
    description: Optional[str] = None
    hours: float = Field(ge=0)


class AllocationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: int
    project_id: Optional[str]
    project_name: Optional[str]
    description: Optional[str]
    hours: float


class _PunchFields(BaseModel):
    entrada1: Optional[str] = None
    saida1: Optional[str] = None
    entrada2: Optional[str] = None
    saida2: Optional[str] = None
    entrada3: Optional[str] = None
    saida3: Optional[str] = None
    total_hours: Optional[str] = None
    notes: Optional[str] = None
    allocations: Optional[List[AllocationPayload]] = None

    @field_validator("entrada1", "saida1", "entrada2", "saida2", "entrada3", "saida3")
    @classmethod
    def _validate_clock(cls, value: Optional[str]) -> Optional[str]:
        return _normalize_clock(value)


class TimeEntryCreateRequest(_PunchFields):
    user_id: str = Field(min_length=1)
    date: dt.date


class TimeEntryUpdateRequest(_PunchFields):
    date: Optional[dt.date] = None


class TimeEntryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: int
    user_id: str
    date: dt.date
    entrada1: Optional[str]
    saida1: Optional[str]
    entrada2: Optional[str]
    saida2: Optional[str]
    entrada3: Optional[str]
    saida3: Optional[str]
    total_hours: str
    notes: Optional[str]
    allocations: List[AllocationResponse] = Field(default_factory=list)
    created_at: dt.datetime
    updated_at: dt.datetime

    @model_serializer(mode="plain", when_used="json")
    def _serialize(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "date": self.date.isoformat(),
            "entrada1": self.entrada1,
            "saida1": self.saida1,
            "entrada2": self.entrada2,
            "saida2": self.saida2,
            "entrada3": self.entrada3,
            "saida3": self.saida3,
            "total_hours": self.total_hours,
            "notes": self.notes,
            "allocations": [allocation.model_dump() for allocation in self.allocations],
            "created_at": _serialize_datetime(self.created_at),
            "updated_at": _serialize_datetime(self.updated_at),
        }


# ---------------------------------------------------------------------------
# Kanban
# ---------------------------------------------------------------------------


class CorrectionTime(BaseModel):
    entrada: Optional[str] = None
    saida: Optional[str] = None

    @field_validator("entrada", "saida")
    @classmethod
    def _validate_clock(cls, value: Optional[str]) -> Optional[str]:
        return _normalize_clock(value)


class CorrectionPayload(BaseModel):
    date: Optional[dt.date] = None
    justification: Optional[str] = None
    document_name: Optional[str] = None
    times: List[CorrectionTime] = Field(default_factory=list)

    @field_validator("date", mode="before")
    @classmethod
    def _date_prefix(cls, value: Any) -> Any:
        if isinstance(value, str) and len(value) > 10:
            return value[:10]
        return value or None

    @model_validator(mode="after")
    def _validate_times(self) -> "CorrectionPayload":
        filled = [time for time in self.times if time.entrada or time.saida]
        if len(filled) > MAX_CORRECTION_TIMES:
            raise ValueError(f"A correction holds at most {MAX_CORRECTION_TIMES} time pairs")
        return self


class ColumnCreateRequest(BaseModel):
    title: str
    limit: Optional[int] = Field(default=None, ge=1)
    status: Optional[CardStatusValue] = None


class BoardCreateRequest(BaseModel):
    name: str
    project_id: Optional[str] = None
    description: Optional[str] = None
    created_by: Optional[str] = None
    columns: Optional[List[ColumnCreateRequest]] = None


class CardCreateRequest(BaseModel):
    column_id: int
    title: str
    description: Optional[str] = None
    status: CardStatusValue = "todo"
    tags: Optional[Union[List[str], str]] = None
    due_date: Optional[dt.datetime] = None
    priority: Optional[PriorityValue] = None
    assignees: Optional[List[str]] = None
    position: Optional[int] = None
    correction: Optional[CorrectionPayload] = None
    project_id: Optional[str] = None
    created_by: Optional[str] = None


class CardUpdateRequest(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    status: Optional[CardStatusValue] = None
    tags: Optional[Union[List[str], str]] = None
    due_date: Optional[dt.datetime] = None
    priority: Optional[PriorityValue] = None
    assignees: Optional[List[str]] = None
    correction: Optional[CorrectionPayload] = None
    expected_version: Optional[int] = None


class CardMoveRequest(BaseModel):
    target_column_id: int
    target_position: Optional[int] = None
    expected_version: Optional[int] = None


class CardResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: int
    board_id: int
    column_id: int
    project_id: Optional[str]
    title: str
    description: Optional[str]
    position: int
    status: str
    tags: List[str] = Field(default_factory=list)
    due_date: Optional[dt.datetime]
    priority: str
    assignees: List[str] = Field(default_factory=list)
    correction: Optional[Dict[str, Any]]
    created_by: Optional[str]
    version: int
    created_at: dt.datetime
    updated_at: dt.datetime

    @model_serializer(mode="plain", when_used="json")
    def _serialize(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "board_id": self.board_id,
            "column_id": self.column_id,
            "project_id": self.project_id,
            "title": self.title,
            "description": self.description,
            "position": self.position,
            "status": self.status,
            "tags": list(self.tags or []),
            "due_date": _serialize_datetime(self.due_date),
            "priority": self.priority,
            "assignees": list(self.assignees or []),
            "correction": self.correction,
            "created_by": self.created_by,
            "version": self.version,
            "created_at": _serialize_datetime(self.created_at),
            "updated_at": _serialize_datetime(self.updated_at),
        }


class ColumnResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: int
    board_id: int
    title: str
    position: int
    limit: Optional[int]
    status: Optional[str]
    cards: List[CardResponse] = Field(default_factory=list)

    @model_serializer(mode="plain", when_used="json")
    def _serialize(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "board_id": self.board_id,
            "title": self.title,
            "position": self.position,
            "limit": self.limit,
            "status": self.status,
            "cards": [card._serialize() for card in self.cards],
        }


class BoardResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: int
    project_id: Optional[str]
    name: str
    description: Optional[str]
    is_archived: bool
    created_by: Optional[str]
    columns: List[ColumnResponse] = Field(default_factory=list)
    created_at: dt.datetime
    updated_at: dt.datetime

    @model_serializer(mode="plain", when_used="json")
    def _serialize(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "project_id": self.project_id,
            "name": self.name,
            "description": self.description,
            "is_archived": self.is_archived,
            "created_by": self.created_by,
            "columns": [column._serialize() for column in self.columns],
            "created_at": _serialize_datetime(self.created_at),
            "updated_at": _serialize_datetime(self.updated_at),
        }


class CardActivityResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: int
    card_id: int
    user_id: Optional[str]
    action: str
    payload: Dict[str, Any] = Field(default_factory=dict)
    created_at: dt.datetime

    @model_serializer(mode="plain", when_used="json")
    def _serialize(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "card_id": self.card_id,
            "user_id": self.user_id,
            "action": self.action,
            "payload": dict(self.payload or {}),
            "created_at": _serialize_datetime(self.created_at),
        }
