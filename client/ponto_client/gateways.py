"""Persistence contracts consumed by the ledger and the workflow engine.

``ApiClient`` implements both protocols over HTTP; tests plug in in-memory
fakes. Implementations raise ``ApiError`` (or a subclass) on failure.
"""

from __future__ import annotations

import datetime as dt
from typing import Any, Dict, List, Mapping, Optional, Protocol, Sequence

from .models import Allocation, CardActivity, KanbanBoard, KanbanCard, TimeEntry


class TimeEntryGateway(Protocol):
    def list_time_entries(
        self,
        user_id: str,
        start_date: Optional[dt.date] = None,
        end_date: Optional[dt.date] = None,
    ) -> List[TimeEntry]:
        ...

    def create_time_entry(
        self,
        user_id: str,
        day: dt.date,
        punches: Optional[Mapping[str, str]] = None,
        allocations: Optional[Sequence[Allocation]] = None,
        total_hours: Optional[str] = None,
    ) -> TimeEntry:
        ...

    def update_time_entry(self, entry_id: str, changes: Mapping[str, Any]) -> TimeEntry:
        ...


class KanbanGateway(Protocol):
    def fetch_boards(self) -> List[KanbanBoard]:
        ...

    def create_card(self, payload: Mapping[str, Any]) -> KanbanCard:
        ...

    def move_card(
        self,
        card_id: str,
        target_column_id: str,
        *,
        target_position: Optional[int] = None,
        expected_version: Optional[int] = None,
    ) -> KanbanCard:
        ...

    def update_card(self, card_id: str, changes: Dict[str, Any]) -> KanbanCard:
        ...

    def delete_card(self, card_id: str) -> None:
        ...

    def list_card_activity(self, card_id: str) -> List[CardActivity]:
        ...


__all__ = ["KanbanGateway", "TimeEntryGateway"]
