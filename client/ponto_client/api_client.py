"""HTTP client for the Ponto API."""

from __future__ import annotations

import datetime as dt
from typing import Any, Dict, List, Mapping, Optional, Sequence
from urllib.parse import urljoin

import requests

from .corrections import from_payload
from .models import (
    Allocation,
    CardActivity,
    KanbanBoard,
    KanbanCard,
    KanbanColumn,
    PUNCH_FIELDS,
    TimeEntry,
)
from .status import BackendStatus


class ApiError(RuntimeError):
    """Failure while talking to the API."""

    def __init__(self, message: str, *, response: Optional[requests.Response] = None) -> None:
        super().__init__(message)
        self.response = response

    @property
    def status_code(self) -> Optional[int]:
        return self.response.status_code if self.response is not None else None


class NotFoundError(ApiError):
    """The API does not know the requested resource."""


class ConflictError(ApiError):
    """The resource changed on the server since it was loaded."""


def _error_detail(response: requests.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return response.text
    if isinstance(data, dict) and "detail" in data:
        return str(data["detail"])
    return response.text


class ApiClient:
    """Wraps the HTTP calls of the time-entry and kanban API."""

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        timeout: int = 15,
        user_id: Optional[str] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/") + "/"
        self.token = token
        self.timeout = timeout
        self.user_id = user_id

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        if self.user_id:
            headers["X-User-Id"] = self.user_id
        return headers

    def _request(self, method: str, path: str, **kwargs):
        url = urljoin(self.base_url, path.lstrip("/"))
        kwargs.setdefault("timeout", self.timeout)
        headers = kwargs.setdefault("headers", {})
        headers.update(self._headers())
        try:
            response = requests.request(method, url, **kwargs)
        except requests.RequestException as exc:  # pragma: no cover - network errors
            raise ApiError(str(exc)) from exc

        if response.status_code >= 400:
            message = f"API error {response.status_code}: {_error_detail(response)}"
            if response.status_code == 404:
                raise NotFoundError(message, response=response)
            if response.status_code == 409:
                raise ConflictError(message, response=response)
            raise ApiError(message, response=response)

        if response.headers.get("Content-Type", "").startswith("application/json"):
            return response.json()
        return response.content

    # ------------------------------------------------------------------
    # Time entries
    # ------------------------------------------------------------------
    def list_time_entries(
        self,
        user_id: str,
        start_date: Optional[dt.date] = None,
        end_date: Optional[dt.date] = None,
    ) -> List[TimeEntry]:
        params: Dict[str, str] = {"user_id": user_id}
        if start_date:
            params["start_date"] = start_date.isoformat()
        if end_date:
            params["end_date"] = end_date.isoformat()
        data = self._request("GET", "/timesheet", params=params) or []
        return [self._parse_entry(item) for item in data]

    def create_time_entry(
        self,
        user_id: str,
        day: dt.date,
        punches: Optional[Mapping[str, str]] = None,
        allocations: Optional[Sequence[Allocation]] = None,
        total_hours: Optional[str] = None,
    ) -> TimeEntry:
        payload: Dict[str, Any] = {"user_id": user_id, "date": day.isoformat()}
        for name, value in (punches or {}).items():
            if name in PUNCH_FIELDS:
                payload[name] = value
        if total_hours:
            payload["total_hours"] = total_hours
        if allocations is not None:
            payload["allocations"] = [self._allocation_payload(item) for item in allocations]
        data = self._request("POST", "/timesheet", json=payload) or {}
        return self._parse_entry(data)

    def update_time_entry(self, entry_id: str, changes: Mapping[str, Any]) -> TimeEntry:
        payload = dict(changes)
        if "allocations" in payload:
            payload["allocations"] = [
                self._allocation_payload(item) if isinstance(item, Allocation) else dict(item)
                for item in payload["allocations"] or []
            ]
        data = self._request("PUT", f"/timesheet/{entry_id}", json=payload) or {}
        return self._parse_entry(data)

    @staticmethod
    def _allocation_payload(allocation: Allocation) -> Dict[str, Any]:
        return {
            "project_id": allocation.project_id,
            "project_name": allocation.project_name,
            "description": allocation.description,
            "hours": allocation.hours,
        }

    # ------------------------------------------------------------------
    # Kanban
    # ------------------------------------------------------------------
    def fetch_boards(self) -> List[KanbanBoard]:
        data = self._request("GET", "/kanban/boards") or []
        return [self._parse_board(item) for item in data]

    def create_card(self, payload: Mapping[str, Any]) -> KanbanCard:
        data = self._request("POST", "/kanban/cards", json=dict(payload)) or {}
        return self._parse_card(data)

    def move_card(
        self,
        card_id: str,
        target_column_id: str,
        *,
        target_position: Optional[int] = None,
        expected_version: Optional[int] = None,
    ) -> KanbanCard:
        payload: Dict[str, Any] = {"target_column_id": target_column_id}
        if target_position is not None:
            payload["target_position"] = target_position
        if expected_version is not None:
            payload["expected_version"] = expected_version
        data = self._request("POST", f"/kanban/cards/{card_id}/move", json=payload) or {}
        return self._parse_card(data)

    def update_card(self, card_id: str, changes: Dict[str, Any]) -> KanbanCard:
        data = self._request("PUT", f"/kanban/cards/{card_id}", json=changes) or {}
        return self._parse_card(data)

    def delete_card(self, card_id: str) -> None:
        self._request("DELETE", f"/kanban/cards/{card_id}")

    def list_card_activity(self, card_id: str) -> List[CardActivity]:
        data = self._request("GET", f"/kanban/cards/{card_id}/activity") or []
        return [
            CardActivity(
                activity_id=str(item.get("id")),
                card_id=str(item.get("card_id")),
                user_id=item.get("user_id"),
                action=item.get("action", ""),
                created_at=self._parse_datetime(item.get("created_at")),
                payload=dict(item.get("payload") or {}),
            )
            for item in data
        ]

    # ------------------------------------------------------------------
    # Parsing
    # ------------------------------------------------------------------
    def _parse_entry(self, item: Mapping[str, Any]) -> TimeEntry:
        punches = {name: item.get(name) or "" for name in PUNCH_FIELDS}
        return TimeEntry(
            day=dt.date.fromisoformat(str(item.get("date"))[:10]),
            user_id=str(item.get("user_id", "")),
            entry_id=str(item["id"]) if item.get("id") is not None else None,
            total_hours=item.get("total_hours") or "00:00",
            notes=item.get("notes"),
            allocations=[
                Allocation(
                    allocation_id=str(allocation.get("id")) if allocation.get("id") is not None else None,
                    project_id=str(allocation.get("project_id") or ""),
                    project_name=allocation.get("project_name"),
                    description=allocation.get("description"),
                    hours=float(allocation.get("hours", 0)),
                )
                for allocation in item.get("allocations") or []
            ],
            **punches,
        )

    def _parse_card(self, item: Mapping[str, Any]) -> KanbanCard:
        return KanbanCard(
            card_id=str(item.get("id")),
            board_id=str(item.get("board_id")),
            column_id=str(item.get("column_id")),
            title=item.get("title", ""),
            backend_status=BackendStatus(item.get("status", BackendStatus.TODO.value)),
            description=item.get("description"),
            position=int(item.get("position", 0)),
            project_id=item.get("project_id"),
            tags=list(item.get("tags") or []),
            due_date=self._parse_datetime(item.get("due_date")),
            priority=item.get("priority") or "medium",
            assignees=list(item.get("assignees") or []),
            correction=from_payload(item.get("correction")),
            created_by=item.get("created_by"),
            version=int(item.get("version", 0)),
            created_at=self._parse_datetime(item.get("created_at")),
            updated_at=self._parse_datetime(item.get("updated_at")),
        )

    def _parse_board(self, item: Mapping[str, Any]) -> KanbanBoard:
        columns = [
            KanbanColumn(
                column_id=str(column.get("id")),
                board_id=str(column.get("board_id")),
                title=column.get("title", ""),
                position=int(column.get("position", 0)),
                limit=column.get("limit"),
                status=BackendStatus(column["status"]) if column.get("status") else None,
                cards=[self._parse_card(card) for card in column.get("cards") or []],
            )
            for column in item.get("columns") or []
        ]
        return KanbanBoard(
            board_id=str(item.get("id")),
            name=item.get("name", ""),
            columns=columns,
            project_id=item.get("project_id"),
            description=item.get("description"),
            is_archived=bool(item.get("is_archived", False)),
        )

    @staticmethod
    def _parse_datetime(value: Optional[str]):
        if not value:
            return None
        try:
            return dt.datetime.fromisoformat(value)
        except ValueError:
            return None


__all__ = ["ApiClient", "ApiError", "ConflictError", "NotFoundError"]
