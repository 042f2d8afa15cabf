from __future__ import annotations

import datetime as dt

import pytest
import requests

from ponto_client.api_client import ApiClient, ApiError, ConflictError, NotFoundError
from ponto_client.models import Allocation
from ponto_client.status import BackendStatus, CardStatus


class StubResponse:
    def __init__(self, status_code=200, payload=None, text=""):
        self.status_code = status_code
        self._payload = payload
        self.text = text
        self.content = text.encode()
        self.headers = {"Content-Type": "application/json"} if payload is not None else {}

    def json(self):
        if self._payload is None:
            raise ValueError("no json")
        return self._payload


@pytest.fixture()
def recorder(monkeypatch):
    calls = []
    responses = []

    def fake_request(method, url, **kwargs):
        calls.append((method, url, kwargs))
        return responses.pop(0)

    monkeypatch.setattr(requests, "request", fake_request)
    return calls, responses


CARD = {
    "id": 7,
    "board_id": 1,
    "column_id": 3,
    "title": "Correção de ponto 04/03/2024",
    "status": "review",
    "position": 0,
    "tags": ["ponto"],
    "priority": "high",
    "assignees": [],
    "correction": {
        "date": "2024-03-04",
        "justification": "Esqueci",
        "document_name": None,
        "times": [{"entrada": "08:00", "saida": "12:00"}],
    },
    "created_by": "u1",
    "version": 2,
    "created_at": "2024-03-04T10:00:00",
    "updated_at": None,
}


def test_token_and_query_parameters_are_sent(recorder):
    calls, responses = recorder
    responses.append(StubResponse(payload=[]))
    client = ApiClient("http://api.local/", token="secret", timeout=3)
    assert client.list_time_entries("u1", dt.date(2024, 3, 1), dt.date(2024, 3, 31)) == []
    method, url, kwargs = calls[0]
    assert (method, url) == ("GET", "http://api.local/timesheet")
    assert kwargs["params"] == {"user_id": "u1", "start_date": "2024-03-01", "end_date": "2024-03-31"}
    assert kwargs["headers"]["Authorization"] == "Bearer secret"
    assert kwargs["timeout"] == 3


def test_time_entry_is_parsed(recorder):
    _, responses = recorder
    responses.append(
        StubResponse(
            payload=[
                {
                    "id": 4,
                    "user_id": "u1",
                    "date": "2024-03-04",
                    "entrada1": "08:00",
                    "saida1": "12:00",
                    "entrada2": None,
                    "total_hours": "04:00",
                    "allocations": [{"id": 9, "project_id": 2, "hours": 1.5, "description": "Suporte"}],
                }
            ]
        )
    )
    (entry,) = ApiClient("http://api.local").list_time_entries("u1")
    assert entry.entry_id == "4"
    assert entry.day == dt.date(2024, 3, 4)
    assert entry.saida1 == "12:00" and entry.entrada2 == ""
    assert entry.worked_minutes == 240
    assert entry.allocations == [
        Allocation(project_id="2", hours=1.5, allocation_id="9", description="Suporte")
    ]


def test_update_serialises_allocations(recorder):
    calls, responses = recorder
    responses.append(StubResponse(payload={"id": 4, "user_id": "u1", "date": "2024-03-04"}))
    ApiClient("http://api.local").update_time_entry(
        "4", {"allocations": [Allocation(project_id="p1", hours=2.0, allocation_id="9")]}
    )
    method, url, kwargs = calls[0]
    assert (method, url) == ("PUT", "http://api.local/timesheet/4")
    assert kwargs["json"] == {
        "allocations": [{"project_id": "p1", "project_name": None, "description": None, "hours": 2.0}]
    }


def test_board_columns_and_cards_are_parsed(recorder):
    _, responses = recorder
    responses.append(
        StubResponse(
            payload=[
                {
                    "id": 1,
                    "name": "Correções",
                    "is_archived": False,
                    "columns": [
                        {"id": 3, "board_id": 1, "title": "Correções", "position": 2, "status": "review", "cards": [CARD]},
                        {"id": 4, "board_id": 1, "title": "Livre", "position": 3, "status": None, "cards": []},
                    ],
                }
            ]
        )
    )
    (board,) = ApiClient("http://api.local").fetch_boards()
    review, free = board.columns
    assert review.status is BackendStatus.REVIEW
    assert free.status is None
    card = review.cards[0]
    assert card.card_id == "7" and card.column_id == "3"
    assert card.status is CardStatus.NEEDS_CORRECTION
    assert card.version == 2
    assert card.correction.day == dt.date(2024, 3, 4)
    assert card.created_at == dt.datetime(2024, 3, 4, 10, 0)


def test_move_sends_version(recorder):
    calls, responses = recorder
    responses.append(StubResponse(payload=CARD))
    ApiClient("http://api.local").move_card("7", "3", expected_version=2)
    method, url, kwargs = calls[0]
    assert (method, url) == ("POST", "http://api.local/kanban/cards/7/move")
    assert kwargs["json"] == {"target_column_id": "3", "expected_version": 2}


@pytest.mark.parametrize(
    ("status_code", "error_type"),
    [(404, NotFoundError), (409, ConflictError), (500, ApiError)],
)
def test_http_errors_are_mapped(recorder, status_code, error_type):
    _, responses = recorder
    responses.append(StubResponse(status_code=status_code, payload={"detail": "boom"}))
    with pytest.raises(error_type) as excinfo:
        ApiClient("http://api.local").delete_card("7")
    assert excinfo.value.status_code == status_code
    assert "boom" in str(excinfo.value)


def test_non_json_error_body(recorder):
    _, responses = recorder
    responses.append(StubResponse(status_code=502, text="Bad Gateway"))
    with pytest.raises(ApiError, match="Bad Gateway"):
        ApiClient("http://api.local").fetch_boards()


def test_network_failure_becomes_api_error(monkeypatch):
    def broken(method, url, **kwargs):
        raise requests.ConnectionError("refused")

    monkeypatch.setattr(requests, "request", broken)
    with pytest.raises(ApiError) as excinfo:
        ApiClient("http://api.local").fetch_boards()
    assert excinfo.value.status_code is None
