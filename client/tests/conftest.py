from __future__ import annotations

import pytest

from fakes import FakeKanbanGateway, FakeTimeEntryGateway, make_card
from ponto_client.api_client import ApiError
from ponto_client.models import KanbanBoard, KanbanColumn
from ponto_client.status import BackendStatus


@pytest.fixture()
def board() -> KanbanBoard:
    columns = [
        KanbanColumn(column_id="10", board_id="1", title="Solicitadas", position=0, status=BackendStatus.TODO),
        KanbanColumn(column_id="11", board_id="1", title="Em análise", position=1, status=BackendStatus.DOING),
        KanbanColumn(column_id="12", board_id="1", title="Correções", position=2, status=BackendStatus.REVIEW),
        KanbanColumn(column_id="13", board_id="1", title="Aprovadas", position=3, status=BackendStatus.DONE),
    ]
    columns[0].cards.append(make_card("c1", "10", BackendStatus.TODO))
    columns[1].cards.append(make_card("c2", "11", BackendStatus.DOING))
    columns[2].cards.append(make_card("c3", "12", BackendStatus.REVIEW))
    columns[3].cards.append(make_card("c4", "13", BackendStatus.DONE))
    return KanbanBoard(board_id="1", name="Correções de ponto", columns=columns)


@pytest.fixture()
def kanban_gateway(board: KanbanBoard) -> FakeKanbanGateway:
    return FakeKanbanGateway([board])


@pytest.fixture()
def entry_gateway() -> FakeTimeEntryGateway:
    return FakeTimeEntryGateway()


@pytest.fixture()
def api_failure() -> ApiError:
    return ApiError("API error 500: Internal Server Error")
