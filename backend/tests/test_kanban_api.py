from __future__ import annotations

from fastapi.testclient import TestClient

CORRECTION = {
    "date": "2024-03-04",
    "justification": "  Esqueci de registrar a saída ",
    "document_name": "",
    "times": [{"entrada": "08:00", "saida": "12:00"}, {"entrada": "", "saida": ""}],
}


def _columns(board: dict) -> dict:
    return {column["status"]: column for column in board["columns"]}


def _create_card(client: TestClient, column_id: int, title: str = "Correção de ponto 04/03/2024", **fields) -> dict:
    payload = {"column_id": column_id, "title": title, "correction": CORRECTION, "created_by": "u1", **fields}
    response = client.post("/kanban/cards", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


def test_board_gets_four_status_columns(board: dict):
    assert [column["status"] for column in board["columns"]] == ["todo", "doing", "review", "done"]
    assert [column["position"] for column in board["columns"]] == [0, 1, 2, 3]
    assert board["is_archived"] is False


def test_default_board_created_on_first_listing(client: TestClient):
    response = client.get("/kanban/boards")
    assert response.status_code == 200
    boards = response.json()
    assert len(boards) == 1
    assert boards[0]["name"] == "Correções de ponto"
    assert len(boards[0]["columns"]) == 4


def test_custom_columns_and_extra_column(client: TestClient):
    response = client.post(
        "/kanban/boards",
        json={"name": "Livre", "columns": [{"title": "Entrada"}, {"title": "Revisão", "limit": 5}]},
    )
    board = response.json()
    assert [column["status"] for column in board["columns"]] == [None, None]
    assert board["columns"][1]["limit"] == 5

    extra = client.post(f"/kanban/boards/{board['id']}/columns", json={"title": "Fim", "status": "done"})
    assert extra.status_code == 201
    assert extra.json()["position"] == 2
    assert extra.json()["status"] == "done"

    missing = client.post("/kanban/boards/9999/columns", json={"title": "X"})
    assert missing.status_code == 404


def test_card_creation_normalizes_correction(client: TestClient, board: dict):
    todo = _columns(board)["todo"]
    card = _create_card(client, todo["id"], tags="ponto, correção, ponto")
    assert card["status"] == "todo"
    assert card["position"] == 0
    assert card["version"] == 1
    assert card["priority"] == "medium"
    assert card["tags"] == ["ponto", "correção"]
    assert card["correction"] == {
        "date": "2024-03-04",
        "justification": "Esqueci de registrar a saída",
        "document_name": None,
        "times": [{"entrada": "08:00", "saida": "12:00"}],
    }
    second = _create_card(client, todo["id"], title="Outra")
    assert second["position"] == 1


def test_card_requires_existing_column(client: TestClient):
    response = client.post("/kanban/cards", json={"column_id": 9999, "title": "X"})
    assert response.status_code == 404


def test_correction_with_four_pairs_is_rejected(client: TestClient, board: dict):
    todo = _columns(board)["todo"]
    times = [{"entrada": f"0{hour}:00", "saida": f"0{hour}:30"} for hour in range(1, 5)]
    response = client.post(
        "/kanban/cards",
        json={"column_id": todo["id"], "title": "X", "correction": {"date": "2024-03-04", "times": times}},
    )
    assert response.status_code == 422


def test_move_adopts_column_status_and_bumps_version(client: TestClient, board: dict):
    columns = _columns(board)
    card = _create_card(client, columns["todo"]["id"])
    response = client.post(
        f"/kanban/cards/{card['id']}/move",
        json={"target_column_id": str(columns["doing"]["id"]), "expected_version": 1},
        headers={"X-User-Id": "leader"},
    )
    assert response.status_code == 200
    moved = response.json()
    assert moved["status"] == "doing"
    assert moved["column_id"] == columns["doing"]["id"]
    assert moved["version"] == 2

    activity = client.get(f"/kanban/cards/{card['id']}/activity").json()
    assert activity[0]["action"] == "card_moved"
    assert activity[0]["user_id"] == "leader"
    assert activity[0]["payload"]["to_status"] == "doing"
    assert activity[-1]["action"] == "card_created"


def test_stale_version_is_a_conflict(client: TestClient, board: dict):
    columns = _columns(board)
    card = _create_card(client, columns["todo"]["id"])
    client.post(f"/kanban/cards/{card['id']}/move", json={"target_column_id": columns["doing"]["id"]})
    response = client.post(
        f"/kanban/cards/{card['id']}/move",
        json={"target_column_id": columns["done"]["id"], "expected_version": 1},
    )
    assert response.status_code == 409
    listed = client.get("/kanban/boards").json()
    doing = next(column for column in listed[0]["columns"] if column["status"] == "doing")
    assert [item["id"] for item in doing["cards"]] == [card["id"]]


def test_free_form_review_column_rule(client: TestClient):
    board = client.post(
        "/kanban/boards",
        json={"name": "Livre", "columns": [{"title": "Entrada"}, {"title": "Em revisão"}, {"title": "Outros"}]},
    ).json()
    entrada, revisao, outros = board["columns"]
    todo_card = _create_card(client, entrada["id"])
    moved = client.post(f"/kanban/cards/{todo_card['id']}/move", json={"target_column_id": revisao["id"]}).json()
    assert moved["status"] == "review"

    doing_card = _create_card(client, entrada["id"], status="doing")
    kept = client.post(f"/kanban/cards/{doing_card['id']}/move", json={"target_column_id": outros["id"]}).json()
    assert kept["status"] == "doing"


def test_positions_are_repacked(client: TestClient, board: dict):
    columns = _columns(board)
    first = _create_card(client, columns["todo"]["id"], title="A")
    second = _create_card(client, columns["todo"]["id"], title="B")
    third = _create_card(client, columns["todo"]["id"], title="C")
    resident = _create_card(client, columns["doing"]["id"], title="D", status="doing")

    client.post(
        f"/kanban/cards/{first['id']}/move",
        json={"target_column_id": columns["doing"]["id"], "target_position": 0},
    )
    listed = client.get("/kanban/boards").json()[0]
    by_status = {column["status"]: column for column in listed["columns"]}
    assert [(card["id"], card["position"]) for card in by_status["todo"]["cards"]] == [
        (second["id"], 0),
        (third["id"], 1),
    ]
    assert [(card["id"], card["position"]) for card in by_status["doing"]["cards"]] == [
        (first["id"], 0),
        (resident["id"], 1),
    ]


def test_move_within_column(client: TestClient, board: dict):
    todo = _columns(board)["todo"]
    cards = [_create_card(client, todo["id"], title=title) for title in "ABC"]
    client.post(
        f"/kanban/cards/{cards[2]['id']}/move",
        json={"target_column_id": todo["id"], "target_position": 0},
    )
    listed = client.get("/kanban/boards").json()[0]
    todo_cards = listed["columns"][0]["cards"]
    assert [card["title"] for card in todo_cards] == ["C", "A", "B"]
    assert [card["position"] for card in todo_cards] == [0, 1, 2]


def test_move_to_other_board_is_rejected(client: TestClient, board: dict):
    other = client.post("/kanban/boards", json={"name": "Outro"}).json()
    card = _create_card(client, _columns(board)["todo"]["id"])
    response = client.post(
        f"/kanban/cards/{card['id']}/move",
        json={"target_column_id": other["columns"][0]["id"]},
    )
    assert response.status_code == 400


def test_update_card_content(client: TestClient, board: dict):
    card = _create_card(client, _columns(board)["review"]["id"], status="review")
    response = client.put(
        f"/kanban/cards/{card['id']}",
        json={
            "description": "Horário corrigido",
            "correction": {"date": "2024-03-06", "justification": "Horário corrigido", "times": [{"entrada": "09:00", "saida": "18:00"}]},
            "expected_version": 1,
        },
    )
    assert response.status_code == 200
    updated = response.json()
    assert updated["status"] == "review"
    assert updated["version"] == 2
    assert updated["correction"]["date"] == "2024-03-06"

    stale = client.put(f"/kanban/cards/{card['id']}", json={"title": "X", "expected_version": 1})
    assert stale.status_code == 409


def test_delete_card_repacks_and_removes_activity(client: TestClient, board: dict):
    todo = _columns(board)["todo"]
    first = _create_card(client, todo["id"], title="A")
    second = _create_card(client, todo["id"], title="B")
    assert client.delete(f"/kanban/cards/{first['id']}").status_code == 204
    listed = client.get("/kanban/boards").json()[0]
    assert [(card["id"], card["position"]) for card in listed["columns"][0]["cards"]] == [(second["id"], 0)]
    assert client.get(f"/kanban/cards/{first['id']}/activity").status_code == 404
