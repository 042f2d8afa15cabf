from __future__ import annotations

import datetime as dt
from typing import Optional

from fastapi import Depends, FastAPI, Header, Response, status
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.orm import Session

from . import models
from .config import settings
from .database import engine, get_db
from .logging_config import configure_logging
from .schemas import (
    BoardCreateRequest,
    BoardResponse,
    CardActivityResponse,
    CardCreateRequest,
    CardMoveRequest,
    CardResponse,
    CardUpdateRequest,
    ColumnCreateRequest,
    ColumnResponse,
    TimeEntryCreateRequest,
    TimeEntryResponse,
    TimeEntryUpdateRequest,
)
from .services import (
    create_board,
    create_card,
    create_column,
    create_time_entry,
    delete_card,
    delete_time_entry,
    ensure_default_board,
    get_time_entry,
    list_boards,
    list_card_activity,
    list_time_entries,
    move_card,
    update_card,
    update_time_entry,
)

configure_logging()
models.Base.metadata.create_all(bind=engine)

app = FastAPI(title=settings.app_name)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/healthz")
def healthz() -> dict[str, str]:
    return {"status": "ok", "environment": settings.environment}


# ---------------------------------------------------------------------------
# Timesheet
# ---------------------------------------------------------------------------


@app.get("/timesheet", response_model=list[TimeEntryResponse])
def timesheet_list(
    user_id: Optional[str] = None,
    start_date: Optional[dt.date] = None,
    end_date: Optional[dt.date] = None,
    db: Session = Depends(get_db),
) -> list[TimeEntryResponse]:
    return list_time_entries(db, user_id, start_date, end_date)


@app.get("/timesheet/{entry_id}", response_model=TimeEntryResponse)
def timesheet_get(entry_id: int, db: Session = Depends(get_db)) -> TimeEntryResponse:
    return get_time_entry(db, entry_id)


@app.post("/timesheet", response_model=TimeEntryResponse, status_code=status.HTTP_201_CREATED)
def timesheet_create(payload: TimeEntryCreateRequest, db: Session = Depends(get_db)) -> TimeEntryResponse:
    return create_time_entry(db, payload.model_dump())


@app.put("/timesheet/{entry_id}", response_model=TimeEntryResponse)
def timesheet_update(
    entry_id: int,
    payload: TimeEntryUpdateRequest,
    db: Session = Depends(get_db),
) -> TimeEntryResponse:
    changes = payload.model_dump(exclude_unset=True)
    return update_time_entry(db, entry_id, changes)


@app.delete("/timesheet/{entry_id}", status_code=status.HTTP_204_NO_CONTENT)
def timesheet_delete(entry_id: int, db: Session = Depends(get_db)) -> Response:
    delete_time_entry(db, entry_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ---------------------------------------------------------------------------
# Kanban
# ---------------------------------------------------------------------------


@app.get("/kanban/boards", response_model=list[BoardResponse])
def kanban_boards(include_archived: bool = True, db: Session = Depends(get_db)) -> list[BoardResponse]:
    boards = list_boards(db, include_archived)
    if not boards:
        boards = [ensure_default_board(db)]
    return boards


@app.post("/kanban/boards", response_model=BoardResponse, status_code=status.HTTP_201_CREATED)
def kanban_create_board(payload: BoardCreateRequest, db: Session = Depends(get_db)) -> BoardResponse:
    columns = [column.model_dump() for column in payload.columns] if payload.columns else None
    return create_board(
        db,
        payload.name,
        project_id=payload.project_id,
        description=payload.description,
        created_by=payload.created_by,
        columns=columns,
    )


@app.post(
    "/kanban/boards/{board_id}/columns",
    response_model=ColumnResponse,
    status_code=status.HTTP_201_CREATED,
)
def kanban_create_column(
    board_id: int,
    payload: ColumnCreateRequest,
    db: Session = Depends(get_db),
) -> ColumnResponse:
    return create_column(db, board_id, payload.title, payload.limit, payload.status)


@app.post("/kanban/cards", response_model=CardResponse, status_code=status.HTTP_201_CREATED)
def kanban_create_card(payload: CardCreateRequest, db: Session = Depends(get_db)) -> CardResponse:
    return create_card(db, payload.model_dump())


@app.put("/kanban/cards/{card_id}", response_model=CardResponse)
def kanban_update_card(
    card_id: int,
    payload: CardUpdateRequest,
    db: Session = Depends(get_db),
    x_user_id: Optional[str] = Header(default=None),
) -> CardResponse:
    changes = payload.model_dump(exclude_unset=True)
    return update_card(db, card_id, changes, actor=x_user_id)


@app.post("/kanban/cards/{card_id}/move", response_model=CardResponse)
def kanban_move_card(
    card_id: int,
    payload: CardMoveRequest,
    db: Session = Depends(get_db),
    x_user_id: Optional[str] = Header(default=None),
) -> CardResponse:
    return move_card(
        db,
        card_id,
        payload.target_column_id,
        target_position=payload.target_position,
        expected_version=payload.expected_version,
        actor=x_user_id,
    )


@app.delete("/kanban/cards/{card_id}", status_code=status.HTTP_204_NO_CONTENT)
def kanban_delete_card(card_id: int, db: Session = Depends(get_db)) -> Response:
    delete_card(db, card_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@app.get("/kanban/cards/{card_id}/activity", response_model=list[CardActivityResponse])
def kanban_card_activity(card_id: int, db: Session = Depends(get_db)) -> list[CardActivityResponse]:
    return list_card_activity(db, card_id)
