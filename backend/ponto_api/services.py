from __future__ import annotations

import datetime as dt
import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence

from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .config import settings
from .models import (
    PUNCH_COLUMNS,
    KanbanBoard,
    KanbanCard,
    KanbanCardActivity,
    KanbanColumn,
    TimeEntry,
    TimeEntryAllocation,
)
from .utils import format_minutes, pair_minutes

logger = logging.getLogger(__name__)

DEFAULT_COLUMNS = (
    ("Solicitadas", "todo"),
    ("Em análise", "doing"),
    ("Correções", "review"),
    ("Aprovadas", "done"),
)


def _sanitize(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    trimmed = value.strip()
    return trimmed or None


# ---------------------------------------------------------------------------
# Time entries
# ---------------------------------------------------------------------------


def compute_total_hours(entry: TimeEntry) -> str:
    total = 0
    for index in range(0, len(PUNCH_COLUMNS), 2):
        start = getattr(entry, PUNCH_COLUMNS[index])
        end = getattr(entry, PUNCH_COLUMNS[index + 1])
        total += pair_minutes(start, end)
    return format_minutes(total)


def _get_time_entry(db: Session, entry_id: int) -> TimeEntry:
    entry = db.query(TimeEntry).filter(TimeEntry.id == entry_id).one_or_none()
    if not entry:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Time entry not found")
    return entry


def _replace_allocations(entry: TimeEntry, allocations: Iterable[Dict[str, Any]]) -> None:
    entry.allocations = [
        TimeEntryAllocation(
            project_id=_sanitize(item.get("project_id")),
            project_name=_sanitize(item.get("project_name")),
            description=_sanitize(item.get("description")),
            hours=round(float(item.get("hours") or 0), 2),
        )
        for item in allocations
    ]


def list_time_entries(
    db: Session,
    user_id: Optional[str],
    start_date: Optional[dt.date],
    end_date: Optional[dt.date],
) -> List[TimeEntry]:
    if start_date and end_date and end_date < start_date:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="end_date is before start_date")
    query = db.query(TimeEntry)
    if user_id:
        query = query.filter(TimeEntry.user_id == user_id)
    if start_date:
        query = query.filter(TimeEntry.date >= start_date)
    if end_date:
        query = query.filter(TimeEntry.date <= end_date)
    return query.order_by(TimeEntry.date.desc(), TimeEntry.id.desc()).all()


def get_time_entry(db: Session, entry_id: int) -> TimeEntry:
    return _get_time_entry(db, entry_id)


def create_time_entry(db: Session, payload: Dict[str, Any]) -> TimeEntry:
    user_id = payload["user_id"].strip()
    day = payload["date"]
    exists = (
        db.query(TimeEntry.id)
        .filter(TimeEntry.user_id == user_id, TimeEntry.date == day)
        .first()
    )
    if exists:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"A time entry for {day.isoformat()} already exists",
        )
    entry = TimeEntry(user_id=user_id, date=day, notes=_sanitize(payload.get("notes")))
    for name in PUNCH_COLUMNS:
        setattr(entry, name, payload.get(name))
    entry.total_hours = payload.get("total_hours") or compute_total_hours(entry)
    if payload.get("allocations"):
        _replace_allocations(entry, payload["allocations"])
    db.add(entry)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"A time entry for {day.isoformat()} already exists",
        ) from exc
    db.refresh(entry)
    logger.info("Time entry %s created for %s on %s", entry.id, user_id, day)
    return entry


def update_time_entry(db: Session, entry_id: int, changes: Dict[str, Any]) -> TimeEntry:
    entry = _get_time_entry(db, entry_id)
    if "date" in changes and changes["date"] is not None and changes["date"] != entry.date:
        clash = (
            db.query(TimeEntry.id)
            .filter(TimeEntry.user_id == entry.user_id, TimeEntry.date == changes["date"])
            .first()
        )
        if clash:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"A time entry for {changes['date'].isoformat()} already exists",
            )
        entry.date = changes["date"]
    punches_changed = False
    for name in PUNCH_COLUMNS:
        if name in changes:
            setattr(entry, name, changes[name])
            punches_changed = True
    if "notes" in changes:
        entry.notes = _sanitize(changes["notes"])
    if changes.get("total_hours"):
        entry.total_hours = changes["total_hours"]
    elif punches_changed:
        entry.total_hours = compute_total_hours(entry)
    if "allocations" in changes:
        _replace_allocations(entry, changes["allocations"] or [])
    db.add(entry)
    db.commit()
    db.refresh(entry)
    return entry


def delete_time_entry(db: Session, entry_id: int) -> None:
    entry = _get_time_entry(db, entry_id)
    db.delete(entry)
    db.commit()
    logger.info("Time entry %s deleted", entry_id)


# ---------------------------------------------------------------------------
# Kanban helpers
# ---------------------------------------------------------------------------


def _normalize_tags(tags: Optional[Sequence[str] | str]) -> List[str]:
    if tags is None:
        return []
    values = tags.split(",") if isinstance(tags, str) else list(tags)
    normalized: List[str] = []
    for value in values:
        cleaned = _sanitize(value)
        if cleaned and cleaned not in normalized:
            normalized.append(cleaned)
    return normalized


def _normalize_assignees(assignees: Optional[Sequence[Optional[str]]]) -> List[str]:
    normalized: List[str] = []
    for value in assignees or []:
        cleaned = _sanitize(value)
        if cleaned and cleaned not in normalized:
            normalized.append(cleaned)
    return normalized


def _normalize_correction(value: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if not value:
        return None
    day = value.get("date")
    times = [
        {"entrada": _sanitize(time.get("entrada")), "saida": _sanitize(time.get("saida"))}
        for time in value.get("times") or []
    ]
    times = [time for time in times if time["entrada"] or time["saida"]]
    correction = {
        "date": day.isoformat() if isinstance(day, dt.date) else _sanitize(day),
        "justification": _sanitize(value.get("justification")),
        "document_name": _sanitize(value.get("document_name")),
        "times": times,
    }
    if not correction["date"] and not correction["justification"] and not correction["document_name"] and not times:
        return None
    return correction


def _log_activity(db: Session, card: KanbanCard, user_id: Optional[str], action: str, payload: Dict[str, Any]) -> None:
    db.add(KanbanCardActivity(card_id=card.id, user_id=user_id, action=action, payload=payload))


def _check_version(card: KanbanCard, expected_version: Optional[int]) -> None:
    if expected_version is not None and expected_version != card.version:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Card {card.id} was modified (version {card.version}, expected {expected_version})",
        )


def _shift_positions(db: Session, column_id: int, start: int, delta: int, exclude_id: Optional[int] = None) -> None:
    query = db.query(KanbanCard).filter(KanbanCard.column_id == column_id, KanbanCard.position >= start)
    if exclude_id is not None:
        query = query.filter(KanbanCard.id != exclude_id)
    for card in query.all():
        card.position += delta
        db.add(card)
    db.flush()


def _count_cards(db: Session, column_id: int, exclude_id: Optional[int] = None) -> int:
    query = db.query(KanbanCard).filter(KanbanCard.column_id == column_id)
    if exclude_id is not None:
        query = query.filter(KanbanCard.id != exclude_id)
    return query.count()


def resolve_moved_status(current: str, column: KanbanColumn) -> str:
    """Status a card takes after being dropped into ``column``."""
    if column.status:
        return column.status
    if current == "todo" and "rev" in column.title.lower():
        return "review"
    return current


# ---------------------------------------------------------------------------
# Boards and columns
# ---------------------------------------------------------------------------


def _get_board(db: Session, board_id: int) -> KanbanBoard:
    board = db.query(KanbanBoard).filter(KanbanBoard.id == board_id).one_or_none()
    if not board:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Board not found")
    return board


def _get_column(db: Session, column_id: int) -> KanbanColumn:
    column = db.query(KanbanColumn).filter(KanbanColumn.id == column_id).one_or_none()
    if not column:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Column not found")
    return column


def _get_card(db: Session, card_id: int) -> KanbanCard:
    card = db.query(KanbanCard).filter(KanbanCard.id == card_id).one_or_none()
    if not card:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Card not found")
    return card


def list_boards(db: Session, include_archived: bool = True) -> List[KanbanBoard]:
    query = db.query(KanbanBoard)
    if not include_archived:
        query = query.filter(KanbanBoard.is_archived.is_(False))
    return query.order_by(KanbanBoard.id).all()


def create_board(
    db: Session,
    name: str,
    project_id: Optional[str] = None,
    description: Optional[str] = None,
    created_by: Optional[str] = None,
    columns: Optional[List[Dict[str, Any]]] = None,
) -> KanbanBoard:
    cleaned = _sanitize(name)
    if not cleaned:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Board name is required")
    board = KanbanBoard(
        name=cleaned,
        project_id=_sanitize(project_id),
        description=_sanitize(description),
        created_by=_sanitize(created_by),
    )
    layout = columns if columns else [{"title": title, "status": value} for title, value in DEFAULT_COLUMNS]
    for index, spec in enumerate(layout):
        title = _sanitize(spec.get("title"))
        if not title:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Column title is required")
        board.columns.append(
            KanbanColumn(title=title, position=index, limit=spec.get("limit"), status=spec.get("status"))
        )
    db.add(board)
    db.commit()
    db.refresh(board)
    logger.info("Board %s created with %d columns", board.id, len(board.columns))
    return board


def ensure_default_board(db: Session) -> KanbanBoard:
    board = db.query(KanbanBoard).order_by(KanbanBoard.id).first()
    if board is not None:
        return board
    return create_board(db, settings.default_board_name)


def create_column(
    db: Session,
    board_id: int,
    title: str,
    limit: Optional[int] = None,
    status_value: Optional[str] = None,
) -> KanbanColumn:
    board = _get_board(db, board_id)
    cleaned = _sanitize(title)
    if not cleaned:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Column title is required")
    column = KanbanColumn(
        board_id=board.id,
        title=cleaned,
        position=len(board.columns),
        limit=limit,
        status=status_value,
    )
    db.add(column)
    db.commit()
    db.refresh(column)
    return column


# ---------------------------------------------------------------------------
# Cards
# ---------------------------------------------------------------------------


def create_card(db: Session, payload: Dict[str, Any]) -> KanbanCard:
    column = _get_column(db, payload["column_id"])
    title = _sanitize(payload.get("title"))
    if not title:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Card title is required")
    count = _count_cards(db, column.id)
    requested = payload.get("position")
    if requested is None or requested >= count:
        position = count
    else:
        position = max(0, requested)
        _shift_positions(db, column.id, position, 1)
    card = KanbanCard(
        board_id=column.board_id,
        column_id=column.id,
        project_id=_sanitize(payload.get("project_id")) or column.board.project_id,
        title=title,
        description=_sanitize(payload.get("description")),
        position=position,
        status=payload.get("status") or "todo",
        tags=_normalize_tags(payload.get("tags")),
        due_date=payload.get("due_date"),
        priority=payload.get("priority") or "medium",
        assignees=_normalize_assignees(payload.get("assignees")),
        correction=_normalize_correction(payload.get("correction")),
        created_by=_sanitize(payload.get("created_by")),
        version=1,
    )
    db.add(card)
    db.flush()
    _log_activity(db, card, card.created_by, "card_created", {"title": card.title, "column_id": column.id})
    db.commit()
    db.refresh(card)
    logger.info("Card %s created in column %s", card.id, column.id)
    return card


def update_card(db: Session, card_id: int, changes: Dict[str, Any], actor: Optional[str] = None) -> KanbanCard:
    card = _get_card(db, card_id)
    _check_version(card, changes.get("expected_version"))
    if "title" in changes:
        title = _sanitize(changes["title"])
        if not title:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Card title is required")
        card.title = title
    if "description" in changes:
        card.description = _sanitize(changes["description"])
    if changes.get("status") is not None:
        card.status = changes["status"]
    if "tags" in changes:
        card.tags = _normalize_tags(changes["tags"])
    if "due_date" in changes:
        card.due_date = changes["due_date"]
    if "priority" in changes:
        card.priority = changes["priority"] or "medium"
    if "assignees" in changes:
        card.assignees = _normalize_assignees(changes["assignees"])
    if "correction" in changes:
        card.correction = _normalize_correction(changes["correction"])
    card.version += 1
    db.add(card)
    fields = sorted(name for name in changes if name != "expected_version")
    _log_activity(db, card, actor, "card_updated", {"fields": fields})
    db.commit()
    db.refresh(card)
    return card


def move_card(
    db: Session,
    card_id: int,
    target_column_id: int,
    target_position: Optional[int] = None,
    expected_version: Optional[int] = None,
    actor: Optional[str] = None,
) -> KanbanCard:
    card = _get_card(db, card_id)
    _check_version(card, expected_version)
    target = _get_column(db, target_column_id)
    if target.board_id != card.board_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Target column must belong to the same board",
        )

    source_column_id = card.column_id
    previous_status = card.status
    _shift_positions(db, source_column_id, card.position + 1, -1, exclude_id=card.id)

    count = _count_cards(db, target.id, exclude_id=card.id)
    if target_position is None:
        new_position = count
    else:
        new_position = min(max(0, target_position), count)
        _shift_positions(db, target.id, new_position, 1, exclude_id=card.id)

    card.column_id = target.id
    card.position = new_position
    card.status = resolve_moved_status(card.status, target)
    card.version += 1
    db.add(card)
    _log_activity(
        db,
        card,
        actor,
        "card_moved",
        {
            "from_column_id": source_column_id,
            "to_column_id": target.id,
            "position": new_position,
            "from_status": previous_status,
            "to_status": card.status,
        },
    )
    db.commit()
    db.refresh(card)
    logger.info("Card %s moved to column %s (%s -> %s)", card.id, target.id, previous_status, card.status)
    return card


def delete_card(db: Session, card_id: int) -> None:
    card = _get_card(db, card_id)
    _shift_positions(db, card.column_id, card.position + 1, -1, exclude_id=card.id)
    db.delete(card)
    db.commit()
    logger.info("Card %s deleted", card_id)


def list_card_activity(db: Session, card_id: int) -> List[KanbanCardActivity]:
    card = _get_card(db, card_id)
    return (
        db.query(KanbanCardActivity)
        .filter(KanbanCardActivity.card_id == card.id)
        .order_by(KanbanCardActivity.created_at.desc(), KanbanCardActivity.id.desc())
        .all()
    )
