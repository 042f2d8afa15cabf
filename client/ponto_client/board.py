"""Display projection of a kanban board onto the four review stages."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List

from .models import KanbanBoard, KanbanCard
from .status import BACKEND_STATUS_ORDER, CARD_STATUS_ORDER, BackendStatus, CardStatus

COLUMN_TITLES: Dict[CardStatus, str] = {
    CardStatus.REQUESTED: "Solicitadas",
    CardStatus.IN_ANALYSIS: "Em Análise pelo Líder",
    CardStatus.NEEDS_CORRECTION: "Correções Necessárias",
    CardStatus.APPROVED: "Histórico de Aprovações",
}


@dataclass(slots=True)
class BoardColumnView:
    status: CardStatus
    title: str
    cards: List[KanbanCard] = field(default_factory=list)


def status_column_map(board: KanbanBoard) -> Dict[BackendStatus, str]:
    """Resolve which column holds each backend status.

    Columns bound to a status claim it first. Otherwise the first column a
    card of that status is found in wins, and statuses nobody holds fall back
    to the column at the same position as the status.
    """
    columns = sorted(board.columns, key=lambda column: column.position)
    mapping: Dict[BackendStatus, str] = {}
    for column in columns:
        if column.status is not None and column.status not in mapping:
            mapping[column.status] = column.column_id
    for column in columns:
        for card in column.cards:
            mapping.setdefault(card.backend_status, column.column_id)
    for index, status in enumerate(BACKEND_STATUS_ORDER):
        if status not in mapping and index < len(columns):
            mapping[status] = columns[index].column_id
    return mapping


def project_board(board: KanbanBoard) -> List[BoardColumnView]:
    views = {status: BoardColumnView(status=status, title=COLUMN_TITLES[status]) for status in CARD_STATUS_ORDER}
    for column in sorted(board.columns, key=lambda column: column.position):
        for card in sorted(column.cards, key=lambda card: card.position):
            views[card.status].cards.append(card)
    return [views[status] for status in CARD_STATUS_ORDER]


def search_cards(board: KanbanBoard, query: str) -> List[KanbanCard]:
    needle = (query or "").strip().casefold()
    if not needle:
        return list(board.cards())
    matches: List[KanbanCard] = []
    for card in board.cards():
        haystack = [card.title, card.description or ""]
        if card.correction is not None:
            haystack.append(card.correction.justification)
        if any(needle in text.casefold() for text in haystack):
            matches.append(card)
    return matches


__all__ = ["BoardColumnView", "COLUMN_TITLES", "project_board", "search_cards", "status_column_map"]
