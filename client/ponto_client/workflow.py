"""Review workflow for correction requests on the kanban board.

Status changes are always carried out as a move to the column that holds the
target status, followed by a full reload. Card statuses are never patched
locally; the engine shows whatever the backend returned on the last reload.
"""

from __future__ import annotations

import datetime as dt
import logging
import uuid
from contextlib import contextmanager
from dataclasses import replace
from typing import Callable, Dict, Iterator, List, Optional, Set

from .board import BoardColumnView, project_board, status_column_map
from .corrections import correction_title, to_payload, validate_correction
from .errors import CardNotFound, ColumnNotMapped, IllegalTransition, OperationInProgress
from .gateways import KanbanGateway
from .models import CardActivity, ChatMessage, KanbanBoard, KanbanCard, TimeCorrection
from .status import BackendStatus, CardStatus, backend_status

logger = logging.getLogger(__name__)

# Allowed source statuses per target status.
TRANSITIONS: Dict[CardStatus, Set[CardStatus]] = {
    CardStatus.IN_ANALYSIS: {CardStatus.REQUESTED},
    CardStatus.APPROVED: {CardStatus.IN_ANALYSIS},
    CardStatus.NEEDS_CORRECTION: {CardStatus.IN_ANALYSIS},
    CardStatus.REQUESTED: {CardStatus.NEEDS_CORRECTION},
}


def can_transition(current: CardStatus, target: CardStatus) -> bool:
    return current in TRANSITIONS.get(target, set())


class KanbanWorkflow:
    """Single-session actor driving correction requests through review."""

    def __init__(
        self,
        gateway: KanbanGateway,
        *,
        board_id: Optional[str] = None,
        clock: Callable[[], dt.datetime] = dt.datetime.now,
    ) -> None:
        self.gateway = gateway
        self.board_id = board_id
        self._clock = clock
        self.board: Optional[KanbanBoard] = None
        self.column_map: Dict[BackendStatus, str] = {}
        self.selected_card_id: Optional[str] = None
        self.editing_card_id: Optional[str] = None
        self._in_flight: Set[str] = set()
        self._chat: Dict[str, List[ChatMessage]] = {}

    # ------------------------------------------------------------------
    # Snapshot
    # ------------------------------------------------------------------
    def refresh(self) -> Optional[KanbanBoard]:
        boards = self.gateway.fetch_boards()
        board = self._pick_board(boards)
        column_map = status_column_map(board) if board is not None else {}
        self.board = board
        self.column_map = column_map
        return board

    def _pick_board(self, boards: List[KanbanBoard]) -> Optional[KanbanBoard]:
        if self.board_id is not None:
            for board in boards:
                if board.board_id == self.board_id:
                    return board
            return None
        active = [board for board in boards if not board.is_archived]
        if active:
            return active[0]
        return boards[0] if boards else None

    def columns(self) -> List[BoardColumnView]:
        if self.board is None:
            return []
        return project_board(self.board)

    def card(self, card_id: str) -> KanbanCard:
        card = self.board.find_card(card_id) if self.board is not None else None
        if card is None:
            raise CardNotFound(card_id)
        return card

    @property
    def selected_card(self) -> Optional[KanbanCard]:
        if self.selected_card_id is None or self.board is None:
            return None
        return self.board.find_card(self.selected_card_id)

    @contextmanager
    def _in_flight_guard(self, card_id: str) -> Iterator[None]:
        if card_id in self._in_flight:
            raise OperationInProgress(card_id)
        self._in_flight.add(card_id)
        try:
            yield
        finally:
            self._in_flight.discard(card_id)

    def is_busy(self, card_id: str) -> bool:
        return card_id in self._in_flight

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------
    def _require_status(self, card: KanbanCard, allowed: Set[CardStatus], action: str) -> None:
        if card.status not in allowed:
            logger.warning("Rejected %s on card %s in status %s", action, card.card_id, card.status.value)
            raise IllegalTransition(card.card_id, card.status.value, action)

    def _transition(self, card_id: str, target: CardStatus, action: str) -> Optional[KanbanCard]:
        card = self.card(card_id)
        self._require_status(card, TRANSITIONS[target], action)
        target_backend = backend_status(target)
        column_id = self.column_map.get(target_backend)
        if column_id is None:
            raise ColumnNotMapped(target_backend.value)
        with self._in_flight_guard(card_id):
            self.gateway.move_card(card_id, column_id, expected_version=card.version)
            self.refresh()
        logger.info("Card %s: %s -> %s", card_id, card.status.value, target.value)
        return self.board.find_card(card_id) if self.board is not None else None

    def select(self, card_id: str) -> KanbanCard:
        """Focus a card; opening a requested card claims it for analysis."""
        card = self.card(card_id)
        if card.status is CardStatus.REQUESTED:
            moved = self._transition(card_id, CardStatus.IN_ANALYSIS, "start analysis")
            if moved is None:
                raise CardNotFound(card_id)
            card = moved
        self.selected_card_id = card.card_id
        return card

    def start_analysis(self, card_id: str) -> Optional[KanbanCard]:
        card = self._transition(card_id, CardStatus.IN_ANALYSIS, "start analysis")
        self.selected_card_id = None
        return card

    def approve(self, card_id: str) -> Optional[KanbanCard]:
        card = self._transition(card_id, CardStatus.APPROVED, "approve")
        self.selected_card_id = None
        return card

    def request_correction(self, card_id: str) -> Optional[KanbanCard]:
        card = self._transition(card_id, CardStatus.NEEDS_CORRECTION, "request correction")
        self.selected_card_id = None
        return card

    def request_reanalysis(self, card_id: str) -> Optional[KanbanCard]:
        card = self._transition(card_id, CardStatus.REQUESTED, "request reanalysis")
        self.selected_card_id = None
        return card

    # ------------------------------------------------------------------
    # Content changes
    # ------------------------------------------------------------------
    def edit_card(self, card_id: str) -> KanbanCard:
        card = self.card(card_id)
        self._require_status(card, {CardStatus.NEEDS_CORRECTION}, "edit")
        self.editing_card_id = card_id
        self.selected_card_id = None
        return card

    def save_edit(
        self,
        card_id: str,
        correction: TimeCorrection,
        description: Optional[str] = None,
    ) -> Optional[KanbanCard]:
        card = self.card(card_id)
        self._require_status(card, {CardStatus.NEEDS_CORRECTION}, "edit")
        validate_correction(correction)
        changes = {
            "correction": to_payload(correction),
            "description": description if description is not None else correction.justification,
            "expected_version": card.version,
        }
        with self._in_flight_guard(card_id):
            self.gateway.update_card(card_id, changes)
            self.refresh()
        self.editing_card_id = None
        logger.info("Card %s content updated", card_id)
        return self.board.find_card(card_id) if self.board is not None else None

    def delete_card(self, card_id: str) -> None:
        card = self.card(card_id)
        self._require_status(card, {CardStatus.NEEDS_CORRECTION}, "delete")
        with self._in_flight_guard(card_id):
            self.gateway.delete_card(card_id)
        self.board = self._without_card(card_id)
        self._chat.pop(card_id, None)
        if self.selected_card_id == card_id:
            self.selected_card_id = None
        if self.editing_card_id == card_id:
            self.editing_card_id = None
        logger.info("Card %s deleted", card_id)

    def _without_card(self, card_id: str) -> Optional[KanbanBoard]:
        if self.board is None:
            return None
        columns = [
            replace(column, cards=[card for card in column.cards if card.card_id != card_id])
            for column in self.board.columns
        ]
        return replace(self.board, columns=columns)

    def submit_correction(
        self,
        correction: TimeCorrection,
        *,
        requester_id: str,
        title: Optional[str] = None,
    ) -> Optional[KanbanCard]:
        """Open a new correction request in the requested column."""
        validate_correction(correction)
        if self.board is None:
            self.refresh()
        column_id = self.column_map.get(BackendStatus.TODO)
        if self.board is None or column_id is None:
            raise ColumnNotMapped(BackendStatus.TODO.value)
        created = self.gateway.create_card(
            {
                "column_id": column_id,
                "title": title or correction_title(correction),
                "description": correction.justification,
                "status": BackendStatus.TODO.value,
                "correction": to_payload(correction),
                "created_by": requester_id,
            }
        )
        self.refresh()
        logger.info("Correction request %s submitted by %s", created.card_id, requester_id)
        return self.board.find_card(created.card_id) if self.board is not None else None

    # ------------------------------------------------------------------
    # Conversation
    # ------------------------------------------------------------------
    def send_message(
        self,
        card_id: str,
        text: str,
        *,
        author_id: str,
        author_name: str,
        is_leader: bool = True,
    ) -> ChatMessage:
        """Append a message to the card's local thread.

        Messages are kept for the lifetime of this session only and have no
        effect on the card's status.
        """
        self.card(card_id)
        message = ChatMessage(
            message_id=uuid.uuid4().hex,
            author_id=author_id,
            author_name=author_name,
            message=text,
            timestamp=self._clock(),
            is_leader=is_leader,
        )
        self._chat.setdefault(card_id, []).append(message)
        return message

    def messages(self, card_id: str) -> List[ChatMessage]:
        return list(self._chat.get(card_id, []))

    def activity(self, card_id: str) -> List[CardActivity]:
        self.card(card_id)
        return self.gateway.list_card_activity(card_id)


__all__ = ["KanbanWorkflow", "TRANSITIONS", "can_transition"]
