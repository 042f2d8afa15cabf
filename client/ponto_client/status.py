"""Review-stage vocabularies for correction requests.

The client speaks ``CardStatus`` while the kanban backend stores
``BackendStatus``. The two are tied by a fixed one-to-one table which is
checked when this module is imported.
"""

from __future__ import annotations

from enum import Enum
from typing import Dict


class CardStatus(str, Enum):
    REQUESTED = "requested"
    IN_ANALYSIS = "in_analysis"
    NEEDS_CORRECTION = "needs_correction"
    APPROVED = "approved"


class BackendStatus(str, Enum):
    TODO = "todo"
    DOING = "doing"
    REVIEW = "review"
    DONE = "done"


_TO_BACKEND: Dict[CardStatus, BackendStatus] = {
    CardStatus.REQUESTED: BackendStatus.TODO,
    CardStatus.IN_ANALYSIS: BackendStatus.DOING,
    CardStatus.NEEDS_CORRECTION: BackendStatus.REVIEW,
    CardStatus.APPROVED: BackendStatus.DONE,
}


def _invert(table: Dict[CardStatus, BackendStatus]) -> Dict[BackendStatus, CardStatus]:
    missing = set(CardStatus) - set(table)
    if missing:
        raise RuntimeError(f"Unmapped card statuses: {sorted(s.value for s in missing)}")
    inverse = {backend: card for card, backend in table.items()}
    if set(inverse) != set(BackendStatus):
        raise RuntimeError("Status table must map onto every backend status exactly once")
    return inverse


_TO_CARD: Dict[BackendStatus, CardStatus] = _invert(_TO_BACKEND)

# Workflow order, also used as the positional column fallback.
CARD_STATUS_ORDER = (
    CardStatus.REQUESTED,
    CardStatus.IN_ANALYSIS,
    CardStatus.NEEDS_CORRECTION,
    CardStatus.APPROVED,
)
BACKEND_STATUS_ORDER = tuple(_TO_BACKEND[status] for status in CARD_STATUS_ORDER)


def backend_status(status: CardStatus | str) -> BackendStatus:
    return _TO_BACKEND[CardStatus(status)]


def card_status(status: BackendStatus | str) -> CardStatus:
    return _TO_CARD[BackendStatus(status)]


__all__ = [
    "BACKEND_STATUS_ORDER",
    "BackendStatus",
    "CARD_STATUS_ORDER",
    "CardStatus",
    "backend_status",
    "card_status",
]
