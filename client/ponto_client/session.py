"""Wiring of one employee session: API client, punch ledger and review workflow."""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from typing import Optional

from .api_client import ApiClient
from .config import AppConfig, load_config
from .ledger import PunchLedger
from .workflow import KanbanWorkflow


@dataclass(slots=True)
class EmployeeSession:
    api_client: ApiClient
    ledger: PunchLedger
    workflow: KanbanWorkflow


def open_session(config: Optional[AppConfig] = None, *, user_id: Optional[str] = None) -> EmployeeSession:
    """Build a session from ``config`` (loaded from the environment if omitted)."""

    config = config or load_config()
    resolved_user = user_id or config.user_id
    if not resolved_user:
        raise ValueError("A user id is required (PONTO_USER_ID)")

    api_client = ApiClient(
        config.api_base_url,
        token=config.api_token,
        timeout=config.timeout_seconds,
        user_id=resolved_user,
    )
    ledger = PunchLedger(
        api_client,
        resolved_user,
        cooldown=dt.timedelta(minutes=config.punch_cooldown_minutes),
    )
    workflow = KanbanWorkflow(api_client, board_id=config.board_id)
    return EmployeeSession(api_client=api_client, ledger=ledger, workflow=workflow)


__all__ = ["EmployeeSession", "open_session"]
