"""Configuration helpers for the attendance client."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

DEFAULT_API_BASE_URL = "http://127.0.0.1:8080"
DEFAULT_TIMEOUT = 15
DEFAULT_COOLDOWN_MINUTES = 5


@dataclass(slots=True)
class AppConfig:
    """Configuration values for one employee session."""

    api_base_url: str = DEFAULT_API_BASE_URL
    api_token: Optional[str] = None
    user_id: Optional[str] = None
    timeout_seconds: int = DEFAULT_TIMEOUT
    punch_cooldown_minutes: int = DEFAULT_COOLDOWN_MINUTES
    board_id: Optional[str] = None


def load_config(env_path: Optional[Path] = None) -> AppConfig:
    """Load the configuration from an optional `.env` file and the environment."""

    env_path = env_path or Path(__file__).resolve().parent.parent / ".env"
    if env_path.exists():
        load_dotenv(env_path)

    return AppConfig(
        api_base_url=os.getenv("PONTO_API_BASE_URL", DEFAULT_API_BASE_URL),
        api_token=os.getenv("PONTO_API_TOKEN"),
        user_id=os.getenv("PONTO_USER_ID"),
        timeout_seconds=int(os.getenv("PONTO_API_TIMEOUT", DEFAULT_TIMEOUT)),
        punch_cooldown_minutes=int(os.getenv("PONTO_PUNCH_COOLDOWN_MINUTES", DEFAULT_COOLDOWN_MINUTES)),
        board_id=os.getenv("PONTO_BOARD_ID") or None,
    )


__all__ = ["AppConfig", "load_config"]
