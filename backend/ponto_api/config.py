from __future__ import annotations

from pathlib import Path
from typing import List

from pydantic import computed_field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_prefix="PONTO_", case_sensitive=False)
    """Application runtime configuration."""

    app_name: str = "Ponto"
    environment: str = "development"
    host: str = "127.0.0.1"
    port: int = 8080
    log_level: str = "INFO"

    sqlite_path: Path = Path("./data/ponto.db")

    # Comma separated list of allowed browser origins.
    cors_origins: str = "http://127.0.0.1:5173,http://localhost:5173"

    default_board_name: str = "Correções de ponto"

    @field_validator("log_level")
    @classmethod
    def _normalize_level(cls, value: str) -> str:
        return value.strip().upper() or "INFO"

    @computed_field
    def cors_origin_list(self) -> List[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


settings = Settings()

# Ensure essential directories exist
settings.sqlite_path.parent.mkdir(parents=True, exist_ok=True)
