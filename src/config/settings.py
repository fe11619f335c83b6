"""Application-wide configuration loading and validation."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Centralized environment configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    environment: Literal["local", "dev", "prod"] = Field(default="local")
    log_level: str = Field(default="INFO")

    # HTTP / WebSocket server
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8080)
    server_name: str = Field(default="Xorcom PBX CTI Server")
    app_version: str = Field(default="1.0.0")

    # Database
    database_url: str = Field(
        default="sqlite+aiosqlite:///./data/cti.db",
        description="SQLAlchemy connection string.",
    )
    auto_create_db_schema: bool = Field(
        default=True,
        description="If true, creates tables automatically on startup (useful for local/dev).",
    )

    # Call simulation timeline
    answer_delay_seconds: float = Field(
        default=2.0,
        ge=0.0,
        description="Delay between incoming_call and call_answered in simulations.",
    )
    default_call_duration_seconds: int = Field(default=30)

    # Broadcasting
    send_timeout_seconds: float = Field(
        default=5.0,
        gt=0.0,
        description="Per-connection send timeout; a slow client counts as a failed delivery.",
    )

    # Freshdesk ticket integration
    freshdesk_domain: str | None = Field(
        default=None,
        description="Freshdesk subdomain (e.g. 'acme' for acme.freshdesk.com) or full base URL.",
    )
    freshdesk_api_key: str | None = Field(default=None)
    freshdesk_ticket_priority: int = Field(default=1, ge=1, le=4)
    freshdesk_ticket_status: int = Field(default=2, ge=2, le=5)
    freshdesk_timeout_seconds: float = Field(default=15.0, gt=0.0)

    data_dir: Path = Field(default=Path("./data"))

    @field_validator("data_dir")
    @classmethod
    def ensure_data_dir(cls, value: Path) -> Path:
        value.mkdir(parents=True, exist_ok=True)
        return value

    @property
    def freshdesk_enabled(self) -> bool:
        return bool(self.freshdesk_domain and self.freshdesk_api_key)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached Settings instance."""

    return Settings()
