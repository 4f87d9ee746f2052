# timetable/core/config.py
from datetime import date
import logging
import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import (
    DEFAULT_DELETE_CONFIRMATION_TOKEN,
    DEFAULT_POSITIONS,
    DEFAULT_REFERENCE_EVEN_MONDAY,
    DEFAULT_SPECIALTIES,
)

logger = logging.getLogger(__name__)

_PROJECT_ROOT = Path(__file__).resolve().parents[2]

# Load .env file only if not in CI
if not os.getenv("CI"):
    env_path = _PROJECT_ROOT / ".env"
    logger.debug(f"[CONFIG] Looking for .env at: {env_path}")
    load_dotenv(env_path)


class Settings(BaseSettings):
    # Database
    database_url: str = Field(
        default="sqlite:///./timetable.db",
        alias="DATABASE_URL",
        description="SQLAlchemy URL of the timetable store",
    )
    db_isolation_level: Optional[str] = Field(
        default="SERIALIZABLE",
        alias="DB_ISOLATION_LEVEL",
        description="Isolation level for server databases; ignored on SQLite",
    )
    db_echo: bool = Field(default=False, alias="DB_ECHO")
    db_sqlite_busy_timeout: float = Field(
        default=5.0,
        alias="DB_SQLITE_BUSY_TIMEOUT",
        description="Seconds a SQLite connection waits for another writer before failing",
    )

    # Calendar
    reference_even_monday: date = Field(
        default=DEFAULT_REFERENCE_EVEN_MONDAY,
        alias="REFERENCE_EVEN_MONDAY",
        description="Monday that starts a known even week",
    )

    # Safety gate for destructive operations
    delete_confirmation_token: str = Field(
        default=DEFAULT_DELETE_CONFIRMATION_TOKEN,
        alias="DELETE_CONFIRMATION_TOKEN",
    )

    # Closed reference sets
    specialties: list[str] = Field(default_factory=lambda: list(DEFAULT_SPECIALTIES))
    positions: list[str] = Field(default_factory=lambda: list(DEFAULT_POSITIONS))

    # Observability
    slow_operation_threshold_seconds: float = Field(default=1.0)

    model_config = SettingsConfigDict(
        env_file=".env" if not os.getenv("CI") else None,
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    @field_validator("reference_even_monday")
    @classmethod
    def _must_be_monday(cls, value: date) -> date:
        if value.weekday() != 0:
            raise ValueError(f"reference_even_monday must be a Monday, got {value.isoformat()}")
        return value

    @field_validator("delete_confirmation_token")
    @classmethod
    def _normalize_token(cls, value: str) -> str:
        token = value.strip().lower()
        if not token:
            raise ValueError("delete_confirmation_token must not be empty")
        return token


settings = Settings()
