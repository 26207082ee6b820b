"""Pydantic-based settings loaded entirely from environment variables.

All configuration is read from ``.env`` (or real env vars). Every field has a
sensible default, so an empty environment gives a working local setup that
keeps jobs in ``cron_jobs.json``.

Usage::

    from cronjobs.config import get_settings
    settings = get_settings()
"""

from __future__ import annotations

from functools import lru_cache
from typing import Annotated, Literal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

# ---------------------------------------------------------------------------
# Type alias: env var string "a,b,c" → list[str]
# ---------------------------------------------------------------------------
CsvList = Annotated[list[str], NoDecode]


class Settings(BaseSettings):
    """Central configuration — every field maps to an UPPER_SNAKE env var."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
        env_ignore_empty=True,
    )

    # -- Storage ------------------------------------------------------------
    storage_backend: Literal["json", "memory", "sheets"] = "json"
    jobs_file_path: str = "cron_jobs.json"
    storage_key: str = "CRON_JOBS"
    google_credentials_json: str = ""
    google_sheet_name: str = "Cron Jobs"

    # -- Scheduling ---------------------------------------------------------
    default_timezone: str = "UTC"
    # Modules imported at startup and exposed to jobs by their dotted name
    callback_modules: CsvList = Field(default_factory=list)

    # -- General ------------------------------------------------------------
    log_level: str = "INFO"

    # -- Serve mode ---------------------------------------------------------
    health_check_enabled: bool = True
    health_check_port: int = 10000
    health_check_path: str = "/health"

    @field_validator("callback_modules", mode="before")
    @classmethod
    def split_csv(cls, value: object) -> list[str]:
        """Convert comma-separated env string to list."""
        if isinstance(value, str):
            return [item.strip() for item in value.split(",") if item.strip()]
        if isinstance(value, list):
            return value
        return []

    @field_validator("default_timezone")
    @classmethod
    def check_timezone(cls, value: str) -> str:
        """Reject names the tz database does not know."""
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            msg = f"Unknown timezone '{value}'"
            raise ValueError(msg) from exc
        return value


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached singleton Settings instance.

    Call ``get_settings.cache_clear()`` in tests to reset.
    """
    return Settings()
