"""Storage package — key-value backends for the persisted job list."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from cronjobs.storage.base import DEFAULT_STORAGE_KEY, KeyValueStore
from cronjobs.storage.json_backend import JsonFileBackend
from cronjobs.storage.memory_backend import MemoryBackend

if TYPE_CHECKING:
    from cronjobs.config.settings import Settings

logger = logging.getLogger(__name__)


def create_storage_backend(settings: Settings) -> KeyValueStore:
    """Build the configured backend.

    Falls back to the JSON file backend when Google Sheets is selected but
    has no credentials or cannot be opened.
    """
    if settings.storage_backend == "memory":
        return MemoryBackend()

    if settings.storage_backend == "sheets":
        if not settings.google_credentials_json:
            logger.warning("Sheets storage selected without credentials, using JSON file")
        else:
            try:
                from cronjobs.storage.sheets_backend import SheetsBackend

                return SheetsBackend(
                    settings.google_credentials_json,
                    sheet_name=settings.google_sheet_name,
                )
            except Exception:
                logger.exception("Google Sheets unavailable, falling back to JSON file")

    return JsonFileBackend(settings.jobs_file_path)


__all__ = [
    "DEFAULT_STORAGE_KEY",
    "JsonFileBackend",
    "KeyValueStore",
    "MemoryBackend",
    "create_storage_backend",
]
