"""Storage backend protocol — the key-value contract every backend implements."""

from __future__ import annotations

from typing import Protocol

DEFAULT_STORAGE_KEY = "CRON_JOBS"


class KeyValueStore(Protocol):
    """Protocol for string key-value backends (memory, JSON file, Google Sheets)."""

    def get(self, key: str) -> str | None:
        """Return the stored value, or ``None`` when the key is absent."""
        ...

    def set(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``, replacing any previous value."""
        ...

    def delete(self, key: str) -> None:
        """Remove ``key``. Deleting an absent key is a no-op."""
        ...
