"""In-memory storage backend — for tests and embedding in a host process."""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)


class MemoryBackend:
    """Dict-backed key-value store. Nothing survives the process."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value
        logger.debug("Stored %d chars under '%s'", len(value), key)

    def delete(self, key: str) -> None:
        self._data.pop(key, None)
