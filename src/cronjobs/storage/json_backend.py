"""JSON file storage backend — local persistence in a single file."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path

logger = logging.getLogger(__name__)


def _read_json(path: Path) -> dict[str, str]:
    """Read the key-value object from ``path``; missing or corrupt reads as empty."""
    if not path.exists():
        return {}
    try:
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError):
        logger.warning("Could not read %s, treating it as empty", path, exc_info=True)
        return {}
    if not isinstance(data, dict):
        logger.warning("Ignoring %s: top-level value is not an object", path)
        return {}
    return {str(k): v for k, v in data.items() if isinstance(v, str)}


def _write_json(path: Path, data: dict[str, str]) -> None:
    """Write ``data`` to a temp file beside ``path`` and swap it into place."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False, indent=2)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


class JsonFileBackend:
    """Key-value store kept as one JSON object on disk."""

    def __init__(self, file_path: str | Path = "cron_jobs.json") -> None:
        self._path = Path(file_path)

    @property
    def path(self) -> Path:
        return self._path

    def get(self, key: str) -> str | None:
        return _read_json(self._path).get(key)

    def set(self, key: str, value: str) -> None:
        data = _read_json(self._path)
        data[key] = value
        _write_json(self._path, data)
        logger.debug("Wrote '%s' to %s", key, self._path)

    def delete(self, key: str) -> None:
        data = _read_json(self._path)
        if data.pop(key, None) is None:
            return
        _write_json(self._path, data)
        logger.debug("Deleted '%s' from %s", key, self._path)
