"""Job store — the ordered job list persisted under a single storage key.

The list is stored as a JSON array of six-element records (see
``RECORD_FIELDS``). Every mutation is a full read-modify-write; concurrent
writers can lose updates, so callers needing isolation must lock around the
store themselves.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

from cronjobs.errors import CronJobsError
from cronjobs.jobs.job import DEFAULT_TIMEZONE, Job
from cronjobs.storage.base import DEFAULT_STORAGE_KEY

if TYPE_CHECKING:
    from cronjobs.storage.base import KeyValueStore

logger = logging.getLogger(__name__)


class JobStore:
    """Ordered collection of jobs on top of a :class:`KeyValueStore`."""

    def __init__(
        self,
        backend: KeyValueStore,
        key: str = DEFAULT_STORAGE_KEY,
        default_timezone: str = DEFAULT_TIMEZONE,
    ) -> None:
        self._backend = backend
        self.key = key
        self.default_timezone = default_timezone

    # ------------------------------------------------------------------
    # Raw records
    # ------------------------------------------------------------------

    def _read_entries(self) -> list[Any]:
        """Return the stored records. Never raises; bad state reads as empty."""
        try:
            raw = self._backend.get(self.key)
        except Exception:
            logger.warning("Failed to read '%s', treating as no jobs", self.key, exc_info=True)
            return []
        if raw is None:
            return []
        try:
            entries = json.loads(raw)
        except (TypeError, ValueError):
            logger.warning("Stored value under '%s' is not valid JSON, ignoring it", self.key)
            return []
        if not isinstance(entries, list):
            logger.warning("Stored value under '%s' is not a list, ignoring it", self.key)
            return []
        return entries

    def _write_entries(self, entries: list[Any]) -> None:
        self._backend.set(self.key, json.dumps(entries, ensure_ascii=False))
        logger.debug("Persisted %d job(s) under '%s'", len(entries), self.key)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def load(self) -> list[Job]:
        """Deserialize every stored job, in stored order.

        Malformed records are logged and skipped.
        """
        jobs: list[Job] = []
        for entry in self._read_entries():
            try:
                job = Job.deserialize(
                    entry,
                    default_timezone=self.default_timezone,
                    store=self,
                )
            except (CronJobsError, TypeError, ValueError) as exc:
                logger.warning("Skipping malformed job record %r: %s", entry, exc)
                continue
            jobs.append(job)
        return jobs

    def get(self, job_id: str) -> Job | None:
        for job in self.load():
            if job.id == job_id:
                return job
        return None

    def append(self, job: Job) -> Job:
        """Add ``job`` at the end of the list and bind it to this store."""
        entries = self._read_entries()
        entries.append(job.serialize())
        self._write_entries(entries)
        logger.info("Added job %s (%s)", job.id, job.expression)
        return job.bind(self)

    def replace_by_id(self, job: Job) -> bool:
        """Overwrite the stored record(s) sharing ``job.id``.

        Returns ``False`` (and writes nothing) when no record matches.
        """
        entries = self._read_entries()
        replaced = False
        for index, entry in enumerate(entries):
            if _entry_id(entry) == job.id:
                entries[index] = job.serialize()
                replaced = True
        if not replaced:
            logger.warning("Job %s is not in the store, nothing replaced", job.id)
            return False
        self._write_entries(entries)
        return True

    def remove(self, job_id: str) -> bool:
        entries = self._read_entries()
        kept = [entry for entry in entries if _entry_id(entry) != job_id]
        if len(kept) == len(entries):
            return False
        self._write_entries(kept)
        logger.info("Removed job %s", job_id)
        return True

    def clear(self) -> None:
        """Delete the stored job list."""
        self._backend.delete(self.key)
        logger.info("Cleared all jobs under '%s'", self.key)


def _entry_id(entry: Any) -> str | None:
    if isinstance(entry, list) and entry:
        return str(entry[0])
    return None
