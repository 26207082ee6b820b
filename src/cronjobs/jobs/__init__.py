"""Jobs package — the job entity and its persisted collection."""

from cronjobs.jobs.job import DEFAULT_TIMEZONE, RECORD_FIELDS, Job
from cronjobs.jobs.store import JobStore

__all__ = ["DEFAULT_TIMEZONE", "RECORD_FIELDS", "Job", "JobStore"]
