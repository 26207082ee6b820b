"""Exception taxonomy shared by the expression engine, jobs and scheduler."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from cronjobs.scheduler.scheduler import RunResult


class CronJobsError(Exception):
    """Base class for every error raised by this package."""


class FormatError(CronJobsError, ValueError):
    """A cron expression has the wrong shape or an unusable field."""


class ValidationError(CronJobsError, ValueError):
    """A job was constructed with a malformed callback reference."""


class ResolutionError(CronJobsError, LookupError):
    """A callback path does not lead to a callable target."""


class SecurityError(CronJobsError, PermissionError):
    """A callback path touches a segment that starts or ends with ``_``."""


class JobError(CronJobsError):
    """Failure of a single due job, tagged with the job's identity."""

    def __init__(self, job_id: str, job_name: str | None, cause: BaseException) -> None:
        self.job_id = job_id
        self.job_name = job_name
        self.cause = cause
        tag = f"{job_id}#{job_name}" if job_name else job_id
        super().__init__(f"[{tag}] {cause}")

    @property
    def message(self) -> str:
        return str(self)


class BatchError(CronJobsError):
    """One or more due jobs failed during a tick.

    ``result`` holds the full :class:`RunResult`, so callers can still
    correlate every due job with its outcome.
    """

    def __init__(self, messages: list[str], result: RunResult | None = None) -> None:
        self.messages = list(messages)
        self.count = len(self.messages)
        self.result = result
        noun = "error" if self.count == 1 else "errors"
        super().__init__(f"Cron run finished with {self.count} {noun}")

    @property
    def results(self) -> list[Any]:
        return self.result.results if self.result is not None else []
