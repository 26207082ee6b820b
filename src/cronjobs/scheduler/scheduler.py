"""Tick scheduler — selects due jobs, runs them, collects per-job failures."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from cronjobs.cron import parse_expression
from cronjobs.errors import BatchError, JobError
from cronjobs.jobs import Job, JobStore
from cronjobs.registry import CallbackRegistry
from cronjobs.storage import create_storage_backend

if TYPE_CHECKING:
    from cronjobs.config.settings import Settings

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass
class RunResult:
    """Outcome of one tick.

    ``results`` and ``job_ids`` are parallel: entry ``i`` is the return value
    (or :class:`JobError`) of the ``i``-th due job.
    """

    started_at: datetime
    results: list[Any] = field(default_factory=list)
    job_ids: list[str] = field(default_factory=list)
    errors: list[JobError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def summary(self) -> dict[str, Any]:
        return {
            "started_at": self.started_at.isoformat(),
            "due": len(self.job_ids),
            "failed": len(self.errors),
            "errors": [error.message for error in self.errors],
        }


class Scheduler:
    """Runs every due job of a :class:`JobStore` once per tick.

    Jobs run one at a time in store order. A failing job never stops the
    remaining due jobs; failures are re-raised together as a
    :class:`BatchError` once the batch is done. Overlapping ``run()`` calls
    are not guarded against.
    """

    def __init__(
        self,
        store: JobStore,
        registry: CallbackRegistry | None = None,
        clock: Clock | None = None,
    ) -> None:
        self.store = store
        self.registry = registry if registry is not None else CallbackRegistry()
        self._clock = clock or _utcnow
        self.last_result: RunResult | None = None

    # ------------------------------------------------------------------
    # Job management
    # ------------------------------------------------------------------

    def new_job(self, expression: str, callback: str, **options: Any) -> Job:
        """Build an unsaved job using the store's default timezone."""
        options.setdefault("default_timezone", self.store.default_timezone)
        return Job(expression, callback, **options)

    def schedule(
        self,
        expression: str,
        callback: str,
        *,
        name: str | None = None,
        scheduled: bool = True,
        timezone: str | None = None,
    ) -> Job:
        """Create and persist a job firing whenever ``expression`` matches.

        Raises:
            FormatError: If ``expression`` does not parse.
            ValidationError: If ``callback`` is malformed or ``timezone`` is unknown.
        """
        parse_expression(expression)
        job = self.new_job(
            expression,
            callback,
            name=name,
            scheduled=scheduled,
            timezone=timezone,
        )
        return self.store.append(job)

    def get_jobs(self) -> list[Job]:
        return self.store.load()

    def get_job(self, job_id: str) -> Job | None:
        return self.store.get(job_id)

    def clear_jobs(self) -> None:
        self.store.clear()

    # ------------------------------------------------------------------
    # Tick
    # ------------------------------------------------------------------

    def _record_failure(self, result: RunResult, job: Job, exc: BaseException) -> None:
        error = JobError(job.id, job.name, exc)
        logger.error("%s", error.message, exc_info=exc)
        result.job_ids.append(job.id)
        result.results.append(error)
        result.errors.append(error)

    def run(self, now: datetime | None = None) -> RunResult:
        """Run every job due at ``now`` (defaults to the clock).

        Returns:
            The :class:`RunResult` when every due job succeeded.

        Raises:
            BatchError: If at least one due job failed. The full result is
                available as ``BatchError.result``.
        """
        now = now if now is not None else self._clock()
        result = RunResult(started_at=now)
        self.last_result = result

        jobs = self.store.load()
        if not jobs:
            logger.debug("No jobs stored, nothing to run")
            return result

        for job in jobs:
            try:
                due = job.is_due_at(now)
            except Exception as exc:
                self._record_failure(result, job, exc)
                continue
            if not due:
                continue

            logger.info("Running job %s (%s)", job.id, job.callback)
            try:
                outcome = job.run(self.registry)
            except Exception as exc:
                self._record_failure(result, job, exc)
                continue
            result.job_ids.append(job.id)
            result.results.append(outcome)

        logger.info(
            "Tick %s: %d due, %d failed",
            now.isoformat(timespec="minutes"),
            len(result.job_ids),
            len(result.errors),
        )
        if result.errors:
            raise BatchError([error.message for error in result.errors], result)
        return result


def create_scheduler(settings: Settings, registry: CallbackRegistry | None = None) -> Scheduler:
    """Wire store, backend and registry from ``settings``.

    Every module listed in ``settings.callback_modules`` is imported and
    registered so jobs can reach its functions by dotted name.
    """
    registry = registry if registry is not None else CallbackRegistry()
    for module_name in settings.callback_modules:
        registry.register_module(module_name)

    store = JobStore(
        create_storage_backend(settings),
        key=settings.storage_key,
        default_timezone=settings.default_timezone,
    )
    return Scheduler(store, registry)
