"""Job entity — a cron expression bound to a callback name."""

from __future__ import annotations

import logging
import uuid
from collections.abc import Sequence
from datetime import datetime
from typing import TYPE_CHECKING, Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from cronjobs.cron import ParsedExpression, parse_expression
from cronjobs.errors import ValidationError
from cronjobs.registry import normalize_callback, protected_segments

if TYPE_CHECKING:
    from cronjobs.jobs.store import JobStore
    from cronjobs.registry import CallbackRegistry

logger = logging.getLogger(__name__)

DEFAULT_TIMEZONE = "UTC"

# Persisted record layout, one position per field
RECORD_FIELDS: tuple[str, ...] = (
    "id",
    "name",
    "scheduled",
    "callback",
    "expression",
    "timezone",
)


def _new_id() -> str:
    return uuid.uuid1().hex


def _clean_name(name: object) -> str | None:
    if isinstance(name, str) and name.strip():
        return name.strip()
    return None


def _check_timezone(timezone: str) -> str:
    try:
        ZoneInfo(timezone)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        msg = f"Unknown timezone '{timezone}'"
        raise ValidationError(msg) from exc
    return timezone


class Job:
    """A scheduled unit of work.

    The job keeps its parsed expression cached until the expression changes.
    When bound to a :class:`JobStore` every state change is written back.
    """

    def __init__(
        self,
        expression: str,
        callback: str,
        *,
        job_id: str | None = None,
        name: str | None = None,
        scheduled: bool = True,
        timezone: str | None = None,
        default_timezone: str = DEFAULT_TIMEZONE,
        store: JobStore | None = None,
    ) -> None:
        self.id = str(job_id) if job_id is not None else _new_id()
        self.name = _clean_name(name)
        self.callback = normalize_callback(callback)
        if not self.callback:
            msg = f"Callback reference '{callback}' is empty"
            raise ValidationError(msg)
        forbidden = protected_segments(self.callback)
        if forbidden:
            msg = (
                f"Callback reference '{self.callback}' must not contain segments "
                f"starting or ending with '_' (got '{forbidden[0]}')"
            )
            raise ValidationError(msg)

        self.scheduled = scheduled if isinstance(scheduled, bool) else True
        self.default_timezone = default_timezone
        self.timezone: str | None = None
        if isinstance(timezone, str) and timezone != default_timezone:
            self.timezone = _check_timezone(timezone)

        self._expression = expression
        self._parsed: ParsedExpression | None = None
        self._store = store

    def __repr__(self) -> str:
        return (
            f"Job(id={self.id!r}, name={self.name!r}, expression={self._expression!r}, "
            f"callback={self.callback!r}, scheduled={self.scheduled!r})"
        )

    # ------------------------------------------------------------------
    # Persisted form
    # ------------------------------------------------------------------

    def serialize(self) -> list[Any]:
        """Return the fixed six-element record stored for this job."""
        return [
            self.id,
            self.name,
            self.scheduled,
            self.callback,
            self._expression,
            self.timezone,
        ]

    @classmethod
    def deserialize(
        cls,
        entry: Sequence[Any],
        *,
        default_timezone: str = DEFAULT_TIMEZONE,
        store: JobStore | None = None,
    ) -> Job:
        """Rebuild a job from a record produced by :meth:`serialize`.

        Raises:
            ValueError: If ``entry`` is not a six-element sequence.
            ValidationError: If the stored callback reference is malformed or its
                timezone is unknown.
        """
        if isinstance(entry, (str, bytes)) or len(entry) != len(RECORD_FIELDS):
            msg = f"Job record must have {len(RECORD_FIELDS)} elements: {entry!r}"
            raise ValueError(msg)
        job_id, name, scheduled, callback, expression, timezone = entry
        return cls(
            expression,
            callback,
            job_id=job_id,
            name=name,
            scheduled=scheduled,
            timezone=timezone,
            default_timezone=default_timezone,
            store=store,
        )

    def bind(self, store: JobStore | None) -> Job:
        self._store = store
        return self

    def _persist(self) -> None:
        if self._store is not None:
            self._store.replace_by_id(self)

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def expression(self) -> str:
        return self._expression

    @property
    def parsed_expression(self) -> ParsedExpression:
        """Parsed form of :attr:`expression`, computed on first use."""
        if self._parsed is None:
            self._parsed = parse_expression(self._expression)
        return self._parsed

    def get_name(self) -> str | None:
        return self.name

    def set_name(self, name: str | None) -> Job:
        self.name = _clean_name(name)
        self._persist()
        return self

    def set_expression(self, expression: str) -> Job:
        """Replace the expression; raises ``FormatError`` if it does not parse."""
        parsed = parse_expression(expression)
        self._expression = expression
        self._parsed = parsed
        self._persist()
        return self

    def get_timezone(self) -> str:
        return self.timezone or self.default_timezone

    def set_timezone(self, timezone: str | None) -> Job:
        if timezone and timezone != self.default_timezone:
            self.timezone = _check_timezone(timezone)
        else:
            self.timezone = None
        self._persist()
        return self

    def is_scheduled(self) -> bool:
        return self.scheduled is True

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> Job:
        """Resume the job. No store write happens if it is already scheduled."""
        if self.scheduled is not True:
            self.scheduled = True
            self._persist()
            logger.info("Job %s started", self.id)
        return self

    def stop(self) -> Job:
        """Pause the job. No store write happens if it is already stopped."""
        if self.scheduled is not False:
            self.scheduled = False
            self._persist()
            logger.info("Job %s stopped", self.id)
        return self

    # ------------------------------------------------------------------
    # Schedule evaluation
    # ------------------------------------------------------------------

    def _local(self, instant: datetime) -> datetime:
        # Aware instants are read on the job's wall clock; naive ones as given
        if instant.tzinfo is None:
            return instant
        return instant.astimezone(ZoneInfo(self.get_timezone()))

    def is_due_at(self, instant: datetime) -> bool:
        """Whether the job should fire at ``instant`` (minute resolution).

        Raises:
            FormatError: If the stored expression cannot be parsed.
        """
        if self.scheduled is not True:
            return False
        return self.parsed_expression.matches(self._local(instant))

    def is_due(self) -> bool:
        return self.is_due_at(datetime.now(ZoneInfo(self.get_timezone())))

    def next_run_time(self, after: datetime | None = None) -> datetime | None:
        """Next minute at which the job fires, or ``None`` if it never will."""
        if after is None:
            after = datetime.now(ZoneInfo(self.get_timezone()))
        return self.parsed_expression.next_match(self._local(after))

    # ------------------------------------------------------------------
    # Invocation
    # ------------------------------------------------------------------

    def run(self, registry: CallbackRegistry) -> Any:
        """Resolve the callback through ``registry`` and call it with this job."""
        target = registry.resolve(self.callback)
        return target(self)
