"""cronjobs — cron-expression job scheduling with per-tick dispatch."""

from cronjobs.cron import ParsedExpression, is_valid_expression, parse_expression
from cronjobs.errors import (
    BatchError,
    CronJobsError,
    FormatError,
    JobError,
    ResolutionError,
    SecurityError,
    ValidationError,
)
from cronjobs.jobs import Job, JobStore
from cronjobs.registry import CallbackRegistry
from cronjobs.scheduler.scheduler import RunResult, Scheduler

__version__ = "1.0.0"

__all__ = [
    "BatchError",
    "CallbackRegistry",
    "CronJobsError",
    "FormatError",
    "Job",
    "JobError",
    "JobStore",
    "ParsedExpression",
    "ResolutionError",
    "RunResult",
    "Scheduler",
    "SecurityError",
    "ValidationError",
    "is_valid_expression",
    "parse_expression",
]
