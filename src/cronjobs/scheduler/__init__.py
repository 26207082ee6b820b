"""Scheduler package — tick loop, per-minute timer, health check and serve-mode runner."""

from cronjobs.scheduler.health_check import start_health_check
from cronjobs.scheduler.runner import serve
from cronjobs.scheduler.scheduler import RunResult, Scheduler, create_scheduler
from cronjobs.scheduler.timer import TickTimer

__all__ = [
    "RunResult",
    "Scheduler",
    "TickTimer",
    "create_scheduler",
    "serve",
    "start_health_check",
]
