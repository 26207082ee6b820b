"""Thin wrapper around APScheduler v3 that fires a callback once per minute."""

from __future__ import annotations

import logging
from typing import Any, Callable

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger

logger = logging.getLogger(__name__)

TICK_JOB_ID = "cron-tick"


class TickTimer:
    """Calls a function at second 0 of every minute on a background thread."""

    def __init__(self, timezone: str = "UTC") -> None:
        self._timezone = timezone
        self._scheduler = BackgroundScheduler(timezone=timezone)

    def add_tick(self, func: Callable[..., Any], *args: Any) -> None:
        """Register ``func(*args)`` as the per-minute tick.

        A tick that is still running when the next one is due is not
        started twice; missed ticks collapse into one.
        """
        trigger = CronTrigger(minute="*", second=0, timezone=self._timezone)
        self._scheduler.add_job(
            func,
            trigger,
            args=list(args),
            id=TICK_JOB_ID,
            max_instances=1,
            coalesce=True,
            replace_existing=True,
        )
        logger.info("Tick registered: every minute (%s)", self._timezone)

    def start(self) -> None:
        """Start the timer."""
        self._scheduler.start()
        logger.info("Timer started")

    def shutdown(self, wait: bool = True) -> None:
        """Shut down the timer."""
        self._scheduler.shutdown(wait=wait)
        logger.info("Timer shut down")

    @property
    def running(self) -> bool:
        """Whether the timer is currently running."""
        return self._scheduler.running
