"""Serve-mode orchestrator — ticks the scheduler every minute with a health check."""

from __future__ import annotations

import logging
import signal
import threading
import time
from typing import TYPE_CHECKING, Any

from cronjobs.errors import BatchError
from cronjobs.scheduler.health_check import start_health_check
from cronjobs.scheduler.scheduler import Scheduler, create_scheduler
from cronjobs.scheduler.timer import TickTimer

if TYPE_CHECKING:
    from cronjobs.config.settings import Settings
    from cronjobs.registry import CallbackRegistry

logger = logging.getLogger(__name__)


def _run_tick(scheduler: Scheduler) -> None:
    """Run one tick. Used as the timer target, so nothing may escape."""
    try:
        scheduler.run()
    except BatchError as exc:
        logger.warning("Tick finished with %d failed job(s)", exc.count)
    except Exception:
        logger.exception("Fatal error during tick")


def _status(scheduler: Scheduler) -> dict[str, Any]:
    last = scheduler.last_result
    return {"last_tick": last.summary() if last is not None else None}


def serve(settings: Settings, registry: CallbackRegistry | None = None) -> None:
    """Tick the scheduler once a minute and block forever.

    This is the entry point for ``python -m cronjobs serve``. Starts a
    health-check HTTP server when enabled and blocks until SIGINT/SIGTERM.
    """
    scheduler = create_scheduler(settings, registry)

    timer = TickTimer(timezone=settings.default_timezone)
    timer.add_tick(_run_tick, scheduler)

    server = None
    if settings.health_check_enabled:
        server, _ = start_health_check(
            lambda: _status(scheduler),
            port=settings.health_check_port,
            path=settings.health_check_path,
        )

    timer.start()
    logger.info("Serve mode active — %d job(s) stored", len(scheduler.get_jobs()))

    # Block until signal
    stop_event = threading.Event()

    def _handle_signal(signum: int, frame: object) -> None:
        logger.info("Received signal %d, shutting down...", signum)
        stop_event.set()

    signal.signal(signal.SIGINT, _handle_signal)
    signal.signal(signal.SIGTERM, _handle_signal)

    try:
        while not stop_event.is_set():
            time.sleep(1)
    finally:
        timer.shutdown()
        if server:
            server.shutdown()
        logger.info("Serve mode stopped")
