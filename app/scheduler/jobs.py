"""
app/scheduler/jobs.py

APScheduler wiring for the fan-out relay.

Lifecycle
----------
Call ``build_scheduler()`` once to get a configured ``BackgroundScheduler``.
Start it on app boot; shut it down gracefully on app shutdown.
The scheduler is wired into FastAPI via the ``lifespan`` context in main.py.
"""

from __future__ import annotations

import logging

from apscheduler.schedulers.background import BackgroundScheduler

from app.config import get_fan_out_relay_settings
from app.services.fan_out_relay import FanOutRelay, FanOutRelaySummary

logger = logging.getLogger(__name__)


def run_fan_out_relay() -> FanOutRelaySummary | None:
    """
    Drain one batch of pending fan-out messages.

    Failures are logged and left for the next tick; the messages that were
    not handled stay pending.
    """

    settings = get_fan_out_relay_settings()
    relay = FanOutRelay(batch_size=settings.batch_size, max_attempts=settings.max_attempts)
    try:
        return relay.process_pending()
    except Exception:
        logger.exception("Scheduler: fan_out_relay failed")
        return None


def build_scheduler() -> BackgroundScheduler:
    """
    Build and register the periodic jobs.

    Returns a configured but *not yet started* ``BackgroundScheduler``.
    No job is registered when FAN_OUT_RELAY_ENABLED is false.
    """

    scheduler = BackgroundScheduler(timezone="UTC")
    settings = get_fan_out_relay_settings()

    if settings.enabled:
        scheduler.add_job(
            run_fan_out_relay,
            trigger="interval",
            seconds=settings.interval_seconds,
            id="fan_out_relay",
            name="Fan-out outbox relay",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
    else:
        logger.info("Scheduler: fan_out_relay disabled by FAN_OUT_RELAY_ENABLED")

    return scheduler
