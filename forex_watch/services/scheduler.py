"""Scheduler setup for periodic FX rate refresh."""

from __future__ import annotations

import atexit
import logging

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger
from flask import Flask

from forex_watch.logging import rate_event
from forex_watch.services.rate_fetcher import RateFetcher, init_fetcher
from forex_watch.utils.datetime import utc_now

logger = logging.getLogger(__name__)

SCHEDULER_EXT_KEY = "rate_scheduler"
JOB_ID = "fetch_rates"


class RateScheduler:
    """Run ``RateFetcher.run_cycle`` on a fixed interval in a background thread."""

    def __init__(
        self,
        fetcher: RateFetcher,
        interval_minutes: int,
        timezone: str = "UTC",
        scheduler: BackgroundScheduler | None = None,
    ) -> None:
        self._fetcher = fetcher
        self._interval_minutes = interval_minutes
        self._scheduler = scheduler or BackgroundScheduler(timezone=timezone)

    @property
    def running(self) -> bool:
        return bool(getattr(self._scheduler, "running", False))

    def start(self) -> None:
        """Start ticking; the first cycle runs immediately to warm the cache."""

        if self.running:
            return
        self._scheduler.add_job(
            self._fetcher.run_cycle,
            trigger=IntervalTrigger(minutes=self._interval_minutes),
            id=JOB_ID,
            next_run_time=utc_now(),
            max_instances=1,
            coalesce=True,
            replace_existing=True,
        )
        self._scheduler.start()
        logger.info(
            "Starting rate fetcher every %s minutes",
            self._interval_minutes,
            extra=rate_event(
                "rates.scheduler",
                status="started",
                interval_minutes=self._interval_minutes,
                pairs=[str(pair) for pair in self._fetcher.pairs],
                active_window=vars(self._fetcher.active_window),
            ),
        )

    def stop(self) -> None:
        """Cancel future ticks. A cycle already in flight is left to finish."""

        if not self.running:
            return
        self._scheduler.shutdown(wait=False)
        logger.info("Stopped rate fetcher", extra=rate_event("rates.scheduler", status="stopped"))


def init_scheduler(app: Flask) -> RateScheduler | None:
    """Build the fetcher and, if enabled, start the interval scheduler."""

    fetcher = app.extensions.get("rate_fetcher") or init_fetcher(app)

    if not app.config.get("SCHEDULER_ENABLED", True):
        logger.info("Scheduler disabled via configuration.", extra=rate_event("rates.scheduler", status="disabled"))
        return None

    if app.extensions.get(SCHEDULER_EXT_KEY):
        return app.extensions[SCHEDULER_EXT_KEY]

    scheduler = RateScheduler(
        fetcher,
        interval_minutes=int(app.config.get("RATE_FETCH_INTERVAL_MINUTES", 30)),
        timezone=app.config.get("RATE_ACTIVE_TIMEZONE", "UTC"),
    )
    scheduler.start()
    atexit.register(scheduler.stop)
    app.extensions[SCHEDULER_EXT_KEY] = scheduler
    return scheduler
