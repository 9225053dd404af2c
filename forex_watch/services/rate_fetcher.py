"""Fetch cycle that refreshes the rate store from the configured provider."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from time import perf_counter
from typing import Any

from forex_watch.errors import APIError
from forex_watch.logging import rate_event
from forex_watch.providers import BaseRateProvider
from forex_watch.services.currency_registry import CurrencyPair
from forex_watch.services.rate_store import RateStore
from forex_watch.utils.datetime import hour_in_timezone, utc_now

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ActiveWindow:
    """Hours ``[start_hour, end_hour)`` in ``timezone`` during which fetching is allowed."""

    start_hour: int = 0
    end_hour: int = 24
    timezone: str = "UTC"

    def contains(self, moment: datetime) -> bool:
        hour = hour_in_timezone(moment, self.timezone)
        return self.start_hour <= hour < self.end_hour

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> ActiveWindow:
        return cls(
            start_hour=int(config.get("RATE_ACTIVE_START_HOUR", 0)),
            end_hour=int(config.get("RATE_ACTIVE_END_HOUR", 24)),
            timezone=str(config.get("RATE_ACTIVE_TIMEZONE", "UTC")),
        )


@dataclass
class FetchCycleResult:
    """Outcome of one fetch cycle, keyed by base currency."""

    started_at: datetime
    finished_at: datetime | None = None
    skipped: bool = False
    succeeded: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)


def group_by_base(pairs: Iterable[CurrencyPair]) -> dict[str, list[str]]:
    """Group quotes under their base, keeping first-seen order and dropping repeats."""

    grouped: dict[str, list[str]] = {}
    for base, quote in pairs:
        quotes = grouped.setdefault(base, [])
        if quote not in quotes:
            quotes.append(quote)
    return grouped


class RateFetcher:
    """Refresh the rate store for every configured pair, one base at a time.

    A cycle never raises: a failing base is logged, its previously stored
    rates are flagged stale, and the remaining bases are still fetched.
    Overlapping cycles are prevented with a non-blocking in-progress lock.
    """

    def __init__(
        self,
        provider: BaseRateProvider,
        store: RateStore,
        pairs: Iterable[CurrencyPair],
        *,
        active_window: ActiveWindow | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._provider = provider
        self._store = store
        self._pairs = list(pairs)
        self._active_window = active_window or ActiveWindow()
        self._clock = clock
        self._cycle_lock = threading.Lock()
        self.last_result: FetchCycleResult | None = None

    @property
    def pairs(self) -> list[CurrencyPair]:
        return list(self._pairs)

    @property
    def active_window(self) -> ActiveWindow:
        return self._active_window

    @property
    def in_progress(self) -> bool:
        return self._cycle_lock.locked()

    def run_cycle(self, *, force: bool = False) -> FetchCycleResult | None:
        """Run one fetch cycle; returns None when a previous cycle is still running."""

        if not self._cycle_lock.acquire(blocking=False):
            logger.warning(
                "Skipping rate fetch (previous cycle still running)",
                extra=rate_event("rates.cycle", status="overlap"),
            )
            return None

        try:
            return self._run_cycle(force=force)
        finally:
            self._cycle_lock.release()

    def _run_cycle(self, *, force: bool) -> FetchCycleResult:
        started_at = self._clock()
        result = FetchCycleResult(started_at=started_at)

        if not force and not self._active_window.contains(started_at):
            logger.debug(
                "Skipping rate fetch (outside active window)",
                extra=rate_event("rates.cycle", status="skipped"),
            )
            result.skipped = True
            result.finished_at = started_at
            self.last_result = result
            return result

        for base, quotes in group_by_base(self._pairs).items():
            error = self._fetch_for_base(base, quotes)
            if error is None:
                result.succeeded.append(base)
            else:
                result.failed[base] = error

        result.finished_at = self._clock()
        self.last_result = result
        logger.info(
            "Rate fetch cycle finished (%s succeeded, %s failed)",
            len(result.succeeded),
            len(result.failed),
            extra=rate_event(
                "rates.cycle",
                status="error" if result.failed else "success",
                succeeded=result.succeeded,
                failed=sorted(result.failed),
            ),
        )
        return result

    def _fetch_for_base(self, base: str, quotes: list[str]) -> str | None:
        provider_name = getattr(self._provider, "name", self._provider.__class__.__name__)
        start = perf_counter()
        try:
            rates = self._provider.get_latest_rates(base, quotes)
        except Exception as exc:
            duration = (perf_counter() - start) * 1000
            error = _describe_error(exc)
            extra = rate_event(
                "rates.fetch",
                provider=provider_name,
                base=base,
                quotes=quotes,
                status="error",
                duration_ms=duration,
                stale=True,
                error=error,
            )
            if isinstance(exc, APIError):
                logger.error("Rate fetch failed", extra=extra)
            else:
                logger.exception("Rate fetch failed unexpectedly", extra=extra)
            self._mark_stale(base, quotes)
            return error

        duration = (perf_counter() - start) * 1000
        self._store.save_rates(rates, stale=False)
        logger.info(
            "Fetched rates successfully",
            extra=rate_event(
                "rates.fetch",
                provider=provider_name,
                base=base,
                quotes=quotes,
                status="success",
                duration_ms=duration,
                stale=False,
            ),
        )
        return None

    def _mark_stale(self, base: str, quotes: list[str]) -> None:
        for quote in quotes:
            self._store.mark_stale(base, quote)


def _describe_error(exc: Exception) -> str:
    # Raw exception text may carry request URLs; only our own messages are kept.
    if isinstance(exc, APIError):
        return f"{exc.code}: {exc.message}"
    return exc.__class__.__name__


def init_fetcher(app) -> RateFetcher:
    """Build the rate fetcher from the app's provider, store and configured pairs."""

    fetcher = RateFetcher(
        provider=app.extensions["rate_provider"],
        store=app.extensions["rate_store"],
        pairs=app.extensions.get("rate_pairs", ()),
        active_window=ActiveWindow.from_config(app.config),
    )
    app.extensions["rate_fetcher"] = fetcher
    return fetcher
