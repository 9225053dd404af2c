"""In-memory cache of the latest known rate per currency pair."""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterable
from datetime import datetime

from forex_watch.providers.schemas import ExchangeRate, StoredRate
from forex_watch.services.currency_registry import CurrencyPair
from forex_watch.utils.datetime import age_ms, utc_now


class RateStore:
    """Latest rate per ordered ``(base, quote)`` pair with read-time staleness.

    The rate fetcher is the only writer; query handlers read concurrently from
    request threads while the scheduler thread writes, so every access to the
    underlying dict happens under a lock. Entries are overwritten, never
    evicted.
    """

    def __init__(self, clock: Callable[[], datetime] = utc_now) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: dict[CurrencyPair, StoredRate] = {}

    def save_rates(self, rates: Iterable[ExchangeRate], stale: bool = False) -> None:
        with self._lock:
            for rate in rates:
                self._entries[CurrencyPair(rate.base, rate.quote)] = StoredRate.from_rate(rate, stale=stale)

    def get_rate(self, base: str, quote: str, ttl_ms: int) -> StoredRate | None:
        key = CurrencyPair(base.upper(), quote.upper())
        with self._lock:
            entry = self._entries.get(key)
        if entry is None:
            return None
        return self._with_staleness(entry, ttl_ms, self._clock())

    def get_all_rates(self, ttl_ms: int) -> list[StoredRate]:
        with self._lock:
            entries = sorted(self._entries.values(), key=lambda entry: entry.pair)
        now = self._clock()
        return [self._with_staleness(entry, ttl_ms, now) for entry in entries]

    def mark_stale(self, base: str, quote: str) -> StoredRate | None:
        """Flag an existing entry stale, keeping its rate, timestamp and provider."""

        key = CurrencyPair(base.upper(), quote.upper())
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            flagged = entry.with_stale(True)
            self._entries[key] = flagged
            return flagged

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    @staticmethod
    def _with_staleness(entry: StoredRate, ttl_ms: int, now: datetime) -> StoredRate:
        expired = age_ms(entry.timestamp, now) > ttl_ms
        return entry.with_stale(entry.stale or expired)


def init_rate_store(app) -> RateStore:
    """Create the application's rate store and attach it to the Flask app."""

    store = RateStore()
    app.extensions["rate_store"] = store
    return store
