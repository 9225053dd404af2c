from __future__ import annotations

from collections.abc import Sequence
from datetime import UTC, datetime
from decimal import Decimal

import pytest
import responses
from requests.exceptions import ConnectionError as RequestsConnectionError

from forex_watch.providers import BaseRateProvider, ExchangeRate, MockRateProvider, ProviderError
from forex_watch.providers.freecurrency_client import FreecurrencyClient, FreecurrencyClientConfig
from forex_watch.providers.freecurrency_provider import FreecurrencyProvider
from forex_watch.services.currency_registry import CurrencyPair, parse_rate_pairs
from forex_watch.services.rate_fetcher import ActiveWindow, RateFetcher, group_by_base
from forex_watch.services.rate_store import RateStore

NOON_UTC = datetime(2025, 10, 16, 12, 0, tzinfo=UTC)


class RecordingProvider(BaseRateProvider):
    """Stub provider that records calls and fails for configured bases."""

    name = "recording"

    def __init__(self, failing: Sequence[str] = (), error: Exception | None = None) -> None:
        self.calls: list[tuple[str, list[str]]] = []
        self.failing = set(failing)
        self.error = error or ProviderError("upstream down")

    def get_latest_rate(self, base: str, quote: str) -> ExchangeRate:
        return self.get_latest_rates(base, [quote])[0]

    def get_latest_rates(self, base: str, quotes: Sequence[str]) -> list[ExchangeRate]:
        self.calls.append((base, list(quotes)))
        if base in self.failing:
            raise self.error
        return [
            ExchangeRate(base=base, quote=quote, rate=Decimal("2"), timestamp=NOON_UTC, provider=self.name)
            for quote in quotes
        ]


def make_fetcher(provider, store, pairs, *, window=None, now=NOON_UTC) -> RateFetcher:
    return RateFetcher(
        provider=provider,
        store=store,
        pairs=pairs,
        active_window=window or ActiveWindow(0, 24, "UTC"),
        clock=lambda: now,
    )


def test_group_by_base_preserves_order_and_drops_repeats():
    pairs = [
        CurrencyPair("USD", "JPY"),
        CurrencyPair("EUR", "USD"),
        CurrencyPair("USD", "EUR"),
        CurrencyPair("USD", "JPY"),
    ]

    assert group_by_base(pairs) == {"USD": ["JPY", "EUR"], "EUR": ["USD"]}


def test_mock_cycle_populates_store_with_fresh_rates():
    store = RateStore()
    fetcher = RateFetcher(MockRateProvider(), store, parse_rate_pairs("USD:JPY, USD:EUR"))

    result = fetcher.run_cycle()

    assert result.succeeded == ["USD"]
    assert result.failed == {}
    for quote in ("JPY", "EUR"):
        stored = store.get_rate("USD", quote, 60_000)
        assert stored is not None
        assert stored.stale is False
        assert stored.rate == 1
        assert stored.provider == "mock"


def test_cycle_batches_quotes_per_base_sequentially():
    provider = RecordingProvider()
    store = RateStore()
    pairs = parse_rate_pairs("USD:JPY,EUR:GBP,USD:EUR")

    make_fetcher(provider, store, pairs).run_cycle()

    assert provider.calls == [("USD", ["JPY", "EUR"]), ("EUR", ["GBP"])]
    assert len(store) == 3


def test_failed_base_does_not_block_other_bases():
    provider = RecordingProvider(failing=["USD"])
    store = RateStore()
    pairs = parse_rate_pairs("USD:JPY,EUR:GBP")

    result = make_fetcher(provider, store, pairs).run_cycle()

    assert result.succeeded == ["EUR"]
    assert "RATE_PROVIDER_ERROR" in result.failed["USD"]
    assert store.get_rate("EUR", "GBP", 60_000) is not None
    assert store.get_rate("USD", "JPY", 60_000) is None


def test_failure_keeps_previous_rate_but_marks_it_stale():
    store = RateStore(clock=lambda: NOON_UTC)
    previous = ExchangeRate(base="USD", quote="JPY", rate=Decimal("149.5"), timestamp=NOON_UTC, provider="mock")
    store.save_rates([previous], stale=False)
    provider = RecordingProvider(failing=["USD"])

    make_fetcher(provider, store, parse_rate_pairs("USD:JPY,USD:EUR")).run_cycle()

    stored = store.get_rate("USD", "JPY", 60_000)
    assert stored.rate == Decimal("149.5")
    assert stored.provider == "mock"
    assert stored.timestamp == NOON_UTC
    assert stored.stale is True
    assert store.get_rate("USD", "EUR", 60_000) is None


def test_unexpected_exceptions_never_escape_cycle():
    provider = RecordingProvider(failing=["USD"], error=RuntimeError("boom"))
    store = RateStore()

    result = make_fetcher(provider, store, parse_rate_pairs("USD:JPY")).run_cycle()

    assert result.failed == {"USD": "RuntimeError"}


def test_successful_fetch_clears_stale_flag():
    store = RateStore(clock=lambda: NOON_UTC)
    store.save_rates(
        [ExchangeRate(base="USD", quote="JPY", rate=Decimal("149.5"), timestamp=NOON_UTC, provider="mock")],
        stale=True,
    )

    make_fetcher(RecordingProvider(), store, parse_rate_pairs("USD:JPY")).run_cycle()

    stored = store.get_rate("USD", "JPY", 60_000)
    assert stored.stale is False
    assert stored.rate == Decimal("2")


@responses.activate
def test_network_failure_with_real_provider_marks_prior_rate_stale():
    responses.add(
        responses.GET,
        "https://api.freecurrencyapi.com/v1/latest",
        body=RequestsConnectionError("network unreachable"),
    )
    provider = FreecurrencyProvider(
        FreecurrencyClient(FreecurrencyClientConfig(api_key="key", timeout_ms=100, retry_count=1))
    )
    store = RateStore(clock=lambda: NOON_UTC)
    store.save_rates(
        [ExchangeRate(base="USD", quote="EUR", rate=Decimal("0.9123"), timestamp=NOON_UTC, provider="freecurrencyapi")]
    )

    result = make_fetcher(provider, store, parse_rate_pairs("USD:EUR")).run_cycle()

    assert "USD" in result.failed
    assert len(responses.calls) == 2
    stored = store.get_rate("USD", "EUR", 60_000)
    assert stored.rate == Decimal("0.9123")
    assert stored.stale is True


@responses.activate
def test_outside_active_window_performs_no_calls_and_no_writes():
    provider = RecordingProvider()
    store = RateStore()
    window = ActiveWindow(start_hour=8, end_hour=18, timezone="America/New_York")
    # 23:30 UTC is 19:30 in New York during daylight saving time.
    late = datetime(2025, 7, 1, 23, 30, tzinfo=UTC)

    result = make_fetcher(provider, store, parse_rate_pairs("USD:JPY"), window=window, now=late).run_cycle()

    assert result.skipped is True
    assert provider.calls == []
    assert len(store) == 0
    assert len(responses.calls) == 0


def test_force_bypasses_active_window():
    provider = RecordingProvider()
    store = RateStore()
    window = ActiveWindow(start_hour=8, end_hour=9, timezone="UTC")

    result = make_fetcher(provider, store, parse_rate_pairs("USD:JPY"), window=window).run_cycle(force=True)

    assert result.skipped is False
    assert provider.calls == [("USD", ["JPY"])]


@pytest.mark.parametrize(
    ("moment", "expected"),
    [
        (datetime(2025, 1, 15, 0, 0, tzinfo=UTC), True),  # 09:00 Tokyo
        (datetime(2025, 1, 14, 23, 59, tzinfo=UTC), False),  # 08:59 Tokyo
        (datetime(2025, 1, 15, 8, 59, tzinfo=UTC), True),  # 17:59 Tokyo
        (datetime(2025, 1, 15, 9, 0, tzinfo=UTC), False),  # 18:00 Tokyo, end is exclusive
    ],
)
def test_active_window_uses_configured_timezone(moment, expected):
    window = ActiveWindow(start_hour=9, end_hour=18, timezone="Asia/Tokyo")

    assert window.contains(moment) is expected


def test_full_day_window_always_contains():
    window = ActiveWindow.from_config({})

    assert window.contains(datetime(2025, 1, 1, 23, 59, tzinfo=UTC))
    assert window.contains(datetime(2025, 1, 1, 0, 0, tzinfo=UTC))


def test_overlapping_cycle_is_skipped():
    provider = RecordingProvider()
    fetcher = make_fetcher(provider, RateStore(), parse_rate_pairs("USD:JPY"))

    fetcher._cycle_lock.acquire()
    try:
        assert fetcher.in_progress is True
        assert fetcher.run_cycle() is None
    finally:
        fetcher._cycle_lock.release()

    assert provider.calls == []
    assert fetcher.in_progress is False


def test_empty_pair_list_runs_a_cycle_that_does_nothing():
    provider = RecordingProvider()
    fetcher = make_fetcher(provider, RateStore(), parse_rate_pairs("XXX:YYY"))

    result = fetcher.run_cycle()

    assert result.skipped is False
    assert result.succeeded == []
    assert provider.calls == []
    assert fetcher.last_result is result
