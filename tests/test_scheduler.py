from __future__ import annotations

from unittest.mock import MagicMock

from apscheduler.triggers.interval import IntervalTrigger

from forex_watch import create_app
from forex_watch.providers import MockRateProvider
from forex_watch.services.currency_registry import CurrencyPair
from forex_watch.services.rate_fetcher import RateFetcher
from forex_watch.services.rate_store import RateStore
from forex_watch.services.scheduler import JOB_ID, RateScheduler


def make_fetcher() -> RateFetcher:
    return RateFetcher(MockRateProvider(), RateStore(), [CurrencyPair("USD", "JPY")])


def test_start_registers_interval_job_that_runs_immediately():
    backend = MagicMock()
    backend.running = False
    fetcher = make_fetcher()
    scheduler = RateScheduler(fetcher, interval_minutes=15, scheduler=backend)

    scheduler.start()

    backend.add_job.assert_called_once()
    args, kwargs = backend.add_job.call_args
    assert args[0] == fetcher.run_cycle
    assert isinstance(kwargs["trigger"], IntervalTrigger)
    assert kwargs["trigger"].interval.total_seconds() == 15 * 60
    assert kwargs["id"] == JOB_ID
    assert kwargs["next_run_time"] is not None
    assert kwargs["max_instances"] == 1
    assert kwargs["coalesce"] is True
    backend.start.assert_called_once()


def test_start_is_noop_when_already_running():
    backend = MagicMock()
    backend.running = True

    RateScheduler(make_fetcher(), interval_minutes=15, scheduler=backend).start()

    backend.add_job.assert_not_called()
    backend.start.assert_not_called()


def test_stop_shuts_down_without_waiting_for_inflight_cycle():
    backend = MagicMock()
    backend.running = True

    RateScheduler(make_fetcher(), interval_minutes=15, scheduler=backend).stop()

    backend.shutdown.assert_called_once_with(wait=False)


def test_stop_is_noop_when_not_running():
    backend = MagicMock()
    backend.running = False

    RateScheduler(make_fetcher(), interval_minutes=15, scheduler=backend).stop()

    backend.shutdown.assert_not_called()


def test_scheduled_job_fills_store():
    store = RateStore()
    fetcher = RateFetcher(MockRateProvider(), store, [CurrencyPair("USD", "JPY")])
    backend = MagicMock()
    backend.running = False
    RateScheduler(fetcher, interval_minutes=1, scheduler=backend).start()

    job = backend.add_job.call_args.args[0]
    job()

    assert store.get_rate("USD", "JPY", 60_000) is not None


def test_disabled_scheduler_still_builds_fetcher(app):
    assert "rate_scheduler" not in app.extensions
    fetcher = app.extensions["rate_fetcher"]
    assert fetcher.pairs == [CurrencyPair("USD", "JPY"), CurrencyPair("USD", "EUR")]


def test_enabled_scheduler_starts_on_app_creation(monkeypatch):
    started = []
    monkeypatch.setattr(RateScheduler, "start", lambda self: started.append(self))
    monkeypatch.setattr("config.TestingConfig.SCHEDULER_ENABLED", True)

    app = create_app("testing")

    assert started == [app.extensions["rate_scheduler"]]
