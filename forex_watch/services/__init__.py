"""Service layer modules."""

from .currency_registry import CurrencyPair, init_registry, parse_rate_pairs, registry
from .rate_fetcher import ActiveWindow, FetchCycleResult, RateFetcher, group_by_base, init_fetcher
from .rate_store import RateStore, init_rate_store
from .scheduler import RateScheduler, init_scheduler
