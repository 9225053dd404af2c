"""Mock provider implementation for testing and local development."""

from __future__ import annotations

import logging
from decimal import Decimal

from forex_watch.utils.datetime import utc_now

from .base import BaseRateProvider
from .schemas import ExchangeRate

logger = logging.getLogger(__name__)

MOCK_RATE = Decimal("1")


class MockRateProvider(BaseRateProvider):
    """Deterministic provider returning a 1:1 rate for every valid pair, without I/O."""

    name = "mock"

    def get_latest_rate(self, base: str, quote: str) -> ExchangeRate:
        base_currency, quote_currency = self._validate_pair(base, quote)
        logger.debug("Using mock rate provider (returns 1:1 rate) for %s/%s", base_currency, quote_currency)
        return ExchangeRate(
            base=base_currency,
            quote=quote_currency,
            rate=MOCK_RATE,
            timestamp=utc_now(),
            provider=self.name,
        )
