"""Abstract interface for FX rate providers."""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Any

from forex_watch.errors import APIError, ValidationError

from .schemas import ExchangeRate


class ProviderError(APIError):
    """Raised when an upstream provider cannot fulfill a request."""

    status_code = 503
    code = "RATE_PROVIDER_ERROR"


class ProviderTimeoutError(ProviderError):
    """The outbound call exceeded the configured timeout. Never retried."""

    status_code = 504
    code = "RATE_PROVIDER_TIMEOUT"


class InvalidResponseError(ProviderError):
    """A 2xx response whose body is not a usable JSON object."""

    status_code = 502
    code = "RATE_PROVIDER_INVALID_JSON"


class InvalidRateError(ProviderError):
    """A parsed 2xx body lacking a positive numeric rate for a requested quote."""

    status_code = 502
    code = "RATE_PROVIDER_INVALID_RATE"


def require_rate(value: Any, *, quote: str) -> float:
    """Return ``value`` if it is a positive finite JSON number, else raise InvalidRateError."""

    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidRateError("Rate provider returned invalid rate", payload={"quote": quote})
    if not math.isfinite(value) or value <= 0:
        raise InvalidRateError("Rate provider returned invalid rate", payload={"quote": quote})
    return value


class BaseRateProvider(ABC):
    """Defines the interface all FX rate providers must implement."""

    name: str

    @abstractmethod
    def get_latest_rate(self, base: str, quote: str) -> ExchangeRate:
        """Retrieve the most recent rate for one ordered pair."""

    def get_latest_rates(self, base: str, quotes: Sequence[str]) -> list[ExchangeRate]:
        """Retrieve the latest rates for every quote sharing ``base``.

        Providers without a batch endpoint fall back to one call per quote,
        issued sequentially to stay inside upstream rate limits.
        """

        base_currency, quote_currencies = self._validate_quotes(base, quotes)
        return [self.get_latest_rate(base_currency, quote) for quote in quote_currencies]

    @staticmethod
    def _normalize_code(value: str, *, field: str) -> str:
        if value is None or not str(value).strip():
            raise ValidationError(f"'{field}' currency is required.", payload={"field": field})
        return str(value).strip().upper()

    def _validate_pair(self, base: str, quote: str) -> tuple[str, str]:
        base_currency = self._normalize_code(base, field="base")
        quote_currency = self._normalize_code(quote, field="quote")
        if base_currency == quote_currency:
            raise ValidationError(
                "Base and quote currencies must differ",
                payload={"base": base_currency, "quote": quote_currency},
            )
        return base_currency, quote_currency

    def _validate_quotes(self, base: str, quotes: Sequence[str]) -> tuple[str, list[str]]:
        if not quotes:
            raise ValidationError("At least one quote currency is required.", payload={"field": "quotes"})
        base_currency = self._normalize_code(base, field="base")
        normalized = [self._validate_pair(base_currency, quote)[1] for quote in quotes]
        return base_currency, normalized
