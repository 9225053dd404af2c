"""ExchangeRate-API provider implementation."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from typing import Any

from forex_watch.errors import ConfigError
from forex_watch.providers.base import BaseRateProvider, require_rate
from forex_watch.providers.schemas import ExchangeRate
from forex_watch.utils.datetime import from_unix, utc_now

from .exchangerate_client import ExchangeRateApiClient, ExchangeRateApiClientConfig

DEFAULT_BASE_URL = "https://v6.exchangerate-api.com"


class ExchangeRateApiProvider(BaseRateProvider):
    """Provider that fetches single pairs from ExchangeRate-API.

    The pair endpoint has no batch form, so ``get_latest_rates`` keeps the
    sequential one-call-per-quote behaviour of the base class.
    """

    name = "exchangerate-api"

    def __init__(self, client: ExchangeRateApiClient) -> None:
        self._client = client

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> ExchangeRateApiProvider:
        api_key = config.get("EXCHANGERATE_API_KEY")
        if not api_key:
            raise ConfigError("ExchangeRate-API key is missing", payload={"setting": "EXCHANGERATE_API_KEY"})

        base_url_value = config.get("EXCHANGERATE_API_BASE_URL")
        if not isinstance(base_url_value, str) or not base_url_value.strip():
            base_url = DEFAULT_BASE_URL
        else:
            base_url = base_url_value
        client_config = ExchangeRateApiClientConfig(
            api_key=str(api_key),
            base_url=base_url,
            timeout_ms=int(config.get("RATE_PROVIDER_TIMEOUT_MS", 5000)),
            retry_count=int(config.get("RATE_PROVIDER_RETRY_COUNT", 1)),
            backoff_seconds=float(config.get("RATE_PROVIDER_BACKOFF_SECONDS", 0)),
        )
        return cls(ExchangeRateApiClient(client_config))

    def get_latest_rate(self, base: str, quote: str) -> ExchangeRate:
        base_currency, quote_currency = self._validate_pair(base, quote)
        payload = self._client.get_pair(base_currency, quote_currency)

        rate = require_rate(payload.get("conversion_rate"), quote=quote_currency)

        return ExchangeRate(
            base=base_currency,
            quote=quote_currency,
            rate=rate,
            timestamp=self._parse_timestamp(payload.get("time_last_update_unix")),
            provider=self.name,
        )

    @staticmethod
    def _parse_timestamp(value: Any) -> datetime:
        if isinstance(value, (int, float)) and not isinstance(value, bool) and value > 0:
            return from_unix(value)
        return utc_now()
