"""freecurrencyapi provider implementation."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from datetime import datetime
from typing import Any

from forex_watch.errors import ConfigError
from forex_watch.providers.base import BaseRateProvider, require_rate
from forex_watch.providers.schemas import ExchangeRate
from forex_watch.utils.datetime import parse_iso, utc_now

from .freecurrency_client import FreecurrencyClient, FreecurrencyClientConfig

DEFAULT_BASE_URL = "https://api.freecurrencyapi.com"


class FreecurrencyProvider(BaseRateProvider):
    """Provider that batches every quote for a base into one freecurrencyapi call."""

    name = "freecurrencyapi"

    def __init__(self, client: FreecurrencyClient) -> None:
        self._client = client

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> FreecurrencyProvider:
        api_key = config.get("FREECURRENCYAPI_KEY")
        if not api_key:
            raise ConfigError("Freecurrencyapi key is missing", payload={"setting": "FREECURRENCYAPI_KEY"})

        base_url = config.get("FREECURRENCYAPI_BASE_URL") or DEFAULT_BASE_URL
        client_config = FreecurrencyClientConfig(
            api_key=str(api_key),
            base_url=str(base_url),
            timeout_ms=int(config.get("RATE_PROVIDER_TIMEOUT_MS", 5000)),
            retry_count=int(config.get("RATE_PROVIDER_RETRY_COUNT", 1)),
            backoff_seconds=float(config.get("RATE_PROVIDER_BACKOFF_SECONDS", 0)),
        )
        return cls(FreecurrencyClient(client_config))

    def get_latest_rate(self, base: str, quote: str) -> ExchangeRate:
        base_currency, quote_currency = self._validate_pair(base, quote)
        return self.get_latest_rates(base_currency, [quote_currency])[0]

    def get_latest_rates(self, base: str, quotes: Sequence[str]) -> list[ExchangeRate]:
        base_currency, quote_currencies = self._validate_quotes(base, quotes)
        payload = self._client.get_latest(base_currency, quote_currencies)

        data = payload["data"]
        timestamp = self._parse_timestamp(payload.get("meta"))

        rates: list[ExchangeRate] = []
        for quote in quote_currencies:
            value = require_rate(data.get(quote), quote=quote)
            rates.append(
                ExchangeRate(
                    base=base_currency,
                    quote=quote,
                    rate=value,
                    timestamp=timestamp,
                    provider=self.name,
                )
            )
        return rates

    @staticmethod
    def _parse_timestamp(meta: Any) -> datetime:
        if isinstance(meta, dict):
            raw = meta.get("last_updated_at")
            if isinstance(raw, str):
                parsed = parse_iso(raw)
                if parsed is not None:
                    return parsed
        return utc_now()
