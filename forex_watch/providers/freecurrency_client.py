from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from forex_watch.providers.base import InvalidResponseError, ProviderError
from forex_watch.providers.http_client import HTTPClient, HTTPClientConfig


class FreecurrencyClientConfig:
    """Configuration parameters for the freecurrencyapi client."""

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.freecurrencyapi.com",
        timeout_ms: int = 5000,
        retry_count: int = 1,
        backoff_seconds: float = 0.0,
    ) -> None:
        self.api_key = api_key
        self.base_url = base_url
        self.timeout_ms = timeout_ms
        self.retry_count = retry_count
        self.backoff_seconds = backoff_seconds


class FreecurrencyClient:
    """HTTP client for freecurrencyapi built on the shared wrapper."""

    def __init__(
        self,
        config: FreecurrencyClientConfig,
        client: HTTPClient | None = None,
    ) -> None:
        self._config = config
        self._client = client or HTTPClient(
            HTTPClientConfig(
                base_url=config.base_url,
                timeout_ms=config.timeout_ms,
                retry_count=config.retry_count,
                backoff_seconds=config.backoff_seconds,
            )
        )

    def get_latest(self, base: str, quotes: Sequence[str]) -> dict[str, Any]:
        params = {
            "apikey": self._config.api_key,
            "base_currency": base,
            "currencies": ",".join(quotes),
        }
        try:
            payload = self._client.get("/v1/latest", params=params, endpoint="freecurrencyapi latest")
        except ProviderError as exc:
            details = exc.payload.get("details")
            if isinstance(details, dict) and details.get("message"):
                exc.payload["provider_error"] = details["message"]
            raise

        if not isinstance(payload.get("data"), dict):
            raise InvalidResponseError(
                "freecurrencyapi response missing 'data' field",
                payload={"status": 200},
            )

        return payload
