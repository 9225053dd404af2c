from __future__ import annotations

from typing import Any, Dict, Optional

from forex_watch.providers.base import ProviderError
from forex_watch.providers.http_client import HTTPClient, HTTPClientConfig


class ExchangeRateApiClientConfig:
    """Configuration parameters for the API client."""

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://v6.exchangerate-api.com",
        timeout_ms: int = 5000,
        retry_count: int = 1,
        backoff_seconds: float = 0.0,
    ) -> None:
        self.api_key = api_key
        self.base_url = base_url
        self.timeout_ms = timeout_ms
        self.retry_count = retry_count
        self.backoff_seconds = backoff_seconds


class ExchangeRateApiClient:
    """HTTP client for ExchangeRate-API built on the shared HTTP wrapper."""

    def __init__(self, config: ExchangeRateApiClientConfig, client: Optional[HTTPClient] = None) -> None:
        self._config = config
        self._client = client or HTTPClient(
            HTTPClientConfig(
                base_url=config.base_url,
                timeout_ms=config.timeout_ms,
                retry_count=config.retry_count,
                backoff_seconds=config.backoff_seconds,
            )
        )

    def get_pair(self, base: str, quote: str) -> Dict[str, Any]:
        path = f"/v6/{self._config.api_key}/pair/{base}/{quote}"
        try:
            payload = self._client.get(path, endpoint="exchangerate-api pair")
        except ProviderError as exc:
            details = exc.payload.get("details")
            if isinstance(details, dict) and "error-type" in details:
                exc.payload["provider_error"] = details["error-type"]
            raise

        if payload.get("result") == "error":
            error_type = payload.get("error-type")
            raise ProviderError(
                f"ExchangeRate-API error payload: {error_type}",
                status_code=502,
                payload={"status": 200, "provider_error": error_type},
            )

        return payload
