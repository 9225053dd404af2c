"""Shared HTTP client wrapper with timeout, retry and status classification."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

import requests
from requests import Response, Session
from requests.exceptions import RequestException, Timeout

from forex_watch.logging import rate_event

from .base import InvalidResponseError, ProviderError, ProviderTimeoutError

logger = logging.getLogger(__name__)

_MISSING = object()


@dataclass(frozen=True)
class HTTPClientConfig:
    """Configuration for the shared HTTP client.

    ``retry_count`` is the number of re-issues after the first attempt, applied
    only to 5xx responses and connection failures. Timeouts are never retried.

    ``timeout_ms`` is handed to requests, which applies it to the connect and
    to each socket read separately. It is not a deadline on the whole call: a
    server that keeps trickling bytes can hold one attempt past ``timeout_ms``.
    """

    base_url: str
    timeout_ms: int = 5000
    retry_count: int = 1
    backoff_seconds: float = 0.0


class HTTPClient:
    """Small HTTP client that applies the provider timeout/retry policy."""

    def __init__(
        self,
        config: HTTPClientConfig,
        session: Optional[Session] = None,
    ) -> None:
        self._config = config
        self._session = session or requests.Session()

    @property
    def config(self) -> HTTPClientConfig:
        return self._config

    def get(
        self,
        path: str,
        params: Optional[Mapping[str, Any]] = None,
        *,
        endpoint: str = "request",
    ) -> Dict[str, Any]:
        """Issue a GET and return the decoded JSON object of a 2xx response.

        ``endpoint`` is the label used in logs and errors. Paths and query
        strings can embed the API key, so they are never logged.
        """

        url = self._build_url(path)
        attempts = self._config.retry_count + 1
        timeout = self._config.timeout_ms / 1000

        for attempt in range(1, attempts + 1):
            final = attempt == attempts
            try:
                response = self._session.get(url, params=params, timeout=timeout)
            except Timeout as exc:
                raise ProviderTimeoutError(
                    "Rate provider request timed out",
                    payload={"timeout_ms": self._config.timeout_ms},
                ) from exc
            except RequestException as exc:
                if final:
                    raise ProviderError(
                        "Rate provider request failed",
                        code="RATE_PROVIDER_REQUEST_FAILED",
                        payload={"endpoint": endpoint, "error": exc.__class__.__name__},
                    ) from exc
                self._log_retry(endpoint, attempt, attempts, error=exc.__class__.__name__)
                self._sleep()
                continue

            if response.status_code >= 500 and not final:
                self._log_retry(endpoint, attempt, attempts, status=response.status_code)
                self._sleep()
                continue

            return self._handle_response(response)

        raise AssertionError("unreachable: retry loop always returns or raises")

    def _log_retry(
        self,
        endpoint: str,
        attempt: int,
        attempts: int,
        *,
        status: int | None = None,
        error: str | None = None,
    ) -> None:
        logger.warning(
            "Rate provider %s request failed (attempt %s/%s), retrying",
            endpoint,
            attempt,
            attempts,
            extra=rate_event(
                "provider.retry",
                endpoint=endpoint,
                attempt=attempt,
                attempts=attempts,
                status=status,
                error=error,
            ),
        )

    def _sleep(self) -> None:
        if self._config.backoff_seconds > 0:
            time.sleep(self._config.backoff_seconds)

    def _build_url(self, path: str) -> str:
        base = self._config.base_url.rstrip("/")
        suffix = path.lstrip("/")
        return f"{base}/{suffix}"

    @staticmethod
    def _handle_response(response: Response) -> Dict[str, Any]:
        status = response.status_code
        body = _decode_json(response)

        if status >= 300:
            details = body if body is not _MISSING else None
            raise ProviderError(
                "Rate provider request failed",
                status_code=map_upstream_status(status),
                payload={"status": status, "details": details},
            )

        if body is _MISSING or not isinstance(body, dict):
            raise InvalidResponseError(
                "Invalid response from rate provider",
                payload={"status": status},
            )
        return body


def _decode_json(response: Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return _MISSING


def map_upstream_status(status: int) -> int:
    """Map an upstream error status onto the status we report for it."""

    if status >= 500:
        return 503
    if status == 404:
        return 404
    return 502
