"""Provider interfaces and data structures for FX rate sources."""

from .base import (
    BaseRateProvider,
    InvalidRateError,
    InvalidResponseError,
    ProviderError,
    ProviderTimeoutError,
)
from .exchangerate_client import ExchangeRateApiClient, ExchangeRateApiClientConfig
from .exchangerate_provider import ExchangeRateApiProvider
from .freecurrency_client import FreecurrencyClient, FreecurrencyClientConfig
from .freecurrency_provider import FreecurrencyProvider
from .mock import MockRateProvider
from .schemas import ExchangeRate, StoredRate

__all__ = [
    "BaseRateProvider",
    "ProviderError",
    "ProviderTimeoutError",
    "InvalidResponseError",
    "InvalidRateError",
    "ExchangeRate",
    "StoredRate",
    "ExchangeRateApiClient",
    "ExchangeRateApiClientConfig",
    "ExchangeRateApiProvider",
    "FreecurrencyClient",
    "FreecurrencyClientConfig",
    "FreecurrencyProvider",
    "MockRateProvider",
]
