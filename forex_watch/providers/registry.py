"""Registry and factory for FX rate providers."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Callable, Dict, Iterable, List

from forex_watch.errors import ConfigError
from forex_watch.logging import rate_event

from .base import BaseRateProvider

logger = logging.getLogger(__name__)

ProviderFactory = Callable[[Mapping[str, Any]], BaseRateProvider]

_PROVIDER_FACTORIES: Dict[str, ProviderFactory] = {}

PROVIDER_ALIASES = {
    "exchangerate": "exchangerate-api",
    "exchangerate_api": "exchangerate-api",
    "freecurrency": "freecurrencyapi",
}


def normalize_provider(value: str | None) -> str:
    """Lower-case a provider name and resolve its aliases; empty input gives ''."""

    if not value:
        return ""
    normalized = value.strip().lower()
    return PROVIDER_ALIASES.get(normalized, normalized)


def _default_factories() -> Iterable[tuple[str, ProviderFactory]]:
    from .exchangerate_provider import ExchangeRateApiProvider
    from .freecurrency_provider import FreecurrencyProvider
    from .mock import MockRateProvider

    def mock_factory(_config: Mapping[str, Any]) -> MockRateProvider:
        return MockRateProvider()

    return [
        (MockRateProvider.name, mock_factory),
        (ExchangeRateApiProvider.name, ExchangeRateApiProvider.from_config),
        (FreecurrencyProvider.name, FreecurrencyProvider.from_config),
    ]


def register_provider(name: str, factory: ProviderFactory) -> None:
    """Register a provider factory under the given name."""

    if not name:
        raise ValueError("Provider name cannot be empty.")
    _PROVIDER_FACTORIES[normalize_provider(name)] = factory


def list_providers() -> List[str]:
    """Return the list of registered provider identifiers."""

    return sorted(_PROVIDER_FACTORIES.keys())


def get_provider(name: str | None = None, config: Mapping[str, Any] | None = None) -> BaseRateProvider:
    """Instantiate a provider by name, falling back to ``config["FX_RATE_PROVIDER"]`` then mock.

    Raises:
        ConfigError: If no implementation is registered under the name, or the
            selected provider is missing its credentials.
    """

    settings = config or {}
    provider_name = normalize_provider(name or settings.get("FX_RATE_PROVIDER")) or "mock"
    try:
        factory = _PROVIDER_FACTORIES[provider_name]
    except KeyError as exc:
        available = ", ".join(list_providers()) or "none registered"
        raise ConfigError(
            f"Rate provider '{provider_name}' is not implemented. Available providers: {available}",
            code="RATE_PROVIDER_NOT_IMPLEMENTED",
        ) from exc
    return factory(settings)


def init_provider(app) -> BaseRateProvider:
    """Build the configured provider once and attach it to the Flask app."""

    provider = get_provider(config=app.config)
    app.extensions["rate_provider"] = provider
    logger.info("Using %s rate provider", provider.name, extra=rate_event("rates.provider", provider=provider.name))
    return provider


def reset_registry(default_factories: Iterable[tuple[str, ProviderFactory]] | None = None) -> None:
    """Reset provider registry; useful for tests."""

    _PROVIDER_FACTORIES.clear()

    factories = default_factories or _default_factories()
    for name, factory in factories:
        register_provider(name, factory)


reset_registry()
