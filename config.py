"""Application configuration classes."""

from __future__ import annotations

import logging
import os
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from forex_watch.errors import ConfigError
from forex_watch.providers.registry import normalize_provider

logger = logging.getLogger(__name__)

SUPPORTED_RATE_PROVIDERS = {"mock", "exchangerate-api", "freecurrencyapi"}
PROVIDER_KEY_SETTINGS = {
    "exchangerate-api": "EXCHANGERATE_API_KEY",
    "freecurrencyapi": "FREECURRENCYAPI_KEY",
}


def _get_env(name: str, default: str) -> str:
    value = os.getenv(name)
    return value if value is not None else default


def _get_optional_env(name: str) -> str | None:
    value = os.getenv(name)
    if value is None or not value.strip():
        return None
    return value.strip()


class BaseConfig:
    """Base configuration shared across environments."""

    SCHEDULER_ENABLED = _get_env("SCHEDULER_ENABLED", "true").lower() == "true"

    APP_NAME = "forex-watch"
    FX_RATE_PROVIDER = _get_env("FX_RATE_PROVIDER", "mock")
    EXCHANGERATE_API_KEY = _get_optional_env("EXCHANGERATE_API_KEY")
    EXCHANGERATE_API_BASE_URL = _get_env(
        "EXCHANGERATE_API_BASE_URL", "https://v6.exchangerate-api.com"
    )
    FREECURRENCYAPI_KEY = _get_optional_env("FREECURRENCYAPI_KEY")
    FREECURRENCYAPI_BASE_URL = _get_env(
        "FREECURRENCYAPI_BASE_URL", "https://api.freecurrencyapi.com"
    )
    RATE_PROVIDER_TIMEOUT_MS = int(_get_env("RATE_PROVIDER_TIMEOUT_MS", "5000"))
    RATE_PROVIDER_RETRY_COUNT = int(_get_env("RATE_PROVIDER_RETRY_COUNT", "1"))
    RATE_PROVIDER_BACKOFF_SECONDS = float(_get_env("RATE_PROVIDER_BACKOFF_SECONDS", "0"))
    RATE_PAIRS = _get_env("RATE_PAIRS", "USD:EUR,USD:JPY,EUR:USD")
    RATE_FETCH_INTERVAL_MINUTES = int(_get_env("RATE_FETCH_INTERVAL_MINUTES", "30"))
    RATE_ACTIVE_START_HOUR = int(_get_env("RATE_ACTIVE_START_HOUR", "0"))
    RATE_ACTIVE_END_HOUR = int(_get_env("RATE_ACTIVE_END_HOUR", "24"))
    RATE_ACTIVE_TIMEZONE = _get_env("RATE_ACTIVE_TIMEZONE", "UTC")
    RATE_CACHE_TTL_MS = int(_get_env("RATE_CACHE_TTL_MS", "3600000"))
    LOG_LEVEL = _get_env("LOG_LEVEL", "INFO")
    LOG_JSON_ENABLED = _get_env("LOG_JSON_ENABLED", "false").lower() == "true"
    LOG_FORMAT = _get_env("LOG_FORMAT", "%(asctime)s %(levelname)s [%(name)s] %(message)s")


class DevelopmentConfig(BaseConfig):
    """Configuration for local development."""

    DEBUG = True
    TESTING = False


class ProductionConfig(BaseConfig):
    """Configuration for production deployments."""

    DEBUG = False
    TESTING = False


class TestingConfig(BaseConfig):
    """Configuration used by the test suite: mock provider, no background jobs."""

    DEBUG = False
    TESTING = True
    SCHEDULER_ENABLED = False
    FX_RATE_PROVIDER = "mock"
    RATE_PAIRS = "USD:JPY,USD:EUR"
    RATE_ACTIVE_START_HOUR = 0
    RATE_ACTIVE_END_HOUR = 24
    RATE_ACTIVE_TIMEZONE = "UTC"
    RATE_CACHE_TTL_MS = 60000


CONFIG_BY_ENV = {
    "development": DevelopmentConfig,
    "production": ProductionConfig,
    "testing": TestingConfig,
}


def get_config(config_name: str | None = None) -> type[BaseConfig]:
    """Return the config class for the requested environment.

    Args:
        config_name: Optional explicit config identifier. If omitted, the
            APP_ENV environment variable is consulted.

    Raises:
        KeyError: If the requested configuration is not defined.
        ValueError: If a rate setting is out of range.
        ConfigError: If the selected provider is missing its credential.
    """

    env_candidate = config_name if config_name is not None else os.getenv("APP_ENV", "development")
    env_name = (env_candidate or "development").lower()
    try:
        config_cls = CONFIG_BY_ENV[env_name]
    except KeyError as exc:
        raise KeyError(f"Unknown APP_ENV '{env_name}'") from exc

    validate_config(config_cls)
    return config_cls


def validate_config(config_cls: type[BaseConfig]) -> None:
    """Normalize and validate rate settings in place; raise on the first problem."""

    _validate_provider(config_cls)
    _validate_schedule(config_cls)


def _validate_provider(config_cls: type[BaseConfig]) -> None:
    normalized = normalize_provider(config_cls.FX_RATE_PROVIDER)
    if normalized not in SUPPORTED_RATE_PROVIDERS:
        raise ValueError(
            f"Unsupported FX_RATE_PROVIDER '{config_cls.FX_RATE_PROVIDER}'. "
            f"Allowed values: {sorted(SUPPORTED_RATE_PROVIDERS)}"
        )
    config_cls.FX_RATE_PROVIDER = normalized

    key_setting = PROVIDER_KEY_SETTINGS.get(normalized)
    if key_setting and not getattr(config_cls, key_setting, None):
        raise ConfigError(
            f"{key_setting} is required when FX_RATE_PROVIDER is '{normalized}'.",
            payload={"setting": key_setting},
        )


def _validate_schedule(config_cls: type[BaseConfig]) -> None:
    start = config_cls.RATE_ACTIVE_START_HOUR
    end = config_cls.RATE_ACTIVE_END_HOUR
    if not 0 <= start < end <= 24:
        raise ValueError(
            "RATE_ACTIVE_START_HOUR and RATE_ACTIVE_END_HOUR must satisfy "
            f"0 <= start < end <= 24 (got {start} and {end})."
        )

    try:
        ZoneInfo(config_cls.RATE_ACTIVE_TIMEZONE)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValueError(
            f"Unknown RATE_ACTIVE_TIMEZONE '{config_cls.RATE_ACTIVE_TIMEZONE}'."
        ) from exc

    for name in ("RATE_FETCH_INTERVAL_MINUTES", "RATE_PROVIDER_TIMEOUT_MS", "RATE_CACHE_TTL_MS"):
        if getattr(config_cls, name) <= 0:
            raise ValueError(f"{name} must be a positive integer.")
    if config_cls.RATE_PROVIDER_RETRY_COUNT < 0:
        raise ValueError("RATE_PROVIDER_RETRY_COUNT cannot be negative.")

    interval_ms = config_cls.RATE_FETCH_INTERVAL_MINUTES * 60 * 1000
    if config_cls.RATE_CACHE_TTL_MS < interval_ms:
        logger.warning(
            "RATE_CACHE_TTL_MS (%s) is shorter than the fetch interval (%s ms); "
            "rates will be reported stale between fetches.",
            config_cls.RATE_CACHE_TTL_MS,
            interval_ms,
        )
