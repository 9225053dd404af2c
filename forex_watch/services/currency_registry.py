"""Currency registry holding the supported ISO codes and tracked pairs."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import NamedTuple

logger = logging.getLogger(__name__)

SUPPORTED_CURRENCIES: tuple[str, ...] = (
    "USD",
    "EUR",
    "GBP",
    "JPY",
    "AUD",
    "CAD",
    "CHF",
    "CNY",
    "SEK",
    "NZD",
    "MXN",
    "SGD",
    "HKD",
    "NOK",
    "TRY",
    "ZAR",
    "BRL",
    "INR",
    "KRW",
    "PLN",
)


class CurrencyPair(NamedTuple):
    base: str
    quote: str

    def __str__(self) -> str:
        return f"{self.base}:{self.quote}"


@dataclass
class CurrencyRegistry:
    """Provides fast lookup for allowed currency codes."""

    codes: set[str] = field(default_factory=lambda: set(SUPPORTED_CURRENCIES))

    def is_allowed(self, code: str) -> bool:
        """Check if the given code is registered."""

        return code.upper() in self.codes


registry = CurrencyRegistry()


def parse_rate_pairs(raw: str | None, allowed: CurrencyRegistry | None = None) -> list[CurrencyPair]:
    """Parse a ``BASE:QUOTE,BASE:QUOTE`` string into currency pairs.

    Tokens that are malformed, name an unsupported currency, or repeat the base
    as the quote are dropped with a warning. Duplicate pairs are kept once.
    """

    if not raw:
        return []

    lookup = allowed or registry
    pairs: list[CurrencyPair] = []
    for token in raw.split(","):
        token = token.strip()
        if not token:
            continue

        parts = [part.strip().upper() for part in token.split(":")]
        if len(parts) != 2 or not all(parts):
            logger.warning("Skipping malformed currency pair: %s", token)
            continue

        base, quote = parts
        if not lookup.is_allowed(base) or not lookup.is_allowed(quote):
            logger.warning("Skipping unsupported currency pair: %s:%s", base, quote)
            continue
        if base == quote:
            logger.warning("Skipping currency pair with identical base and quote: %s:%s", base, quote)
            continue

        pair = CurrencyPair(base, quote)
        if pair not in pairs:
            pairs.append(pair)
    return pairs


def init_registry(app) -> list[CurrencyPair]:
    """Attach the registry to the Flask app and parse the tracked pairs."""

    app.extensions["currency_registry"] = registry
    pairs = parse_rate_pairs(app.config.get("RATE_PAIRS"), registry)
    if not pairs:
        logger.warning("No supported currency pairs configured; fetch cycles will do nothing.")
    app.extensions["rate_pairs"] = pairs
    return pairs
