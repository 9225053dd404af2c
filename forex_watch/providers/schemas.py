"""Dataclasses describing normalized FX provider payloads."""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
from datetime import datetime
from decimal import Decimal, InvalidOperation

from forex_watch.utils.datetime import ensure_utc


def _normalize_code(code: str) -> str:
    normalized = str(code).strip().upper()
    if not normalized:
        raise ValueError("Currency code cannot be empty")
    if not normalized.isascii():
        raise ValueError(f"Currency code must be ASCII: {code!r}")
    return normalized


def _normalize_rate(value: Decimal | float | int) -> Decimal:
    if isinstance(value, bool):
        raise ValueError(f"Rate must be numeric: {value!r}")
    try:
        rate = Decimal(str(value))
    except (InvalidOperation, ValueError) as exc:
        raise ValueError(f"Rate must be numeric: {value!r}") from exc
    if not rate.is_finite() or rate <= 0:
        raise ValueError(f"Rate must be a positive finite number: {value!r}")
    return rate


@dataclass(frozen=True)
class ExchangeRate:
    """Latest known rate for one ordered pair: ``rate`` quote units per base unit."""

    base: str
    quote: str
    rate: Decimal
    timestamp: datetime
    provider: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "base", _normalize_code(self.base))
        object.__setattr__(self, "quote", _normalize_code(self.quote))
        if self.base == self.quote:
            raise ValueError(f"Quote currency must differ from base ({self.base})")
        object.__setattr__(self, "rate", _normalize_rate(self.rate))
        object.__setattr__(self, "timestamp", ensure_utc(self.timestamp))
        if not self.provider or not self.provider.strip():
            raise ValueError("provider must be provided for ExchangeRate")

    @property
    def pair(self) -> tuple[str, str]:
        return self.base, self.quote


@dataclass(frozen=True)
class StoredRate(ExchangeRate):
    """An ``ExchangeRate`` as held by the rate store, plus its staleness flag."""

    stale: bool = False

    @classmethod
    def from_rate(cls, rate: ExchangeRate, *, stale: bool) -> StoredRate:
        values = {f.name: getattr(rate, f.name) for f in fields(ExchangeRate)}
        return cls(stale=stale, **values)

    def with_stale(self, stale: bool) -> StoredRate:
        return replace(self, stale=stale)
