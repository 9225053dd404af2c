"""Read-only routes over the rate store. These never call a provider."""

from __future__ import annotations

from flask import current_app
from flask.views import MethodView

from forex_watch.errors import NotFoundError
from forex_watch.schemas import (
    ErrorMessageSchema,
    LatestRateResponseSchema,
    RateListResponseSchema,
    RateQuerySchema,
)
from forex_watch.services.rate_store import RateStore
from forex_watch.validation import validate_currency_pair

from . import blp


def _store() -> RateStore:
    return current_app.extensions["rate_store"]


def _ttl_ms() -> int:
    return int(current_app.config.get("RATE_CACHE_TTL_MS", 3600000))


@blp.route("/latest")
class LatestRate(MethodView):
    @blp.arguments(RateQuerySchema, location="query")
    @blp.response(200, LatestRateResponseSchema())
    @blp.alt_response(400, schema=ErrorMessageSchema())
    @blp.alt_response(404, schema=ErrorMessageSchema())
    def get(self, args):
        """Return the last fetched rate for a pair, flagged stale when old."""

        base, quote = validate_currency_pair(args.get("base"), args.get("quote"))
        latest = _store().get_rate(base, quote, _ttl_ms())
        if latest is None:
            raise NotFoundError(
                "No rate available yet for this pair",
                code="RATE_NOT_AVAILABLE",
                payload={"base": base, "quote": quote},
            )
        return {"message": "Latest rate", "data": latest}


@blp.route("")
class RateList(MethodView):
    @blp.response(200, RateListResponseSchema())
    def get(self):
        """Return every stored rate."""

        rates = _store().get_all_rates(_ttl_ms())
        return {"count": len(rates), "data": rates}
