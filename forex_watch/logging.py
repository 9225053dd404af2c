"""Logging for Forex Watch: root handler setup, request logs and rate events."""

from __future__ import annotations

import json
import logging
import time
import uuid
from datetime import UTC, datetime
from typing import Any

from flask import Flask, g, has_request_context, request

REQUEST_ID_HEADER = "X-Request-ID"
DEFAULT_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

# Attributes every LogRecord carries; anything else arrived through ``extra=``.
_RECORD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime"}


class JSONLogFormatter(logging.Formatter):
    """Render a record and its ``extra=`` fields as one JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(
            (key, value)
            for key, value in vars(record).items()
            if key not in _RECORD_ATTRS and not key.startswith("_")
        )
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str, separators=(",", ":"))


def setup_logging(app: Flask) -> None:
    """Install one stream handler on the root logger, plain or JSON per ``LOG_JSON_ENABLED``."""

    if app.config.get("_logging_configured"):
        return

    level = app.config.get("LOG_LEVEL", "INFO")
    if not isinstance(level, int):
        level = logging.getLevelNamesMapping().get(str(level).upper(), logging.INFO)

    handler = logging.StreamHandler()
    if app.config.get("LOG_JSON_ENABLED"):
        handler.setFormatter(JSONLogFormatter())
    else:
        handler.setFormatter(logging.Formatter(app.config.get("LOG_FORMAT", DEFAULT_FORMAT)))

    root = logging.getLogger()
    for existing in root.handlers[:]:
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(level)

    # Flask and werkzeug records go through the root handler only.
    logging.getLogger("werkzeug").handlers.clear()
    app.logger.handlers.clear()
    app.logger.setLevel(level)

    app.config["_logging_configured"] = True


def init_request_logging(app: Flask) -> None:
    """Correlate each request with an ``X-Request-ID`` and log the rate query it served."""

    @app.before_request
    def _start_request() -> None:
        g.request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        g.request_start = time.perf_counter()

    @app.after_request
    def _log_response(response):
        response.headers.setdefault(REQUEST_ID_HEADER, g.request_id)
        app.logger.info("Request handled", extra=_request_extra("rates.request", response.status_code))
        g.request_logged = True
        return response

    @app.teardown_request
    def _log_failure(exc: BaseException | None) -> None:
        if exc is None or g.get("request_logged"):
            return
        app.logger.error("Request failed", extra=_request_extra("rates.request_failed", 500, error=str(exc)))


def _request_extra(event: str, status: int, error: str | None = None) -> dict[str, Any]:
    start = g.get("request_start")
    fields = {
        "event": event,
        "method": request.method,
        "route": request.url_rule.rule if request.url_rule else request.path,
        "status": status,
        "request_id": g.get("request_id"),
        "duration_ms": round((time.perf_counter() - start) * 1000, 3) if start is not None else None,
        "base": request.args.get("base", "").strip().upper() or None,
        "quote": request.args.get("quote", "").strip().upper() or None,
        "error": error,
    }
    return {key: value for key, value in fields.items() if value is not None}


def rate_event(event: str, **fields: Any) -> dict[str, Any]:
    """Build the ``extra=`` mapping for a rate pipeline record.

    ``event`` names the stage (``rates.fetch``, ``rates.cycle``,
    ``rates.scheduler``, ``provider.retry``). None values are dropped,
    ``duration_ms`` is rounded to microseconds and ``quotes`` becomes a list.
    Inside a request (the CLI or a test client) the request id is attached.

    Callers never pass URLs, paths or raw exception text here: provider
    credentials travel in both.
    """

    extra: dict[str, Any] = {"event": event}
    for key, value in fields.items():
        if value is None:
            continue
        if key == "duration_ms":
            value = round(value, 3)
        elif key == "quotes":
            value = list(value)
        extra[key] = value
    if has_request_context() and "request_id" in g:
        extra["request_id"] = g.request_id
    return extra
