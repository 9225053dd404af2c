"""Application-wide error utilities and handlers."""

from __future__ import annotations

from typing import Any

from flask import Flask, jsonify


class APIError(Exception):
    """Base class for API-level errors.

    Every error carries an HTTP-equivalent ``status_code`` and a machine-readable
    ``code`` so the boundary layer can map it without inspecting the message.
    """

    status_code: int = 400
    code: str = "API_ERROR"

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        code: str | None = None,
        payload: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        if code is not None:
            self.code = code
        self.payload = payload or {}


class ValidationError(APIError):
    """Error raised for validation failures."""

    status_code = 400
    code = "RATE_VALIDATION_ERROR"


class NotFoundError(APIError):
    """Requested resource does not exist (yet)."""

    status_code = 404
    code = "NOT_FOUND"


class ConfigError(APIError):
    """Required configuration is missing or names something unimplemented."""

    status_code = 500
    code = "RATE_PROVIDER_CONFIG_ERROR"


DEFAULT_STATUS_MESSAGES: dict[int, str] = {
    400: "Request could not be processed.",
    404: "Resource not found.",
    500: "Internal server error.",
    502: "Upstream provider unavailable.",
    503: "Service temporarily unavailable. Please retry in a moment.",
    504: "Upstream provider timed out.",
}


def register_error_handlers(app: Flask) -> None:
    """Attach error handlers to the Flask application."""

    @app.errorhandler(APIError)
    def handle_api_error(error: APIError):
        message = error.message or DEFAULT_STATUS_MESSAGES.get(error.status_code, "Request failed.")
        payload = error.payload or {}

        response: dict[str, Any] = {"message": message, "code": error.code}
        if payload:
            response.update(payload)

        field_errors = _derive_field_errors(payload, default_message=message)
        if field_errors and "field_errors" not in response:
            response["field_errors"] = field_errors

        return jsonify(response), error.status_code


def _derive_field_errors(
    payload: dict[str, Any],
    *,
    default_message: str | None = None,
) -> dict[str, list[str]]:
    """Translate a ``field`` payload entry into a flat field_errors mapping."""

    if not payload:
        return {}

    field = payload.get("field")
    if field and default_message:
        return {str(field): [default_message]}

    return {}
