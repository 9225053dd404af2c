"""Rates blueprint serving cached FX rates."""

from __future__ import annotations

from flask_smorest import Blueprint

blp = Blueprint("Rates", __name__, description="Latest cached FX rates")

from . import routes  # noqa: E402,F401
