"""CLI entry points."""

from __future__ import annotations

from flask import Flask

from .rates import fetch_rates


def register_cli(app: Flask) -> None:
    """Register CLI commands on the given Flask app."""

    app.cli.add_command(fetch_rates)
