"""Shared pytest fixtures."""

from __future__ import annotations

import sys
from collections.abc import Iterator
from pathlib import Path

import pytest

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from forex_watch import create_app  # noqa: E402
from forex_watch.providers.registry import reset_registry  # noqa: E402


@pytest.fixture()
def app() -> Iterator:
    """Flask application using the mock provider with the scheduler disabled."""

    reset_registry()
    flask_app = create_app("testing")

    yield flask_app

    flask_app.extensions["rate_store"].clear()


@pytest.fixture()
def client(app):
    """Provide a Flask test client."""

    with app.test_client() as client:
        yield client

