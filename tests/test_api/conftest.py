"""Fixtures for API tests."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from fastapi.testclient import TestClient

from ledger_notify.api.app import create_app

if TYPE_CHECKING:
    from collections.abc import Iterator


@pytest.fixture
def app(app_config):
    return create_app(config=app_config)


@pytest.fixture
def test_client(app) -> Iterator[TestClient]:
    """TestClient with the lifespan (and so the engine) running."""
    with TestClient(app) as client:
        yield client


@pytest.fixture
def engine(app, test_client):
    return app.state.engine
