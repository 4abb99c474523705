"""Tests for the health endpoint and app factory."""

from __future__ import annotations

from fastapi.testclient import TestClient


def test_health_endpoint(test_client):
    """GET /health should report every engine component."""
    response = test_client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["engine"] == "ok"
    assert data["datastore"] == "ok"
    assert data["scheduler"] == "stopped"


def test_health_without_lifespan(app):
    client = TestClient(app)
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_app_has_openapi(test_client):
    """The app should serve an OpenAPI schema."""
    response = test_client.get("/openapi.json")
    assert response.status_code == 200
    schema = response.json()
    assert schema["info"]["title"] == "ledger-notify"
    assert "/notifications" in schema["paths"]


def test_metrics_endpoint(test_client):
    response = test_client.get("/metrics")
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/plain")
    assert "ledger_notify_pending_notifications" in response.text


def test_engine_closed_after_shutdown(app):
    with TestClient(app):
        engine = app.state.engine
        assert engine.is_initialized
    assert app.state.engine is None
    assert not engine.is_initialized
