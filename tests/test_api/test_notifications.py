"""Tests for the notification administration routes."""

from __future__ import annotations

from fastapi.testclient import TestClient


def _insert(test_client, engine, nid: str) -> None:
    test_client.portal.call(
        engine.worker.notifications.insert,
        {"id": nid, "subscription_id": f"s-{nid}", "transfer_id": "t1"},
    )


class TestListNotifications:
    def test_empty(self, test_client):
        response = test_client.get("/notifications")
        assert response.status_code == 200
        assert response.json() == {"items": [], "total": 0, "page": 1, "page_size": 50}

    def test_pages(self, test_client, engine):
        for nid in ("n1", "n2", "n3"):
            _insert(test_client, engine, nid)

        response = test_client.get("/notifications", params={"page": 2, "page_size": 2})
        data = response.json()
        assert data["total"] == 3
        assert len(data["items"]) == 1
        assert data["items"][0]["retry_count"] == 0

    def test_invalid_page(self, test_client):
        response = test_client.get("/notifications", params={"page": 0})
        assert response.status_code == 422


class TestGetNotification:
    def test_found(self, test_client, engine):
        _insert(test_client, engine, "n1")
        response = test_client.get("/notifications/n1")
        assert response.status_code == 200
        assert response.json()["subscription_id"] == "s-n1"

    def test_not_found(self, test_client):
        response = test_client.get("/notifications/missing")
        assert response.status_code == 404
        assert response.json() == {
            "code": "notification-not-found",
            "message": "notification not found",
        }


class TestWorkerControl:
    def test_process_empty_queue(self, test_client):
        response = test_client.post("/notifications/process")
        assert response.status_code == 200
        assert response.json() == {"processed": 0}

    def test_start_and_stop(self, test_client, engine):
        response = test_client.post("/notifications/worker/start")
        assert response.json() == {"enabled": True}
        assert engine.worker.scheduler.is_enabled()

        response = test_client.post("/notifications/worker/stop")
        assert response.json() == {"enabled": False}
        assert not engine.worker.scheduler.is_enabled()


def test_unavailable_without_engine(app):
    client = TestClient(app)
    response = client.get("/notifications")
    assert response.status_code == 503
    assert response.json()["code"] == "worker-not-running"
