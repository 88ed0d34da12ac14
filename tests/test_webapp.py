"""
Tests for the FastAPI dashboard API.
"""

import time

import pytest
from fastapi.testclient import TestClient

from conftest import FakeDataSource, allowed, blocked
from guardian_dashboard.webapp import create_app


@pytest.fixture
def source():
    return FakeDataSource(
        setting={"time_limit_minutes": 90},
        events=[
            allowed("www.youtube.com", 1800, 0),
            allowed("ajax.googleapis.com", 600, 1),
            blocked("tiktok.com", 5),
        ],
    )


@pytest.fixture
def app(db_path, state_path, source):
    return create_app(db_path=db_path, state_path=state_path, source=source, watch_state=False)


def wait_for_status(client: TestClient, status: str, timeout: float = 5.0) -> dict:
    deadline = time.monotonic() + timeout
    while True:
        payload = client.get("/api/dashboard").json()
        if payload["status"] == status or time.monotonic() > deadline:
            return payload
        time.sleep(0.02)


class TestReportEndpoints:
    """Test direct report generation and limit updates."""

    def test_child_report(self, app) -> None:
        client = TestClient(app)
        response = client.get("/api/children/kid/report")
        assert response.status_code == 200
        body = response.json()
        assert body["limit"] == {"seconds": 5400, "minutes": 90, "tier": "child_setting"}
        assert body["used"]["minutes"] == 40
        assert body["remaining"]["minutes"] == 50
        assert body["rows"] == [{"domain": "youtube.com", "seconds": 1800, "minutes": 30}]
        assert body["attempt_count"] == 1

    def test_save_time_limit_in_hours(self, app, source) -> None:
        client = TestClient(app)
        response = client.put("/api/children/kid/time-limit", json={"hours": 1})
        assert response.status_code == 200
        assert source.saved == {"kid": 3600}
        body = client.get("/api/children/kid/report").json()
        assert body["limit"]["tier"] == "override"
        assert body["limit"]["minutes"] == 60

    @pytest.mark.parametrize(
        "payload",
        [{}, {"hours": 1, "daily_limit_seconds": 60}, {"daily_limit_seconds": 0}, {"minutes": 5}],
    )
    def test_invalid_time_limit_payload(self, app, payload) -> None:
        response = TestClient(app).put("/api/children/kid/time-limit", json=payload)
        assert response.status_code == 422

    def test_failed_save(self, app, source) -> None:
        source.failures.add("save")
        response = TestClient(app).put(
            "/api/children/kid/time-limit", json={"daily_limit_seconds": 600}
        )
        assert response.status_code == 500
        assert response.json()["detail"] == "Failed to save"


class TestDashboardState:
    """Test the presenter snapshot driven by the active child."""

    def test_startup_without_child(self, app) -> None:
        with TestClient(app) as client:
            payload = wait_for_status(client, "no_child")
        assert payload == {"status": "no_child", "message": "Select a child"}

    def test_selecting_child_regenerates(self, app) -> None:
        with TestClient(app) as client:
            wait_for_status(client, "no_child")
            response = client.put("/api/active-child", json={"child_id": "kid"})
            assert response.json() == {"child_id": "kid"}
            payload = wait_for_status(client, "ready")
            assert client.get("/api/active-child").json() == {"child_id": "kid"}
        assert payload["report"]["child_id"] == "kid"
        assert payload["chart"]["values"] == [40, 50]

    def test_status(self, app, db_path) -> None:
        body = TestClient(app).get("/api/status").json()
        assert body["database_path"] == str(db_path)
        assert body["active_child_id"] is None
        assert body["default_limit_minutes"] == 120
