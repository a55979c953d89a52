"""Tests for application wiring: health probes, root, error envelopes, startup."""

from unittest.mock import AsyncMock, patch

import pytest
from fastapi.testclient import TestClient

from taskreload.core.config import Settings
from taskreload.core.database import Database, get_database
from taskreload.main import create_app


def test_health(client: TestClient) -> None:
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_readiness(client: TestClient) -> None:
    response = client.get("/api/health/ready")
    assert response.status_code == 200
    assert response.json()["status"] == "ready"


def test_readiness_database_down(client: TestClient) -> None:
    database = AsyncMock()
    database.ping.side_effect = OSError("connection refused")
    client.app.dependency_overrides[get_database] = lambda: database
    try:
        response = client.get("/api/health/ready")
    finally:
        client.app.dependency_overrides.clear()

    assert response.status_code == 503
    body = response.json()
    assert body["success"] is False
    assert body["data"] is None
    assert "database unavailable" in body["error"]


def test_root(client: TestClient) -> None:
    response = client.get("/")
    assert response.status_code == 200
    assert response.json()["docs"] == "/docs"


def test_unknown_route_returns_envelope(client: TestClient) -> None:
    response = client.get("/api/nonexistent")
    assert response.status_code == 404
    assert response.json() == {"success": False, "data": None, "error": "resource not found"}


def test_unsupported_method_returns_envelope(client: TestClient) -> None:
    response = client.patch("/api/tasks/1", json={})
    assert response.status_code == 405
    assert response.json()["success"] is False


def test_cors_preflight_allows_configured_origin(client: TestClient) -> None:
    response = client.options(
        "/api/tasks",
        headers={
            "Origin": "http://testserver",
            "Access-Control-Request-Method": "POST",
        },
    )
    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "http://testserver"


def test_startup_fails_when_database_unreachable(tmp_path) -> None:
    settings = Settings(
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'missing' / 'dir' / 'tasks.db'}",
        _env_file=None,
    )
    app = create_app(settings)

    with pytest.raises(Exception):
        with TestClient(app):
            pass


def test_tables_created_on_startup(client: TestClient) -> None:
    # A fresh database answers list requests without any migration step
    assert client.get("/api/tasks").json()["total"] == 0


def test_startup_error_disposes_engine(settings: Settings) -> None:
    app = create_app(settings)

    with (
        patch.object(Database, "create_tables", AsyncMock(side_effect=RuntimeError("bad metadata"))),
        patch.object(Database, "dispose", AsyncMock()) as dispose,
    ):
        with pytest.raises(Exception):
            with TestClient(app):
                pass

    dispose.assert_awaited_once()
