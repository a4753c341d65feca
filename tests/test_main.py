from __future__ import annotations

from fastapi.testclient import TestClient

from lms.main import app

client = TestClient(app)


def test_app_title() -> None:
    assert app.title == "lms-service"


def test_health_returns_ok() -> None:
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


def test_v1_routes_require_token() -> None:
    for path in ("/v1/courses", "/v1/notifications", "/v1/me/completions"):
        assert client.get(path).status_code == 401


def test_cors_allows_frontend_origin() -> None:
    resp = client.options(
        "/v1/courses",
        headers={
            "Origin": "http://localhost:5173",
            "Access-Control-Request-Method": "GET",
        },
    )
    assert resp.headers.get("access-control-allow-origin") == "http://localhost:5173"
