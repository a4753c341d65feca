from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from lms.api import health


def test_health_reports_dependencies(client: TestClient) -> None:
    resp = client.get("/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "ok"
    # No DATABASE_URL / REDIS_URL in tests: both run in memory.
    assert data["checks"] == {"database": "not_configured", "redis": "not_configured"}


def test_ready_returns_200_without_database(client: TestClient) -> None:
    assert client.get("/ready").status_code == 200


def test_openapi_lists_quiz_routes(client: TestClient) -> None:
    paths = client.get("/openapi.json").json()["paths"]
    assert "/v1/quizzes/{quiz_id}/submissions" in paths
    assert "/v1/grading/submissions/{submission_id}/grade" in paths
    assert "/v1/reset-requests/{request_id}/approve" in paths


def test_unreachable_database_degrades_health_and_fails_readiness(
    client: TestClient, monkeypatch: pytest.MonkeyPatch
) -> None:
    async def down() -> bool:
        return False

    monkeypatch.setattr(health, "ping_database", down)
    body = client.get("/health").json()
    assert body["status"] == "degraded"
    assert body["checks"]["database"] == "degraded"
    assert client.get("/ready").status_code == 503
