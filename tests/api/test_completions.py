"""Course status cache, manual completion and certificates.

Verifies the read-through status cache:
1. First GET is a miss and populates the cache
2. Second GET is served from the cache
3. Anything that changes the learner's standing drops the entry
4. Learners have isolated cache entries
"""

from __future__ import annotations

import asyncio
from uuid import UUID

from fastapi.testclient import TestClient
from prometheus_client import REGISTRY

from lms.services.cache import cache_service, status_key
from tests.conftest import auth, mint_token

ADMIN = mint_token(username="catalog-admin", roles=["admin"])
LEARNER = mint_token(username="cache-learner")
OTHER = mint_token(username="other-learner")


def _cache_ops(operation: str) -> float:
    value = REGISTRY.get_sample_value("cache_operations_total", {"operation": operation})
    return value or 0.0


def _course(client: TestClient, **body) -> str:
    body.setdefault("title", "Cleaning Schedules")
    return client.post("/v1/courses", json=body, headers=auth(ADMIN)).json()["data"]["id"]


def test_status_cache_miss_then_hit(client: TestClient) -> None:
    course_id = _course(client)
    misses, hits = _cache_ops("miss"), _cache_ops("hit")

    first = client.get(f"/v1/courses/{course_id}/status", headers=auth(LEARNER))
    assert first.status_code == 200
    assert asyncio.run(cache_service.get(status_key("cache-learner", UUID(course_id))))

    second = client.get(f"/v1/courses/{course_id}/status", headers=auth(LEARNER))
    assert second.json() == first.json()
    assert _cache_ops("miss") - misses == 1
    assert _cache_ops("hit") - hits == 1


def test_completion_invalidates_status(client: TestClient) -> None:
    course_id = _course(client)
    before = client.get(f"/v1/courses/{course_id}/status", headers=auth(LEARNER)).json()
    assert before["data"]["state"] == "NOT_ATTEMPTED"

    done = client.post(
        f"/v1/courses/{course_id}/complete", json={"score": 90}, headers=auth(LEARNER)
    )
    assert done.status_code == 200
    assert done.json()["data"]["score"] == 90

    after = client.get(f"/v1/courses/{course_id}/status", headers=auth(LEARNER)).json()
    assert after["data"]["state"] == "GRADED"
    assert after["data"]["has_passed"] is True
    assert after["data"]["score"] == 90


def test_status_cache_is_per_learner(client: TestClient) -> None:
    course_id = _course(client)
    client.post(f"/v1/courses/{course_id}/complete", json={}, headers=auth(LEARNER))
    mine = client.get(f"/v1/courses/{course_id}/status", headers=auth(LEARNER)).json()
    theirs = client.get(f"/v1/courses/{course_id}/status", headers=auth(OTHER)).json()
    assert mine["data"]["has_passed"] is True
    assert theirs["data"]["has_passed"] is False


def test_complete_quiz_course_is_409(client: TestClient) -> None:
    course_id = _course(client)
    client.post(f"/v1/courses/{course_id}/quiz", json={}, headers=auth(ADMIN))
    resp = client.post(f"/v1/courses/{course_id}/complete", json={}, headers=auth(LEARNER))
    assert resp.status_code == 409
    assert resp.json()["message"] == "This course is completed by passing its quiz."


def test_learning_path_certificate(client: TestClient) -> None:
    first = _course(client, title="Path Part 1")
    second = _course(client, title="Path Part 2")
    path = client.post(
        "/v1/learning-paths",
        json={"title": "Hygiene Path", "course_ids": [first, second], "has_certificate": True},
        headers=auth(ADMIN),
    )
    assert path.status_code == 201
    path_id = path.json()["data"]["id"]

    client.post(f"/v1/courses/{first}/complete", json={}, headers=auth(LEARNER))
    partial = client.get(
        f"/v1/learning-paths/{path_id}/certificate", headers=auth(LEARNER)
    ).json()["data"]
    assert partial["eligible"] is False
    assert partial["missing_course_ids"] == [second]

    client.post(f"/v1/courses/{second}/complete", json={}, headers=auth(LEARNER))
    full = client.get(
        f"/v1/learning-paths/{path_id}/certificate", headers=auth(LEARNER)
    ).json()["data"]
    assert full["eligible"] is True
    assert full["title"] == "Hygiene Path"


def test_learning_path_with_unknown_course_is_422(client: TestClient) -> None:
    resp = client.post(
        "/v1/learning-paths",
        json={"title": "Broken Path", "course_ids": ["00000000-0000-0000-0000-000000000123"]},
        headers=auth(ADMIN),
    )
    assert resp.status_code == 422


def test_module_progress_over_http(client: TestClient) -> None:
    course_id = _course(client)
    created = [
        client.post(
            f"/v1/courses/{course_id}/modules", json={"title": t}, headers=auth(ADMIN)
        )
        for t in ("Intro", "Storage", "Review")
    ]
    assert [r.status_code for r in created] == [201, 201, 201]
    ids = [r.json()["data"]["id"] for r in created]

    listed = client.get(f"/v1/courses/{course_id}/modules", headers=auth(LEARNER))
    assert [m["position"] for m in listed.json()["data"]] == [0, 1, 2]

    ticked = client.put(
        f"/v1/modules/{ids[1]}/completion", json={}, headers=auth(LEARNER)
    )
    assert ticked.status_code == 200
    assert ticked.json()["data"]["completed_module_ids"] == [ids[1]]
    assert ticked.json()["data"]["percent_complete"] == 33

    mine = client.get(f"/v1/courses/{course_id}/progress", headers=auth(LEARNER)).json()
    theirs = client.get(f"/v1/courses/{course_id}/progress", headers=auth(OTHER)).json()
    assert mine["data"]["module_ids"] == ids
    assert mine["data"]["completed_module_ids"] == [ids[1]]
    assert theirs["data"]["completed_module_ids"] == []

    cleared = client.put(
        f"/v1/modules/{ids[1]}/completion", json={"completed": False}, headers=auth(LEARNER)
    )
    assert cleared.json()["data"]["percent_complete"] == 0


def test_staff_cannot_add_modules(client: TestClient) -> None:
    course_id = _course(client)
    resp = client.post(
        f"/v1/courses/{course_id}/modules", json={"title": "Intro"}, headers=auth(LEARNER)
    )
    assert resp.status_code == 403
    blank = client.post(
        f"/v1/courses/{course_id}/modules", json={"title": "  "}, headers=auth(ADMIN)
    )
    assert blank.status_code == 422
