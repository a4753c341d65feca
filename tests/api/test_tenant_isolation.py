"""Cross-tenant isolation tests.

A member of org A must not see or act on org B's courses, quizzes,
submissions or reset requests.  Foreign rows answer exactly like missing
ones (404), so tenants cannot discover each other's ids.
"""

from __future__ import annotations

from fastapi.testclient import TestClient

from tests.conftest import ORG_A, ORG_B, auth, mint_token

ADMIN_A = mint_token(username="admin-a", roles=["admin"], org_id=ORG_A)
ADMIN_B = mint_token(username="admin-b", roles=["admin"], org_id=ORG_B)
LEARNER_A = mint_token(username="learner-a", org_id=ORG_A)
LEARNER_B = mint_token(username="learner-b", org_id=ORG_B)
PLATFORM = mint_token(username="operator", roles=["super_admin"], org_id=None)


def _tenant_b_quiz(client: TestClient) -> tuple[str, dict]:
    course_id = client.post(
        "/v1/courses", json={"title": "B only"}, headers=auth(ADMIN_B)
    ).json()["data"]["id"]
    quiz_id = client.post(
        f"/v1/courses/{course_id}/quiz", json={}, headers=auth(ADMIN_B)
    ).json()["data"]["id"]
    quiz = client.put(
        f"/v1/quizzes/{quiz_id}",
        json={"questions": [{"text": "Why?", "type": "SHORT_ANSWER", "correct_answer": "x"}]},
        headers=auth(ADMIN_B),
    ).json()["data"]
    return course_id, quiz


def test_course_lists_are_scoped(client: TestClient) -> None:
    client.post("/v1/courses", json={"title": "A course"}, headers=auth(ADMIN_A))
    client.post("/v1/courses", json={"title": "B course"}, headers=auth(ADMIN_B))

    a_titles = [c["title"] for c in client.get("/v1/courses", headers=auth(LEARNER_A)).json()["data"]]
    assert a_titles == ["A course"]

    every = client.get("/v1/courses", headers=auth(PLATFORM)).json()["data"]
    assert sorted(c["title"] for c in every) == ["A course", "B course"]


def test_foreign_quiz_is_404(client: TestClient) -> None:
    course_id, quiz = _tenant_b_quiz(client)
    assert client.get(f"/v1/quizzes/{quiz['id']}", headers=auth(ADMIN_A)).status_code == 404
    assert client.get(f"/v1/courses/{course_id}/quiz", headers=auth(LEARNER_A)).status_code == 404
    assert client.put(
        f"/v1/quizzes/{quiz['id']}", json={"questions": []}, headers=auth(ADMIN_A)
    ).status_code == 404
    assert client.delete(f"/v1/quizzes/{quiz['id']}", headers=auth(ADMIN_A)).status_code == 404
    assert client.post(
        f"/v1/quizzes/{quiz['id']}/submissions", json={"answers": {}}, headers=auth(LEARNER_A)
    ).status_code == 404


def test_foreign_submission_is_hidden_from_reviewers(client: TestClient) -> None:
    _, quiz = _tenant_b_quiz(client)
    question_id = quiz["questions"][0]["id"]
    submission_id = client.post(
        f"/v1/quizzes/{quiz['id']}/submissions",
        json={"answers": {question_id: "because"}},
        headers=auth(LEARNER_B),
    ).json()["data"]["id"]

    assert client.get("/v1/grading/submissions", headers=auth(ADMIN_A)).json()["data"] == []
    assert client.get(
        f"/v1/grading/submissions/{submission_id}", headers=auth(ADMIN_A)
    ).status_code == 404
    assert client.post(
        f"/v1/grading/submissions/{submission_id}/grade", json={}, headers=auth(ADMIN_A)
    ).status_code == 404

    own = client.get("/v1/grading/submissions", headers=auth(ADMIN_B)).json()["data"]
    assert [s["id"] for s in own] == [submission_id]


def test_foreign_reset_request_is_404(client: TestClient) -> None:
    course_id, _ = _tenant_b_quiz(client)
    request_id = client.post(
        f"/v1/courses/{course_id}/reset-requests", headers=auth(LEARNER_B)
    ).json()["data"]["id"]

    assert client.get("/v1/reset-requests", headers=auth(ADMIN_A)).json()["data"] == []
    assert client.post(
        f"/v1/reset-requests/{request_id}/approve", headers=auth(ADMIN_A)
    ).status_code == 404
    assert client.post(
        f"/v1/courses/{course_id}/reset-requests", headers=auth(LEARNER_A)
    ).status_code == 404


def test_platform_operator_reaches_every_tenant(client: TestClient) -> None:
    _, quiz = _tenant_b_quiz(client)
    resp = client.get(f"/v1/quizzes/{quiz['id']}", headers=auth(PLATFORM))
    assert resp.status_code == 200


def test_platform_operator_can_create_course_for_tenant(client: TestClient) -> None:
    resp = client.post(
        "/v1/courses",
        json={"title": "Provisioned", "org_id": str(ORG_B)},
        headers=auth(PLATFORM),
    )
    assert resp.json()["data"]["org_id"] == str(ORG_B)

    # A tenant admin cannot plant a course in another tenant.
    planted = client.post(
        "/v1/courses",
        json={"title": "Planted", "org_id": str(ORG_B)},
        headers=auth(ADMIN_A),
    )
    assert planted.json()["data"]["org_id"] == str(ORG_A)


def test_admin_token_without_org_reaches_no_tenant(client: TestClient) -> None:
    _, quiz = _tenant_b_quiz(client)
    question_id = quiz["questions"][0]["id"]
    submission_id = client.post(
        f"/v1/quizzes/{quiz['id']}/submissions",
        json={"answers": {question_id: "because"}},
        headers=auth(LEARNER_B),
    ).json()["data"]["id"]
    orgless = auth(mint_token(username="orgless-admin", roles=["admin"], org_id=None))

    assert client.get("/v1/grading/submissions", headers=orgless).status_code == 403
    assert client.post(
        f"/v1/grading/submissions/{submission_id}/grade",
        json={"final_score": 100},
        headers=orgless,
    ).status_code == 403
    assert client.get("/v1/reset-requests", headers=orgless).status_code == 403
    still_pending = client.get("/v1/grading/submissions", headers=auth(ADMIN_B)).json()["data"]
    assert [s["id"] for s in still_pending] == [submission_id]
