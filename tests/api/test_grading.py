"""Manual grading flow over HTTP, from submission to certificate."""

from __future__ import annotations

from fastapi.testclient import TestClient

from tests.conftest import auth, mint_token

REVIEWER = mint_token(username="reviewer", roles=["admin"])
LEARNER = mint_token(username="learner-http")


def _setup(client: TestClient) -> tuple[str, dict]:
    course = client.post(
        "/v1/courses",
        json={"title": "Knife Skills", "has_certificate": True},
        headers=auth(REVIEWER),
    ).json()["data"]
    quiz = client.post(
        f"/v1/courses/{course['id']}/quiz",
        json={"passing_score": 80},
        headers=auth(REVIEWER),
    ).json()["data"]
    quiz = client.put(
        f"/v1/quizzes/{quiz['id']}",
        json={
            "passing_score": 80,
            "questions": [
                {
                    "text": "Pick B",
                    "type": "MULTIPLE_CHOICE",
                    "options": ["A", "B"],
                    "correct_answer": "B",
                },
                {"text": "Describe the claw grip.", "type": "SHORT_ANSWER", "correct_answer": "fingers tucked"},
            ],
        },
        headers=auth(REVIEWER),
    ).json()["data"]
    return course["id"], quiz


def _submit(client: TestClient, quiz: dict) -> dict:
    mcq, free = quiz["questions"]
    resp = client.post(
        f"/v1/quizzes/{quiz['id']}/submissions",
        json={"answers": {mcq["id"]: mcq["correct_answer_id"], free["id"]: "fingers tucked in"}},
        headers=auth(LEARNER),
    )
    assert resp.status_code == 201
    return resp.json()


def test_submission_enters_grading_queue(client: TestClient) -> None:
    _, quiz = _setup(client)
    body = _submit(client, quiz)
    assert body["message"] == "Quiz submitted for review."
    assert body["data"]["status"] == "PENDING_REVIEW"

    queue = client.get("/v1/grading/submissions", headers=auth(REVIEWER))
    assert queue.status_code == 200
    assert [s["id"] for s in queue.json()["data"]] == [body["data"]["id"]]

    done = client.get(
        "/v1/grading/submissions", params={"status": "COMPLETED"}, headers=auth(REVIEWER)
    )
    assert done.json()["data"] == []


def test_learner_cannot_see_grading_queue(client: TestClient) -> None:
    assert client.get("/v1/grading/submissions", headers=auth(LEARNER)).status_code == 403


def test_review_preview_then_grade(client: TestClient) -> None:
    course_id, quiz = _setup(client)
    submission_id = _submit(client, quiz)["data"]["id"]
    free_id = quiz["questions"][1]["id"]

    preview = client.post(
        f"/v1/grading/submissions/{submission_id}/review",
        json={"manual_scores": {free_id: 0.6}},
        headers=auth(REVIEWER),
    )
    assert preview.status_code == 200
    review = preview.json()["data"]
    assert review["course_title"] == "Knife Skills"
    assert review["breakdown"]["final_percentage"] == 80
    assert review["breakdown"]["auto_score"] == 1.0
    assert review["quiz"]["questions"][0]["correct_answer_id"] is not None

    graded = client.post(
        f"/v1/grading/submissions/{submission_id}/grade",
        json={"manual_scores": {free_id: 0.6}},
        headers=auth(REVIEWER),
    )
    assert graded.status_code == 200
    assert graded.json()["data"]["score"] == 80
    assert graded.json()["data"]["status"] == "COMPLETED"

    status = client.get(f"/v1/courses/{course_id}/status", headers=auth(LEARNER)).json()
    assert status["data"]["has_passed"] is True
    assert status["data"]["state"] == "GRADED"

    cert = client.get(f"/v1/courses/{course_id}/certificate", headers=auth(LEARNER)).json()
    assert cert["data"]["eligible"] is True
    assert cert["data"]["score"] == 80

    completions = client.get("/v1/me/completions", headers=auth(LEARNER)).json()["data"]
    assert [c["course_id"] for c in completions] == [course_id]

    notes = client.get("/v1/notifications", headers=auth(LEARNER)).json()["data"]
    assert notes[0]["title"] == "Quiz Graded"
    assert "You passed with a score of 80%." in notes[0]["description"]


def test_failing_grade(client: TestClient) -> None:
    course_id, quiz = _setup(client)
    submission_id = _submit(client, quiz)["data"]["id"]
    free_id = quiz["questions"][1]["id"]

    graded = client.post(
        f"/v1/grading/submissions/{submission_id}/grade",
        json={"manual_scores": {free_id: 0.5}},
        headers=auth(REVIEWER),
    )
    assert graded.json()["data"]["score"] == 75

    status = client.get(f"/v1/courses/{course_id}/status", headers=auth(LEARNER)).json()
    assert status["data"]["has_passed"] is False
    assert status["data"]["can_attempt"] is True
    cert = client.get(f"/v1/courses/{course_id}/certificate", headers=auth(LEARNER)).json()
    assert cert["data"]["eligible"] is False


def test_grading_twice_is_409(client: TestClient) -> None:
    _, quiz = _setup(client)
    submission_id = _submit(client, quiz)["data"]["id"]
    url = f"/v1/grading/submissions/{submission_id}/grade"
    assert client.post(url, json={}, headers=auth(REVIEWER)).status_code == 200
    resp = client.post(url, json={}, headers=auth(REVIEWER))
    assert resp.status_code == 409
    assert resp.json()["message"] == "This submission has already been graded."


def test_final_score_out_of_range_is_422(client: TestClient) -> None:
    _, quiz = _setup(client)
    submission_id = _submit(client, quiz)["data"]["id"]
    resp = client.post(
        f"/v1/grading/submissions/{submission_id}/grade",
        json={"final_score": 140},
        headers=auth(REVIEWER),
    )
    assert resp.status_code == 422
    assert resp.json()["errors"] == ["final_score must be between 0 and 100"]


def test_notifications_mark_read(client: TestClient) -> None:
    _, quiz = _setup(client)
    submission_id = _submit(client, quiz)["data"]["id"]
    client.post(
        f"/v1/grading/submissions/{submission_id}/grade", json={}, headers=auth(REVIEWER)
    )

    unread = client.get(
        "/v1/notifications", params={"unread_only": True}, headers=auth(LEARNER)
    ).json()["data"]
    assert len(unread) == 1

    marked = client.post("/v1/notifications/read", json={"ids": None}, headers=auth(LEARNER))
    assert marked.json()["data"] == 1
    assert client.get(
        "/v1/notifications", params={"unread_only": True}, headers=auth(LEARNER)
    ).json()["data"] == []
