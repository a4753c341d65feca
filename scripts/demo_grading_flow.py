"""Demo: author a quiz, submit it, grade it and read the learner's status.

Uses FastAPI TestClient against the in-memory store, so no database or
Redis is needed.

Run with:
    python scripts/demo_grading_flow.py
"""

from __future__ import annotations

from fastapi.testclient import TestClient

from lms.main import app
from lms.services import token_service

ORG_ID = "00000000-0000-0000-0000-0000000000d1"


def _headers(sub: str, roles: list[str]) -> dict[str, str]:
    token = token_service.create_access_token(sub=sub, roles=roles, org_id=ORG_ID)
    return {"Authorization": f"Bearer {token}"}


def main() -> None:
    client = TestClient(app)
    admin = _headers("demo-admin", ["admin"])
    learner = _headers("demo-learner", ["staff"])

    # ── Step 1: create a course ─────────────────────────────────────
    r = client.post(
        "/v1/courses",
        json={"title": "Kitchen Hygiene", "has_certificate": True},
        headers=admin,
    )
    course_id = r.json()["data"]["id"]
    print(f"1. POST /v1/courses                       → {r.status_code}")

    # ── Step 2: create and fill its quiz ────────────────────────────
    r = client.post(
        f"/v1/courses/{course_id}/quiz", json={"passing_score": 70}, headers=admin
    )
    quiz_id = r.json()["data"]["id"]
    print(f"2. POST /v1/courses/{{id}}/quiz             → {r.status_code}")

    r = client.put(
        f"/v1/quizzes/{quiz_id}",
        json={
            "passing_score": 70,
            "max_attempts": 2,
            "questions": [
                {
                    "text": "Safe fridge temperature?",
                    "type": "MULTIPLE_CHOICE",
                    "options": ["below 5°C", "below 15°C"],
                    "correct_answer": "below 5°C",
                },
                {
                    "text": "Describe cross-contamination.",
                    "type": "SHORT_ANSWER",
                    "weight": 10,
                    "correct_answer": "Transfer of bacteria between foods.",
                },
            ],
        },
        headers=admin,
    )
    quiz = r.json()["data"]
    print(f"3. PUT  /v1/quizzes/{{id}}                  → {r.status_code}"
          f"  (manual grading: {quiz['requires_manual_grading']})")

    # ── Step 3: learner submits ─────────────────────────────────────
    mcq, free = quiz["questions"]
    r = client.post(
        f"/v1/quizzes/{quiz_id}/submissions",
        json={
            "answers": {
                mcq["id"]: mcq["correct_answer_id"],
                free["id"]: "Raw meat juices reaching ready-to-eat food.",
            }
        },
        headers=learner,
    )
    submission = r.json()["data"]
    print(f"4. POST /v1/quizzes/{{id}}/submissions      → {r.status_code}"
          f"  (status {submission['status']})")

    r = client.get(f"/v1/courses/{course_id}/status", headers=learner)
    print(f"5. GET  /v1/courses/{{id}}/status           → {r.status_code}"
          f"  (state {r.json()['data']['state']})")

    # ── Step 4: grader reviews and grades ───────────────────────────
    r = client.post(
        f"/v1/grading/submissions/{submission['id']}/review",
        json={"manual_scores": {free["id"]: 8}},
        headers=admin,
    )
    breakdown = r.json()["data"]["breakdown"]
    print(f"6. POST /v1/grading/submissions/{{id}}/review → {r.status_code}"
          f"  (final {breakdown['final_percentage']}%)")

    r = client.post(
        f"/v1/grading/submissions/{submission['id']}/grade",
        json={"manual_scores": {free["id"]: 8}},
        headers=admin,
    )
    graded = r.json()["data"]
    print(f"7. POST /v1/grading/submissions/{{id}}/grade  → {r.status_code}"
          f"  (score {graded['score']}, status {graded['status']})")

    # ── Step 5: learner sees the outcome ────────────────────────────
    r = client.get(f"/v1/courses/{course_id}/status", headers=learner)
    print(f"8. GET  /v1/courses/{{id}}/status           → {r.status_code}"
          f"  (state {r.json()['data']['state']})")

    r = client.get("/v1/notifications", headers=learner)
    print(f"9. GET  /v1/notifications                 → {r.status_code}"
          f"  ({len(r.json()['data'])} notification(s))")


if __name__ == "__main__":
    main()
