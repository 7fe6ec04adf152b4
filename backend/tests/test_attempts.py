"""Tests for starting, submitting and reviewing quiz attempts."""

import uuid

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import update
from sqlalchemy.orm import Session

from app.core.errors import InvalidStateError
from app.db.lookups import get_attempt
from app.db.models import Attempt, User
from app.schemas.attempt import AttemptSubmit
from app.services.attempt_engine import submit_attempt
from conftest import create_quiz, quiz_payload, register, take_quiz


def test_start_attempt_strips_answers(client: TestClient):
    author = register(client, "a1@example.com")
    player = register(client, "p1@example.com")
    quiz = create_quiz(client, author["headers"])

    response = client.post(f"/api/quizzes/{quiz['id']}/start", headers=player["headers"])
    assert response.status_code == 201
    data = response.json()
    assert data["attempt_id"]
    assert data["time_limit"] == 10
    assert data["quiz"]["passing_score"] == 60
    question = data["quiz"]["questions"][0]
    assert "explanation" not in question
    assert all(set(o) == {"text"} for o in question["options"])

    stats = client.get(f"/api/quizzes/{quiz['id']}").json()["stats"]
    assert stats["total_attempts"] == 1
    assert stats["completed_attempts"] == 0


def test_submit_half_correct(client: TestClient):
    author = register(client, "a2@example.com")
    player = register(client, "p2@example.com")
    quiz = create_quiz(client, author["headers"])

    # q1 expects index 1, q2 expects index 0
    result = take_quiz(client, player["headers"], quiz, [1, 1])
    assert result["earned_points"] == 1
    assert result["total_points"] == 2
    assert result["score"] == 50
    assert result["passed"] is False
    assert [a["is_correct"] for a in result["answers"]] == [True, False]
    assert result["answers"][0]["correct_option"] == 1
    assert result["answers"][0]["explanation"] == "Functions are declared with def."


def test_submit_all_correct_updates_stats(client: TestClient):
    author = register(client, "a3@example.com")
    player = register(client, "p3@example.com")
    quiz = create_quiz(client, author["headers"])

    result = take_quiz(client, player["headers"], quiz, [1, 0], time_spent=7)
    assert result["score"] == 100
    assert result["passed"] is True

    stats = client.get(f"/api/quizzes/{quiz['id']}").json()["stats"]
    assert stats["completed_attempts"] == 1
    assert stats["average_score"] == 100
    assert stats["average_time_spent"] == 7
    assert stats["pass_rate"] == 100

    me = client.get("/api/auth/me", headers=player["headers"]).json()["stats"]
    assert me["total_quizzes"] == 1
    assert me["completed_quizzes"] == 1
    assert me["average_score"] == 100
    assert me["total_time_spent"] == 7
    assert me["streak"] == 1
    assert me["last_quiz_date"] is not None


def test_submit_hides_answers_when_configured(client: TestClient):
    author = register(client, "a4@example.com")
    player = register(client, "p4@example.com")
    quiz = create_quiz(
        client,
        author["headers"],
        settings={"show_correct_answers": False, "allow_review": False, "passing_score": 50},
    )
    result = take_quiz(client, player["headers"], quiz, [1, 1])
    assert result["answers"] is None
    assert result["passed"] is True


def test_submit_ignores_unknown_questions(client: TestClient):
    author = register(client, "a5@example.com")
    player = register(client, "p5@example.com")
    quiz = create_quiz(client, author["headers"])

    start = client.post(f"/api/quizzes/{quiz['id']}/start", headers=player["headers"]).json()
    response = client.post(
        f"/api/quizzes/{quiz['id']}/submit",
        json={
            "attempt_id": start["attempt_id"],
            "answers": [
                {"question_id": "bogus", "selected_option": 0},
                {"question_id": "00000000-0000-0000-0000-000000000000", "selected_option": 0},
                {"question_id": quiz["questions"][0]["id"], "selected_option": 9},
            ],
            "time_spent": 3,
        },
        headers=player["headers"],
    )
    assert response.status_code == 200
    data = response.json()
    assert data["score"] == 0
    assert len(data["answers"]) == 1
    assert data["answers"][0]["is_correct"] is False


def test_submit_twice_is_rejected(client: TestClient):
    author = register(client, "a6@example.com")
    player = register(client, "p6@example.com")
    quiz = create_quiz(client, author["headers"])

    start = client.post(f"/api/quizzes/{quiz['id']}/start", headers=player["headers"]).json()
    body = {
        "attempt_id": start["attempt_id"],
        "answers": [{"question_id": quiz["questions"][0]["id"], "selected_option": 1}],
        "time_spent": 2,
    }
    first = client.post(f"/api/quizzes/{quiz['id']}/submit", json=body, headers=player["headers"])
    assert first.status_code == 200

    second = client.post(f"/api/quizzes/{quiz['id']}/submit", json=body, headers=player["headers"])
    assert second.status_code == 400
    assert second.json()["error_code"] == "invalid_state"

    stats = client.get(f"/api/quizzes/{quiz['id']}").json()["stats"]
    assert stats["completed_attempts"] == 1


def test_submit_requires_attempt_and_answers(client: TestClient):
    author = register(client, "a7@example.com")
    quiz = create_quiz(client, author["headers"])
    response = client.post(
        f"/api/quizzes/{quiz['id']}/submit", json={"time_spent": 1}, headers=author["headers"]
    )
    assert response.status_code == 400
    assert response.json()["error_code"] == "invalid_state"


def test_submit_someone_elses_attempt(client: TestClient):
    author = register(client, "a8@example.com")
    player = register(client, "p8@example.com")
    quiz = create_quiz(client, author["headers"])

    start = client.post(f"/api/quizzes/{quiz['id']}/start", headers=player["headers"]).json()
    response = client.post(
        f"/api/quizzes/{quiz['id']}/submit",
        json={"attempt_id": start["attempt_id"], "answers": []},
        headers=author["headers"],
    )
    assert response.status_code == 403


def test_submit_attempt_against_other_quiz(client: TestClient):
    author = register(client, "a9@example.com")
    first = create_quiz(client, author["headers"], title="First")
    second = create_quiz(client, author["headers"], title="Second")

    start = client.post(f"/api/quizzes/{first['id']}/start", headers=author["headers"]).json()
    response = client.post(
        f"/api/quizzes/{second['id']}/submit",
        json={"attempt_id": start["attempt_id"], "answers": []},
        headers=author["headers"],
    )
    assert response.status_code == 404


def test_start_private_quiz_forbidden(client: TestClient):
    author = register(client, "a10@example.com")
    player = register(client, "p10@example.com")
    quiz = create_quiz(client, author["headers"], is_public=False)

    response = client.post(f"/api/quizzes/{quiz['id']}/start", headers=player["headers"])
    assert response.status_code == 403
    assert response.json()["error_code"] == "forbidden"

    response = client.post(f"/api/quizzes/{quiz['id']}/start", headers=author["headers"])
    assert response.status_code == 201


def test_start_inactive_quiz_not_found(client: TestClient):
    author = register(client, "a11@example.com")
    quiz = create_quiz(client, author["headers"])
    client.delete(f"/api/quizzes/{quiz['id']}", headers=author["headers"])

    response = client.post(f"/api/quizzes/{quiz['id']}/start", headers=author["headers"])
    assert response.status_code == 404
    assert response.json()["error_code"] == "not_found"


def test_list_and_review_attempts(client: TestClient):
    author = register(client, "a12@example.com")
    player = register(client, "p12@example.com")
    quiz = create_quiz(client, author["headers"])
    take_quiz(client, player["headers"], quiz, [1, 0])
    take_quiz(client, player["headers"], quiz, [0, 0])
    # an unfinished attempt is not listed
    client.post(f"/api/quizzes/{quiz['id']}/start", headers=player["headers"])

    listing = client.get("/api/attempts", headers=player["headers"])
    assert listing.status_code == 200
    body = listing.json()
    assert body["total"] == 2
    assert body["data"][0]["quiz"]["title"] == "Python Basics"

    attempt_id = body["data"][0]["id"]
    detail = client.get(f"/api/attempts/{attempt_id}", headers=player["headers"])
    assert detail.status_code == 200
    data = detail.json()
    assert len(data["answers"]) == 2
    assert data["passed"] == (data["score"] >= 60)

    other = client.get(f"/api/attempts/{attempt_id}", headers=author["headers"])
    assert other.status_code == 403


def test_review_disabled_hides_answers(client: TestClient):
    author = register(client, "a13@example.com")
    quiz = create_quiz(client, author["headers"], settings={"allow_review": False})
    result = take_quiz(client, author["headers"], quiz, [1, 0])

    data = client.get(f"/api/attempts/{result['attempt_id']}", headers=author["headers"]).json()
    assert data["answers"] is None
    assert data["score"] == 100
    assert data["passed"] is True


def test_repeated_answers_count_once(client: TestClient):
    author = register(client, "a14@example.com")
    player = register(client, "p14@example.com")
    quiz = create_quiz(client, author["headers"])

    start = client.post(f"/api/quizzes/{quiz['id']}/start", headers=player["headers"]).json()
    first_id = quiz["questions"][0]["id"]
    response = client.post(
        f"/api/quizzes/{quiz['id']}/submit",
        json={
            "attempt_id": start["attempt_id"],
            "answers": [{"question_id": first_id, "selected_option": 1}] * 5,
            "time_spent": 2,
        },
        headers=player["headers"],
    )
    assert response.status_code == 200
    data = response.json()
    assert data["earned_points"] == 1
    assert data["score"] == 50
    assert len(data["answers"]) == 1

    stats = client.get(f"/api/quizzes/{quiz['id']}").json()["stats"]
    assert stats["average_score"] == 50


def test_attempt_survives_quiz_edit(client: TestClient):
    author = register(client, "a15@example.com")
    player = register(client, "p15@example.com")
    quiz = create_quiz(client, author["headers"])

    start = client.post(f"/api/quizzes/{quiz['id']}/start", headers=player["headers"]).json()
    asked = start["quiz"]["questions"]

    # rename the quiz and append a third question after the attempt started
    payload = quiz_payload(title="Python Basics v2")
    payload["questions"].append(
        {
            "text": "Which builtin returns a length?",
            "options": [{"text": "len", "is_correct": True}, {"text": "size"}],
            "points": 2,
        }
    )
    edited = client.put(f"/api/quizzes/{quiz['id']}", json=payload, headers=author["headers"])
    assert edited.status_code == 200
    assert edited.json()["total_points"] == 4
    assert [q["id"] for q in edited.json()["questions"][:2]] == [q["id"] for q in asked]

    response = client.post(
        f"/api/quizzes/{quiz['id']}/submit",
        json={
            "attempt_id": start["attempt_id"],
            "answers": [
                {"question_id": asked[0]["id"], "selected_option": 1},
                {"question_id": asked[1]["id"], "selected_option": 0},
            ],
            "time_spent": 4,
        },
        headers=player["headers"],
    )
    assert response.status_code == 200
    data = response.json()
    # the total is the one snapshotted when the attempt started
    assert data["total_points"] == 2
    assert data["earned_points"] == 2
    assert data["score"] == 100


def test_submit_loses_race_to_concurrent_submit(client: TestClient, db: Session):
    author = register(client, "a16@example.com")
    quiz = create_quiz(client, author["headers"])
    start = client.post(f"/api/quizzes/{quiz['id']}/start", headers=author["headers"]).json()

    user = db.get(User, uuid.UUID(author["user"]["id"]))
    attempt = get_attempt(db, start["attempt_id"])
    assert attempt.completed is False
    # another request completes the attempt behind this session's back
    db.execute(
        update(Attempt)
        .where(Attempt.id == attempt.id)
        .values(completed=True)
        .execution_options(synchronize_session=False)
    )

    body = AttemptSubmit(attempt_id=start["attempt_id"], answers=[], time_spent=1)
    with pytest.raises(InvalidStateError):
        submit_attempt(db, quiz["id"], body, user)

    stats = client.get(f"/api/quizzes/{quiz['id']}").json()["stats"]
    assert stats["completed_attempts"] == 0
