"""Tests for profile, leaderboard and account endpoints."""

import uuid

from fastapi.testclient import TestClient

from app.services.analytics import LeaderboardRow, rank_users
from conftest import PASSWORD, create_quiz, register, take_quiz


def test_update_profile(client: TestClient):
    auth = register(client, "profile@example.com", name="Old Name")
    response = client.put(
        "/api/users/profile",
        json={
            "name": "New Name",
            "preferences": {
                "difficulty": "hard",
                "subjects": ["math"],
                "notifications": {"email": False, "push": True},
            },
        },
        headers=auth["headers"],
    )
    assert response.status_code == 200
    data = response.json()
    assert data["name"] == "New Name"
    assert data["preferences"]["difficulty"] == "hard"
    assert data["preferences"]["notifications"]["email"] is False
    # email is not editable through the profile
    assert data["email"] == "profile@example.com"


def test_update_profile_rejects_short_name(client: TestClient):
    auth = register(client, "short@example.com")
    response = client.put("/api/users/profile", json={"name": "A"}, headers=auth["headers"])
    assert response.status_code == 422


def test_rank_users_orders_by_average():
    alice, bob = uuid.uuid4(), uuid.uuid4()
    rows = [
        LeaderboardRow(alice, "Alice", "alice@example.com", 90, 9),
        LeaderboardRow(bob, "Bob", "bob@example.com", 70, 7),
        LeaderboardRow(alice, "Alice", "alice@example.com", 80, 8),
    ]
    ranked = rank_users(rows)
    assert [(e.rank, e.name) for e in ranked] == [(1, "Alice"), (2, "Bob")]
    assert ranked[0].average_score == 85.0
    assert ranked[0].total_score == 170
    assert ranked[0].total_attempts == 2
    assert ranked[0].total_points == 17
    assert ranked[0].best_score == 90


def test_rank_users_breaks_ties_on_points():
    alice, carol = uuid.uuid4(), uuid.uuid4()
    rows = [
        LeaderboardRow(alice, "Alice", "alice@example.com", 80, 8),
        LeaderboardRow(carol, "Carol", "carol@example.com", 80, 20),
    ]
    assert [e.name for e in rank_users(rows)] == ["Carol", "Alice"]


def test_leaderboard_endpoint(client: TestClient):
    author = register(client, "lb0@example.com")
    first = register(client, "lb1@example.com", name="First Place")
    second = register(client, "lb2@example.com", name="Second Place")
    quiz = create_quiz(client, author["headers"])
    take_quiz(client, first["headers"], quiz, [1, 0])
    take_quiz(client, first["headers"], quiz, [1, 1])
    take_quiz(client, second["headers"], quiz, [1, 1])

    response = client.get("/api/users/leaderboard")
    assert response.status_code == 200
    body = response.json()
    assert body["total"] == 2
    assert [e["name"] for e in body["data"]] == ["First Place", "Second Place"]
    assert [e["rank"] for e in body["data"]] == [1, 2]
    assert body["data"][0]["average_score"] == 75
    assert body["data"][0]["total_attempts"] == 2

    page2 = client.get("/api/users/leaderboard", params={"page": 2, "limit": 1}).json()
    assert page2["count"] == 1
    assert page2["data"][0]["rank"] == 2

    other = client.get("/api/users/leaderboard", params={"category": "Geography"}).json()
    assert other["total"] == 0


def test_delete_account(client: TestClient):
    auth = register(client, "leaving@example.com")

    response = client.request("DELETE", "/api/users/account", json={}, headers=auth["headers"])
    assert response.status_code == 400
    assert response.json()["error_code"] == "invalid_state"

    response = client.request(
        "DELETE", "/api/users/account", json={"password": "Wrong123"}, headers=auth["headers"]
    )
    assert response.status_code == 401

    response = client.request(
        "DELETE", "/api/users/account", json={"password": PASSWORD}, headers=auth["headers"]
    )
    assert response.status_code == 200

    # deactivated: token and credentials stop working, and the email is free again
    assert client.get("/api/auth/me", headers=auth["headers"]).status_code == 401
    login = client.post(
        "/api/auth/login", json={"email": "leaving@example.com", "password": PASSWORD}
    )
    assert login.status_code == 401
    register(client, "leaving@example.com")
