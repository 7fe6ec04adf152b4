"""Shared pytest fixtures for backend tests."""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from app.api.deps import get_blacklist, get_cache
from app.db.session import Base, get_db
from app.main import app
from app.services.cache import MemoryStore, ResponseCache
from app.services.token_blacklist import TokenBlacklist


# Use an in-memory SQLite database for testing with static pool
SQLALCHEMY_TEST_URL = "sqlite:///:memory:"
engine = create_engine(
    SQLALCHEMY_TEST_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,  # Use StaticPool to keep connection alive
    echo=False,
)
TestSession = sessionmaker(bind=engine, autocommit=False, autoflush=False)

PASSWORD = "Secret123"


@pytest.fixture(scope="function")
def db():
    """Fresh schema and session for each test (routes commit, so no rollback)."""
    Base.metadata.create_all(bind=engine)
    session = TestSession()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def cache() -> ResponseCache:
    return ResponseCache(MemoryStore(maxsize=100))


@pytest.fixture(scope="function")
def client(db: Session, cache: ResponseCache):
    """FastAPI test client with overridden DB and store dependencies."""

    def override_get_db():
        try:
            yield db
        finally:
            pass

    blacklist = TokenBlacklist(MemoryStore(maxsize=100))
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_cache] = lambda: cache
    app.dependency_overrides[get_blacklist] = lambda: blacklist

    # Remove TrustedHostMiddleware for tests to allow 'testserver' host
    app.user_middleware = [m for m in app.user_middleware if "TrustedHost" not in str(m)]

    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


# ── helpers ───────────────────────────────────────────────────────────────────


def register(client: TestClient, email: str, name: str = "Test User") -> dict:
    """Register a user and return ``{"token", "headers", "user"}``."""
    response = client.post(
        "/api/auth/register",
        json={"name": name, "email": email, "password": PASSWORD},
    )
    assert response.status_code == 201, response.text
    data = response.json()
    return {
        "token": data["access_token"],
        "headers": {"Authorization": f"Bearer {data['access_token']}"},
        "user": data["user"],
    }


def quiz_payload(**overrides) -> dict:
    """Two one-point questions; the correct option is index 1 then index 0."""
    payload = {
        "title": "Python Basics",
        "description": "Warm-up questions",
        "category": "Programming",
        "difficulty": "easy",
        "time_limit": 10,
        "is_public": True,
        "tags": ["python", "basics"],
        "settings": {
            "shuffle_questions": False,
            "allow_review": True,
            "show_correct_answers": True,
            "passing_score": 60,
        },
        "questions": [
            {
                "text": "Which keyword defines a function?",
                "options": [
                    {"text": "func", "is_correct": False},
                    {"text": "def", "is_correct": True},
                ],
                "explanation": "Functions are declared with def.",
                "points": 1,
            },
            {
                "text": "Which type is immutable?",
                "options": [
                    {"text": "tuple", "is_correct": True},
                    {"text": "list", "is_correct": False},
                ],
                "points": 1,
            },
        ],
    }
    payload.update(overrides)
    return payload


def create_quiz(client: TestClient, headers: dict, **overrides) -> dict:
    response = client.post("/api/quizzes", json=quiz_payload(**overrides), headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


def take_quiz(client: TestClient, headers: dict, quiz: dict, picks: list[int], time_spent: int = 5) -> dict:
    """Start an attempt and submit one pick per question, in order."""
    start = client.post(f"/api/quizzes/{quiz['id']}/start", headers=headers)
    assert start.status_code == 201, start.text
    answers = [
        {"question_id": q["id"], "selected_option": pick, "time_spent": 10}
        for q, pick in zip(quiz["questions"], picks)
    ]
    response = client.post(
        f"/api/quizzes/{quiz['id']}/submit",
        json={"attempt_id": start.json()["attempt_id"], "answers": answers, "time_spent": time_spent},
        headers=headers,
    )
    assert response.status_code == 200, response.text
    return response.json()
