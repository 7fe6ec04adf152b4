"""Fetch-by-id helpers that translate misses into ``NotFoundError``."""

import uuid

from sqlalchemy.orm import Session

from app.core.errors import NotFoundError
from app.db.models import Attempt, Quiz


def parse_id(raw: str | uuid.UUID, label: str) -> uuid.UUID:
    """Malformed ids cannot match any row, so they are reported as missing."""
    if isinstance(raw, uuid.UUID):
        return raw
    try:
        return uuid.UUID(str(raw))
    except ValueError:
        raise NotFoundError(f"{label} not found") from None


def get_quiz(db: Session, quiz_id: str | uuid.UUID) -> Quiz:
    quiz = db.get(Quiz, parse_id(quiz_id, "Quiz"))
    if quiz is None:
        raise NotFoundError("Quiz not found")
    return quiz


def get_attempt(db: Session, attempt_id: str | uuid.UUID) -> Attempt:
    attempt = db.get(Attempt, parse_id(attempt_id, "Quiz attempt"))
    if attempt is None:
        raise NotFoundError("Quiz attempt not found")
    return attempt
