"""Attempt schemas."""

import uuid
from datetime import datetime

from pydantic import BaseModel, Field

from app.schemas.common import Pagination
from app.schemas.quiz import Difficulty, QuizPublic


class AttemptStartRead(BaseModel):
    """POST /api/quizzes/{id}/start"""

    attempt_id: uuid.UUID
    quiz: QuizPublic
    time_limit: int
    started_at: datetime


class AnswerSubmit(BaseModel):
    # kept as a string: unknown or malformed ids are dropped, not rejected
    question_id: str
    selected_option: int
    time_spent: int = Field(default=0, ge=0)  # seconds


class AttemptSubmit(BaseModel):
    """POST /api/quizzes/{id}/submit (missing fields are rejected by the engine)."""

    attempt_id: str | None = None
    answers: list[AnswerSubmit] | None = None
    time_spent: int = Field(default=0, ge=0)  # minutes


class AnswerResult(BaseModel):
    """Per‑answer detail, only returned when the quiz reveals answers."""

    question_id: uuid.UUID
    question: str
    selected_option: int
    correct_option: int
    is_correct: bool
    explanation: str | None = None


class AttemptResult(BaseModel):
    """Scored attempt returned by submit."""

    attempt_id: uuid.UUID
    score: int
    earned_points: int
    total_points: int
    time_spent: int
    passed: bool
    answers: list[AnswerResult] | None = None


class AttemptQuizRef(BaseModel):
    id: uuid.UUID
    title: str
    category: str
    difficulty: Difficulty

    model_config = {"from_attributes": True}


class AttemptRead(BaseModel):
    """Completed attempt in the caller's history."""

    id: uuid.UUID
    quiz: AttemptQuizRef
    score: int
    earned_points: int
    total_points: int
    time_spent: int
    completed: bool
    started_at: datetime
    completed_at: datetime | None = None

    model_config = {"from_attributes": True}


class AttemptDetailRead(AttemptRead):
    """Attempt with answer review, when the quiz allows it."""

    passed: bool
    answers: list[AnswerResult] | None = None


class AttemptListRead(BaseModel):
    count: int
    total: int
    pagination: Pagination
    data: list[AttemptRead]
