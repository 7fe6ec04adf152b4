"""Quiz schemas."""

import uuid
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field, field_validator

from app.schemas.common import Pagination


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class QuizSort(str, Enum):
    NEWEST = "newest"
    OLDEST = "oldest"
    POPULAR = "popular"
    RATING = "rating"


# ── Authoring ─────────────────────────────────────────────────────────────────


class OptionIn(BaseModel):
    text: str = Field(min_length=1)
    is_correct: bool = False


class QuestionIn(BaseModel):
    text: str
    options: list[OptionIn] = Field(min_length=2, max_length=6)
    explanation: str | None = None
    difficulty: Difficulty = Difficulty.MEDIUM
    points: int = Field(default=1, ge=0)
    tags: list[str] = []

    @field_validator("text")
    @classmethod
    def _text_required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Question text is required")
        return v


class QuizSettings(BaseModel):
    shuffle_questions: bool = False
    allow_review: bool = True
    show_correct_answers: bool = True
    passing_score: int = Field(default=60, ge=0, le=100)

    model_config = {"from_attributes": True}


class QuizCreate(BaseModel):
    """POST /api/quizzes and PUT /api/quizzes/{id}"""

    title: str = Field(max_length=100)
    description: str | None = Field(default=None, max_length=500)
    category: str
    difficulty: Difficulty = Difficulty.MEDIUM
    time_limit: int = Field(default=30, ge=1, le=180)
    is_public: bool = True
    tags: list[str] = []
    settings: QuizSettings = QuizSettings()
    questions: list[QuestionIn] = Field(min_length=1)

    @field_validator("title", "category")
    @classmethod
    def _not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v

    @field_validator("tags")
    @classmethod
    def _clean_tags(cls, v: list[str]) -> list[str]:
        seen: list[str] = []
        for tag in v:
            tag = tag.strip()
            if tag and tag not in seen:
                seen.append(tag)
        return seen


# ── Reading ───────────────────────────────────────────────────────────────────


class QuizStats(BaseModel):
    total_attempts: int = 0
    completed_attempts: int = 0
    average_score: int = 0
    average_time_spent: int = 0
    pass_rate: int = 0

    model_config = {"from_attributes": True}


class CreatorRead(BaseModel):
    id: uuid.UUID
    name: str

    model_config = {"from_attributes": True}


class OptionRead(BaseModel):
    text: str
    # None when the caller may not see the answer key
    is_correct: bool | None = None


class QuestionRead(BaseModel):
    id: uuid.UUID
    text: str
    options: list[OptionRead]
    explanation: str | None = None
    difficulty: Difficulty
    points: int
    tags: list[str] = []


class QuizSummary(BaseModel):
    """Catalog entry, without questions."""

    id: uuid.UUID
    title: str
    description: str | None = None
    category: str
    difficulty: Difficulty
    time_limit: int
    total_points: int
    question_count: int
    is_public: bool
    tags: list[str] = []
    creator: CreatorRead
    stats: QuizStats
    created_at: datetime


class QuizRead(QuizSummary):
    """Full quiz. Answer keys are only filled in for the owner or an admin."""

    is_active: bool
    settings: QuizSettings
    questions: list[QuestionRead]
    updated_at: datetime


class QuizListRead(BaseModel):
    count: int
    total: int
    pagination: Pagination
    data: list[QuizSummary]


# ── Quiz-taker view ───────────────────────────────────────────────────────────


class OptionPublic(BaseModel):
    text: str


class QuestionPublic(BaseModel):
    id: uuid.UUID
    text: str
    options: list[OptionPublic]
    points: int


class QuizPublic(BaseModel):
    """Quiz as handed to a quiz-taker: correctness flags and explanations stripped."""

    id: uuid.UUID
    title: str
    description: str | None = None
    category: str
    difficulty: Difficulty
    time_limit: int
    total_points: int
    passing_score: int
    questions: list[QuestionPublic]
