"""SQLAlchemy ORM models for the quiz platform.

Tables
------
- users           – accounts, preferences and rollup stats
- quizzes         – quiz definitions, settings and aggregate stats
- quiz_tags       – quiz ↔ tag (filterable in the catalog)
- questions       – ordered questions of a quiz, options stored as JSON
- attempts        – one user's run through a quiz
- attempt_answers – per‑question answers in an attempt
"""

import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.session import Base


# ── helpers ───────────────────────────────────────────────────────────────────


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _uuid() -> uuid.UUID:
    return uuid.uuid4()


def _default_preferences() -> dict:
    return {
        "difficulty": "medium",
        "subjects": [],
        "notifications": {"email": True, "push": True},
    }


# ── Enums (stored as VARCHAR via SQLAlchemy Enum) ─────────────────────────────


class RoleEnum(str, enum.Enum):
    USER = "user"
    ADMIN = "admin"


class DifficultyEnum(str, enum.Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


# ── Users ─────────────────────────────────────────────────────────────────────


class User(Base):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=_uuid
    )
    name: Mapped[str] = mapped_column(String(50))
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    hashed_password: Mapped[str] = mapped_column(String(255))
    role: Mapped[RoleEnum] = mapped_column(
        Enum(RoleEnum, name="role_enum"), default=RoleEnum.USER
    )
    avatar: Mapped[str] = mapped_column(String(500), default="")
    preferences: Mapped[dict] = mapped_column(JSON, default=_default_preferences)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    last_login: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    # rollup stats, mutated only by app.services.rollup
    total_quizzes: Mapped[int] = mapped_column(Integer, default=0)
    completed_quizzes: Mapped[int] = mapped_column(Integer, default=0)
    average_score: Mapped[int] = mapped_column(Integer, default=0)
    total_time_spent: Mapped[int] = mapped_column(Integer, default=0)  # minutes
    streak: Mapped[int] = mapped_column(Integer, default=0)
    last_quiz_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow
    )

    quizzes: Mapped[list["Quiz"]] = relationship(back_populates="creator")
    attempts: Mapped[list["Attempt"]] = relationship(back_populates="user")

    @property
    def level(self) -> str:
        completed = self.completed_quizzes or 0
        if completed < 5:
            return "Beginner"
        if completed < 20:
            return "Intermediate"
        if completed < 50:
            return "Advanced"
        return "Expert"

    @property
    def is_admin(self) -> bool:
        return self.role == RoleEnum.ADMIN


# ── Quizzes ───────────────────────────────────────────────────────────────────


class Quiz(Base):
    __tablename__ = "quizzes"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=_uuid
    )
    title: Mapped[str] = mapped_column(String(100))
    description: Mapped[str | None] = mapped_column(String(500), nullable=True)
    category: Mapped[str] = mapped_column(String(100), index=True)
    difficulty: Mapped[DifficultyEnum] = mapped_column(
        Enum(DifficultyEnum, name="difficulty_enum"), default=DifficultyEnum.MEDIUM
    )
    time_limit: Mapped[int] = mapped_column(Integer, default=30)  # minutes
    total_points: Mapped[int] = mapped_column(Integer, default=0)
    creator_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id"), index=True
    )
    is_public: Mapped[bool] = mapped_column(Boolean, default=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    # settings
    shuffle_questions: Mapped[bool] = mapped_column(Boolean, default=False)
    allow_review: Mapped[bool] = mapped_column(Boolean, default=True)
    show_correct_answers: Mapped[bool] = mapped_column(Boolean, default=True)
    passing_score: Mapped[int] = mapped_column(Integer, default=60)

    # aggregate stats, mutated only by the attempt engine / rollup
    total_attempts: Mapped[int] = mapped_column(Integer, default=0)
    completed_attempts: Mapped[int] = mapped_column(Integer, default=0)
    average_score: Mapped[int] = mapped_column(Integer, default=0)
    average_time_spent: Mapped[int] = mapped_column(Integer, default=0)
    pass_rate: Mapped[int] = mapped_column(Integer, default=0)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, index=True
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow
    )

    creator: Mapped["User"] = relationship(back_populates="quizzes")
    questions: Mapped[list["Question"]] = relationship(
        back_populates="quiz",
        cascade="all, delete-orphan",
        order_by="Question.position",
    )
    tags: Mapped[list["QuizTag"]] = relationship(
        back_populates="quiz", cascade="all, delete-orphan"
    )

    @property
    def question_count(self) -> int:
        return len(self.questions)

    @property
    def tag_names(self) -> list[str]:
        return [t.tag for t in self.tags]

    def recompute_total_points(self) -> None:
        self.total_points = sum(q.points for q in self.questions)


class QuizTag(Base):
    """Join table between Quiz and a free-form tag."""

    __tablename__ = "quiz_tags"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=_uuid
    )
    quiz_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("quizzes.id"), index=True
    )
    tag: Mapped[str] = mapped_column(String(50), index=True)

    quiz: Mapped["Quiz"] = relationship(back_populates="tags")

    __table_args__ = (UniqueConstraint("quiz_id", "tag", name="uq_quiz_tag"),)


# ── Questions ─────────────────────────────────────────────────────────────────


class Question(Base):
    __tablename__ = "questions"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=_uuid
    )
    quiz_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("quizzes.id"), index=True
    )
    position: Mapped[int] = mapped_column(Integer, default=0)
    text: Mapped[str] = mapped_column(Text)
    # [{"text": "...", "is_correct": bool}, ...] in display order
    options: Mapped[list] = mapped_column(JSON, default=list)
    explanation: Mapped[str | None] = mapped_column(Text, nullable=True)
    difficulty: Mapped[DifficultyEnum] = mapped_column(
        Enum(DifficultyEnum, name="difficulty_enum", create_constraint=False),
        default=DifficultyEnum.MEDIUM,
    )
    points: Mapped[int] = mapped_column(Integer, default=1)
    tags: Mapped[list] = mapped_column(JSON, default=list)

    quiz: Mapped["Quiz"] = relationship(back_populates="questions")

    def is_correct_option(self, index: int) -> bool:
        if index < 0 or index >= len(self.options):
            return False
        return bool(self.options[index].get("is_correct"))

    @property
    def correct_option(self) -> int:
        """Index of the first correct option, or -1 if none is flagged."""
        for i, opt in enumerate(self.options):
            if opt.get("is_correct"):
                return i
        return -1


# ── Attempts ──────────────────────────────────────────────────────────────────


class Attempt(Base):
    __tablename__ = "attempts"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=_uuid
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id"), index=True
    )
    quiz_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("quizzes.id"), index=True
    )
    score: Mapped[int] = mapped_column(Integer, default=0)
    total_points: Mapped[int] = mapped_column(Integer, default=0)
    earned_points: Mapped[int] = mapped_column(Integer, default=0)
    time_spent: Mapped[int] = mapped_column(Integer, default=0)  # minutes
    completed: Mapped[bool] = mapped_column(Boolean, default=False, index=True)
    started_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow
    )
    completed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True, index=True
    )

    user: Mapped["User"] = relationship(back_populates="attempts")
    quiz: Mapped["Quiz"] = relationship("Quiz")
    answers: Mapped[list["AttemptAnswer"]] = relationship(
        back_populates="attempt", cascade="all, delete-orphan"
    )


class AttemptAnswer(Base):
    """Individual answer within an attempt."""

    __tablename__ = "attempt_answers"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=_uuid
    )
    attempt_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("attempts.id"), index=True
    )
    # no FK: quiz edits can remove questions, old answers keep their reference
    question_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True))
    selected_option: Mapped[int] = mapped_column(Integer)
    is_correct: Mapped[bool] = mapped_column(Boolean, default=False)
    time_spent: Mapped[int] = mapped_column(Integer, default=0)  # seconds

    attempt: Mapped["Attempt"] = relationship(back_populates="answers")
