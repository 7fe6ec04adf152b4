"""Quiz authoring and the public catalog listing."""

import logging
from dataclasses import dataclass

from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from app.config import settings
from app.core.errors import ForbiddenError, NotFoundError
from app.db.lookups import get_quiz
from app.db.models import DifficultyEnum, Question, Quiz, QuizTag, User
from app.schemas.common import Pagination
from app.schemas.quiz import (
    CreatorRead,
    OptionRead,
    QuestionRead,
    QuizCreate,
    QuizListRead,
    QuizRead,
    QuizSettings,
    QuizSort,
    QuizStats,
    QuizSummary,
)
from app.services.cache import ResponseCache

logger = logging.getLogger(__name__)


@dataclass
class CatalogQuery:
    """GET /api/quizzes query string."""

    category: str | None = None
    difficulty: DifficultyEnum | None = None
    search: str | None = None
    tags: str | None = None
    sort: QuizSort = QuizSort.NEWEST
    page: int = 1
    limit: int = 10

    def tag_list(self) -> list[str]:
        if not self.tags:
            return []
        return [t.strip() for t in self.tags.split(",") if t.strip()]

    def cache_params(self) -> dict:
        return {
            "category": self.category,
            "difficulty": self.difficulty.value if self.difficulty else None,
            "search": self.search,
            "tags": sorted(self.tag_list()),
            "sort": self.sort.value,
            "page": self.page,
            "limit": self.limit,
        }


_SORTS = {
    QuizSort.NEWEST: Quiz.created_at.desc(),
    QuizSort.OLDEST: Quiz.created_at.asc(),
    QuizSort.POPULAR: Quiz.total_attempts.desc(),
    QuizSort.RATING: Quiz.average_score.desc(),
}


def _like(term: str) -> str:
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped.lower()}%"


# ── Serialisation ─────────────────────────────────────────────────────────────


def can_manage(quiz: Quiz, user: User | None) -> bool:
    return user is not None and (quiz.creator_id == user.id or user.is_admin)


def to_summary(quiz: Quiz) -> QuizSummary:
    return QuizSummary(
        id=quiz.id,
        title=quiz.title,
        description=quiz.description,
        category=quiz.category,
        difficulty=quiz.difficulty.value,
        time_limit=quiz.time_limit,
        total_points=quiz.total_points,
        question_count=quiz.question_count,
        is_public=quiz.is_public,
        tags=quiz.tag_names,
        creator=CreatorRead.model_validate(quiz.creator),
        stats=QuizStats.model_validate(quiz),
        created_at=quiz.created_at,
    )


def to_read(quiz: Quiz, reveal_answers: bool) -> QuizRead:
    questions = [
        QuestionRead(
            id=q.id,
            text=q.text,
            options=[
                OptionRead(
                    text=o["text"],
                    is_correct=bool(o.get("is_correct")) if reveal_answers else None,
                )
                for o in q.options
            ],
            explanation=q.explanation if reveal_answers else None,
            difficulty=q.difficulty.value,
            points=q.points,
            tags=q.tags or [],
        )
        for q in quiz.questions
    ]
    return QuizRead(
        **to_summary(quiz).model_dump(),
        is_active=quiz.is_active,
        settings=QuizSettings.model_validate(quiz),
        questions=questions,
        updated_at=quiz.updated_at,
    )


# ── Listing ───────────────────────────────────────────────────────────────────


def list_quizzes(db: Session, params: CatalogQuery, cache: ResponseCache) -> QuizListRead:
    cached = cache.get("quizzes", params.cache_params())
    if cached is not None:
        return QuizListRead.model_validate(cached)

    query = db.query(Quiz).filter(Quiz.is_public.is_(True), Quiz.is_active.is_(True))
    if params.category:
        query = query.filter(func.lower(Quiz.category).like(_like(params.category), escape="\\"))
    if params.difficulty:
        query = query.filter(Quiz.difficulty == params.difficulty)
    if params.search:
        query = query.filter(func.lower(Quiz.title).like(_like(params.search), escape="\\"))
    tags = params.tag_list()
    if tags:
        tagged = select(QuizTag.quiz_id).where(QuizTag.tag.in_(tags))
        query = query.filter(Quiz.id.in_(tagged))

    total = query.count()
    rows = (
        query.options(selectinload(Quiz.questions), selectinload(Quiz.tags))
        .order_by(_SORTS[params.sort], Quiz.id)
        .offset((params.page - 1) * params.limit)
        .limit(params.limit)
        .all()
    )

    result = QuizListRead(
        count=len(rows),
        total=total,
        pagination=Pagination.build(params.page, params.limit, total),
        data=[to_summary(q) for q in rows],
    )
    cache.set(
        "quizzes",
        params.cache_params(),
        result.model_dump(mode="json"),
        settings.QUIZ_LIST_CACHE_TTL_SECONDS,
    )
    return result


# ── Reading / authoring ───────────────────────────────────────────────────────


def read_quiz(db: Session, quiz_id: str, viewer: User | None) -> QuizRead:
    quiz = get_quiz(db, quiz_id)
    if not quiz.is_public and (viewer is None or viewer.id != quiz.creator_id):
        raise ForbiddenError("This quiz is private")
    return to_read(quiz, reveal_answers=can_manage(quiz, viewer))


def _apply(quiz: Quiz, body: QuizCreate) -> None:
    quiz.title = body.title
    quiz.description = body.description
    quiz.category = body.category
    quiz.difficulty = DifficultyEnum(body.difficulty.value)
    quiz.time_limit = body.time_limit
    quiz.is_public = body.is_public
    quiz.shuffle_questions = body.settings.shuffle_questions
    quiz.allow_review = body.settings.allow_review
    quiz.show_correct_answers = body.settings.show_correct_answers
    quiz.passing_score = body.settings.passing_score
    quiz.tags = [QuizTag(tag=t) for t in body.tags]
    _apply_questions(quiz, body)
    quiz.recompute_total_points()


def _apply_questions(quiz: Quiz, body: QuizCreate) -> None:
    """Rewrite questions by position so existing rows keep their ids.

    Answers already stored against a question keep matching it after an
    edit; only questions beyond the new count are removed.
    """
    existing = list(quiz.questions)
    questions = []
    for i, q in enumerate(body.questions):
        question = existing[i] if i < len(existing) else Question()
        question.position = i
        question.text = q.text
        question.options = [o.model_dump() for o in q.options]
        question.explanation = q.explanation
        question.difficulty = DifficultyEnum(q.difficulty.value)
        question.points = q.points
        question.tags = list(q.tags)
        questions.append(question)
    quiz.questions = questions


def create_quiz(db: Session, body: QuizCreate, creator: User) -> QuizRead:
    quiz = Quiz(creator_id=creator.id)
    _apply(quiz, body)
    db.add(quiz)
    db.commit()
    db.refresh(quiz)
    logger.info("Quiz created: %s by %s", quiz.title, creator.email)
    return to_read(quiz, reveal_answers=True)


def _managed_quiz(db: Session, quiz_id: str, user: User, action: str) -> Quiz:
    quiz = get_quiz(db, quiz_id)
    if not can_manage(quiz, user):
        raise ForbiddenError(f"Not authorized to {action} this quiz")
    return quiz


def update_quiz(db: Session, quiz_id: str, body: QuizCreate, user: User) -> QuizRead:
    quiz = _managed_quiz(db, quiz_id, user, "update")
    if not quiz.is_active:
        raise NotFoundError("Quiz not found")
    # flush the removal first so the tag unique constraint cannot trip on re-added tags
    quiz.tags = []
    db.flush()
    _apply(quiz, body)
    db.commit()
    db.refresh(quiz)
    logger.info("Quiz updated: %s by %s", quiz.title, user.email)
    return to_read(quiz, reveal_answers=True)


def delete_quiz(db: Session, quiz_id: str, user: User) -> None:
    quiz = _managed_quiz(db, quiz_id, user, "delete")
    quiz.is_active = False
    db.commit()
    logger.info("Quiz deleted: %s by %s", quiz.title, user.email)
