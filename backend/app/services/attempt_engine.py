"""Attempt lifecycle: start a quiz, score the submission, roll up stats.

An attempt is created in the *started* state with the quiz's point total
snapshotted, and is completed exactly once by ``submit_attempt``. Scoring
compares the submitted option index of each answer with the correctness
flags stored on the question:

    score = round(earned_points / total_points * 100)

Answers that reference a question id the quiz does not contain are dropped
silently; the rest of the submission is still scored. A question answered
more than once is graded on its first answer.
"""

from __future__ import annotations

import logging
import random
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy import update
from sqlalchemy.orm import Session

from app.config import settings
from app.core.errors import ForbiddenError, InvalidStateError, NotFoundError
from app.db.lookups import get_attempt, get_quiz, parse_id
from app.db.models import Attempt, AttemptAnswer, Question, Quiz, User
from app.schemas.attempt import (
    AnswerResult,
    AnswerSubmit,
    AttemptResult,
    AttemptStartRead,
    AttemptSubmit,
)
from app.schemas.quiz import OptionPublic, QuestionPublic, QuizPublic
from app.services.rollup import apply_rollup, round_half_up

logger = logging.getLogger(__name__)


@dataclass
class GradedAnswer:
    question: Question
    selected_option: int
    is_correct: bool
    time_spent: int


# ── Pure scoring ──────────────────────────────────────────────────────────────


def _normalise_question_id(raw: str) -> str | None:
    try:
        return str(uuid.UUID(str(raw)))
    except ValueError:
        return None


def grade_answers(
    questions: dict[str, Question], answers: list[AnswerSubmit]
) -> tuple[int, list[GradedAnswer]]:
    """Return ``(earned_points, graded)`` for *answers* against *questions*.

    *questions* is keyed by the canonical string form of the question id.
    Only the first answer to a question counts; repeats are ignored, so
    ``earned_points`` never exceeds the quiz total.
    """
    earned = 0
    graded: list[GradedAnswer] = []
    seen: set[str] = set()
    for answer in answers:
        key = _normalise_question_id(answer.question_id)
        question = questions.get(key) if key else None
        if question is None or key in seen:
            continue
        seen.add(key)
        is_correct = question.is_correct_option(answer.selected_option)
        if is_correct:
            earned += question.points
        graded.append(
            GradedAnswer(
                question=question,
                selected_option=answer.selected_option,
                is_correct=is_correct,
                time_spent=answer.time_spent,
            )
        )
    return earned, graded


def compute_score(earned_points: int, total_points: int) -> int:
    """Percentage score in 0..100; a quiz worth no points scores 0.

    ``total_points`` is snapshotted at start, so a question re-weighted
    mid-attempt can push the raw ratio above 1.
    """
    if total_points <= 0:
        return 0
    return min(100, round_half_up(earned_points / total_points * 100))


def passing_score_of(quiz: Quiz) -> int:
    if quiz.passing_score is None:
        return settings.DEFAULT_PASSING_SCORE
    return quiz.passing_score


def sanitize_quiz(quiz: Quiz, shuffle: bool = False) -> QuizPublic:
    """Strip correctness flags and explanations before showing the quiz."""
    questions = list(quiz.questions)
    if shuffle:
        random.shuffle(questions)
    return QuizPublic(
        id=quiz.id,
        title=quiz.title,
        description=quiz.description,
        category=quiz.category,
        difficulty=quiz.difficulty.value,
        time_limit=quiz.time_limit,
        total_points=quiz.total_points,
        passing_score=passing_score_of(quiz),
        questions=[
            QuestionPublic(
                id=q.id,
                text=q.text,
                options=[OptionPublic(text=o["text"]) for o in q.options],
                points=q.points,
            )
            for q in questions
        ],
    )


def answer_details(quiz: Quiz, answers: list[AttemptAnswer]) -> list[AnswerResult]:
    """Reveal correct option and explanation for each stored answer still on the quiz."""
    by_id = {q.id: q for q in quiz.questions}
    details = []
    for ans in answers:
        question = by_id.get(ans.question_id)
        if question is None:
            continue
        details.append(
            AnswerResult(
                question_id=ans.question_id,
                question=question.text,
                selected_option=ans.selected_option,
                correct_option=question.correct_option,
                is_correct=ans.is_correct,
                explanation=question.explanation,
            )
        )
    return details


# ── Lifecycle ─────────────────────────────────────────────────────────────────


def start_attempt(db: Session, quiz_id: str, user: User) -> AttemptStartRead:
    quiz = get_quiz(db, quiz_id)
    if not quiz.is_active:
        raise NotFoundError("Quiz not found or inactive")
    if not quiz.is_public and quiz.creator_id != user.id:
        raise ForbiddenError("Access denied to this quiz")

    attempt = Attempt(
        user_id=user.id,
        quiz_id=quiz.id,
        total_points=quiz.total_points,
        earned_points=0,
        score=0,
        time_spent=0,
        completed=False,
        started_at=datetime.now(timezone.utc),
    )
    db.add(attempt)
    quiz.total_attempts = (quiz.total_attempts or 0) + 1
    db.commit()
    db.refresh(attempt)

    logger.info("Quiz attempt started: %s by %s", quiz.title, user.email)

    return AttemptStartRead(
        attempt_id=attempt.id,
        quiz=sanitize_quiz(quiz, shuffle=quiz.shuffle_questions),
        time_limit=quiz.time_limit,
        started_at=attempt.started_at,
    )


def submit_attempt(
    db: Session, quiz_id: str, body: AttemptSubmit, user: User
) -> AttemptResult:
    if not body.attempt_id or body.answers is None:
        raise InvalidStateError("Attempt ID and answers are required")

    quiz_uuid = parse_id(quiz_id, "Quiz")
    attempt = get_attempt(db, body.attempt_id)
    if attempt.quiz_id != quiz_uuid:
        raise NotFoundError("Quiz attempt not found")
    if attempt.user_id != user.id:
        raise ForbiddenError("Not authorized to submit this attempt")
    if attempt.completed:
        raise InvalidStateError("Quiz attempt already completed")

    quiz = attempt.quiz
    questions = {str(q.id): q for q in quiz.questions}
    earned, graded = grade_answers(questions, body.answers)
    score = compute_score(earned, attempt.total_points)
    now = datetime.now(timezone.utc)

    # claim the attempt; a concurrent submit that got here first leaves no row to flip
    claimed = db.execute(
        update(Attempt)
        .where(Attempt.id == attempt.id, Attempt.completed.is_(False))
        .values(completed=True, completed_at=now)
        .execution_options(synchronize_session=False)
    ).rowcount
    if claimed != 1:
        db.rollback()
        raise InvalidStateError("Quiz attempt already completed")

    attempt.answers = [
        AttemptAnswer(
            question_id=g.question.id,
            selected_option=g.selected_option,
            is_correct=g.is_correct,
            time_spent=g.time_spent,
        )
        for g in graded
    ]
    attempt.earned_points = earned
    attempt.score = score
    attempt.time_spent = body.time_spent
    attempt.completed = True
    attempt.completed_at = now

    passing_score = passing_score_of(quiz)
    apply_rollup(quiz, user, score, body.time_spent, passing_score, now)
    db.commit()

    logger.info("Quiz completed: %s by %s, Score: %d%%", quiz.title, user.email, score)

    details = None
    if quiz.show_correct_answers:
        details = [
            AnswerResult(
                question_id=g.question.id,
                question=g.question.text,
                selected_option=g.selected_option,
                correct_option=g.question.correct_option,
                is_correct=g.is_correct,
                explanation=g.question.explanation,
            )
            for g in graded
        ]

    return AttemptResult(
        attempt_id=attempt.id,
        score=score,
        earned_points=earned,
        total_points=attempt.total_points,
        time_spent=body.time_spent,
        passed=score >= passing_score,
        answers=details,
    )


def list_user_attempts(
    db: Session, user: User, page: int, limit: int
) -> tuple[list[Attempt], int]:
    query = db.query(Attempt).filter(
        Attempt.user_id == user.id, Attempt.completed.is_(True)
    )
    total = query.count()
    rows = (
        query.order_by(Attempt.completed_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return rows, total


def get_user_attempt(db: Session, attempt_id: str, user: User) -> Attempt:
    attempt = get_attempt(db, attempt_id)
    if attempt.user_id != user.id:
        raise ForbiddenError("Not authorized to view this attempt")
    return attempt
