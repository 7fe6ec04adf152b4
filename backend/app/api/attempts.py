"""Attempt history routes."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.deps import PageParams, get_current_user
from app.db.models import User
from app.db.session import get_db
from app.schemas.attempt import AttemptDetailRead, AttemptListRead, AttemptRead
from app.schemas.common import Pagination
from app.services.attempt_engine import (
    answer_details,
    get_user_attempt,
    list_user_attempts,
    passing_score_of,
)

router = APIRouter()


@router.get("", response_model=AttemptListRead)
def list_attempts(
    paging: PageParams = Depends(),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """The caller's completed attempts, newest first."""
    rows, total = list_user_attempts(db, current_user, paging.page, paging.limit)
    return AttemptListRead(
        count=len(rows),
        total=total,
        pagination=Pagination.build(paging.page, paging.limit, total),
        data=[AttemptRead.model_validate(a) for a in rows],
    )


@router.get("/{attempt_id}", response_model=AttemptDetailRead)
def get_attempt(
    attempt_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Single attempt; per-answer review only when the quiz allows it."""
    attempt = get_user_attempt(db, attempt_id, current_user)
    quiz = attempt.quiz
    base = AttemptRead.model_validate(attempt)
    answers = None
    if attempt.completed and quiz.allow_review:
        answers = answer_details(quiz, attempt.answers)
    return AttemptDetailRead(
        **base.model_dump(),
        passed=attempt.completed and attempt.score >= passing_score_of(quiz),
        answers=answers,
    )
