"""Quiz catalog, authoring and attempt lifecycle routes."""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.api.deps import PageParams, get_cache, get_current_user, get_optional_user
from app.db.models import DifficultyEnum, User
from app.db.session import get_db
from app.schemas.attempt import AttemptResult, AttemptStartRead, AttemptSubmit
from app.schemas.common import SuccessResponse
from app.schemas.quiz import Difficulty, QuizCreate, QuizListRead, QuizRead, QuizSort
from app.services import attempt_engine, quiz_catalog
from app.services.cache import ResponseCache

router = APIRouter()


@router.get("", response_model=QuizListRead)
def list_quizzes(
    category: str | None = None,
    difficulty: Difficulty | None = None,
    search: str | None = None,
    tags: str | None = Query(None, description="Comma-separated tag names"),
    sort: QuizSort = QuizSort.NEWEST,
    paging: PageParams = Depends(),
    db: Session = Depends(get_db),
    cache: ResponseCache = Depends(get_cache),
):
    """Public, active quizzes with filters and pagination."""
    params = quiz_catalog.CatalogQuery(
        category=category,
        difficulty=DifficultyEnum(difficulty.value) if difficulty else None,
        search=search,
        tags=tags,
        sort=sort,
        page=paging.page,
        limit=paging.limit,
    )
    return quiz_catalog.list_quizzes(db, params, cache)


@router.post("", response_model=QuizRead, status_code=status.HTTP_201_CREATED)
def create_quiz(
    body: QuizCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return quiz_catalog.create_quiz(db, body, current_user)


@router.get("/{quiz_id}", response_model=QuizRead)
def get_quiz(
    quiz_id: str,
    viewer: User | None = Depends(get_optional_user),
    db: Session = Depends(get_db),
):
    """Full quiz; correct answers are only shown to its creator or an admin."""
    return quiz_catalog.read_quiz(db, quiz_id, viewer)


@router.put("/{quiz_id}", response_model=QuizRead)
def update_quiz(
    quiz_id: str,
    body: QuizCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return quiz_catalog.update_quiz(db, quiz_id, body, current_user)


@router.delete("/{quiz_id}", response_model=SuccessResponse)
def delete_quiz(
    quiz_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    quiz_catalog.delete_quiz(db, quiz_id, current_user)
    return SuccessResponse(message="Quiz deleted successfully")


@router.post("/{quiz_id}/start", response_model=AttemptStartRead, status_code=status.HTTP_201_CREATED)
def start_quiz(
    quiz_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Open an attempt and return the quiz without its answers."""
    return attempt_engine.start_attempt(db, quiz_id, current_user)


@router.post("/{quiz_id}/submit", response_model=AttemptResult)
def submit_quiz(
    quiz_id: str,
    body: AttemptSubmit,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Grade an open attempt and roll the result into quiz and user stats."""
    return attempt_engine.submit_attempt(db, quiz_id, body, current_user)
