"""User and quiz analytics routes."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.deps import get_cache, get_current_user
from app.db.models import User
from app.db.session import get_db
from app.schemas.analytics import QuizAnalyticsRead, UserAnalyticsRead
from app.services.analytics import quiz_analytics_for, user_analytics_for
from app.services.cache import ResponseCache

router = APIRouter()


@router.get("/user", response_model=UserAnalyticsRead)
def user_analytics(
    timeframe: str = "month",
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    cache: ResponseCache = Depends(get_cache),
):
    """Performance summary for the caller over week, month or year."""
    return user_analytics_for(db, current_user, timeframe, cache)


@router.get("/quiz/{quiz_id}", response_model=QuizAnalyticsRead)
def quiz_analytics(
    quiz_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Per-quiz breakdown for its creator or an admin."""
    return quiz_analytics_for(db, quiz_id, current_user)
