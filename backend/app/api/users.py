"""Profile, leaderboard, achievements and account routes."""

import logging
import time

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api.deps import get_current_user
from app.config import settings
from app.core.errors import InvalidStateError, UnauthorizedError
from app.core.security import verify_password
from app.db.models import User
from app.db.session import get_db
from app.schemas.analytics import AchievementsRead, LeaderboardRead
from app.schemas.common import SuccessResponse
from app.schemas.user import AccountDelete, ProfileUpdate, UserRead
from app.services.achievements import achievements_for
from app.services.analytics import build_leaderboard

logger = logging.getLogger(__name__)
router = APIRouter()


@router.put("/profile", response_model=UserRead)
def update_profile(
    body: ProfileUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Update the caller's name and/or preferences."""
    if body.name is not None:
        current_user.name = body.name.strip()
    if body.preferences is not None:
        current_user.preferences = body.preferences.model_dump(mode="json")
    db.commit()
    db.refresh(current_user)
    logger.info("Profile updated: %s", current_user.email)
    return UserRead.from_user(current_user)


@router.get("/leaderboard", response_model=LeaderboardRead)
def leaderboard(
    timeframe: str = Query("all", pattern="^(all|week|month|year)$"),
    category: str | None = None,
    page: int = Query(1, ge=1),
    limit: int = Query(settings.LEADERBOARD_DEFAULT_LIMIT, ge=1, le=100),
    db: Session = Depends(get_db),
):
    """Users ranked by average score, then total points earned."""
    limit = min(limit, settings.LEADERBOARD_MAX_LIMIT)
    return build_leaderboard(db, timeframe=timeframe, category=category, page=page, limit=limit)


@router.get("/achievements", response_model=AchievementsRead)
def achievements(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return achievements_for(db, current_user)


@router.delete("/account", response_model=SuccessResponse)
def delete_account(
    body: AccountDelete,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Soft-delete: deactivate and free up the email address."""
    if not body.password:
        raise InvalidStateError("Password is required to delete account")
    if not verify_password(body.password, current_user.hashed_password):
        raise UnauthorizedError("Incorrect password")

    original_email = current_user.email
    current_user.is_active = False
    current_user.email = f"deleted_{int(time.time() * 1000)}_{original_email}"
    db.commit()

    logger.info("Account deleted: %s", original_email)
    return SuccessResponse(message="Account deleted successfully")
