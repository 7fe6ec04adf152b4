"""Registration, login, logout and current-user routes."""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.api.deps import get_blacklist, get_current_user, oauth2_scheme
from app.core.errors import ConflictError, UnauthorizedError
from app.core.security import (
    create_access_token,
    decode_access_token,
    hash_password,
    remaining_validity,
    verify_password,
)
from app.db.models import RoleEnum, User
from app.db.session import get_db
from app.schemas.common import SuccessResponse
from app.schemas.user import AuthResponse, UserCreate, UserLogin, UserRead
from app.services.token_blacklist import TokenBlacklist

logger = logging.getLogger(__name__)
router = APIRouter()


def _issue_token(user: User) -> str:
    return create_access_token(data={"sub": str(user.id), "role": user.role.value})


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register(body: UserCreate, db: Session = Depends(get_db)):
    """Create a new account and log it in."""
    existing = db.query(User).filter(User.email == body.email).first()
    if existing:
        raise ConflictError("User already exists with this email")

    user = User(
        name=body.name,
        email=body.email,
        hashed_password=hash_password(body.password),
        role=RoleEnum.USER,
    )
    db.add(user)
    db.commit()
    db.refresh(user)

    logger.info("New user registered: %s", user.email)
    return AuthResponse(access_token=_issue_token(user), user=UserRead.from_user(user))


@router.post("/login", response_model=AuthResponse)
def login(body: UserLogin, db: Session = Depends(get_db)):
    """Authenticate and return a JWT access token + user profile."""
    user = db.query(User).filter(User.email == body.email).first()
    if not user:
        raise UnauthorizedError("Invalid credentials")
    if not user.is_active:
        raise UnauthorizedError("Account is deactivated")
    if not verify_password(body.password, user.hashed_password):
        raise UnauthorizedError("Invalid credentials")

    user.last_login = datetime.now(timezone.utc)
    db.commit()
    db.refresh(user)

    logger.info("User logged in: %s", user.email)
    return AuthResponse(access_token=_issue_token(user), user=UserRead.from_user(user))


@router.post("/logout", response_model=SuccessResponse)
def logout(
    token: str | None = Depends(oauth2_scheme),
    current_user: User = Depends(get_current_user),
    blacklist: TokenBlacklist = Depends(get_blacklist),
):
    """Reject the caller's token for the rest of its validity."""
    payload = decode_access_token(token) or {}
    blacklist.revoke(token, remaining_validity(payload))
    logger.info("User logged out: %s", current_user.email)
    return SuccessResponse(message="Logged out successfully")


@router.get("/me", response_model=UserRead)
def me(current_user: User = Depends(get_current_user)):
    """Return the authenticated user's profile."""
    return UserRead.from_user(current_user)
