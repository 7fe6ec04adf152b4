"""FastAPI dependencies shared across routes."""

import uuid

from fastapi import Depends, Query, Request
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from app.core.errors import UnauthorizedError
from app.core.security import decode_access_token
from app.db.models import User
from app.db.session import get_db
from app.services.cache import ResponseCache
from app.services.token_blacklist import TokenBlacklist

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


def get_cache(request: Request) -> ResponseCache:
    """Response cache built at startup (see ``app.main.lifespan``)."""
    return request.app.state.cache


def get_blacklist(request: Request) -> TokenBlacklist:
    return request.app.state.token_blacklist


def _resolve_user(token: str, db: Session, blacklist: TokenBlacklist) -> User:
    if blacklist.is_revoked(token):
        raise UnauthorizedError("Token is invalid")
    payload = decode_access_token(token)
    if payload is None:
        raise UnauthorizedError("Invalid or expired token")
    user_id = payload.get("sub")
    if user_id is None:
        raise UnauthorizedError("Invalid token payload")
    try:
        user = db.get(User, uuid.UUID(user_id))
    except ValueError:
        raise UnauthorizedError("Invalid token payload") from None
    if user is None:
        raise UnauthorizedError("User no longer exists")
    if not user.is_active:
        raise UnauthorizedError("User account is deactivated")
    return user


def get_current_user(
    token: str | None = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
    blacklist: TokenBlacklist = Depends(get_blacklist),
) -> User:
    """Decode JWT and return the authenticated user, or 401."""
    if not token:
        raise UnauthorizedError("Not authorized to access this route")
    return _resolve_user(token, db, blacklist)


def get_optional_user(
    token: str | None = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
    blacklist: TokenBlacklist = Depends(get_blacklist),
) -> User | None:
    """Like ``get_current_user`` but anonymous callers get ``None``."""
    if not token:
        return None
    return _resolve_user(token, db, blacklist)


class PageParams:
    """``page`` / ``limit`` query parameters."""

    def __init__(
        self,
        page: int = Query(1, ge=1),
        limit: int = Query(10, ge=1, le=100),
    ) -> None:
        self.page = page
        self.limit = limit
