"""User & authentication schemas."""

import uuid
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, EmailStr, Field, field_validator

from app.core.security import is_strong_password
from app.schemas.quiz import Difficulty


class Role(str, Enum):
    USER = "user"
    ADMIN = "admin"


class UserCreate(BaseModel):
    """POST /api/auth/register"""

    name: str = Field(min_length=2, max_length=50)
    email: EmailStr
    password: str

    @field_validator("name")
    @classmethod
    def _strip_name(cls, v: str) -> str:
        v = v.strip()
        if len(v) < 2:
            raise ValueError("Name must be between 2 and 50 characters")
        return v

    @field_validator("email")
    @classmethod
    def _lower_email(cls, v: str) -> str:
        return v.lower()

    @field_validator("password")
    @classmethod
    def _strong_password(cls, v: str) -> str:
        if not is_strong_password(v):
            raise ValueError(
                "Password must be at least 6 characters long and contain at least "
                "one lowercase letter, one uppercase letter, and one number"
            )
        return v


class UserLogin(BaseModel):
    """POST /api/auth/login"""

    email: EmailStr
    password: str = Field(min_length=1)

    @field_validator("email")
    @classmethod
    def _lower_email(cls, v: str) -> str:
        return v.lower()


class NotificationPrefs(BaseModel):
    email: bool = True
    push: bool = True


class Preferences(BaseModel):
    difficulty: Difficulty = Difficulty.MEDIUM
    subjects: list[str] = []
    notifications: NotificationPrefs = NotificationPrefs()


class ProfileUpdate(BaseModel):
    """PUT /api/users/profile — only name and preferences are editable."""

    name: str | None = Field(default=None, min_length=2, max_length=50)
    preferences: Preferences | None = None


class AccountDelete(BaseModel):
    """DELETE /api/users/account"""

    password: str | None = None


class UserStats(BaseModel):
    total_quizzes: int = 0
    completed_quizzes: int = 0
    average_score: int = 0
    total_time_spent: int = 0
    streak: int = 0
    last_quiz_date: datetime | None = None

    model_config = {"from_attributes": True}


class UserRead(BaseModel):
    """User returned from API — never exposes password."""

    id: uuid.UUID
    name: str
    email: str
    role: Role
    level: str
    avatar: str = ""
    preferences: Preferences
    stats: UserStats
    is_active: bool
    last_login: datetime | None = None
    created_at: datetime

    @classmethod
    def from_user(cls, user) -> "UserRead":
        return cls(
            id=user.id,
            name=user.name,
            email=user.email,
            role=user.role.value,
            level=user.level,
            avatar=user.avatar or "",
            preferences=Preferences.model_validate(user.preferences or {}),
            stats=UserStats.model_validate(user),
            is_active=user.is_active,
            last_login=user.last_login,
            created_at=user.created_at,
        )


class AuthResponse(BaseModel):
    """Combined auth response: token + user profile."""

    access_token: str
    token_type: str = "bearer"
    user: UserRead
