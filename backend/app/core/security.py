"""Password hashing and JWT token utilities."""

import re
import uuid
from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt
import bcrypt

from app.config import settings

# ── Password hashing ──────────────────────────────────────────────────────────

_PASSWORD_RULE = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)")


def is_strong_password(plain: str) -> bool:
    """At least 6 chars with one lowercase, one uppercase and one digit."""
    return len(plain) >= 6 and bool(_PASSWORD_RULE.match(plain))


def hash_password(plain: str) -> str:
    """Return bcrypt hash of *plain* password.

    Args:
        plain: Plain text password

    Returns:
        Bcrypt hash of the password (str)

    Raises:
        ValueError: If password is longer than 72 bytes
    """
    if len(plain.encode("utf-8")) > 72:
        raise ValueError(
            f"Password is {len(plain.encode('utf-8'))} bytes, but bcrypt has a "
            f"72-byte limit. Please use a shorter password."
        )
    salt = bcrypt.gensalt(rounds=12)
    hashed = bcrypt.hashpw(plain.encode("utf-8"), salt)
    return hashed.decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Check *plain* against *hashed* password. Malformed hashes never match."""
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        return False


# ── JWT tokens ────────────────────────────────────────────────────────────────


def create_access_token(
    data: dict,
    expires_delta: timedelta | None = None,
) -> str:
    """Create a signed JWT access token."""
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    # jti keeps tokens issued within the same second distinct for the blacklist
    to_encode.update({"exp": expire, "jti": uuid.uuid4().hex})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str) -> dict | None:
    """Decode and validate a JWT. Returns payload dict or None on failure."""
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        return None


def remaining_validity(payload: dict) -> int:
    """Seconds until the token described by *payload* expires (never negative)."""
    exp = payload.get("exp")
    if exp is None:
        return 0
    now = int(datetime.now(timezone.utc).timestamp())
    return max(0, int(exp) - now)
