"""Password hashing, bearer tokens and role checks."""
from __future__ import annotations

from datetime import timedelta
from typing import TYPE_CHECKING, Any

import bcrypt
from jose import jwt

from food_connect.core.settings import settings
from food_connect.db.time import utcnow

if TYPE_CHECKING:
    from food_connect.models.user import User

ROLE_ADMIN = "admin"
ROLE_USER = "user"


def hash_password(password: str) -> str:
    """Hash a community password with bcrypt."""
    salt = bcrypt.gensalt(rounds=settings.bcrypt_rounds)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Check a password against a stored bcrypt hash in constant time."""
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Malformed stored hash.
        return False


def create_access_token(user_id: int, extra_claims: dict[str, Any] | None = None) -> str:
    """Create a JWT access token whose subject is the user id."""
    to_encode: dict[str, Any] = {"sub": str(user_id)}
    if extra_claims:
        to_encode.update(extra_claims)
    to_encode["exp"] = utcnow() + timedelta(minutes=settings.access_token_expire_minutes)
    encoded_jwt: str = jwt.encode(
        to_encode,
        settings.secret_key,
        algorithm=settings.jwt_algorithm,
    )
    return encoded_jwt


def decode_access_token(token: str) -> dict[str, Any]:
    """Decode and verify a bearer token.

    Raises:
        jose.JWTError: If the signature or expiry check fails.
    """
    payload: dict[str, Any] = jwt.decode(
        token,
        settings.secret_key,
        algorithms=[settings.jwt_algorithm],
    )
    return payload


def is_moderator(user: User) -> bool:
    """Return True when the user may moderate any community."""
    return user.role == ROLE_ADMIN
