"""Shared API dependencies for authentication and error translation."""

from typing import Annotated, TypeVar

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from sqlalchemy.orm import Session

from food_connect.core.security import decode_access_token
from food_connect.db.session import get_db
from food_connect.models import User
from food_connect.services.results import ErrorKind, Failure, Result

T = TypeVar("T")

# HTTP Bearer scheme for JWT authentication
bearer_scheme = HTTPBearer()

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]

STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    ErrorKind.ALREADY_MEMBER: status.HTTP_409_CONFLICT,
    ErrorKind.NOT_MEMBER: status.HTTP_404_NOT_FOUND,
    ErrorKind.COMMUNITY_FULL: status.HTTP_409_CONFLICT,
    ErrorKind.PASSWORD_REQUIRED: status.HTTP_400_BAD_REQUEST,
    ErrorKind.INVALID_PASSWORD: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.WEAK_PASSWORD: status.HTTP_400_BAD_REQUEST,
    ErrorKind.VALIDATION_ERROR: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorKind.POLL_CLOSED: status.HTTP_409_CONFLICT,
    ErrorKind.ALREADY_VOTED: status.HTTP_409_CONFLICT,
    ErrorKind.OPTION_MISMATCH: status.HTTP_400_BAD_REQUEST,
}


def _credentials_error(detail: str = "Could not validate credentials") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(bearer_scheme)],
    db: SessionDep,
) -> User:
    """Get the current authenticated user from JWT token.

    Raises:
        HTTPException: If the token is invalid or the user is unknown or inactive
    """
    try:
        payload = decode_access_token(credentials.credentials)
    except JWTError as err:
        raise _credentials_error() from err

    subject = payload.get("sub")
    try:
        user_id = int(subject)
    except (TypeError, ValueError) as err:
        raise _credentials_error() from err

    user = db.get(User, user_id)
    if user is None or not user.is_active:
        raise _credentials_error("Token is not valid or user is inactive")
    return user


# Type alias for current user dependency
CurrentUserDep = Annotated[User, Depends(get_current_user)]


def to_http_exception(failure: Failure) -> HTTPException:
    """Translate a rejected core operation into an HTTP error."""
    detail: dict[str, object] = {"code": failure.kind.value, "message": failure.message}
    if failure.kind is ErrorKind.PASSWORD_REQUIRED:
        detail["requires_password"] = True
    return HTTPException(status_code=STATUS_BY_KIND[failure.kind], detail=detail)


def unwrap(result: Result[T]) -> T:
    """Return the success value or raise the matching HTTP error."""
    if isinstance(result, Failure):
        raise to_http_exception(result)
    return result.value
