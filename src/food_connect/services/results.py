"""Result types returned by the community core.

Expected business outcomes (a full community, a closed poll, ...) are returned
as a :class:`Failure` value instead of being raised, so callers can branch on
``kind``. Storage faults still raise.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar

T = TypeVar("T")


class ErrorKind(str, Enum):
    """Rejection reasons surfaced to callers."""

    NOT_FOUND = "NotFound"
    FORBIDDEN = "Forbidden"
    ALREADY_MEMBER = "AlreadyMember"
    NOT_MEMBER = "NotMember"
    COMMUNITY_FULL = "CommunityFull"
    PASSWORD_REQUIRED = "PasswordRequired"
    INVALID_PASSWORD = "InvalidPassword"
    WEAK_PASSWORD = "WeakPassword"
    VALIDATION_ERROR = "ValidationError"
    POLL_CLOSED = "PollClosed"
    ALREADY_VOTED = "AlreadyVoted"
    OPTION_MISMATCH = "OptionMismatch"


@dataclass(frozen=True)
class Ok(Generic[T]):
    """Successful outcome carrying the operation's value."""

    value: T


@dataclass(frozen=True)
class Failure:
    """Rejected outcome."""

    kind: ErrorKind
    message: str


Result = Ok[T] | Failure


def fail(kind: ErrorKind, message: str) -> Failure:
    return Failure(kind=kind, message=message)
