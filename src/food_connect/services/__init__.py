"""Business logic services for the Food Connect application."""

from . import communities, membership, messaging, polls, reconcile
from .results import ErrorKind, Failure, Ok, Result

__all__ = [
    "communities",
    "membership",
    "messaging",
    "polls",
    "reconcile",
    "ErrorKind",
    "Failure",
    "Ok",
    "Result",
]
