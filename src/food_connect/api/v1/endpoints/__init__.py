"""API endpoint modules for version 1."""

from .communities import router as communities_router
from .messages import router as messages_router
from .polls import router as polls_router

__all__ = [
    "communities_router",
    "messages_router",
    "polls_router",
]
