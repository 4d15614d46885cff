"""Version 1 API endpoints."""

from .endpoints import communities_router, messages_router, polls_router

__all__ = [
    "communities_router",
    "messages_router",
    "polls_router",
]
