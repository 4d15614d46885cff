"""SQLAlchemy models for the Food Connect application."""

from .community import Community, CommunityMember
from .message import CommunityMessage
from .place import Place
from .poll import Poll, PollOption, PollVote
from .user import User

__all__ = [
    "Community", "CommunityMember",
    "CommunityMessage",
    "Place",
    "Poll", "PollOption", "PollVote",
    "User",
]
