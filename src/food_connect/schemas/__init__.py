"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation.
Length bounds are enforced by the services so every rejection carries the same
error shape.
"""

from .community import (
    CommunityCreate,
    CommunityDetailResponse,
    CommunityPage,
    CommunityResponse,
    CommunitySettingsUpdate,
    CommunitySummary,
    JoinRequest,
)
from .message import MessageCreate, MessageResponse
from .place import PlaceSummary
from .poll import (
    PollCreate,
    PollOptionResponse,
    PollResponse,
    PollResultOption,
    PollResultsResponse,
    VoteRequest,
)
from .user import UserSummary

__all__ = [
    "CommunityCreate", "CommunityDetailResponse", "CommunityPage", "CommunityResponse",
    "CommunitySettingsUpdate", "CommunitySummary", "JoinRequest",
    "MessageCreate", "MessageResponse",
    "PlaceSummary",
    "PollCreate", "PollOptionResponse", "PollResponse", "PollResultOption",
    "PollResultsResponse", "VoteRequest",
    "UserSummary",
]
