"""Community chat message schemas."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel

from .place import PlaceSummary
from .user import UserSummary

MessageType = Literal["text", "poll", "event", "food_spot"]


class MessageCreate(BaseModel):
    """Schema for posting a message to a community."""

    text: str
    attached_place_id: int | None = None
    message_type: MessageType = "text"


class MessageResponse(BaseModel):
    """Schema for chat messages returned by the API."""

    id: int
    community_id: int
    author: UserSummary
    text: str
    attached_place: PlaceSummary | None
    message_type: str
    is_deleted: bool
    created_at: datetime
    # Only filled in for moderators reading a deleted message.
    original_text: str | None = None
