"""Community chat endpoints for the Food Connect API."""

from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, HTTPException, Query, status

from food_connect.core.security import is_moderator
from food_connect.models import CommunityMessage, User
from food_connect.schemas.message import MessageCreate, MessageResponse
from food_connect.schemas.place import PlaceSummary
from food_connect.schemas.user import UserSummary
from food_connect.services import messaging

from ..dependencies import CurrentUserDep, SessionDep, unwrap
from .communities import get_community_or_404

router = APIRouter(tags=["messages"])


def _serialize_message(message: CommunityMessage, reader: User) -> MessageResponse:
    """Serialize a message, redacting deleted text for ordinary readers."""
    original_text = message.text if message.is_deleted and is_moderator(reader) else None
    return MessageResponse(
        id=message.id,
        community_id=message.community_id,
        author=UserSummary.model_validate(message.author),
        text=message.display_text,
        attached_place=(
            PlaceSummary.model_validate(message.attached_place)
            if message.attached_place is not None
            else None
        ),
        message_type=message.message_type,
        is_deleted=message.is_deleted,
        created_at=message.created_at,
        original_text=original_text,
    )


@router.get("/communities/{community_id}/messages", response_model=list[MessageResponse])
async def get_community_messages(
    community_id: int,
    current_user: CurrentUserDep,
    db: SessionDep,
    limit: int | None = Query(None, ge=1, le=100),
    before: datetime | None = Query(None, description="Only messages created before this time"),
) -> list[MessageResponse]:
    """Get a page of chat messages, oldest first."""
    community = get_community_or_404(db, community_id)
    messages = unwrap(
        messaging.list_messages(db, community, current_user, limit=limit, before=before)
    )
    return [_serialize_message(message, current_user) for message in messages]


@router.post(
    "/communities/{community_id}/messages",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
)
async def send_message(
    community_id: int,
    message_data: MessageCreate,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> MessageResponse:
    """Post a message to a community the caller belongs to."""
    community = get_community_or_404(db, community_id)
    message = unwrap(messaging.post_message(db, community, current_user, message_data))
    return _serialize_message(message, current_user)


@router.delete("/messages/{message_id}", response_model=MessageResponse)
async def delete_message(
    message_id: int,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> MessageResponse:
    """Soft-delete a message (author or admin)."""
    message = db.get(CommunityMessage, message_id)
    if message is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"code": "NotFound", "message": "Message not found"},
        )
    deleted = unwrap(messaging.soft_delete_message(db, message, current_user))
    return _serialize_message(deleted, current_user)
