"""Community chat: posting, paging and soft deletion of messages."""

from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy.orm import Session

from food_connect.core.security import is_moderator
from food_connect.core.settings import settings
from food_connect.db.time import ensure_utc
from food_connect.models import Community, CommunityMessage, Place, User
from food_connect.schemas.message import MessageCreate
from food_connect.services import membership
from food_connect.services.results import ErrorKind, Ok, Result, fail

logger = logging.getLogger(__name__)

MESSAGE_MIN_LENGTH = 1
MESSAGE_MAX_LENGTH = 500


def post_message(
    db: Session,
    community: Community,
    author: User,
    data: MessageCreate,
) -> Result[CommunityMessage]:
    """Append a message to the community channel (members only)."""
    if not community.is_active:
        return fail(ErrorKind.NOT_FOUND, "Community not found")

    if not membership.is_member(db, community, author.id):
        return fail(
            ErrorKind.FORBIDDEN,
            "Not authorized to send messages in this community",
        )

    text = data.text.strip()
    if not MESSAGE_MIN_LENGTH <= len(text) <= MESSAGE_MAX_LENGTH:
        return fail(
            ErrorKind.VALIDATION_ERROR,
            f"Message must be between {MESSAGE_MIN_LENGTH} and {MESSAGE_MAX_LENGTH} characters",
        )

    if data.attached_place_id is not None and db.get(Place, data.attached_place_id) is None:
        return fail(ErrorKind.NOT_FOUND, "Attached place not found")

    message = CommunityMessage(
        community_id=community.id,
        author_id=author.id,
        text=text,
        attached_place_id=data.attached_place_id,
        message_type=data.message_type,
        is_deleted=False,
    )
    db.add(message)
    db.commit()
    db.refresh(message)
    return Ok(message)


def list_messages(
    db: Session,
    community: Community,
    reader: User,
    limit: int | None = None,
    before: datetime | None = None,
) -> Result[list[CommunityMessage]]:
    """Return up to ``limit`` messages older than ``before``, oldest first.

    Deleted messages stay in the page; callers render ``display_text``.
    Equal timestamps fall back to insertion order (the primary key).
    """
    if not community.is_active:
        return fail(ErrorKind.NOT_FOUND, "Community not found")

    if not membership.can_read(db, community, reader):
        return fail(ErrorKind.FORBIDDEN, "Not authorized to access this community")

    page_size = limit if limit is not None else settings.message_page_size
    page_size = min(max(1, page_size), settings.message_page_max)

    query = db.query(CommunityMessage).filter(CommunityMessage.community_id == community.id)
    if before is not None:
        query = query.filter(CommunityMessage.created_at < ensure_utc(before))

    newest_first = (
        query.order_by(CommunityMessage.created_at.desc(), CommunityMessage.id.desc())
        .limit(page_size)
        .all()
    )
    newest_first.reverse()
    return Ok(newest_first)


def soft_delete_message(
    db: Session,
    message: CommunityMessage,
    acting_user: User,
) -> Result[CommunityMessage]:
    """Redact a message (author or moderator). Deleting twice is a no-op."""
    if message.author_id != acting_user.id and not is_moderator(acting_user):
        return fail(ErrorKind.FORBIDDEN, "Not authorized to delete this message")

    if message.is_deleted:
        return Ok(message)

    message.is_deleted = True
    db.commit()
    db.refresh(message)
    logger.info("Message %s deleted by user %s", message.id, acting_user.id)
    return Ok(message)
