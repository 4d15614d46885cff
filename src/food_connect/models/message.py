"""Models describing community chat messages."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from food_connect.db.session import Base
from food_connect.db.time import utcnow

if TYPE_CHECKING:
    from .community import Community
    from .place import Place
    from .user import User

DELETED_MESSAGE_PLACEHOLDER = "[This message has been deleted]"

MESSAGE_TYPES = ("text", "poll", "event", "food_spot")


class CommunityMessage(Base):
    """Append-only chat entry in a community.

    Deleting a message only flips ``is_deleted``; the stored ``text`` is kept
    and ``display_text`` carries what readers are shown.
    """

    __tablename__ = "community_message"
    __table_args__ = (
        Index("ix_community_message_community_created", "community_id", "created_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    community_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("community.id", ondelete="CASCADE"),
        nullable=False,
    )
    author_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("user_account.id"),
        nullable=False,
    )
    text: Mapped[str] = mapped_column(Text, nullable=False)
    attached_place_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("place.id", ondelete="SET NULL"),
        nullable=True,
    )
    message_type: Mapped[str] = mapped_column(String(16), nullable=False, default="text")
    is_deleted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    community: Mapped[Community] = relationship("Community", back_populates="messages")
    author: Mapped[User] = relationship("User", lazy="joined")
    attached_place: Mapped[Place | None] = relationship("Place", lazy="joined")

    @property
    def display_text(self) -> str:
        """Text shown to ordinary readers."""
        if self.is_deleted:
            return DELETED_MESSAGE_PLACEHOLDER
        return self.text
