"""SQLAlchemy models for community membership and metadata."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from food_connect.db.session import Base
from food_connect.db.time import utcnow

if TYPE_CHECKING:
    from .message import CommunityMessage
    from .poll import Poll
    from .user import User


class Community(Base):
    """Named group with a member set, privacy mode, chat and polls."""

    __tablename__ = "community"
    __table_args__ = (
        CheckConstraint(
            "(is_private AND password_hash IS NOT NULL) "
            "OR (NOT is_private AND password_hash IS NULL)",
            name="ck_community_password_iff_private",
        ),
        CheckConstraint("max_members >= 1", name="ck_community_max_members"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(50), nullable=False)
    description: Mapped[str] = mapped_column(String(200), nullable=False)
    created_by_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("user_account.id"),
        nullable=False,
    )
    is_private: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    password_hash: Mapped[str | None] = mapped_column(Text, nullable=True)
    # Issued once at creation and never rewritten.
    invite_code: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    tags: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    max_members: Mapped[int] = mapped_column(Integer, nullable=False, default=50)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    creator: Mapped[User] = relationship("User", lazy="joined")
    member_links: Mapped[list[CommunityMember]] = relationship(
        "CommunityMember",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="CommunityMember.joined_at",
    )
    messages: Mapped[list[CommunityMessage]] = relationship(
        "CommunityMessage",
        back_populates="community",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    polls: Mapped[list[Poll]] = relationship(
        "Poll",
        back_populates="community",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @property
    def members(self) -> list[User]:
        return [link.user for link in self.member_links]

    @property
    def member_ids(self) -> list[int]:
        """Return the ids of current members."""
        return [link.user_id for link in self.member_links]

    @property
    def member_count(self) -> int:
        return len(self.member_links)

    @property
    def requires_password(self) -> bool:
        return self.is_private


class CommunityMember(Base):
    """Join table holding the member set of each community.

    The composite primary key makes adding a member an atomic set-add: a
    second insert of the same pair fails instead of duplicating the row.
    """

    __tablename__ = "community_member"

    community_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("community.id", ondelete="CASCADE"),
        primary_key=True,
    )
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("user_account.id", ondelete="CASCADE"),
        primary_key=True,
    )
    joined_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    user: Mapped[User] = relationship("User", lazy="joined")
