"""Models for in-community polls, their options and votes."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from food_connect.db.session import Base
from food_connect.db.time import ensure_utc, utcnow

if TYPE_CHECKING:
    from .community import Community
    from .user import User


class Poll(Base):
    """Question asked in a community.

    A poll is open while ``is_active`` is set and ``closes_at`` (if any) has
    not passed. Closing is terminal.
    """

    __tablename__ = "poll"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    community_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("community.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    created_by_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("user_account.id"),
        nullable=False,
    )
    question: Mapped[str] = mapped_column(String(200), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    closes_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    community: Mapped[Community] = relationship("Community", back_populates="polls")
    creator: Mapped[User] = relationship("User", lazy="joined")
    options: Mapped[list[PollOption]] = relationship(
        "PollOption",
        back_populates="poll",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="PollOption.id",
    )

    def is_open(self, now: datetime | None = None) -> bool:
        """Return True while votes are still accepted."""
        if not self.is_active:
            return False
        if self.closes_at is None:
            return True
        current = now or utcnow()
        return ensure_utc(self.closes_at) > current


class PollOption(Base):
    """Answer choice with a denormalized vote tally.

    ``votes_count`` is only ever written by a recount of ``poll_vote`` rows.
    """

    __tablename__ = "poll_option"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    poll_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("poll.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    text: Mapped[str] = mapped_column(String(100), nullable=False)
    votes_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    poll: Mapped[Poll] = relationship("Poll", back_populates="options")


class PollVote(Base):
    """One user's choice in one poll."""

    __tablename__ = "poll_vote"
    __table_args__ = (
        # One vote per (poll, voter), enforced by the database.
        UniqueConstraint("poll_id", "voter_id", name="uq_poll_vote_poll_voter"),
        Index("ix_poll_vote_option_id", "option_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    poll_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("poll.id", ondelete="CASCADE"),
        nullable=False,
    )
    option_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("poll_option.id", ondelete="CASCADE"),
        nullable=False,
    )
    voter_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("user_account.id", ondelete="CASCADE"),
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
