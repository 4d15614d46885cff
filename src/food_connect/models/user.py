"""SQLAlchemy model for the user directory."""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from food_connect.db.session import Base
from food_connect.db.time import utcnow


class User(Base):
    """Account resolved from a bearer token.

    Registration and login live outside this service; rows are read to find
    the acting user, their display name and whether they may moderate.
    """

    __tablename__ = "user_account"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    email: Mapped[str] = mapped_column(String(254), unique=True, nullable=False)
    # "user" or "admin"; admins are privileged moderators across communities.
    role: Mapped[str] = mapped_column(String(16), nullable=False, default="user")
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
