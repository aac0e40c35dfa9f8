"""User and badge ORM models."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import TYPE_CHECKING

from sqlalchemy import Enum, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from memehub.database import Base, utcnow

if TYPE_CHECKING:
    from memehub.models.meme import Comment, Meme
    from memehub.models.vote import MemeVote


class Badge(StrEnum):
    """Achievement tags a user can earn. Granted once, never revoked."""

    FIRST_UPLOAD = "first_upload"
    VIRAL_POST = "viral_post"
    COMMENT_KING = "comment_king"
    PROLIFIC_CREATOR = "prolific_creator"
    WEEKLY_WINNER = "weekly_winner"


class User(Base):
    """User account model for authentication and ownership."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True)
    username: Mapped[str] = mapped_column(String(20), unique=True, index=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    hashed_password: Mapped[str | None] = mapped_column(String(255), nullable=True)
    google_id: Mapped[str | None] = mapped_column(
        String(255), nullable=True
    )  # set for external-identity accounts
    profile_picture: Mapped[str] = mapped_column(String(500), default="")
    bio: Mapped[str] = mapped_column(String(160), default="")
    is_active: Mapped[bool] = mapped_column(default=True)
    created_at: Mapped[datetime] = mapped_column(default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(default=utcnow, onupdate=utcnow)

    # Relationships
    badges: Mapped[list[UserBadge]] = relationship(
        back_populates="user", cascade="all, delete-orphan", order_by="UserBadge.awarded_at"
    )
    memes: Mapped[list[Meme]] = relationship(back_populates="creator", cascade="all, delete-orphan")
    comments: Mapped[list[Comment]] = relationship(back_populates="user")
    votes: Mapped[list[MemeVote]] = relationship(
        back_populates="user", cascade="all, delete-orphan"
    )


class UserBadge(Base):
    """A badge held by a user. The composite key keeps each badge unique per user."""

    __tablename__ = "user_badges"

    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )
    badge: Mapped[Badge] = mapped_column(
        Enum(
            Badge,
            native_enum=False,
            length=32,
            values_callable=lambda enum: [member.value for member in enum],
        ),
        primary_key=True,
    )
    awarded_at: Mapped[datetime] = mapped_column(default=utcnow)

    # Relationships
    user: Mapped[User] = relationship(back_populates="badges")
