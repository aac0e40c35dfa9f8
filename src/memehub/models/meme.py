"""Meme and comment ORM models."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import JSON, CheckConstraint, ForeignKey, Index, String, Text, func, select
from sqlalchemy.ext.hybrid import hybrid_property
from sqlalchemy.orm import Mapped, column_property, mapped_column, relationship

from memehub.database import Base, utcnow

if TYPE_CHECKING:
    from memehub.models.user import User
    from memehub.models.vote import MemeVote


class Comment(Base):
    """A comment on a meme. Comments are append-only."""

    __tablename__ = "comments"

    id: Mapped[int] = mapped_column(primary_key=True)
    meme_id: Mapped[int] = mapped_column(ForeignKey("memes.id", ondelete="CASCADE"), index=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    text: Mapped[str] = mapped_column(String(140))
    created_at: Mapped[datetime] = mapped_column(default=utcnow)

    # Relationships
    meme: Mapped[Meme] = relationship(back_populates="comments")
    user: Mapped[User] = relationship(back_populates="comments")


class Meme(Base):
    """A published meme with its vote and view counters."""

    __tablename__ = "memes"
    __table_args__ = (
        CheckConstraint("upvotes >= 0", name="ck_meme_upvotes_non_negative"),
        CheckConstraint("downvotes >= 0", name="ck_meme_downvotes_non_negative"),
        CheckConstraint("views >= 0", name="ck_meme_views_non_negative"),
        Index("ix_memes_created_at", "created_at"),
        Index("ix_memes_upvotes", "upvotes"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    title: Mapped[str] = mapped_column(String(100))
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    image_url: Mapped[str] = mapped_column(Text)
    creator_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    tags: Mapped[list[str]] = mapped_column(JSON, default=list)
    upvotes: Mapped[int] = mapped_column(default=0)
    downvotes: Mapped[int] = mapped_column(default=0)
    views: Mapped[int] = mapped_column(default=0)
    created_at: Mapped[datetime] = mapped_column(default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(default=utcnow, onupdate=utcnow)

    comment_count: Mapped[int] = column_property(
        select(func.count(Comment.id))
        .where(Comment.meme_id == id)
        .correlate_except(Comment)
        .scalar_subquery()
    )

    # Relationships
    creator: Mapped[User] = relationship(back_populates="memes")
    comments: Mapped[list[Comment]] = relationship(
        back_populates="meme",
        cascade="all, delete-orphan",
        order_by=[Comment.created_at, Comment.id],
    )
    votes: Mapped[list[MemeVote]] = relationship(
        back_populates="meme", cascade="all, delete-orphan"
    )

    @hybrid_property
    def score(self) -> int:
        """Upvotes minus downvotes. Always derived, never stored."""
        return self.upvotes - self.downvotes
