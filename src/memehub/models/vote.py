"""Vote ledger ORM model."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import TYPE_CHECKING

from sqlalchemy import Enum, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from memehub.database import Base, utcnow

if TYPE_CHECKING:
    from memehub.models.meme import Meme
    from memehub.models.user import User


class VoteDirection(StrEnum):
    """Direction of a vote on a meme."""

    UP = "up"
    DOWN = "down"

    @property
    def counter(self) -> str:
        """Name of the meme counter this direction feeds."""
        return "upvotes" if self is VoteDirection.UP else "downvotes"


class MemeVote(Base):
    """Current vote of one user on one meme.

    One row per (user, meme) pair: a meme is either in the user's upvoted set,
    in the downvoted set, or in neither, never in both.
    """

    __tablename__ = "meme_votes"

    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )
    meme_id: Mapped[int] = mapped_column(
        ForeignKey("memes.id", ondelete="CASCADE"), primary_key=True, index=True
    )
    direction: Mapped[VoteDirection] = mapped_column(
        Enum(
            VoteDirection,
            native_enum=False,
            length=8,
            values_callable=lambda enum: [member.value for member in enum],
        )
    )
    voted_at: Mapped[datetime] = mapped_column(default=utcnow, onupdate=utcnow)

    # Relationships
    user: Mapped[User] = relationship(back_populates="votes")
    meme: Mapped[Meme] = relationship(back_populates="votes")
