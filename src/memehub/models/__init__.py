"""SQLAlchemy ORM models."""

from memehub.models.meme import Comment, Meme
from memehub.models.user import Badge, User, UserBadge
from memehub.models.vote import MemeVote, VoteDirection

__all__ = [
    "Badge",
    "Comment",
    "Meme",
    "MemeVote",
    "User",
    "UserBadge",
    "VoteDirection",
]
