"""Pydantic schemas for request/response validation."""

from memehub.schemas.ai import CaptionRequest, CaptionSuggestions, TagSuggestions
from memehub.schemas.leaderboard import (
    CreatorStats,
    CreatorStatsSummary,
    CreatorTotals,
    LeaderboardEntry,
    TagCount,
    TimelinePoint,
)
from memehub.schemas.meme import (
    CommentCreate,
    CommentResponse,
    MemeCreate,
    MemeCreator,
    MemeListResponse,
    MemeResponse,
    MemeSort,
    MemeWithComments,
    MyVoteResponse,
    VoteResponse,
)
from memehub.schemas.user import (
    PublicUserResponse,
    Token,
    UserCreate,
    UserLogin,
    UserResponse,
    UserUpdate,
)

__all__ = [
    # User schemas
    "UserCreate",
    "UserUpdate",
    "UserLogin",
    "UserResponse",
    "PublicUserResponse",
    "Token",
    # Meme schemas
    "MemeSort",
    "MemeCreator",
    "MemeCreate",
    "MemeResponse",
    "MemeWithComments",
    "MemeListResponse",
    "CommentCreate",
    "CommentResponse",
    "VoteResponse",
    "MyVoteResponse",
    # Suggestion schemas
    "CaptionRequest",
    "CaptionSuggestions",
    "TagSuggestions",
    # Leaderboard schemas
    "CreatorTotals",
    "LeaderboardEntry",
    "CreatorStatsSummary",
    "CreatorStats",
    "TimelinePoint",
    "TagCount",
]
