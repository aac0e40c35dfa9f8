"""Pydantic schemas for leaderboard and creator statistics."""

from pydantic import BaseModel, Field

from memehub.models.user import Badge
from memehub.schemas.meme import MemeResponse


class CreatorTotals(BaseModel):
    """Aggregate counters over a set of a creator's memes."""

    total_memes: int = Field(default=0, description="Number of memes")
    total_upvotes: int = Field(default=0, description="Sum of upvotes")
    total_downvotes: int = Field(default=0, description="Sum of downvotes")
    total_score: int = Field(default=0, description="Sum of per-meme scores")
    total_views: int = Field(default=0, description="Sum of views")
    total_comments: int = Field(default=0, description="Sum of comments")


class LeaderboardEntry(CreatorTotals):
    """One ranked creator on a leaderboard."""

    rank: int = Field(description="1-based position")
    user_id: int = Field(description="Creator user ID")
    username: str = Field(description="Creator username")
    profile_picture: str = Field(default="", description="Creator profile picture URL")
    badges: list[Badge] = Field(default_factory=list, description="Badges held by the creator")


class CreatorStatsSummary(CreatorTotals):
    """All-time totals for one creator."""

    average_score: float = Field(default=0.0, description="Mean score per meme (2 dp)")


class TimelinePoint(BaseModel):
    """Publishing activity of a creator on one day."""

    date: str = Field(description="Day (YYYY-MM-DD)")
    count: int = Field(description="Memes published that day")
    upvotes: int = Field(description="Upvotes on those memes")
    views: int = Field(description="Views on those memes")


class CreatorStats(BaseModel):
    """Dashboard statistics for one creator."""

    stats: CreatorStatsSummary = Field(description="All-time totals")
    top_meme: MemeResponse | None = Field(default=None, description="Most upvoted meme")
    timeline: list[TimelinePoint] = Field(default_factory=list, description="Daily activity")


class TagCount(BaseModel):
    """How many memes carry a tag."""

    tag: str = Field(description="Tag")
    count: int = Field(description="Number of memes with the tag")
