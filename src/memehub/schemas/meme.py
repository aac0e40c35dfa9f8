"""Pydantic schemas for meme, comment and vote API endpoints."""

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator

from memehub.models.vote import VoteDirection

COMMENT_MAX_LENGTH = 140


class MemeSort(StrEnum):
    """Sort orders for meme listings."""

    NEW = "new"
    TOP = "top"


class MemeCreator(BaseModel):
    """Minimal user info shown next to memes and comments."""

    model_config = ConfigDict(from_attributes=True)

    id: int = Field(description="User ID")
    username: str = Field(description="Username")
    profile_picture: str = Field(default="", description="Profile picture URL")


class MemeCreate(BaseModel):
    """Schema for publishing a new meme."""

    title: str = Field(min_length=1, max_length=100, description="Meme title")
    description: str | None = Field(default=None, max_length=500, description="Optional caption")
    image_data: str = Field(min_length=1, description="Data URI or remote URL of the image")
    tags: list[str] = Field(default_factory=list, description="Free-form tags")

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        """Trim the title and reject blank ones."""
        v = v.strip()
        if not v:
            msg = "Title is required"
            raise ValueError(msg)
        return v

    @field_validator("description")
    @classmethod
    def validate_description(cls, v: str | None) -> str | None:
        """Trim the description, turning blank ones into None."""
        if v is None:
            return None
        return v.strip() or None

    @field_validator("tags")
    @classmethod
    def normalize_tags(cls, v: list[str]) -> list[str]:
        """Lowercase and trim tags, dropping blanks and duplicates."""
        tags: list[str] = []
        for tag in v:
            tag = tag.strip().lower()
            if tag and tag not in tags:
                tags.append(tag)
        return tags


class MemeResponse(BaseModel):
    """Response schema for a meme without its comments."""

    model_config = ConfigDict(from_attributes=True)

    id: int = Field(description="Meme ID")
    title: str = Field(description="Meme title")
    description: str | None = Field(default=None, description="Optional caption")
    image_url: str = Field(description="Image URL")
    creator_id: int = Field(description="Creator user ID")
    creator: MemeCreator | None = Field(default=None, description="Creator information")
    tags: list[str] = Field(default_factory=list, description="Tags")
    upvotes: int = Field(description="Number of upvotes")
    downvotes: int = Field(description="Number of downvotes")
    score: int = Field(description="Upvotes minus downvotes")
    views: int = Field(description="Number of detail views")
    comment_count: int = Field(default=0, description="Number of comments")
    created_at: datetime = Field(description="When the meme was published")


class CommentCreate(BaseModel):
    """Schema for adding a comment to a meme."""

    text: str = Field(description=f"Comment text (1-{COMMENT_MAX_LENGTH} characters)")

    @field_validator("text")
    @classmethod
    def validate_text(cls, v: str) -> str:
        """Trim the text and enforce the length limit."""
        v = v.strip()
        if not v:
            msg = "Comment text is required"
            raise ValueError(msg)
        if len(v) > COMMENT_MAX_LENGTH:
            msg = f"Comment must be {COMMENT_MAX_LENGTH} characters or less"
            raise ValueError(msg)
        return v


class CommentResponse(BaseModel):
    """Response schema for a comment."""

    model_config = ConfigDict(from_attributes=True)

    id: int = Field(description="Comment ID")
    meme_id: int = Field(description="Meme ID")
    user: MemeCreator = Field(description="Comment author")
    text: str = Field(description="Comment text")
    created_at: datetime = Field(description="When the comment was posted")


class MemeWithComments(MemeResponse):
    """Response schema for a meme with its comments, oldest first."""

    comments: list[CommentResponse] = Field(default_factory=list, description="Comments")


class MemeListResponse(BaseModel):
    """Paginated response for listing memes."""

    model_config = ConfigDict(extra="ignore")

    total: int = Field(description="Total number of matching memes")
    page: int = Field(description="Current page number")
    page_size: int = Field(description="Number of items per page")
    total_pages: int = Field(description="Total number of pages")
    has_more: bool = Field(description="Whether more pages follow this one")
    results: list[MemeResponse] = Field(default_factory=list, description="Meme results")


class VoteResponse(BaseModel):
    """Response after a successful vote."""

    message: str = Field(description="Human-readable outcome")
    direction: VoteDirection = Field(description="The vote now held by the user")
    meme: MemeResponse = Field(description="The meme with updated counters")


class MyVoteResponse(BaseModel):
    """The current user's vote on a meme."""

    meme_id: int = Field(description="Meme ID")
    direction: VoteDirection | None = Field(default=None, description="Current vote, if any")
