"""Pydantic schemas for user and authentication API endpoints."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from memehub.models.user import Badge


def _check_username(v: str) -> str:
    if not v.replace("_", "").replace("-", "").isalnum():
        msg = "Username can only contain letters, numbers, underscores, and hyphens"
        raise ValueError(msg)
    return v.lower()


class UserCreate(BaseModel):
    """Schema for user registration."""

    username: str = Field(
        min_length=3,
        max_length=20,
        description="Unique username (3-20 characters)",
    )
    email: EmailStr = Field(description="Valid email address")
    password: str = Field(
        min_length=6,
        max_length=100,
        description="Password (6-100 characters)",
    )

    @field_validator("username")
    @classmethod
    def validate_username(cls, v: str) -> str:
        """Validate username contains only allowed characters."""
        return _check_username(v)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        """Store emails lowercase."""
        return v.lower()


class UserUpdate(BaseModel):
    """Schema for editing the current user's profile. Omitted fields are left unchanged."""

    username: str | None = Field(
        default=None,
        min_length=3,
        max_length=20,
        description="New username (3-20 characters)",
    )
    bio: str | None = Field(default=None, max_length=160, description="Short bio")
    profile_picture: str | None = Field(
        default=None, max_length=500, description="Profile picture URL"
    )

    @field_validator("username")
    @classmethod
    def validate_username(cls, v: str | None) -> str | None:
        """Validate username contains only allowed characters."""
        if v is None:
            return None
        return _check_username(v)


class PublicUserResponse(BaseModel):
    """Public profile of a user."""

    model_config = ConfigDict(from_attributes=True)

    id: int = Field(description="User ID")
    username: str = Field(description="Username")
    profile_picture: str = Field(default="", description="Profile picture URL")
    bio: str = Field(default="", description="Short bio")
    badges: list[Badge] = Field(default_factory=list, description="Badges held by the user")
    created_at: datetime = Field(description="When the user was created")


class UserResponse(PublicUserResponse):
    """Response schema for the user's own account data (excludes password)."""

    email: str = Field(description="Email address")
    is_active: bool = Field(description="Whether the user account is active")
    upvoted_meme_ids: list[int] = Field(
        default_factory=list, description="Memes the user currently upvotes"
    )
    downvoted_meme_ids: list[int] = Field(
        default_factory=list, description="Memes the user currently downvotes"
    )


class UserLogin(BaseModel):
    """Schema for user login request."""

    username: str = Field(description="Username or email")
    password: str = Field(description="Password")


class Token(BaseModel):
    """Schema for JWT token response."""

    access_token: str = Field(description="JWT access token")
    token_type: str = Field(default="bearer", description="Token type")
