"""Pydantic schemas for the caption and tag suggestion endpoints."""

from pydantic import BaseModel, ConfigDict, Field


class CaptionRequest(BaseModel):
    """Request body for caption suggestions."""

    model_config = ConfigDict(populate_by_name=True)

    image_data: str | None = Field(
        default=None,
        alias="imageData",
        description="Image the captions are for (data URI or URL)",
    )


class CaptionSuggestions(BaseModel):
    """Suggested captions for a meme."""

    captions: list[str] = Field(description="Caption suggestions")


class TagSuggestions(BaseModel):
    """Suggested tags for a meme."""

    tags: list[str] = Field(description="Tag suggestions")
