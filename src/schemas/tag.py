"""Pydantic schemas for tag endpoints."""
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from models.tag import DEFAULT_TAG_COLOR


class TagCreate(BaseModel):
    """Schema for creating a tag."""

    name: str = Field(default="", max_length=100)
    color: str = Field(default=DEFAULT_TAG_COLOR, max_length=32)

    @field_validator("name", "color")
    @classmethod
    def reject_commas(cls, v: str) -> str:
        """Names and colors are comma-joined in listings, so commas would break them."""
        if "," in v:
            raise ValueError("Tag names and colors cannot contain commas")
        return v.strip()

    @field_validator("color")
    @classmethod
    def default_blank_color(cls, v: str) -> str:
        """A blank color falls back to the default display color."""
        return v or DEFAULT_TAG_COLOR


class TagResponse(BaseModel):
    """Schema for a tag."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    color: str
    created_at: datetime


class TagListResponse(BaseModel):
    """Schema for the tag list."""

    tags: list[TagResponse]
