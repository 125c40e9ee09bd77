"""Pydantic schemas for import and export."""
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from schemas.category import CategoryResponse
from schemas.tag import TagResponse

EXPORT_FORMAT_VERSION = "1.0"


class ExportedBookmark(BaseModel):
    """A bookmark row as written to an export file."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    url: str
    description: str | None
    category_id: int | None
    is_public: bool
    user_id: str
    created_at: datetime
    click_count: int
    tags: list[int] = Field(default_factory=list, description="Ids of attached tags")


class ExportEnvelope(BaseModel):
    """Versioned full snapshot of the store."""

    model_config = ConfigDict(populate_by_name=True)

    version: str = EXPORT_FORMAT_VERSION
    exported_at: datetime = Field(serialization_alias="exportedAt")
    bookmarks: list[ExportedBookmark]
    categories: list[CategoryResponse]
    tags: list[TagResponse]


class ImportResponse(BaseModel):
    """Outcome of a bulk import."""

    success: bool = True
    imported: int
    errors: int
    message: str
