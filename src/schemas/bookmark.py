"""Pydantic schemas for bookmark endpoints."""
from datetime import datetime
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

from core.config import get_settings


def _as_flag(value: Any) -> bool | None:
    """Booleans and integers are flags; anything else (strings included) is unset."""
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value != 0
    return None


def resolve_is_public(record: dict[str, Any]) -> bool:
    """
    Read the visibility flag from a raw bookmark payload.

    ``is_public`` / ``isPublic`` is canonical. Payloads written by older clients only
    carry ``is_private``, which is inverted. Values that are not a boolean or integer
    are ignored, so ``"false"`` never makes a bookmark public.
    """
    for key in ("is_public", "isPublic"):
        flag = _as_flag(record.get(key))
        if flag is not None:
            return flag
    is_private = _as_flag(record.get("is_private"))
    if is_private is not None:
        return not is_private
    return False


def validate_description_length(description: str | None) -> str | None:
    """Validate that description doesn't exceed maximum length."""
    settings = get_settings()
    if description is not None and len(description) > settings.max_description_length:
        max_len = settings.max_description_length
        raise ValueError(
            f"Description exceeds maximum length of {max_len:,} characters "
            f"(got {len(description):,} characters).",
        )
    return description


def validate_title_length(title: str | None) -> str | None:
    """Validate that title doesn't exceed maximum length."""
    settings = get_settings()
    if title is not None and len(title) > settings.max_title_length:
        raise ValueError(
            f"Title exceeds maximum length of {settings.max_title_length:,} characters "
            f"(got {len(title):,} characters).",
        )
    return title


class BookmarkWrite(BaseModel):
    """
    Fields shared by create and full-replace update.

    Title and URL are optional here so that their absence reaches the service
    layer, which reports it as a validation error with a precise message.
    """

    model_config = ConfigDict(populate_by_name=True)

    title: str | None = None
    url: str | None = None
    description: str | None = None
    category_id: int | None = Field(
        default=None,
        validation_alias=AliasChoices("categoryId", "category_id"),
    )
    is_public: bool = Field(
        default=False,
        validation_alias=AliasChoices("isPublic", "is_public"),
    )

    @model_validator(mode="before")
    @classmethod
    def map_legacy_visibility(cls, data: Any) -> Any:
        """Accept the legacy ``is_private`` flag in place of ``is_public``."""
        if isinstance(data, dict) and "is_private" in data:
            data = dict(data)
            if "is_public" not in data and "isPublic" not in data:
                data["is_public"] = resolve_is_public(data)
            data.pop("is_private")
        return data

    @field_validator("category_id", mode="before")
    @classmethod
    def blank_category_is_none(cls, v: Any) -> Any:
        """The client sends an empty string for "no category"."""
        if v == "":
            return None
        return v

    @field_validator("title")
    @classmethod
    def check_title_length(cls, v: str | None) -> str | None:
        """Validate title length."""
        return validate_title_length(v)

    @field_validator("description")
    @classmethod
    def check_description_length(cls, v: str | None) -> str | None:
        """Validate description length."""
        return validate_description_length(v)


class BookmarkCreate(BookmarkWrite):
    """Schema for creating a new bookmark."""

    tags: list[int] = Field(default_factory=list, description="Tag ids to attach")

    @field_validator("tags", mode="before")
    @classmethod
    def none_tags_is_empty(cls, v: Any) -> Any:
        """Treat a null tag list as no tags."""
        if v is None:
            return []
        return v


class BookmarkUpdate(BookmarkWrite):
    """
    Schema for replacing a bookmark.

    Every field is written; omitted optional fields are reset to their defaults.
    ``tags`` is the exception: when omitted the tag associations are left alone.
    """

    tags: list[int] | None = None


class BookmarkItem(BaseModel):
    """A bookmark row as listed, with its category name and aggregated tags."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    url: str
    description: str | None
    category_id: int | None
    category_name: str | None
    is_public: bool
    user_id: str
    created_at: datetime
    click_count: int
    # Comma-joined, positionally aligned: tags[i], tag_ids[i] and tag_colors[i]
    # describe the same tag. All three are None for an untagged bookmark.
    tags: str | None = None
    tag_ids: str | None = None
    tag_colors: str | None = None


class Pagination(BaseModel):
    """Pagination metadata for a bookmark listing."""

    page: int
    limit: int
    total: int
    pages: int


class BookmarkListResponse(BaseModel):
    """Schema for a page of bookmarks."""

    bookmarks: list[BookmarkItem]
    pagination: Pagination


class ClickResponse(BaseModel):
    """Response for a recorded click."""

    success: bool = True
    click_count: int
