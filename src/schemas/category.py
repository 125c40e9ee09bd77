"""Pydantic schemas for category endpoints."""
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class CategoryCreate(BaseModel):
    """Schema for creating a category."""

    name: str = Field(default="", max_length=100)


class CategoryResponse(BaseModel):
    """Schema for a category."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    created_at: datetime


class CategoryListResponse(BaseModel):
    """Schema for the category list."""

    categories: list[CategoryResponse]
