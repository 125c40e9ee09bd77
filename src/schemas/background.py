"""Pydantic schemas for the background image endpoint."""
from pydantic import BaseModel


class BackgroundImage(BaseModel):
    """Background image of the day. ``copyright`` is absent on the fallback image."""

    url: str
    copyright: str | None = None
