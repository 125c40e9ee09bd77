"""Background image endpoint."""
from typing import Any

from fastapi import APIRouter, Depends, Query

from api.dependencies import get_cache, get_settings
from core.config import Settings
from core.redis import RedisClient
from schemas.background import BackgroundImage
from services import background_service

router = APIRouter(tags=["background"])


@router.get("/bing-image", response_model=BackgroundImage, response_model_exclude_none=True)
@router.get(
    "/bing-wallpaper", response_model=BackgroundImage, response_model_exclude_none=True,
)
async def background_image(
    theme: str | None = Query(default=None, description="'light' or 'dark' (default)"),
    cache: RedisClient | None = Depends(get_cache),
    settings: Settings = Depends(get_settings),
) -> Any:
    """
    Get today's background image for a theme.

    Always 200: when the image service is down a static fallback is returned.
    """
    return await background_service.get_background(cache, theme, settings)
