"""
Cache-aside lookup of the themed "image of the day" background.

Read path: cache -> upstream image service -> cache write. Upstream failures are
never surfaced: the caller gets a static fallback for the theme, and the fallback
is not cached so the next request retries upstream.
"""
import json
import logging
from typing import Any, Literal, Protocol

import httpx

from core.config import Settings
from services.exceptions import UpstreamError

logger = logging.getLogger(__name__)

Theme = Literal["light", "dark"]
DEFAULT_THEME: Theme = "dark"
USER_AGENT = 'Mozilla/5.0 (compatible; Bookmarks/1.0)'


class KeyValueCache(Protocol):
    """The subset of ``core.redis.RedisClient`` this service needs."""

    async def get(self, key: str) -> bytes | None: ...

    async def setex(self, key: str, seconds: int, value: str | bytes) -> bool: ...


def normalize_theme(theme: str | None) -> Theme:
    """Map a raw ``theme`` parameter onto a supported theme, defaulting to dark."""
    if theme and theme.strip().lower() == "light":
        return "light"
    return DEFAULT_THEME


def cache_key(theme: Theme) -> str:
    """Cache key for a theme. Themes are cached separately since their images differ."""
    return f"bing-{theme}"


def parse_image_payload(data: Any, base_url: str) -> dict[str, Any]:
    """
    Extract ``{url, copyright}`` from an image archive response.

    Pure function with no I/O.

    Raises:
        UpstreamError: If the payload does not have the expected shape.
    """
    try:
        image = data["images"][0]
        path = image["url"]
    except (KeyError, IndexError, TypeError) as e:
        raise UpstreamError(f"Unexpected image service response: {e!r}") from e
    if not isinstance(path, str) or not path:
        raise UpstreamError("Image service returned an empty image url")
    return {"url": f"{base_url}{path}", "copyright": image.get("copyright")}


async def fetch_image_of_the_day(settings: Settings) -> dict[str, Any]:
    """
    Fetch and parse today's image from the upstream service.

    Raises:
        UpstreamError: On network failure, a non-2xx status, invalid JSON, or an
            unexpected payload.
    """
    try:
        async with httpx.AsyncClient(
            follow_redirects=True,
            timeout=settings.image_fetch_timeout,
            headers={'User-Agent': USER_AGENT},
        ) as client:
            response = await client.get(settings.bing_api_url)
            response.raise_for_status()
            data = response.json()
    except httpx.HTTPError as e:
        raise UpstreamError(f"Image service request failed: {e}") from e
    except ValueError as e:
        raise UpstreamError(f"Image service returned invalid JSON: {e}") from e
    return parse_image_payload(data, settings.bing_base_url)


async def get_background(
    cache: KeyValueCache | None,
    theme: str | None,
    settings: Settings,
) -> dict[str, Any]:
    """
    Return the background image for a theme, going through the cache.

    A cache hit is returned unmodified. On a miss the upstream result is cached for
    ``settings.image_cache_ttl`` seconds. When ``cache`` is None (Redis not
    configured) every call goes upstream.
    """
    resolved = normalize_theme(theme)
    key = cache_key(resolved)

    if cache is not None:
        cached = await cache.get(key)
        if cached:
            try:
                return json.loads(cached)
            except ValueError:
                logger.warning("Ignoring unreadable cache entry %s", key)

    try:
        image = await fetch_image_of_the_day(settings)
    except UpstreamError as e:
        logger.warning("Background image unavailable, using fallback for %s: %s", resolved, e)
        return {"url": settings.fallback_image(resolved)}

    if cache is not None:
        await cache.setex(key, settings.image_cache_ttl, json.dumps(image))
    return image
