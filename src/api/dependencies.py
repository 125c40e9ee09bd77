"""FastAPI dependencies for injection."""
from fastapi import Depends

from core.config import Settings, get_settings
from core.redis import RedisClient, get_redis_client
from db.session import get_async_session, get_session_factory


def get_current_user_id(settings: Settings = Depends(get_settings)) -> str:
    """
    Owner recorded on new bookmarks.

    There is no authentication: every request acts as the single configured user.
    """
    return settings.default_user_id


def get_cache() -> RedisClient | None:
    """Key/value cache, or None before startup has connected it."""
    return get_redis_client()


def get_concurrent_queries() -> bool:
    """Whether independent reads run concurrently. Overridden in tests."""
    return True


__all__ = [
    "get_async_session",
    "get_cache",
    "get_concurrent_queries",
    "get_current_user_id",
    "get_session_factory",
    "get_settings",
]
