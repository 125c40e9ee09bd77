"""Application configuration using pydantic-settings."""
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # Database
    database_url: str = Field(
        default="sqlite+aiosqlite:///./bookmarks.db",
        validation_alias="DATABASE_URL",
    )
    db_echo: bool = Field(default=False, validation_alias="DB_ECHO")

    # CORS - comma-separated list of allowed origins (stored as string, parsed via property)
    cors_origins_str: str = Field(default="*", validation_alias="CORS_ORIGINS")

    # Redis - key/value cache for the background image
    redis_url: str = Field(default="redis://localhost:6379", validation_alias="REDIS_URL")
    redis_enabled: bool = Field(default=True, validation_alias="REDIS_ENABLED")
    redis_pool_size: int = Field(default=20, validation_alias="REDIS_POOL_SIZE")

    # Single implicit owner until real authentication exists
    default_user_id: str = Field(default="default", validation_alias="DEFAULT_USER_ID")

    # Listing
    default_page_size: int = Field(default=20, validation_alias="DEFAULT_PAGE_SIZE")
    max_page_size: int = Field(default=100, validation_alias="MAX_PAGE_SIZE")

    # Field length limits
    max_title_length: int = Field(default=500, validation_alias="MAX_TITLE_LENGTH")
    max_description_length: int = Field(
        default=2000, validation_alias="MAX_DESCRIPTION_LENGTH",
    )

    # Image of the day
    bing_api_url: str = Field(
        default="https://www.bing.com/HPImageArchive.aspx?format=js&idx=0&n=1&mkt=en-US",
        validation_alias="BING_API_URL",
    )
    bing_base_url: str = Field(default="https://www.bing.com", validation_alias="BING_BASE_URL")
    image_cache_ttl: int = Field(default=86400, validation_alias="IMAGE_CACHE_TTL")
    image_fetch_timeout: float = Field(default=10.0, validation_alias="IMAGE_FETCH_TIMEOUT")
    fallback_image_dark: str = Field(
        default="https://images.unsplash.com/photo-1505506874110-6a7a69069a08?ixlib=rb-4.0.3&w=1200",
        validation_alias="FALLBACK_IMAGE_DARK",
    )
    fallback_image_light: str = Field(
        default="https://images.unsplash.com/photo-1501167786227-4cba60f6d58f?ixlib=rb-4.0.3&w=1200",
        validation_alias="FALLBACK_IMAGE_LIGHT",
    )

    # Static client assets served for non-API paths (disabled when unset)
    static_dir: str | None = Field(default=None, validation_alias="STATIC_DIR")

    @property
    def cors_origins(self) -> list[str]:
        """Parse comma-separated CORS origins string into a list."""
        if not self.cors_origins_str:
            return []
        return [origin.strip() for origin in self.cors_origins_str.split(",") if origin.strip()]

    @property
    def is_sqlite(self) -> bool:
        """Whether the configured database is SQLite."""
        return self.database_url.startswith("sqlite")

    def fallback_image(self, theme: str) -> str:
        """Static background URL used when the image service is unavailable."""
        if theme == "light":
            return self.fallback_image_light
        return self.fallback_image_dark


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
