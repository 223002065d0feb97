"""Application configuration."""
from functools import lru_cache
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    # Lemon Squeezy (billing)
    lemonsqueezy_api_key: str | None = None
    lemonsqueezy_store_id: str | None = None

    # PostHog (analytics)
    posthog_api_key: str | None = None
    posthog_project_id: str | None = None
    posthog_host: str = "https://app.posthog.com"

    # API Security - auth is disabled when unset
    api_secret_key: str | None = None

    # Cache storage
    database_url: str = "sqlite+aiosqlite:///./dashboard.db"
    cache_ttl_minutes: int = 15

    # Cache warm-up
    cache_warm_interval_minutes: int = 10
    cache_warm_ranges: str = "7d,30d"  # Comma-separated presets

    # Server
    host: str = "0.0.0.0"
    port: int = 8080
    debug: bool = False

    @property
    def warm_range_presets(self) -> list[str]:
        """Parse cache_warm_ranges into a list of presets."""
        if not self.cache_warm_ranges:
            return []
        return [x.strip() for x in self.cache_warm_ranges.split(",") if x.strip()]

    @property
    def billing_configured(self) -> bool:
        return bool(self.lemonsqueezy_api_key)

    @property
    def analytics_configured(self) -> bool:
        return bool(self.posthog_api_key and self.posthog_project_id)

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
