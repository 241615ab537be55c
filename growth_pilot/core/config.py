from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    youtube_api_key: str | None = None
    user_agent: str = "growth-pilot/0.1"
    upstream_timeout_seconds: float = 10.0
    feed_max_videos: int = 15
    feed_cache_ttl_seconds: int = 300
    feed_cache_max_entries: int = 256
    keyword_min_length: int = 2
    keyword_top_n: int = 10
    cors_origins: list[str] = ["http://localhost:3000"]
    log_level: str = "INFO"
    host: str = "127.0.0.1"
    port: int = 8000

    model_config = SettingsConfigDict(env_file=".env", env_prefix="APP_", env_file_encoding="utf-8")

    @field_validator("cors_origins", mode="before")
    @classmethod
    def _split_origins(cls, value: str | list[str]) -> list[str]:
        if isinstance(value, str):
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value

@lru_cache

def get_settings() -> Settings:
    """Return a cached settings instance."""

    return Settings()


settings = get_settings()
