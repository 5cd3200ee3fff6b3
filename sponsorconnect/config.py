"""
Configuration and settings for the SponsorConnect backend and bot.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

StorageBackend = Literal["memory", "file", "sql"]


class Settings(BaseSettings):
    """Environment-backed settings. Field names double as env var names."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    api_prefix: str = Field(default="/api")
    log_level: str = Field(default="INFO")

    # Storage selection. Unset means "sql" when DATABASE_URL is present,
    # "memory" otherwise.
    storage_backend: Optional[StorageBackend] = Field(default=None)
    database_url: Optional[str] = Field(default=None)
    data_dir: str = Field(default="data")
    seed_sample_data: bool = Field(default=False)

    # The one Telegram account that becomes admin on first login.
    admin_telegram_id: Optional[str] = Field(default=None)

    # S3-compatible image host for profile photos
    image_bucket: Optional[str] = Field(default=None)
    image_region: Optional[str] = Field(default=None)
    image_endpoint: Optional[str] = Field(default=None)
    image_public_base_url: Optional[str] = Field(default=None)
    aws_access_key_id: Optional[str] = Field(default=None)
    aws_secret_access_key: Optional[str] = Field(default=None)
    max_upload_bytes: int = Field(default=5 * 1024 * 1024, gt=0)

    # Telegram bot
    bot_token: Optional[str] = Field(default=None)
    webapp_url: str = Field(default="https://your-deployed-webapp-url.com")

    @property
    def resolved_storage_backend(self) -> StorageBackend:
        if self.storage_backend:
            return self.storage_backend
        return "sql" if self.database_url else "memory"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
