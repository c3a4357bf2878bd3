"""
Runtime configuration helpers for the inbox feed service.

Loads the remote notification endpoint and feed tuning values from the
environment and the .env file located in the project root.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Resolve the project root
BASE_DIR = Path(__file__).resolve().parents[1]

# Absolute path to .env
ENV_PATH = BASE_DIR / ".env"

# Load .env defaults without overriding environment variables provided by the platform
load_dotenv(dotenv_path=ENV_PATH, override=False)


class Settings(BaseSettings):
    app_name: str = Field(default="Inbox Feed", alias="APP_NAME")
    api_version: str = Field(default="0.1.0", alias="API_VERSION")

    # Remote notification query
    notifications_base_url: str = Field(default="http://localhost:8008", alias="NOTIFICATIONS_BASE_URL")
    notifications_path: str = Field(default="/notifications", alias="NOTIFICATIONS_PATH")
    mark_read_path: str = Field(default="/conversations/{conversation_id}/read", alias="MARK_READ_PATH")
    notifications_timeout: float = Field(default=30.0, alias="NOTIFICATIONS_TIMEOUT")

    # Feed behaviour
    feed_page_size: int = Field(default=24, gt=0, alias="FEED_PAGE_SIZE")
    feed_refresh_interval_ms: int = Field(default=10_000, gt=0, alias="FEED_REFRESH_INTERVAL_MS")

    model_config = SettingsConfigDict(
        env_file=str(ENV_PATH),
        env_file_encoding="utf-8",
        extra="ignore"
    )


@lru_cache()
def get_settings() -> Settings:
    return Settings()


__all__ = ["Settings", "get_settings"]
