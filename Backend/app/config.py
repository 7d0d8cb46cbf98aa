# app/config.py
from __future__ import annotations

from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict

# Backend/.env; this file lives in Backend/app/config.py → parents[1] = Backend
ENV_FILE = Path(__file__).resolve().parents[1] / ".env"
load_dotenv(ENV_FILE, override=False)


class Settings(BaseSettings):
    # ---- Infra ----
    APP_VERSION: str = "0.1.0"
    # Optional here; db_service.ensure_pool raises when it is missing.
    DATABASE_URL: Optional[str] = None

    # ---- Blog (RSS) ----
    BLOG_BASE_URL: Optional[str] = None
    BLOG_FEED_PATH: str = "rss.xml"

    # ---- Twitter ----
    TWITTER_BEARER_TOKEN: Optional[str] = None
    TWITTER_SCREEN_NAME: Optional[str] = None

    # ---- GitHub ----
    GITHUB_USERNAME: Optional[str] = None
    GITHUB_TOKEN: Optional[str] = None

    # ---- Sync behaviour ----
    LIFESTREAM_TIMEZONE: str = "America/Phoenix"
    EVENT_AUTHOR: str = "Jacob Emerick"
    FETCH_TIMEOUT_S: float = 15.0
    LIFESTREAM_SOURCES_YML: Optional[str] = None

    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


settings = Settings()


def require_setting(name: str) -> str:
    """
    Runtime check with a clear message when a source credential is missing.
    """
    value = getattr(settings, name, None)
    if not value:
        raise RuntimeError(
            f"{name} is not set. Check Backend/.env "
            f"(tried loading from: {ENV_FILE})."
        )
    return str(value)
