"""
Configuration for the review scraper service.
Every field can be overridden with a REVIEW_SCRAPER_* environment variable,
e.g. REVIEW_SCRAPER_PORT=9000 or REVIEW_SCRAPER_FETCH_TIMEOUT=15.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    model_config = SettingsConfigDict(env_prefix="REVIEW_SCRAPER_", env_file=".env", extra="ignore")

    # HTTP server
    host: str = "0.0.0.0"
    port: int = 8000

    # Browser / fetch
    fetch_timeout: float = 30.0  # seconds, a stalled upstream becomes a TransportError
    headless: bool = True

    # When set, every fetched page is written here as <platform>-<timestamp>.html
    dump_dir: Optional[Path] = None

    # Logging
    log_level: str = "INFO"
    log_format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()
