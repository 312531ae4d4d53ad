"""
Runtime configuration loaded once from the environment (and ``.env``).
Secrets are only read here and injected into the clients that need them.
"""
from __future__ import annotations

import logging
from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

# Constants
MIN_DEADLINE_YEAR = 2024
DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 200
FETCH_TIMEOUT_MARGIN_SECONDS = 5.0


class Settings(BaseSettings):
    """
    Application settings.
    The Firecrawl key is optional at startup so the read API can run without it;
    a scrape without it fails as an authentication error.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Content fetch (Firecrawl)
    FIRECRAWL_API_KEY: str | None = None
    FIRECRAWL_BASE_URL: str = "https://api.firecrawl.dev"
    FETCH_FORMATS: list[str] = ["markdown"]
    FETCH_TIMEOUT_SECONDS: float = 15.0
    FETCH_WAIT_FOR_MS: int | None = None
    FETCH_SKIP_TLS_VERIFICATION: bool = False
    FETCH_MAX_ATTEMPTS: int = 3
    FETCH_RETRY_DELAY_SECONDS: float = 2.0

    # Pacing
    BATCH_SIZE: int = 5
    BATCH_DELAY_SECONDS: float = 5.0
    REQUEST_DELAY_SECONDS: float = 0.5

    # Store
    DATABASE_URL: str = "sqlite:///./proposals.db"
    STORE_MAX_ATTEMPTS: int = 3
    STORE_RETRY_DELAY_SECONDS: float = 1.0

    # OPTIONAL: Application Settings
    SCRAPE_SECRET: str | None = None
    NOTIFY_WEBHOOK_URL: str | None = None
    CORS_ORIGINS: list[str] = []
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT: str = "100 per 15 minutes"
    LOG_LEVEL: str = "INFO"
    ENVIRONMENT: str = "production"

    @field_validator("BATCH_SIZE", "FETCH_MAX_ATTEMPTS", "STORE_MAX_ATTEMPTS")
    @classmethod
    def validate_positive(cls, v: int, info) -> int:
        """Batch sizes and attempt counts must be at least one."""
        if v < 1:
            raise ValueError(f"{info.field_name} must be >= 1")
        return v

    @field_validator("FETCH_TIMEOUT_SECONDS", "BATCH_DELAY_SECONDS", "REQUEST_DELAY_SECONDS")
    @classmethod
    def validate_non_negative(cls, v: float, info) -> float:
        if v < 0:
            raise ValueError(f"{info.field_name} cannot be negative")
        return v

    @field_validator("FIRECRAWL_API_KEY", "SCRAPE_SECRET", "NOTIFY_WEBHOOK_URL")
    @classmethod
    def blank_to_none(cls, v: str | None) -> str | None:
        if v is None or not v.strip():
            return None
        return v.strip()

    @property
    def http_timeout_seconds(self) -> float:
        """Client-side timeout; longer than the render timeout so the service answers first."""
        wait_seconds = (self.FETCH_WAIT_FOR_MS or 0) / 1000
        return self.FETCH_TIMEOUT_SECONDS + wait_seconds + FETCH_TIMEOUT_MARGIN_SECONDS

    def log_startup_summary(self) -> None:
        """Log configuration summary on startup (without leaking secrets)."""
        logger.info("=" * 60)
        logger.info("Shodh Sahayak - Configuration")
        logger.info("=" * 60)
        logger.info("Environment: %s", self.ENVIRONMENT)
        logger.info("Log Level: %s", self.LOG_LEVEL)
        logger.info("Firecrawl API Key: %s", "✓ Present" if self.FIRECRAWL_API_KEY else "✗ Missing")
        logger.info("Database: %s", self.DATABASE_URL.split("://", 1)[0])
        logger.info("Batch: size=%s pause=%.1fs request_pause=%.1fs",
                    self.BATCH_SIZE, self.BATCH_DELAY_SECONDS, self.REQUEST_DELAY_SECONDS)
        logger.info("Scrape Secret: %s", "✓ Configured" if self.SCRAPE_SECRET else "○ Not configured")
        logger.info("Rate Limit: %s", self.RATE_LIMIT if self.RATE_LIMIT_ENABLED else "disabled")
        logger.info("Notify Webhook: %s", "✓ Configured" if self.NOTIFY_WEBHOOK_URL else "○ Not configured")
        logger.info("=" * 60)


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.
    Will raise ValidationError if configuration is invalid.
    """
    settings = Settings()
    settings.log_startup_summary()
    return settings
