"""Application configuration management."""
from pydantic import model_validator, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache
from sqlalchemy.engine.url import make_url, URL
from typing import Optional
import logging

SQLITE_LOCAL_URL = "sqlite+aiosqlite:///./presence.db"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    database_url: str = SQLITE_LOCAL_URL
    db_pool_size: int = 5
    db_max_overflow: int = 10

    # Application
    environment: str = "development"

    # Logging
    log_dir: str = "logs"
    log_level: str = "INFO"

    # Presence sync job
    presence_batch_size: int = 500  # Users fetched per page
    presence_window_minutes: int = 5  # Trailing activity window
    presence_user_login_type: int = 2  # LoginType.USER
    presence_max_predicate_ids: int = 1000  # Max ids bound into a single IN (...) predicate
    presence_chunk_workers: int = 1  # 1 keeps chunks strictly sequential
    presence_page_fetch_retries: int = 2  # Extra attempts for a failed page read
    presence_retry_backoff_seconds: float = 0.5
    presence_log_sample_size: int = 10  # Sample ids attached to each batch log record

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, value):
        """Accept log levels in any case."""
        if value is None:
            return "INFO"
        normalized = str(value).strip().upper()
        if normalized not in logging.getLevelNamesMapping():
            raise ValueError(f"Unknown log level: {value}")
        return normalized

    @model_validator(mode="after")
    def validate_all_config(self):
        """Validate job tuning and normalize Postgres URLs."""
        logger = logging.getLogger(__name__)

        if self.presence_batch_size < 1 or self.presence_batch_size > 10000:
            raise ValueError("presence_batch_size must be between 1 and 10000")

        if self.presence_window_minutes < 1 or self.presence_window_minutes > 1440:
            raise ValueError("presence_window_minutes must be between 1 and 1440 (24 hours)")

        if self.presence_max_predicate_ids < 1:
            raise ValueError("presence_max_predicate_ids must be at least 1")

        if self.presence_chunk_workers < 1 or self.presence_chunk_workers > 32:
            raise ValueError("presence_chunk_workers must be between 1 and 32")

        if self.presence_page_fetch_retries < 0:
            raise ValueError("presence_page_fetch_retries must not be negative")

        if self.presence_retry_backoff_seconds < 0:
            raise ValueError("presence_retry_backoff_seconds must not be negative")

        if self.presence_log_sample_size < 0:
            raise ValueError("presence_log_sample_size must not be negative")

        # Database URL normalization
        url = self.database_url
        if not url:
            logger.warning("Empty DATABASE_URL, using SQLite fallback")
            self.database_url = SQLITE_LOCAL_URL
            return self

        parsed: Optional[URL] = None
        try:
            parsed = make_url(url)
        except Exception as e:  # pragma: no cover
            logger.error(f"Failed to parse DATABASE_URL: {e}")
            logger.warning("Invalid DATABASE_URL; falling back to default sqlite database.")
            self.database_url = SQLITE_LOCAL_URL
            return self

        drivername = parsed.drivername
        if drivername.startswith("postgres") and "+asyncpg" not in drivername:
            old_drivername = drivername
            parsed = parsed.set(drivername="postgresql+asyncpg")
            logger.info(f"Driver normalized: {old_drivername} -> {parsed.drivername}")

        # Use render_as_string to properly re-encode special characters in password
        self.database_url = parsed.render_as_string(hide_password=False)

        return self

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
