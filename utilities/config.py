"""
Configuration management using environment variables.
Handles catalog store, feed, sync and scheduler settings with validation and defaults.
"""

from typing import Optional
from pydantic import Field, validator
from pydantic_settings import BaseSettings
from pathlib import Path

from catalog.errors import ConfigurationError
from catalog.feed_client import DEFAULT_GENRE_ID, RAKUTEN_BOOKS_URL


class CatalogConfig(BaseSettings):
    """
    Configuration class for the catalog service.
    Uses pydantic BaseSettings for environment variable management.
    """

    # Store Configuration
    store_backend: str = Field(default="mongodb")
    mongodb_url: Optional[str] = Field(default=None)
    mongodb_database: Optional[str] = Field(default=None)
    mongodb_collection: str = Field(default="books")

    # Feed Configuration
    rakuten_app_id: Optional[str] = Field(default=None)
    rakuten_api_url: str = Field(default=RAKUTEN_BOOKS_URL)
    rakuten_genre_id: str = Field(default=DEFAULT_GENRE_ID)
    request_timeout: int = Field(default=30)

    # Sync Behaviour
    sync_restore_on_load_failure: bool = Field(default=False)

    # Logging Configuration
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="json")
    log_file: Optional[str] = Field(default=None)

    # Development/Testing
    debug: bool = Field(default=False)

    # Scheduler Configuration
    schedule_hour: int = Field(default=3)
    schedule_minute: int = Field(default=0)
    timezone: str = Field(default="Asia/Tokyo")
    enable_scheduled_sync: bool = Field(default=True)

    @validator('store_backend')
    def validate_store_backend(cls, v):
        """Ensure the store backend is known."""
        valid_backends = ['mongodb', 'memory']
        if v.lower() not in valid_backends:
            raise ValueError(f'store_backend must be one of: {valid_backends}')
        return v.lower()

    @validator('request_timeout')
    def validate_timeout(cls, v):
        """Ensure timeout is reasonable."""
        if v < 5 or v > 300:
            raise ValueError('request_timeout must be between 5 and 300 seconds')
        return v

    @validator('schedule_hour')
    def validate_schedule_hour(cls, v):
        if v < 0 or v > 23:
            raise ValueError('schedule_hour must be between 0 and 23')
        return v

    @validator('schedule_minute')
    def validate_schedule_minute(cls, v):
        if v < 0 or v > 59:
            raise ValueError('schedule_minute must be between 0 and 59')
        return v

    @validator('log_level')
    def validate_log_level(cls, v):
        """Ensure log level is valid."""
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if v.upper() not in valid_levels:
            raise ValueError(f'log_level must be one of: {valid_levels}')
        return v.upper()

    @validator('log_format')
    def validate_log_format(cls, v):
        """Ensure log format is valid."""
        valid_formats = ['json', 'console']
        if v.lower() not in valid_formats:
            raise ValueError(f'log_format must be one of: {valid_formats}')
        return v.lower()

    class Config:
        """Pydantic configuration."""
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"  # Ignore extra fields from .env

    def get_log_file_path(self) -> Optional[Path]:
        """Get log file path as Path object."""
        if self.log_file:
            return Path(self.log_file)
        return None

    def require_store_settings(self) -> None:
        """
        Check that the store can be reached with the configured settings.

        Raises:
            ConfigurationError: If a MongoDB setting is missing
        """
        if self.store_backend != "mongodb":
            return
        missing = [
            name.upper()
            for name in ("mongodb_url", "mongodb_database")
            if not getattr(self, name)
        ]
        if missing:
            raise ConfigurationError(
                f"Missing store configuration: {', '.join(missing)}"
            )

    def require_feed_credential(self) -> str:
        """
        Return the feed application id.

        Raises:
            ConfigurationError: If RAKUTEN_APP_ID is not set
        """
        if not self.rakuten_app_id:
            raise ConfigurationError("Rakuten App ID not found in configuration.")
        return self.rakuten_app_id

    def get_user_agent(self) -> str:
        """Get user agent string for requests."""
        return "BookRecommender-CatalogSync/1.0"

    def get_headers(self) -> dict:
        """Get default headers for HTTP requests."""
        return {
            "User-Agent": self.get_user_agent(),
            "Accept": "application/json",
        }


# Global configuration instance
config = CatalogConfig()
