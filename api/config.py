"""
API configuration settings.
"""

from pydantic_settings import BaseSettings


class APIConfig(BaseSettings):
    """API configuration settings."""

    # API Settings
    api_title: str = "Book Recommender API"
    api_version: str = "1.0.0"
    api_description: str = "Random book recommendations, catalog administration and catalog sync"

    # Server Settings
    host: str = "0.0.0.0"
    port: int = 8000
    debug: bool = False

    # Admin Settings
    admin_api_keys: str = ""  # Comma-separated list of valid admin API keys
    sync_api_keys: str = ""  # Keys allowed to trigger a sync; falls back to the admin keys

    # CORS Settings
    cors_origins: list = ["*"]
    cors_allow_credentials: bool = False
    cors_allow_methods: list = ["*"]
    cors_allow_headers: list = ["authorization", "x-client-info", "apikey", "content-type"]

    # Logging
    log_level: str = "INFO"
    log_format: str = "json"

    model_config = {
        "env_file": ".env",
        "extra": "ignore"  # Ignore extra fields from .env
    }

    @staticmethod
    def _split_keys(value: str) -> list:
        return [key.strip() for key in value.split(",") if key.strip()]

    def get_admin_api_keys(self) -> list:
        return self._split_keys(self.admin_api_keys)

    def get_sync_api_keys(self) -> list:
        return self._split_keys(self.sync_api_keys) or self.get_admin_api_keys()


# Global config instance
config = APIConfig()
