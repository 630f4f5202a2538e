"""
Tests for environment-driven configuration.
"""

import pytest
from pydantic import ValidationError

from catalog.errors import ConfigurationError
from catalog.feed_client import DEFAULT_GENRE_ID, RAKUTEN_BOOKS_URL
from utilities.config import CatalogConfig


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    for name in ("RAKUTEN_APP_ID", "MONGODB_URL", "MONGODB_DATABASE", "STORE_BACKEND", "LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)


class TestCatalogConfig:
    """Test cases for CatalogConfig."""

    def test_defaults(self):
        config = CatalogConfig(_env_file=None)

        assert config.store_backend == "mongodb"
        assert config.mongodb_collection == "books"
        assert config.rakuten_genre_id == "001004"
        assert config.rakuten_api_url.endswith("/BooksTotal/Search/20170404")
        assert config.sync_restore_on_load_failure is False

    def test_feed_defaults_follow_client_constants(self):
        config = CatalogConfig(_env_file=None)

        assert config.rakuten_api_url == RAKUTEN_BOOKS_URL
        assert config.rakuten_genre_id == DEFAULT_GENRE_ID

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("RAKUTEN_APP_ID", "from-env")
        monkeypatch.setenv("STORE_BACKEND", "MEMORY")

        config = CatalogConfig(_env_file=None)

        assert config.rakuten_app_id == "from-env"
        assert config.store_backend == "memory"

    def test_rejects_unknown_backend(self):
        with pytest.raises(ValidationError):
            CatalogConfig(_env_file=None, store_backend="postgres")

    def test_rejects_unreasonable_timeout(self):
        with pytest.raises(ValidationError):
            CatalogConfig(_env_file=None, request_timeout=1)

    def test_normalizes_log_level(self):
        assert CatalogConfig(_env_file=None, log_level="debug").log_level == "DEBUG"

        with pytest.raises(ValidationError):
            CatalogConfig(_env_file=None, log_level="verbose")

    def test_require_feed_credential(self):
        with pytest.raises(ConfigurationError, match="Rakuten App ID not found"):
            CatalogConfig(_env_file=None).require_feed_credential()

        assert CatalogConfig(_env_file=None, rakuten_app_id="abc").require_feed_credential() == "abc"

    def test_require_store_settings_lists_missing(self):
        config = CatalogConfig(_env_file=None, mongodb_url="mongodb://localhost:27017")

        with pytest.raises(ConfigurationError) as exc_info:
            config.require_store_settings()

        assert "MONGODB_DATABASE" in str(exc_info.value)
        assert "MONGODB_URL" not in str(exc_info.value)

    def test_memory_backend_needs_no_store_settings(self):
        CatalogConfig(_env_file=None, store_backend="memory").require_store_settings()

    def test_log_file_path(self):
        assert CatalogConfig(_env_file=None).get_log_file_path() is None
        assert CatalogConfig(_env_file=None, log_file="logs/sync.log").get_log_file_path().name == "sync.log"
