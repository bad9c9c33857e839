"""Property-based tests for configuration management.

Feature: news-sync
Tests configuration defaults, environment parsing and validation.
"""

import os
from unittest.mock import patch

import pytest
from hypothesis import given, settings, strategies as st

from src.config.settings import (
    DEFAULT_BASE_URL,
    MAX_PAGE_SIZE,
    ConfigurationError,
    Settings,
    load_settings,
)


NO_DOTENV = "/nonexistent/.env"


# Feature: news-sync, Property: Configuration Defaults
class TestConfigurationDefaults:
    """Property tests for configuration defaults."""

    def test_default_settings_have_documented_values(self):
        """Verify that Settings uses documented default values."""
        settings_obj = Settings()

        assert settings_obj.gnews_api_key == ""
        assert settings_obj.gnews_base_url == DEFAULT_BASE_URL
        assert settings_obj.default_category == "general"
        assert settings_obj.default_language == "en"
        assert settings_obj.page_size == 10
        assert settings_obj.page_delay_seconds == 2.0
        assert settings_obj.request_timeout_seconds == 30.0
        assert settings_obj.max_retries == 0
        assert settings_obj.retry_backoff_seconds == 1.0
        assert settings_obj.database_path == "news_sync.db"
        assert settings_obj.list_cache_ttl_seconds == 300
        assert settings_obj.article_cache_ttl_seconds == 600

    @given(
        api_key=st.text(
            alphabet=st.characters(whitelist_categories=('L', 'N')),
            min_size=0,
            max_size=64,
        )
    )
    @settings(max_examples=100)
    def test_load_settings_uses_defaults_for_missing_env_vars(self, api_key: str):
        """For any missing configuration value, Settings SHALL use documented defaults."""
        with patch.dict(os.environ, {"GNEWS_API_KEY": api_key}, clear=True):
            settings_obj = load_settings(env_path=NO_DOTENV, validate=False)

        assert settings_obj.gnews_api_key == api_key
        assert settings_obj.page_size == 10
        assert settings_obj.page_delay_seconds == 2.0
        assert settings_obj.max_retries == 0
        assert settings_obj.database_path == "news_sync.db"

    @pytest.mark.parametrize("var,value", [
        ("PAGE_SIZE", "lots"),
        ("PAGE_DELAY_SECONDS", "soon"),
        ("MAX_RETRIES", "1.5"),
    ])
    def test_invalid_numbers_fall_back_to_defaults(self, var: str, value: str):
        with patch.dict(os.environ, {var: value}, clear=True):
            settings_obj = load_settings(env_path=NO_DOTENV, validate=False)

        assert settings_obj == Settings()


class TestEnvironmentLoading:
    """Environment variables override every default."""

    def test_all_variables_read(self):
        env = {
            "GNEWS_API_KEY": "secret",
            "GNEWS_BASE_URL": "https://proxy.example.com/gnews/",
            "DEFAULT_CATEGORY": "technology",
            "DEFAULT_LANGUAGE": "ar",
            "PAGE_SIZE": "50",
            "PAGE_DELAY_SECONDS": "0.5",
            "REQUEST_TIMEOUT_SECONDS": "10",
            "MAX_RETRIES": "3",
            "RETRY_BACKOFF_SECONDS": "2",
            "DATABASE_PATH": "/tmp/articles.db",
            "LIST_CACHE_TTL_SECONDS": "60",
            "ARTICLE_CACHE_TTL_SECONDS": "120",
        }
        with patch.dict(os.environ, env, clear=True):
            settings_obj = load_settings(env_path=NO_DOTENV, require_api_key=True)

        assert settings_obj == Settings(
            gnews_api_key="secret",
            gnews_base_url="https://proxy.example.com/gnews",
            default_category="technology",
            default_language="ar",
            page_size=50,
            page_delay_seconds=0.5,
            request_timeout_seconds=10.0,
            max_retries=3,
            retry_backoff_seconds=2.0,
            database_path="/tmp/articles.db",
            list_cache_ttl_seconds=60,
            article_cache_ttl_seconds=120,
        )

    def test_dotenv_file_loaded(self, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text("GNEWS_API_KEY=from-file\nPAGE_SIZE=25\n")

        with patch.dict(os.environ, {}, clear=True):
            settings_obj = load_settings(env_path=env_file)

        assert settings_obj.gnews_api_key == "from-file"
        assert settings_obj.page_size == 25


# Feature: news-sync, Property: Configuration Validation
class TestConfigurationValidation:
    """Invalid values are rejected with every problem reported."""

    def test_defaults_are_valid(self):
        Settings().validate()

    def test_api_key_required_only_when_asked(self):
        Settings().validate(require_api_key=False)
        with pytest.raises(ConfigurationError, match="GNEWS_API_KEY"):
            Settings().validate(require_api_key=True)

    @given(page_size=st.one_of(
        st.integers(max_value=0),
        st.integers(min_value=MAX_PAGE_SIZE + 1),
    ))
    @settings(max_examples=50)
    def test_page_size_out_of_range_rejected(self, page_size: int):
        """For any page size outside 1..100, validation SHALL fail."""
        with pytest.raises(ConfigurationError, match="page_size"):
            Settings(page_size=page_size).validate()

    @given(page_size=st.integers(min_value=1, max_value=MAX_PAGE_SIZE))
    @settings(max_examples=50)
    def test_page_size_in_range_accepted(self, page_size: int):
        Settings(page_size=page_size).validate()

    @pytest.mark.parametrize("overrides,fragment", [
        ({"gnews_base_url": "gnews.io/api"}, "gnews_base_url"),
        ({"default_language": "  "}, "default_language"),
        ({"page_delay_seconds": -1.0}, "page_delay_seconds"),
        ({"request_timeout_seconds": 0.0}, "request_timeout_seconds"),
        ({"max_retries": -1}, "max_retries"),
        ({"retry_backoff_seconds": -0.5}, "retry_backoff_seconds"),
        ({"database_path": ""}, "database_path"),
        ({"list_cache_ttl_seconds": -1}, "list_cache_ttl_seconds"),
        ({"article_cache_ttl_seconds": -1}, "article_cache_ttl_seconds"),
    ])
    def test_invalid_value_rejected(self, overrides: dict, fragment: str):
        with pytest.raises(ConfigurationError, match=fragment):
            Settings(**overrides).validate()

    def test_all_errors_reported_together(self):
        with pytest.raises(ConfigurationError) as exc_info:
            Settings(page_size=0, max_retries=-1).validate(require_api_key=True)

        message = str(exc_info.value)
        assert "GNEWS_API_KEY" in message
        assert "page_size" in message
        assert "max_retries" in message

    def test_load_settings_validates(self):
        with patch.dict(os.environ, {"PAGE_SIZE": "500"}, clear=True):
            with pytest.raises(ConfigurationError):
                load_settings(env_path=NO_DOTENV)
