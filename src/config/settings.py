"""Configuration settings for the News Sync engine."""

from dataclasses import dataclass
from pathlib import Path
import os

from dotenv import load_dotenv


# GNews v4 REST endpoint
DEFAULT_BASE_URL = "https://gnews.io/api/v4"

# Provider-side upper bound for the `max` query parameter
MAX_PAGE_SIZE = 100


class ConfigurationError(Exception):
    """Raised when configuration validation fails."""

    pass


@dataclass
class Settings:
    """Configuration settings for the News Sync engine.

    Attributes:
        gnews_api_key: API key sent as the `apikey` query parameter
        gnews_base_url: Base URL of the GNews API
        default_category: Category used when the caller passes none
        default_language: Language used when the caller passes none
        page_size: Number of articles requested per page
        page_delay_seconds: Minimum spacing between consecutive page fetches
        request_timeout_seconds: Timeout applied to each HTTP request
        max_retries: Extra attempts for a page fetch that hits a transport error
        retry_backoff_seconds: Base delay for the exponential retry backoff
        database_path: SQLite database file
        list_cache_ttl_seconds: TTL for cached article listings
        article_cache_ttl_seconds: TTL for cached single-article lookups
    """

    gnews_api_key: str = ""
    gnews_base_url: str = DEFAULT_BASE_URL
    default_category: str = "general"
    default_language: str = "en"
    page_size: int = 10
    page_delay_seconds: float = 2.0
    request_timeout_seconds: float = 30.0
    max_retries: int = 0
    retry_backoff_seconds: float = 1.0
    database_path: str = "news_sync.db"
    list_cache_ttl_seconds: int = 300
    article_cache_ttl_seconds: int = 600

    def validate(self, require_api_key: bool = False) -> None:
        """Validate configuration values.

        Args:
            require_api_key: If True, an empty API key is reported as an error.

        Raises:
            ConfigurationError: If any configuration value is invalid.
        """
        errors: list[str] = []

        if require_api_key and not self.gnews_api_key.strip():
            errors.append("GNEWS_API_KEY must be set")

        if not self.gnews_base_url.startswith(("http://", "https://")):
            errors.append("gnews_base_url must be an http(s) URL")

        if not self.default_language.strip():
            errors.append("default_language must not be empty")

        if self.page_size < 1 or self.page_size > MAX_PAGE_SIZE:
            errors.append(f"page_size must be between 1 and {MAX_PAGE_SIZE}")

        if self.page_delay_seconds < 0.0:
            errors.append("page_delay_seconds must be non-negative")

        if self.request_timeout_seconds <= 0.0:
            errors.append("request_timeout_seconds must be positive")

        if self.max_retries < 0:
            errors.append("max_retries must be non-negative")

        if self.retry_backoff_seconds < 0.0:
            errors.append("retry_backoff_seconds must be non-negative")

        if not self.database_path.strip():
            errors.append("database_path must not be empty")

        if self.list_cache_ttl_seconds < 0:
            errors.append("list_cache_ttl_seconds must be non-negative")

        if self.article_cache_ttl_seconds < 0:
            errors.append("article_cache_ttl_seconds must be non-negative")

        if errors:
            raise ConfigurationError("; ".join(errors))


def _parse_float(value: str | None, default: float) -> float:
    """Parse a string to float, returning default if None or invalid."""
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return default


def _parse_int(value: str | None, default: int) -> int:
    """Parse a string to int, returning default if None or invalid."""
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def load_settings(
    env_path: str | Path | None = None,
    validate: bool = True,
    require_api_key: bool = False,
) -> Settings:
    """Load settings from environment variables and .env file.

    Args:
        env_path: Optional path to .env file. If None, searches for .env
                  in current directory and parent directories.
        validate: If True, validate settings after loading.
        require_api_key: Passed through to Settings.validate().

    Returns:
        Settings instance with loaded configuration.

    Raises:
        ConfigurationError: If validate=True and configuration is invalid.
    """
    if env_path:
        load_dotenv(env_path)
    else:
        load_dotenv()

    settings = Settings(
        gnews_api_key=os.getenv("GNEWS_API_KEY", ""),
        gnews_base_url=os.getenv("GNEWS_BASE_URL", DEFAULT_BASE_URL).rstrip("/"),
        default_category=os.getenv("DEFAULT_CATEGORY", "general"),
        default_language=os.getenv("DEFAULT_LANGUAGE", "en"),
        page_size=_parse_int(os.getenv("PAGE_SIZE"), 10),
        page_delay_seconds=_parse_float(os.getenv("PAGE_DELAY_SECONDS"), 2.0),
        request_timeout_seconds=_parse_float(
            os.getenv("REQUEST_TIMEOUT_SECONDS"), 30.0
        ),
        max_retries=_parse_int(os.getenv("MAX_RETRIES"), 0),
        retry_backoff_seconds=_parse_float(
            os.getenv("RETRY_BACKOFF_SECONDS"), 1.0
        ),
        database_path=os.getenv("DATABASE_PATH", "news_sync.db"),
        list_cache_ttl_seconds=_parse_int(
            os.getenv("LIST_CACHE_TTL_SECONDS"), 300
        ),
        article_cache_ttl_seconds=_parse_int(
            os.getenv("ARTICLE_CACHE_TTL_SECONDS"), 600
        ),
    )

    if validate:
        settings.validate(require_api_key=require_api_key)

    return settings
