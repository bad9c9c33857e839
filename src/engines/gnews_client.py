"""GNews API client for fetching pages of news articles."""

import logging
import time
from typing import Any

import requests

from src.config.settings import Settings
from src.engines.source_fetcher import DecodeError, TransportError


logger = logging.getLogger(__name__)


class GNewsClient:
    """Client for the GNews v4 `top-headlines` and `search` endpoints.

    Each call is a single HTTP request: no retries happen here. Every call
    logs its page, result count and duration in milliseconds.

    Attributes:
        settings: Configuration with API key, base URL and timeout
        session: requests session used for all calls
    """

    def __init__(self, settings: Settings, session: requests.Session | None = None):
        """Initialize the GNews client.

        Args:
            settings: Configuration settings including API key and timeout
            session: Optional pre-configured session (useful for tests)
        """
        self.settings = settings
        self.session = session or requests.Session()
        self.session.headers.setdefault("User-Agent", "NewsSync/1.0 (GNews client)")
        self.session.headers.setdefault("Accept", "application/json")

    def fetch_page(
        self,
        category: str | None,
        language: str | None,
        page_size: int,
        page: int,
    ) -> list[dict[str, Any]]:
        """Fetch one page of top headlines.

        Args:
            category: general, world, nation, business, technology,
                entertainment, sports, science or health
            language: Language code (en, ar, ...)
            page_size: Number of articles per page (max 100)
            page: 1-based page number

        Returns:
            List of raw article records, empty when the page has no results

        Raises:
            TransportError: On network failure, timeout or non-2xx status
            DecodeError: If the body is not a JSON object with an article list
        """
        params = {
            "category": category,
            "lang": language,
            "max": page_size,
            "page": page,
        }
        return self._get_articles("top-headlines", params, label="top headlines")

    def search_page(
        self,
        query: str,
        language: str | None,
        page_size: int,
        page: int,
    ) -> list[dict[str, Any]]:
        """Fetch one page of search results for a free-text query.

        Same contract as fetch_page().
        """
        params = {
            "q": query,
            "lang": language,
            "max": page_size,
            "page": page,
        }
        return self._get_articles("search", params, label="search")

    def _get_articles(
        self,
        endpoint: str,
        params: dict[str, Any],
        label: str,
    ) -> list[dict[str, Any]]:
        query = {key: value for key, value in params.items() if value is not None}
        page = query.get("page")
        logger.info(f"GNews API: requesting {label} {_describe(query)}")

        query["apikey"] = self.settings.gnews_api_key
        url = f"{self.settings.gnews_base_url.rstrip('/')}/{endpoint}"

        start = time.perf_counter()
        try:
            articles = self._request(url, query)
        except (TransportError, DecodeError) as e:
            logger.error(
                f"GNews API: {label} failed "
                f"(page={page}, duration_ms={_elapsed_ms(start)}): {e}"
            )
            raise

        logger.info(
            f"GNews API: {label} fetched "
            f"(page={page}, articles_count={len(articles)}, "
            f"duration_ms={_elapsed_ms(start)})"
        )
        return articles

    def _redact(self, text: str) -> str:
        """Mask the API key; requests includes the full query in its errors."""
        key = self.settings.gnews_api_key
        return text.replace(key, "***") if key else text

    def _request(self, url: str, query: dict[str, Any]) -> list[dict[str, Any]]:
        try:
            response = self.session.get(
                url,
                params=query,
                timeout=self.settings.request_timeout_seconds,
            )
        except requests.Timeout as e:
            raise TransportError(f"request timed out: {self._redact(str(e))}") from e
        except requests.RequestException as e:
            raise TransportError(f"request failed: {self._redact(str(e))}") from e

        if not 200 <= response.status_code < 300:
            raise TransportError(
                f"HTTP {response.status_code}: {_error_detail(response)}",
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise DecodeError(f"response body is not valid JSON: {e}") from e

        if not isinstance(data, dict):
            raise DecodeError(f"expected a JSON object, got {type(data).__name__}")

        articles = data.get("articles")
        if articles is None:
            return []
        if not isinstance(articles, list):
            raise DecodeError(
                f"'articles' must be a list, got {type(articles).__name__}"
            )

        return articles


def _describe(query: dict[str, Any]) -> str:
    return ", ".join(f"{key}={value}" for key, value in query.items())


def _elapsed_ms(start: float) -> float:
    return round((time.perf_counter() - start) * 1000, 2)


def _error_detail(response: requests.Response) -> str:
    """Pull the provider's error message out of a failed response."""
    try:
        body = response.json()
    except ValueError:
        return response.reason or "error"

    if isinstance(body, dict) and body.get("errors"):
        errors = body["errors"]
        if isinstance(errors, list):
            return "; ".join(str(item) for item in errors)
        if isinstance(errors, dict):
            return "; ".join(f"{key}: {value}" for key, value in errors.items())
        return str(errors)

    return response.reason or "error"
