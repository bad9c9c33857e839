"""Feed client protocol and the errors a feed client may raise."""

from typing import Any, Protocol, runtime_checkable


class TransportError(Exception):
    """Network or HTTP failure while talking to the feed provider.

    Covers connection errors, timeouts and non-2xx responses.
    """

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class DecodeError(Exception):
    """The provider answered but the body is not the expected shape."""

    pass


@runtime_checkable
class FeedClient(Protocol):
    """Protocol defining the paginated feed operations used by the engine.

    Implementations must not retry internally; retry policy belongs to
    the caller. An empty list means the provider has no more results
    for the requested page.
    """

    def fetch_page(
        self,
        category: str | None,
        language: str | None,
        page_size: int,
        page: int,
    ) -> list[dict[str, Any]]:
        """Fetch one page of top headlines.

        Args:
            category: Provider category token, omitted when None
            language: Language code, omitted when None
            page_size: Number of articles requested
            page: 1-based page number

        Returns:
            Raw article records in provider order

        Raises:
            TransportError: On network/HTTP failure
            DecodeError: If the response body cannot be parsed
        """
        ...

    def search_page(
        self,
        query: str,
        language: str | None,
        page_size: int,
        page: int,
    ) -> list[dict[str, Any]]:
        """Fetch one page of free-text search results (same contract)."""
        ...
