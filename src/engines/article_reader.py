"""Read model and cached lookups over stored articles."""

import logging
from dataclasses import dataclass, asdict, field
from typing import Any

from src.connectors.article_repository import (
    DEFAULT_DIRECTION,
    DEFAULT_ORDER_BY,
    ORDER_COLUMNS,
    ArticleRepository,
)
from src.connectors.cache import MemoryCache
from src.engines.article_normalizer import Article, format_timestamp


logger = logging.getLogger(__name__)


MAX_LIST_LIMIT = 100


class ArticleNotFoundError(Exception):
    """No stored article matches the requested identifier."""

    @classmethod
    def with_id(cls, article_id: str) -> "ArticleNotFoundError":
        return cls(f'Article with ID "{article_id}" not found')


@dataclass(frozen=True)
class ArticleView:
    """Article as exposed to listing and detail callers.

    Timestamps are rendered as "YYYY-MM-DD HH:MM:SS" (UTC).
    """
    id: str
    title: str
    description: str
    content: str
    url: str
    image_url: str | None
    published_at: str
    source_name: str
    language: str
    created_at: str
    updated_at: str

    @classmethod
    def from_article(cls, article: Article) -> "ArticleView":
        return cls(
            id=article.id,
            title=article.title,
            description=article.description,
            content=article.content,
            url=article.url,
            image_url=article.image_url,
            published_at=format_timestamp(article.published_at),
            source_name=article.source_name,
            language=article.language,
            created_at=format_timestamp(article.created_at),
            updated_at=format_timestamp(article.updated_at),
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class ArticlePage:
    """One page of an article listing.

    Attributes:
        items: Articles on this page
        total: Number of stored articles matching the filter
        limit: Requested page size (after clamping)
        offset: Requested offset (after clamping)
        language: Language filter, or None for all
        order_by: Sort field actually applied
        direction: ASC or DESC
        cached: Whether the page was served from the cache
    """
    items: list[ArticleView]
    total: int
    limit: int
    offset: int
    language: str | None
    order_by: str
    direction: str
    cached: bool = field(default=False, compare=False)


class ArticleReader:
    """Single-article and listing lookups with read-through caching.

    Attributes:
        repository: Article store
        cache: Cache for rendered results
        list_ttl: Seconds a listing stays cached
        article_ttl: Seconds a single article stays cached
    """

    def __init__(
        self,
        repository: ArticleRepository,
        cache: MemoryCache | None = None,
        list_ttl: int = 300,
        article_ttl: int = 600,
    ):
        self.repository = repository
        self.cache = cache if cache is not None else MemoryCache()
        self.list_ttl = list_ttl
        self.article_ttl = article_ttl

    def get_article(self, article_id: str) -> ArticleView:
        """Return one article by identifier.

        Raises:
            ArticleNotFoundError: If no stored article has this identifier.
        """
        article_id = article_id.strip()
        cache_key = f"article_{article_id}"

        cached = self.cache.get(cache_key)
        if cached is not None:
            logger.debug(f"Cache hit for {cache_key}")
            return cached

        article = self.repository.find_by_id(article_id) if article_id else None
        if article is None:
            raise ArticleNotFoundError.with_id(article_id)

        view = ArticleView.from_article(article)
        self.cache.set(cache_key, view, self.article_ttl)
        return view

    def list_articles(
        self,
        limit: int = 20,
        offset: int = 0,
        language: str | None = None,
        order_by: str = DEFAULT_ORDER_BY,
        direction: str = DEFAULT_DIRECTION,
    ) -> ArticlePage:
        """Return one page of stored articles.

        `limit` is clamped to 1..100 and `offset` to >= 0. An unknown
        `order_by` falls back to published_at DESC.
        """
        limit = max(1, min(int(limit), MAX_LIST_LIMIT))
        offset = max(0, int(offset))
        language = language.strip().lower() if language and language.strip() else None
        direction = "ASC" if str(direction).upper() == "ASC" else "DESC"
        if order_by not in ORDER_COLUMNS:
            order_by, direction = DEFAULT_ORDER_BY, DEFAULT_DIRECTION

        cache_key = (
            f"articles_list_{limit}_{offset}_{language or 'all'}_{order_by}_{direction}"
        )
        cached = self.cache.get(cache_key)
        if cached is not None:
            logger.debug(f"Cache hit for {cache_key}")
            return ArticlePage(**{**cached, "cached": True})

        articles = self.repository.list_paged(
            limit, offset, language=language, order_by=order_by, direction=direction
        )
        page = ArticlePage(
            items=[ArticleView.from_article(article) for article in articles],
            total=self.repository.count_filtered(language=language),
            limit=limit,
            offset=offset,
            language=language,
            order_by=order_by,
            direction=direction,
        )
        self.cache.set(
            cache_key,
            {key: value for key, value in vars(page).items() if key != "cached"},
            self.list_ttl,
        )
        return page

    def count_all(self) -> int:
        return self.repository.count_all()
