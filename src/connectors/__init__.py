"""Connectors module - persistence and cache integrations."""

from src.connectors.article_repository import (
    ArticleRepository,
    DuplicateKeyError,
    NotFoundError,
    RepositoryError,
    SqliteArticleRepository,
)
from src.connectors.cache import MemoryCache

__all__ = [
    "ArticleRepository",
    "DuplicateKeyError",
    "MemoryCache",
    "NotFoundError",
    "RepositoryError",
    "SqliteArticleRepository",
]
