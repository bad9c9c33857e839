"""Engines module - core ingestion and synchronization components."""

from src.engines.article_normalizer import Article, ValidationError, normalize_article
from src.engines.deduplication import ArticleChange, classify
from src.engines.observability import IngestResult, ResyncResult
from src.engines.source_fetcher import DecodeError, FeedClient, TransportError

__all__ = [
    # Normalization
    "Article",
    "normalize_article",
    # Change detection
    "ArticleChange",
    "classify",
    # Run statistics
    "IngestResult",
    "ResyncResult",
    # Feed client
    "FeedClient",
    # Exceptions
    "ValidationError",
    "TransportError",
    "DecodeError",
]
