"""Change detection between a freshly normalized article and its stored version."""

import enum

from src.engines.article_normalizer import Article, format_timestamp


class ArticleChange(enum.Enum):
    """Outcome of comparing a candidate article with the stored one."""
    NEW = "new"
    UNCHANGED = "unchanged"
    CHANGED = "changed"


# Fields compared on their rendered values, in reporting order
COMPARED_FIELDS = (
    "title",
    "description",
    "content",
    "image_url",
    "published_at",
    "source_name",
    "language",
)


def _rendered(article: Article) -> dict[str, str | None]:
    return {
        "title": article.title,
        "description": article.description,
        "content": article.content,
        "image_url": article.image_url,
        "published_at": format_timestamp(article.published_at),
        "source_name": article.source_name,
        "language": article.language,
    }


def changed_fields(candidate: Article, existing: Article) -> list[str]:
    """Return the names of the compared fields whose rendered values differ.

    Example:
        >>> changed_fields(stored, replace(stored, description="Updated"))
        ['description']
    """
    new_values = _rendered(candidate)
    old_values = _rendered(existing)
    return [name for name in COMPARED_FIELDS if new_values[name] != old_values[name]]


def classify(candidate: Article, existing: Article | None) -> ArticleChange:
    """Decide whether a candidate is new, unchanged or materially changed.

    Args:
        candidate: Normalized article built from the live feed
        existing: Stored article sharing the candidate's URL, if any

    Returns:
        NEW when nothing is stored, CHANGED when any compared field differs
        by exact string equality, UNCHANGED otherwise
    """
    if existing is None:
        return ArticleChange.NEW

    if changed_fields(candidate, existing):
        return ArticleChange.CHANGED

    return ArticleChange.UNCHANGED
