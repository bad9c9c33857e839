"""Article data model and normalization of raw provider records."""

import hashlib
import logging
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Any
from urllib.parse import unquote_plus, urlparse, urlunparse

from dateutil import parser as date_parser
from dateutil.parser import ParserError


logger = logging.getLogger(__name__)


# Tracking parameters to strip from URLs (all lowercase for case-insensitive matching)
TRACKING_PARAMS = frozenset({
    # UTM parameters
    'utm_source', 'utm_medium', 'utm_campaign', 'utm_term', 'utm_content',
    'utm_id', 'utm_source_platform', 'utm_creative_format', 'utm_marketing_tactic',
    # Facebook
    'fbclid', 'fb_action_ids', 'fb_action_types', 'fb_source', 'fb_ref',
    # Google
    'gclid', 'gclsrc', 'dclid',
    # Microsoft/Bing
    'msclkid',
    # Twitter
    'twclid',
    # Mailchimp
    'mc_cid', 'mc_eid',
    # Google Analytics
    '_ga', '_gl',
})

# Defaults applied when the provider omits a field entirely
DEFAULT_TITLE = "No title"
DEFAULT_DESCRIPTION = "No description"
DEFAULT_CONTENT = "No content"
DEFAULT_SOURCE_NAME = "Unknown source"

MAX_TITLE_LENGTH = 500
MAX_URL_LENGTH = 500
MAX_SOURCE_NAME_LENGTH = 255

# Rendering used for comparison and for the read model
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


class ValidationError(Exception):
    """Raised when a raw record cannot be turned into an Article.

    Attributes:
        field: Name of the offending Article field
        message: Human readable reason
    """

    def __init__(self, field: str, message: str):
        self.field = field
        self.message = message
        super().__init__(f"{field}: {message}")


@dataclass(frozen=True)
class Article:
    """Canonical article as stored and compared by the sync engine.

    Attributes:
        id: md5 hex digest of the canonical URL
        title: Trimmed title
        description: Trimmed description
        content: Trimmed body content
        url: Canonical URL, the unique business key
        image_url: Optional image URL
        published_at: Publication time (UTC, second precision)
        source_name: Publisher name
        language: Lower-cased language code
        created_at: When the article was first stored
        updated_at: When the article was last changed
    """
    id: str
    title: str
    description: str
    content: str
    url: str
    image_url: str | None
    published_at: datetime
    source_name: str
    language: str
    created_at: datetime
    updated_at: datetime


def _is_tracking_param(segment: str) -> bool:
    key = unquote_plus(segment.split('=', 1)[0]).lower()
    return key in TRACKING_PARAMS or key.startswith('utm_')


def normalize_url(url: str) -> str:
    """Strip tracking parameters and fragment to get the canonical URL.

    Example:
        >>> normalize_url("https://example.com/article?utm_source=twitter&id=123#top")
        'https://example.com/article?id=123'
    """
    if not url:
        return url

    parsed = urlparse(url)

    # Kept segments are passed through untouched
    new_query = '&'.join(
        segment
        for segment in parsed.query.split('&')
        if segment and not _is_tracking_param(segment)
    )

    return urlunparse((
        parsed.scheme,
        parsed.netloc,
        parsed.path,
        parsed.params,
        new_query,
        '',
    ))


def derive_article_id(url: str) -> str:
    """Return the deterministic identifier for a canonical URL."""
    return hashlib.md5(url.encode("utf-8")).hexdigest()


def is_valid_url(value: str) -> bool:
    """Check that value is an absolute http(s) URL with a host."""
    if not value or any(ch.isspace() for ch in value):
        return False
    try:
        parsed = urlparse(value)
    except ValueError:
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def parse_published_at(value: Any) -> datetime:
    """Parse a provider timestamp into an aware UTC datetime.

    Naive timestamps are taken as UTC. Sub-second precision is dropped so
    the stored value matches its rendered form.

    Raises:
        ValidationError: If the value is missing or unparseable.
    """
    if value is None:
        raise ValidationError("published_at", "publication date is missing")

    if not isinstance(value, str) or not value.strip():
        raise ValidationError("published_at", f"invalid date format: {value!r}")

    try:
        parsed = date_parser.parse(value.strip())
    except (ParserError, ValueError, OverflowError) as e:
        raise ValidationError("published_at", f"invalid date format: {value!r}") from e

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)

    return parsed.astimezone(timezone.utc).replace(microsecond=0)


def format_timestamp(value: datetime) -> str:
    """Render a timestamp in UTC using TIMESTAMP_FORMAT."""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.strftime(TIMESTAMP_FORMAT)


def _text_field(
    raw: dict[str, Any],
    key: str,
    field: str,
    default: str,
    max_length: int | None = None,
) -> str:
    value = raw.get(key)
    if value is None:
        value = default

    if not isinstance(value, str):
        raise ValidationError(field, f"expected a string, got {type(value).__name__}")

    value = value.strip()
    if not value:
        raise ValidationError(field, "must not be empty")

    if max_length is not None and len(value) > max_length:
        raise ValidationError(field, f"cannot exceed {max_length} characters")

    return value


def _source_name(raw: dict[str, Any]) -> str:
    source = raw.get("source")
    if isinstance(source, dict):
        source = {"name": source.get("name")}
    elif isinstance(source, str):
        source = {"name": source}
    else:
        source = {}
    return _text_field(
        source, "name", "source_name", DEFAULT_SOURCE_NAME, MAX_SOURCE_NAME_LENGTH
    )


def _canonical_url(raw: dict[str, Any]) -> str:
    url = raw.get("url")
    if url is None or (isinstance(url, str) and not url.strip()):
        raise ValidationError("url", "URL cannot be empty")

    if not isinstance(url, str) or not is_valid_url(url.strip()):
        raise ValidationError("url", f"invalid URL format: {url!r}")

    canonical = normalize_url(url.strip())
    if len(canonical) > MAX_URL_LENGTH:
        raise ValidationError("url", f"cannot exceed {MAX_URL_LENGTH} characters")

    return canonical


def _image_url(raw: dict[str, Any]) -> str | None:
    image = raw.get("image")
    if image is None:
        return None

    if not isinstance(image, str):
        raise ValidationError("image_url", f"invalid image URL format: {image!r}")

    image = image.strip()
    if not image:
        return None

    if not is_valid_url(image) or len(image) > MAX_URL_LENGTH:
        raise ValidationError("image_url", f"invalid image URL format: {image!r}")

    return image


def _language(raw: dict[str, Any], fallback_language: str | None) -> str:
    language = raw.get("lang") or fallback_language
    if not isinstance(language, str):
        raise ValidationError("language", "language cannot be empty")

    language = language.strip().lower()
    if not language:
        raise ValidationError("language", "language cannot be empty")

    return language


def normalize_article(
    raw: dict[str, Any],
    fallback_language: str | None,
    now: datetime | None = None,
) -> Article:
    """Convert a raw provider record into a canonical Article.

    Absent title, description and content fall back to "No title",
    "No description" and "No content"; a present but blank value is
    rejected. The record's own `lang` wins over `fallback_language`.

    Args:
        raw: One entry of the provider's `articles` array
        fallback_language: Language used when the record carries none
        now: Ingestion time, defaults to the current UTC time

    Returns:
        A validated Article whose id is derived from its canonical URL

    Raises:
        ValidationError: On the first field that fails validation.

    Example:
        >>> article = normalize_article(
        ...     {"url": "https://example.com/a", "publishedAt": "2024-01-15T10:30:00Z"},
        ...     "EN",
        ... )
        >>> article.title, article.language
        ('No title', 'en')
    """
    if not isinstance(raw, dict):
        raise ValidationError("record", f"expected an object, got {type(raw).__name__}")

    if now is None:
        now = datetime.now(timezone.utc)

    url = _canonical_url(raw)
    title = _text_field(raw, "title", "title", DEFAULT_TITLE, MAX_TITLE_LENGTH)
    description = _text_field(raw, "description", "description", DEFAULT_DESCRIPTION)
    content = _text_field(raw, "content", "content", DEFAULT_CONTENT)
    image_url = _image_url(raw)

    published_at = parse_published_at(raw.get("publishedAt"))
    if published_at > now:
        raise ValidationError("published_at", "published date cannot be in the future")

    source_name = _source_name(raw)
    language = _language(raw, fallback_language)

    return Article(
        id=derive_article_id(url),
        title=title,
        description=description,
        content=content,
        url=url,
        image_url=image_url,
        published_at=published_at,
        source_name=source_name,
        language=language,
        created_at=now,
        updated_at=now,
    )


def apply_update(existing: Article, candidate: Article, now: datetime | None = None) -> Article:
    """Build the stored replacement for `existing` from a changed candidate.

    The identifier and creation timestamp are carried over from `existing`,
    the content fields come from `candidate` and `updated_at` is refreshed.
    """
    return replace(
        candidate,
        id=existing.id,
        created_at=existing.created_at,
        updated_at=now or datetime.now(timezone.utc),
    )
