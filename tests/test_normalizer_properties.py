"""Property-based tests for article normalization.

Feature: news-sync
Covers URL canonicalization, identifier determinism, defaulting and
field validation.
"""

import hashlib
from datetime import datetime, timedelta, timezone
from urllib.parse import parse_qs, urlparse

import pytest
from hypothesis import given, settings, strategies as st

from src.engines.article_normalizer import (
    DEFAULT_CONTENT,
    DEFAULT_DESCRIPTION,
    DEFAULT_SOURCE_NAME,
    DEFAULT_TITLE,
    TRACKING_PARAMS,
    Article,
    ValidationError,
    apply_update,
    derive_article_id,
    format_timestamp,
    normalize_article,
    normalize_url,
    parse_published_at,
)


NOW = datetime(2026, 1, 15, 12, 0, 0, tzinfo=timezone.utc)

slug_strategy = st.text(
    alphabet="abcdefghijklmnopqrstuvwxyz0123456789-",
    min_size=1,
    max_size=40,
)


def make_record(**overrides) -> dict:
    """Build a complete GNews-shaped record, with optional overrides."""
    record = {
        "title": "Markets rally on rate cut hopes",
        "description": "Stocks climbed for a third day.",
        "content": "Full article body...",
        "url": "https://news.example.com/markets/rally",
        "image": "https://cdn.example.com/rally.jpg",
        "publishedAt": "2026-01-14T08:30:00Z",
        "source": {"name": "Example News", "url": "https://news.example.com"},
    }
    record.update(overrides)
    return record


# Feature: news-sync, Property: URL Canonicalization
class TestURLCanonicalization:
    """Property tests for URL canonicalization."""

    @given(
        path=slug_strategy,
        tracking_param=st.sampled_from(sorted(TRACKING_PARAMS)),
        tracking_value=slug_strategy,
    )
    @settings(max_examples=100)
    def test_tracking_params_removed(self, path: str, tracking_param: str, tracking_value: str):
        """For any tracking parameter, the canonical URL SHALL not contain it."""
        url = f"https://example.com/{path}?{tracking_param}={tracking_value}&id=7"
        canonical = normalize_url(url)

        query = parse_qs(urlparse(canonical).query)
        assert tracking_param not in query
        assert query["id"] == ["7"]

    def test_fragment_removed(self):
        assert normalize_url("https://example.com/a#comments") == "https://example.com/a"

    def test_utm_variants_removed(self):
        canonical = normalize_url("https://example.com/a?utm_custom=x&page=2")
        assert canonical == "https://example.com/a?page=2"

    @pytest.mark.parametrize("url", [
        "https://example.com/a?amp",
        "https://example.com/a?b=2&a=1",
        "https://example.com/a?q=hello+world&tag=%C3%A9t%C3%A9",
        "https://example.com/a?x=1&x=2",
    ])
    def test_kept_params_are_byte_identical(self, url: str):
        assert normalize_url(url) == url

    def test_tracking_params_removed_in_place(self):
        canonical = normalize_url("https://example.com/a?b=2&UTM_Source=x&amp&fbclid=9&a=1")
        assert canonical == "https://example.com/a?b=2&amp&a=1"

    def test_url_without_params_unchanged(self):
        assert normalize_url("https://example.com/article") == "https://example.com/article"

    def test_record_url_is_canonicalized(self):
        article = normalize_article(
            make_record(url="  https://example.com/a?utm_source=x  "), "en", now=NOW
        )
        assert article.url == "https://example.com/a"


# Feature: news-sync, Property: Identifier Determinism
class TestIdentifierDeterminism:
    """The identifier is a deterministic function of the canonical URL."""

    @given(path=slug_strategy)
    @settings(max_examples=100)
    def test_same_record_yields_same_id(self, path: str):
        """Normalizing the same raw record twice SHALL give the same id."""
        record = make_record(url=f"https://example.com/{path}")

        first = normalize_article(record, "en", now=NOW)
        second = normalize_article(record, "en", now=NOW + timedelta(hours=1))

        assert first.id == second.id
        assert first.id == derive_article_id(first.url)

    @given(path_a=slug_strategy, path_b=slug_strategy)
    @settings(max_examples=100)
    def test_distinct_urls_yield_distinct_ids(self, path_a: str, path_b: str):
        """Records differing only by URL SHALL get different ids."""
        if path_a == path_b:
            path_b = path_b + "-2"

        a = normalize_article(make_record(url=f"https://example.com/{path_a}"), "en", now=NOW)
        b = normalize_article(make_record(url=f"https://example.com/{path_b}"), "en", now=NOW)

        assert a.id != b.id

    def test_id_is_md5_hex(self):
        url = "https://example.com/a"
        assert derive_article_id(url) == hashlib.md5(url.encode("utf-8")).hexdigest()

    def test_tracking_params_do_not_change_id(self):
        plain = normalize_article(make_record(url="https://example.com/a"), "en", now=NOW)
        tracked = normalize_article(
            make_record(url="https://example.com/a?utm_medium=email&fbclid=1"), "en", now=NOW
        )
        assert plain.id == tracked.id


# Feature: news-sync, Property: Validation Leniency
class TestDefaults:
    """Absent text fields fall back to documented defaults."""

    @pytest.mark.parametrize("key,attribute,default", [
        ("title", "title", DEFAULT_TITLE),
        ("description", "description", DEFAULT_DESCRIPTION),
        ("content", "content", DEFAULT_CONTENT),
    ])
    def test_missing_field_uses_default(self, key: str, attribute: str, default: str):
        record = make_record()
        del record[key]

        article = normalize_article(record, "en", now=NOW)

        assert getattr(article, attribute) == default

    def test_null_field_uses_default(self):
        article = normalize_article(make_record(title=None), "en", now=NOW)
        assert article.title == DEFAULT_TITLE

    def test_missing_source_uses_default(self):
        record = make_record()
        del record["source"]
        assert normalize_article(record, "en", now=NOW).source_name == DEFAULT_SOURCE_NAME

    def test_missing_image_is_none(self):
        record = make_record()
        del record["image"]
        assert normalize_article(record, "en", now=NOW).image_url is None

    def test_blank_image_is_none(self):
        assert normalize_article(make_record(image="  "), "en", now=NOW).image_url is None

    @pytest.mark.parametrize("key", ["title", "description", "content"])
    def test_blank_field_is_rejected(self, key: str):
        with pytest.raises(ValidationError) as exc_info:
            normalize_article(make_record(**{key: "   "}), "en", now=NOW)
        assert exc_info.value.field == key

    def test_text_fields_are_trimmed(self):
        article = normalize_article(make_record(title="  Spaced out  "), "en", now=NOW)
        assert article.title == "Spaced out"

    def test_timestamps_set_to_ingestion_time(self):
        article = normalize_article(make_record(), "en", now=NOW)
        assert article.created_at == NOW
        assert article.updated_at == NOW


class TestLanguageResolution:
    """The record's own language wins over the caller's fallback."""

    def test_record_language_preferred(self):
        article = normalize_article(make_record(lang="AR"), "en", now=NOW)
        assert article.language == "ar"

    def test_fallback_language_used(self):
        article = normalize_article(make_record(), " EN ", now=NOW)
        assert article.language == "en"

    def test_missing_language_is_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            normalize_article(make_record(), None, now=NOW)
        assert exc_info.value.field == "language"

    def test_blank_fallback_is_rejected(self):
        with pytest.raises(ValidationError):
            normalize_article(make_record(), "   ", now=NOW)


class TestFieldValidation:
    """Invalid records raise ValidationError naming the field."""

    @pytest.mark.parametrize("url", [None, "", "   ", "not a url", "ftp://example.com/a", "/relative/path"])
    def test_invalid_url_rejected(self, url):
        record = make_record(url=url)
        with pytest.raises(ValidationError) as exc_info:
            normalize_article(record, "en", now=NOW)
        assert exc_info.value.field == "url"

    def test_missing_url_rejected(self):
        record = make_record()
        del record["url"]
        with pytest.raises(ValidationError) as exc_info:
            normalize_article(record, "en", now=NOW)
        assert exc_info.value.field == "url"

    def test_overlong_url_rejected(self):
        record = make_record(url="https://example.com/" + "a" * 500)
        with pytest.raises(ValidationError):
            normalize_article(record, "en", now=NOW)

    def test_invalid_image_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            normalize_article(make_record(image="not an image url"), "en", now=NOW)
        assert exc_info.value.field == "image_url"

    @pytest.mark.parametrize("value", ["invalid-date", "2026-13-45", "", 12345])
    def test_unparseable_date_rejected(self, value):
        with pytest.raises(ValidationError) as exc_info:
            normalize_article(make_record(publishedAt=value), "en", now=NOW)
        assert exc_info.value.field == "published_at"

    def test_missing_date_rejected(self):
        record = make_record()
        del record["publishedAt"]
        with pytest.raises(ValidationError) as exc_info:
            normalize_article(record, "en", now=NOW)
        assert exc_info.value.field == "published_at"

    def test_future_date_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            normalize_article(make_record(publishedAt="2026-01-16T00:00:00Z"), "en", now=NOW)
        assert exc_info.value.field == "published_at"
        assert "future" in str(exc_info.value)

    def test_title_length_limit(self):
        with pytest.raises(ValidationError) as exc_info:
            normalize_article(make_record(title="x" * 501), "en", now=NOW)
        assert exc_info.value.field == "title"

    def test_source_name_length_limit(self):
        with pytest.raises(ValidationError) as exc_info:
            normalize_article(make_record(source={"name": "s" * 256}), "en", now=NOW)
        assert exc_info.value.field == "source_name"

    def test_non_object_record_rejected(self):
        with pytest.raises(ValidationError):
            normalize_article(["not", "a", "record"], "en", now=NOW)


class TestPublishedAtParsing:
    """Timestamps are parsed into aware UTC datetimes at second precision."""

    def test_zulu_timestamp(self):
        assert parse_published_at("2026-01-14T08:30:00Z") == datetime(
            2026, 1, 14, 8, 30, tzinfo=timezone.utc
        )

    def test_offset_converted_to_utc(self):
        parsed = parse_published_at("2026-01-14T10:30:00+02:00")
        assert parsed == datetime(2026, 1, 14, 8, 30, tzinfo=timezone.utc)
        assert format_timestamp(parsed) == "2026-01-14 08:30:00"

    def test_naive_taken_as_utc(self):
        assert parse_published_at("2026-01-14 08:30:00").tzinfo == timezone.utc

    @given(
        dt=st.datetimes(
            min_value=datetime(2000, 1, 1),
            max_value=datetime(2025, 12, 31),
        )
    )
    @settings(max_examples=100)
    def test_iso_format_round_trip(self, dt: datetime):
        """For any datetime, its ISO form SHALL parse back to the same second."""
        parsed = parse_published_at(dt.isoformat())
        assert parsed == dt.replace(tzinfo=timezone.utc, microsecond=0)


class TestApplyUpdate:
    """Updates keep identity and creation time."""

    def test_identity_and_created_at_carried_over(self):
        created = NOW - timedelta(days=3)
        published = "2026-01-10T08:30:00Z"
        existing = normalize_article(make_record(publishedAt=published), "en", now=created)
        candidate = normalize_article(
            make_record(publishedAt=published, description="Revised"), "en", now=NOW
        )

        updated = apply_update(existing, candidate, now=NOW)

        assert isinstance(updated, Article)
        assert updated.id == existing.id
        assert updated.created_at == created
        assert updated.updated_at == NOW
        assert updated.description == "Revised"
        # originals are untouched
        assert existing.description == "Stocks climbed for a third day."
