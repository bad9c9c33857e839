"""Article persistence: repository protocol and SQLite implementation."""

import logging
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Protocol, runtime_checkable

from src.engines.article_normalizer import Article


logger = logging.getLogger(__name__)


# Sortable fields exposed to callers, mapped to their columns
ORDER_COLUMNS = {
    "published_at": "published_at",
    "created_at": "created_at",
    "updated_at": "updated_at",
    "title": "title",
}

DEFAULT_ORDER_BY = "published_at"
DEFAULT_DIRECTION = "DESC"

SCHEMA = """
CREATE TABLE IF NOT EXISTS articles (
    id VARCHAR(255) NOT NULL PRIMARY KEY,
    title VARCHAR(500) NOT NULL,
    description TEXT NOT NULL,
    content TEXT NOT NULL,
    url VARCHAR(500) NOT NULL UNIQUE,
    image_url VARCHAR(500) DEFAULT NULL,
    published_at TEXT NOT NULL,
    source_name VARCHAR(255) NOT NULL,
    language VARCHAR(16) NOT NULL,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_articles_published_at ON articles (published_at);
CREATE INDEX IF NOT EXISTS idx_articles_language ON articles (language);
"""

COLUMNS = (
    "id, title, description, content, url, image_url, published_at, "
    "source_name, language, created_at, updated_at"
)


class RepositoryError(Exception):
    """Base class for persistence failures on a single article."""

    pass


class DuplicateKeyError(RepositoryError):
    """An article with the same URL (or identifier) is already stored."""

    pass


class NotFoundError(RepositoryError):
    """No stored article has the identifier being updated."""

    pass


@runtime_checkable
class ArticleRepository(Protocol):
    """Persistence operations consumed by the sync engine and read surface."""

    def exists_by_url(self, url: str) -> bool:
        ...

    def find_by_url(self, url: str) -> Article | None:
        ...

    def find_by_id(self, article_id: str) -> Article | None:
        ...

    def create(self, article: Article) -> None:
        """Store a new article. Raises DuplicateKeyError if the URL exists."""
        ...

    def update(self, article: Article) -> None:
        """Rewrite a stored article. Raises NotFoundError if the id is absent."""
        ...

    def count_all(self) -> int:
        ...

    def list_paged(
        self,
        limit: int,
        offset: int,
        language: str | None = None,
        order_by: str = DEFAULT_ORDER_BY,
        direction: str = DEFAULT_DIRECTION,
    ) -> list[Article]:
        ...

    def count_filtered(self, language: str | None = None) -> int:
        ...


def _to_db_time(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()


def _from_db_time(value: str) -> datetime:
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _row_to_article(row: sqlite3.Row) -> Article:
    return Article(
        id=row["id"],
        title=row["title"],
        description=row["description"],
        content=row["content"],
        url=row["url"],
        image_url=row["image_url"],
        published_at=_from_db_time(row["published_at"]),
        source_name=row["source_name"],
        language=row["language"],
        created_at=_from_db_time(row["created_at"]),
        updated_at=_from_db_time(row["updated_at"]),
    )


def _language_clause(language: str | None) -> tuple[str, tuple]:
    if language:
        return " WHERE language = ?", (language.strip().lower(),)
    return "", ()


class SqliteArticleRepository:
    """SQLite-backed article repository.

    The `url` column carries a UNIQUE constraint, which is what turns a
    duplicate insert from a concurrent run into a DuplicateKeyError.

    Attributes:
        path: Database file path, or ":memory:"
    """

    def __init__(self, path: str | Path = ":memory:"):
        self.path = str(path)
        if self.path != ":memory:":
            Path(self.path).parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(self.path)
        self._conn.row_factory = sqlite3.Row
        with self._conn:
            self._conn.executescript(SCHEMA)
        logger.debug(f"Opened article store at {self.path}")

    def close(self) -> None:
        self._conn.close()

    def __enter__(self) -> "SqliteArticleRepository":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _fetchone(self, sql: str, params: tuple = ()) -> sqlite3.Row | None:
        try:
            return self._conn.execute(sql, params).fetchone()
        except sqlite3.Error as e:
            raise RepositoryError(f"Query failed: {e}") from e

    def exists_by_url(self, url: str) -> bool:
        row = self._fetchone("SELECT 1 FROM articles WHERE url = ? LIMIT 1", (url,))
        return row is not None

    def find_by_url(self, url: str) -> Article | None:
        row = self._fetchone(f"SELECT {COLUMNS} FROM articles WHERE url = ?", (url,))
        return _row_to_article(row) if row else None

    def find_by_id(self, article_id: str) -> Article | None:
        row = self._fetchone(f"SELECT {COLUMNS} FROM articles WHERE id = ?", (article_id,))
        return _row_to_article(row) if row else None

    def create(self, article: Article) -> None:
        try:
            with self._conn:
                self._conn.execute(
                    f"INSERT INTO articles ({COLUMNS}) "
                    "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                    (
                        article.id,
                        article.title,
                        article.description,
                        article.content,
                        article.url,
                        article.image_url,
                        _to_db_time(article.published_at),
                        article.source_name,
                        article.language,
                        _to_db_time(article.created_at),
                        _to_db_time(article.updated_at),
                    ),
                )
        except sqlite3.IntegrityError as e:
            raise DuplicateKeyError(f"Article already stored for URL {article.url}") from e
        except sqlite3.Error as e:
            raise RepositoryError(f"Failed to store article {article.id}: {e}") from e

    def update(self, article: Article) -> None:
        try:
            with self._conn:
                cursor = self._conn.execute(
                    "UPDATE articles SET title = ?, description = ?, content = ?, "
                    "image_url = ?, published_at = ?, source_name = ?, language = ?, "
                    "updated_at = ? WHERE id = ?",
                    (
                        article.title,
                        article.description,
                        article.content,
                        article.image_url,
                        _to_db_time(article.published_at),
                        article.source_name,
                        article.language,
                        _to_db_time(article.updated_at),
                        article.id,
                    ),
                )
        except sqlite3.Error as e:
            raise RepositoryError(f"Failed to update article {article.id}: {e}") from e

        if cursor.rowcount == 0:
            raise NotFoundError(f"Article {article.id} not found for update")

    def count_all(self) -> int:
        return self._fetchone("SELECT COUNT(*) FROM articles")[0]

    def list_paged(
        self,
        limit: int,
        offset: int,
        language: str | None = None,
        order_by: str = DEFAULT_ORDER_BY,
        direction: str = DEFAULT_DIRECTION,
    ) -> list[Article]:
        """List stored articles with an optional language filter.

        Unknown `order_by` values fall back to published_at DESC; any
        direction other than ASC is treated as DESC.
        """
        column = ORDER_COLUMNS.get(order_by)
        if column is None:
            column, direction = ORDER_COLUMNS[DEFAULT_ORDER_BY], DEFAULT_DIRECTION
        direction = "ASC" if str(direction).upper() == "ASC" else "DESC"

        where, params = _language_clause(language)
        try:
            rows = self._conn.execute(
                f"SELECT {COLUMNS} FROM articles{where} "
                f"ORDER BY {column} {direction}, id {direction} LIMIT ? OFFSET ?",
                params + (limit, offset),
            ).fetchall()
        except sqlite3.Error as e:
            raise RepositoryError(f"Query failed: {e}") from e
        return [_row_to_article(row) for row in rows]

    def count_filtered(self, language: str | None = None) -> int:
        where, params = _language_clause(language)
        return self._fetchone(f"SELECT COUNT(*) FROM articles{where}", params)[0]
