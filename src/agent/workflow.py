"""Workflow wiring for sync runs and article lookups.

This module builds the engine and read surface from settings and runs a
sync in either mode, turning a fatal page failure into a WorkflowResult
that still carries the partial counters.
"""

import logging
import threading
from dataclasses import dataclass

from src.config.settings import Settings
from src.connectors.article_repository import ArticleRepository, SqliteArticleRepository
from src.connectors.cache import MemoryCache
from src.engines.article_reader import ArticleReader
from src.engines.gnews_client import GNewsClient
from src.engines.observability import RunResult
from src.engines.source_fetcher import FeedClient
from src.engines.sync_engine import IngestionFailed, SyncEngine


logger = logging.getLogger(__name__)


SYNC_MODES = ("ingest", "resync")


@dataclass
class WorkflowResult:
    """Result of a sync workflow execution.

    Attributes:
        success: Whether the run reached an empty page (or was cancelled)
        mode: "ingest" or "resync"
        result: Counters of the run, partial when success is False
        error: Failure message when success is False
        failed_page: Page whose fetch failed, if any
    """
    success: bool
    mode: str
    result: RunResult
    error: str | None = None
    failed_page: int | None = None


def open_repository(settings: Settings) -> SqliteArticleRepository:
    """Open the SQLite store configured in settings."""
    logger.debug(f"Opening article store {settings.database_path}")
    return SqliteArticleRepository(settings.database_path)


def build_sync_engine(
    settings: Settings,
    repository: ArticleRepository,
    client: FeedClient | None = None,
    cancel_event: threading.Event | None = None,
) -> SyncEngine:
    """Create a SyncEngine backed by the GNews client unless one is given."""
    return SyncEngine(
        client=client or GNewsClient(settings),
        repository=repository,
        settings=settings,
        cancel_event=cancel_event,
    )


def build_reader(settings: Settings, repository: ArticleRepository) -> ArticleReader:
    return ArticleReader(
        repository,
        cache=MemoryCache(),
        list_ttl=settings.list_cache_ttl_seconds,
        article_ttl=settings.article_cache_ttl_seconds,
    )


def run_sync(
    settings: Settings,
    mode: str,
    repository: ArticleRepository,
    category: str | None = None,
    language: str | None = None,
    page_size: int | None = None,
    client: FeedClient | None = None,
    cancel_event: threading.Event | None = None,
) -> WorkflowResult:
    """Run one ingest or resync pass.

    Args:
        settings: Configuration settings
        mode: "ingest" or "resync"
        repository: Article store
        category: Provider category, None to omit
        language: Language code, None to omit
        page_size: Articles per page, defaults to settings.page_size
        client: Feed client, defaults to a GNewsClient
        cancel_event: Optional event that stops the run between pages

    Returns:
        WorkflowResult; on a fatal page failure success is False and
        result holds the counters gathered before the failure
    """
    if mode not in SYNC_MODES:
        raise ValueError(f"Unknown sync mode {mode!r}, expected one of {SYNC_MODES}")

    engine = build_sync_engine(settings, repository, client=client, cancel_event=cancel_event)
    run = engine.ingest if mode == "ingest" else engine.resync

    try:
        result = run(category=category, language=language, page_size=page_size)
    except IngestionFailed as e:
        logger.error(f"Sync aborted: {e}")
        return WorkflowResult(
            success=False,
            mode=mode,
            result=e.result,
            error=str(e),
            failed_page=e.page,
        )

    return WorkflowResult(success=True, mode=mode, result=result)
