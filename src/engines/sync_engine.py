"""Pagination-driven sync engine shared by the ingest and resync flows.

One invocation is one run: pages are requested from the feed client
starting at page 1 until an empty page comes back. Each record is
normalized and then either stored, updated or skipped. Record-level
failures are counted and logged; a page that cannot be fetched aborts
the run with IngestionFailed carrying the counters gathered so far.
"""

import enum
import logging
import threading
import time
from datetime import datetime, timezone
from typing import Any, Callable

from tenacity import (
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from src.config.settings import MAX_PAGE_SIZE, Settings
from src.connectors.article_repository import ArticleRepository, RepositoryError
from src.engines.article_normalizer import (
    ValidationError,
    apply_update,
    normalize_article,
)
from src.engines.deduplication import ArticleChange, changed_fields, classify
from src.engines.observability import (
    IngestResult,
    ResyncResult,
    RunResult,
    log_run_summary,
)
from src.engines.source_fetcher import DecodeError, FeedClient, TransportError


logger = logging.getLogger(__name__)


class SyncState(enum.Enum):
    """Lifecycle of a single run."""
    IDLE = "idle"
    FETCHING_PAGE = "fetching_page"
    PROCESSING_RECORDS = "processing_records"
    PAGINATING = "paginating"
    DONE = "done"
    FAILED = "failed"
    CANCELLED = "cancelled"


class IngestionFailed(Exception):
    """A page could not be fetched, so the run was aborted.

    Attributes:
        mode: "ingest" or "resync"
        page: Page number whose fetch failed
        cause: The underlying TransportError or DecodeError
        result: Counters accumulated before the failure
    """

    def __init__(self, mode: str, page: int, cause: Exception, result: RunResult):
        self.mode = mode
        self.page = page
        self.cause = cause
        self.result = result
        super().__init__(f"{mode} run failed on page {page}: {cause}")


class PagePacer:
    """Fixed-delay rate limiter between consecutive page fetches.

    wait() blocks until at least `min_interval` seconds have passed since
    the previous call returned. The first call never blocks. When a
    `cancel_event` is given the delay is spent waiting on it, so setting
    the event ends the wait early.
    """

    def __init__(
        self,
        min_interval: float,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Any] = time.sleep,
        cancel_event: threading.Event | None = None,
    ):
        self.min_interval = min_interval
        self._clock = clock
        self._sleep = sleep
        self._cancel_event = cancel_event
        self._last: float | None = None

    def wait(self) -> None:
        if self._last is not None:
            remaining = self._last + self.min_interval - self._clock()
            if remaining > 0:
                logger.debug(f"Waiting {remaining:.2f}s before next API call")
                if self._cancel_event is not None:
                    self._cancel_event.wait(remaining)
                else:
                    self._sleep(remaining)
        self._last = self._clock()


def _describe_record(raw: Any) -> str:
    if isinstance(raw, dict):
        return str(raw.get("url") or raw.get("title") or "unknown")
    return "unknown"


def _log_retry(retry_state) -> None:
    logger.warning(
        f"Page fetch attempt {retry_state.attempt_number} failed, retrying: "
        f"{retry_state.outcome.exception()}"
    )


class SyncEngine:
    """Fetches the feed page by page and reconciles it with the store.

    Two entry points share one loop:

    - ingest(): store articles whose URL is not yet known, skip the rest.
      Never updates an existing article.
    - resync(): store unknown articles and rewrite stored ones whose
      compared fields changed upstream.

    Attributes:
        client: Feed client used to fetch pages
        repository: Article store
        settings: Page size, pacing and retry configuration
        state: Current SyncState of the running (or last) run
    """

    def __init__(
        self,
        client: FeedClient,
        repository: ArticleRepository,
        settings: Settings,
        cancel_event: threading.Event | None = None,
        sleep: Callable[[float], Any] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
        now: Callable[[], datetime] | None = None,
    ):
        """Initialize the engine.

        Args:
            client: Feed client (must not retry internally)
            repository: Article store
            settings: Configuration settings
            cancel_event: When set, the run stops before the next page fetch
            sleep: Blocking sleep used for pacing and retry backoff
            clock: Monotonic clock used for pacing
            now: Source of ingestion timestamps (aware UTC datetimes)
        """
        self.client = client
        self.repository = repository
        self.settings = settings
        self.cancel_event = cancel_event
        self.state = SyncState.IDLE
        self._sleep = sleep
        self._clock = clock
        self._now = now or (lambda: datetime.now(timezone.utc))

    def ingest(
        self,
        category: str | None = None,
        language: str | None = None,
        page_size: int | None = None,
    ) -> IngestResult:
        """Store every article of the feed whose URL is not stored yet.

        Args:
            category: Provider category, omitted from the request when None
            language: Language code, omitted from the request when None
            page_size: Articles per page, defaults to settings.page_size

        Returns:
            IngestResult with pages, total, saved, skipped and errored counts

        Raises:
            IngestionFailed: If a page cannot be fetched
        """
        return self._run(IngestResult(), self._ingest_record, category, language, page_size)

    def resync(
        self,
        category: str | None = None,
        language: str | None = None,
        page_size: int | None = None,
    ) -> ResyncResult:
        """Reconcile stored articles with the live feed.

        Same arguments as ingest().

        Returns:
            ResyncResult with pages, total, new, updated, unchanged and
            errored counts

        Raises:
            IngestionFailed: If a page cannot be fetched
        """
        return self._run(ResyncResult(), self._reconcile_record, category, language, page_size)

    def _transition(self, state: SyncState) -> None:
        logger.debug(f"Sync state {self.state.value} -> {state.value}")
        self.state = state

    def _cancel_requested(self) -> bool:
        return self.cancel_event is not None and self.cancel_event.is_set()

    def _fetch_page(
        self,
        category: str | None,
        language: str | None,
        page_size: int,
        page: int,
    ) -> list[dict[str, Any]]:
        retrying = Retrying(
            stop=stop_after_attempt(self.settings.max_retries + 1),
            wait=wait_exponential(multiplier=self.settings.retry_backoff_seconds, max=30),
            retry=retry_if_exception_type(TransportError),
            before_sleep=_log_retry,
            sleep=self._sleep,
            reraise=True,
        )
        return retrying(self.client.fetch_page, category, language, page_size, page)

    def _run(
        self,
        result: RunResult,
        handle_record: Callable[[dict[str, Any], str, RunResult], None],
        category: str | None,
        language: str | None,
        page_size: int | None,
    ) -> RunResult:
        page_size = page_size or self.settings.page_size
        if not 1 <= page_size <= MAX_PAGE_SIZE:
            raise ValueError(f"page_size must be between 1 and {MAX_PAGE_SIZE}, got {page_size}")

        fallback_language = language or self.settings.default_language
        pacer = PagePacer(
            self.settings.page_delay_seconds,
            clock=self._clock,
            sleep=self._sleep,
            cancel_event=self.cancel_event,
        )

        self.state = SyncState.IDLE
        logger.info(
            f"Starting {result.mode} run "
            f"(category={category}, lang={language}, max={page_size})"
        )

        page = 1
        while True:
            pacer.wait()

            if self._cancel_requested():
                logger.warning(f"{result.mode} run cancelled before page {page}")
                result.cancelled = True
                self._transition(SyncState.CANCELLED)
                break

            self._transition(SyncState.FETCHING_PAGE)
            logger.info(f"Fetching page {page} for {result.mode}")
            try:
                records = self._fetch_page(category, language, page_size, page)
            except (TransportError, DecodeError) as e:
                result.pages = page - 1
                self._transition(SyncState.FAILED)
                logger.error(f"Failed to fetch page {page} during {result.mode}: {e}")
                raise IngestionFailed(result.mode, page, e, result) from e

            if not records:
                logger.info(f"Empty page {page} received, stopping {result.mode}")
                self._transition(SyncState.DONE)
                break

            self._transition(SyncState.PROCESSING_RECORDS)
            result.total += len(records)

            for raw in records:
                try:
                    handle_record(raw, fallback_language, result)
                except (ValidationError, RepositoryError) as e:
                    result.record_error()
                    logger.warning(
                        f"Failed to process article on page {page} "
                        f"({_describe_record(raw)}): {e}"
                    )

            page += 1
            self._transition(SyncState.PAGINATING)

        result.pages = page - 1
        log_run_summary(result)
        return result

    def _ingest_record(
        self,
        raw: dict[str, Any],
        fallback_language: str,
        result: IngestResult,
    ) -> None:
        article = normalize_article(raw, fallback_language, now=self._now())

        if self.repository.exists_by_url(article.url):
            result.skipped += 1
            logger.debug(f"Skipping duplicate article {article.url}")
            return

        self.repository.create(article)
        result.saved += 1
        logger.info(f"Article saved: {article.id}")

    def _reconcile_record(
        self,
        raw: dict[str, Any],
        fallback_language: str,
        result: ResyncResult,
    ) -> None:
        candidate = normalize_article(raw, fallback_language, now=self._now())
        existing = self.repository.find_by_url(candidate.url)
        change = classify(candidate, existing)

        if change is ArticleChange.NEW:
            self.repository.create(candidate)
            result.new += 1
            logger.info(f"New article saved: {candidate.id}")
        elif change is ArticleChange.CHANGED:
            fields = changed_fields(candidate, existing)
            self.repository.update(apply_update(existing, candidate, now=self._now()))
            result.updated += 1
            logger.info(f"Article updated: {existing.id} ({', '.join(fields)})")
        else:
            result.unchanged += 1
            logger.debug(f"Article unchanged: {candidate.url}")
