"""Runner module for the News Sync commands.

This module loads settings, configures logging and executes one command,
mapping its outcome to a process exit code.
"""

import logging
import sys

from src.agent.workflow import build_reader, open_repository, run_sync
from src.config.settings import ConfigurationError, Settings, load_settings
from src.engines.article_reader import ArticleNotFoundError


# Exit codes
EXIT_SUCCESS = 0
EXIT_CONFIG_ERROR = 1
EXIT_RUN_ERROR = 2
EXIT_NOT_FOUND = 3


logger = logging.getLogger(__name__)


def _setup_logging(verbose: bool = False) -> None:
    """Configure logging for the application.

    Args:
        verbose: If True, set log level to DEBUG. Otherwise INFO.
    """
    level = logging.DEBUG if verbose else logging.INFO

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
    )


def _load(require_api_key: bool) -> Settings | None:
    try:
        settings = load_settings(validate=True, require_api_key=require_api_key)
        logger.info("Configuration loaded successfully")
        return settings
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        return None


def _print_table(headers: tuple[str, ...], rows: list[tuple]) -> None:
    widths = [
        max(len(str(value)) for value in column)
        for column in zip(headers, *rows)
    ]
    line = "  ".join("-" * width for width in widths)
    print(line)
    print("  ".join(str(h).ljust(w) for h, w in zip(headers, widths)))
    print(line)
    for row in rows:
        print("  ".join(str(value).ljust(w) for value, w in zip(row, widths)))
    print(line)


def run_sync_command(
    mode: str,
    category: str | None = None,
    language: str | None = None,
    page_size: int | None = None,
    verbose: bool = False,
) -> int:
    """Run an ingest ("fetch") or resync pass against the GNews API.

    Category and language fall back to the configured defaults.

    Returns:
        Exit code:
        - 0: Success
        - 1: Configuration error
        - 2: The run was aborted by a page fetch failure
    """
    _setup_logging(verbose)
    settings = _load(require_api_key=True)
    if settings is None:
        return EXIT_CONFIG_ERROR

    category = category or settings.default_category
    language = language or settings.default_language
    print(f"Category: {category}, Language: {language}, "
          f"Max: {page_size or settings.page_size}")

    with open_repository(settings) as repository:
        outcome = run_sync(
            settings,
            mode,
            repository,
            category=category,
            language=language,
            page_size=page_size,
        )

    _print_table(("Metric", "Count"), outcome.result.summary_rows())

    if not outcome.success:
        print(f"Failed to {mode} articles: {outcome.error}", file=sys.stderr)
        return EXIT_RUN_ERROR

    if outcome.result.cancelled:
        print(f"{mode.capitalize()} run cancelled.")
    else:
        print(f"{mode.capitalize()} run completed successfully!")
    return EXIT_SUCCESS


def run_list_command(
    limit: int = 10,
    offset: int = 0,
    language: str | None = None,
    order_by: str = "published_at",
    direction: str = "DESC",
    verbose: bool = False,
) -> int:
    """Print one page of stored articles."""
    _setup_logging(verbose)
    settings = _load(require_api_key=False)
    if settings is None:
        return EXIT_CONFIG_ERROR

    with open_repository(settings) as repository:
        page = build_reader(settings, repository).list_articles(
            limit=limit,
            offset=offset,
            language=language,
            order_by=order_by,
            direction=direction,
        )

    if not page.items:
        print("No articles found.")
        return EXIT_SUCCESS

    rows = [
        (view.id, view.title[:60], view.source_name, view.language, view.published_at)
        for view in page.items
    ]
    _print_table(("ID", "Title", "Source", "Lang", "Published"), rows)
    print(f"Showing {len(page.items)} of {page.total} articles (offset {page.offset})")
    return EXIT_SUCCESS


def run_show_command(article_id: str, verbose: bool = False) -> int:
    """Print one stored article.

    Returns:
        0 when found, 3 when no article has this identifier
    """
    _setup_logging(verbose)
    settings = _load(require_api_key=False)
    if settings is None:
        return EXIT_CONFIG_ERROR

    with open_repository(settings) as repository:
        try:
            view = build_reader(settings, repository).get_article(article_id)
        except ArticleNotFoundError as e:
            print(str(e), file=sys.stderr)
            return EXIT_NOT_FOUND

    _print_table(("Field", "Value"), list(view.to_dict().items()))
    return EXIT_SUCCESS
