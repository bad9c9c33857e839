#!/usr/bin/env python3
"""Main entry point for News Sync.

This module provides the CLI interface for ingesting, resyncing and
browsing articles from the GNews API.

Usage:
    python -m src.main fetch -c technology -l en -m 50
    python -m src.main resync -l en
    python -m src.main list --limit 20 --language en --order-by title --direction ASC
    python -m src.main show <article-id>
    python -m src.main -v fetch         # Verbose logging
"""

import argparse
import sys

from src.agent.runner import (
    run_list_command,
    run_show_command,
    run_sync_command,
)
from src.config.settings import MAX_PAGE_SIZE


def _page_size(value: str) -> int:
    try:
        size = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid integer: {value!r}")
    if not 1 <= size <= MAX_PAGE_SIZE:
        raise argparse.ArgumentTypeError(f"must be between 1 and {MAX_PAGE_SIZE}")
    return size


def _add_sync_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-c", "--category",
        help="Article category (general, world, business, technology, etc.)",
    )
    parser.add_argument(
        "-l", "--lang",
        help="Language code (en, ar, etc.)",
    )
    parser.add_argument(
        "-m", "--max",
        type=_page_size,
        default=None,
        help="Maximum number of articles to fetch per page",
    )


def parse_args(args: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments.

    Args:
        args: Command line arguments. If None, uses sys.argv.

    Returns:
        Parsed arguments namespace.
    """
    parser = argparse.ArgumentParser(
        prog="news-sync",
        description="News Sync - ingest and reconcile articles from the GNews API",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging output",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    fetch = subparsers.add_parser(
        "fetch", help="Fetch articles and save the ones not stored yet",
    )
    _add_sync_options(fetch)

    resync = subparsers.add_parser(
        "resync", help="Fetch articles and update stored ones that changed",
    )
    _add_sync_options(resync)

    list_parser = subparsers.add_parser("list", help="List stored articles")
    list_parser.add_argument("--limit", type=int, default=10,
                             help="Number of articles to display")
    list_parser.add_argument("--offset", type=int, default=0,
                             help="Offset for pagination")
    list_parser.add_argument("--language", help="Only show articles in this language")
    list_parser.add_argument(
        "--order-by",
        default="published_at",
        choices=["published_at", "created_at", "updated_at", "title"],
        help="Field to order by",
    )
    list_parser.add_argument(
        "--direction",
        default="DESC",
        type=str.upper,
        choices=["ASC", "DESC"],
        help="Sort direction",
    )

    show = subparsers.add_parser("show", help="Show one stored article")
    show.add_argument("article_id", help="Article identifier")

    return parser.parse_args(args)


def main(args: list[str] | None = None) -> int:
    """Main entry point for News Sync.

    Args:
        args: Command line arguments. If None, uses sys.argv.

    Returns:
        Exit code (0 for success, non-zero for failure).
    """
    parsed = parse_args(args)

    if parsed.command == "fetch":
        return run_sync_command("ingest", parsed.category, parsed.lang, parsed.max, parsed.verbose)
    if parsed.command == "resync":
        return run_sync_command("resync", parsed.category, parsed.lang, parsed.max, parsed.verbose)
    if parsed.command == "list":
        return run_list_command(
            limit=parsed.limit,
            offset=parsed.offset,
            language=parsed.language,
            order_by=parsed.order_by,
            direction=parsed.direction,
            verbose=parsed.verbose,
        )
    return run_show_command(parsed.article_id, parsed.verbose)


if __name__ == "__main__":
    sys.exit(main())
