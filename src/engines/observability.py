"""Run statistics for sync engine invocations.

A result object lives for the duration of one run, is returned to the
caller and is never persisted.
"""

import logging
from dataclasses import dataclass, asdict
from typing import Any


logger = logging.getLogger(__name__)


@dataclass
class IngestResult:
    """Counters for an ingest-only run.

    Attributes:
        pages: Number of non-empty pages fetched
        total: Number of raw records seen
        saved: Articles stored for the first time
        skipped: Records not stored (duplicates plus failed records)
        errored: Records that failed validation or persistence
        cancelled: Whether the run was stopped by a cancellation request
    """
    pages: int = 0
    total: int = 0
    saved: int = 0
    skipped: int = 0
    errored: int = 0
    cancelled: bool = False

    mode = "ingest"

    def record_error(self) -> None:
        """Count a record that failed validation or persistence."""
        self.errored += 1
        self.skipped += 1

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    def summary_rows(self) -> list[tuple[str, int]]:
        """Rows for the CLI metric table."""
        return [
            ("Pages fetched", self.pages),
            ("Total fetched", self.total),
            ("Saved", self.saved),
            ("Skipped (duplicates)", self.skipped - self.errored),
            ("Errored", self.errored),
        ]


@dataclass
class ResyncResult:
    """Counters for a reconcile run.

    Attributes:
        pages: Number of non-empty pages fetched
        total: Number of raw records seen
        new: Articles stored for the first time
        updated: Stored articles rewritten after a material change
        unchanged: Stored articles that matched the feed
        errored: Records that failed validation or persistence
        cancelled: Whether the run was stopped by a cancellation request
    """
    pages: int = 0
    total: int = 0
    new: int = 0
    updated: int = 0
    unchanged: int = 0
    errored: int = 0
    cancelled: bool = False

    mode = "resync"

    def record_error(self) -> None:
        self.errored += 1

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    def summary_rows(self) -> list[tuple[str, int]]:
        """Rows for the CLI metric table."""
        return [
            ("Pages fetched", self.pages),
            ("Total fetched", self.total),
            ("New", self.new),
            ("Updated", self.updated),
            ("Unchanged", self.unchanged),
            ("Errored", self.errored),
        ]


RunResult = IngestResult | ResyncResult


def log_run_summary(result: RunResult) -> None:
    """Log the final counters of a run on a single line.

    Example:
        >>> log_run_summary(IngestResult(pages=2, total=20, saved=18, skipped=2))
        # Logs: "ingest run completed: pages=2, total=20, saved=18, ..."
    """
    counters = ", ".join(f"{key}={value}" for key, value in result.to_dict().items())
    logger.info(f"{result.mode} run completed: {counters}")
