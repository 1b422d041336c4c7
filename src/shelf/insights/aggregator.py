"""
Collection insights aggregator.

Combines reading statistics and series completeness for the collection
stored in .shelf/.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from shelf.core.config import get_paths
from shelf.core.database import (
    BookDatabase,
    BookEntry,
    BookType,
    ProgressDatabase,
    ProgressEntry,
)
from shelf.insights.series import SeriesBreakdown, SeriesInsight, compute_series_insights
from shelf.insights.stats import ReadingStats, compute_reading_stats

_OLDEST = datetime.min.replace(tzinfo=timezone.utc)


@dataclass
class CollectionInsights:
    """Reading stats plus series split by completeness."""

    stats: ReadingStats
    complete_series: list[SeriesInsight] = field(default_factory=list)
    incomplete_series: list[SeriesInsight] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON output."""
        return {
            "stats": self.stats.to_dict(),
            "complete_series": [s.to_dict() for s in self.complete_series],
            "incomplete_series": [s.to_dict() for s in self.incomplete_series],
        }


def compute_collection_insights(
    books: Iterable[BookEntry],
    progress: Iterable[ProgressEntry],
    book_type: BookType | None = None,
) -> CollectionInsights:
    """Compute stats and series insights over the same book set.

    With book_type given, both parts only see books of that type.
    """
    selected = [book for book in books if book_type is None or book.type == book_type]
    progress = list(progress)

    breakdown: SeriesBreakdown = compute_series_insights(selected, progress)
    return CollectionInsights(
        stats=compute_reading_stats(selected, progress),
        complete_series=breakdown.complete_series,
        incomplete_series=breakdown.incomplete_series,
    )


def newest_first(books: Iterable[BookEntry]) -> list[BookEntry]:
    """Order books by created_at descending; undated books go last."""
    return sorted(books, key=lambda b: b.created_at or _OLDEST, reverse=True)


class CollectionAnalytics:
    """Loads the collection databases and computes insights over them."""

    def __init__(self, root: Path | None = None):
        """Initialize analytics.

        Args:
            root: Collection root directory (auto-detected if not provided)
        """
        paths = get_paths(root)
        self.books_db = BookDatabase(paths.books_db, paths.books_backups)
        self.progress_db = ProgressDatabase(paths.progress_db, paths.progress_backups)
        self._loaded = False

    def _load_data(self) -> None:
        if self._loaded:
            return
        self.books_db.load()
        self.progress_db.load()
        self._loaded = True

    def books(self, book_type: BookType | None = None) -> list[BookEntry]:
        """Books newest first, optionally of a single type."""
        self._load_data()
        books = newest_first(self.books_db.entries())
        if book_type is not None:
            books = [book for book in books if book.type == book_type]
        return books

    def progress(self) -> list[ProgressEntry]:
        self._load_data()
        return self.progress_db.entries()

    def get_insights(self, book_type: BookType | None = None) -> CollectionInsights:
        return compute_collection_insights(self.books(), self.progress(), book_type)

    def get_series(self, book_type: BookType | None = None) -> SeriesBreakdown:
        return compute_series_insights(self.books(), self.progress(), book_type)

    def get_stats(self, book_type: BookType | None = None) -> ReadingStats:
        return compute_reading_stats(self.books(book_type), self.progress())
