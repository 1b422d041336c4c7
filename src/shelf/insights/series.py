"""
Series grouping and completeness.

Books are grouped by series name; each group's volume labels are parsed to
ordinals to find gaps in what is owned.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from shelf.core.database import BookEntry, BookType, ProgressEntry
from shelf.insights.stats import percentage, read_flags
from shelf.insights.volumes import extract_volume_number, find_missing_volumes


@dataclass
class SeriesItem:
    """One owned book inside a series."""

    id: str
    title: str
    volume: str | None
    volume_number: int | None
    is_read: bool
    cover_url: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "volume": self.volume,
            "volume_number": self.volume_number,
            "is_read": self.is_read,
            "cover_url": self.cover_url,
        }


@dataclass
class SeriesInsight:
    """Ownership and reading state of one series."""

    series: str
    total_volumes: int
    read_volumes: int
    is_complete: bool
    missing_volumes: list[str] = field(default_factory=list)
    items: list[SeriesItem] = field(default_factory=list)

    @property
    def owned_volumes(self) -> int:
        # Only owned books are known, so owned and total are the same count
        return self.total_volumes

    @property
    def completion_percentage(self) -> int:
        return percentage(self.read_volumes, self.total_volumes)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON output."""
        return {
            "series": self.series,
            "total_volumes": self.total_volumes,
            "owned_volumes": self.owned_volumes,
            "read_volumes": self.read_volumes,
            "completion_percentage": self.completion_percentage,
            "is_complete": self.is_complete,
            "missing_volumes": list(self.missing_volumes),
            "items": [item.to_dict() for item in self.items],
        }


@dataclass
class SeriesBreakdown:
    """Series split by completeness."""

    complete_series: list[SeriesInsight] = field(default_factory=list)
    incomplete_series: list[SeriesInsight] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "complete_series": [s.to_dict() for s in self.complete_series],
            "incomplete_series": [s.to_dict() for s in self.incomplete_series],
        }


def group_by_series(books: Iterable[BookEntry]) -> dict[str, list[BookEntry]]:
    """Group books by series name, skipping books without one.

    Groups keep first-seen order, as do the books inside them.
    """
    groups: dict[str, list[BookEntry]] = {}
    for book in books:
        name = book.series_name
        if name is None:
            continue
        groups.setdefault(name, []).append(book)
    return groups


def build_series_insight(name: str, books: list[BookEntry], read: dict[str, bool]) -> SeriesInsight:
    """Compute the insight for one series group."""
    items = [
        SeriesItem(
            id=book.id,
            title=book.title,
            volume=book.volume,
            volume_number=extract_volume_number(book.volume),
            is_read=read.get(book.id, False),
            cover_url=book.cover_url,
        )
        for book in books
    ]

    ordinals = [item.volume_number for item in items if item.volume_number is not None]
    read_volumes = sum(1 for item in items if item.is_read)
    missing = find_missing_volumes(ordinals)

    if ordinals:
        is_complete = not missing
    else:
        # Without volume numbers there are no gaps to find; fall back to "all read"
        is_complete = bool(items) and read_volumes == len(items)

    items.sort(key=lambda item: item.volume_number or 0)

    return SeriesInsight(
        series=name,
        total_volumes=len(items),
        read_volumes=read_volumes,
        is_complete=is_complete,
        missing_volumes=missing,
        items=items,
    )


def _series_order(insight: SeriesInsight) -> tuple[int, str]:
    return (-insight.completion_percentage, insight.series)


def compute_series_insights(
    books: Iterable[BookEntry],
    progress: Iterable[ProgressEntry],
    book_type: BookType | None = None,
) -> SeriesBreakdown:
    """Group books into series and split them by completeness.

    A series with parseable volume numbers is complete when there are no gaps
    between its lowest and highest owned volume. A series without any is
    complete when every member has been read. Both lists are ordered by
    completion percentage (highest first), then series name.

    Args:
        books: Owned books
        progress: Reading progress entries (missing entry = unread)
        book_type: Only consider books of this type
    """
    if book_type is not None:
        books = [book for book in books if book.type == book_type]

    read = read_flags(progress)
    insights = [
        build_series_insight(name, members, read)
        for name, members in group_by_series(books).items()
    ]
    insights.sort(key=_series_order)

    breakdown = SeriesBreakdown()
    for insight in insights:
        if insight.is_complete:
            breakdown.complete_series.append(insight)
        else:
            breakdown.incomplete_series.append(insight)
    return breakdown
