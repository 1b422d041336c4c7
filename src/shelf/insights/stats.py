"""
Collection-wide reading statistics.
"""

from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from shelf.core.database import (
    TRACKED_BOOK_TYPES,
    BookEntry,
    BookType,
    ProgressEntry,
    format_timestamp,
)

RECENTLY_COMPLETED_LIMIT = 5


def percentage(part: int, total: int) -> int:
    """Whole-number percentage, rounding halves up. 0 when total is 0."""
    if total <= 0:
        return 0
    return math.floor(part / total * 100 + 0.5)


def read_flags(progress: Iterable[ProgressEntry]) -> dict[str, bool]:
    """Map item id to its read flag."""
    return {entry.item_id: entry.is_read for entry in progress}


@dataclass
class TypeCount:
    """Totals for one book type."""

    total: int = 0
    read: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {"total": self.total, "read": self.read}


@dataclass
class CompletedBook:
    """An entry in the recently completed list."""

    id: str
    title: str
    completed_at: datetime
    cover_url: str | None
    type: BookType

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "completed_at": format_timestamp(self.completed_at),
            "cover_url": self.cover_url,
            "type": self.type.value,
        }


@dataclass
class ReadingStats:
    """Read/unread counts for a set of books."""

    total_books: int = 0
    total_read: int = 0
    by_type: dict[BookType, TypeCount] = field(
        default_factory=lambda: {t: TypeCount() for t in TRACKED_BOOK_TYPES}
    )
    recently_completed: list[CompletedBook] = field(default_factory=list)

    @property
    def total_unread(self) -> int:
        return self.total_books - self.total_read

    @property
    def read_percentage(self) -> int:
        return percentage(self.total_read, self.total_books)

    @property
    def total_comics(self) -> int:
        return self.by_type[BookType.COMIC].total

    @property
    def total_manga(self) -> int:
        return self.by_type[BookType.MANGA].total

    @property
    def total_graphic_novels(self) -> int:
        return self.by_type[BookType.GRAPHIC_NOVEL].total

    @property
    def read_comics(self) -> int:
        return self.by_type[BookType.COMIC].read

    @property
    def read_manga(self) -> int:
        return self.by_type[BookType.MANGA].read

    @property
    def read_graphic_novels(self) -> int:
        return self.by_type[BookType.GRAPHIC_NOVEL].read

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON output."""
        return {
            "total_books": self.total_books,
            "total_read": self.total_read,
            "total_unread": self.total_unread,
            "read_percentage": self.read_percentage,
            "total_comics": self.total_comics,
            "total_manga": self.total_manga,
            "total_graphic_novels": self.total_graphic_novels,
            "read_comics": self.read_comics,
            "read_manga": self.read_manga,
            "read_graphic_novels": self.read_graphic_novels,
            "by_type": {t.value: count.to_dict() for t, count in self.by_type.items()},
            "recently_completed": [book.to_dict() for book in self.recently_completed],
        }


def compute_reading_stats(
    books: Iterable[BookEntry],
    progress: Iterable[ProgressEntry],
) -> ReadingStats:
    """Compute read/unread totals, per-type counts and recent completions.

    Books without a progress entry count as unread. Per-type counts cover
    whatever books are passed in; filter before calling to narrow them.
    """
    progress_by_id = {entry.item_id: entry for entry in progress}
    stats = ReadingStats()
    completed: list[CompletedBook] = []

    for book in books:
        entry = progress_by_id.get(book.id)
        is_read = entry is not None and entry.is_read

        stats.total_books += 1
        if is_read:
            stats.total_read += 1

        type_count = stats.by_type.get(book.type)
        if type_count is not None:
            type_count.total += 1
            if is_read:
                type_count.read += 1

        if is_read and entry is not None:
            completed_at = entry.completed_at
            if completed_at is not None:
                completed.append(
                    CompletedBook(
                        id=book.id,
                        title=book.title,
                        completed_at=completed_at,
                        cover_url=book.cover_url,
                        type=book.type,
                    )
                )

    completed.sort(key=lambda b: b.completed_at, reverse=True)
    stats.recently_completed = completed[:RECENTLY_COMPLETED_LIMIT]
    return stats
