"""
Recommendation matching.

Matches a curated recommendation against the books in the collection by:
- Exact title
- Series (preferring an aligned volume)
- Substring fallbacks between titles and series names

Rules are tried in that order and the first rule with any hit wins; within a
rule the first item in collection order wins. There is no scoring, so
substring fallbacks can produce false positives.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any

from shelf.core.database import BookEntry, ProgressEntry
from shelf.insights.stats import read_flags
from shelf.recommendations.models import Recommendation


class MatchType(Enum):
    """Which rule produced a match."""

    EXACT_TITLE = "exact_title"  # Titles equal
    SERIES_VOLUME = "series_volume"  # Same series, volumes overlap
    SERIES = "series"  # Same series, volumes absent or not aligned
    TITLE_CONTAINS_SERIES = "title_contains_series"  # Book title mentions recommended series
    SERIES_CONTAINS_TITLE = "series_contains_title"  # Book series mentions recommended title


@dataclass(frozen=True)
class OwnedItem:
    """A book in the collection together with its read flag."""

    id: str
    title: str
    series: str | None = None
    volume: str | None = None
    is_read: bool = False


@dataclass(frozen=True)
class MatchResult:
    """Whether a recommendation is owned, and by which book."""

    owned: bool
    item_id: str | None = None
    is_read: bool | None = None
    match_type: MatchType | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON output."""
        if not self.owned:
            return {"owned": False}
        return {
            "owned": True,
            "item_id": self.item_id,
            "is_read": self.is_read,
            "match_type": self.match_type.value if self.match_type else None,
        }


NOT_OWNED = MatchResult(owned=False)


def build_owned_items(
    books: Iterable[BookEntry],
    progress: Iterable[ProgressEntry],
) -> list[OwnedItem]:
    """Join books with their read flags, keeping book order."""
    read = read_flags(progress)
    return [
        OwnedItem(
            id=book.id,
            title=book.title,
            series=book.series_name,
            volume=book.volume,
            is_read=read.get(book.id, False),
        )
        for book in books
    ]


def _norm(value: str | None) -> str:
    return value.strip().lower() if value else ""


def _volumes_align(wanted: str, owned: str) -> bool:
    return bool(wanted) and bool(owned) and (owned in wanted or wanted in owned)


def match_recommendation(
    recommendation: Recommendation,
    owned_items: Sequence[OwnedItem],
) -> MatchResult:
    """Find the owned book that satisfies a recommendation.

    Args:
        recommendation: Curated entry to look for
        owned_items: Collection books with read flags, in collection order

    Returns:
        MatchResult with owned=False when nothing matches
    """
    title = _norm(recommendation.title)
    series = _norm(recommendation.series)
    volumes = _norm(recommendation.volumes)

    def same_series(item: OwnedItem) -> bool:
        return bool(series) and _norm(item.series) == series

    def fallback(item: OwnedItem) -> MatchType | None:
        if series and series in _norm(item.title):
            return MatchType.TITLE_CONTAINS_SERIES
        item_series = _norm(item.series)
        if title and item_series and title in item_series:
            return MatchType.SERIES_CONTAINS_TITLE
        return None

    rules: list[tuple[MatchType, Callable[[OwnedItem], bool]]] = [
        (MatchType.EXACT_TITLE, lambda item: bool(title) and _norm(item.title) == title),
        (
            MatchType.SERIES_VOLUME,
            lambda item: same_series(item) and _volumes_align(volumes, _norm(item.volume)),
        ),
        (MatchType.SERIES, same_series),
    ]

    for match_type, rule in rules:
        for item in owned_items:
            if rule(item):
                return MatchResult(
                    owned=True, item_id=item.id, is_read=item.is_read, match_type=match_type
                )

    for item in owned_items:
        fallback_type = fallback(item)
        if fallback_type is not None:
            return MatchResult(
                owned=True, item_id=item.id, is_read=item.is_read, match_type=fallback_type
            )

    return NOT_OWNED
