"""
In-memory TTL cache for reading path catalog responses.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from shelf.core.database import BookType

logger = logging.getLogger(__name__)

KEY_PREFIX = "recommendations:"
DEFAULT_TTL_MINUTES = 60


@dataclass
class CacheEntry:
    data: Any
    timestamp: float


class RecommendationCache:
    """Keyed cache whose entries expire after a fixed time to live."""

    def __init__(
        self,
        ttl_minutes: float = DEFAULT_TTL_MINUTES,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl_seconds = ttl_minutes * 60
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}

    def set_ttl(self, ttl_minutes: float) -> None:
        self.ttl_seconds = ttl_minutes * 60

    @staticmethod
    def key_for(book_type: BookType | None = None) -> str:
        """Cache key for the catalog of one book type (or all of them)."""
        return f"{KEY_PREFIX}{book_type.value}" if book_type else f"{KEY_PREFIX}all"

    def get(self, key: str) -> Any | None:
        """Cached data, or None if missing or expired."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() - entry.timestamp > self.ttl_seconds:
            del self._entries[key]
            logger.debug("Cache entry %s expired", key)
            return None
        return entry.data

    def set(self, key: str, data: Any) -> None:
        self._entries[key] = CacheEntry(data=data, timestamp=self._clock())

    def clear(self, key: str) -> None:
        self._entries.pop(key, None)

    def clear_all(self) -> None:
        self._entries.clear()

    def clear_recommendations(self) -> None:
        """Drop every catalog entry, e.g. after re-importing reading orders."""
        for key in [k for k in self._entries if k.startswith(KEY_PREFIX)]:
            del self._entries[key]

    def __len__(self) -> int:
        return len(self._entries)


recommendation_cache = RecommendationCache()
