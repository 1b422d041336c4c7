"""
Database management for books, reading progress and reading paths.

Provides unified interfaces for loading, saving, and manipulating
the JSON databases under .shelf/.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Iterator
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any

from shelf.core.backup import safe_write_json
from shelf.core.config import get_paths

logger = logging.getLogger(__name__)


class DatabaseError(RuntimeError):
    """A database file exists but cannot be read as JSON."""


class BookType(str, Enum):
    """Kind of book in the collection."""

    COMIC = "COMIC"
    MANGA = "MANGA"
    GRAPHIC_NOVEL = "GRAPHIC_NOVEL"
    OTHER = "OTHER"

    @classmethod
    def parse(cls, value: Any) -> BookType:
        """Read a stored type value, falling back to OTHER for anything unknown."""
        if isinstance(value, BookType):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().upper())
            except ValueError:
                pass
        return cls.OTHER


# Types that insights and recommendations report on
TRACKED_BOOK_TYPES = (BookType.COMIC, BookType.MANGA, BookType.GRAPHIC_NOVEL)


def parse_timestamp(value: Any) -> datetime | None:
    """Parse a stored ISO timestamp. Naive values are taken as UTC.

    Returns None for missing or unparseable values.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_timestamp(value: datetime | None) -> str | None:
    """Serialize a timestamp for storage or JSON output."""
    if value is None:
        return None
    return value.isoformat()


@dataclass
class BookEntry:
    """A single book in books_db.json."""

    id: str
    data: dict[str, Any] = field(default_factory=dict)

    @property
    def title(self) -> str:
        return str(self.data.get("title") or self.id)

    @property
    def series(self) -> str | None:
        return self.data.get("series")

    @property
    def series_name(self) -> str | None:
        """Series with surrounding whitespace removed, None when blank."""
        series = self.series
        if not isinstance(series, str):
            return None
        return series.strip() or None

    @property
    def volume(self) -> str | None:
        volume = self.data.get("volume")
        if volume is None:
            return None
        return str(volume)

    @property
    def type(self) -> BookType:
        return BookType.parse(self.data.get("type"))

    @property
    def author(self) -> str | None:
        return self.data.get("author")

    @property
    def cover_url(self) -> str | None:
        return self.data.get("cover_url")

    @property
    def created_at(self) -> datetime | None:
        return parse_timestamp(self.data.get("created_at"))

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON output."""
        return {
            "id": self.id,
            "title": self.title,
            "series": self.series,
            "volume": self.volume,
            "type": self.type.value,
            "author": self.author,
            "cover_url": self.cover_url,
            "created_at": format_timestamp(self.created_at),
        }


@dataclass
class ProgressEntry:
    """Reading progress for one book, keyed by the book's id."""

    item_id: str
    data: dict[str, Any] = field(default_factory=dict)

    @property
    def is_read(self) -> bool:
        return bool(self.data.get("is_read", False))

    @property
    def started_at(self) -> datetime | None:
        return parse_timestamp(self.data.get("started_at"))

    @property
    def completed_at(self) -> datetime | None:
        return parse_timestamp(self.data.get("completed_at"))

    @property
    def updated_at(self) -> datetime | None:
        return parse_timestamp(self.data.get("updated_at"))

    @property
    def reading_path(self) -> str | None:
        return self.data.get("reading_path")

    @property
    def current_phase(self) -> str | None:
        return self.data.get("current_phase")

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON output."""
        return {
            "item_id": self.item_id,
            "is_read": self.is_read,
            "started_at": format_timestamp(self.started_at),
            "completed_at": format_timestamp(self.completed_at),
            "updated_at": format_timestamp(self.updated_at),
            "reading_path": self.reading_path,
            "current_phase": self.current_phase,
        }


class JsonDatabase:
    """Base for the keyed JSON databases with safe loading/saving."""

    SPECIAL_KEYS = {"_comment", "_example", "_schema_version"}
    DEFAULT_META: dict[str, Any] = {}

    def __init__(self, db_path: Path | None = None, backup_dir: Path | None = None):
        """Initialize database.

        Args:
            db_path: Path to the JSON file (uses the collection default if not provided)
            backup_dir: Where save() keeps backups (collection default if not provided)
        """
        if db_path is None:
            db_path = self._default_path()
        self.db_path = Path(db_path)
        self.backup_dir = Path(backup_dir) if backup_dir is not None else None
        self._data: dict[str, Any] = {}
        self._loaded = False

    def _default_path(self) -> Path:
        raise NotImplementedError

    def _backup_dir(self) -> Path | None:
        return None

    def load(self) -> None:
        """Load database from file.

        Raises:
            DatabaseError: If the file is not valid JSON (to prevent data loss)
        """
        if not self.db_path.exists():
            self._data = dict(self.DEFAULT_META)
            self._loaded = True
            return

        try:
            with open(self.db_path, encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise DatabaseError(
                f"{self.db_path} contains invalid JSON: {e}. "
                f"Fix the syntax or restore it with 'shelf backup rollback'."
            ) from e

        if not isinstance(data, dict):
            raise DatabaseError(f"{self.db_path} must contain a JSON object")

        self._data = data
        self._loaded = True
        logger.debug("Loaded %d entries from %s", len(self), self.db_path)

    def ensure_loaded(self) -> None:
        if not self._loaded:
            self.load()

    def save(self, create_backup: bool = True) -> None:
        """Save database to file, backing up the previous version."""
        if not self._loaded:
            raise RuntimeError("Database not loaded. Call load() first.")

        for key, value in self.DEFAULT_META.items():
            if key not in self._data:
                self._data[key] = value

        sorted_data = {key: self._data[key] for key in sorted(self._data)}
        safe_write_json(
            self.db_path,
            sorted_data,
            create_backup_first=create_backup,
            backup_dir=self.backup_dir or self._backup_dir(),
        )

    def __contains__(self, key: str) -> bool:
        return key in self._data and key not in self.SPECIAL_KEYS

    def __iter__(self) -> Iterator[str]:
        for key in self._data:
            if key not in self.SPECIAL_KEYS:
                yield key

    def __len__(self) -> int:
        return sum(1 for key in self._data if key not in self.SPECIAL_KEYS)

    def raw(self, key: str) -> dict[str, Any] | None:
        """Get the stored dict for a key."""
        if key in self.SPECIAL_KEYS or key not in self._data:
            return None
        value = self._data[key]
        return value if isinstance(value, dict) else None

    def set(self, key: str, data: dict[str, Any]) -> None:
        if key in self.SPECIAL_KEYS:
            raise ValueError(f"Cannot use reserved key: {key}")
        self._data[key] = data

    def delete(self, key: str) -> bool:
        """Delete an entry. Returns False if it didn't exist."""
        if key in self._data and key not in self.SPECIAL_KEYS:
            del self._data[key]
            return True
        return False


class BookDatabase(JsonDatabase):
    """Manages books_db.json, the owned collection."""

    DEFAULT_META = {
        "_comment": "Book collection. Keys are item ids.",
        "_schema_version": "1.0",
        "_example": {
            "title": "Berserk Vol. 1",
            "series": "Berserk",
            "volume": "1",
            "type": "MANGA",  # COMIC, MANGA, GRAPHIC_NOVEL, OTHER
            "author": "Kentaro Miura",
            "cover_url": "https://example.com/cover.jpg",
            "created_at": "2024-01-15T12:00:00+00:00",
        },
    }

    def _default_path(self) -> Path:
        return get_paths().books_db

    def _backup_dir(self) -> Path | None:
        return get_paths().books_backups

    def get(self, item_id: str) -> BookEntry | None:
        data = self.raw(item_id)
        if data is None:
            return None
        return BookEntry(id=item_id, data=data)

    def entries(self) -> list[BookEntry]:
        """All books in file order."""
        result = []
        for item_id in self:
            entry = self.get(item_id)
            if entry is not None:
                result.append(entry)
        return result

    def stats(self) -> dict[str, Any]:
        """Get database statistics."""
        by_type: dict[str, int] = {}
        series: set[str] = set()
        for entry in self.entries():
            by_type[entry.type.value] = by_type.get(entry.type.value, 0) + 1
            if entry.series_name:
                series.add(entry.series_name)
        return {
            "total": len(self),
            "by_type": by_type,
            "series_count": len(series),
        }


class ProgressDatabase(JsonDatabase):
    """Manages progress_db.json. One entry per book id."""

    DEFAULT_META = {
        "_comment": "Reading progress. Keys are book item ids.",
        "_schema_version": "1.0",
        "_example": {
            "is_read": True,
            "started_at": "2024-02-01T20:00:00+00:00",
            "completed_at": "2024-02-03T21:30:00+00:00",
            "updated_at": "2024-02-03T21:30:00+00:00",
            "reading_path": "Character-Focused Path",
            "current_phase": "Gateway Masterpieces",
        },
    }

    def _default_path(self) -> Path:
        return get_paths().progress_db

    def _backup_dir(self) -> Path | None:
        return get_paths().progress_backups

    def get(self, item_id: str) -> ProgressEntry | None:
        data = self.raw(item_id)
        if data is None:
            return None
        return ProgressEntry(item_id=item_id, data=data)

    def entries(self) -> list[ProgressEntry]:
        result = []
        for item_id in self:
            entry = self.get(item_id)
            if entry is not None:
                result.append(entry)
        return result

    def _get_or_create(self, item_id: str) -> dict[str, Any]:
        data = self.raw(item_id)
        if data is None:
            data = {}
            self.set(item_id, data)
        return data

    def mark_read(
        self,
        item_id: str,
        when: datetime | None = None,
        reading_path: str | None = None,
        current_phase: str | None = None,
    ) -> ProgressEntry:
        """Mark a book as read.

        completed_at is only stamped on the transition from unread to read,
        or when an explicit time is given.
        """
        data = self._get_or_create(item_id)
        now = datetime.now(timezone.utc)
        if not data.get("is_read") or when is not None:
            data["completed_at"] = format_timestamp(when or now)
        data["is_read"] = True
        if reading_path:
            data["reading_path"] = reading_path
        if current_phase:
            data["current_phase"] = current_phase
        data["updated_at"] = format_timestamp(now)
        return ProgressEntry(item_id=item_id, data=data)

    def mark_unread(self, item_id: str) -> ProgressEntry:
        """Mark a book as unread and clear its completion time."""
        data = self._get_or_create(item_id)
        data["is_read"] = False
        data["completed_at"] = None
        data["updated_at"] = format_timestamp(datetime.now(timezone.utc))
        return ProgressEntry(item_id=item_id, data=data)

    def stats(self) -> dict[str, Any]:
        entries = self.entries()
        read = sum(1 for e in entries if e.is_read)
        return {"total": len(entries), "read": read, "unread": len(entries) - read}


def slugify(text: str) -> str:
    """Lowercase, hyphen-separated id fragment."""
    slug = re.sub(r"[^a-z0-9]+", "-", text.lower()).strip("-")
    return slug or "path"


class ReadingPathDatabase(JsonDatabase):
    """Manages reading_paths_db.json, the curated reading path catalog.

    Keys are path ids; values hold book_type, name, description, order and
    an ordered list of phases, each with an ordered list of recommendations.
    """

    DEFAULT_META = {
        "_comment": "Curated reading paths. List order of phases and recommendations is reading order.",
        "_schema_version": "1.0",
        "_example": {
            "book_type": "COMIC",
            "name": "Character-Focused Path",
            "description": "Follow iconic characters through their essential storylines",
            "order": 1,
            "phases": [
                {
                    "id": "gateway",
                    "name": "Gateway Masterpieces",
                    "description": "Essential standalone stories",
                    "order": 1,
                    "recommendations": [
                        {
                            "title": "Batman: Year One",
                            "series": "Batman",
                            "author": "Frank Miller",
                            "issues": "#404-407",
                            "priority": 1,
                            "tier": "Must Read",
                            "reasoning": "The definitive origin story",
                        },
                    ],
                },
            ],
        },
    }

    def _default_path(self) -> Path:
        return get_paths().paths_db

    def _backup_dir(self) -> Path | None:
        return get_paths().paths_backups

    def items(self) -> Iterator[tuple[str, dict[str, Any]]]:
        """Iterate over (path_id, data) pairs."""
        for path_id in self:
            data = self.raw(path_id)
            if data is not None:
                yield path_id, data

    def ids_for_type(self, book_type: BookType) -> list[str]:
        return [
            path_id
            for path_id, data in self.items()
            if BookType.parse(data.get("book_type")) == book_type
        ]

    def replace_book_type(self, book_type: BookType, paths: list[dict[str, Any]]) -> list[str]:
        """Replace every path of a book type with new path dicts.

        Returns:
            The ids assigned to the new paths
        """
        for path_id in self.ids_for_type(book_type):
            self.delete(path_id)

        new_ids = []
        for data in paths:
            base = f"{book_type.value.lower().replace('_', '-')}-{slugify(str(data.get('name', '')))}"
            path_id = base
            counter = 2
            while path_id in self:
                path_id = f"{base}-{counter}"
                counter += 1
            stored = {k: v for k, v in data.items() if k != "id"}
            self.set(path_id, {**stored, "book_type": book_type.value})
            new_ids.append(path_id)
        return new_ids

    def stats(self) -> dict[str, Any]:
        by_type: dict[str, int] = {}
        recommendations = 0
        for _path_id, data in self.items():
            type_name = BookType.parse(data.get("book_type")).value
            by_type[type_name] = by_type.get(type_name, 0) + 1
            for phase in data.get("phases", []):
                recommendations += len(phase.get("recommendations", []))
        return {"total": len(self), "by_type": by_type, "recommendations": recommendations}
