"""Tests for shelf.core.database module."""

import json
import pytest
from datetime import datetime, timezone

from shelf.core.database import (
    BookDatabase,
    BookEntry,
    BookType,
    DatabaseError,
    ProgressDatabase,
    ProgressEntry,
    ReadingPathDatabase,
    parse_timestamp,
    slugify,
)


class TestBookType:
    """Tests for BookType.parse."""

    def test_known_values(self):
        assert BookType.parse("MANGA") == BookType.MANGA
        assert BookType.parse("graphic_novel") == BookType.GRAPHIC_NOVEL

    def test_unknown_values_read_as_other(self):
        assert BookType.parse("NOVEL") == BookType.OTHER
        assert BookType.parse(None) == BookType.OTHER
        assert BookType.parse(3) == BookType.OTHER


class TestParseTimestamp:
    """Tests for parse_timestamp."""

    def test_zulu_suffix(self):
        assert parse_timestamp("2024-05-01T10:00:00Z") == datetime(
            2024, 5, 1, 10, tzinfo=timezone.utc
        )

    def test_naive_taken_as_utc(self):
        assert parse_timestamp("2024-05-01T10:00:00").tzinfo == timezone.utc

    def test_garbage_is_none(self):
        assert parse_timestamp("last tuesday") is None
        assert parse_timestamp("") is None
        assert parse_timestamp(None) is None


class TestBookEntry:
    """Tests for BookEntry accessors."""

    def test_series_name_is_stripped(self):
        book = BookEntry(id="b", data={"title": "x", "series": "  Berserk  "})
        assert book.series_name == "Berserk"

    def test_blank_series_is_none(self):
        assert BookEntry(id="b", data={"series": "   "}).series_name is None
        assert BookEntry(id="b", data={"series": None}).series_name is None

    def test_numeric_volume_becomes_text(self):
        assert BookEntry(id="b", data={"volume": 7}).volume == "7"

    def test_title_falls_back_to_id(self):
        assert BookEntry(id="berserk-1", data={}).title == "berserk-1"

    def test_to_dict(self):
        book = BookEntry(id="maus", data={"title": "Maus", "type": "GRAPHIC_NOVEL"})
        data = book.to_dict()
        assert data["id"] == "maus"
        assert data["type"] == "GRAPHIC_NOVEL"
        assert data["series"] is None


class TestJsonDatabase:
    """Loading and saving behavior shared by all databases."""

    def test_missing_file_loads_defaults(self, tmp_path):
        db = BookDatabase(tmp_path / "books_db.json", tmp_path / "backups")
        db.load()

        assert len(db) == 0
        assert "_comment" not in db
        assert "_comment" in db._data

    def test_invalid_json_raises(self, tmp_path):
        path = tmp_path / "books_db.json"
        path.write_text("{not json")

        with pytest.raises(DatabaseError, match="invalid JSON"):
            BookDatabase(path, tmp_path / "backups").load()

    def test_non_object_raises(self, tmp_path):
        path = tmp_path / "books_db.json"
        path.write_text("[1, 2, 3]")

        with pytest.raises(DatabaseError):
            BookDatabase(path, tmp_path / "backups").load()

    def test_special_keys_hidden(self, sample_collection):
        db = BookDatabase()
        db.load()

        assert "_comment" not in list(db)
        assert len(db) == 7

    def test_reserved_key_rejected(self, tmp_path):
        db = BookDatabase(tmp_path / "books_db.json", tmp_path / "backups")
        db.load()
        with pytest.raises(ValueError):
            db.set("_comment", {})

    def test_save_requires_load(self, tmp_path):
        with pytest.raises(RuntimeError):
            BookDatabase(tmp_path / "books_db.json", tmp_path / "backups").save()

    def test_save_backs_up_previous_version(self, sample_collection):
        db = ProgressDatabase()
        db.load()
        db.delete("maus")
        db.save()

        backups = list((sample_collection / ".shelf" / "backups" / "progress").glob("*.json"))
        assert len(backups) == 1
        assert "maus" in json.loads(backups[0].read_text())
        assert "maus" not in json.loads((sample_collection / ".shelf" / "progress_db.json").read_text())

    def test_delete_missing_returns_false(self, sample_collection):
        db = ProgressDatabase()
        db.load()
        assert db.delete("nope") is False
        assert db.delete("_comment") is False


class TestBookDatabase:
    """Tests for BookDatabase."""

    def test_get_and_entries(self, sample_collection):
        db = BookDatabase()
        db.load()

        assert db.get("maus").title == "Maus"
        assert db.get("nope") is None
        assert [b.id for b in db.entries()][:2] == ["berserk-1", "berserk-2"]

    def test_stats(self, sample_collection):
        db = BookDatabase()
        db.load()
        stats = db.stats()

        assert stats["total"] == 7
        assert stats["by_type"] == {"MANGA": 3, "GRAPHIC_NOVEL": 1, "COMIC": 3}
        assert stats["series_count"] == 3


class TestProgressDatabase:
    """Tests for ProgressDatabase."""

    def test_mark_read_stamps_completion(self, tmp_path):
        db = ProgressDatabase(tmp_path / "progress_db.json", tmp_path / "backups")
        db.load()

        entry = db.mark_read("maus")

        assert entry.is_read
        assert entry.completed_at is not None
        assert entry.updated_at is not None

    def test_mark_read_again_keeps_completion(self, tmp_path):
        db = ProgressDatabase(tmp_path / "progress_db.json", tmp_path / "backups")
        db.load()
        first = datetime(2024, 1, 1, tzinfo=timezone.utc)
        db.mark_read("maus", when=first)

        entry = db.mark_read("maus")

        assert entry.completed_at == first

    def test_explicit_time_overrides(self, tmp_path):
        db = ProgressDatabase(tmp_path / "progress_db.json", tmp_path / "backups")
        db.load()
        db.mark_read("maus", when=datetime(2024, 1, 1, tzinfo=timezone.utc))

        later = datetime(2024, 2, 1, tzinfo=timezone.utc)
        assert db.mark_read("maus", when=later).completed_at == later

    def test_mark_read_records_path(self, tmp_path):
        db = ProgressDatabase(tmp_path / "progress_db.json", tmp_path / "backups")
        db.load()

        entry = db.mark_read("maus", reading_path="Classics", current_phase="Gateway")

        assert entry.reading_path == "Classics"
        assert entry.current_phase == "Gateway"

    def test_mark_unread_clears_completion(self, sample_collection):
        db = ProgressDatabase()
        db.load()

        entry = db.mark_unread("maus")

        assert not entry.is_read
        assert entry.completed_at is None

    def test_one_entry_per_item(self, tmp_path):
        db = ProgressDatabase(tmp_path / "progress_db.json", tmp_path / "backups")
        db.load()
        db.mark_read("maus")
        db.mark_unread("maus")
        db.mark_read("maus")

        assert len(db) == 1

    def test_unparseable_timestamp_reads_as_none(self):
        entry = ProgressEntry(item_id="x", data={"is_read": True, "completed_at": "soon"})
        assert entry.completed_at is None

    def test_stats(self, sample_collection):
        db = ProgressDatabase()
        db.load()
        assert db.stats() == {"total": 6, "read": 5, "unread": 1}


class TestReadingPathDatabase:
    """Tests for ReadingPathDatabase."""

    def test_ids_for_type(self, sample_collection):
        db = ReadingPathDatabase()
        db.load()
        assert db.ids_for_type(BookType.MANGA) == ["manga-essentials"]

    def test_replace_book_type(self, sample_collection):
        db = ReadingPathDatabase()
        db.load()

        ids = db.replace_book_type(
            BookType.MANGA,
            [
                {"id": "ignored", "name": "Seinen Classics", "phases": []},
                {"name": "Seinen Classics", "phases": []},
            ],
        )

        assert ids == ["manga-seinen-classics", "manga-seinen-classics-2"]
        assert "manga-essentials" not in db
        assert "comic-character-focused" in db
        stored = db.raw("manga-seinen-classics")
        assert stored["book_type"] == "MANGA"
        assert "id" not in stored

    def test_stats(self, sample_collection):
        db = ReadingPathDatabase()
        db.load()
        stats = db.stats()

        assert stats["total"] == 2
        assert stats["recommendations"] == 4


def test_slugify():
    assert slugify("Character-Focused Path!") == "character-focused-path"
    assert slugify("???") == "path"
