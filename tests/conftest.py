"""Shared test fixtures for shelf package."""

import json
import pytest
from click.testing import CliRunner


SAMPLE_BOOKS = {
    "_comment": "Test books",
    "_schema_version": "1.0",
    "berserk-1": {
        "title": "Berserk Vol. 1",
        "series": "Berserk",
        "volume": "1",
        "type": "MANGA",
        "created_at": "2024-01-01T12:00:00Z",
    },
    "berserk-2": {
        "title": "Berserk Vol. 2",
        "series": "Berserk",
        "volume": "2",
        "type": "MANGA",
        "created_at": "2024-01-02T12:00:00Z",
    },
    "berserk-4": {
        "title": "Berserk Vol. 4",
        "series": "Berserk",
        "volume": "Vol. 4",
        "type": "MANGA",
        "created_at": "2024-01-04T12:00:00Z",
    },
    "maus": {
        "title": "Maus",
        "type": "GRAPHIC_NOVEL",
        "cover_url": "https://example.com/maus.jpg",
        "created_at": "2024-02-01T12:00:00Z",
    },
    "batman-hush": {
        "title": "Batman: Hush",
        "series": "Batman",
        "volume": "2",
        "type": "COMIC",
        "created_at": "2024-03-01T12:00:00Z",
    },
    "saga-1": {
        "title": "Saga Vol. 1",
        "series": "Saga",
        "volume": "1",
        "type": "COMIC",
    },
    "saga-2": {
        "title": "Saga Vol. 2",
        "series": "Saga",
        "volume": "2",
        "type": "COMIC",
    },
}

SAMPLE_PROGRESS = {
    "_comment": "Test progress",
    "berserk-1": {"is_read": True, "completed_at": "2024-05-01T10:00:00Z"},
    "berserk-2": {"is_read": True, "completed_at": "2024-05-02T10:00:00Z"},
    "maus": {"is_read": True, "completed_at": "2024-06-01T10:00:00Z"},
    "saga-1": {"is_read": True, "completed_at": "2024-04-01T10:00:00Z"},
    "saga-2": {"is_read": True, "completed_at": "2024-04-02T10:00:00Z"},
    "batman-hush": {"is_read": False, "started_at": "2024-06-10T10:00:00Z"},
}

SAMPLE_PATHS = {
    "_comment": "Test reading paths",
    "comic-character-focused": {
        "book_type": "COMIC",
        "name": "Character-Focused Path",
        "description": "Iconic characters",
        "order": 1,
        "phases": [
            {
                "id": "gateway",
                "name": "Gateway",
                "order": 1,
                "recommendations": [
                    {"title": "Batman: Year One", "series": "Batman", "volumes": "1", "priority": 2},
                    {"title": "Saga", "priority": 1},
                ],
            },
            {
                "id": "deep",
                "name": "Deep Cuts",
                "order": 2,
                "recommendations": [{"title": "Watchmen", "priority": 1}],
            },
        ],
    },
    "manga-essentials": {
        "book_type": "MANGA",
        "name": "Manga Essentials",
        "order": 1,
        "phases": [
            {
                "id": "seinen",
                "name": "Seinen",
                "recommendations": [
                    {"title": "Berserk", "series": "Berserk", "volumes": "1-3", "priority": 1},
                ],
            },
        ],
    },
}


@pytest.fixture
def runner():
    """Create a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def sample_json_file(tmp_path):
    """Create a sample JSON file for testing."""
    data = {"key": "value", "number": 42}
    file_path = tmp_path / "sample.json"
    file_path.write_text(json.dumps(data))
    return file_path


@pytest.fixture
def mock_collection_root(tmp_path, monkeypatch):
    """Create a mock collection with an empty .shelf/ directory."""
    shelf_dir = tmp_path / ".shelf"
    shelf_dir.mkdir()
    (shelf_dir / "reading_orders").mkdir()
    (shelf_dir / "backups" / "books").mkdir(parents=True)
    (shelf_dir / "backups" / "progress").mkdir(parents=True)
    (shelf_dir / "backups" / "reading_paths").mkdir(parents=True)

    # Mock get_collection_root to return our tmp_path
    from shelf.core import config
    # Clear the lru_cache first
    config.get_collection_root.cache_clear()
    monkeypatch.setattr(config, "get_collection_root", lambda: tmp_path)

    return tmp_path


@pytest.fixture
def sample_collection(mock_collection_root):
    """Mock collection populated with books, progress and reading paths."""
    shelf_dir = mock_collection_root / ".shelf"
    (shelf_dir / "books_db.json").write_text(json.dumps(SAMPLE_BOOKS, indent=2))
    (shelf_dir / "progress_db.json").write_text(json.dumps(SAMPLE_PROGRESS, indent=2))
    (shelf_dir / "reading_paths_db.json").write_text(json.dumps(SAMPLE_PATHS, indent=2))
    return mock_collection_root
