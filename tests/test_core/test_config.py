"""Tests for shelf.core.config module.

Covers:
  - get_global_config_path() with default and XDG_CONFIG_HOME
  - load_global_config() with missing, valid, and invalid files
  - find_collection_root() 3-tier resolution (env var > local walk > global config)
  - get_paths() layout
"""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from shelf.core.config import (
    find_collection_root,
    get_global_config_path,
    get_paths,
    load_global_config,
)


class TestGetGlobalConfigPath:
    """Tests for get_global_config_path()."""

    def test_default_path(self, monkeypatch):
        """Without XDG_CONFIG_HOME, returns ~/.config/shelf/config.yaml."""
        monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)
        assert get_global_config_path() == Path.home() / ".config" / "shelf" / "config.yaml"

    def test_xdg_config_home(self, monkeypatch, tmp_path):
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "custom"))
        assert get_global_config_path() == tmp_path / "custom" / "shelf" / "config.yaml"


class TestLoadGlobalConfig:
    """Tests for load_global_config()."""

    def _write(self, tmp_path, text):
        config_dir = tmp_path / "shelf"
        config_dir.mkdir(parents=True)
        (config_dir / "config.yaml").write_text(text, encoding="utf-8")

    def test_missing_file_returns_empty(self, monkeypatch, tmp_path):
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "nonexistent"))
        assert load_global_config() == {}

    def test_valid_config(self, monkeypatch, tmp_path):
        self._write(tmp_path, yaml.dump({"collection_root": "/comics"}))
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
        assert load_global_config() == {"collection_root": "/comics"}

    def test_invalid_yaml_returns_empty(self, monkeypatch, tmp_path):
        self._write(tmp_path, "{{{{invalid yaml:::::")
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
        assert load_global_config() == {}

    def test_non_dict_yaml_returns_empty(self, monkeypatch, tmp_path):
        """A YAML list is not a config."""
        self._write(tmp_path, "- a\n- b\n")
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
        assert load_global_config() == {}


class TestFindCollectionRoot:
    """Tests for find_collection_root() resolution order."""

    @pytest.fixture(autouse=True)
    def isolate(self, monkeypatch, tmp_path):
        monkeypatch.delenv("SHELF_ROOT", raising=False)
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))

    def test_env_var_wins(self, monkeypatch, tmp_path):
        env_root = tmp_path / "env"
        (env_root / ".shelf").mkdir(parents=True)
        walk_root = tmp_path / "walk"
        (walk_root / ".shelf").mkdir(parents=True)
        monkeypatch.setenv("SHELF_ROOT", str(env_root))

        assert find_collection_root(walk_root) == env_root.resolve()

    def test_env_var_without_shelf_dir_raises(self, monkeypatch, tmp_path):
        monkeypatch.setenv("SHELF_ROOT", str(tmp_path))
        with pytest.raises(FileNotFoundError, match="SHELF_ROOT"):
            find_collection_root(tmp_path)

    def test_walks_up_from_subdirectory(self, tmp_path):
        (tmp_path / ".shelf").mkdir()
        nested = tmp_path / "manga" / "berserk"
        nested.mkdir(parents=True)

        assert find_collection_root(nested) == tmp_path.resolve()

    def test_falls_back_to_global_config(self, tmp_path):
        collection = tmp_path / "collection"
        (collection / ".shelf").mkdir(parents=True)
        config_dir = tmp_path / "xdg" / "shelf"
        config_dir.mkdir(parents=True)
        (config_dir / "config.yaml").write_text(
            yaml.dump({"collection_root": str(collection)}), encoding="utf-8"
        )
        elsewhere = tmp_path / "elsewhere"
        elsewhere.mkdir()

        assert find_collection_root(elsewhere) == collection.resolve()

    def test_nothing_found_raises_with_guidance(self, tmp_path):
        elsewhere = tmp_path / "elsewhere"
        elsewhere.mkdir()
        with pytest.raises(FileNotFoundError, match="shelf init"):
            find_collection_root(elsewhere)


class TestGetPaths:
    """Tests for get_paths()."""

    def test_layout(self, tmp_path):
        paths = get_paths(tmp_path)

        assert paths.root == tmp_path
        assert paths.shelf_dir == tmp_path / ".shelf"
        assert paths.books_db == tmp_path / ".shelf" / "books_db.json"
        assert paths.progress_db == tmp_path / ".shelf" / "progress_db.json"
        assert paths.paths_db == tmp_path / ".shelf" / "reading_paths_db.json"
        assert paths.config_file == tmp_path / ".shelf" / "config.yaml"
        assert paths.reading_orders == tmp_path / ".shelf" / "reading_orders"
        assert paths.progress_backups == tmp_path / ".shelf" / "backups" / "progress"

    def test_uses_cached_root(self, mock_collection_root):
        assert get_paths().root == mock_collection_root

    def test_paths_are_frozen(self, tmp_path):
        paths = get_paths(tmp_path)
        with pytest.raises(AttributeError):
            paths.root = Path("/elsewhere")
