"""
Configuration and path management.

Provides collection root detection and standard paths for shelf data.
Uses a .shelf/ directory for databases, reading orders and backups.

Resolution order for the collection root:
  1. SHELF_ROOT environment variable (highest priority)
  2. Walk up from cwd looking for .shelf/ directory
  3. Global config file (~/.config/shelf/config.yaml) collection_root key
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

import yaml


@dataclass(frozen=True)
class CollectionPaths:
    """Standard paths for a shelf collection."""

    root: Path
    shelf_dir: Path

    # Databases (in .shelf/)
    books_db: Path
    progress_db: Path
    paths_db: Path
    config_file: Path

    # Reading order markdown sources
    reading_orders: Path

    # Backup directories (in .shelf/)
    books_backups: Path
    progress_backups: Path
    paths_backups: Path


def get_global_config_path() -> Path:
    """Return the path to the global shelf config file.

    Respects XDG_CONFIG_HOME if set, otherwise defaults to ~/.config/shelf/config.yaml.
    """
    xdg_config_home = os.environ.get("XDG_CONFIG_HOME")
    if xdg_config_home:
        base = Path(xdg_config_home)
    else:
        base = Path.home() / ".config"
    return base / "shelf" / "config.yaml"


def load_global_config() -> dict:
    """Load the global shelf configuration.

    Returns:
        Configuration dict, or empty dict if file is missing or invalid.
    """
    config_path = get_global_config_path()
    if not config_path.is_file():
        return {}
    try:
        text = config_path.read_text(encoding="utf-8")
        data = yaml.safe_load(text)
        if isinstance(data, dict):
            return data
        return {}
    except (OSError, yaml.YAMLError):
        return {}


def _walk_up_for_shelf(start_path: Path) -> Path | None:
    """Walk up directory tree looking for a .shelf/ directory."""
    current = start_path.resolve()
    while current != current.parent:
        if (current / ".shelf").is_dir():
            return current
        current = current.parent
    return None


def find_collection_root(start_path: Path | None = None) -> Path:
    """Find the collection root using 3-tier resolution.

    Resolution order:
      1. SHELF_ROOT environment variable (highest priority)
      2. Walk up from start_path (or cwd) looking for .shelf/ directory
      3. Global config file collection_root key

    Args:
        start_path: Starting path for .shelf/ directory walk (defaults to cwd)

    Returns:
        Path to collection root

    Raises:
        FileNotFoundError: If .shelf/ directory not found by any method
    """
    env_root = os.environ.get("SHELF_ROOT")
    if env_root:
        env_path = Path(env_root).resolve()
        if (env_path / ".shelf").is_dir():
            return env_path
        raise FileNotFoundError(
            f"SHELF_ROOT={env_root} does not contain a .shelf/ directory."
        )

    if start_path is None:
        start_path = Path.cwd()
    result = _walk_up_for_shelf(Path(start_path))
    if result is not None:
        return result

    global_config = load_global_config()
    root_str = global_config.get("collection_root")
    if root_str:
        global_path = Path(root_str).expanduser().resolve()
        if (global_path / ".shelf").is_dir():
            return global_path
        raise FileNotFoundError(
            f"Global config collection_root={root_str} does not contain a .shelf/ directory."
        )

    raise FileNotFoundError(
        f"Could not find .shelf/ directory starting from {start_path}. "
        f"Run 'shelf init' to initialize, set SHELF_ROOT, or configure "
        f"collection_root in {get_global_config_path()}."
    )


@lru_cache(maxsize=1)
def get_collection_root() -> Path:
    """Get the cached collection root path."""
    return find_collection_root()


def get_paths(root: Path | None = None) -> CollectionPaths:
    """Get all standard paths for the collection.

    Args:
        root: Collection root path (uses cached default if not provided)

    Returns:
        CollectionPaths dataclass with all paths
    """
    if root is None:
        root = get_collection_root()

    root = Path(root)
    shelf_dir = root / ".shelf"

    return CollectionPaths(
        root=root,
        shelf_dir=shelf_dir,
        books_db=shelf_dir / "books_db.json",
        progress_db=shelf_dir / "progress_db.json",
        paths_db=shelf_dir / "reading_paths_db.json",
        config_file=shelf_dir / "config.yaml",
        reading_orders=shelf_dir / "reading_orders",
        books_backups=shelf_dir / "backups" / "books",
        progress_backups=shelf_dir / "backups" / "progress",
        paths_backups=shelf_dir / "backups" / "reading_paths",
    )
