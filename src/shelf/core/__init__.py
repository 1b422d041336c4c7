"""Core utilities for shelf."""

from shelf.core.backup import (
    DEFAULT_KEEP_COUNT,
    DEFAULT_KEEP_DAYS,
    BackupInfo,
    cleanup_old_backups,
    create_backup,
    list_backups,
    rollback_database,
    safe_write_json,
)
from shelf.core.config import CollectionPaths, get_collection_root, get_paths
from shelf.core.database import (
    BookDatabase,
    BookEntry,
    BookType,
    DatabaseError,
    ProgressDatabase,
    ProgressEntry,
    ReadingPathDatabase,
)

__all__ = [
    # Backup
    "create_backup",
    "safe_write_json",
    "cleanup_old_backups",
    "list_backups",
    "rollback_database",
    "BackupInfo",
    "DEFAULT_KEEP_COUNT",
    "DEFAULT_KEEP_DAYS",
    # Config
    "CollectionPaths",
    "get_collection_root",
    "get_paths",
    # Database
    "BookDatabase",
    "BookEntry",
    "BookType",
    "DatabaseError",
    "ProgressDatabase",
    "ProgressEntry",
    "ReadingPathDatabase",
]
