"""
Backup and atomic JSON writes for the collection databases.

Every database save snapshots the previous file into a timestamped backup,
then rotates old snapshots by count and age.
"""

from __future__ import annotations

import contextlib
import json
import logging
import os
import re
import shutil
import tempfile
from dataclasses import dataclass
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

DEFAULT_KEEP_COUNT = 10
DEFAULT_KEEP_DAYS = 30
TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"
TIMESTAMP_PATTERN = re.compile(r"_(\d{8}_\d{6})\.")
BACKUP_NAME_PATTERN = re.compile(r"(.+)_\d{8}_\d{6}\.json$")


@dataclass
class BackupInfo:
    """A single backup snapshot on disk."""

    path: Path
    timestamp: datetime
    size_bytes: int
    db_name: str

    @property
    def age_days(self) -> float:
        return (datetime.now() - self.timestamp).total_seconds() / 86400

    @property
    def size_human(self) -> str:
        if self.size_bytes < 1024:
            return f"{self.size_bytes} B"
        if self.size_bytes < 1024 * 1024:
            return f"{self.size_bytes / 1024:.1f} KB"
        return f"{self.size_bytes / (1024 * 1024):.1f} MB"


def parse_backup_timestamp(filename: str) -> datetime | None:
    """Extract the timestamp from a name like 'books_db_20250112_144234.json'."""
    match = TIMESTAMP_PATTERN.search(filename)
    if not match:
        return None
    try:
        return datetime.strptime(match.group(1), TIMESTAMP_FORMAT)
    except ValueError:
        return None


def list_backups(backup_dir: Path, db_name: str | None = None) -> list[BackupInfo]:
    """List backups in a directory, newest first.

    Args:
        backup_dir: Directory containing backups
        db_name: Only include backups of this database (e.g. 'books_db')
    """
    backup_dir = Path(backup_dir)
    if not backup_dir.exists():
        return []

    pattern = f"{db_name}_*.json" if db_name else "*_[0-9]*_[0-9]*.json"
    backups = []
    for path in backup_dir.glob(pattern):
        timestamp = parse_backup_timestamp(path.name)
        if timestamp is None:
            continue
        name_match = BACKUP_NAME_PATTERN.match(path.name)
        backups.append(
            BackupInfo(
                path=path,
                timestamp=timestamp,
                size_bytes=path.stat().st_size,
                db_name=name_match.group(1) if name_match else "unknown",
            )
        )

    return sorted(backups, key=lambda b: b.timestamp, reverse=True)


def create_backup(file_path: Path, backup_dir: Path | None = None) -> Path:
    """Copy a file to a timestamped backup.

    Args:
        file_path: File to back up
        backup_dir: Target directory (defaults to file_path.parent / 'backups')

    Returns:
        Path to the created backup

    Raises:
        FileNotFoundError: If file_path doesn't exist
    """
    file_path = Path(file_path)
    if not file_path.exists():
        raise FileNotFoundError(f"Cannot backup non-existent file: {file_path}")

    backup_dir = Path(backup_dir) if backup_dir is not None else file_path.parent / "backups"
    backup_dir.mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now().strftime(TIMESTAMP_FORMAT)
    backup_path = backup_dir / f"{file_path.stem}_{timestamp}{file_path.suffix}"
    shutil.copy2(file_path, backup_path)
    logger.debug("Backed up %s to %s", file_path, backup_path)
    return backup_path


def _snapshot_time(path: Path) -> datetime:
    return parse_backup_timestamp(path.name) or datetime.fromtimestamp(path.stat().st_mtime)


def cleanup_old_backups(
    backup_dir: Path,
    pattern: str = "*_[0-9]*_[0-9]*.*",
    keep_last: int = DEFAULT_KEEP_COUNT,
    keep_days: int | None = None,
) -> list[Path]:
    """Remove old backups beyond the retention policy.

    A backup survives if it is among the newest keep_last OR younger than
    keep_days. With keep_days=None only the count applies.

    Returns:
        Removed backup paths
    """
    backup_dir = Path(backup_dir)
    if not backup_dir.exists():
        return []

    backups = sorted(backup_dir.glob(pattern), key=_snapshot_time, reverse=True)
    cutoff = datetime.now() - timedelta(days=keep_days) if keep_days is not None else None

    removed = []
    for backup in backups[keep_last:]:
        if cutoff is not None:
            timestamp = parse_backup_timestamp(backup.name)
            if timestamp is None or timestamp >= cutoff:
                continue
        backup.unlink()
        removed.append(backup)

    if removed:
        logger.debug("Removed %d old backups from %s", len(removed), backup_dir)
    return removed


def rollback_database(db_path: Path, backup_dir: Path, backup_index: int = 0) -> Path:
    """Restore a database from one of its backups.

    The current file is backed up first so a rollback can itself be undone.

    Args:
        db_path: Database file to restore
        backup_dir: Directory containing its backups
        backup_index: 0 = most recent, 1 = the one before, ...

    Returns:
        The backup that was restored

    Raises:
        FileNotFoundError: If no suitable backup exists
    """
    db_name = db_path.stem
    backups = list_backups(backup_dir, db_name)

    if not backups:
        raise FileNotFoundError(f"No backups found for {db_name}")
    if backup_index >= len(backups):
        raise FileNotFoundError(
            f"Backup index {backup_index} out of range (only {len(backups)} backups)"
        )

    backup = backups[backup_index]
    restored = backup.path.read_bytes()
    if db_path.exists():
        create_backup(db_path, backup_dir)
    db_path.write_bytes(restored)
    logger.debug("Restored %s from %s", db_path, backup.path)
    return backup.path


def safe_write_json(
    file_path: Path,
    data: dict[str, Any],
    create_backup_first: bool = True,
    backup_dir: Path | None = None,
    keep_backups: int = DEFAULT_KEEP_COUNT,
    keep_days: int | None = DEFAULT_KEEP_DAYS,
) -> Path | None:
    """Write JSON atomically, backing up the previous version.

    The data is serialized before anything touches disk, written to a temp
    file in the same directory, then moved over the original.

    Returns:
        Path to the backup if one was created

    Raises:
        ValueError: If data cannot be serialized to JSON
        OSError: If the write fails
    """
    file_path = Path(file_path)
    backup_path = None

    if create_backup_first and file_path.exists():
        backup_path = create_backup(file_path, backup_dir)
        cleanup_old_backups(
            backup_dir or (file_path.parent / "backups"),
            f"{file_path.stem}_*.json",
            keep_backups,
            keep_days,
        )

    try:
        json_str = json.dumps(data, indent=2, ensure_ascii=False)
    except (TypeError, ValueError) as e:
        raise ValueError(f"Cannot serialize data to JSON: {e}") from e

    file_path.parent.mkdir(parents=True, exist_ok=True)
    temp_fd, temp_path = tempfile.mkstemp(
        suffix=".json",
        prefix=f".{file_path.name}.",
        dir=file_path.parent,
        text=True,
    )
    try:
        with os.fdopen(temp_fd, "w", encoding="utf-8") as f:
            f.write(json_str)
            f.write("\n")
            f.flush()
            os.fsync(f.fileno())
        Path(temp_path).replace(file_path)
    except Exception as e:
        with contextlib.suppress(OSError):
            Path(temp_path).unlink()
        raise OSError(f"Failed to write {file_path}: {e}") from e

    return backup_path
