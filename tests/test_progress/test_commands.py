"""Tests for shelf.progress.commands CLI module."""

import json

from shelf.core.database import ProgressDatabase
from shelf.progress.commands import (
    progress,
    progress_delete,
    progress_list,
    progress_mark_read,
    progress_mark_unread,
    progress_show,
)


def _progress_file(root):
    return json.loads((root / ".shelf" / "progress_db.json").read_text())


def test_progress_group_help(runner):
    result = runner.invoke(progress, ["--help"])
    assert result.exit_code == 0
    assert "mark-read" in result.output


def test_list_json_includes_items(runner, sample_collection):
    result = runner.invoke(progress_list, ["--json"])

    data = json.loads(result.output)
    assert len(data) == 6
    maus = next(row for row in data if row["item_id"] == "maus")
    assert maus["item"]["title"] == "Maus"


def test_list_unread(runner, sample_collection):
    result = runner.invoke(progress_list, ["--unread", "--json"])
    assert [row["item_id"] for row in json.loads(result.output)] == ["batman-hush"]


def test_list_table(runner, sample_collection):
    result = runner.invoke(progress_list, [])
    assert result.exit_code == 0
    assert "Total: 6" in result.output


def test_show(runner, sample_collection):
    result = runner.invoke(progress_show, ["maus"])

    assert result.exit_code == 0
    assert "Maus" in result.output
    assert "2024-06-01" in result.output


def test_show_unknown(runner, sample_collection):
    result = runner.invoke(progress_show, ["nope"])
    assert "No reading progress" in result.output


def test_mark_read(runner, sample_collection):
    result = runner.invoke(progress_mark_read, ["batman-hush", "--at", "2024-07-01"])

    assert result.exit_code == 0
    entry = _progress_file(sample_collection)["batman-hush"]
    assert entry["is_read"] is True
    assert entry["completed_at"].startswith("2024-07-01")


def test_mark_read_multiple_with_path(runner, sample_collection):
    runner.invoke(progress_mark_read, ["berserk-4", "saga-1", "--path", "Seinen", "--phase", "Start"])

    db = ProgressDatabase()
    db.load()
    assert db.get("berserk-4").is_read
    assert db.get("berserk-4").reading_path == "Seinen"
    assert db.get("berserk-4").current_phase == "Start"
    # Already read: keeps its original completion time
    assert db.get("saga-1").completed_at.isoformat() == "2024-04-01T10:00:00+00:00"


def test_mark_read_unknown_item(runner, sample_collection):
    result = runner.invoke(progress_mark_read, ["nope"])

    assert "Not in collection" in result.output
    assert "nope" not in _progress_file(sample_collection)


def test_mark_unread(runner, sample_collection):
    runner.invoke(progress_mark_unread, ["maus"])

    entry = _progress_file(sample_collection)["maus"]
    assert entry["is_read"] is False
    assert entry["completed_at"] is None


def test_delete(runner, sample_collection):
    result = runner.invoke(progress_delete, ["maus", "--force"])

    assert result.exit_code == 0
    assert "maus" not in _progress_file(sample_collection)
    backups = list((sample_collection / ".shelf" / "backups" / "progress").glob("*.json"))
    assert len(backups) == 1


def test_delete_cancelled(runner, sample_collection):
    result = runner.invoke(progress_delete, ["maus"], input="n\n")

    assert "Cancelled" in result.output
    assert "maus" in _progress_file(sample_collection)


def test_delete_unknown(runner, sample_collection):
    result = runner.invoke(progress_delete, ["nope", "--force"])
    assert "No reading progress" in result.output
