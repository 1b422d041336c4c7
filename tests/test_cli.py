"""Tests for the top-level shelf CLI."""

import json
import logging
from unittest.mock import patch

from shelf.cli import main


def test_help_lists_groups(runner):
    result = runner.invoke(main, ["--help"])

    assert result.exit_code == 0
    for name in ["insights", "recommendations", "progress", "backup", "config", "serve", "init"]:
        assert name in result.output


def test_init_creates_layout(runner, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)

    result = runner.invoke(main, ["init"])

    assert result.exit_code == 0
    shelf_dir = tmp_path / ".shelf"
    assert (shelf_dir / "reading_orders").is_dir()
    assert (shelf_dir / "backups" / "progress").is_dir()
    books = json.loads((shelf_dir / "books_db.json").read_text())
    assert "_schema_version" in books


def test_init_existing_needs_force(runner, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    (tmp_path / ".shelf").mkdir()

    result = runner.invoke(main, ["init"])

    assert "already exists" in result.output
    assert not (tmp_path / ".shelf" / "books_db.json").exists()


def test_init_force_keeps_existing_databases(runner, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    (tmp_path / ".shelf").mkdir()
    (tmp_path / ".shelf" / "books_db.json").write_text('{"maus": {"title": "Maus"}}')

    runner.invoke(main, ["init", "--force"])

    assert "maus" in json.loads((tmp_path / ".shelf" / "books_db.json").read_text())
    assert (tmp_path / ".shelf" / "progress_db.json").exists()


def test_verbose_enables_debug_logging(runner, sample_collection):
    with patch("shelf.cli.logging.basicConfig") as mock_config:
        result = runner.invoke(main, ["-v", "insights", "stats", "--json"])

    assert result.exit_code == 0
    assert mock_config.call_args.kwargs["level"] == logging.DEBUG
    assert json.loads(result.output)["total_books"] == 7


def test_serve_uses_configured_port(runner, sample_collection):
    (sample_collection / ".shelf" / "config.yaml").write_text("server:\n  port: 8765\n")

    with patch("uvicorn.run") as mock_run:
        result = runner.invoke(main, ["serve"])

    assert result.exit_code == 0
    _app, kwargs = mock_run.call_args
    assert kwargs == {"host": "127.0.0.1", "port": 8765}


def test_serve_port_option_wins(runner, sample_collection):
    with patch("uvicorn.run") as mock_run:
        runner.invoke(main, ["serve", "--host", "0.0.0.0", "--port", "9001"])

    assert mock_run.call_args.kwargs == {"host": "0.0.0.0", "port": 9001}
