"""Tests for shelf.insights.commands CLI module."""

import json

from unittest.mock import patch

from shelf.insights.commands import insights, insights_series, insights_stats, insights_summary
from shelf.insights.stats import ReadingStats


def test_insights_group_help(runner):
    result = runner.invoke(insights, ["--help"])
    assert result.exit_code == 0
    assert "series completion" in result.output


def test_summary_json(runner, sample_collection):
    result = runner.invoke(insights_summary, ["--json"])

    assert result.exit_code == 0
    data = json.loads(result.output)
    assert data["stats"]["total_books"] == 7
    assert data["incomplete_series"][0]["series"] == "Berserk"
    assert data["incomplete_series"][0]["missing_volumes"] == ["3"]


def test_summary_table(runner, sample_collection):
    result = runner.invoke(insights_summary, [])

    assert result.exit_code == 0
    assert "5 of 7 books read" in result.output
    assert "Berserk" in result.output


def test_summary_book_type(runner, sample_collection):
    result = runner.invoke(insights_summary, ["--book-type", "COMIC", "--json"])

    data = json.loads(result.output)
    assert data["stats"]["total_books"] == 3
    assert data["incomplete_series"] == []


def test_invalid_book_type_is_usage_error(runner, sample_collection):
    result = runner.invoke(insights_summary, ["--book-type", "NOVEL"])
    assert result.exit_code == 2


def test_series_incomplete_only(runner, sample_collection):
    result = runner.invoke(insights_series, ["--incomplete", "--json"])

    data = json.loads(result.output)
    assert data["complete_series"] == []
    assert [s["series"] for s in data["incomplete_series"]] == ["Berserk"]


def test_series_table(runner, sample_collection):
    result = runner.invoke(insights_series, [])

    assert result.exit_code == 0
    assert "Saga" in result.output
    assert "Total series: 3" in result.output


def test_series_empty(runner, mock_collection_root):
    result = runner.invoke(insights_series, [])
    assert "No series found" in result.output


def test_stats_json(runner, sample_collection):
    result = runner.invoke(insights_stats, ["--json"])

    data = json.loads(result.output)
    assert data["read_manga"] == 2
    assert data["recently_completed"][0]["id"] == "maus"


def test_stats_uses_analytics(runner):
    with patch("shelf.insights.CollectionAnalytics") as mock_cls:
        mock_cls.return_value.get_stats.return_value = ReadingStats(total_books=4, total_read=1)
        result = runner.invoke(insights_stats, ["--json"])

    assert result.exit_code == 0
    assert json.loads(result.output)["read_percentage"] == 25


def test_corrupt_database_aborts(runner, mock_collection_root):
    (mock_collection_root / ".shelf" / "progress_db.json").write_text("{oops")

    result = runner.invoke(insights_summary, [])

    assert result.exit_code == 1
    assert "Aborted" in result.output
