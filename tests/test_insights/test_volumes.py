"""Tests for shelf.insights.volumes module."""

import pytest

from shelf.insights.volumes import extract_volume_number, find_missing_volumes


@pytest.mark.parametrize(
    "label,expected",
    [
        ("1", 1),
        ("Vol. 07", 7),
        ("#12", 12),
        ("1-3", 1),
        ("Volume 10 (Deluxe)", 10),
        ("Special Edition", None),
        ("", None),
        (None, None),
    ],
)
def test_extract_volume_number(label, expected):
    assert extract_volume_number(label) == expected


def test_extract_volume_number_ignores_non_text():
    assert extract_volume_number(5) is None
    assert extract_volume_number(["1"]) is None


class TestFindMissingVolumes:
    """Tests for find_missing_volumes."""

    def test_gap_in_middle(self):
        assert find_missing_volumes([1, 2, 4]) == ["3"]

    def test_no_gaps(self):
        assert find_missing_volumes([1, 2, 3]) == []

    def test_empty(self):
        assert find_missing_volumes([]) == []

    def test_single_volume(self):
        assert find_missing_volumes([5]) == []

    def test_unordered_with_duplicates(self):
        assert find_missing_volumes([5, 1, 1, 3]) == ["2", "4"]

    def test_range_starts_at_lowest_owned(self):
        # Volumes before the first owned one are not reported
        assert find_missing_volumes([3, 5]) == ["4"]

    def test_accepts_generators(self):
        assert find_missing_volumes(v for v in (10, 12)) == ["11"]

    def test_catalog_numbers_ignored(self):
        assert find_missing_volumes([1, 9781234567890, 3]) == ["2"]
        assert find_missing_volumes([9781234567890]) == []
