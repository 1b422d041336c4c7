"""
Insights module for collection statistics and series completeness.
"""

from shelf.insights.aggregator import (
    CollectionAnalytics,
    CollectionInsights,
    compute_collection_insights,
)
from shelf.insights.series import (
    SeriesBreakdown,
    SeriesInsight,
    SeriesItem,
    compute_series_insights,
)
from shelf.insights.stats import ReadingStats, compute_reading_stats
from shelf.insights.volumes import extract_volume_number, find_missing_volumes

__all__ = [
    "CollectionAnalytics",
    "CollectionInsights",
    "compute_collection_insights",
    "SeriesBreakdown",
    "SeriesInsight",
    "SeriesItem",
    "compute_series_insights",
    "ReadingStats",
    "compute_reading_stats",
    "extract_volume_number",
    "find_missing_volumes",
]
