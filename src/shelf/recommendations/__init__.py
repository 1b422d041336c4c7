"""
Recommendations module: curated reading paths and progress through them.
"""

from shelf.recommendations.matcher import (
    MatchResult,
    MatchType,
    OwnedItem,
    build_owned_items,
    match_recommendation,
)
from shelf.recommendations.models import (
    ReadingPath,
    ReadingPhase,
    Recommendation,
    get_reading_path,
    load_reading_paths,
)
from shelf.recommendations.progress import (
    NextToRead,
    PathProgress,
    PhaseProgress,
    compute_path_progress,
)

__all__ = [
    "MatchResult",
    "MatchType",
    "OwnedItem",
    "build_owned_items",
    "match_recommendation",
    "ReadingPath",
    "ReadingPhase",
    "Recommendation",
    "get_reading_path",
    "load_reading_paths",
    "NextToRead",
    "PathProgress",
    "PhaseProgress",
    "compute_path_progress",
]
