"""
Reading path progress.

Runs every recommendation of a path through the matcher to count what is
owned and read per phase, and to find the next owned book to read.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from shelf.insights.stats import percentage
from shelf.recommendations.matcher import MatchResult, OwnedItem, match_recommendation
from shelf.recommendations.models import ReadingPath, ReadingPhase, Recommendation


@dataclass
class PhaseProgress:
    """Counts for one phase."""

    total: int = 0
    owned: int = 0
    read: int = 0

    @property
    def completion_percentage(self) -> int:
        return percentage(self.read, self.total)

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "owned": self.owned,
            "read": self.read,
            "completion_percentage": self.completion_percentage,
        }


@dataclass
class NextToRead:
    """The first owned-but-unread recommendation in reading order."""

    recommendation: Recommendation
    phase: ReadingPhase
    match: MatchResult

    def to_dict(self) -> dict[str, Any]:
        return {
            "recommendation": self.recommendation.to_dict(),
            "phase": {"id": self.phase.id, "name": self.phase.name, "order": self.phase.order},
            "match": self.match.to_dict(),
        }


@dataclass
class PathProgress:
    """Progress through one reading path."""

    path: ReadingPath
    phase_progress: dict[str, PhaseProgress] = field(default_factory=dict)
    matches: dict[str, list[MatchResult]] = field(default_factory=dict)
    next_to_read: NextToRead | None = None

    @property
    def total(self) -> int:
        return sum(p.total for p in self.phase_progress.values())

    @property
    def owned(self) -> int:
        return sum(p.owned for p in self.phase_progress.values())

    @property
    def read(self) -> int:
        return sum(p.read for p in self.phase_progress.values())

    @property
    def completion_percentage(self) -> int:
        return percentage(self.read, self.total)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON output."""
        return {
            "path_id": self.path.id,
            "path_name": self.path.name,
            "total": self.total,
            "owned": self.owned,
            "read": self.read,
            "completion_percentage": self.completion_percentage,
            "phase_progress": {
                phase_id: progress.to_dict() for phase_id, progress in self.phase_progress.items()
            },
            "matches": {
                phase_id: [m.to_dict() for m in results] for phase_id, results in self.matches.items()
            },
            "next_to_read": self.next_to_read.to_dict() if self.next_to_read else None,
        }


def compute_path_progress(path: ReadingPath, owned_items: Sequence[OwnedItem]) -> PathProgress:
    """Match a path against the collection.

    next_to_read follows phase order, then recommendation order within the
    phase. The priority field is not consulted.
    """
    result = PathProgress(path=path)

    for phase in path.phases:
        counts = PhaseProgress(total=len(phase.recommendations))
        phase_matches = []

        for recommendation in phase.recommendations:
            match = match_recommendation(recommendation, owned_items)
            phase_matches.append(match)
            if not match.owned:
                continue
            counts.owned += 1
            if match.is_read:
                counts.read += 1
            elif result.next_to_read is None:
                result.next_to_read = NextToRead(
                    recommendation=recommendation, phase=phase, match=match
                )

        result.phase_progress[phase.id] = counts
        result.matches[phase.id] = phase_matches

    return result
