"""
Reading path catalog models.

A reading path is an ordered list of phases; a phase is an ordered list of
recommended titles. List order is reading order.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from shelf.core.database import BookType, ReadingPathDatabase


def _int(value: Any, default: int = 0) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


@dataclass
class Recommendation:
    """A curated title in a reading phase."""

    title: str
    series: str | None = None
    author: str | None = None
    volumes: str | None = None
    issues: str | None = None
    priority: int = 0
    tier: str | None = None
    reasoning: str | None = None
    notes: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Recommendation:
        return cls(
            title=str(data.get("title", "")),
            series=_text(data.get("series")),
            author=_text(data.get("author")),
            volumes=_text(data.get("volumes")),
            issues=_text(data.get("issues")),
            priority=_int(data.get("priority")),
            tier=_text(data.get("tier")),
            reasoning=_text(data.get("reasoning")),
            notes=_text(data.get("notes")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "series": self.series,
            "author": self.author,
            "volumes": self.volumes,
            "issues": self.issues,
            "priority": self.priority,
            "tier": self.tier,
            "reasoning": self.reasoning,
            "notes": self.notes,
        }


@dataclass
class ReadingPhase:
    """An ordered group of recommendations."""

    id: str
    name: str
    description: str | None = None
    order: int = 0
    recommendations: list[Recommendation] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any], default_id: str, default_order: int) -> ReadingPhase:
        return cls(
            id=str(data.get("id") or default_id),
            name=str(data.get("name", "")),
            description=_text(data.get("description")),
            order=_int(data.get("order"), default_order),
            recommendations=[
                Recommendation.from_dict(rec) for rec in data.get("recommendations", [])
            ],
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "order": self.order,
            "recommendations": [rec.to_dict() for rec in self.recommendations],
        }


@dataclass
class ReadingPath:
    """A named, ordered sequence of reading phases for one book type."""

    id: str
    book_type: BookType
    name: str
    description: str | None = None
    order: int = 0
    phases: list[ReadingPhase] = field(default_factory=list)

    def __post_init__(self):
        # Phase ids are unique within a path
        seen: set[str] = set()
        for n, phase in enumerate(self.phases, 1):
            if phase.id in seen:
                phase.id = f"{self.id}-phase-{n}"
            seen.add(phase.id)

    @classmethod
    def from_dict(cls, path_id: str, data: dict[str, Any]) -> ReadingPath:
        """Build a path from its stored form.

        Phases without an id, or repeating an earlier phase's id, get
        '<path_id>-phase-<n>'.
        """
        phases = [
            ReadingPhase.from_dict(phase, default_id=f"{path_id}-phase-{n}", default_order=n)
            for n, phase in enumerate(data.get("phases", []), 1)
        ]
        return cls(
            id=path_id,
            book_type=BookType.parse(data.get("book_type")),
            name=str(data.get("name") or path_id),
            description=_text(data.get("description")),
            order=_int(data.get("order")),
            phases=phases,
        )

    @property
    def recommendation_count(self) -> int:
        return sum(len(phase.recommendations) for phase in self.phases)

    def get_phase(self, phase_id: str) -> ReadingPhase | None:
        for phase in self.phases:
            if phase.id == phase_id:
                return phase
        return None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON output and storage."""
        return {
            "id": self.id,
            "book_type": self.book_type.value,
            "name": self.name,
            "description": self.description,
            "order": self.order,
            "phases": [phase.to_dict() for phase in self.phases],
        }


def load_reading_paths(db: ReadingPathDatabase, book_type: BookType | None = None) -> list[ReadingPath]:
    """Read paths from the catalog, ordered by their 'order' field.

    Phases and recommendations stay in stored list order.
    """
    db.ensure_loaded()
    paths = [ReadingPath.from_dict(path_id, data) for path_id, data in db.items()]
    if book_type is not None:
        paths = [path for path in paths if path.book_type == book_type]
    return sorted(paths, key=lambda p: (p.order, p.name))


def get_reading_path(db: ReadingPathDatabase, path_id: str) -> ReadingPath | None:
    db.ensure_loaded()
    data = db.raw(path_id)
    if data is None:
        return None
    return ReadingPath.from_dict(path_id, data)
