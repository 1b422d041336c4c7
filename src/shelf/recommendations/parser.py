"""
Reading order markdown parser.

Turns a curated reading-order document into reading paths:

    ### Option 1: Character-Focused Reading      <- starts a path
    ## Phase 1: Gateway Masterpieces             <- starts a phase
    Essential standalone stories.                <- phase description
    **1. Batman: Year One**                      <- recommendation
    - Issues: #404-407
    - Why: The definitive origin story
    **Berserk** (1-14 volumes)                   <- recommendation with volumes
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

from shelf.core.database import BookType, ReadingPathDatabase, slugify
from shelf.recommendations.models import ReadingPath, ReadingPhase, Recommendation

logger = logging.getLogger(__name__)

PHASE_PATTERN = re.compile(r"^##\s+Phase\s+(\d+):\s+(.+)$", re.IGNORECASE)
PATH_PATTERN = re.compile(
    r"^###\s+(?:Option\s+\d+:|Reading\s+Order\s+Strategy)\s*(.+)$", re.IGNORECASE
)
RECOMMENDATION_PATTERN = re.compile(
    r"^\*\*(\d+\.\s+)?(.+?)\*\*(?:\s+\((\d+(?:-\d+)?)\s+volumes?\))?", re.IGNORECASE
)
ISSUES_PATTERN = re.compile(r"^-?\s*Issues:\s*", re.IGNORECASE)
WHY_PATTERN = re.compile(r"^-?\s*Why:\s*", re.IGNORECASE)
ABOUT_PATTERN = re.compile(r"^-\s*About:\s*", re.IGNORECASE)

# How many lines after a recommendation may carry its details
DETAIL_LOOKAHEAD = 9

READING_ORDER_FILES = {
    BookType.COMIC: "COMIC_READING_ORDER.md",
    BookType.GRAPHIC_NOVEL: "COMIC_READING_ORDER.md",
    BookType.MANGA: "MANGA_READING_ORDER.md",
}


def reading_order_file(book_type: BookType, directory: Path) -> Path:
    """Markdown file that holds the reading order for a book type.

    Graphic novels share the comic reading order.

    Raises:
        ValueError: If the book type has no reading order file
    """
    filename = READING_ORDER_FILES.get(book_type)
    if filename is None:
        raise ValueError(f"No reading order file for book type: {book_type.value}")
    return Path(directory) / filename


def default_path_name(book_type: BookType) -> str:
    if book_type == BookType.MANGA:
        return "Recommended Reading Order"
    return "Classic Reading Order"


def _recommendation_details(lines: list[str], start: int) -> tuple[str | None, str | None]:
    """Scan the lines after a recommendation for Issues/Why/About.

    Returns:
        (issues, reasoning)
    """
    issues = None
    reasoning = None
    for line in lines[start : start + DETAIL_LOOKAHEAD]:
        line = line.strip()
        if line.startswith("#") or line.startswith("**"):
            break
        if ISSUES_PATTERN.match(line):
            issues = ISSUES_PATTERN.sub("", line).strip() or None
        elif WHY_PATTERN.match(line):
            reasoning = WHY_PATTERN.sub("", line).strip() or None
        elif ABOUT_PATTERN.match(line):
            reasoning = ABOUT_PATTERN.sub("", line).strip() or None
    return issues, reasoning


def parse_reading_order(text: str, book_type: BookType) -> list[ReadingPath]:
    """Parse a reading-order document into paths.

    Phases that appear before any path heading go into a default path.
    A phase's description is the first plain line before its first
    recommendation.
    """
    lines = text.splitlines()
    paths: list[ReadingPath] = []
    current_path: ReadingPath | None = None
    current_phase: ReadingPhase | None = None

    def open_path(name: str, description: str | None = None) -> ReadingPath:
        path = ReadingPath(
            id=f"{book_type.value.lower().replace('_', '-')}-{slugify(name)}",
            book_type=book_type,
            name=name,
            description=description,
            order=len(paths) + 1,
        )
        paths.append(path)
        return path

    for index, raw_line in enumerate(lines):
        line = raw_line.strip()

        path_match = PATH_PATTERN.match(line)
        if path_match:
            current_path = open_path(path_match.group(1).strip())
            current_phase = None
            continue

        phase_match = PHASE_PATTERN.match(line)
        if phase_match:
            if current_path is None:
                current_path = open_path(
                    default_path_name(book_type),
                    f"Recommended reading order for {book_type.value.lower()} collection",
                )
            order = len(current_path.phases) + 1
            current_phase = ReadingPhase(
                id=f"phase-{order}",
                name=phase_match.group(2).strip(),
                order=order,
            )
            current_path.phases.append(current_phase)
            continue

        if current_phase is None:
            continue

        rec_match = RECOMMENDATION_PATTERN.match(line)
        if rec_match:
            issues, reasoning = _recommendation_details(lines, index + 1)
            current_phase.recommendations.append(
                Recommendation(
                    title=rec_match.group(2).strip(),
                    volumes=rec_match.group(3),
                    issues=issues,
                    priority=len(current_phase.recommendations) + 1,
                    reasoning=reasoning,
                )
            )
            continue

        if (
            line
            and not line.startswith("#")
            and current_phase.description is None
            and not current_phase.recommendations
        ):
            current_phase.description = line

    logger.debug(
        "Parsed %d paths (%d recommendations) for %s",
        len(paths),
        sum(p.recommendation_count for p in paths),
        book_type.value,
    )
    return paths


def parse_reading_order_file(file_path: Path, book_type: BookType) -> list[ReadingPath]:
    """Read and parse a reading-order markdown file."""
    text = Path(file_path).read_text(encoding="utf-8")
    return parse_reading_order(text, book_type)


@dataclass
class ImportedOrder:
    """Reading paths parsed from one reading order file."""

    book_type: BookType
    source: Path
    paths: list[ReadingPath]

    @property
    def phase_count(self) -> int:
        return sum(len(p.phases) for p in self.paths)

    @property
    def recommendation_count(self) -> int:
        return sum(p.recommendation_count for p in self.paths)


def reading_order_sources(
    directory: Path, book_types: Iterable[BookType]
) -> list[tuple[BookType, Path]]:
    """Reading order files present in a directory, paired with their book type."""
    sources = []
    for book_type in book_types:
        source = reading_order_file(book_type, directory)
        if source.exists():
            sources.append((book_type, source))
    return sources


def import_reading_orders(
    db: ReadingPathDatabase,
    sources: Iterable[tuple[BookType, Path]],
    dry_run: bool = False,
) -> list[ImportedOrder]:
    """Parse reading order files and replace each book type's stored paths.

    The database is modified in memory only; the caller saves it.
    """
    imported = []
    for book_type, source in sources:
        paths = parse_reading_order_file(source, book_type)
        if not dry_run:
            db.replace_book_type(book_type, [p.to_dict() for p in paths])
        imported.append(ImportedOrder(book_type=book_type, source=Path(source), paths=paths))
    return imported
