"""
Web server for shelf reading insights.

Provides a REST API over the collection: reading statistics, series
completion, reading paths and reading progress. The only write is
re-importing the reading order markdown.
"""

import logging
import re
from pathlib import Path
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from shelf.config.commands import get_setting
from shelf.core.config import CollectionPaths, get_paths
from shelf.core.database import (
    TRACKED_BOOK_TYPES,
    BookDatabase,
    BookType,
    DatabaseError,
    ProgressDatabase,
    ReadingPathDatabase,
)
from shelf.insights import CollectionAnalytics
from shelf.recommendations import (
    build_owned_items,
    compute_path_progress,
    get_reading_path,
    load_reading_paths,
)
from shelf.recommendations.cache import recommendation_cache
from shelf.recommendations.parser import import_reading_orders, reading_order_sources

logger = logging.getLogger(__name__)

_SNAKE_KEY = re.compile(r"^[a-z][a-z0-9]*(?:_[a-z0-9]+)+$")

# Maps keyed by phase id or book type; their keys are data, not field names
ID_KEYED_FIELDS = frozenset({"phase_progress", "matches", "by_type"})


# Pydantic models for API
class InsightsResponse(BaseModel):
    success: bool
    insights: Dict[str, Any]


class RecommendationsResponse(BaseModel):
    success: bool
    paths: List[Dict[str, Any]]
    count: int
    cached: bool


class ParseResponse(BaseModel):
    success: bool
    message: str
    stats: Dict[str, int]


class PathProgressResponse(BaseModel):
    success: bool
    progress: Dict[str, Any]


class ReadingProgressListResponse(BaseModel):
    success: bool
    progress: List[Dict[str, Any]]


class ReadingProgressResponse(BaseModel):
    success: bool
    progress: Dict[str, Any]


def camelize(value: Any, keep_keys: bool = False) -> Any:
    """Convert snake_case dict keys to camelCase, recursively.

    Keys that are not lowercase snake_case (ids, book type names) are kept,
    as are the keys of the maps named in ID_KEYED_FIELDS.
    """
    if isinstance(value, dict):
        return {
            (k if keep_keys else _camel_key(k)): camelize(
                v, keep_keys=not keep_keys and k in ID_KEYED_FIELDS
            )
            for k, v in value.items()
        }
    if isinstance(value, list):
        return [camelize(v) for v in value]
    return value


def _camel_key(key: Any) -> Any:
    if not isinstance(key, str) or not _SNAKE_KEY.match(key):
        return key
    head, *rest = key.split("_")
    return head + "".join(part.capitalize() for part in rest)


# Collection the app serves
_root: Optional[Path] = None


def get_collection_paths() -> CollectionPaths:
    """Paths of the served collection."""
    return get_paths(_root)


def init_collection(root: Optional[Path]) -> None:
    """Point the app at a collection and reset the catalog cache."""
    global _root
    _root = Path(root) if root is not None else None
    recommendation_cache.clear_all()
    recommendation_cache.set_ttl(get_setting("recommendations.cache_ttl_minutes", root=_root))
    logger.debug("Serving collection at %s", get_collection_paths().root)


def create_app(root: Optional[Path] = None) -> FastAPI:
    """Create FastAPI application serving the given collection."""
    init_collection(root)
    return app


def parse_book_type(value: Optional[str]) -> Optional[BookType]:
    """Validate a bookType query parameter.

    Raises:
        HTTPException: 400 for anything but COMIC, MANGA or GRAPHIC_NOVEL
    """
    if value is None or value == "":
        return None
    for book_type in TRACKED_BOOK_TYPES:
        if value == book_type.value:
            return book_type
    raise HTTPException(
        status_code=400,
        detail="Invalid book type. Must be COMIC, MANGA, or GRAPHIC_NOVEL",
    )


def _catalog() -> ReadingPathDatabase:
    paths = get_collection_paths()
    db = ReadingPathDatabase(paths.paths_db, paths.paths_backups)
    db.load()
    return db


def _catalog_version() -> int:
    db_path = get_collection_paths().paths_db
    return db_path.stat().st_mtime_ns if db_path.exists() else 0


def _analytics() -> CollectionAnalytics:
    return CollectionAnalytics(get_collection_paths().root)


# Create FastAPI app
app = FastAPI(
    title="shelf",
    description="Reading insights and curated reading paths for a book collection",
    version="1.0.0",
)

# Enable CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(HTTPException)
async def http_error(request: Request, exc: HTTPException):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})


@app.exception_handler(DatabaseError)
async def database_error(request: Request, exc: DatabaseError):
    logger.error("Database error on %s: %s", request.url.path, exc)
    return JSONResponse(status_code=500, content={"error": "Database error", "details": str(exc)})


@app.get("/api/insights", response_model=InsightsResponse)
async def get_insights(book_type: Optional[str] = Query(None, alias="bookType")):
    """Reading statistics plus complete and incomplete series."""
    selected = parse_book_type(book_type)
    insights = _analytics().get_insights(selected)
    return {"success": True, "insights": camelize(insights.to_dict())}


@app.get("/api/recommendations", response_model=RecommendationsResponse)
async def list_recommendations(book_type: Optional[str] = Query(None, alias="bookType")):
    """Reading path catalog, served from the cache when fresh."""
    selected = parse_book_type(book_type)
    key = recommendation_cache.key_for(selected)
    version = _catalog_version()

    cached = recommendation_cache.get(key)
    if cached is not None and cached["version"] == version:
        paths = cached["paths"]
        return {"success": True, "paths": paths, "count": len(paths), "cached": True}

    paths = [camelize(p.to_dict()) for p in load_reading_paths(_catalog(), selected)]
    recommendation_cache.set(key, {"version": version, "paths": paths})
    return {"success": True, "paths": paths, "count": len(paths), "cached": False}


@app.post("/api/recommendations/parse", response_model=ParseResponse)
async def parse_recommendations():
    """Re-import the reading order markdown and drop cached catalogs."""
    paths = get_collection_paths()
    sources = reading_order_sources(paths.reading_orders, TRACKED_BOOK_TYPES)
    if not sources:
        raise HTTPException(status_code=404, detail="No reading order files found")

    db = _catalog()
    imported = import_reading_orders(db, sources)
    db.save()
    recommendation_cache.clear_recommendations()
    logger.debug("Imported reading orders from %s", paths.reading_orders)

    return {
        "success": True,
        "message": "Recommendations parsed and stored successfully",
        "stats": {
            "paths": sum(len(order.paths) for order in imported),
            "phases": sum(order.phase_count for order in imported),
            "recommendations": sum(order.recommendation_count for order in imported),
        },
    }


@app.get("/api/recommendations/{path_id}/progress", response_model=PathProgressResponse)
async def get_path_progress(path_id: str):
    """Per-phase owned/read counts and the next book to read on a path."""
    path = get_reading_path(_catalog(), path_id)
    if path is None:
        raise HTTPException(status_code=404, detail="Reading path not found")

    analytics = _analytics()
    owned_items = build_owned_items(analytics.books(), analytics.progress())
    progress = compute_path_progress(path, owned_items)
    return {"success": True, "progress": camelize(progress.to_dict())}


def _progress_rows(progress_db: ProgressDatabase, books_db: BookDatabase) -> List[Dict[str, Any]]:
    rows = []
    for entry in progress_db.entries():
        book = books_db.get(entry.item_id)
        rows.append({**entry.to_dict(), "item": book.to_dict() if book else None})
    return rows


def _open_progress() -> tuple:
    paths = get_collection_paths()
    books_db = BookDatabase(paths.books_db, paths.books_backups)
    progress_db = ProgressDatabase(paths.progress_db, paths.progress_backups)
    books_db.load()
    progress_db.load()
    return books_db, progress_db


@app.get("/api/reading-progress", response_model=ReadingProgressListResponse)
async def list_reading_progress():
    """Every reading progress entry with its book."""
    books_db, progress_db = _open_progress()
    return {"success": True, "progress": camelize(_progress_rows(progress_db, books_db))}


@app.get("/api/reading-progress/{item_id}", response_model=ReadingProgressResponse)
async def get_reading_progress(item_id: str):
    """Reading progress for one book."""
    books_db, progress_db = _open_progress()
    entry = progress_db.get(item_id)
    if entry is None:
        raise HTTPException(status_code=404, detail="Reading progress not found")

    book = books_db.get(item_id)
    row = {**entry.to_dict(), "item": book.to_dict() if book else None}
    return {"success": True, "progress": camelize(row)}
