"""CLI commands for curated reading paths."""

from __future__ import annotations

import json as json_module
from pathlib import Path

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from shelf.core.database import BookType, DatabaseError
from shelf.insights.commands import BOOK_TYPE_CHOICE

console = Console()


def _load(compute):
    try:
        return compute()
    except (DatabaseError, FileNotFoundError) as e:
        console.print(f"[red]{e}[/red]")
        raise click.Abort() from e


def _catalog():
    from shelf.core.database import ReadingPathDatabase

    db = ReadingPathDatabase()
    _load(db.load)
    return db


def _owned_items():
    from shelf.insights import CollectionAnalytics
    from shelf.recommendations import build_owned_items

    analytics = CollectionAnalytics()
    return _load(lambda: build_owned_items(analytics.books(), analytics.progress()))


def _find_path(path_id: str):
    from shelf.recommendations import get_reading_path

    path = get_reading_path(_catalog(), path_id)
    if path is None:
        console.print(f"[yellow]Reading path not found: {path_id}[/yellow]")
    return path


@click.group(name="recommendations")
def recommendations() -> None:
    """Curated reading paths and progress through them.

    Paths are imported from reading order markdown files and matched
    against the books in the collection.
    """
    pass


@recommendations.command(name="list")
@click.option("--book-type", "-t", type=BOOK_TYPE_CHOICE, default=None, help="Only this book type")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def recommendations_list(book_type: str | None, as_json: bool) -> None:
    """List reading paths.

    \b
    Examples:
        shelf recommendations list
        shelf recommendations list -t MANGA --json
    """
    from shelf.recommendations import load_reading_paths

    db = _catalog()
    paths = load_reading_paths(db, BookType(book_type) if book_type else None)

    if as_json:
        click.echo(json_module.dumps([p.to_dict() for p in paths], indent=2))
        return

    if not paths:
        console.print("[yellow]No reading paths. Run 'shelf recommendations import' first.[/yellow]")
        return

    table = Table(title="Reading Paths")
    table.add_column("ID", style="cyan")
    table.add_column("Type", style="dim")
    table.add_column("Name")
    table.add_column("Phases", justify="right")
    table.add_column("Titles", justify="right", style="green")

    for path in paths:
        table.add_row(
            path.id,
            path.book_type.value,
            path.name,
            str(len(path.phases)),
            str(path.recommendation_count),
        )

    console.print(table)
    console.print()
    console.print(f"[dim]Total paths: {len(paths)}[/dim]")


@recommendations.command(name="show")
@click.argument("path_id")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def recommendations_show(path_id: str, as_json: bool) -> None:
    """Show the phases and titles of a reading path."""
    path = _find_path(path_id)
    if path is None:
        return

    if as_json:
        click.echo(json_module.dumps(path.to_dict(), indent=2))
        return

    console.print(Panel(
        path.description or "[dim]No description[/dim]",
        title=f"[bold]{path.name}[/bold] ({path.book_type.value})",
    ))
    for phase in path.phases:
        console.print()
        console.print(f"[bold cyan]{phase.order}. {phase.name}[/bold cyan]")
        if phase.description:
            console.print(f"  [dim]{phase.description}[/dim]")
        for rec in phase.recommendations:
            extra = f" [dim]({rec.volumes} volumes)[/dim]" if rec.volumes else ""
            console.print(f"  - {rec.title}{extra}")
            if rec.issues:
                console.print(f"      [dim]Issues: {rec.issues}[/dim]")


@recommendations.command(name="progress")
@click.argument("path_id")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def recommendations_progress(path_id: str, as_json: bool) -> None:
    """Show how much of a reading path is owned and read.

    \b
    Examples:
        shelf recommendations progress comic-character-focused-path
    """
    from shelf.recommendations import compute_path_progress

    path = _find_path(path_id)
    if path is None:
        return

    progress = compute_path_progress(path, _owned_items())

    if as_json:
        click.echo(json_module.dumps(progress.to_dict(), indent=2))
        return

    table = Table(title=f"{path.name}")
    table.add_column("Phase", style="cyan")
    table.add_column("Titles", justify="right")
    table.add_column("Owned", justify="right", style="blue")
    table.add_column("Read", justify="right", style="green")
    table.add_column("%", justify="right", style="bold")

    for phase in path.phases:
        counts = progress.phase_progress[phase.id]
        table.add_row(
            phase.name,
            str(counts.total),
            str(counts.owned),
            str(counts.read),
            f"{counts.completion_percentage}%",
        )
    table.add_row(
        "[bold]Total[/bold]",
        str(progress.total),
        str(progress.owned),
        str(progress.read),
        f"{progress.completion_percentage}%",
    )
    console.print(table)

    if progress.next_to_read:
        nxt = progress.next_to_read
        console.print()
        console.print(
            f"Next to read: [bold]{nxt.recommendation.title}[/bold] "
            f"[dim]({nxt.phase.name})[/dim]"
        )


@recommendations.command(name="next")
@click.option("--book-type", "-t", type=BOOK_TYPE_CHOICE, default=None, help="Only this book type")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def recommendations_next(book_type: str | None, as_json: bool) -> None:
    """Show the next owned, unread title on every reading path."""
    from shelf.recommendations import compute_path_progress, load_reading_paths

    paths = load_reading_paths(_catalog(), BookType(book_type) if book_type else None)
    owned_items = _owned_items()

    suggestions = []
    for path in paths:
        nxt = compute_path_progress(path, owned_items).next_to_read
        if nxt is not None:
            suggestions.append((path, nxt))

    if as_json:
        output = [{"path_id": path.id, **nxt.to_dict()} for path, nxt in suggestions]
        click.echo(json_module.dumps(output, indent=2))
        return

    if not suggestions:
        console.print("[green]Nothing owned is waiting to be read on any path.[/green]")
        return

    table = Table(title="Next To Read")
    table.add_column("Path", style="cyan")
    table.add_column("Phase", style="dim")
    table.add_column("Title", style="bold")
    table.add_column("Item", style="dim")

    for path, nxt in suggestions:
        table.add_row(path.name, nxt.phase.name, nxt.recommendation.title, nxt.match.item_id or "")
    console.print(table)


@recommendations.command(name="import")
@click.option(
    "--book-type", "-t",
    type=BOOK_TYPE_CHOICE,
    default=None,
    help="Only import this book type (default: every type with a file)",
)
@click.option(
    "--file", "-f", "file_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Read this markdown file instead of .shelf/reading_orders/ (requires --book-type)",
)
@click.option("--dry-run", "-n", is_flag=True, help="Parse and report without saving")
def recommendations_import(book_type: str | None, file_path: Path | None, dry_run: bool) -> None:
    """Import reading paths from reading order markdown.

    Each imported book type has all of its existing paths replaced.

    \b
    Examples:
        shelf recommendations import
        shelf recommendations import -t MANGA -f ~/MANGA_READING_ORDER.md
    """
    from shelf.core.config import get_paths
    from shelf.recommendations.parser import import_reading_orders, reading_order_file

    if file_path is not None and book_type is None:
        raise click.UsageError("--file requires --book-type")

    types = [BookType(book_type)] if book_type else [
        BookType.COMIC, BookType.MANGA, BookType.GRAPHIC_NOVEL,
    ]

    sources: list[tuple[BookType, Path]] = []
    for type_ in types:
        source = file_path or reading_order_file(type_, get_paths().reading_orders)
        if source.exists():
            sources.append((type_, source))
        else:
            console.print(f"[dim]No reading order for {type_.value}: {source}[/dim]")

    if not sources:
        console.print("[yellow]No reading order files found.[/yellow]")
        return

    db = _catalog()
    for imported in import_reading_orders(db, sources, dry_run=dry_run):
        console.print(
            f"  [green]{imported.book_type.value}[/green]: {len(imported.paths)} path(s), "
            f"{imported.recommendation_count} title(s) [dim]from {imported.source.name}[/dim]"
        )

    if dry_run:
        console.print("\n[yellow]DRY RUN - no changes made[/yellow]")
        return

    db.save()
    console.print("\n[green]Done![/green] Reading paths imported.")
