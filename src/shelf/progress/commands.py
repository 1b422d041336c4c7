"""CLI commands for reading progress."""

from __future__ import annotations

import json as json_module
from datetime import datetime, timezone

import click
from rich.console import Console
from rich.table import Table

from shelf.core.database import BookDatabase, DatabaseError, ProgressDatabase

console = Console()


def _open() -> tuple[BookDatabase, ProgressDatabase]:
    books_db = BookDatabase()
    progress_db = ProgressDatabase()
    try:
        books_db.load()
        progress_db.load()
    except (DatabaseError, FileNotFoundError) as e:
        console.print(f"[red]{e}[/red]")
        raise click.Abort() from e
    return books_db, progress_db


def _date(value) -> str:
    return value.strftime("%Y-%m-%d") if value else "-"


@click.group(name="progress")
def progress() -> None:
    """Track which books have been read."""
    pass


@progress.command(name="list")
@click.option("--read", "only_read", is_flag=True, help="Only books marked read")
@click.option("--unread", "only_unread", is_flag=True, help="Only books marked unread")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def progress_list(only_read: bool, only_unread: bool, as_json: bool) -> None:
    """List reading progress entries, most recently updated first."""
    books_db, progress_db = _open()

    entries = progress_db.entries()
    if only_read:
        entries = [e for e in entries if e.is_read]
    if only_unread:
        entries = [e for e in entries if not e.is_read]
    entries.sort(key=lambda e: e.updated_at or datetime.min.replace(tzinfo=timezone.utc), reverse=True)

    if as_json:
        output = []
        for entry in entries:
            book = books_db.get(entry.item_id)
            output.append({**entry.to_dict(), "item": book.to_dict() if book else None})
        click.echo(json_module.dumps(output, indent=2))
        return

    if not entries:
        console.print("[yellow]No reading progress recorded.[/yellow]")
        return

    table = Table(title="Reading Progress")
    table.add_column("Item", style="cyan")
    table.add_column("Title")
    table.add_column("Read", justify="center")
    table.add_column("Completed", style="green")
    table.add_column("Path", style="dim")

    for entry in entries:
        book = books_db.get(entry.item_id)
        table.add_row(
            entry.item_id,
            book.title if book else "[dim](not in collection)[/dim]",
            "[green]✓[/green]" if entry.is_read else "",
            _date(entry.completed_at),
            entry.reading_path or "",
        )

    console.print(table)
    console.print()
    console.print(f"[dim]Total: {len(entries)}[/dim]")


@progress.command(name="show")
@click.argument("item_id")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def progress_show(item_id: str, as_json: bool) -> None:
    """Show reading progress for one book."""
    books_db, progress_db = _open()

    entry = progress_db.get(item_id)
    if entry is None:
        console.print(f"[yellow]No reading progress for: {item_id}[/yellow]")
        return

    book = books_db.get(item_id)
    if as_json:
        click.echo(json_module.dumps(
            {**entry.to_dict(), "item": book.to_dict() if book else None}, indent=2
        ))
        return

    console.print(f"[bold]{book.title if book else item_id}[/bold]")
    console.print(f"  Read: {'yes' if entry.is_read else 'no'}")
    console.print(f"  Started: {_date(entry.started_at)}")
    console.print(f"  Completed: {_date(entry.completed_at)}")
    if entry.reading_path:
        console.print(f"  Reading path: {entry.reading_path}")
    if entry.current_phase:
        console.print(f"  Current phase: {entry.current_phase}")


@progress.command(name="mark-read")
@click.argument("item_ids", nargs=-1, required=True)
@click.option(
    "--at", "when",
    type=click.DateTime(formats=["%Y-%m-%d", "%Y-%m-%dT%H:%M:%S"]),
    default=None,
    help="Completion date (default: now)",
)
@click.option("--path", "reading_path", default=None, help="Reading path this was read for")
@click.option("--phase", "current_phase", default=None, help="Phase of the reading path")
def progress_mark_read(
    item_ids: tuple[str, ...],
    when: datetime | None,
    reading_path: str | None,
    current_phase: str | None,
) -> None:
    """Mark one or more books as read.

    \b
    Examples:
        shelf progress mark-read berserk-1 berserk-2
        shelf progress mark-read maus --at 2024-03-01
    """
    books_db, progress_db = _open()
    if when is not None and when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)

    changed = 0
    for item_id in item_ids:
        if item_id not in books_db:
            console.print(f"[yellow]Not in collection: {item_id}[/yellow]")
            continue
        progress_db.mark_read(
            item_id, when=when, reading_path=reading_path, current_phase=current_phase
        )
        console.print(f"  [green]✓[/green] {books_db.get(item_id).title}")
        changed += 1

    if changed:
        progress_db.save()


@progress.command(name="mark-unread")
@click.argument("item_ids", nargs=-1, required=True)
def progress_mark_unread(item_ids: tuple[str, ...]) -> None:
    """Mark one or more books as unread."""
    books_db, progress_db = _open()

    changed = 0
    for item_id in item_ids:
        if item_id not in books_db:
            console.print(f"[yellow]Not in collection: {item_id}[/yellow]")
            continue
        progress_db.mark_unread(item_id)
        console.print(f"  [dim]○[/dim] {books_db.get(item_id).title}")
        changed += 1

    if changed:
        progress_db.save()


@progress.command(name="delete")
@click.argument("item_id")
@click.option("--force", "-f", is_flag=True, help="Skip confirmation prompt")
def progress_delete(item_id: str, force: bool) -> None:
    """Delete the progress entry for a book."""
    _books_db, progress_db = _open()

    if item_id not in progress_db:
        console.print(f"[yellow]No reading progress for: {item_id}[/yellow]")
        return

    if not force and not click.confirm(f"Delete reading progress for {item_id}?"):
        console.print("[yellow]Cancelled[/yellow]")
        return

    progress_db.delete(item_id)
    progress_db.save()
    console.print(f"[green]Deleted reading progress for {item_id}[/green]")
