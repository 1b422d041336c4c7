"""
Backup management CLI commands.

Provides commands for listing, cleaning, and rolling back database backups.
"""

from __future__ import annotations

from pathlib import Path

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from shelf.config.commands import get_setting
from shelf.core.backup import BackupInfo, list_backups, rollback_database
from shelf.core.config import get_paths

console = Console()

ALL_DBS = ["books_db", "progress_db", "reading_paths_db"]


def _get_locations() -> dict[str, tuple[Path, Path]]:
    """Map database name to (database file, backup directory)."""
    paths = get_paths()
    return {
        "books_db": (paths.books_db, paths.books_backups),
        "progress_db": (paths.progress_db, paths.progress_backups),
        "reading_paths_db": (paths.paths_db, paths.paths_backups),
    }


def _format_age(days: float) -> str:
    """Format age in human-readable form."""
    if days < 1:
        hours = days * 24
        if hours < 1:
            return f"{int(hours * 60)}m ago"
        return f"{int(hours)}h ago"
    if days < 7:
        return f"{int(days)}d ago"
    if days < 30:
        return f"{int(days / 7)}w ago"
    return f"{int(days / 30)}mo ago"


def _selected(db: str) -> dict[str, tuple[Path, Path]]:
    locations = _get_locations()
    if db == "all":
        return locations
    return {db: locations[db]}


@click.group()
def backup():
    """Manage database backups.

    Backups of books, reading progress and reading paths are created
    automatically whenever a database is saved.
    """
    pass


@backup.command(name="list")
@click.option(
    "-d", "--db",
    type=click.Choice(ALL_DBS + ["all"]),
    default="all",
    help="Which database backups to list",
)
@click.option("-n", "--limit", type=int, default=10, help="Maximum backups to show per database")
def list_cmd(db: str, limit: int):
    """List available backups, newest first."""
    total_count = 0
    for db_name, (_db_path, backup_dir) in _selected(db).items():
        backups = list_backups(backup_dir, db_name)
        if not backups:
            console.print(f"[dim]No backups found for {db_name}[/dim]")
            continue

        total_count += len(backups)
        table = Table(
            title=f"[bold]{db_name}[/bold] ({len(backups)} backups)",
            show_header=True,
            header_style="bold cyan",
        )
        table.add_column("#", style="dim", width=4)
        table.add_column("Date", style="green")
        table.add_column("Age", style="yellow", justify="right")
        table.add_column("Size", style="blue", justify="right")
        table.add_column("Filename", style="dim")

        for i, info in enumerate(backups[:limit]):
            table.add_row(
                str(i),
                info.timestamp.strftime("%Y-%m-%d %H:%M"),
                _format_age(info.age_days),
                info.size_human,
                info.path.name,
            )
        console.print(table)
        if len(backups) > limit:
            console.print(f"  [dim]... and {len(backups) - limit} older backups[/dim]")
        console.print()

    if total_count:
        console.print(f"[dim]Total: {total_count} backups[/dim]")


@backup.command(name="status")
def status_cmd():
    """Show backup counts and the retention policy."""
    keep_days = get_setting("backup.keep_days")
    keep_count = get_setting("backup.keep_count")

    table = Table(title="Backup Status", show_header=True, header_style="bold cyan")
    table.add_column("Database")
    table.add_column("Count", justify="right")
    table.add_column("Size", justify="right")
    table.add_column("Latest", justify="right")
    table.add_column(f">{keep_days}d", justify="right", style="yellow")

    for db_name, (_db_path, backup_dir) in _get_locations().items():
        backups = list_backups(backup_dir, db_name)
        size = sum(b.size_bytes for b in backups)
        expired = sum(1 for b in backups if b.age_days > keep_days)
        table.add_row(
            db_name,
            str(len(backups)),
            f"{size / 1024:.1f} KB" if size else "-",
            backups[0].timestamp.strftime("%Y-%m-%d") if backups else "-",
            str(expired) if expired else "[green]0[/green]",
        )

    console.print(table)
    console.print()
    console.print(Panel(
        f"[bold]Retention Policy[/bold]\n"
        f"Keep minimum: [cyan]{keep_count}[/cyan] backups\n"
        f"Delete older than: [cyan]{keep_days}[/cyan] days\n\n"
        f"[dim]Use 'shelf config set backup.keep_days N' to change retention.[/dim]",
        title="Settings",
    ))


@backup.command(name="clean")
@click.option(
    "-d", "--db",
    type=click.Choice(ALL_DBS + ["all"]),
    default="all",
    help="Which database backups to clean",
)
@click.option("--days", type=int, default=None, help="Remove backups older than this many days")
@click.option("--keep", type=int, default=None, help="Always keep at least this many backups")
@click.option("--dry-run", "-n", is_flag=True, help="Preview what would be deleted")
@click.option("--force", "-f", is_flag=True, help="Skip confirmation prompt")
def clean_cmd(db: str, days: int | None, keep: int | None, dry_run: bool, force: bool):
    """Clean up old backups.

    Examples:
        shelf backup clean                   # Use configured retention
        shelf backup clean --days 7 -n       # Preview a stricter cleanup
    """
    if days is None:
        days = get_setting("backup.keep_days")
    if keep is None:
        keep = get_setting("backup.keep_count")

    to_delete: list[BackupInfo] = []
    for db_name, (_db_path, backup_dir) in _selected(db).items():
        backups = list_backups(backup_dir, db_name)
        to_delete.extend(b for b in backups[keep:] if b.age_days > days)

    if not to_delete:
        console.print("[green]No old backups to clean up.[/green]")
        return

    console.print(f"[bold]Found {len(to_delete)} backup(s) to delete:[/bold]")
    for info in to_delete[:10]:
        console.print(
            f"  [red]x[/red] {info.path.name} "
            f"[dim]({_format_age(info.age_days)}, {info.size_human})[/dim]"
        )
    if len(to_delete) > 10:
        console.print(f"  [dim]... and {len(to_delete) - 10} more[/dim]")

    if dry_run:
        console.print("\n[yellow]DRY RUN - no files deleted[/yellow]")
        return

    if not force and not click.confirm("\nProceed with deletion?"):
        console.print("[yellow]Cancelled[/yellow]")
        return

    deleted = 0
    for info in to_delete:
        try:
            info.path.unlink(missing_ok=True)
            deleted += 1
        except OSError as e:
            console.print(f"[red]Failed to delete {info.path.name}: {e}[/red]")

    console.print(f"\n[green]Deleted {deleted} backup(s)[/green]")


@backup.command(name="rollback")
@click.argument("database", type=click.Choice(ALL_DBS))
@click.option("-i", "--index", type=int, default=0, help="Backup to restore (0 = most recent)")
@click.option("--dry-run", "-n", is_flag=True, help="Preview without making changes")
@click.option("--force", "-f", is_flag=True, help="Skip confirmation prompt")
def rollback_cmd(database: str, index: int, dry_run: bool, force: bool):
    """Restore a database from backup.

    The current state is backed up first.

    Examples:
        shelf backup rollback progress_db          # Restore most recent backup
        shelf backup rollback books_db -i 1        # Restore the one before
    """
    db_path, backup_dir = _get_locations()[database]
    backups = list_backups(backup_dir, database)
    if not backups:
        console.print(f"[red]No backups found for {database}[/red]")
        return
    if index >= len(backups):
        console.print(f"[red]Backup index {index} out of range (only {len(backups)} backups)[/red]")
        return

    info = backups[index]
    console.print(Panel(
        f"[bold]Database:[/bold] {database}\n"
        f"[bold]Restore from:[/bold] {info.path.name}\n"
        f"[bold]Backup date:[/bold] {info.timestamp.strftime('%Y-%m-%d %H:%M:%S')}\n"
        f"[bold]Backup age:[/bold] {_format_age(info.age_days)}",
        title="Rollback Preview",
    ))

    if dry_run:
        console.print("\n[yellow]DRY RUN - no changes made[/yellow]")
        return

    if not force and not click.confirm("Proceed with rollback?"):
        console.print("[yellow]Cancelled[/yellow]")
        return

    try:
        rollback_database(db_path, backup_dir, index)
    except (FileNotFoundError, OSError) as e:
        console.print(f"[red]Rollback failed: {e}[/red]")
        raise click.Abort() from e

    console.print(f"\n[green]Restored {database} from {info.path.name}[/green]")
