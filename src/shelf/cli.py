"""
Main CLI dispatcher for shelf.

Usage:
    shelf init                           # Initialize .shelf/ directory
    shelf insights [summary|series|stats]
    shelf recommendations [list|show|progress|next|import]
    shelf progress [list|show|mark-read|mark-unread|delete]
    shelf serve
"""

import logging

import click
from rich.console import Console
from rich.logging import RichHandler

from shelf import __version__

console = Console()


class Context:
    """Shared context for all commands."""

    def __init__(self, verbose: bool = False):
        self.verbose = verbose
        self.console = console


@click.group()
@click.version_option(version=__version__, prog_name="shelf")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def main(ctx: click.Context, verbose: bool) -> None:
    """Reading insights for a comic, manga and graphic novel collection.

    Tracks what has been read, finds gaps in series and follows curated
    reading paths.
    """
    ctx.ensure_object(dict)
    ctx.obj = Context(verbose=verbose)

    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=console, show_path=False)],
        )


@main.command()
@click.option("--force", "-f", is_flag=True, help="Recreate missing parts of an existing .shelf/ directory")
def init(force: bool) -> None:
    """Initialize .shelf/ directory structure.

    Creates the .shelf/ directory in the current directory with empty
    databases, backup folders and a reading_orders/ folder for markdown.
    """
    from pathlib import Path

    from shelf.core.config import get_paths
    from shelf.core.database import BookDatabase, ProgressDatabase, ReadingPathDatabase

    root = Path.cwd()
    paths = get_paths(root)

    if paths.shelf_dir.exists() and not force:
        console.print(f"[yellow].shelf/ directory already exists at {paths.shelf_dir}[/yellow]")
        console.print("[dim]Use --force to reinitialize.[/dim]")
        return

    console.print(f"[cyan]Initializing .shelf/ directory at {root}[/cyan]")

    for dir_path in [
        paths.shelf_dir,
        paths.reading_orders,
        paths.books_backups,
        paths.progress_backups,
        paths.paths_backups,
    ]:
        dir_path.mkdir(parents=True, exist_ok=True)
        console.print(f"  [green]Created[/green] {dir_path.relative_to(root)}")

    for db in [
        BookDatabase(paths.books_db, paths.books_backups),
        ProgressDatabase(paths.progress_db, paths.progress_backups),
        ReadingPathDatabase(paths.paths_db, paths.paths_backups),
    ]:
        if db.db_path.exists():
            continue
        db.load()
        db.save(create_backup=False)
        console.print(f"  [green]Created[/green] {db.db_path.relative_to(root)}")

    console.print()
    console.print("[green]Done![/green] .shelf/ directory initialized.")


@main.command()
@click.option("--host", default=None, help="Interface to bind (default: server.host setting)")
@click.option("--port", type=int, default=None, help="Port to listen on (default: server.port setting)")
def serve(host: str | None, port: int | None) -> None:
    """Run the reading insights HTTP API."""
    import uvicorn

    from shelf.config.commands import get_setting
    from shelf.core.config import get_collection_root
    from shelf.server import create_app

    try:
        root = get_collection_root()
    except FileNotFoundError as e:
        console.print(f"[red]{e}[/red]")
        raise click.Abort() from e

    host = host or get_setting("server.host")
    port = port or get_setting("server.port")

    console.print(f"[cyan]Serving {root} on http://{host}:{port}[/cyan]")
    uvicorn.run(create_app(root), host=host, port=port)


# Import and register command groups (imports after main definition intentional)
from shelf.backup.commands import backup  # noqa: E402
from shelf.config.commands import config  # noqa: E402
from shelf.insights.commands import insights  # noqa: E402
from shelf.progress.commands import progress  # noqa: E402
from shelf.recommendations.commands import recommendations  # noqa: E402

main.add_command(insights)
main.add_command(recommendations)
main.add_command(progress)
main.add_command(backup)
main.add_command(config)


if __name__ == "__main__":
    main()
