"""CLI commands for reading insights."""

from __future__ import annotations

import json as json_module

import click
from rich.console import Console
from rich.table import Table

from shelf.core.database import BookType, DatabaseError

console = Console()

BOOK_TYPE_CHOICE = click.Choice([t.value for t in BookType if t is not BookType.OTHER])


def _book_type(value: str | None) -> BookType | None:
    return BookType(value) if value else None


def _run(compute):
    """Call an analytics method, turning storage failures into a clean abort."""
    try:
        return compute()
    except (DatabaseError, FileNotFoundError) as e:
        console.print(f"[red]{e}[/red]")
        raise click.Abort() from e


def _progress_bar(pct: int, width: int = 20) -> str:
    filled = round(width * pct / 100)
    return "█" * filled + "░" * (width - filled)


def _series_table(title: str, series_list, show_missing: bool) -> Table:
    table = Table(title=title)
    table.add_column("Series", style="cyan")
    table.add_column("Read", justify="right")
    table.add_column("Progress")
    table.add_column("%", justify="right", style="bold")
    if show_missing:
        table.add_column("Missing", style="yellow")

    for s in series_list:
        row = [
            s.series,
            f"{s.read_volumes}/{s.total_volumes}",
            _progress_bar(s.completion_percentage),
            f"{s.completion_percentage}%",
        ]
        if show_missing:
            row.append(", ".join(s.missing_volumes) or "-")
        table.add_row(*row)
    return table


@click.group(name="insights")
def insights() -> None:
    """Reading statistics and series completion.

    Reports on what has been read and which series have gaps.
    """
    pass


@insights.command(name="summary")
@click.option("--book-type", "-t", type=BOOK_TYPE_CHOICE, default=None, help="Only this book type")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def insights_summary(book_type: str | None, as_json: bool) -> None:
    """Show reading stats and series completion together.

    \b
    Examples:
        shelf insights summary                  # Whole collection
        shelf insights summary -t MANGA         # Manga only
        shelf insights summary --json           # JSON output
    """
    from shelf.insights import CollectionAnalytics

    analytics = CollectionAnalytics()
    result = _run(lambda: analytics.get_insights(_book_type(book_type)))

    if as_json:
        click.echo(json_module.dumps(result.to_dict(), indent=2))
        return

    stats = result.stats
    console.print(
        f"[bold]{stats.total_read}[/bold] of [bold]{stats.total_books}[/bold] books read "
        f"([green]{stats.read_percentage}%[/green])"
    )
    console.print(
        f"[dim]{len(result.complete_series)} complete series, "
        f"{len(result.incomplete_series)} with gaps[/dim]"
    )
    console.print()

    if result.incomplete_series:
        console.print(_series_table("Series With Gaps", result.incomplete_series, show_missing=True))
    if result.complete_series:
        console.print(_series_table("Complete Series", result.complete_series, show_missing=False))


@insights.command(name="series")
@click.option("--book-type", "-t", type=BOOK_TYPE_CHOICE, default=None, help="Only this book type")
@click.option("--incomplete", is_flag=True, help="Only show series with missing volumes")
@click.option("--limit", "-n", type=int, default=None, help="Limit number of results")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def insights_series(book_type: str | None, incomplete: bool, limit: int | None, as_json: bool) -> None:
    """Show completion for every series in the collection.

    A series with parsed volume numbers is complete when nothing between its
    lowest and highest volume is missing.

    \b
    Examples:
        shelf insights series --incomplete      # Gaps to fill
        shelf insights series -t COMIC --json
    """
    from shelf.insights import CollectionAnalytics

    analytics = CollectionAnalytics()
    breakdown = _run(lambda: analytics.get_series(_book_type(book_type)))

    complete = [] if incomplete else breakdown.complete_series
    partial = breakdown.incomplete_series
    if limit:
        complete = complete[:limit]
        partial = partial[:limit]

    if as_json:
        output = {
            "complete_series": [s.to_dict() for s in complete],
            "incomplete_series": [s.to_dict() for s in partial],
        }
        click.echo(json_module.dumps(output, indent=2))
        return

    if not complete and not partial:
        console.print("[yellow]No series found.[/yellow]")
        return

    if partial:
        console.print(_series_table("Series With Gaps", partial, show_missing=True))
    if complete:
        console.print(_series_table("Complete Series", complete, show_missing=False))
    console.print()
    console.print(f"[dim]Total series: {len(complete) + len(partial)}[/dim]")


@insights.command(name="stats")
@click.option("--book-type", "-t", type=BOOK_TYPE_CHOICE, default=None, help="Only this book type")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def insights_stats(book_type: str | None, as_json: bool) -> None:
    """Show reading statistics by book type.

    \b
    Examples:
        shelf insights stats
        shelf insights stats --json
    """
    from shelf.insights import CollectionAnalytics

    analytics = CollectionAnalytics()
    stats = _run(lambda: analytics.get_stats(_book_type(book_type)))

    if as_json:
        click.echo(json_module.dumps(stats.to_dict(), indent=2))
        return

    table = Table(title="Reading Statistics")
    table.add_column("Type", style="cyan")
    table.add_column("Books", justify="right")
    table.add_column("Read", justify="right", style="green")

    for type_, count in stats.by_type.items():
        table.add_row(type_.value, str(count.total), str(count.read))
    table.add_row(
        "[bold]All[/bold]",
        f"[bold]{stats.total_books}[/bold]",
        f"[bold]{stats.total_read}[/bold] ({stats.read_percentage}%)",
    )
    console.print(table)

    if stats.recently_completed:
        console.print()
        console.print("[bold]Recently completed[/bold]")
        for book in stats.recently_completed:
            console.print(
                f"  [green]✓[/green] {book.title} "
                f"[dim]({book.completed_at.strftime('%Y-%m-%d')})[/dim]"
            )
