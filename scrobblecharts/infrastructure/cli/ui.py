"""UI helpers for CLI interaction.

Rich tables for chart results and the error handling decorator shared by
every command. Presentation only; nothing here talks to Last.fm.
"""

from collections.abc import Callable, Sequence
import functools
from typing import ParamSpec, TypeVar

from rich.console import Console
from rich.table import Table
import typer

from scrobblecharts.config import get_logger
from scrobblecharts.domain.entities import ActivityPoint, GenreSeries, TopTrackEntry

# Initialize console and logger
console = Console()
logger = get_logger(__name__)

P = ParamSpec("P")
R = TypeVar("R")


def command_error_handler(func: Callable[P, R]) -> Callable[P, R]:
    """Decorator to standardize error handling for CLI commands.

    Logs the failure with its traceback and prints a one-line message, then
    exits with code 1. typer.Exit and typer.Abort pass through untouched.
    """

    @functools.wraps(func)
    def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        operation = func.__name__.replace("_", " ")

        with logger.contextualize(operation=operation):
            try:
                logger.debug(f"Executing {operation}")
                return func(*args, **kwargs)

            except typer.Exit:
                raise

            except typer.Abort:
                logger.info(f"Operation {operation} aborted by user")
                raise

            except Exception as e:
                logger.exception(f"Error during {operation}")
                console.print(f"\n[bold red]✗ Error during {operation}:[/bold red] {e}")
                raise typer.Exit(code=1) from e

    return wrapper


def format_duration(seconds: float) -> str:
    """Seconds as h:mm:ss."""
    total = round(seconds)
    hours, remainder = divmod(total, 3600)
    minutes, secs = divmod(remainder, 60)
    return f"{hours}:{minutes:02d}:{secs:02d}"


def display_genre_series(series: GenreSeries, title: str) -> None:
    """Genre totals in stacking order, then one row per bucket."""
    if series.is_empty:
        console.print(f"[yellow]No listening data for {title}[/yellow]")
        return

    totals = Table(title=f"Top genres · {title}")
    totals.add_column("#", justify="right", style="dim")
    totals.add_column("Genre", style="cyan")
    totals.add_column("Time", justify="right")
    totals.add_column("Share", justify="right")
    grand_total = series.total_seconds
    for rank, total in enumerate(series.ranked_totals, start=1):
        totals.add_row(
            str(rank),
            total.genre,
            format_duration(total.total_seconds),
            f"{total.total_seconds / grand_total:.1%}",
        )
    console.print(totals)

    buckets = Table(title="Per bucket")
    buckets.add_column("Bucket start", style="dim")
    for genre in series.ordered_top_genres:
        buckets.add_column(genre, justify="right")
    for start in series.bucket_starts:
        genres = series.per_bucket_genre_seconds.get(start, {})
        buckets.add_row(
            start.isoformat(timespec="minutes"),
            *(format_duration(genres.get(g, 0.0)) for g in series.ordered_top_genres),
        )
    console.print(buckets)


def display_activity(points: Sequence[ActivityPoint], title: str) -> None:
    if not points:
        console.print(f"[yellow]No plays for {title}[/yellow]")
        return

    table = Table(title=f"Activity · {title}")
    table.add_column("Bucket start", style="dim")
    table.add_column("Plays", justify="right", style="green")
    for point in points:
        table.add_row(point.bucket_start.date().isoformat(), str(point.count))
    table.caption = f"{sum(p.count for p in points)} plays"
    console.print(table)


def display_top_tracks(tracks: Sequence[TopTrackEntry], title: str) -> None:
    if not tracks:
        console.print(f"[yellow]No top tracks for {title}[/yellow]")
        return

    table = Table(title=f"Top tracks · {title}")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Artist", style="cyan")
    table.add_column("Track")
    table.add_column("Plays", justify="right", style="green")
    for rank, entry in enumerate(tracks, start=1):
        table.add_row(str(rank), entry.artist, entry.track, str(entry.playcount))
    console.print(table)
