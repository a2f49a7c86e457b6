"""scrobblecharts CLI - Main application entry point and commands."""

import asyncio
from datetime import UTC, datetime
from typing import Annotated

import typer

from scrobblecharts import __version__
from scrobblecharts.application.use_cases import (
    LiveUserSource,
    TopTracksSource,
    create_chart_builder,
)
from scrobblecharts.config import (
    get_config,
    get_logger,
    log_startup_info,
    setup_loguru_logger,
)
from scrobblecharts.domain.entities import BucketUnit
from scrobblecharts.domain.transforms import RangeOption
from scrobblecharts.infrastructure.cli.ui import (
    command_error_handler,
    console,
    display_activity,
    display_genre_series,
    display_top_tracks,
)
from scrobblecharts.infrastructure.connectors import LastFMConnector

logger = get_logger(__name__)

app = typer.Typer(
    help=f"🎵 scrobblecharts v{__version__} - Genre and activity charts from Last.fm history",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
    pretty_exceptions_enable=True,
    pretty_exceptions_short=True,
    pretty_exceptions_show_locals=False,
)

RangeArg = Annotated[
    RangeOption, typer.Option("--range", "-r", help="Time range to chart")
]
UserArg = Annotated[
    str | None,
    typer.Option("--user", "-u", help="Last.fm username (defaults to LASTFM_USERNAME)"),
]


def _create_connector() -> LastFMConnector:
    return LastFMConnector()


def _resolve_user(user: str | None) -> str:
    resolved = user or get_config("LASTFM_USERNAME")
    if not resolved:
        console.print("[red]No Last.fm user given; pass --user or set LASTFM_USERNAME[/red]")
        raise typer.Exit(code=2)
    return resolved


@app.command(rich_help_panel="📊 Charts")
@command_error_handler
def genres(
    range_option: RangeArg = RangeOption.SEVEN_DAYS,
    user: UserArg = None,
    tag_limit: Annotated[
        int,
        typer.Option("--tag-limit", "-t", min=0, help="Tags per track (0 = all)"),
    ] = get_config("CHART_DEFAULT_TAG_LIMIT", 1),
    top_tracks_only: Annotated[
        bool,
        typer.Option(
            "--top-tracks-only",
            help="Spread top-track plays uniformly instead of reading the history",
        ),
    ] = False,
    max_pages: Annotated[
        int | None, typer.Option("--max-pages", min=1, help="History page cap")
    ] = None,
) -> None:
    """Show listening time per genre over a time range."""
    user = _resolve_user(user)
    series = asyncio.run(
        _build_genres(user, range_option, tag_limit, top_tracks_only, max_pages)
    )
    display_genre_series(series, f"{user} · {range_option.title}")


async def _build_genres(
    user: str,
    range_option: RangeOption,
    tag_limit: int,
    top_tracks_only: bool,
    max_pages: int | None,
):
    async with _create_connector() as connector:
        builder = create_chart_builder(connector, connector)
        window = range_option.window(datetime.now(UTC))
        top_tracks = await connector.get_top_tracks(
            user, range_option.lastfm_period, limit=50
        )
        source = (
            TopTracksSource(top_tracks)
            if top_tracks_only
            else LiveUserSource(user, fallback_tracks=top_tracks, max_pages=max_pages)
        )
        return await builder.build_genre_series(
            range_option.bucket_spec, window, tag_limit, source
        )


@app.command(rich_help_panel="📊 Charts")
@command_error_handler
def activity(
    range_option: RangeArg = RangeOption.ONE_MONTH,
    user: UserArg = None,
    unit: Annotated[
        BucketUnit, typer.Option("--unit", help="Count plays per day, week or month")
    ] = BucketUnit.DAY,
    max_pages: Annotated[
        int | None, typer.Option("--max-pages", min=1, help="History page cap")
    ] = None,
) -> None:
    """Show the number of plays per day, week or month."""
    user = _resolve_user(user)
    points = asyncio.run(_build_activity(user, range_option, unit, max_pages))
    display_activity(points, f"{user} · {range_option.title}")


async def _build_activity(
    user: str, range_option: RangeOption, unit: BucketUnit, max_pages: int | None
):
    async with _create_connector() as connector:
        builder = create_chart_builder(connector, connector)
        window = range_option.window(datetime.now(UTC))
        return await builder.build_activity_series(user, window, max_pages, unit)


@app.command(name="top-tracks", rich_help_panel="📊 Charts")
@command_error_handler
def top_tracks(
    range_option: RangeArg = RangeOption.SEVEN_DAYS,
    user: UserArg = None,
    limit: Annotated[int, typer.Option("--limit", "-l", min=1)] = 20,
    global_chart: Annotated[
        bool, typer.Option("--global", help="Show the global Last.fm chart")
    ] = False,
) -> None:
    """Show a user's top tracks, or the global chart."""
    user = None if global_chart else _resolve_user(user)

    async def fetch():
        async with _create_connector() as connector:
            return await connector.get_top_tracks(user, range_option.lastfm_period, limit)

    tracks = asyncio.run(fetch())
    display_top_tracks(tracks, f"{user or 'Last.fm'} · {range_option.title}")


@app.command(name="version", rich_help_panel="⚙️ System")
def version_command() -> None:
    """Show version information."""
    console.print(
        f"[bold bright_blue]🎵 scrobblecharts[/bold bright_blue] [dim]v{__version__}[/dim]"
    )


@app.callback()
def init_cli(
    ctx: typer.Context,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable verbose output"),
    ] = False,
) -> None:
    """Initialize scrobblecharts CLI."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose

    setup_loguru_logger(verbose)
    log_startup_info()


def main() -> int:
    """Application entry point."""
    try:
        return app() or 0
    except Exception:
        logger.exception("Unhandled exception")
        return 1
