"""Chart build use case exposed to presentation layers.

ChartBuilder runs genre and activity builds and tracks a BuildStatus for
each series kind (idle, loading, error, ready). Each kind keeps a generation
counter: starting a build cancels the in-flight build of the same kind, and
only the newest generation may commit its status. The caller of a cancelled
build gets BuildSupersededError.
"""

import asyncio
from collections.abc import Coroutine
from typing import Any, TypeVar

from attrs import define, field

from scrobblecharts.application.services import (
    ActivityAggregator,
    GenreAttributor,
    MetadataCache,
    PaginatedFetcher,
)
from scrobblecharts.config import get_config, get_logger
from scrobblecharts.domain.entities import (
    ActivityPoint,
    BucketCalendar,
    BucketSpec,
    BucketUnit,
    BuildStatus,
    GenreSeries,
    TimeWindow,
    TopTrackEntry,
)
from scrobblecharts.domain.exceptions import BuildSupersededError
from scrobblecharts.infrastructure.connectors.protocols import HistoryAPI, MetadataAPI

logger = get_logger(__name__)

R = TypeVar("R")


@define(frozen=True, slots=True)
class LiveUserSource:
    """Genre data from a user's timestamped history.

    Attributes:
        user: Last.fm username
        fallback_tracks: Top tracks used when the history has no usable plays
        max_pages: History page cap for this build (None = fetcher default)
    """

    user: str
    fallback_tracks: tuple[TopTrackEntry, ...] = field(factory=tuple, converter=tuple)
    max_pages: int | None = None


@define(frozen=True, slots=True)
class TopTracksSource:
    """Genre data from a top-tracks list, spread uniformly over the window."""

    tracks: tuple[TopTrackEntry, ...] = field(factory=tuple, converter=tuple)


GenreSource = LiveUserSource | TopTracksSource


@define(slots=True)
class _BuildSlot:
    """Mutable build state of one series kind."""

    series: str
    status: BuildStatus = field(factory=BuildStatus.idle)
    generation: int = 0
    task: asyncio.Task | None = None


@define(slots=True)
class ChartBuilder:
    """Runs chart builds and exposes their status.

    Errors set the series status to error with the message, drop the previous
    result and propagate to the caller. Nothing is retried.
    """

    attributor: GenreAttributor
    aggregator: ActivityAggregator
    _genre: _BuildSlot = field(init=False, factory=lambda: _BuildSlot("genre"))
    _activity: _BuildSlot = field(init=False, factory=lambda: _BuildSlot("activity"))

    @property
    def genre_status(self) -> BuildStatus:
        return self._genre.status

    @property
    def activity_status(self) -> BuildStatus:
        return self._activity.status

    @property
    def genre_series(self) -> GenreSeries:
        """Latest committed genre series, empty unless the last build succeeded."""
        status = self._genre.status
        return status.result if status.is_ready else GenreSeries.empty()

    @property
    def activity_points(self) -> list[ActivityPoint]:
        status = self._activity.status
        return status.result if status.is_ready else []

    async def build_genre_series(
        self,
        bucket_spec: BucketSpec,
        window: TimeWindow,
        tag_limit: int,
        source: GenreSource,
    ) -> GenreSeries:
        """Build a genre series from a live user history or a top-tracks list.

        Raises:
            LastFMError: History could not be fetched
            BuildSupersededError: A newer genre build started before this one finished
        """
        match source:
            case LiveUserSource(user=user, fallback_tracks=fallback, max_pages=max_pages):
                coro = self.attributor.build_from_recent(
                    user,
                    window,
                    bucket_spec,
                    tag_limit,
                    fallback_tracks=fallback,
                    max_pages=max_pages,
                )
            case TopTracksSource(tracks=tracks):
                coro = self.attributor.build(tracks, window, bucket_spec, tag_limit)
            case _:
                raise TypeError(f"Unsupported genre source: {type(source).__name__}")

        return await self._run(self._genre, coro)

    async def build_activity_series(
        self,
        user: str,
        window: TimeWindow,
        max_pages: int | None = None,
        unit: BucketUnit | str = BucketUnit.DAY,
    ) -> list[ActivityPoint]:
        """Build a play-count series for a user.

        Raises:
            LastFMError: History could not be fetched
            BuildSupersededError: A newer activity build started before this one finished
        """
        return await self._run(
            self._activity, self.aggregator.build(user, window, max_pages, unit)
        )

    async def _run(self, slot: _BuildSlot, coro: Coroutine[Any, Any, R]) -> R:
        slot.generation += 1
        generation = slot.generation

        previous = slot.task
        if previous is not None and not previous.done():
            logger.debug(f"Cancelling {slot.series} build", generation=generation - 1)
            previous.cancel()

        task = asyncio.create_task(coro)
        slot.task = task
        slot.status = BuildStatus.loading()

        try:
            result = await task
        except asyncio.CancelledError:
            if slot.generation != generation:
                raise BuildSupersededError(slot.series, generation) from None
            # Caller cancelled the newest build itself
            task.cancel()
            slot.status = BuildStatus.idle()
            slot.task = None
            raise
        except Exception as e:
            if slot.generation != generation:
                raise BuildSupersededError(slot.series, generation) from e
            logger.warning(f"{slot.series.capitalize()} build failed: {e}")
            slot.status = BuildStatus.failed(str(e))
            slot.task = None
            raise

        if slot.generation != generation:
            raise BuildSupersededError(slot.series, generation)

        slot.status = BuildStatus.ready(result)
        slot.task = None
        return result


def create_chart_builder(
    history_api: HistoryAPI,
    metadata_api: MetadataAPI,
    cache: MetadataCache | None = None,
    calendar: BucketCalendar | None = None,
) -> ChartBuilder:
    """Wire fetcher, cache, attributor and aggregator with configured defaults.

    Pass an existing cache to share metadata across builders.
    """
    calendar = calendar or BucketCalendar(
        timezone=get_config("CHART_TIMEZONE", "UTC"),
        first_weekday=get_config("CHART_FIRST_WEEKDAY", 0),
    )
    fetcher = PaginatedFetcher(history_api)
    cache = cache if cache is not None else MetadataCache(metadata_api)
    return ChartBuilder(
        attributor=GenreAttributor(fetcher, cache, calendar=calendar),
        aggregator=ActivityAggregator(fetcher, calendar=calendar),
    )
