"""Genre time-series builds.

Two modes produce the same GenreSeries shape:

- Uniform (``build``): a top-tracks list with play counts but no timestamps.
  Each track's estimated seconds are spread evenly over every bucket.
- Per-play (``build_from_recent``): the user's timestamped history. Each
  play lands in the bucket that contains it.

A per-play build with no usable plays falls back to the uniform mode without
the caller noticing.
"""

from collections.abc import Sequence
from datetime import datetime

from scrobblecharts.application.services.metadata_cache import MetadataCache
from scrobblecharts.application.services.paginated_fetcher import PaginatedFetcher
from scrobblecharts.config import get_config, get_logger
from scrobblecharts.domain.entities import (
    BucketCalendar,
    BucketSpec,
    GenreSeries,
    TimeWindow,
    TopTrackEntry,
)
from scrobblecharts.domain.transforms import (
    assemble_series,
    attribute_plays,
    bucket_starts_for,
    distribute_uniformly,
    group_plays_by_bucket,
)

logger = get_logger(__name__)


class GenreAttributor:
    """Builds stacked genre series from plays or top tracks.

    Fetch errors propagate to the caller. Metadata failures never do: the
    cache degrades them to the default record.
    """

    def __init__(
        self,
        fetcher: PaginatedFetcher,
        cache: MetadataCache,
        top_genre_count: int | None = None,
        calendar: BucketCalendar | None = None,
        metadata_concurrency: int | None = None,
    ) -> None:
        self.fetcher = fetcher
        self.cache = cache
        self.top_genre_count = (
            top_genre_count
            if top_genre_count is not None
            else get_config("CHART_TOP_GENRE_COUNT", 7)
        )
        self.calendar = calendar or BucketCalendar(
            timezone=get_config("CHART_TIMEZONE", "UTC"),
            first_weekday=get_config("CHART_FIRST_WEEKDAY", 0),
        )
        self.metadata_concurrency = metadata_concurrency

    async def build(
        self,
        tracks: Sequence[TopTrackEntry],
        window: TimeWindow,
        bucket_spec: BucketSpec,
        tag_limit: int = 0,
    ) -> GenreSeries:
        """Spread each track's seconds uniformly over the window's buckets.

        Args:
            tracks: Tracks with observed play counts
            window: Window the counts cover
            bucket_spec: Unit and step of the buckets
            tag_limit: Tags kept per track (0 = unlimited)

        Returns:
            Series with top genres collapsed; empty when the window has no buckets
        """
        bucket_starts = bucket_starts_for(window, bucket_spec, self.calendar)
        if not bucket_starts:
            return GenreSeries.empty()
        return await self._build_uniform(tracks, bucket_starts, tag_limit)

    async def build_from_recent(
        self,
        user: str,
        window: TimeWindow,
        bucket_spec: BucketSpec,
        tag_limit: int = 0,
        fallback_tracks: Sequence[TopTrackEntry] | None = None,
        max_pages: int | None = None,
    ) -> GenreSeries:
        """Attribute each timestamped play in the window to its bucket and genres.

        Falls back to the uniform build over fallback_tracks when no play
        qualifies, or to an empty series when there is no fallback list.

        Raises:
            LastFMError: History could not be fetched
        """
        bucket_starts = bucket_starts_for(window, bucket_spec, self.calendar)
        if not bucket_starts:
            return GenreSeries.empty()

        events = await self.fetcher.fetch_all(user, window, max_pages=max_pages)
        plays_by_bucket = group_plays_by_bucket(events, window, bucket_starts)

        if not plays_by_bucket:
            logger.info(
                "No timestamped plays in window, using uniform distribution",
                user=user,
                fetched=len(events),
                fallback_tracks=len(fallback_tracks or ()),
            )
            if fallback_tracks:
                return await self._build_uniform(fallback_tracks, bucket_starts, tag_limit)
            return GenreSeries.empty(bucket_starts)

        keys = {key for counts in plays_by_bucket.values() for key in counts}
        metadata = await self.cache.resolve_many(
            keys, tag_limit, self.metadata_concurrency
        )
        per_bucket, totals = attribute_plays(
            plays_by_bucket, metadata, tag_limit, self.cache.default_metadata
        )

        logger.debug(
            f"Attributed plays of {len(keys)} tracks to {len(totals)} genres",
            buckets=len(bucket_starts),
        )
        return assemble_series(bucket_starts, per_bucket, totals, self.top_genre_count)

    async def _build_uniform(
        self,
        tracks: Sequence[TopTrackEntry],
        bucket_starts: list[datetime],
        tag_limit: int,
    ) -> GenreSeries:
        entries = [track for track in tracks if not track.key.is_blank]
        metadata = await self.cache.resolve_many(
            (track.key for track in entries), tag_limit, self.metadata_concurrency
        )

        contributions = []
        for track in entries:
            meta = metadata[track.key]
            contributions.append(
                (meta.duration_seconds * track.playcount, meta.limited(tag_limit))
            )

        per_bucket, totals = distribute_uniformly(contributions, bucket_starts)
        return assemble_series(bucket_starts, per_bucket, totals, self.top_genre_count)
