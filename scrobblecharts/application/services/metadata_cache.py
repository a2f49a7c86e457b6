"""Read-through cache of per-track duration and genre tags.

The cache is the only state shared between chart builds. All writes go
through ``get_or_fetch``; a failed lookup is cached as the default record so
one bad track never aborts an aggregation and is never requested twice.
"""

import asyncio
from collections import OrderedDict
from collections.abc import Iterable
from typing import Any

from scrobblecharts.config import get_config, get_logger
from scrobblecharts.domain.entities import (
    TrackKey,
    TrackMetadata,
    normalize_duration_seconds,
    normalize_tags,
)
from scrobblecharts.domain.exceptions import LastFMError
from scrobblecharts.infrastructure.connectors.protocols import MetadataAPI

logger = get_logger(__name__)


class MetadataCache:
    """LRU cache of TrackMetadata keyed by normalized artist, track and tag limit.

    At most one fetch per key is in flight at any time: concurrent callers for
    the same key await the same task, while distinct keys resolve in parallel.
    Callers that are cancelled while waiting do not cancel the shared fetch.
    """

    def __init__(
        self,
        metadata_api: MetadataAPI,
        capacity: int | None = None,
        default_duration: float | None = None,
        ms_threshold: float | None = None,
        concurrency: int | None = None,
    ) -> None:
        """Initialize an empty cache.

        Args:
            metadata_api: Source of track info and artist tags
            capacity: Maximum entries kept (0 = unbounded, defaults to METADATA_CACHE_CAPACITY)
            default_duration: Duration used when none is known, in seconds
            ms_threshold: Raw durations above this are read as milliseconds
            concurrency: Default number of concurrent lookups in resolve_many
        """
        self.metadata_api = metadata_api
        self.capacity = (
            capacity if capacity is not None else get_config("METADATA_CACHE_CAPACITY", 0)
        )
        self.default_duration = (
            default_duration
            if default_duration is not None
            else get_config("CHART_DEFAULT_DURATION_SECONDS", 180.0)
        )
        self.ms_threshold = (
            ms_threshold
            if ms_threshold is not None
            else get_config("CHART_DURATION_MS_THRESHOLD", 10000.0)
        )
        self.concurrency = (
            concurrency
            if concurrency is not None
            else get_config("LASTFM_METADATA_CONCURRENCY", 8)
        )

        self._entries: OrderedDict[str, TrackMetadata] = OrderedDict()
        self._in_flight: dict[str, asyncio.Task[TrackMetadata]] = {}
        self.hits = 0
        self.misses = 0
        self.evictions = 0

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, cache_key: object) -> bool:
        return cache_key in self._entries

    @property
    def default_metadata(self) -> TrackMetadata:
        return TrackMetadata.default(self.default_duration)

    def peek(self, artist: str, track: str, tag_limit: int = 0) -> TrackMetadata | None:
        """Cached value without fetching, counting a hit or touching LRU order."""
        key = TrackKey.normalized(artist, track).cache_key(tag_limit)
        return self._entries.get(key)

    def clear(self) -> None:
        """Drop every cached entry and reset counters. In-flight fetches still complete."""
        self._entries.clear()
        self.hits = self.misses = self.evictions = 0

    def stats(self) -> dict[str, Any]:
        return {
            "size": len(self._entries),
            "capacity": self.capacity,
            "hits": self.hits,
            "misses": self.misses,
            "evictions": self.evictions,
            "in_flight": len(self._in_flight),
        }

    async def get_or_fetch(
        self, artist: str, track: str, tag_limit: int = 0
    ) -> TrackMetadata:
        """Return cached metadata, fetching it on a miss.

        Never raises LastFMError: every lookup failure degrades to the
        default record, which is cached like any other result.
        """
        key = TrackKey.normalized(artist, track)
        cache_key = key.cache_key(tag_limit)

        cached = self._entries.get(cache_key)
        if cached is not None:
            self._entries.move_to_end(cache_key)
            self.hits += 1
            return cached

        task = self._in_flight.get(cache_key)
        if task is None:
            self.misses += 1
            task = asyncio.create_task(self._fetch(key, cache_key, tag_limit))
            self._in_flight[cache_key] = task
            task.add_done_callback(lambda _, k=cache_key: self._in_flight.pop(k, None))

        return await asyncio.shield(task)

    async def resolve_many(
        self,
        keys: Iterable[TrackKey],
        tag_limit: int = 0,
        concurrency: int | None = None,
    ) -> dict[TrackKey, TrackMetadata]:
        """Resolve metadata for many tracks, one lookup per unique key.

        Returns:
            Metadata for every key passed in
        """
        unique = list(dict.fromkeys(keys))
        if not unique:
            return {}

        semaphore = asyncio.Semaphore(
            max(1, concurrency if concurrency is not None else self.concurrency)
        )

        async def resolve(key: TrackKey) -> tuple[TrackKey, TrackMetadata]:
            async with semaphore:
                return key, await self.get_or_fetch(key.artist, key.track, tag_limit)

        try:
            async with asyncio.TaskGroup() as tg:
                tasks = [tg.create_task(resolve(key)) for key in unique]
        except ExceptionGroup as eg:
            raise eg.exceptions[0] from None

        logger.debug(
            f"Resolved metadata for {len(unique)} tracks", **self.stats()
        )
        return dict(task.result() for task in tasks)

    async def _fetch(
        self, key: TrackKey, cache_key: str, tag_limit: int
    ) -> TrackMetadata:
        duration = self.default_duration
        tags: list[str] = []

        try:
            info = await self.metadata_api.get_track_info(key.artist, key.track)
            duration = normalize_duration_seconds(
                info.duration_raw, self.default_duration, self.ms_threshold
            )
            tags = list(info.tags)
        except LastFMError as e:
            logger.debug(
                f"Track info unavailable, using defaults: {e}",
                artist=key.artist,
                track=key.track,
            )

        if not tags:
            try:
                artist_tags = await self.metadata_api.get_artist_top_tags(key.artist)
                tags = [
                    tag.name
                    for tag in sorted(artist_tags, key=lambda tag: tag.weight, reverse=True)
                ]
            except LastFMError as e:
                logger.debug(f"Artist tags unavailable: {e}", artist=key.artist)

        metadata = TrackMetadata(
            duration_seconds=duration, tags=normalize_tags(tags, tag_limit)
        )
        self._store(cache_key, metadata)
        return metadata

    def _store(self, cache_key: str, metadata: TrackMetadata) -> None:
        self._entries[cache_key] = metadata
        self._entries.move_to_end(cache_key)
        if self.capacity and len(self._entries) > self.capacity:
            self._entries.popitem(last=False)
            self.evictions += 1
