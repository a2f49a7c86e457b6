"""
Genre attribution arithmetic.

Pure functions that spread estimated listening seconds over buckets and genre
tags, then collapse the long tail of genres into "other". Every function
conserves seconds: the sum over genres of a result equals the sum of the
seconds that went in, up to floating-point rounding.
"""

from collections import Counter, defaultdict
from collections.abc import Iterable, Mapping
from datetime import datetime

from toolz import valfilter

from scrobblecharts.domain.entities import (
    OTHER_GENRE,
    GenreSeries,
    ScrobbleEvent,
    TimeWindow,
    TrackKey,
    TrackMetadata,
)
from scrobblecharts.domain.transforms.bucketing import bucket_for

TOP_GENRE_COUNT = 7

# Type aliases
GenreSeconds = dict[str, float]
BucketGenreSeconds = dict[datetime, GenreSeconds]

# (estimated total seconds, tags) for one track
Contribution = tuple[float, tuple[str, ...]]


def split_across_tags(seconds: float, tags: tuple[str, ...]) -> GenreSeconds:
    """Split seconds evenly across tags; no tags means a single "other" genre."""
    tags = tags or (OTHER_GENRE,)
    share = seconds / len(tags)
    split: GenreSeconds = defaultdict(float)
    for tag in tags:
        split[tag] += share
    return dict(split)


def distribute_uniformly(
    contributions: Iterable[Contribution],
    bucket_starts: list[datetime],
) -> tuple[BucketGenreSeconds, GenreSeconds]:
    """
    Spread each track's seconds evenly over every bucket, then over its tags.

    Assumes uniform listening across the window; used when no per-play
    history is available.

    Args:
        contributions: (total seconds, tags) per track
        bucket_starts: Buckets of the window

    Returns:
        (per-bucket genre seconds, genre totals)
    """
    if not bucket_starts:
        return {}, {}

    per_bucket: BucketGenreSeconds = {start: defaultdict(float) for start in bucket_starts}
    totals: GenreSeconds = defaultdict(float)
    bucket_count = len(bucket_starts)
    for total_seconds, tags in contributions:
        if total_seconds <= 0:
            continue
        for tag, seconds in split_across_tags(total_seconds, tags).items():
            totals[tag] += seconds

        per_bucket_share = split_across_tags(total_seconds / bucket_count, tags)
        for start in bucket_starts:
            genres = per_bucket[start]
            for tag, seconds in per_bucket_share.items():
                genres[tag] += seconds

    return {start: dict(genres) for start, genres in per_bucket.items()}, dict(totals)


def attribute_plays(
    plays_by_bucket: Mapping[datetime, Mapping[TrackKey, int]],
    metadata: Mapping[TrackKey, TrackMetadata],
    tag_limit: int = 0,
    default_metadata: TrackMetadata | None = None,
) -> tuple[BucketGenreSeconds, GenreSeconds]:
    """
    Attribute each bucket's plays to genres.

    Seconds for a (bucket, track) pair are duration x play count, split
    evenly across the track's tags.

    Args:
        plays_by_bucket: Play counts per track inside each bucket
        metadata: Resolved metadata per track key
        tag_limit: Maximum tags per track (0 = unlimited)
        default_metadata: Used for keys missing from `metadata`

    Returns:
        (per-bucket genre seconds, genre totals)
    """
    fallback = default_metadata or TrackMetadata.default()
    per_bucket: BucketGenreSeconds = {}
    totals: GenreSeconds = defaultdict(float)

    for start, counts in plays_by_bucket.items():
        genres: GenreSeconds = defaultdict(float)
        for key, count in counts.items():
            meta = metadata.get(key, fallback)
            seconds = meta.duration_seconds * count
            for tag, share in split_across_tags(seconds, meta.limited(tag_limit)).items():
                genres[tag] += share
                totals[tag] += share
        if genres:
            per_bucket[start] = dict(genres)

    return per_bucket, dict(totals)


def rank_genres(totals: Mapping[str, float]) -> list[str]:
    """Genres with a positive total, by total descending then name."""
    positive = valfilter(lambda seconds: seconds > 0, dict(totals))
    return sorted(positive, key=lambda genre: (-positive[genre], genre))


def _relabel(genres: Mapping[str, float], keep: set[str]) -> GenreSeconds:
    mapped: GenreSeconds = defaultdict(float)
    for genre, seconds in genres.items():
        mapped[genre if genre in keep else OTHER_GENRE] += seconds
    return valfilter(lambda seconds: seconds > 0, dict(mapped))


def collapse_top_genres(
    per_bucket: Mapping[datetime, Mapping[str, float]],
    totals: Mapping[str, float],
    top_n: int = TOP_GENRE_COUNT,
) -> tuple[BucketGenreSeconds, GenreSeconds, list[str]]:
    """
    Keep the top N genres by total and merge every other genre into "other".

    The merge is applied identically at bucket and total level. The returned
    order lists the top N in ranked order, followed by "other" only when its
    total is nonzero and it is not already one of the top N.

    Returns:
        (collapsed per-bucket seconds, collapsed totals, ordered genres)
    """
    top = rank_genres(totals)[:top_n]
    keep = set(top)

    collapsed_totals = _relabel(totals, keep)
    collapsed_buckets = {start: _relabel(genres, keep) for start, genres in per_bucket.items()}

    ordered = list(top)
    if collapsed_totals.get(OTHER_GENRE, 0) > 0 and OTHER_GENRE not in keep:
        ordered.append(OTHER_GENRE)

    return collapsed_buckets, collapsed_totals, ordered


def assemble_series(
    bucket_starts: list[datetime],
    per_bucket: Mapping[datetime, Mapping[str, float]],
    totals: Mapping[str, float],
    top_n: int = TOP_GENRE_COUNT,
) -> GenreSeries:
    """Collapse genres and build a GenreSeries with an entry for every bucket."""
    collapsed_buckets, collapsed_totals, ordered = collapse_top_genres(
        per_bucket, totals, top_n
    )
    return GenreSeries(
        bucket_starts=bucket_starts,
        per_bucket_genre_seconds={
            start: collapsed_buckets.get(start, {}) for start in bucket_starts
        },
        genre_totals=collapsed_totals,
        ordered_top_genres=ordered,
    )


def group_plays_by_bucket(
    events: Iterable[ScrobbleEvent],
    window: TimeWindow,
    bucket_starts: list[datetime],
) -> dict[datetime, Counter[TrackKey]]:
    """
    Count plays per (bucket, track) for events inside the window.

    Events without a timestamp, outside the window, or with a blank artist
    or track name are skipped. An instant before the first bucket start is
    counted in the first bucket.
    """
    if not bucket_starts:
        return {}

    grouped: dict[datetime, Counter[TrackKey]] = defaultdict(Counter)
    for event in events:
        played_at = event.played_at
        if played_at is None or not window.contains(played_at):
            continue
        key = TrackKey.normalized(event.artist, event.track)
        if key.is_blank:
            continue
        grouped[bucket_for(played_at, bucket_starts)][key] += 1
    return dict(grouped)
