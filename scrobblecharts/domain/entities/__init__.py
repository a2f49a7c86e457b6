"""Core domain entities representing listening-history concepts."""

# Chart-related entities
from .chart import (
    ActivityPoint,
    BucketCalendar,
    BucketSpec,
    BucketUnit,
    BuildStatus,
    GenreChartPoint,
    GenreSeries,
    GenreTotal,
    TimeWindow,
)

# Play-history entities
from .scrobble import (
    DEFAULT_DURATION_SECONDS,
    OTHER_GENRE,
    ScrobbleEvent,
    TopTrackEntry,
    TrackKey,
    TrackMetadata,
    normalize_duration_seconds,
    normalize_tag,
    normalize_tags,
)

# Shared utilities
from .shared import ensure_utc, from_unix_seconds

__all__ = [
    # Chart entities
    "ActivityPoint",
    "BucketCalendar",
    "BucketSpec",
    "BucketUnit",
    "BuildStatus",
    "GenreChartPoint",
    "GenreSeries",
    "GenreTotal",
    "TimeWindow",
    # Play-history entities
    "DEFAULT_DURATION_SECONDS",
    "OTHER_GENRE",
    "ScrobbleEvent",
    "TopTrackEntry",
    "TrackKey",
    "TrackMetadata",
    "normalize_duration_seconds",
    "normalize_tag",
    "normalize_tags",
    # Shared utilities
    "ensure_utc",
    "from_unix_seconds",
]
