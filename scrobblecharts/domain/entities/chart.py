"""Chart-related domain entities.

Time windows, bucket specifications and the series produced by a build.
"""

from datetime import UTC, datetime, tzinfo
from enum import StrEnum
from typing import Any, Literal
from zoneinfo import ZoneInfo

from attrs import define, field, validators

from .shared import ensure_utc


class BucketUnit(StrEnum):
    """Calendar units a bucket can be aligned to."""

    HOUR = "hour"
    DAY = "day"
    WEEK = "week"
    MONTH = "month"


@define(frozen=True, slots=True)
class TimeWindow:
    """Half-open interval [start, end) over which aggregation is requested."""

    start: datetime = field(converter=ensure_utc)
    end: datetime = field(converter=ensure_utc)

    def __attrs_post_init__(self) -> None:
        if self.end < self.start:
            raise ValueError(f"Window end {self.end} precedes start {self.start}")

    @property
    def is_empty(self) -> bool:
        return self.start == self.end

    def contains(self, instant: datetime) -> bool:
        return self.start <= instant < self.end

    @property
    def from_unix(self) -> int:
        return int(self.start.timestamp())

    @property
    def to_unix(self) -> int:
        return int(self.end.timestamp())


@define(frozen=True, slots=True)
class BucketSpec:
    """Calendar unit and step used to generate bucket boundaries."""

    unit: BucketUnit = field(converter=BucketUnit)
    step: int = field(default=1, validator=[validators.instance_of(int), validators.ge(1)])


@define(frozen=True, slots=True)
class BucketCalendar:
    """Calendar used to align buckets: a timezone and the first day of the week."""

    timezone: str = field(default="UTC")
    first_weekday: int = field(
        default=0, validator=[validators.ge(0), validators.le(6)]
    )

    @property
    def tzinfo(self) -> tzinfo:
        if self.timezone.upper() == "UTC":
            return UTC
        return ZoneInfo(self.timezone)


@define(frozen=True, slots=True)
class GenreChartPoint:
    """One stacked-chart point: seconds of a genre inside one bucket."""

    bucket_start: datetime
    genre: str
    seconds: float


@define(frozen=True, slots=True)
class GenreTotal:
    """Total estimated seconds of a genre across the whole window."""

    genre: str
    total_seconds: float


@define(frozen=True)
class GenreSeries:
    """Result of a genre build.

    Per-bucket genre seconds, overall totals and the stable stacking order
    (top genres by total, then "other" when present).
    """

    bucket_starts: tuple[datetime, ...] = field(factory=tuple, converter=tuple)
    per_bucket_genre_seconds: dict[datetime, dict[str, float]] = field(factory=dict)
    genre_totals: dict[str, float] = field(factory=dict)
    ordered_top_genres: tuple[str, ...] = field(factory=tuple, converter=tuple)

    @classmethod
    def empty(cls, bucket_starts: tuple[datetime, ...] | list[datetime] = ()) -> "GenreSeries":
        return cls(
            bucket_starts=bucket_starts,
            per_bucket_genre_seconds={start: {} for start in bucket_starts},
        )

    @property
    def is_empty(self) -> bool:
        return not self.genre_totals

    @property
    def total_seconds(self) -> float:
        return sum(self.genre_totals.values())

    @property
    def points(self) -> list[GenreChartPoint]:
        """Flattened points sorted by bucket then genre, zero values omitted."""
        return sorted(
            (
                GenreChartPoint(bucket_start=start, genre=genre, seconds=seconds)
                for start, genres in self.per_bucket_genre_seconds.items()
                for genre, seconds in genres.items()
                if seconds > 0
            ),
            key=lambda p: (p.bucket_start, p.genre, p.seconds),
        )

    @property
    def ranked_totals(self) -> list[GenreTotal]:
        """Totals in stacking order."""
        return [
            GenreTotal(genre=genre, total_seconds=self.genre_totals[genre])
            for genre in self.ordered_top_genres
            if self.genre_totals.get(genre, 0) > 0
        ]


@define(frozen=True, slots=True)
class ActivityPoint:
    """Number of plays inside one bucket."""

    bucket_start: datetime
    count: int


BuildState = Literal["idle", "loading", "error", "ready"]


@define(frozen=True, slots=True)
class BuildStatus:
    """Status of a chart build for loading/error UI.

    idle -> loading -> (ready(result) | error(message))
    """

    state: BuildState = "idle"
    message: str | None = None
    result: Any = None

    @classmethod
    def idle(cls) -> "BuildStatus":
        return cls()

    @classmethod
    def loading(cls) -> "BuildStatus":
        return cls(state="loading")

    @classmethod
    def failed(cls, message: str) -> "BuildStatus":
        return cls(state="error", message=message)

    @classmethod
    def ready(cls, result: Any) -> "BuildStatus":
        return cls(state="ready", result=result)

    @property
    def is_loading(self) -> bool:
        return self.state == "loading"

    @property
    def is_error(self) -> bool:
        return self.state == "error"

    @property
    def is_ready(self) -> bool:
        return self.state == "ready"
