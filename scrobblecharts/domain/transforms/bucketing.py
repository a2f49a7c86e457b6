"""
Calendar-aligned time bucketing.

Pure functions that turn a time window and a calendar unit/step into an
ordered list of bucket start instants, and that place instants into buckets.
Nothing here reads the current time; identical inputs always give identical
output.
"""

from bisect import bisect_right
import calendar as _calendar
from datetime import UTC, datetime, timedelta

from scrobblecharts.domain.entities import (
    BucketCalendar,
    BucketSpec,
    BucketUnit,
    TimeWindow,
)

DEFAULT_CALENDAR = BucketCalendar()


# === Alignment ===


def start_of_unit(
    instant: datetime,
    unit: BucketUnit | str,
    calendar: BucketCalendar = DEFAULT_CALENDAR,
) -> datetime:
    """
    Natural boundary of `unit` that contains `instant`.

    Args:
        instant: Aware datetime to align
        unit: Calendar unit (hour, day, week, month)
        calendar: Timezone and first weekday used for alignment

    Returns:
        Aware datetime in the calendar's timezone
    """
    unit = BucketUnit(unit)
    tz = calendar.tzinfo
    local = instant.astimezone(tz)

    match unit:
        case BucketUnit.HOUR:
            return local.replace(minute=0, second=0, microsecond=0)
        case BucketUnit.DAY:
            return datetime(local.year, local.month, local.day, tzinfo=tz)
        case BucketUnit.WEEK:
            offset = (local.weekday() - calendar.first_weekday) % 7
            day = local.date() - timedelta(days=offset)
            return datetime(day.year, day.month, day.day, tzinfo=tz)
        case BucketUnit.MONTH:
            return datetime(local.year, local.month, 1, tzinfo=tz)


def add_units(
    instant: datetime,
    unit: BucketUnit | str,
    step: int,
    calendar: BucketCalendar = DEFAULT_CALENDAR,
) -> datetime:
    """
    Advance `instant` by `step` units.

    Hours are absolute durations. Days, weeks and months are wall-clock steps
    in the calendar's timezone, so a day bucket stays aligned to midnight
    across DST transitions.
    """
    unit = BucketUnit(unit)
    tz = calendar.tzinfo

    if unit is BucketUnit.HOUR:
        return (instant.astimezone(UTC) + timedelta(hours=step)).astimezone(tz)

    wall = instant.astimezone(tz).replace(tzinfo=None)

    if unit is BucketUnit.MONTH:
        month_index = wall.month - 1 + step
        year = wall.year + month_index // 12
        month = month_index % 12 + 1
        day = min(wall.day, _calendar.monthrange(year, month)[1])
        return wall.replace(year=year, month=month, day=day).replace(tzinfo=tz)

    days = step * 7 if unit is BucketUnit.WEEK else step
    return (wall + timedelta(days=days)).replace(tzinfo=tz)


# === Bucket generation ===


def make_bucket_starts(
    window: TimeWindow,
    unit: BucketUnit | str,
    step: int = 1,
    calendar: BucketCalendar = DEFAULT_CALENDAR,
) -> list[datetime]:
    """
    Ordered bucket start instants covering [window.start, window.end).

    The first candidate is the boundary of `unit` containing window.start;
    candidates advance by `step` units until reaching window.end, and only
    those at or after window.start are kept.

    Returns:
        Strictly increasing list of aware datetimes, empty when the window is
        empty or step is not positive
    """
    if window.is_empty or step < 1:
        return []

    starts: list[datetime] = []
    current = start_of_unit(window.start, unit, calendar)
    while current < window.end:
        if current >= window.start:
            starts.append(current)
        following = add_units(current, unit, step, calendar)
        if following <= current:
            break
        current = following
    return starts


def bucket_starts_for(
    window: TimeWindow,
    spec: BucketSpec,
    calendar: BucketCalendar = DEFAULT_CALENDAR,
) -> list[datetime]:
    """Bucket starts for a BucketSpec."""
    return make_bucket_starts(window, spec.unit, spec.step, calendar)


# === Bucket lookup ===


def bucket_for(instant: datetime, bucket_starts: list[datetime]) -> datetime:
    """
    Latest bucket start at or before `instant`.

    Instants before the first bucket fall back to the first bucket.

    Raises:
        ValueError: If bucket_starts is empty
    """
    if not bucket_starts:
        raise ValueError("Cannot assign a bucket from an empty bucket list")
    index = bisect_right(bucket_starts, instant) - 1
    return bucket_starts[max(index, 0)]
