"""
Play-count aggregation by calendar unit.

Buckets are derived from the data itself: each play is counted in the natural
day, week or month boundary that contains it.
"""

from collections.abc import Iterable

from toolz import countby

from scrobblecharts.config import get_logger
from scrobblecharts.domain.entities import (
    ActivityPoint,
    BucketCalendar,
    BucketUnit,
    ScrobbleEvent,
    TimeWindow,
)
from scrobblecharts.domain.transforms.bucketing import DEFAULT_CALENDAR, start_of_unit

logger = get_logger(__name__)

ACTIVITY_UNITS = frozenset({BucketUnit.DAY, BucketUnit.WEEK, BucketUnit.MONTH})


def aggregate_activity(
    events: Iterable[ScrobbleEvent],
    unit: BucketUnit | str = BucketUnit.DAY,
    calendar: BucketCalendar = DEFAULT_CALENDAR,
    window: TimeWindow | None = None,
) -> list[ActivityPoint]:
    """
    Count plays per calendar bucket.

    Events without a timestamp ("now playing") are skipped, as are events
    outside `window` when one is given. Units other than day, week and month
    are counted per day.

    Returns:
        Nonzero buckets sorted by start ascending
    """
    unit = BucketUnit(unit)
    if unit not in ACTIVITY_UNITS:
        logger.debug(f"Unsupported activity unit {unit}, counting per day")
        unit = BucketUnit.DAY

    instants = [event.played_at for event in events if event.played_at is not None]
    if window is not None:
        instants = [instant for instant in instants if window.contains(instant)]

    counts = countby(lambda instant: start_of_unit(instant, unit, calendar), instants)
    return [
        ActivityPoint(bucket_start=start, count=count)
        for start, count in sorted(counts.items())
    ]
