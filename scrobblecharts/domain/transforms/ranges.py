"""Preset time ranges offered to users, with their windows and bucket specs."""

from datetime import UTC, datetime, timedelta
from enum import StrEnum

from scrobblecharts.domain.entities import (
    BucketCalendar,
    BucketSpec,
    BucketUnit,
    TimeWindow,
)
from scrobblecharts.domain.transforms.bucketing import DEFAULT_CALENDAR, add_units

# Audioscrobbler began recording plays in 2002
SCROBBLE_HISTORY_START = datetime(2002, 1, 1, tzinfo=UTC)


class RangeOption(StrEnum):
    """Time ranges selectable for charts and top-track lists."""

    ONE_DAY = "1d"
    SEVEN_DAYS = "7d"
    ONE_MONTH = "1m"
    SIX_MONTHS = "6m"
    ONE_YEAR = "1y"
    OVERALL = "overall"

    @property
    def title(self) -> str:
        return _TITLES[self]

    @property
    def lastfm_period(self) -> str:
        """Period for user.getTopTracks. Last.fm has no one-day period, so 1d uses 7day."""
        return _PERIODS[self]

    @property
    def bucket_spec(self) -> BucketSpec:
        return _BUCKETS[self]

    def window(
        self, now: datetime, calendar: BucketCalendar = DEFAULT_CALENDAR
    ) -> TimeWindow:
        """Window ending at `now`."""
        match self:
            case RangeOption.ONE_DAY:
                start = now - timedelta(days=1)
            case RangeOption.SEVEN_DAYS:
                start = now - timedelta(days=7)
            case RangeOption.ONE_MONTH:
                start = add_units(now, BucketUnit.MONTH, -1, calendar)
            case RangeOption.SIX_MONTHS:
                start = add_units(now, BucketUnit.MONTH, -6, calendar)
            case RangeOption.ONE_YEAR:
                start = add_units(now, BucketUnit.MONTH, -12, calendar)
            case RangeOption.OVERALL:
                start = SCROBBLE_HISTORY_START
        return TimeWindow(start=start, end=now)


_TITLES = {
    RangeOption.ONE_DAY: "1 day",
    RangeOption.SEVEN_DAYS: "7 days",
    RangeOption.ONE_MONTH: "1 month",
    RangeOption.SIX_MONTHS: "6 months",
    RangeOption.ONE_YEAR: "1 year",
    RangeOption.OVERALL: "All Time",
}

_PERIODS = {
    RangeOption.ONE_DAY: "7day",
    RangeOption.SEVEN_DAYS: "7day",
    RangeOption.ONE_MONTH: "1month",
    RangeOption.SIX_MONTHS: "6month",
    RangeOption.ONE_YEAR: "12month",
    RangeOption.OVERALL: "overall",
}

_BUCKETS = {
    RangeOption.ONE_DAY: BucketSpec(unit=BucketUnit.HOUR),
    RangeOption.SEVEN_DAYS: BucketSpec(unit=BucketUnit.DAY),
    RangeOption.ONE_MONTH: BucketSpec(unit=BucketUnit.DAY),
    RangeOption.SIX_MONTHS: BucketSpec(unit=BucketUnit.WEEK),
    RangeOption.ONE_YEAR: BucketSpec(unit=BucketUnit.MONTH),
    RangeOption.OVERALL: BucketSpec(unit=BucketUnit.MONTH),
}
