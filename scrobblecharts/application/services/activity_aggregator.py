"""Play-count series over natural calendar units."""

from scrobblecharts.application.services.paginated_fetcher import PaginatedFetcher
from scrobblecharts.config import get_config, get_logger
from scrobblecharts.domain.entities import (
    ActivityPoint,
    BucketCalendar,
    BucketUnit,
    TimeWindow,
)
from scrobblecharts.domain.transforms import aggregate_activity

logger = get_logger(__name__)


class ActivityAggregator:
    """Counts a user's plays per day, week or month."""

    def __init__(
        self, fetcher: PaginatedFetcher, calendar: BucketCalendar | None = None
    ) -> None:
        self.fetcher = fetcher
        self.calendar = calendar or BucketCalendar(
            timezone=get_config("CHART_TIMEZONE", "UTC"),
            first_weekday=get_config("CHART_FIRST_WEEKDAY", 0),
        )

    async def build(
        self,
        user: str,
        window: TimeWindow,
        max_pages: int | None = None,
        unit: BucketUnit | str = BucketUnit.DAY,
    ) -> list[ActivityPoint]:
        """Fetch the window's plays and count them per unit.

        Raises:
            LastFMError: History could not be fetched
        """
        if max_pages is None:
            max_pages = get_config("LASTFM_ACTIVITY_MAX_PAGES", 50)
        events = await self.fetcher.fetch_all(user, window, max_pages=max_pages)
        points = aggregate_activity(events, unit, self.calendar, window)
        logger.debug(
            f"Counted {sum(p.count for p in points)} plays in {len(points)} buckets",
            user=user,
            unit=str(unit),
        )
        return points
