"""Paged retrieval of a user's play history.

The first page is fetched on its own because ``totalPages`` is only known
after one response. Remaining pages are fetched in sequential batches of
concurrent requests, and every batch is ordered by page number before it is
appended, so the output never depends on which request finished first.
"""

from operator import itemgetter

from scrobblecharts.application.utilities import gather_in_batches
from scrobblecharts.config import get_config, get_logger
from scrobblecharts.domain.entities import ScrobbleEvent, TimeWindow
from scrobblecharts.infrastructure.connectors.protocols import (
    HistoryAPI,
    RecentPlaysPage,
)

logger = get_logger(__name__)


class PaginatedFetcher:
    """Fetches every page of a user's plays inside a window.

    Any failing request aborts the whole fetch with the original LastFMError.
    Nothing is retried and no partial result is returned.
    """

    def __init__(
        self,
        history_api: HistoryAPI,
        page_size: int | None = None,
        max_pages: int | None = None,
        concurrency_limit: int | None = None,
    ) -> None:
        """Initialize with a history source and default paging limits.

        Args:
            history_api: Source of recent-play pages
            page_size: Plays per page (defaults to LASTFM_RECENT_TRACKS_PAGE_SIZE)
            max_pages: Upper bound on pages fetched (defaults to LASTFM_RECENT_TRACKS_MAX_PAGES)
            concurrency_limit: Concurrent requests per batch (defaults to LASTFM_PAGE_CONCURRENCY)
        """
        self.history_api = history_api
        self.page_size = (
            page_size
            if page_size is not None
            else get_config("LASTFM_RECENT_TRACKS_PAGE_SIZE", 200)
        )
        self.max_pages = (
            max_pages
            if max_pages is not None
            else get_config("LASTFM_RECENT_TRACKS_MAX_PAGES", 10)
        )
        self.concurrency_limit = (
            concurrency_limit
            if concurrency_limit is not None
            else get_config("LASTFM_PAGE_CONCURRENCY", 4)
        )

    async def fetch_all(
        self,
        user: str,
        window: TimeWindow,
        page_size: int | None = None,
        max_pages: int | None = None,
        concurrency_limit: int | None = None,
    ) -> list[ScrobbleEvent]:
        """Fetch plays between window.start and window.end.

        Returns:
            Events in page order, and in service order within each page

        Raises:
            LastFMError: First failure of any page request
        """
        page_size = page_size if page_size is not None else self.page_size
        max_pages = max_pages if max_pages is not None else self.max_pages
        concurrency_limit = max(
            1,
            concurrency_limit if concurrency_limit is not None else self.concurrency_limit,
        )

        async def fetch_page(page: int) -> tuple[int, RecentPlaysPage]:
            result = await self.history_api.get_recent_plays(
                user,
                from_unix=window.from_unix,
                to_unix=window.to_unix,
                page=page,
                limit=page_size,
            )
            return page, result

        _, first = await fetch_page(1)
        pages_to_fetch = min(first.total_pages, max_pages)
        events = list(first.events)

        logger.debug(
            "Fetched first page of recent plays",
            user=user,
            total_pages=first.total_pages,
            pages_to_fetch=pages_to_fetch,
        )

        if pages_to_fetch <= 1:
            return events

        results = await gather_in_batches(
            list(range(2, pages_to_fetch + 1)),
            fetch_page,
            batch_size=concurrency_limit,
            logger_instance=logger,
        )
        for _, page in sorted(results, key=itemgetter(0)):
            events.extend(page.events)

        logger.info(
            f"Fetched {len(events)} plays from {pages_to_fetch} pages", user=user
        )
        return events
