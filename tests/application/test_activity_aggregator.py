"""Tests for the activity series service."""

from datetime import UTC, datetime
from unittest.mock import AsyncMock

import pytest

from scrobblecharts.application.services import ActivityAggregator, PaginatedFetcher
from scrobblecharts.domain.entities import ActivityPoint, TimeWindow
from scrobblecharts.domain.exceptions import RemoteAPIError


def utc(*args):
    return datetime(*args, tzinfo=UTC)


WINDOW = TimeWindow(utc(2024, 1, 1), utc(2024, 1, 8))


class TestActivityAggregator:
    """Test fetching and counting plays."""

    async def test_counts_plays_per_day(self, history_api_factory, make_play):
        history = history_api_factory(
            pages={
                1: (
                    make_play("A", "x", utc(2024, 1, 1, 8)),
                    make_play("A", "y", utc(2024, 1, 1, 9)),
                    make_play("B", "x", utc(2024, 1, 2, 9)),
                ),
                2: (
                    make_play("B", "z", utc(2024, 1, 3, 12)),
                    make_play("C", "x", utc(2024, 1, 3, 13)),
                    make_play("C", "x", None),
                ),
            }
        )
        aggregator = ActivityAggregator(
            PaginatedFetcher(history, page_size=200, max_pages=10, concurrency_limit=4)
        )

        points = await aggregator.build("alice", WINDOW, max_pages=5)

        assert points == [
            ActivityPoint(utc(2024, 1, 1), 2),
            ActivityPoint(utc(2024, 1, 2), 1),
            ActivityPoint(utc(2024, 1, 3), 2),
        ]

    async def test_passes_page_cap_to_fetcher(self):
        fetcher = AsyncMock(spec=PaginatedFetcher)
        fetcher.fetch_all.return_value = []
        aggregator = ActivityAggregator(fetcher)

        points = await aggregator.build("alice", WINDOW, max_pages=3, unit="week")

        assert points == []
        fetcher.fetch_all.assert_awaited_once_with("alice", WINDOW, max_pages=3)

    async def test_fetch_errors_propagate(self):
        fetcher = AsyncMock(spec=PaginatedFetcher)
        fetcher.fetch_all.side_effect = RemoteAPIError(17, "Login: User required to be logged in")
        aggregator = ActivityAggregator(fetcher)

        with pytest.raises(RemoteAPIError):
            await aggregator.build("alice", WINDOW)
