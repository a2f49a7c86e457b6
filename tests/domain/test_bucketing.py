"""Tests for calendar-aligned bucket generation."""

from datetime import UTC, datetime, timedelta
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import pytest

from scrobblecharts.domain.entities import BucketCalendar, BucketSpec, BucketUnit, TimeWindow
from scrobblecharts.domain.transforms import (
    add_units,
    bucket_for,
    bucket_starts_for,
    make_bucket_starts,
    start_of_unit,
)


def utc(*args):
    return datetime(*args, tzinfo=UTC)


class TestMakeBucketStarts:
    """Test bucket boundaries for each unit."""

    def test_day_buckets_for_aligned_window(self):
        window = TimeWindow(utc(2024, 1, 1), utc(2024, 1, 4))

        starts = make_bucket_starts(window, BucketUnit.DAY)

        assert starts == [utc(2024, 1, 1), utc(2024, 1, 2), utc(2024, 1, 3)]

    def test_hour_buckets_cover_one_day(self):
        window = TimeWindow(utc(2024, 1, 1), utc(2024, 1, 2))

        starts = make_bucket_starts(window, BucketUnit.HOUR)

        assert len(starts) == 24
        assert starts[0] == utc(2024, 1, 1, 0)
        assert starts[-1] == utc(2024, 1, 1, 23)

    def test_unaligned_window_skips_boundary_before_start(self):
        """The containing boundary precedes the window start, so it is not emitted."""
        window = TimeWindow(utc(2024, 1, 1, 10, 30), utc(2024, 1, 3, 10))

        starts = make_bucket_starts(window, BucketUnit.DAY)

        assert starts == [utc(2024, 1, 2), utc(2024, 1, 3)]

    def test_week_buckets_start_on_monday(self):
        window = TimeWindow(utc(2024, 1, 1), utc(2024, 1, 29))

        starts = make_bucket_starts(window, BucketUnit.WEEK)

        assert starts == [utc(2024, 1, 1), utc(2024, 1, 8), utc(2024, 1, 15), utc(2024, 1, 22)]
        assert all(start.weekday() == 0 for start in starts)

    def test_month_buckets(self):
        window = TimeWindow(utc(2024, 1, 15), utc(2024, 4, 15))

        starts = make_bucket_starts(window, BucketUnit.MONTH)

        assert starts == [utc(2024, 2, 1), utc(2024, 3, 1), utc(2024, 4, 1)]

    def test_step_skips_units(self):
        window = TimeWindow(utc(2024, 1, 1), utc(2024, 1, 6))

        starts = make_bucket_starts(window, BucketUnit.DAY, step=2)

        assert starts == [utc(2024, 1, 1), utc(2024, 1, 3), utc(2024, 1, 5)]

    def test_empty_window_gives_no_buckets(self):
        window = TimeWindow(utc(2024, 1, 1), utc(2024, 1, 1))

        assert make_bucket_starts(window, BucketUnit.DAY) == []

    def test_non_positive_step_gives_no_buckets(self):
        window = TimeWindow(utc(2024, 1, 1), utc(2024, 1, 6))

        assert make_bucket_starts(window, BucketUnit.DAY, step=0) == []

    @pytest.mark.parametrize("unit", list(BucketUnit))
    def test_starts_are_strictly_increasing_and_inside_window(self, unit):
        window = TimeWindow(utc(2023, 11, 7, 13, 45), utc(2024, 2, 20, 8))

        starts = make_bucket_starts(window, unit)

        assert starts
        assert all(a < b for a, b in zip(starts, starts[1:], strict=False))
        assert all(window.start <= start < window.end for start in starts)

    def test_identical_inputs_give_identical_output(self):
        window = TimeWindow(utc(2024, 1, 1, 5), utc(2024, 3, 1))
        spec = BucketSpec(unit="week", step=2)

        assert bucket_starts_for(window, spec) == bucket_starts_for(window, spec)

    def test_day_buckets_follow_local_midnight_across_dst(self):
        try:
            berlin = ZoneInfo("Europe/Berlin")
        except ZoneInfoNotFoundError:
            pytest.skip("time zone database not available")
        calendar = BucketCalendar(timezone="Europe/Berlin")
        window = TimeWindow(datetime(2024, 3, 30, tzinfo=berlin), datetime(2024, 4, 2, tzinfo=berlin))

        starts = make_bucket_starts(window, BucketUnit.DAY, calendar=calendar)

        assert [s.astimezone(berlin).day for s in starts] == [30, 31, 1]
        assert all(s.astimezone(berlin).hour == 0 for s in starts)
        # 31 March is a 23-hour day in Berlin
        assert starts[2].astimezone(UTC) - starts[1].astimezone(UTC) == timedelta(hours=23)


class TestAlignment:
    """Test natural unit boundaries and stepping."""

    def test_week_start_honours_first_weekday(self):
        sunday_calendar = BucketCalendar(first_weekday=6)

        start = start_of_unit(utc(2024, 1, 3, 15), BucketUnit.WEEK, sunday_calendar)

        assert start == utc(2023, 12, 31)

    def test_month_step_clamps_day(self):
        assert add_units(utc(2024, 1, 31), BucketUnit.MONTH, 1) == utc(2024, 2, 29)

    def test_negative_month_step_crosses_year(self):
        assert add_units(utc(2024, 1, 15), BucketUnit.MONTH, -1) == utc(2023, 12, 15)

    def test_hour_step_is_absolute(self):
        assert add_units(utc(2024, 1, 1, 23), "hour", 2) == utc(2024, 1, 2, 1)


class TestBucketFor:
    """Test assigning instants to buckets."""

    @pytest.fixture
    def starts(self):
        return [utc(2024, 1, 1), utc(2024, 1, 2), utc(2024, 1, 3)]

    def test_instant_between_boundaries(self, starts):
        assert bucket_for(utc(2024, 1, 2, 18), starts) == utc(2024, 1, 2)

    def test_instant_on_boundary(self, starts):
        assert bucket_for(utc(2024, 1, 3), starts) == utc(2024, 1, 3)

    def test_instant_before_first_bucket_uses_first(self, starts):
        assert bucket_for(utc(2023, 12, 31, 22), starts) == utc(2024, 1, 1)

    def test_empty_bucket_list_raises(self):
        with pytest.raises(ValueError):
            bucket_for(utc(2024, 1, 1), [])
