"""Tests for genre attribution arithmetic."""

from datetime import UTC, datetime

import pytest

from scrobblecharts.domain.entities import (
    ScrobbleEvent,
    TimeWindow,
    TrackKey,
    TrackMetadata,
)
from scrobblecharts.domain.transforms import (
    assemble_series,
    attribute_plays,
    collapse_top_genres,
    distribute_uniformly,
    group_plays_by_bucket,
    rank_genres,
    split_across_tags,
)


def utc(*args):
    return datetime(*args, tzinfo=UTC)


DAYS = [utc(2024, 1, 1), utc(2024, 1, 2), utc(2024, 1, 3)]


class TestSplitAcrossTags:
    """Test splitting seconds over a track's tags."""

    def test_even_split(self):
        assert split_across_tags(90.0, ("rock", "pop")) == {"rock": 45.0, "pop": 45.0}

    def test_no_tags_is_other(self):
        assert split_across_tags(90.0, ()) == {"other": 90.0}


class TestDistributeUniformly:
    """Test uniform spreading for top-track lists."""

    def test_seconds_spread_over_buckets_then_tags(self):
        per_bucket, totals = distribute_uniformly(
            [(600.0, ("rock",)), (300.0, ())], DAYS
        )

        assert totals == {"rock": 600.0, "other": 300.0}
        for start in DAYS:
            assert per_bucket[start] == pytest.approx({"rock": 200.0, "other": 100.0})

    def test_no_buckets(self):
        assert distribute_uniformly([(600.0, ("rock",))], []) == ({}, {})

    def test_bucket_sums_equal_totals(self):
        per_bucket, totals = distribute_uniformly(
            [(1000.0, ("a", "b", "c")), (7.0, ("b",))], DAYS
        )

        bucket_sum = sum(sum(genres.values()) for genres in per_bucket.values())
        assert bucket_sum == pytest.approx(1007.0)
        assert sum(totals.values()) == pytest.approx(1007.0)


class TestAttributePlays:
    """Test per-play attribution."""

    @pytest.fixture
    def keys(self):
        return TrackKey("Artist", "Song"), TrackKey("Other Artist", "Tune")

    def test_duration_times_count_split_over_tags(self, keys):
        song, tune = keys
        plays = {DAYS[0]: {song: 2}, DAYS[1]: {song: 1, tune: 1}}
        metadata = {song: TrackMetadata(200.0, ("rock", "pop"))}

        per_bucket, totals = attribute_plays(plays, metadata)

        assert per_bucket[DAYS[0]] == {"rock": 200.0, "pop": 200.0}
        # tune has no metadata and falls back to the 180 s default
        assert per_bucket[DAYS[1]] == {"rock": 100.0, "pop": 100.0, "other": 180.0}
        assert totals == {"rock": 300.0, "pop": 300.0, "other": 180.0}

    def test_tag_limit_truncates(self, keys):
        song, _ = keys
        plays = {DAYS[0]: {song: 2}}
        metadata = {song: TrackMetadata(200.0, ("rock", "pop"))}

        per_bucket, totals = attribute_plays(plays, metadata, tag_limit=1)

        assert per_bucket[DAYS[0]] == {"rock": 400.0}
        assert totals == {"rock": 400.0}


class TestCollapseTopGenres:
    """Test the top-N and "other" rule."""

    def test_ranking_breaks_ties_by_name_and_drops_zero(self):
        assert rank_genres({"b": 10.0, "a": 10.0, "c": 20.0, "z": 0.0}) == ["c", "a", "b"]

    def test_tail_merges_into_other(self):
        totals = {f"g{i}": float(100 - i * 10) for i in range(1, 10)}
        per_bucket = {DAYS[0]: dict(totals)}

        buckets, collapsed, ordered = collapse_top_genres(per_bucket, totals, top_n=7)

        assert ordered == ["g1", "g2", "g3", "g4", "g5", "g6", "g7", "other"]
        assert collapsed["other"] == pytest.approx(20.0 + 10.0)
        assert "g8" not in collapsed
        assert buckets[DAYS[0]]["other"] == pytest.approx(30.0)
        assert sum(collapsed.values()) == pytest.approx(sum(totals.values()))

    def test_other_already_ranked_is_not_repeated(self):
        totals = {"other": 100.0, "rock": 50.0, "polka": 1.0}

        _, collapsed, ordered = collapse_top_genres({}, totals, top_n=2)

        assert ordered == ["other", "rock"]
        assert collapsed == {"other": 101.0, "rock": 50.0}

    def test_no_other_when_everything_fits(self):
        _, collapsed, ordered = collapse_top_genres({}, {"rock": 5.0, "jazz": 3.0}, top_n=7)

        assert ordered == ["rock", "jazz"]
        assert "other" not in collapsed

    def test_series_has_entry_for_every_bucket(self):
        series = assemble_series(DAYS, {DAYS[1]: {"rock": 10.0}}, {"rock": 10.0})

        assert list(series.per_bucket_genre_seconds) == DAYS
        assert series.per_bucket_genre_seconds[DAYS[0]] == {}
        assert series.ordered_top_genres == ("rock",)


class TestGroupPlaysByBucket:
    """Test counting plays per bucket and track."""

    def _event(self, artist, track, when):
        unix = int(when.timestamp()) if when else None
        return ScrobbleEvent(artist=artist, track=track, unix_seconds=unix)

    def test_groups_and_filters(self):
        window = TimeWindow(utc(2024, 1, 1), utc(2024, 1, 4))
        events = [
            self._event("A", "x", utc(2024, 1, 1, 9)),
            self._event(" A ", "x", utc(2024, 1, 1, 22)),
            self._event("A", "x", utc(2024, 1, 3, 1)),
            self._event("B", "y", None),  # now playing
            self._event("B", "y", utc(2024, 1, 5)),  # outside window
            self._event("", "y", utc(2024, 1, 2)),  # blank artist
        ]

        grouped = group_plays_by_bucket(events, window, DAYS)

        key = TrackKey("A", "x")
        assert grouped == {DAYS[0]: {key: 2}, DAYS[2]: {key: 1}}

    def test_play_before_first_bucket_lands_in_first(self):
        window = TimeWindow(utc(2024, 1, 1, 10), utc(2024, 1, 3))
        starts = [utc(2024, 1, 2)]

        grouped = group_plays_by_bucket([self._event("A", "x", utc(2024, 1, 1, 12))], window, starts)

        assert grouped == {utc(2024, 1, 2): {TrackKey("A", "x"): 1}}

    def test_out_of_range_timestamp_is_skipped(self):
        window = TimeWindow(utc(2024, 1, 1), utc(2024, 1, 4))
        events = [
            ScrobbleEvent(artist="A", track="x", unix_seconds=10**15),
            self._event("A", "x", utc(2024, 1, 2, 9)),
        ]

        grouped = group_plays_by_bucket(events, window, DAYS)

        assert grouped == {DAYS[1]: {TrackKey("A", "x"): 1}}
