"""Shared fakes and fixtures for scrobblecharts tests."""

import asyncio
from datetime import datetime

import pytest

from scrobblecharts.domain.entities import ScrobbleEvent, TopTrackEntry
from scrobblecharts.infrastructure.connectors.protocols import (
    ArtistTag,
    RecentPlaysPage,
    TrackInfo,
)


def play(artist: str, track: str, when: datetime | None, page: int | None = None):
    """ScrobbleEvent at `when`; None makes a now-playing entry."""
    unix = int(when.timestamp()) if when is not None else None
    return ScrobbleEvent(artist=artist, track=track, unix_seconds=unix, page=page)


class FakeHistoryAPI:
    """In-memory HistoryAPI.

    Pages are served from `pages`; `delays` slows individual pages down and
    `errors` makes a page raise. Tracks peak concurrency.
    """

    def __init__(self, pages=None, total_pages=None, delays=None, errors=None):
        self.pages = pages or {}
        self.total_pages = total_pages if total_pages is not None else max(len(self.pages), 1)
        self.delays = delays or {}
        self.errors = errors or {}
        self.calls: list[dict] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def get_recent_plays(self, user, from_unix=None, to_unix=None, page=1, limit=200):
        self.calls.append(
            {"user": user, "from_unix": from_unix, "to_unix": to_unix, "page": page, "limit": limit}
        )
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delays.get(page, 0))
            if page in self.errors:
                raise self.errors[page]
            return RecentPlaysPage(
                page=page, total_pages=self.total_pages, events=self.pages.get(page, ())
            )
        finally:
            self.in_flight -= 1

    @property
    def requested_pages(self) -> list[int]:
        return [call["page"] for call in self.calls]


class FakeMetadataAPI:
    """In-memory MetadataAPI keyed by lowercase names.

    Values may be an exception instance, which is raised instead of returned.
    """

    def __init__(self, tracks=None, artists=None, delay=0.0):
        self.tracks = {(a.lower(), t.lower()): v for (a, t), v in (tracks or {}).items()}
        self.artists = {a.lower(): v for a, v in (artists or {}).items()}
        self.delay = delay
        self.track_calls: list[tuple[str, str]] = []
        self.artist_calls: list[str] = []

    async def get_track_info(self, artist, track):
        self.track_calls.append((artist, track))
        await asyncio.sleep(self.delay)
        result = self.tracks.get((artist.lower(), track.lower()), TrackInfo())
        if isinstance(result, Exception):
            raise result
        return result

    async def get_artist_top_tags(self, artist):
        self.artist_calls.append(artist)
        await asyncio.sleep(self.delay)
        result = self.artists.get(artist.lower(), [])
        if isinstance(result, Exception):
            raise result
        return list(result)


@pytest.fixture
def history_api_factory():
    """Factory for FakeHistoryAPI instances."""
    return FakeHistoryAPI


@pytest.fixture
def metadata_api_factory():
    """Factory for FakeMetadataAPI instances."""
    return FakeMetadataAPI


@pytest.fixture
def make_play():
    return play


@pytest.fixture
def sample_top_tracks():
    """Two tracks with known playcounts."""
    return [
        TopTrackEntry(artist="Boards of Canada", track="Roygbiv", playcount=10),
        TopTrackEntry(artist="Miles Davis", track="So What", playcount=40),
    ]


@pytest.fixture
def sample_metadata_api():
    """Metadata for sample_top_tracks: 200 s electronic/ambient and 100 s jazz."""
    return FakeMetadataAPI(
        tracks={
            ("Boards of Canada", "Roygbiv"): TrackInfo(
                duration_raw="200000", tags=("electronic", "ambient")
            ),
            ("Miles Davis", "So What"): TrackInfo(duration_raw=100, tags=("jazz",)),
        },
        artists={"Boards of Canada": [ArtistTag("idm", 50)]},
    )
