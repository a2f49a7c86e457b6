"""Collaborator protocol definitions for history and metadata services.

Services depend on these shapes rather than on the concrete Last.fm
connector, so tests and alternative backends can be swapped in freely.

Key components:
- RecentPlaysPage / TrackInfo / ArtistTag: decoded responses
- HistoryAPI: paged play-history retrieval
- MetadataAPI: per-track duration/tags and artist-level tag fallback
- TopTracksAPI: top-track lists used as a fallback data source
"""

from typing import Any, Protocol, runtime_checkable

from attrs import define, field

from scrobblecharts.domain.entities import ScrobbleEvent, TopTrackEntry


@define(frozen=True, slots=True)
class RecentPlaysPage:
    """One page of a user's play history."""

    page: int
    total_pages: int
    events: tuple[ScrobbleEvent, ...] = field(factory=tuple, converter=tuple)


@define(frozen=True, slots=True)
class TrackInfo:
    """Track metadata as reported by the service.

    Attributes:
        duration_raw: Duration exactly as sent (milliseconds or seconds, may be absent)
        tags: Normalized tag names in service order
    """

    duration_raw: Any = None
    tags: tuple[str, ...] = field(factory=tuple, converter=tuple)


@define(frozen=True, slots=True)
class ArtistTag:
    """Artist-level tag with its weight (Last.fm "count")."""

    name: str
    weight: int = 0


@runtime_checkable
class HistoryAPI(Protocol):
    """Paged access to a user's play history."""

    async def get_recent_plays(
        self,
        user: str,
        from_unix: int | None = None,
        to_unix: int | None = None,
        page: int = 1,
        limit: int = 200,
    ) -> RecentPlaysPage:
        """Fetch one page of plays between from_unix and to_unix.

        Raises:
            LastFMError: Any request, transport, remote or decode failure
        """
        ...


@runtime_checkable
class MetadataAPI(Protocol):
    """Track and artist metadata lookups."""

    async def get_track_info(self, artist: str, track: str) -> TrackInfo:
        """Fetch duration and tags for a track."""
        ...

    async def get_artist_top_tags(self, artist: str) -> list[ArtistTag]:
        """Fetch weighted tags for an artist."""
        ...


@runtime_checkable
class TopTracksAPI(Protocol):
    """Top-track lists, per user and period or global."""

    async def get_top_tracks(
        self,
        user: str | None = None,
        period: str | None = None,
        limit: int = 20,
    ) -> list[TopTrackEntry]:
        """Fetch a top-tracks list."""
        ...
