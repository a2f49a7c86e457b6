"""Service connectors for the Last.fm API."""

from scrobblecharts.infrastructure.connectors.lastfm import MAX_PAGE_SIZE, LastFMConnector
from scrobblecharts.infrastructure.connectors.protocols import (
    ArtistTag,
    HistoryAPI,
    MetadataAPI,
    RecentPlaysPage,
    TopTracksAPI,
    TrackInfo,
)

__all__ = [
    "MAX_PAGE_SIZE",
    "ArtistTag",
    "HistoryAPI",
    "LastFMConnector",
    "MetadataAPI",
    "RecentPlaysPage",
    "TopTracksAPI",
    "TrackInfo",
]
