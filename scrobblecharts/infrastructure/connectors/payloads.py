"""Pydantic models for Last.fm JSON payloads.

Last.fm serializes a one-element list as a bare object (``"tag": {...}``
instead of ``"tag": [{...}]``) and an empty list as an empty string. List
fields run through ``_one_or_many`` so every variant decodes to one ordered
list before it reaches the rest of the application.
"""

from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, field_validator


def _one_or_many(value: Any) -> Any:
    if value is None or value == "":
        return []
    if isinstance(value, dict):
        return [value]
    return value


class LastFMModel(BaseModel):
    """Base model: ignore unknown keys, accept aliases like ``#text`` and ``@attr``."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class ErrorPayload(LastFMModel):
    error: int
    message: str = ""


class ArtistRef(LastFMModel):
    """Artist reference; recent tracks use ``#text``, other methods use ``name``."""

    name: str | None = None
    text: str | None = Field(default=None, alias="#text")

    @property
    def display_name(self) -> str:
        return self.name or self.text or ""


# =============================================================================
# user.getRecentTracks
# =============================================================================


class PlayDate(LastFMModel):
    uts: str | int | None = None


class RecentTrackPayload(LastFMModel):
    name: str = ""
    artist: ArtistRef = Field(default_factory=ArtistRef)
    date: PlayDate | None = None
    attr: dict[str, Any] = Field(default_factory=dict, alias="@attr")

    @property
    def now_playing(self) -> bool:
        return str(self.attr.get("nowplaying", "")).lower() == "true"

    @property
    def unix_seconds(self) -> int | None:
        """Play timestamp; None for now-playing or unparseable entries."""
        if self.now_playing or self.date is None or self.date.uts is None:
            return None
        try:
            return int(self.date.uts)
        except (TypeError, ValueError):
            return None


class PageAttr(LastFMModel):
    page: int = 1
    total_pages: int = Field(default=1, alias="totalPages")


class RecentTracksBody(LastFMModel):
    track: Annotated[list[RecentTrackPayload], BeforeValidator(_one_or_many)] = Field(
        default_factory=list
    )
    attr: PageAttr = Field(default_factory=PageAttr, alias="@attr")


class RecentTracksResponse(LastFMModel):
    recenttracks: RecentTracksBody


# =============================================================================
# track.getInfo / artist.getTopTags
# =============================================================================


class TagPayload(LastFMModel):
    name: str = ""
    count: int | None = None


class TopTagsBody(LastFMModel):
    tag: Annotated[list[TagPayload], BeforeValidator(_one_or_many)] = Field(
        default_factory=list
    )


class TrackInfoBody(LastFMModel):
    name: str = ""
    duration: str | int | float | None = None
    toptags: TopTagsBody | None = None

    @field_validator("toptags", mode="before")
    @classmethod
    def _empty_toptags(cls, value: Any) -> Any:
        return value if isinstance(value, dict) else None


class TrackInfoResponse(LastFMModel):
    track: TrackInfoBody


class ArtistTopTagsResponse(LastFMModel):
    toptags: TopTagsBody = Field(default_factory=TopTagsBody)

    @field_validator("toptags", mode="before")
    @classmethod
    def _empty_toptags(cls, value: Any) -> Any:
        return value if isinstance(value, dict) else {}


# =============================================================================
# user.getTopTracks / chart.getTopTracks
# =============================================================================


class TopTrackPayload(LastFMModel):
    name: str = ""
    playcount: int = 0
    artist: ArtistRef = Field(default_factory=ArtistRef)


class TopTracksBody(LastFMModel):
    track: Annotated[list[TopTrackPayload], BeforeValidator(_one_or_many)] = Field(
        default_factory=list
    )


class UserTopTracksResponse(LastFMModel):
    toptracks: TopTracksBody


class ChartTopTracksResponse(LastFMModel):
    tracks: TopTracksBody
