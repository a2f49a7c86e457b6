"""Last.fm API integration for scrobblecharts.

This module talks to the Last.fm JSON API (https://www.last.fm/api) over
httpx, decoding responses into pydantic payloads and converting them into
domain objects. Every call is rate limited and every failure is mapped onto
the LastFMError taxonomy so that callers never see httpx or pydantic errors.

Key components:
- LastFMConnector: Async client implementing HistoryAPI, MetadataAPI and TopTracksAPI
- MAX_PAGE_SIZE: Largest page user.getRecentTracks accepts

The module supports:
- Paged play history (user.getRecentTracks)
- Track duration and tags (track.getInfo)
- Artist-level tags as a fallback genre source (artist.getTopTags)
- Per-user and global top tracks (user.getTopTracks, chart.getTopTracks)
"""

import contextlib
from typing import Any, TypeVar

from aiolimiter import AsyncLimiter
from attrs import define, field
import httpx
from pydantic import BaseModel, ValidationError

from scrobblecharts.config import get_config, get_logger, resilient_operation
from scrobblecharts.domain.entities import ScrobbleEvent, TopTrackEntry, normalize_tag
from scrobblecharts.domain.exceptions import (
    DecodeError,
    InvalidRequestError,
    RemoteAPIError,
    TransportError,
)
from scrobblecharts.infrastructure.connectors.payloads import (
    ArtistTopTagsResponse,
    ChartTopTracksResponse,
    ErrorPayload,
    RecentTracksResponse,
    TopTracksBody,
    TrackInfoResponse,
    UserTopTracksResponse,
)
from scrobblecharts.infrastructure.connectors.protocols import (
    ArtistTag,
    RecentPlaysPage,
    TrackInfo,
)

# Get contextual logger with service binding
logger = get_logger(__name__).bind(service="lastfm")

M = TypeVar("M", bound=BaseModel)

MAX_PAGE_SIZE = 200


def _require(value: str | None, what: str) -> str:
    if value is None or not value.strip():
        raise InvalidRequestError(f"{what} must not be empty")
    return value


@define(slots=True)
class LastFMConnector:
    """Last.fm API connector with domain model conversion.

    Implements the HistoryAPI, MetadataAPI and TopTracksAPI protocols. Use as
    an async context manager, or call aclose() when done.

    Attributes:
        api_key: Last.fm API key (defaults to LASTFM_KEY)
        base_url: API root URL
        timeout: Per-request timeout in seconds
        rate_limit: Maximum calls per second; None or 0 disables limiting
        transport: Optional httpx transport, e.g. httpx.MockTransport in tests
    """

    api_key: str | None = field(default=None)
    base_url: str = field(factory=lambda: get_config("LASTFM_API_BASE_URL"))
    timeout: float = field(factory=lambda: get_config("LASTFM_API_TIMEOUT"))
    rate_limit: float | None = field(
        factory=lambda: get_config("LASTFM_API_RATE_LIMIT")
    )
    transport: httpx.AsyncBaseTransport | None = field(default=None, repr=False)
    client: httpx.AsyncClient = field(init=False, repr=False)
    _api_rate_limiter: AsyncLimiter | None = field(init=False, default=None, repr=False)
    connector_name: str = "lastfm"

    def __attrs_post_init__(self) -> None:
        """Initialize the HTTP client and rate limiter."""
        self.api_key = self.api_key or get_config("LASTFM_KEY")

        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            headers={"User-Agent": get_config("LASTFM_API_USER_AGENT")},
            transport=self.transport,
        )

        if self.rate_limit:
            self._api_rate_limiter = AsyncLimiter(self.rate_limit, 1)

    async def __aenter__(self) -> "LastFMConnector":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.client.aclose()

    # =========================================================================
    # TRANSPORT
    # =========================================================================

    async def _call(self, method: str, params: dict[str, Any]) -> dict[str, Any]:
        """Issue one API call and return the decoded JSON object.

        Raises:
            InvalidRequestError: No API key configured
            TransportError: Network failure or timeout
            RemoteAPIError: Error payload or non-200 status
            DecodeError: Body could not be decoded or is not a JSON object
        """
        if not self.api_key:
            raise InvalidRequestError("Last.fm API key is not configured")

        query = {"method": method, "api_key": self.api_key, "format": "json"}
        query.update({key: value for key, value in params.items() if value is not None})

        limiter = self._api_rate_limiter or contextlib.nullcontext()
        try:
            async with limiter:
                response = await self.client.get("", params=query)
        except httpx.TimeoutException as e:
            raise TransportError(f"{method} timed out: {e}") from e
        except httpx.DecodingError as e:
            raise DecodeError(f"{method} returned an undecodable body: {e}") from e
        except httpx.RequestError as e:
            raise TransportError(f"{method} failed: {e}") from e

        try:
            payload = response.json()
        except ValueError as e:
            if response.status_code != httpx.codes.OK:
                raise RemoteAPIError(
                    response.status_code, response.reason_phrase or "HTTP error"
                ) from e
            raise DecodeError(f"{method} returned a non-JSON body") from e

        if isinstance(payload, dict) and "error" in payload:
            error = self._decode(ErrorPayload, payload, method)
            raise RemoteAPIError(error.error, error.message)

        if response.status_code != httpx.codes.OK:
            raise RemoteAPIError(
                response.status_code, response.reason_phrase or "HTTP error"
            )

        if not isinstance(payload, dict):
            raise DecodeError(f"{method} returned {type(payload).__name__}, not an object")

        logger.debug(f"Last.fm {method} ok", params=params)
        return payload

    @staticmethod
    def _decode(model: type[M], payload: dict[str, Any], method: str) -> M:
        try:
            return model.model_validate(payload)
        except ValidationError as e:
            raise DecodeError(f"Unexpected {method} payload: {e}") from e

    # =========================================================================
    # HISTORY
    # =========================================================================

    @resilient_operation("get_recent_plays")
    async def get_recent_plays(
        self,
        user: str,
        from_unix: int | None = None,
        to_unix: int | None = None,
        page: int = 1,
        limit: int = MAX_PAGE_SIZE,
    ) -> RecentPlaysPage:
        """Fetch one page of a user's plays, most recent first.

        A "now playing" entry is returned with no timestamp.
        """
        user = _require(user, "Username")
        if page < 1:
            raise InvalidRequestError(f"Page must be >= 1, got {page}")
        if not 1 <= limit <= MAX_PAGE_SIZE:
            raise InvalidRequestError(
                f"Limit must be between 1 and {MAX_PAGE_SIZE}, got {limit}"
            )

        method = "user.getRecentTracks"
        data = await self._call(
            method,
            {"user": user, "page": page, "limit": limit, "from": from_unix, "to": to_unix},
        )
        body = self._decode(RecentTracksResponse, data, method).recenttracks

        events = tuple(
            ScrobbleEvent(
                artist=item.artist.display_name,
                track=item.name,
                unix_seconds=item.unix_seconds,
                page=page,
            )
            for item in body.track
        )
        return RecentPlaysPage(
            page=body.attr.page, total_pages=body.attr.total_pages, events=events
        )

    # =========================================================================
    # METADATA
    # =========================================================================

    @resilient_operation("get_track_info")
    async def get_track_info(self, artist: str, track: str) -> TrackInfo:
        """Fetch the raw duration and normalized tags of a track."""
        method = "track.getInfo"
        data = await self._call(
            method,
            {
                "artist": _require(artist, "Artist"),
                "track": _require(track, "Track"),
                "autocorrect": 1,
            },
        )
        body = self._decode(TrackInfoResponse, data, method).track

        names = [tag.name for tag in body.toptags.tag] if body.toptags else []
        tags = [tag for tag in map(normalize_tag, names) if tag]
        return TrackInfo(duration_raw=body.duration, tags=tags)

    @resilient_operation("get_artist_top_tags")
    async def get_artist_top_tags(self, artist: str) -> list[ArtistTag]:
        """Fetch an artist's tags with their weights, in service order."""
        method = "artist.getTopTags"
        data = await self._call(
            method, {"artist": _require(artist, "Artist"), "autocorrect": 1}
        )
        body = self._decode(ArtistTopTagsResponse, data, method).toptags

        return [
            ArtistTag(name=name, weight=tag.count or 0)
            for tag in body.tag
            if (name := normalize_tag(tag.name))
        ]

    # =========================================================================
    # TOP TRACKS
    # =========================================================================

    @resilient_operation("get_top_tracks")
    async def get_top_tracks(
        self,
        user: str | None = None,
        period: str | None = None,
        limit: int = 20,
    ) -> list[TopTrackEntry]:
        """Fetch a user's top tracks for a period, or the global chart without a user."""
        if limit < 1:
            raise InvalidRequestError(f"Limit must be >= 1, got {limit}")

        body: TopTracksBody
        if user:
            method = "user.getTopTracks"
            data = await self._call(
                method, {"user": user, "period": period, "limit": limit}
            )
            body = self._decode(UserTopTracksResponse, data, method).toptracks
        else:
            method = "chart.getTopTracks"
            data = await self._call(method, {"limit": limit})
            body = self._decode(ChartTopTracksResponse, data, method).tracks

        return [
            TopTrackEntry(
                artist=item.artist.display_name,
                track=item.name,
                playcount=max(item.playcount, 0),
                period=period if user else None,
            )
            for item in body.track
        ]
