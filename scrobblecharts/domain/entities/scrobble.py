"""Listening-history domain entities.

Plays, top-track entries and the per-track metadata used to estimate
listening time. Pure value objects with no I/O.
"""

from datetime import datetime
import math
from typing import Any

from attrs import define, field, validators

from .shared import from_unix_seconds

DEFAULT_DURATION_SECONDS = 180.0
DURATION_MS_THRESHOLD = 10000.0
OTHER_GENRE = "other"

# Unit separator keeps "a b|c" and "a|b c" from colliding
_KEY_SEPARATOR = "\x1f"


@define(frozen=True, slots=True)
class ScrobbleEvent:
    """A single play from a user's history.

    Attributes:
        artist: Artist name as reported by Last.fm
        track: Track name as reported by Last.fm
        unix_seconds: Play time in epoch seconds; None for "now playing" entries
        page: History page the event was read from, if known
    """

    artist: str = field(validator=validators.instance_of(str))
    track: str = field(validator=validators.instance_of(str))
    unix_seconds: int | None = field(default=None)
    page: int | None = field(default=None)

    @property
    def played_at(self) -> datetime | None:
        """Play time as an aware UTC datetime, None when unusable for bucketing."""
        return from_unix_seconds(self.unix_seconds)

    @property
    def is_now_playing(self) -> bool:
        return self.unix_seconds is None


@define(frozen=True, slots=True)
class TopTrackEntry:
    """A track from a top-tracks list with its observed play count."""

    artist: str = field(validator=validators.instance_of(str))
    track: str = field(validator=validators.instance_of(str))
    playcount: int = field(default=0, validator=validators.ge(0))
    period: str | None = field(default=None)

    @property
    def key(self) -> "TrackKey":
        return TrackKey.normalized(self.artist, self.track)


@define(frozen=True, slots=True)
class TrackKey:
    """Identity of a track for metadata lookups."""

    artist: str
    track: str

    @classmethod
    def normalized(cls, artist: str, track: str) -> "TrackKey":
        """Build a key with surrounding whitespace removed."""
        return cls(artist=artist.strip(), track=track.strip())

    @property
    def is_blank(self) -> bool:
        return not self.artist or not self.track

    def cache_key(self, tag_limit: int) -> str:
        """Normalized cache key; tag truncation depends on the limit so it is part of the key."""
        return (
            f"{self.artist.lower()}{_KEY_SEPARATOR}{self.track.lower()}|{tag_limit}"
        )


@define(frozen=True, slots=True)
class TrackMetadata:
    """Duration and genre tags for a track.

    An empty tag list is treated as the single implicit genre "other".
    """

    duration_seconds: float = field(
        default=DEFAULT_DURATION_SECONDS, validator=validators.gt(0)
    )
    tags: tuple[str, ...] = field(default=(), converter=tuple)

    @classmethod
    def default(
        cls, duration_seconds: float = DEFAULT_DURATION_SECONDS
    ) -> "TrackMetadata":
        """Metadata used when nothing could be fetched."""
        return cls(duration_seconds=duration_seconds, tags=())

    @property
    def effective_tags(self) -> tuple[str, ...]:
        return self.tags or (OTHER_GENRE,)

    def limited(self, tag_limit: int) -> tuple[str, ...]:
        """Effective tags truncated to tag_limit (0 means unlimited)."""
        tags = self.effective_tags
        return tags[:tag_limit] if tag_limit > 0 else tags


def normalize_duration_seconds(
    raw: Any,
    default: float = DEFAULT_DURATION_SECONDS,
    ms_threshold: float = DURATION_MS_THRESHOLD,
) -> float:
    """Convert a raw Last.fm duration to seconds.

    Last.fm reports milliseconds for most tracks but not all, so values above
    ms_threshold are taken as milliseconds. The threshold has no documented
    API contract behind it; tracks longer than ~2.8 hours reported in seconds
    would be misread.
    """
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return default

    if not math.isfinite(value):
        return default

    seconds = value / 1000.0 if value > ms_threshold else value
    return seconds if seconds > 0 else default


def normalize_tag(name: Any) -> str | None:
    """Trim and lowercase a tag name; None for blank or non-string names."""
    if not isinstance(name, str):
        return None
    cleaned = name.strip().lower()
    return cleaned or None


def normalize_tags(names: list[Any], limit: int = 0) -> list[str]:
    """Normalize tag names in order, dropping blanks, truncated to limit (0 = unlimited)."""
    tags = [tag for tag in (normalize_tag(name) for name in names) if tag]
    return tags[:limit] if limit > 0 else tags
