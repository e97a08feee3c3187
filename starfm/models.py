"""Typed shapes for the Last.fm JSON responses.

Last.fm is loose with its JSON: numbers arrive as strings, names hide under a
``#text`` key next to an ``mbid``, and a one-element list comes back as a bare
object (or an empty string when there is nothing at all). The decoders here
absorb those quirks so callers only ever see plain dataclasses.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, List, Optional, Sequence

from .errors import DecodeError

logger = logging.getLogger(__name__)

EXTRA_LARGE = "extralarge"

_INT_STRING = re.compile(r"[+-]?[0-9]+")


@dataclass(frozen=True, slots=True)
class Attempt:
    """Result of one fallible shape interpretation."""

    matched: bool
    value: Any = None

    @classmethod
    def ok(cls, value: Any) -> "Attempt":
        return cls(True, value)

    @classmethod
    def mismatch(cls) -> "Attempt":
        return cls(False)


def first_match(value: Any, attempts: Sequence[Callable[[Any], Attempt]], default: Any) -> Any:
    """Run ``attempts`` in order; the first one that matches decides the result."""
    for attempt in attempts:
        result = attempt(value)
        if result.matched:
            return result.value
    return default


# -- FlexibleNumber ----------------------------------------------------------


def _as_int(value: Any) -> Attempt:
    if isinstance(value, bool):
        return Attempt.mismatch()
    if isinstance(value, int):
        return Attempt.ok(value)
    if isinstance(value, float) and value.is_integer():
        return Attempt.ok(int(value))
    return Attempt.mismatch()


def _as_int_string(value: Any) -> Attempt:
    if not isinstance(value, str):
        return Attempt.mismatch()
    if _INT_STRING.fullmatch(value):
        try:
            return Attempt.ok(int(value))
        except ValueError:
            # Longer than the interpreter will convert.
            return Attempt.ok(0)
    # A string that is not a number still settles the shape question.
    return Attempt.ok(0)


def flexible_int(value: Any) -> int:
    """Integer transmitted as either a JSON number or a JSON string; 0 when neither."""
    return first_match(value, (_as_int, _as_int_string), 0)


# -- required field helpers --------------------------------------------------


def _mapping(value: Any, what: str) -> dict:
    if not isinstance(value, dict):
        raise DecodeError(TypeError(f"{what}: expected object, got {type(value).__name__}"))
    return value


def _field(payload: dict, key: str, kind: type, what: str) -> Any:
    if key not in payload:
        raise DecodeError(KeyError(f"{what}: missing key {key!r}"))
    value = payload[key]
    if not isinstance(value, kind):
        raise DecodeError(
            TypeError(f"{what}.{key}: expected {kind.__name__}, got {type(value).__name__}")
        )
    return value


def _text(payload: Any, what: str) -> str:
    """Value of the ``#text`` key, ignoring the ``mbid`` that rides along with it."""
    return _field(_mapping(payload, what), "#text", str, what)


# -- images ------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Image:
    url: str
    size: str

    @property
    def is_extra_large(self) -> bool:
        return self.size == EXTRA_LARGE

    @classmethod
    def from_payload(cls, payload: Any) -> "Image":
        data = _mapping(payload, "image")
        return cls(url=_field(data, "#text", str, "image"), size=_field(data, "size", str, "image"))


def _images(value: Any, what: str) -> List[Image]:
    if not isinstance(value, list):
        raise DecodeError(TypeError(f"{what}: expected list of images, got {type(value).__name__}"))
    return [Image.from_payload(item) for item in value]


def best_image_url(images: Optional[Sequence[Image]]) -> Optional[str]:
    """Prefer the first extralarge image, otherwise the last one listed.

    The server lists sizes smallest first, so the last entry is the largest
    when no extralarge is present. The list itself is never reordered.
    """
    if not images:
        return None
    chosen = next((image for image in images if image.is_extra_large), images[-1])
    return chosen.url or None


# -- recent tracks -----------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Track:
    name: str
    artist: str
    album: str
    images: List[Image]
    timestamp: Optional[str] = None
    is_now_playing: bool = False

    @property
    def played_at(self) -> Optional[datetime]:
        if self.timestamp is None:
            return None
        try:
            return datetime.fromtimestamp(int(self.timestamp), tz=timezone.utc)
        except (ValueError, OverflowError, OSError):
            return None

    @property
    def key(self) -> str:
        return f"{self.artist}-{self.album}-{self.name}-{self.timestamp or 'now'}"

    @property
    def best_image_url(self) -> Optional[str]:
        return best_image_url(self.images)

    @classmethod
    def from_payload(cls, payload: Any) -> "Track":
        data = _mapping(payload, "track")
        timestamp: Optional[str] = None
        if data.get("date") is not None:
            timestamp = _field(_mapping(data["date"], "track.date"), "uts", str, "track.date")
        attr = data.get("@attr")
        now_playing = isinstance(attr, dict) and attr.get("nowplaying") == "true"
        return cls(
            name=_field(data, "name", str, "track"),
            artist=_text(data.get("artist"), "track.artist"),
            album=_text(data.get("album"), "track.album"),
            images=_images(data.get("image"), "track.image"),
            timestamp=timestamp,
            is_now_playing=now_playing,
        )


def parse_recent_tracks(payload: Any) -> List[Track]:
    """Tracks from a ``user.getRecentTracks`` response, most recent first."""
    envelope = _mapping(_mapping(payload, "response").get("recenttracks"), "recenttracks")
    items = _field(envelope, "track", list, "recenttracks")
    return [Track.from_payload(item) for item in items]


# -- album info --------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class AlbumTrack:
    name: str
    duration_seconds: int
    artist_name: str

    @classmethod
    def from_payload(cls, payload: Any) -> "AlbumTrack":
        track = _album_track(payload)
        if track is None:
            raise DecodeError(TypeError(f"album track: unexpected shape {payload!r:.80}"))
        return track


def _album_track(payload: Any) -> Optional[AlbumTrack]:
    if not isinstance(payload, dict):
        return None
    name = payload.get("name")
    artist = payload.get("artist")
    if not isinstance(name, str) or not isinstance(artist, dict):
        return None
    artist_name = artist.get("name")
    if not isinstance(artist_name, str):
        return None
    return AlbumTrack(
        name=name,
        duration_seconds=flexible_int(payload.get("duration")),
        artist_name=artist_name,
    )


def _tracks_as_array(value: Any) -> Attempt:
    if not isinstance(value, list):
        return Attempt.mismatch()
    tracks = [_album_track(item) for item in value]
    if any(track is None for track in tracks):
        logger.debug("Album track array holds entries that are not tracks")
        return Attempt.mismatch()
    logger.debug("Decoded %d album tracks from array", len(tracks))
    return Attempt.ok(tracks)


def _tracks_as_single(value: Any) -> Attempt:
    track = _album_track(value)
    if track is None:
        return Attempt.mismatch()
    logger.debug("Decoded single album track object")
    return Attempt.ok([track])


def _tracks_as_empty_string(value: Any) -> Attempt:
    if not isinstance(value, str):
        return Attempt.mismatch()
    logger.debug("Album track listing was a string (%r)", value)
    return Attempt.ok([])


ALBUM_TRACK_ATTEMPTS = (_tracks_as_array, _tracks_as_single, _tracks_as_empty_string)


def decode_album_tracks(container: Any) -> List[AlbumTrack]:
    """Album track listing from ``{"track": ...}``; never raises."""
    value = container.get("track") if isinstance(container, dict) else None
    return first_match(value, ALBUM_TRACK_ATTEMPTS, [])


@dataclass(frozen=True, slots=True)
class AlbumDetail:
    name: str
    artist_name: str
    images: Optional[List[Image]] = None
    tracks: Optional[List[AlbumTrack]] = None
    user_play_count: int = 0

    @property
    def best_image_url(self) -> Optional[str]:
        return best_image_url(self.images)

    @classmethod
    def from_payload(cls, payload: Any) -> "AlbumDetail":
        data = _mapping(payload, "album")
        images = None
        if data.get("image") is not None:
            images = _images(data["image"], "album.image")
        tracks = None
        if data.get("tracks") is not None:
            tracks = decode_album_tracks(_mapping(data["tracks"], "album.tracks"))
        return cls(
            name=_field(data, "name", str, "album"),
            artist_name=_field(data, "artist", str, "album"),
            images=images,
            tracks=tracks,
            user_play_count=flexible_int(data.get("userplaycount")),
        )


def parse_album_info(payload: Any) -> AlbumDetail:
    return AlbumDetail.from_payload(_mapping(payload, "response").get("album"))


# -- auth --------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Session:
    username: str
    key: str


def parse_session(payload: Any) -> Session:
    data = _mapping(_mapping(payload, "response").get("session"), "session")
    return Session(username=_field(data, "name", str, "session"), key=_field(data, "key", str, "session"))


# -- errors ------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ErrorEnvelope:
    error: int
    message: str

    @classmethod
    def match(cls, payload: Any) -> Optional["ErrorEnvelope"]:
        """The generic ``{"error": int, "message": str}`` body, if that is what this is."""
        if not isinstance(payload, dict):
            return None
        code = payload.get("error")
        message = payload.get("message")
        if isinstance(code, bool) or not isinstance(code, int) or not isinstance(message, str):
            return None
        return cls(error=code, message=message)
