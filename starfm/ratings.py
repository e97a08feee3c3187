from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from threading import Lock
from typing import Dict, Iterable, List, Optional, Union

from .identity import generate_album_id, generate_track_id
from .models import Session, Track

logger = logging.getLogger(__name__)

MIN_RATING = 1
MAX_RATING = 5
TOP_RATED_LIMIT = 10

SESSION_USERNAME_KEY = "lastfm_username"
SESSION_KEY_KEY = "lastfm_session_key"


@dataclass(slots=True)
class TrackRating:
    track_id: str
    track_name: str
    artist_name: str
    album_name: str
    rating: int
    created_at: datetime
    updated_at: datetime


@dataclass(slots=True)
class AlbumRating:
    album_id: str
    album_name: str
    artist_name: str
    rating: int
    created_at: datetime
    updated_at: datetime


Rating = Union[TrackRating, AlbumRating]


@dataclass(slots=True)
class RatingStats:
    period_start: datetime
    count: int
    average: Optional[float]
    distribution: Dict[int, int] = field(default_factory=dict)
    five_star: List[Rating] = field(default_factory=list)


def validate_rating(rating: Optional[int]) -> Optional[int]:
    """1-5 stars, or ``None``/0 meaning "not rated"."""
    if rating is None or rating == 0:
        return None
    if isinstance(rating, bool) or not isinstance(rating, int):
        raise ValueError(f"rating must be an integer, got {rating!r}")
    if not MIN_RATING <= rating <= MAX_RATING:
        raise ValueError(f"rating must be between {MIN_RATING} and {MAX_RATING}, got {rating}")
    return rating


def start_of_month(now: Optional[datetime] = None) -> datetime:
    """First instant of the current local calendar month, as an aware datetime."""
    current = (now or datetime.now(timezone.utc)).astimezone()
    return current.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _to_text(value: datetime) -> str:
    return value.astimezone(timezone.utc).isoformat(timespec="seconds")


def _from_text(value: str) -> datetime:
    return datetime.fromisoformat(value)


class RatingStore:
    """SQLite-backed store for star ratings and the signed-in session."""

    def __init__(self, path: Path) -> None:
        self.path = path
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = Lock()
        self._conn = sqlite3.connect(self.path, check_same_thread=False)
        self._conn.execute(
            """
            CREATE TABLE IF NOT EXISTS track_ratings (
                track_id TEXT PRIMARY KEY,
                track_name TEXT NOT NULL,
                artist_name TEXT NOT NULL,
                album_name TEXT NOT NULL,
                rating INTEGER NOT NULL,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
            """
        )
        self._conn.execute(
            """
            CREATE TABLE IF NOT EXISTS album_ratings (
                album_id TEXT PRIMARY KEY,
                album_name TEXT NOT NULL,
                artist_name TEXT NOT NULL,
                rating INTEGER NOT NULL,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
            """
        )
        self._conn.execute(
            """
            CREATE TABLE IF NOT EXISTS preferences (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL
            )
            """
        )
        self._conn.commit()

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    # -- session -------------------------------------------------------------

    def get_session(self) -> Optional[Session]:
        username = self._get_preference(SESSION_USERNAME_KEY)
        key = self._get_preference(SESSION_KEY_KEY)
        if not username or not key:
            return None
        return Session(username=username, key=key)

    def save_session(self, session: Session) -> None:
        self._set_preference(SESSION_USERNAME_KEY, session.username)
        self._set_preference(SESSION_KEY_KEY, session.key)

    def clear_session(self) -> None:
        with self._lock:
            self._conn.execute(
                "DELETE FROM preferences WHERE key IN (?, ?)",
                (SESSION_USERNAME_KEY, SESSION_KEY_KEY),
            )
            self._conn.commit()

    def _get_preference(self, key: str) -> Optional[str]:
        with self._lock:
            cursor = self._conn.execute("SELECT value FROM preferences WHERE key = ?", (key,))
            row = cursor.fetchone()
        if not row:
            return None
        return row[0]

    def _set_preference(self, key: str, value: str) -> None:
        with self._lock:
            self._conn.execute(
                """
                INSERT INTO preferences(key, value) VALUES(?, ?)
                ON CONFLICT(key) DO UPDATE SET value=excluded.value
                """,
                (key, value),
            )
            self._conn.commit()

    # -- tracks --------------------------------------------------------------

    def get_track_rating(self, track_id: str) -> Optional[TrackRating]:
        with self._lock:
            cursor = self._conn.execute(
                """
                SELECT track_id, track_name, artist_name, album_name, rating, created_at, updated_at
                FROM track_ratings WHERE track_id = ?
                """,
                (track_id,),
            )
            row = cursor.fetchone()
        return self._track_row(row) if row else None

    def rating_for_track(self, artist: str, album: str, track: str) -> Optional[int]:
        record = self.get_track_rating(generate_track_id(artist, album, track))
        return record.rating if record else None

    def set_track_rating(
        self,
        artist: str,
        album: str,
        track: str,
        rating: Optional[int],
        *,
        now: Optional[datetime] = None,
    ) -> Optional[TrackRating]:
        """Create, update or (for ``None``/0) delete a track's rating."""
        value = validate_rating(rating)
        track_id = generate_track_id(artist, album, track)
        stamp = _to_text(now or _utc_now())
        with self._lock:
            if value is None:
                self._conn.execute("DELETE FROM track_ratings WHERE track_id = ?", (track_id,))
                self._conn.commit()
                logger.debug("Cleared rating for %s", track_id)
                return None
            self._conn.execute(
                """
                INSERT INTO track_ratings(track_id, track_name, artist_name, album_name, rating, created_at, updated_at)
                VALUES(?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(track_id) DO UPDATE SET rating=excluded.rating, updated_at=excluded.updated_at
                """,
                (track_id, track, artist, album, value, stamp, stamp),
            )
            self._conn.commit()
        logger.debug("Rated %s with %d stars", track_id, value)
        return self.get_track_rating(track_id)

    def list_track_ratings(self) -> List[TrackRating]:
        with self._lock:
            cursor = self._conn.execute(
                """
                SELECT track_id, track_name, artist_name, album_name, rating, created_at, updated_at
                FROM track_ratings ORDER BY created_at DESC
                """
            )
            rows = cursor.fetchall()
        return [self._track_row(row) for row in rows]

    def ratings_for_tracks(self, tracks: Iterable[Track]) -> List[Optional[int]]:
        """Stored rating for each live track, in the order given."""
        by_id = {record.track_id: record.rating for record in self.list_track_ratings()}
        return [
            by_id.get(generate_track_id(track.artist, track.album, track.name))
            for track in tracks
        ]

    def album_track_average(self, artist: str, album: str) -> Optional[float]:
        """Mean rating of the rated tracks that belong to this album."""
        album_id = generate_album_id(artist, album)
        ratings = [
            record.rating
            for record in self.list_track_ratings()
            if generate_album_id(record.artist_name, record.album_name) == album_id
        ]
        if not ratings:
            return None
        return sum(ratings) / len(ratings)

    @staticmethod
    def _track_row(row: tuple) -> TrackRating:
        track_id, track_name, artist_name, album_name, rating, created_at, updated_at = row
        return TrackRating(
            track_id=track_id,
            track_name=track_name,
            artist_name=artist_name,
            album_name=album_name,
            rating=int(rating),
            created_at=_from_text(created_at),
            updated_at=_from_text(updated_at),
        )

    # -- albums --------------------------------------------------------------

    def get_album_rating(self, album_id: str) -> Optional[AlbumRating]:
        with self._lock:
            cursor = self._conn.execute(
                """
                SELECT album_id, album_name, artist_name, rating, created_at, updated_at
                FROM album_ratings WHERE album_id = ?
                """,
                (album_id,),
            )
            row = cursor.fetchone()
        return self._album_row(row) if row else None

    def rating_for_album(self, artist: str, album: str) -> Optional[int]:
        record = self.get_album_rating(generate_album_id(artist, album))
        return record.rating if record else None

    def set_album_rating(
        self,
        artist: str,
        album: str,
        rating: Optional[int],
        *,
        now: Optional[datetime] = None,
    ) -> Optional[AlbumRating]:
        value = validate_rating(rating)
        album_id = generate_album_id(artist, album)
        stamp = _to_text(now or _utc_now())
        with self._lock:
            if value is None:
                self._conn.execute("DELETE FROM album_ratings WHERE album_id = ?", (album_id,))
                self._conn.commit()
                logger.debug("Cleared rating for %s", album_id)
                return None
            self._conn.execute(
                """
                INSERT INTO album_ratings(album_id, album_name, artist_name, rating, created_at, updated_at)
                VALUES(?, ?, ?, ?, ?, ?)
                ON CONFLICT(album_id) DO UPDATE SET rating=excluded.rating, updated_at=excluded.updated_at
                """,
                (album_id, album, artist, value, stamp, stamp),
            )
            self._conn.commit()
        logger.debug("Rated %s with %d stars", album_id, value)
        return self.get_album_rating(album_id)

    def list_album_ratings(self) -> List[AlbumRating]:
        with self._lock:
            cursor = self._conn.execute(
                """
                SELECT album_id, album_name, artist_name, rating, created_at, updated_at
                FROM album_ratings ORDER BY created_at DESC
                """
            )
            rows = cursor.fetchall()
        return [self._album_row(row) for row in rows]

    @staticmethod
    def _album_row(row: tuple) -> AlbumRating:
        album_id, album_name, artist_name, rating, created_at, updated_at = row
        return AlbumRating(
            album_id=album_id,
            album_name=album_name,
            artist_name=artist_name,
            rating=int(rating),
            created_at=_from_text(created_at),
            updated_at=_from_text(updated_at),
        )

    # -- stats ---------------------------------------------------------------

    def stats(self, *, albums: bool = False, now: Optional[datetime] = None) -> RatingStats:
        """Summary of the ratings created since the start of the current month."""
        period_start = start_of_month(now)
        records: List[Rating] = list(self.list_album_ratings() if albums else self.list_track_ratings())
        current = [record for record in records if record.created_at >= period_start]
        distribution = {stars: 0 for stars in range(MIN_RATING, MAX_RATING + 1)}
        for record in current:
            distribution[record.rating] = distribution.get(record.rating, 0) + 1
        average = sum(record.rating for record in current) / len(current) if current else None
        five_star = [record for record in current if record.rating == MAX_RATING][:TOP_RATED_LIMIT]
        return RatingStats(
            period_start=period_start,
            count=len(current),
            average=average,
            distribution=distribution,
            five_star=five_star,
        )
