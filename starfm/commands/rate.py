from __future__ import annotations

from ..ratings import RatingStore
from . import output


def track(store: RatingStore, artist: str, album: str, name: str, rating: int) -> None:
    record = store.set_track_rating(artist, album, name, rating)
    if record is None:
        print(f"Cleared rating for {artist} - {name}.")
        return
    print(f"{output.stars(record.rating)}  {record.artist_name} - {record.track_name}")


def album(store: RatingStore, artist: str, album_name: str, rating: int) -> None:
    record = store.set_album_rating(artist, album_name, rating)
    if record is None:
        print(f"Cleared rating for {artist} - {album_name}.")
        return
    print(f"{output.stars(record.rating)}  {record.artist_name} - {record.album_name}")
