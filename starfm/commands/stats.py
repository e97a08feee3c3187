from __future__ import annotations

from datetime import datetime
from typing import Optional

from ..ratings import AlbumRating, RatingStore
from . import output


def run(store: RatingStore, *, albums: bool = False, now: Optional[datetime] = None) -> None:
    stats = store.stats(albums=albums, now=now)
    noun = "Albums" if albums else "Tracks"
    print(f"Showing stats for {stats.period_start.strftime('%B %Y')}")
    print(f"{noun} rated: {stats.count}")
    print(f"Average rating: {output.average(stats.average)}")
    print("Rating distribution:")
    for rating in sorted(stats.distribution, reverse=True):
        print(f"  {output.stars(rating)}  {stats.distribution[rating]}")
    if stats.five_star:
        print(f"5-star {noun.lower()} this month:")
        for record in stats.five_star:
            name = record.album_name if isinstance(record, AlbumRating) else record.track_name
            print(f"  {name} - {record.artist_name}")
