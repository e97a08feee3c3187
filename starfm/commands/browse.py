from __future__ import annotations

from typing import Optional

from ..app import StarFmApp
from . import output


def recent(app: StarFmApp, *, user: Optional[str] = None, limit: Optional[int] = None) -> None:
    username = app.current_user(user)
    tracks = app.client.get_recent_tracks(username, limit or app.settings.lastfm.recent_limit)
    if not tracks:
        print(f"No recent tracks for {username}.")
        return
    ratings = app.store.ratings_for_tracks(tracks)
    for track, rating in zip(tracks, ratings):
        marker = "▶" if track.is_now_playing else " "
        album = f" [{track.album}]" if track.album else ""
        print(
            f"{marker} {output.stars(rating)}  {track.artist} - {track.name}{album}"
            f"  ({output.played(track.played_at)})"
        )


def album(app: StarFmApp, artist: str, album_name: str, *, user: Optional[str] = None) -> None:
    username = app.current_user(user)
    detail = app.client.get_album_info(artist, album_name, username)
    print(f"{detail.artist_name} - {detail.name}")
    if detail.best_image_url:
        print(f"  cover: {detail.best_image_url}")
    print(f"  plays: {detail.user_play_count}")
    print(f"  album rating: {output.stars(app.store.rating_for_album(detail.artist_name, detail.name))}")
    print(
        "  average track rating: "
        f"{output.average(app.store.album_track_average(detail.artist_name, detail.name))}"
    )
    tracks = detail.tracks or []
    if not tracks:
        print("  (no track listing)")
        return
    for number, track in enumerate(tracks, start=1):
        # Album artist, the same key album_track_average uses.
        rating = app.store.rating_for_track(detail.artist_name, detail.name, track.name)
        print(
            f"  {number:>2}. {output.stars(rating)}  {track.name}"
            f"  {output.duration(track.duration_seconds)}"
        )
