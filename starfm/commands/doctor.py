from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from ..config import Settings
from ..errors import LastFmError
from ..outcome import ApiOutcome
from ..providers.lastfm import LastFmClient
from ..ratings import RatingStore
from .output import error, ok as ok_line, skipped, warning


@dataclass(slots=True)
class DoctorReport:
    ok: bool
    checks: list[str]


def run(
    settings: Settings,
    *,
    config_path: Optional[Path] = None,
    check_online: bool = False,
) -> DoctorReport:
    checks: list[str] = []
    ok = True

    if config_path is not None:
        checks.append(ok_line("Config", str(config_path)))
    else:
        checks.append(warning("Config", "no config.yaml found, using defaults"))

    credentials = settings.lastfm.credentials()
    if credentials.is_configured:
        checks.append(ok_line("API keys", "api_key and shared_secret set"))
    else:
        ok = False
        missing = [
            name
            for name, value in (
                ("api_key", credentials.api_key),
                ("shared_secret", credentials.shared_secret),
            )
            if not value
        ]
        checks.append(error("API keys", f"missing {', '.join(missing)}"))

    try:
        store = RatingStore(Path(settings.store.path))
    except (sqlite3.Error, OSError) as exc:
        ok = False
        checks.append(error("Rating store", f"{settings.store.path}: {exc}"))
        return DoctorReport(ok=ok, checks=checks)
    try:
        tracks = len(store.list_track_ratings())
        albums = len(store.list_album_ratings())
        checks.append(
            ok_line("Rating store", f"{settings.store.path} ({tracks} track(s), {albums} album(s))")
        )
        session = store.get_session()
    finally:
        store.close()

    if session is None:
        checks.append(warning("Session", "not logged in (run `starfm login USERNAME`)"))
    else:
        checks.append(ok_line("Session", f"logged in as {session.username}"))

    if not check_online:
        checks.append(skipped("Last.fm", "pass --online to contact the API"))
    elif session is None or not credentials.is_configured:
        checks.append(skipped("Last.fm", "needs API keys and a session"))
    else:
        client = LastFmClient.from_settings(settings.lastfm)
        outcome = ApiOutcome.capture(client.get_recent_tracks, session.username, 1)
        if outcome.ok:
            checks.append(ok_line("Last.fm", "recent tracks reachable"))
        else:
            ok = False
            checks.append(error("Last.fm", _describe(outcome.error)))
    return DoctorReport(ok=ok, checks=checks)


def _describe(exc: Optional[LastFmError]) -> str:
    return str(exc) if exc is not None else "unknown error"
