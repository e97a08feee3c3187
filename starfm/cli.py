from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Optional, Sequence

from .app import StarFmApp
from .commands import browse as cmd_browse
from .commands import doctor as cmd_doctor
from .commands import rate as cmd_rate
from .commands import session as cmd_session
from .commands import stats as cmd_stats
from .config import load_settings
from .errors import DecodeError, LastFmError

LOG_FORMAT = "%(levelname).1s | %(name)s | %(message)s"

C_RESET = "\033[0m"
LEVEL_COLORS = {
    logging.DEBUG: "\033[36m",  # Cyan
    logging.INFO: "\033[37m",  # Light gray
    logging.WARNING: "\033[33m",  # Yellow
    logging.ERROR: "\033[31m",  # Red
    logging.CRITICAL: "\033[35m",  # Magenta
}

logger = logging.getLogger(__name__)


class ColorFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        color = LEVEL_COLORS.get(record.levelno)
        if not color:
            return message
        return f"{color}{message}{C_RESET}"


def configure_logging(level_name: str) -> None:
    log_level = getattr(logging, level_name.upper(), logging.WARNING)
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(log_level)
    handler = logging.StreamHandler()
    handler.setFormatter(ColorFormatter(LOG_FORMAT))
    root_logger.addHandler(handler)


def _rating(value: str) -> int:
    try:
        rating = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid rating {value!r}") from None
    if not 0 <= rating <= 5:
        raise argparse.ArgumentTypeError("rating must be 1-5, or 0 to clear")
    return rating


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Star ratings for your Last.fm history")
    parser.add_argument("--config", type=Path, help="Path to config.yaml")
    parser.add_argument("--log-level", default="WARNING", help="Python logging level")

    subparsers = parser.add_subparsers(dest="command", required=True)
    login_parser = subparsers.add_parser("login", help="Sign in to Last.fm and store the session")
    login_parser.add_argument("username")
    login_parser.add_argument("--password", help="Password (prompted for when omitted)")
    subparsers.add_parser("logout", help="Forget the stored session")

    recent_parser = subparsers.add_parser("recent", help="Show recently played tracks")
    recent_parser.add_argument("--user", help="Last.fm user (defaults to the logged-in user)")
    recent_parser.add_argument("--limit", type=int, default=None, help="Number of tracks (max 200)")

    album_parser = subparsers.add_parser("album", help="Show album details and ratings")
    album_parser.add_argument("artist")
    album_parser.add_argument("album")
    album_parser.add_argument("--user", help="Last.fm user for play counts")

    rate_track_parser = subparsers.add_parser("rate-track", help="Rate a track (0 clears)")
    rate_track_parser.add_argument("artist")
    rate_track_parser.add_argument("album")
    rate_track_parser.add_argument("track")
    rate_track_parser.add_argument("rating", type=_rating)

    rate_album_parser = subparsers.add_parser("rate-album", help="Rate an album (0 clears)")
    rate_album_parser.add_argument("artist")
    rate_album_parser.add_argument("album")
    rate_album_parser.add_argument("rating", type=_rating)

    stats_parser = subparsers.add_parser("stats", help="Rating statistics for this month")
    stats_parser.add_argument("--albums", action="store_true", help="Album ratings instead of tracks")

    doctor_parser = subparsers.add_parser("doctor", help="Check config, keys, store and session")
    doctor_parser.add_argument(
        "--online",
        action="store_true",
        help="Also call the Last.fm API",
    )
    return parser


def main(argv: Optional[Sequence[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level)
    settings, config_path = load_settings(args.config)
    logger.debug("Using config %s", config_path or "<defaults>")

    if args.command == "doctor":
        report = cmd_doctor.run(settings, config_path=config_path, check_online=args.online)
        for line in report.checks:
            print(line)
        if not report.ok:
            raise SystemExit(1)
        return

    app = StarFmApp.create(settings)
    try:
        match args.command:
            case "login":
                cmd_session.login(app, args.username, args.password)
            case "logout":
                cmd_session.logout(app)
            case "recent":
                cmd_browse.recent(app, user=args.user, limit=args.limit)
            case "album":
                cmd_browse.album(app, args.artist, args.album, user=args.user)
            case "rate-track":
                cmd_rate.track(app.store, args.artist, args.album, args.track, args.rating)
            case "rate-album":
                cmd_rate.album(app.store, args.artist, args.album, args.rating)
            case "stats":
                cmd_stats.run(app.store, albums=args.albums)
            case _:
                parser.error("Unknown command")
    except DecodeError as exc:
        logger.debug("Decode failure: %s", exc.detail)
        raise SystemExit(str(exc)) from exc
    except LastFmError as exc:
        raise SystemExit(str(exc)) from exc
    finally:
        app.close()


if __name__ == "__main__":  # pragma: no cover
    main()
