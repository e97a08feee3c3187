from __future__ import annotations

import asyncio
import functools
import hashlib
import http.client
import logging
import urllib.error
import urllib.parse
import urllib.request
from typing import Any, Callable, Dict, List, Mapping, Optional, TypeVar

from ..config import DEFAULT_BASE_URL, Credentials, LastFmSettings
from ..errors import MissingCredentials, TransportError
from ..models import (
    AlbumDetail,
    Session,
    Track,
    parse_album_info,
    parse_recent_tracks,
    parse_session,
)
from ..outcome import classify

logger = logging.getLogger(__name__)

T = TypeVar("T")

SIGNATURE_PARAM = "api_sig"
FORMAT_PARAM = ("format", "json")
USER_AGENT = "starfm/0.1"


def signature_base(params: Mapping[str, str], secret: str) -> str:
    """``name1value1name2value2...`` sorted by name, followed by the shared secret."""
    pairs = sorted((name, value) for name, value in params.items() if name != SIGNATURE_PARAM)
    return "".join(f"{name}{value}" for name, value in pairs) + secret


def sign(params: Mapping[str, str], secret: str) -> str:
    # MD5 is what the protocol asks for; it protects nothing.
    return hashlib.md5(signature_base(params, secret).encode("utf-8")).hexdigest()


class LastFmClient:
    """Stateless client for the handful of Last.fm calls starfm needs.

    Every call is a single exchange. Failures are raised to the caller on the
    first occurrence; there are no retries here.
    """

    def __init__(
        self,
        credentials: Credentials,
        *,
        base_url: str = DEFAULT_BASE_URL,
        timeout: Optional[float] = None,
    ) -> None:
        self.credentials = credentials
        self.base_url = base_url
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: LastFmSettings) -> "LastFmClient":
        return cls(
            settings.credentials(),
            base_url=settings.base_url,
            timeout=settings.timeout_seconds,
        )

    def authenticate(self, username: str, password: str) -> Session:
        """Exchange a username/password for a mobile session key.

        The password travels in the clear; that is how auth.getMobileSession
        works.
        """
        if not self.credentials.is_configured:
            raise MissingCredentials()
        params = {
            "method": "auth.getMobileSession",
            "username": username,
            "password": password,
            "api_key": self.credentials.api_key,
        }
        session = self._signed_request(params, parse_session, http_method="POST")
        logger.info("Authenticated Last.fm user %s", session.username)
        return session

    def get_recent_tracks(self, user: str, limit: int = 50) -> List[Track]:
        params = {
            "method": "user.getRecentTracks",
            "user": user,
            "api_key": self.credentials.api_key,
            "limit": str(limit),
            "format": "json",
        }
        return self._request(params, parse_recent_tracks)

    def get_album_info(self, artist: str, album: str, user: str) -> AlbumDetail:
        params = {
            "method": "album.getInfo",
            "artist": artist,
            "album": album,
            "username": user,
            "api_key": self.credentials.api_key,
            "format": "json",
        }
        return self._request(params, parse_album_info)

    def _signed_request(
        self,
        params: Dict[str, str],
        decode: Callable[[Any], T],
        http_method: str,
    ) -> T:
        signed = dict(params)
        signed[SIGNATURE_PARAM] = sign(params, self.credentials.shared_secret)
        signed[FORMAT_PARAM[0]] = FORMAT_PARAM[1]
        return self._request(signed, decode, http_method=http_method)

    def _request(
        self,
        params: Dict[str, str],
        decode: Callable[[Any], T],
        http_method: str = "GET",
    ) -> T:
        body = self._execute(params, http_method)
        return classify(body, decode).unwrap()

    def _execute(self, params: Dict[str, str], http_method: str) -> bytes:
        method_name = params.get("method", "?")
        encoded = urllib.parse.urlencode(params)
        headers = {"User-Agent": USER_AGENT}
        kwargs: Dict[str, Any] = {}
        if self.timeout is not None:
            kwargs["timeout"] = self.timeout
        logger.debug("Last.fm %s %s", http_method, method_name)
        try:
            if http_method == "POST":
                req = urllib.request.Request(
                    self.base_url,
                    data=encoded.encode("utf-8"),
                    headers=headers,
                    method="POST",
                )
            else:
                req = urllib.request.Request(
                    f"{self.base_url}?{encoded}", headers=headers, method=http_method
                )
            with urllib.request.urlopen(req, **kwargs) as resp:
                body = resp.read()
                logger.debug("Last.fm %s answered %s", method_name, getattr(resp, "status", "?"))
                return body
        except urllib.error.HTTPError as exc:
            # Error bodies still carry the JSON error envelope.
            logger.debug("Last.fm %s answered HTTP %s", method_name, exc.code)
            error = exc
        except (urllib.error.URLError, http.client.HTTPException, OSError, ValueError) as exc:
            logger.warning("Last.fm request %s failed: %s", method_name, exc)
            raise TransportError(exc) from exc
        try:
            return error.read()
        except (http.client.HTTPException, OSError) as exc:
            logger.warning("Last.fm request %s failed reading the error body: %s", method_name, exc)
            raise TransportError(exc) from exc


class AsyncLastFmClient:
    """Awaitable front for :class:`LastFmClient`.

    Each call runs the blocking exchange in the loop's default executor so
    the caller's event loop keeps running while it waits.
    """

    def __init__(self, client: LastFmClient) -> None:
        self.client = client

    async def authenticate(self, username: str, password: str) -> Session:
        return await self._run(self.client.authenticate, username, password)

    async def get_recent_tracks(self, user: str, limit: int = 50) -> List[Track]:
        return await self._run(self.client.get_recent_tracks, user, limit)

    async def get_album_info(self, artist: str, album: str, user: str) -> AlbumDetail:
        return await self._run(self.client.get_album_info, artist, album, user)

    async def _run(self, func: Callable[..., T], *args: Any) -> T:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, functools.partial(func, *args))
