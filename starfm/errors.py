from __future__ import annotations

from typing import Optional


class LastFmError(Exception):
    """Base class for every failure surfaced by the Last.fm client."""

    message = "Last.fm request failed"

    def __init__(self, message: Optional[str] = None) -> None:
        super().__init__(message or self.message)


class MissingCredentials(LastFmError):
    message = "API keys not configured. Set lastfm.api_key and lastfm.shared_secret"


class InvalidCredentials(LastFmError):
    code = 4
    message = "Invalid username or password"


class UpstreamError(LastFmError):
    def __init__(self, code: int, message: str) -> None:
        self.code = code
        self.upstream_message = message
        super().__init__(message)

    def __repr__(self) -> str:
        return f"UpstreamError(code={self.code!r}, message={self.upstream_message!r})"


class TransportError(LastFmError):
    def __init__(self, cause: BaseException) -> None:
        self.cause = cause
        self.__cause__ = cause
        super().__init__(f"Network error: {cause}")


class DecodeError(LastFmError):
    message = "Failed to parse response from Last.fm"

    def __init__(self, cause: BaseException) -> None:
        self.cause = cause
        self.__cause__ = cause
        super().__init__()

    @property
    def detail(self) -> str:
        return f"{self}: {self.cause}"
