from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Generic, Optional, TypeVar

from .errors import (
    DecodeError,
    InvalidCredentials,
    LastFmError,
    TransportError,
    UpstreamError,
)
from .models import ErrorEnvelope

T = TypeVar("T")

INVALID_CREDENTIALS_CODE = 4


class OutcomeKind(str, Enum):
    SUCCESS = "success"
    UPSTREAM_ERROR = "upstream_error"
    TRANSPORT_ERROR = "transport_error"
    DECODE_ERROR = "decode_error"


@dataclass(frozen=True, slots=True)
class ApiOutcome(Generic[T]):
    kind: OutcomeKind
    payload: Optional[T] = None
    error: Optional[LastFmError] = None

    @property
    def ok(self) -> bool:
        return self.kind is OutcomeKind.SUCCESS

    @classmethod
    def success(cls, payload: T) -> "ApiOutcome[T]":
        return cls(OutcomeKind.SUCCESS, payload=payload)

    @classmethod
    def failure(cls, error: LastFmError) -> "ApiOutcome[T]":
        if isinstance(error, (InvalidCredentials, UpstreamError)):
            kind = OutcomeKind.UPSTREAM_ERROR
        elif isinstance(error, TransportError):
            kind = OutcomeKind.TRANSPORT_ERROR
        elif isinstance(error, DecodeError):
            kind = OutcomeKind.DECODE_ERROR
        else:
            raise TypeError(f"{type(error).__name__} is not a request outcome")
        return cls(kind, error=error)

    @classmethod
    def capture(cls, call: Callable[..., T], *args: Any, **kwargs: Any) -> "ApiOutcome[T]":
        """Run ``call`` and fold request failures into an outcome.

        Configuration problems such as missing credentials are not outcomes of
        a request and still raise.
        """
        try:
            return cls.success(call(*args, **kwargs))
        except (InvalidCredentials, UpstreamError, TransportError, DecodeError) as exc:
            return cls.failure(exc)

    def unwrap(self) -> T:
        if self.error is not None:
            raise self.error
        return self.payload  # type: ignore[return-value]


def upstream_error(envelope: ErrorEnvelope) -> LastFmError:
    if envelope.error == INVALID_CREDENTIALS_CODE:
        return InvalidCredentials()
    return UpstreamError(envelope.error, envelope.message)


def classify(body: bytes, decode: Callable[[Any], T]) -> ApiOutcome[T]:
    """Classify a completed exchange by the shape of its body.

    Last.fm answers application errors with ordinary success statuses, so the
    error envelope is checked before the expected payload and the HTTP status
    plays no part.
    """
    try:
        document = json.loads(body)
    except (ValueError, RecursionError) as exc:
        return ApiOutcome.failure(DecodeError(exc))
    envelope = ErrorEnvelope.match(document)
    if envelope is not None:
        return ApiOutcome.failure(upstream_error(envelope))
    try:
        return ApiOutcome.success(decode(document))
    except DecodeError as exc:
        return ApiOutcome.failure(exc)
