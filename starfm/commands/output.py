from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..ratings import MAX_RATING

EMPTY_VALUE = "—"


@dataclass(frozen=True, slots=True)
class CheckLine:
    label: str
    status: str
    detail: Optional[str] = None

    def render(self) -> str:
        if self.detail:
            return f"{self.label}: {self.status} ({self.detail})"
        return f"{self.label}: {self.status}"


def ok(label: str, detail: Optional[str] = None) -> str:
    return CheckLine(label, "OK", detail).render()


def warning(label: str, detail: Optional[str] = None) -> str:
    return CheckLine(label, "WARNING", detail).render()


def error(label: str, detail: Optional[str] = None) -> str:
    return CheckLine(label, "ERROR", detail).render()


def skipped(label: str, detail: Optional[str] = None) -> str:
    return CheckLine(label, "SKIPPED", detail).render()


def stars(rating: Optional[int]) -> str:
    filled = rating or 0
    return "★" * filled + "☆" * (MAX_RATING - filled)


def average(value: Optional[float]) -> str:
    if value is None:
        return EMPTY_VALUE
    return f"{value:.1f}"


def duration(seconds: int) -> str:
    if seconds <= 0:
        return "-:--"
    minutes, secs = divmod(seconds, 60)
    return f"{minutes}:{secs:02d}"


def played(when: Optional[datetime]) -> str:
    if when is None:
        return "now playing"
    return when.astimezone().strftime("%Y-%m-%d %H:%M")
