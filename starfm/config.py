from __future__ import annotations

import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, field_validator

DEFAULT_BASE_URL = "https://ws.audioscrobbler.com/2.0/"

_PLACEHOLDER = re.compile(r"^\$(\([A-Za-z0-9_]+\)|\{[A-Za-z0-9_]+\})$")


def is_placeholder(value: Optional[str]) -> bool:
    """True for build-time tokens like ``$(LASTFM_API_KEY)`` that were never substituted."""
    if not value:
        return False
    return bool(_PLACEHOLDER.match(value.strip()))


@dataclass(frozen=True, slots=True)
class Credentials:
    api_key: str
    shared_secret: str

    @classmethod
    def resolve(cls, api_key: Optional[str], shared_secret: Optional[str]) -> "Credentials":
        return cls(api_key=_clean(api_key), shared_secret=_clean(shared_secret))

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key) and bool(self.shared_secret)


def _clean(value: Optional[str]) -> str:
    if not value or is_placeholder(value):
        return ""
    return value


class LastFmSettings(BaseModel):
    api_key: Optional[str] = None
    shared_secret: Optional[str] = None
    base_url: str = DEFAULT_BASE_URL
    timeout_seconds: Optional[float] = None
    recent_limit: int = 50

    def credentials(self) -> Credentials:
        api_key = _clean(self.api_key) or os.environ.get("LASTFM_API_KEY")
        shared_secret = _clean(self.shared_secret) or os.environ.get("LASTFM_SHARED_SECRET")
        return Credentials.resolve(api_key, shared_secret)


class StoreSettings(BaseModel):
    path: Path = Path("~/.local/share/starfm/ratings.sqlite3").expanduser()

    @field_validator("path", mode="before")
    @classmethod
    def _expand_path(cls, value: str | Path) -> Path:
        return Path(value).expanduser().resolve()


class Settings(BaseModel):
    lastfm: LastFmSettings = LastFmSettings()
    store: StoreSettings = StoreSettings()

    @classmethod
    def load(cls, path: Path) -> "Settings":
        with path.open("r", encoding="utf-8") as fh:
            raw = yaml.safe_load(fh)
        return cls.model_validate(raw or {})


def find_config(explicit_path: Optional[Path]) -> Path:
    if explicit_path:
        return explicit_path
    cwd = Path.cwd()
    for candidate in (cwd / "config.yaml", cwd / "config.yml"):
        if candidate.exists():
            return candidate
    raise FileNotFoundError("Could not find config.yaml - pass --config explicitly.")


def load_settings(explicit_path: Optional[Path]) -> tuple[Settings, Optional[Path]]:
    """Settings from the config file, or defaults when none exists and none was asked for."""
    try:
        path = find_config(explicit_path)
    except FileNotFoundError:
        return Settings(), None
    return Settings.load(path), path
