from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .config import Settings
from .providers.lastfm import LastFmClient
from .ratings import RatingStore


@dataclass
class StarFmApp:
    settings: Settings
    store: RatingStore
    client: LastFmClient

    @classmethod
    def create(cls, settings: Settings) -> "StarFmApp":
        store = RatingStore(settings.store.path)
        client = LastFmClient.from_settings(settings.lastfm)
        return cls(settings=settings, store=store, client=client)

    def current_user(self, override: Optional[str] = None) -> str:
        if override:
            return override
        session = self.store.get_session()
        if session is None:
            raise SystemExit("Not logged in - run `starfm login USERNAME` or pass --user.")
        return session.username

    def close(self) -> None:
        self.store.close()
