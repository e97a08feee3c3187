from __future__ import annotations

import getpass
from typing import Optional

from ..app import StarFmApp


def login(app: StarFmApp, username: str, password: Optional[str] = None) -> None:
    if password is None:
        password = getpass.getpass(f"Last.fm password for {username}: ")
    session = app.client.authenticate(username, password)
    app.store.save_session(session)
    print(f"Logged in as {session.username}.")


def logout(app: StarFmApp) -> None:
    session = app.store.get_session()
    app.store.clear_session()
    if session is None:
        print("Not logged in.")
        return
    print(f"Logged out {session.username}.")
