"""Two-key session table built from a pair of expiring stores."""

from __future__ import annotations

import time
from typing import Callable

from sharefile_client.auth.session import SessionRecord
from sharefile_client.cache.expiring_store import ExpiringStore


class SessionManager:
    """Owns the session store (id -> record) and the username index (username -> id).

    Both stores share the same TTL but expire independently, so the index can
    point at a session whose record has already been evicted.  Readers must
    treat such a dangling entry as "no cached session".
    """

    def __init__(self, timeout: float, clock: Callable[[], float] = time.monotonic) -> None:
        self.sessions: ExpiringStore[SessionRecord] = ExpiringStore(timeout, clock)
        self.usernames: ExpiringStore[str] = ExpiringStore(timeout, clock)

    def get_session(self, session_id: str) -> SessionRecord | None:
        return self.sessions.get(session_id)

    def lookup(self, username: str) -> str | None:
        """Return the session id currently indexed for *username*, if any."""
        return self.usernames.get(username)

    def store(self, session_id: str, record: SessionRecord) -> None:
        """Save *record* under *session_id* and point the username index at it."""
        self.sessions.set(session_id, record)
        self.usernames.set(record.username, session_id)

    def forget(self, session_id: str, username: str) -> None:
        self.sessions.remove(session_id)
        self.usernames.remove(username)
