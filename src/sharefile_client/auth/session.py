"""Session record that backs one locally-issued session id.

Pattern: Local Session Alias
-----------------------------
ShareFile's login call returns a server identity (the ``authid``).  The
client does not hand that identity to callers.  Instead it mints its own
random session id and keeps a ``SessionRecord`` under that id holding the
identity plus the credentials needed to obtain a fresh identity when the
refresh window elapses.  Callers keep using the same session id across
refreshes; only the record behind it changes.

Records are immutable.  A refresh stores a new record under the same id rather
than mutating the existing one.
"""

from __future__ import annotations

import dataclasses
import uuid
from typing import Any


def new_session_id() -> str:
    """Return a fresh, globally unique session id (36-character UUID4 string)."""
    return str(uuid.uuid4())


def short_id(session_id: str) -> str:
    """Abbreviated session id for log lines."""
    return session_id[:8]


@dataclasses.dataclass(frozen=True)
class SessionRecord:
    """Immutable snapshot of an authenticated ShareFile session.

    Attributes:
        user_identity: Value returned by the service's login call.
        username:      Username the session was opened with.
        password:      Password the session was opened with, kept so the
                       session can be renewed without asking the caller.
        expires_at:    Client clock reading (seconds, monotonic by default)
                       after which the identity must be re-validated
                       with a new login.
    """

    user_identity: Any
    username: str
    password: str = dataclasses.field(repr=False)
    expires_at: float

    @property
    def authid(self) -> Any:
        """The identity value sent to the service as the ``authid`` parameter."""
        if isinstance(self.user_identity, dict) and "authid" in self.user_identity:
            return self.user_identity["authid"]
        return self.user_identity

    def is_expired_at(self, now: float) -> bool:
        return now >= self.expires_at

    def __str__(self) -> str:
        return f"SessionRecord(user={self.username}, expires_at={self.expires_at:.3f})"
