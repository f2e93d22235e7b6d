"""User authentication against ShareFile's ``getAuthID`` method.

Pattern: Cached Login
----------------------
A login round-trip is only made when the cache cannot vouch for the
credentials.  The fast path (username index -> session id -> record whose
password matches and whose refresh window is still open) runs before any I/O.

When a login does happen for a username that already has a session id, that
id is reused so references held by callers stay valid across a refresh.  A
failed login for such a username clears both cache entries before the error
propagates.
"""

from __future__ import annotations

import logging
import time
from typing import Callable

from sharefile_client.auth.session import SessionRecord, new_session_id, short_id
from sharefile_client.cache.session_manager import SessionManager
from sharefile_client.errors import AuthFailure, ShareFileError, ValidationError
from sharefile_client.transport.http import Transport

logger = logging.getLogger(__name__)

LOGIN_METHOD = "getAuthID"


class Authenticator:
    """Turns a username/password pair into a valid session id."""

    def __init__(
        self,
        transport: Transport,
        sessions: SessionManager,
        refresh: float,
        default_username: str | None = None,
        default_password: str | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._transport = transport
        self._sessions = sessions
        self._refresh = refresh
        self._default_username = default_username
        self._default_password = default_password
        self._clock = clock

    async def authenticate(self, username: str | None = None, password: str | None = None) -> str:
        """Authenticate *username* and return a session id.

        Falls back to the default credentials for whichever of *username* and
        *password* is missing.  Raises ``ValidationError`` if a credential is
        still missing, ``AuthFailure`` if the login call fails.
        """
        username = username or self._default_username
        password = password or self._default_password
        if not username:
            raise ValidationError("'username' is required.")
        if not password:
            raise ValidationError("'password' is required.")

        session_id = self._sessions.lookup(username)
        if session_id is not None:
            record = self._sessions.get_session(session_id)
            if (
                record is not None
                and record.password == password
                and not record.is_expired_at(self._clock())
            ):
                logger.debug("Reusing cached session %s for %s", short_id(session_id), username)
                return session_id

        try:
            identity = await self._login(username, password)
        except ShareFileError as exc:
            if session_id is not None:
                logger.warning(
                    "Login failed for %s; dropping cached session %s",
                    username,
                    short_id(session_id),
                )
                self._sessions.forget(session_id, username)
            raise AuthFailure(f"ShareFile login failed: {exc}", code=getattr(exc, "code", None)) from exc

        refreshed = session_id is not None
        session_id = session_id or new_session_id()
        self._sessions.store(
            session_id,
            SessionRecord(
                user_identity=identity,
                username=username,
                password=password,
                expires_at=self._clock() + self._refresh,
            ),
        )
        logger.info(
            "User %s %s - session=%s",
            username,
            "re-authenticated" if refreshed else "authenticated",
            short_id(session_id),
        )
        return session_id

    # -- private helpers -----------------------------------------------------

    async def _login(self, username: str, password: str) -> object:
        return await self._transport.get(
            LOGIN_METHOD,
            {"username": username, "password": password, "op": "login"},
        )
