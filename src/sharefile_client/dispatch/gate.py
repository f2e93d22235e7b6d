"""Dispatch gate: guarantees every outbound call carries a live session.

Pattern: Bounded Retry State Machine
-------------------------------------
A request moves through three states::

    NEED_AUTH --authenticate--> HAVE_AUTH --(fresh record)--> SENT
                                    ^   |
                                    +---+ refresh (expired record)

Each transition that involves re-authentication may be taken at most once per
call.  Taking it a second time means the cache cannot produce a usable
session and the call fails instead of looping.

The gate never forwards the caller's session id or credentials.  The outbound
parameter set carries the server-issued identity as ``authid`` followed by the
caller's operation fields, in their original order.
"""

from __future__ import annotations

import enum
import logging
import time
from collections.abc import Mapping
from typing import Any, Callable

from sharefile_client.auth.authenticator import Authenticator
from sharefile_client.auth.session import short_id
from sharefile_client.cache.session_manager import SessionManager
from sharefile_client.errors import InvalidSession, RefreshMismatch
from sharefile_client.transport.http import Transport

logger = logging.getLogger(__name__)

# Request fields that identify the caller and are never sent upstream.
CREDENTIAL_FIELDS = frozenset({"auth", "authid", "username", "password"})


class GateState(enum.Enum):
    NEED_AUTH = "need_auth"
    HAVE_AUTH = "have_auth"
    SENT = "sent"


class DispatchGate:
    """Resolves a valid session for each operation and forwards it to the transport."""

    def __init__(
        self,
        transport: Transport,
        sessions: SessionManager,
        authenticator: Authenticator,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._transport = transport
        self._sessions = sessions
        self._authenticator = authenticator
        self._clock = clock

    async def dispatch(self, method: str, request: Mapping[str, Any]) -> Any:
        """Send *request* to ShareFile *method* under a currently valid session.

        Raises:
            ValidationError: no ``auth`` and no usable credentials
            AuthFailure:     the (re-)login call failed
            InvalidSession:  ``auth`` is unknown to the cache
            RefreshMismatch: an expired session could not be renewed in place
            TransportError:  the forwarded call failed
        """
        params = dict(request)
        auth = params.get("auth") or params.get("authid")
        state = GateState.HAVE_AUTH if auth else GateState.NEED_AUTH
        refreshed = False

        while state is not GateState.SENT:
            if state is GateState.NEED_AUTH:
                # Only the initial state; nothing transitions back here.
                auth = await self._authenticator.authenticate(
                    params.get("username"), params.get("password")
                )
                state = GateState.HAVE_AUTH
                continue

            record = self._sessions.get_session(auth)
            if record is None:
                raise InvalidSession("Invalid 'auth' property.")

            if record.is_expired_at(self._clock()):
                if refreshed:
                    raise RefreshMismatch(
                        f"Session {short_id(auth)} expired again right after a refresh."
                    )
                refreshed = True
                logger.info("Session %s expired; refreshing", short_id(auth))
                renewed = await self._authenticator.authenticate(record.username, record.password)
                if renewed != auth:
                    raise RefreshMismatch("Couldn't refresh the authId.")
                continue

            outbound = self.outbound_params(record.authid, params)
            state = GateState.SENT

        logger.debug("Dispatching %s under session %s", method, short_id(auth))
        return await self._transport.get(method, outbound)

    @staticmethod
    def outbound_params(authid: Any, params: Mapping[str, Any]) -> dict[str, Any]:
        """Build the parameter set sent upstream: identity first, credentials stripped."""
        outbound: dict[str, Any] = {"authid": authid}
        outbound.update((k, v) for k, v in params.items() if k not in CREDENTIAL_FIELDS)
        return outbound
