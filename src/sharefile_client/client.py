"""Public ShareFile client.

Usage::

    async with ShareFile({"subdomain": "acme"}) as sf:
        auth = await sf.authenticate(username="bob", password="secret")
        listing = await sf.folder(auth=auth, path="/Reports")

Each operation accepts its parameters either as keyword arguments or as a
single mapping (or both, keywords winning).  A call may carry an ``auth``
session id returned by ``authenticate``, or ``username``/``password``, or
nothing at all when default credentials were configured.  See
https://api.sharefile.com/https.aspx for the operations and their parameters.
"""

from __future__ import annotations

import time
from collections.abc import Mapping
from typing import Any, Callable

from sharefile_client.auth.authenticator import Authenticator
from sharefile_client.cache.session_manager import SessionManager
from sharefile_client.config.settings import Settings
from sharefile_client.dispatch.gate import DispatchGate
from sharefile_client.errors import ValidationError
from sharefile_client.transport.http import HttpTransport, Transport


def _merge(options: Mapping[str, Any] | None, params: dict[str, Any]) -> dict[str, Any]:
    if options is not None and not isinstance(options, Mapping):
        raise ValidationError("'options' argument is missing or invalid.")
    merged = dict(options or {})
    merged.update(params)
    return merged


def _require_op(request: Mapping[str, Any]) -> None:
    op = request.get("op")
    if not op or not isinstance(op, str):
        raise ValidationError("'options.op' property is missing or invalid.")


class ShareFile:
    """Handles invocations of ShareFile's methods under a managed session."""

    def __init__(
        self,
        settings: Settings | Mapping[str, Any],
        transport: Transport | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if not isinstance(settings, Settings):
            settings = Settings.from_mapping(settings)
        self.settings = settings

        if transport is None:
            transport = HttpTransport(
                subdomain=settings.subdomain,
                domain=settings.domain,
                timeout=settings.request_timeout,
            )
        self._transport = transport
        self.sessions = SessionManager(settings.timeout_seconds, clock)
        self._authenticator = Authenticator(
            transport,
            self.sessions,
            refresh=settings.refresh_seconds,
            default_username=settings.username,
            default_password=settings.password,
            clock=clock,
        )
        self._gate = DispatchGate(transport, self.sessions, self._authenticator, clock)

    async def __aenter__(self) -> ShareFile:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._transport.close()

    # -- operations ----------------------------------------------------------

    async def authenticate(self, options: Mapping[str, Any] | None = None, /, **params: Any) -> str:
        """Authenticate a user and return a session id for subsequent calls."""
        request = _merge(options, params)
        return await self._authenticator.authenticate(request.get("username"), request.get("password"))

    async def get_auth_id(self, options: Mapping[str, Any] | None = None, /, **params: Any) -> str:
        """Alias of ``authenticate`` kept for older callers."""
        return await self.authenticate(options, **params)

    async def folder(self, options: Mapping[str, Any] | None = None, /, **params: Any) -> Any:
        """Run a folder operation; ``op`` defaults to ``"list"``.

        Requires ``id`` or ``path``.
        """
        request = _merge(options, params)
        if not (request.get("id") or request.get("path")):
            raise ValidationError("'options.id' or 'options.path' properties are required.")
        request.setdefault("op", "list")
        return await self._gate.dispatch("folder", request)

    async def file(self, options: Mapping[str, Any] | None = None, /, **params: Any) -> Any:
        request = _merge(options, params)
        _require_op(request)
        return await self._gate.dispatch("file", request)

    async def users(self, options: Mapping[str, Any] | None = None, /, **params: Any) -> Any:
        request = _merge(options, params)
        _require_op(request)
        return await self._gate.dispatch("users", request)

    async def group(self, options: Mapping[str, Any] | None = None, /, **params: Any) -> Any:
        request = _merge(options, params)
        _require_op(request)
        return await self._gate.dispatch("group", request)

    async def search(self, options: Mapping[str, Any] | None = None, /, **params: Any) -> Any:
        """Run a search; ``query`` carries the search expression."""
        request = _merge(options, params)
        request["op"] = "search"
        return await self._gate.dispatch("search", request)

    async def call(self, method: str, options: Mapping[str, Any] | None = None, /, **params: Any) -> Any:
        """Dispatch to one of the named operations by *method* name."""
        operation = OPERATIONS.get(method)
        if operation is None:
            raise ValidationError(f"Unknown operation: {method!r}")
        return await operation(self, options, **params)


OPERATIONS: dict[str, Callable[..., Any]] = {
    "authenticate": ShareFile.authenticate,
    "folder": ShareFile.folder,
    "file": ShareFile.file,
    "users": ShareFile.users,
    "group": ShareFile.group,
    "search": ShareFile.search,
}
