"""Tests for the dispatch gate's session resolution and retry bounds."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from sharefile_client.dispatch.gate import DispatchGate
from sharefile_client.errors import (
    AuthFailure,
    InvalidSession,
    RefreshMismatch,
    UpstreamError,
    ValidationError,
)


class TestExplicitSession:
    async def test_forwards_identity_and_fields(self, gate, authenticator, transport) -> None:
        transport.reply("getAuthID", "xyz").reply("folder", "ok")
        sid = await authenticator.authenticate("bar", "baz")

        result = await gate.dispatch("folder", {"auth": sid, "path": "/alfa", "op": "list"})

        assert result == "ok"
        assert transport.calls[-1] == ("folder", {"authid": "xyz", "path": "/alfa", "op": "list"})

    async def test_authid_alias_accepted(self, gate, authenticator, transport) -> None:
        transport.reply("getAuthID", "xyz").reply("group", "ok")
        sid = await authenticator.authenticate("bar", "baz")

        await gate.dispatch("group", {"authid": sid, "op": "list"})

        assert transport.calls[-1] == ("group", {"authid": "xyz", "op": "list"})

    async def test_credentials_never_forwarded(self, gate, authenticator, transport) -> None:
        transport.reply("getAuthID", "xyz").reply("users", "ok")
        sid = await authenticator.authenticate("bar", "baz")

        await gate.dispatch(
            "users",
            {"auth": sid, "username": "bar", "password": "baz", "op": "getaddressbook"},
        )

        _, params = transport.calls[-1]
        assert params == {"authid": "xyz", "op": "getaddressbook"}

    async def test_unknown_session_is_invalid(self, gate, transport) -> None:
        with pytest.raises(InvalidSession):
            await gate.dispatch("folder", {"auth": "never-issued", "path": "/"})
        assert transport.calls == []

    async def test_evicted_session_is_invalid(self, gate, authenticator, transport, clock) -> None:
        transport.reply("getAuthID", "xyz")
        sid = await authenticator.authenticate("bar", "baz")
        clock.advance(900)  # cache lifetime

        with pytest.raises(InvalidSession):
            await gate.dispatch("folder", {"auth": sid, "path": "/"})
        assert len(transport.calls_to("getAuthID")) == 1

    async def test_request_is_not_mutated(self, gate, authenticator, transport) -> None:
        transport.reply("getAuthID", "xyz").reply("folder", "ok")
        request = {"username": "bar", "password": "baz", "path": "/"}

        await gate.dispatch("folder", request)

        assert request == {"username": "bar", "password": "baz", "path": "/"}

    async def test_upstream_error_propagates(self, gate, authenticator, transport) -> None:
        transport.reply("getAuthID", "xyz").reply("file", UpstreamError("File not found", code=404))
        sid = await authenticator.authenticate("bar", "baz")

        with pytest.raises(UpstreamError) as excinfo:
            await gate.dispatch("file", {"auth": sid, "op": "get", "id": "f1"})

        assert excinfo.value.code == 404
        assert excinfo.value.message == "File not found"


class TestMissingSession:
    async def test_authenticates_then_sends(self, gate, transport) -> None:
        transport.reply("getAuthID", "pqr").reply("folder", "ok")

        result = await gate.dispatch(
            "folder", {"username": "alfa", "password": "beta", "op": "list", "path": "/"}
        )

        assert result == "ok"
        assert transport.calls == [
            ("getAuthID", {"username": "alfa", "password": "beta", "op": "login"}),
            ("folder", {"authid": "pqr", "op": "list", "path": "/"}),
        ]

    async def test_no_credentials_fails_without_io(self, gate, transport) -> None:
        with pytest.raises(ValidationError):
            await gate.dispatch("folder", {"op": "list", "path": "/"})
        assert transport.calls == []

    async def test_login_failure_is_terminal(self, gate, transport) -> None:
        transport.reply("getAuthID", UpstreamError("bad credentials"))

        with pytest.raises(AuthFailure):
            await gate.dispatch("folder", {"username": "a", "password": "b", "path": "/"})

        assert [m for m, _ in transport.calls] == ["getAuthID"]


class TestExpiredSession:
    async def test_refreshes_once_and_keeps_session_id(self, gate, authenticator, transport, clock) -> None:
        transport.reply("getAuthID", "xyz", "pqr").reply("folder", "ok")
        sid = await authenticator.authenticate("bar", "baz")

        await gate.dispatch("folder", {"auth": sid, "path": "/alfa", "op": "list"})
        clock.advance(61)
        result = await gate.dispatch("folder", {"auth": sid, "path": "/beta", "op": "list"})

        assert result == "ok"
        assert [m for m, _ in transport.calls] == ["getAuthID", "folder", "getAuthID", "folder"]
        assert transport.calls[-1] == ("folder", {"authid": "pqr", "path": "/beta", "op": "list"})

    async def test_refresh_to_different_id_is_mismatch(self, gate, authenticator, transport, sessions, clock) -> None:
        transport.reply("getAuthID", "xyz")
        sid = await authenticator.authenticate("bar", "baz")

        # Username index now points somewhere else.
        sessions.usernames.set("bar", "some-other-session")
        clock.advance(61)

        with pytest.raises(RefreshMismatch):
            await gate.dispatch("folder", {"auth": sid, "path": "/"})
        assert transport.calls_to("folder") == []

    async def test_refresh_failure_propagates(self, gate, authenticator, transport, clock) -> None:
        transport.reply("getAuthID", "xyz", UpstreamError("password expired", code=17))
        sid = await authenticator.authenticate("bar", "baz")
        clock.advance(61)

        with pytest.raises(AuthFailure) as excinfo:
            await gate.dispatch("folder", {"auth": sid, "path": "/"})

        assert excinfo.value.code == 17
        assert transport.calls_to("folder") == []

    async def test_second_expiry_is_terminal(self, transport, sessions, clock) -> None:
        # An authenticator that "refreshes" without extending the window.
        authenticator = AsyncMock()
        gate = DispatchGate(transport, sessions, authenticator, clock)
        from sharefile_client.auth.session import SessionRecord

        sessions.store(
            "sid-1",
            SessionRecord(user_identity="xyz", username="bar", password="baz", expires_at=clock() - 1),
        )
        authenticator.authenticate.return_value = "sid-1"

        with pytest.raises(RefreshMismatch, match="expired again"):
            await gate.dispatch("folder", {"auth": "sid-1", "path": "/"})

        authenticator.authenticate.assert_awaited_once_with("bar", "baz")
        assert transport.calls == []


class TestOutboundParams:
    def test_identity_first_then_fields_in_order(self) -> None:
        params = DispatchGate.outbound_params(
            "xyz", {"auth": "s", "query": "*", "password": "p", "op": "search"}
        )
        assert list(params.items()) == [("authid", "xyz"), ("query", "*"), ("op", "search")]
