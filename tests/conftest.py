"""Shared fixtures for tests."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import pytest

from sharefile_client.auth.authenticator import Authenticator
from sharefile_client.cache.session_manager import SessionManager
from sharefile_client.dispatch.gate import DispatchGate
from sharefile_client.transport.http import Transport


class FakeClock:
    """Manually advanced clock (seconds)."""

    def __init__(self, start: float = 1_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeTransport(Transport):
    """Records every call and answers from per-method queues.

    A queued ``Exception`` instance is raised instead of returned.  When a
    method's queue is empty the last answer is repeated.
    """

    def __init__(self) -> None:
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self._answers: dict[str, list[Any]] = {}
        self._last: dict[str, Any] = {}
        self.closed = False

    def reply(self, method: str, *answers: Any) -> FakeTransport:
        self._answers.setdefault(method, []).extend(answers)
        return self

    def calls_to(self, method: str) -> list[dict[str, Any]]:
        return [params for m, params in self.calls if m == method]

    async def get(self, method: str, params: Mapping[str, Any]) -> Any:
        self.calls.append((method, dict(params)))
        queue = self._answers.get(method)
        if queue:
            self._last[method] = queue.pop(0)
        if method not in self._last:
            raise AssertionError(f"No answer scripted for {method}")
        answer = self._last[method]
        if isinstance(answer, Exception):
            raise answer
        return answer

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def sessions(clock: FakeClock) -> SessionManager:
    # 15 minute cache lifetime
    return SessionManager(timeout=900, clock=clock)


@pytest.fixture
def authenticator(transport: FakeTransport, sessions: SessionManager, clock: FakeClock) -> Authenticator:
    # 60 second refresh window
    return Authenticator(transport, sessions, refresh=60, clock=clock)


@pytest.fixture
def gate(
    transport: FakeTransport,
    sessions: SessionManager,
    authenticator: Authenticator,
    clock: FakeClock,
) -> DispatchGate:
    return DispatchGate(transport, sessions, authenticator, clock)
