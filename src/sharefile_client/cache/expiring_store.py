"""In-memory key/value store with a per-entry time-to-live.

Pattern: Lazy Expiry
---------------------
Each entry remembers the clock reading at which it stops being valid.  Reads
compare that deadline against the clock and drop the entry on the spot when it
has passed, so a caller never observes a stale value.

Keys that are never read again are reclaimed on the write path: ``set()``
sweeps every expired entry at most once per TTL, which bounds the store to
roughly the keys written in the last two TTLs.  ``purge()`` runs the same
sweep on demand.

The store is guarded by a single lock.  The data volume is a handful of
sessions per process, so contention is not a concern.
"""

from __future__ import annotations

import threading
import time
from typing import Callable, Generic, TypeVar

from sharefile_client.errors import ValidationError

V = TypeVar("V")


class ExpiringStore(Generic[V]):
    """A thread-safe mapping whose entries expire ``ttl`` seconds after their last write."""

    def __init__(self, ttl: float, clock: Callable[[], float] = time.monotonic) -> None:
        if ttl <= 0:
            raise ValueError(f"ttl must be positive, got {ttl!r}")
        self._ttl = ttl
        self._clock = clock
        self._entries: dict[str, tuple[V, float]] = {}
        self._next_sweep = clock() + ttl
        self._lock = threading.Lock()

    @property
    def ttl(self) -> float:
        return self._ttl

    def get(self, key: str) -> V | None:
        """Return the live value for *key*, or ``None`` if absent or expired."""
        self._check_key(key)
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            value, deadline = entry
            if now >= deadline:
                del self._entries[key]
                return None
            return value

    def set(self, key: str, value: V) -> None:
        """Insert or replace *key* and restart its timer."""
        self._check_key(key)
        now = self._clock()
        with self._lock:
            if now >= self._next_sweep:
                self._sweep(now)
            self._entries[key] = (value, now + self._ttl)

    def remove(self, key: str) -> None:
        self._check_key(key)
        with self._lock:
            self._entries.pop(key, None)

    def purge(self) -> int:
        """Evict every expired entry and return how many were dropped."""
        now = self._clock()
        with self._lock:
            return self._sweep(now)

    def __len__(self) -> int:
        now = self._clock()
        with self._lock:
            return sum(1 for _, deadline in self._entries.values() if now < deadline)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and bool(key) and self.get(key) is not None

    # -- private helpers -----------------------------------------------------

    def _sweep(self, now: float) -> int:
        # Caller holds the lock.
        expired = [k for k, (_, deadline) in self._entries.items() if now >= deadline]
        for key in expired:
            del self._entries[key]
        self._next_sweep = now + self._ttl
        return len(expired)

    @staticmethod
    def _check_key(key: object) -> None:
        if not isinstance(key, str) or not key:
            raise ValidationError(f"Cache keys must be non-empty strings, got {key!r}")
