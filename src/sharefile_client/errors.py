"""Exception hierarchy shared by every layer of the client.

Every error raised by the library derives from ``ShareFileError`` so callers
can catch the whole family in one place, or pick out the specific condition
they care about (an unknown session id, a failed login, an error envelope
returned by the service).
"""

from __future__ import annotations

from typing import Any


class ShareFileError(Exception):
    """Base class for all client errors."""


class ConfigurationError(ShareFileError, ValueError):
    """Raised when client settings are missing or have the wrong type."""


class ValidationError(ShareFileError, ValueError):
    """Raised when caller input is malformed or incomplete.

    Validation happens before any network I/O and is never retried.
    """


class TransportError(ShareFileError):
    """Raised when the HTTP exchange itself fails."""


class UpstreamError(TransportError):
    """Raised when the service answers with ``error: true`` in its envelope."""

    def __init__(self, message: str, code: Any = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code


class AuthFailure(ShareFileError):
    """Raised when the login call fails (bad credentials, network error)."""

    def __init__(self, message: str, code: Any = None) -> None:
        super().__init__(message)
        self.code = code


class InvalidSession(ShareFileError):
    """Raised when an ``auth`` value was never issued or has been evicted."""


class RefreshMismatch(ShareFileError):
    """Raised when an expired session cannot be refreshed under the same id."""
