"""Client settings: validation, defaults and YAML loading.

Settings can come from three places, in order of precedence:

  1. Explicit values passed to ``Settings`` / ``Settings.from_mapping``.
  2. A ``sharefile:`` block in a YAML file (``Settings.from_yaml``).
  3. ``SHAREFILE_USERNAME`` / ``SHAREFILE_PASSWORD`` environment variables,
     for the default credentials only.

``timeout`` (cache entry lifetime) and ``refresh`` (session refresh window)
are expressed in milliseconds and are independent of each other: a session
can drop out of the cache before its refresh window has elapsed.
"""

from __future__ import annotations

import dataclasses
import os
import pathlib
from collections.abc import Mapping
from typing import Any

import yaml

from sharefile_client.errors import ConfigurationError

DEFAULT_DOMAIN = "sharefile.com"
DEFAULT_TIMEOUT_MS = 15 * 60 * 1000
DEFAULT_REFRESH_MS = 15 * 60 * 60 * 1000
DEFAULT_REQUEST_TIMEOUT = 60.0

_ENV_USERNAME = "SHAREFILE_USERNAME"
_ENV_PASSWORD = "SHAREFILE_PASSWORD"


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


@dataclasses.dataclass(frozen=True)
class Settings:
    """Validated configuration for a ``ShareFile`` client.

    Attributes:
        subdomain:       Account subdomain (required).
        domain:          Service domain.
        timeout:         Cache entry lifetime in milliseconds.
        refresh:         Session refresh window in milliseconds.
        username:        Default username used when a call carries none.
        password:        Default password used when a call carries none.
        request_timeout: HTTP request timeout in seconds.
    """

    subdomain: str
    domain: str = DEFAULT_DOMAIN
    timeout: float = DEFAULT_TIMEOUT_MS
    refresh: float = DEFAULT_REFRESH_MS
    username: str | None = None
    password: str | None = dataclasses.field(default=None, repr=False)
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT

    def __post_init__(self) -> None:
        if not _is_number(self.timeout) or self.timeout <= 0:
            raise ConfigurationError("'settings.timeout' property must be a positive number.")
        if not _is_number(self.refresh) or self.refresh <= 0:
            raise ConfigurationError("'settings.refresh' property must be a positive number.")
        if not isinstance(self.domain, str) or not self.domain:
            raise ConfigurationError("'settings.domain' property must be a string.")
        if not isinstance(self.subdomain, str) or not self.subdomain:
            raise ConfigurationError("'settings.subdomain' property is missing or invalid.")
        if not _is_number(self.request_timeout) or self.request_timeout <= 0:
            raise ConfigurationError("'settings.request_timeout' property must be a positive number.")

    @property
    def timeout_seconds(self) -> float:
        return self.timeout / 1000

    @property
    def refresh_seconds(self) -> float:
        return self.refresh / 1000

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> Settings:
        """Build settings from a plain mapping, applying defaults for missing keys."""
        if data is None:
            data = {}
        if not isinstance(data, Mapping):
            raise ConfigurationError("'settings' argument must be a mapping.")

        known = {f.name for f in dataclasses.fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ConfigurationError(f"Unknown settings: {sorted(unknown)}")

        values = {k: v for k, v in data.items() if v is not None}
        values.setdefault("subdomain", "")
        return cls(**values)

    @classmethod
    def from_yaml(cls, path: str | pathlib.Path) -> Settings:
        """Load the ``sharefile:`` block of a YAML file.

        Missing default credentials are filled from the environment.
        """
        path = pathlib.Path(path)
        if not path.exists():
            raise ConfigurationError(f"Settings file not found: {path}")
        with open(path) as fh:
            data = yaml.safe_load(fh) or {}
        if not isinstance(data, dict):
            raise ConfigurationError("Settings file must contain a mapping")

        block = data.get("sharefile") or {}
        if not isinstance(block, Mapping):
            raise ConfigurationError("'sharefile' block must be a mapping")
        block = dict(block)
        if not block.get("username"):
            block["username"] = os.environ.get(_ENV_USERNAME)
        if not block.get("password"):
            block["password"] = os.environ.get(_ENV_PASSWORD)
        return cls.from_mapping(block)
