"""Transport layer for ShareFile's REST-over-GET API.

Defines the Transport protocol and its production implementation:
- HttpTransport: issues HTTPS GETs against ``https://{subdomain}.{domain}/rest/``

Every ShareFile method answers with the same JSON envelope::

    {"error": bool, "errorMessage": str, "errorCode": any, "value": any}

The transport unwraps it, returning ``value`` on success and raising
``UpstreamError`` when ``error`` is set.
"""

from __future__ import annotations

import logging
import ssl
from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any

import certifi
import httpx

from sharefile_client.errors import TransportError, UpstreamError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 60


class Transport(ABC):
    """Abstract base class for ShareFile method invocation."""

    @abstractmethod
    async def get(self, method: str, params: Mapping[str, Any]) -> Any:
        """Invoke *method* with *params* and return the envelope's ``value``.

        Args:
            method: ShareFile method name (``getAuthID``, ``folder``, ...)
            params: Query parameters for the call

        Raises:
            UpstreamError: the service reported ``error: true``
            TransportError: the request could not be completed
        """
        ...

    @abstractmethod
    async def close(self) -> None:
        """Close any open connections."""
        ...


class HttpTransport(Transport):
    """Production transport backed by ``httpx.AsyncClient``."""

    def __init__(
        self,
        subdomain: str,
        domain: str = "sharefile.com",
        timeout: float = DEFAULT_TIMEOUT,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the transport.

        Args:
            subdomain: Account subdomain, e.g. ``acme`` for acme.sharefile.com
            domain: Service domain
            timeout: Request timeout in seconds
            client: Pre-built client (tests inject one with a mock transport)
        """
        self._base_url = f"https://{subdomain}.{domain}/rest/"
        if client is None:
            ssl_context = ssl.create_default_context(cafile=certifi.where())
            client = httpx.AsyncClient(
                timeout=timeout,
                verify=ssl_context,
                headers={"Accept": "application/json"},
            )
        self._client = client

    @property
    def base_url(self) -> str:
        return self._base_url

    def url_for(self, method: str) -> str:
        return f"{self._base_url}{method}.aspx"

    async def get(self, method: str, params: Mapping[str, Any]) -> Any:
        query = {k: v for k, v in params.items() if v is not None}
        query["fmt"] = "json"
        url = self.url_for(method)
        logger.debug("GET %s (params=%s)", url, sorted(k for k in query if k != "password"))

        try:
            response = await self._client.get(url, params=query)
        except httpx.RequestError as e:
            raise TransportError(f"Network error: {e}") from e

        return self._unwrap(response)

    def _unwrap(self, response: httpx.Response) -> Any:
        """Decode the JSON envelope and surface service-side errors."""
        try:
            body = response.json()
        except ValueError as e:
            raise TransportError(
                f"Invalid JSON in response ({response.status_code}): {response.text[:200]}"
            ) from e

        if not isinstance(body, dict):
            raise TransportError(f"Unexpected response body: {body!r}")

        if body.get("error"):
            raise UpstreamError(
                body.get("errorMessage") or "Unknown ShareFile error",
                code=body.get("errorCode"),
            )

        if response.is_error:
            raise TransportError(f"HTTP error ({response.status_code}): {response.text[:200]}")

        return body.get("value")

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()
