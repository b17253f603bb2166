"""HTTP client port: contract for performing single, non-following GET requests.

Domain code depends on this port; infrastructure (e.g. httpx) implements it.
Responses are streamed so the domain can decide whether the body is read at all.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Protocol, runtime_checkable


class HttpClientError(Exception):
    """Base for HTTP client failures (connection, protocol, etc.)."""


class HttpClientTimeoutError(HttpClientError):
    """Raised when the request times out."""


@runtime_checkable
class HttpResponse(Protocol):
    """Minimal read-only view of a streamed HTTP response."""

    @property
    def headers(self) -> Mapping[str, str]: ...

    @property
    def status_code(self) -> int: ...

    @property
    def url(self) -> str: ...

    async def read(self) -> bytes:
        """Read the full body; raise HttpClientError on failure."""
        ...

    async def close(self) -> None:
        """Release the underlying connection. Safe to call more than once."""
        ...


@dataclass(frozen=True)
class RequestTimeout:
    """Connect and read timeouts in seconds."""

    connect_seconds: float
    read_seconds: float


@runtime_checkable
class AbstractHttpClient(Protocol):
    """Port: perform GET requests. Implementations live in infrastructure."""

    async def get(
        self,
        url: str,
        *,
        timeout: RequestTimeout,
        headers: dict[str, str] | None = None,
    ) -> HttpResponse:
        """Perform GET without following redirects; raise HttpClientTimeoutError or HttpClientError."""
        ...

    async def close(self) -> None:
        """Release resources (e.g. connection pool). No-op allowed if nothing to close."""
        ...
