"""HTTP client factory: builds AbstractHttpClient from settings (no provider logic in composition)."""
from __future__ import annotations

import httpx

from adstxt.app.config.settings import Settings
from adstxt.app.ports.http_client import AbstractHttpClient
from adstxt.app.infrastructure.http.httpx_client import HttpxHttpClient


def create_http_client(
    settings: Settings,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> AbstractHttpClient:
    """Build an HTTP client from settings. Timeouts are applied per-request by the adapter.

    Keep-alive is disabled: each host is fetched once and briefly.
    """
    async_client = httpx.AsyncClient(
        follow_redirects=False,
        limits=httpx.Limits(max_keepalive_connections=0),
        transport=transport,
    )
    return HttpxHttpClient(async_client)
