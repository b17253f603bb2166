"""Concrete HTTP client implementation using httpx (injected where AbstractHttpClient is needed)."""
from __future__ import annotations

from typing import Mapping

import httpx

from adstxt.app.ports.http_client import (
    AbstractHttpClient,
    HttpClientError,
    HttpClientTimeoutError,
    HttpResponse,
    RequestTimeout,
)


class _HttpxResponseAdapter:
    """Adapts a streamed httpx.Response to the HttpResponse protocol."""

    def __init__(self, response: httpx.Response) -> None:
        self._response = response

    @property
    def headers(self) -> Mapping[str, str]:
        # httpx.Headers lookups are case-insensitive.
        return self._response.headers

    @property
    def status_code(self) -> int:
        return self._response.status_code

    @property
    def url(self) -> str:
        return str(self._response.url)

    async def read(self) -> bytes:
        try:
            return await self._response.aread()
        except httpx.TimeoutException as exc:
            raise HttpClientTimeoutError(f"timeout while reading {self._response.url}") from exc
        except (httpx.HTTPError, httpx.StreamError) as exc:
            raise HttpClientError(f"failed reading body of {self._response.url}: {exc}") from exc

    async def close(self) -> None:
        await self._response.aclose()


class HttpxHttpClient(AbstractHttpClient):
    """AbstractHttpClient implementation using httpx.AsyncClient; never follows redirects."""

    def __init__(self, client: httpx.AsyncClient) -> None:
        self._client = client

    async def get(
        self,
        url: str,
        *,
        timeout: RequestTimeout,
        headers: dict[str, str] | None = None,
    ) -> HttpResponse:
        httpx_timeout = httpx.Timeout(
            connect=timeout.connect_seconds,
            read=timeout.read_seconds,
            write=timeout.read_seconds,
            pool=timeout.connect_seconds,
        )
        try:
            request = self._client.build_request(
                "GET",
                url,
                headers=headers or {},
                timeout=httpx_timeout,
            )
            response = await self._client.send(request, stream=True, follow_redirects=False)
            return _HttpxResponseAdapter(response)
        except httpx.TimeoutException as exc:
            raise HttpClientTimeoutError(f"timeout while fetching {url}") from exc
        except httpx.HTTPError as exc:
            raise HttpClientError(f"http fetch failed for {url}: {exc}") from exc
        except httpx.InvalidURL as exc:
            raise HttpClientError(f"invalid URL {url}: {exc}") from exc

    async def close(self) -> None:
        await self._client.aclose()
