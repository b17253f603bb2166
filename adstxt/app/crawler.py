"""Inbound entry points: build requests, fetch one host, or fetch many concurrently.

`get` and `get_multiple` wire their own dependencies when none are given and
close them afterwards; long-lived callers should hold a CrawlerDependencies
and pass it in.
"""
from __future__ import annotations

import asyncio
from functools import lru_cache
from typing import Iterable

from adstxt.app.application.batch_service import OutcomeHandler
from adstxt.app.composition import CrawlerDependencies, create_crawler_dependencies
from adstxt.app.config.settings import Settings
from adstxt.app.domain.models import Request, Response
from adstxt.app.infrastructure.domain.factory import create_domain_resolver
from adstxt.app.ports.domain_resolver import DomainResolver


@lru_cache(maxsize=1)
def _default_resolver() -> DomainResolver:
    return create_domain_resolver(Settings())


def new_request(url: str, deps: CrawlerDependencies | None = None) -> Request:
    """Request for exactly `url`; raises RequestConstructionError."""
    resolver = deps.resolver if deps is not None else _default_resolver()
    return Request.create(url, resolver)


def new_host_request(host: str, deps: CrawlerDependencies | None = None) -> Request:
    """Request for `<scheme>://<host>/ads.txt`; raises RequestConstructionError."""
    resolver = deps.resolver if deps is not None else _default_resolver()
    return Request.for_host(host, resolver)


async def get(
    request: Request,
    deps: CrawlerDependencies | None = None,
    *,
    cancel_event: asyncio.Event | None = None,
) -> Response:
    """Fetch one ads.txt file; raises an AdsTxtError subclass on failure."""
    owned = deps is None
    deps = deps or create_crawler_dependencies()
    if not deps.connected:
        await deps.connect()
    try:
        return await deps.fetcher.fetch(request, cancel_event=cancel_event)
    finally:
        if owned:
            await deps.close()


async def get_multiple(
    requests: Iterable[Request],
    handler: OutcomeHandler,
    deps: CrawlerDependencies | None = None,
    *,
    cancel_event: asyncio.Event | None = None,
) -> None:
    """Fetch all requests concurrently; `handler(request, response, error)` runs once per request."""
    owned = deps is None
    deps = deps or create_crawler_dependencies()
    if not deps.connected:
        await deps.connect()
    try:
        await deps.batch_service.run(requests, handler, cancel_event=cancel_event)
    finally:
        if owned:
            await deps.close()
