"""Crawler composition root: build and lifecycle-manage concrete dependencies.

Composition may: import concrete classes, call factories, store interface types,
manage high-level lifecycle.
"""
from __future__ import annotations

from typing import Any

import httpx
from loguru import logger

from adstxt.app.application.batch_service import BatchService
from adstxt.app.config.settings import Settings
from adstxt.app.constants import SERVICE_NAME
from adstxt.app.domain.fetcher import AdsTxtFetcher
from adstxt.app.domain.redirect_policy import RedirectPolicy
from adstxt.app.infrastructure.domain.factory import create_domain_resolver
from adstxt.app.infrastructure.http.factory import create_http_client
from adstxt.app.infrastructure.parsing.adstxt_parser import AdsTxtParser
from adstxt.app.ports.domain_resolver import DomainResolver
from adstxt.app.ports.http_client import AbstractHttpClient


def _log(event: str, **kwargs: Any) -> None:
    logger.bind(service_name=SERVICE_NAME, event=event, **kwargs).info("")


class CrawlerDependencies:
    """Holds wired crawler dependencies and their lifecycle."""

    def __init__(
        self,
        *,
        settings: Settings,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings
        self._transport = transport
        self._http_client: AbstractHttpClient | None = None
        self._resolver: DomainResolver | None = None
        self._fetcher: AdsTxtFetcher | None = None
        self._batch_service: BatchService | None = None
        self._connected = False

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def connected(self) -> bool:
        return self._connected

    @property
    def resolver(self) -> DomainResolver:
        if self._resolver is None:
            self._resolver = create_domain_resolver(self._settings)
        return self._resolver

    @property
    def fetcher(self) -> AdsTxtFetcher:
        if self._fetcher is None:
            raise RuntimeError("fetcher is not initialized")
        return self._fetcher

    @property
    def batch_service(self) -> BatchService:
        if self._batch_service is None:
            raise RuntimeError("batch_service is not initialized")
        return self._batch_service

    async def connect(self) -> None:
        self._http_client = create_http_client(self._settings, transport=self._transport)
        self._fetcher = AdsTxtFetcher(
            self._http_client,
            RedirectPolicy(self.resolver),
            AdsTxtParser(),
            request_timeout_seconds=self._settings.request_timeout_seconds,
            connect_timeout_seconds=self._settings.connect_timeout_seconds,
            user_agent=self._settings.user_agent,
            max_redirects=self._settings.max_redirects,
        )
        self._batch_service = BatchService(self._fetcher)
        self._connected = True
        _log("dependencies_connected")

    async def close(self) -> None:
        if self._http_client is not None:
            try:
                await self._http_client.close()
            except Exception as exc:
                logger.warning("http client close failed: {}", exc)
            self._http_client = None

        self._fetcher = None
        self._batch_service = None
        self._connected = False


def create_crawler_dependencies(
    settings: Settings | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> CrawlerDependencies:
    return CrawlerDependencies(settings=settings or Settings(), transport=transport)
