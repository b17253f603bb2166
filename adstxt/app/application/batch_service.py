from __future__ import annotations

import asyncio
import inspect
from typing import Any, Awaitable, Callable, Iterable, Optional, Union

from loguru import logger

from adstxt.app.constants import SERVICE_NAME
from adstxt.app.domain.errors import AdsTxtError, FetchCancelledError
from adstxt.app.domain.fetcher import AdsTxtFetcher
from adstxt.app.domain.models import Outcome, Request, Response

OutcomeHandler = Callable[
    [Request, Optional[Response], Optional[Exception]],
    Union[None, Awaitable[None]],
]

_DONE = object()


def _cancelled_outcome(request: Request) -> Outcome:
    return Outcome(
        request=request,
        error=FetchCancelledError(
            f"[{request.domain}] fetch cancelled for [{request.url}]",
            domain=request.domain,
            url=request.url,
        ),
    )


def _log(event: str, **kwargs: Any) -> None:
    logger.bind(service_name=SERVICE_NAME, event=event, **kwargs).info("")


class BatchService:
    """
    Runs one fetch sequence per Request concurrently and hands each Outcome to a handler.

    Sequences share only the fetcher (and through it the HTTP client), which holds no
    per-request state. Outcomes are pushed onto a queue drained by a single consumer
    task, so the handler is never invoked concurrently and need not be reentrant; it
    may be a plain function or a coroutine function. Delivery order follows completion
    order. A handler that raises is logged and does not affect other deliveries.

    Setting `cancel_event` stops every sequence before its next hop; each cancelled
    sequence still delivers exactly one Outcome carrying FetchCancelledError.
    """

    def __init__(self, fetcher: AdsTxtFetcher) -> None:
        self._fetcher = fetcher

    async def run(
        self,
        requests: Iterable[Request],
        handler: OutcomeHandler,
        *,
        cancel_event: asyncio.Event | None = None,
    ) -> None:
        requests = list(requests)
        queue: asyncio.Queue[Any] = asyncio.Queue()
        _log("batch_started", requests=len(requests))

        delivered: set[int] = set()
        consumer = asyncio.create_task(self._deliver(queue, handler))
        try:
            await asyncio.gather(
                *(
                    self._run_one(index, request, queue, delivered, cancel_event)
                    for index, request in enumerate(requests)
                )
            )
        finally:
            # Sequences cancelled before their first step never reached _run_one.
            for index, request in enumerate(requests):
                if index not in delivered:
                    delivered.add(index)
                    await queue.put(_cancelled_outcome(request))
            await queue.put(_DONE)
            await consumer

        _log("batch_completed", requests=len(requests))

    async def fetch_outcome(
        self,
        request: Request,
        *,
        cancel_event: asyncio.Event | None = None,
    ) -> Outcome:
        """Run a single sequence and fold its result or failure into an Outcome."""
        try:
            response = await self._fetcher.fetch(request, cancel_event=cancel_event)
        except AdsTxtError as exc:
            _log("fetch_failed", url=request.url, domain=request.domain, error_type=type(exc).__name__, error=str(exc))
            return Outcome(request=request, error=exc)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            logger.exception("unexpected failure fetching {}: {}", request.url, exc)
            return Outcome(request=request, error=exc)
        return Outcome(request=request, response=response)

    async def _run_one(
        self,
        index: int,
        request: Request,
        queue: "asyncio.Queue[Any]",
        delivered: set[int],
        cancel_event: asyncio.Event | None,
    ) -> None:
        try:
            outcome = await self.fetch_outcome(request, cancel_event=cancel_event)
        except asyncio.CancelledError:
            delivered.add(index)
            await queue.put(_cancelled_outcome(request))
            raise
        delivered.add(index)
        await queue.put(outcome)

    async def _deliver(self, queue: "asyncio.Queue[Any]", handler: OutcomeHandler) -> None:
        while True:
            outcome = await queue.get()
            if outcome is _DONE:
                return
            try:
                result = handler(outcome.request, outcome.response, outcome.error)
                if inspect.isawaitable(result):
                    await result
            except Exception as exc:
                logger.warning("outcome handler failed for {}: {}", outcome.request.url, exc)
