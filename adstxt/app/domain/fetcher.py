"""ads.txt fetcher: drives one Request through its redirect hops to a single result.

Uses the HTTP port (AbstractHttpClient) with transport-level redirects disabled;
every 301/302/307 is evaluated by RedirectPolicy before the next hop is issued.
Only `text/plain` 2xx responses are accepted, and the body is read only after
the content type has been validated.
"""
from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any, Mapping

from loguru import logger

from adstxt.app.constants import (
    ALLOWED_CONTENT_TYPE,
    DEFAULT_MAX_REDIRECTS,
    DEFAULT_REQUEST_TIMEOUT_SECONDS,
    DEFAULT_USER_AGENT,
    REDIRECT_STATUS_CODES,
    SERVICE_NAME,
)
from adstxt.app.domain.errors import (
    ContentTypeError,
    FetchCancelledError,
    HttpStatusError,
    TooManyRedirectsError,
    TransportError,
    TransportTimeoutError,
)
from adstxt.app.domain.models import EMPTY_RECORDS, RedirectState, Request, Response
from adstxt.app.domain.redirect_policy import RedirectPolicy
from adstxt.app.ports.http_client import (
    AbstractHttpClient,
    HttpClientError,
    HttpClientTimeoutError,
    HttpResponse,
    RequestTimeout,
)
from adstxt.app.ports.record_parser import RecordParser


def _log(event: str, **kwargs: Any) -> None:
    logger.bind(service_name=SERVICE_NAME, event=event, **kwargs).info("")


def parse_expires(headers: Mapping[str, str], url: str = "") -> datetime | None:
    """Parse the Expires header as an HTTP date. Missing or invalid values yield None."""
    raw = headers.get("expires")
    if not raw:
        logger.debug("no Expires header for {}", url)
        return None
    try:
        parsed = parsedate_to_datetime(raw)
    except (TypeError, ValueError) as exc:
        logger.bind(service_name=SERVICE_NAME, event="expires_header_invalid", url=url).warning(
            "error parsing Expires header [{}]: {}", raw, exc
        )
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _remaining(deadline: float) -> float:
    return max(deadline - asyncio.get_running_loop().time(), 0.0)


class AdsTxtFetcher:
    """Fetches one ads.txt file per Request using an injectable AbstractHttpClient.

    State for the redirect chain lives in a RedirectState local to each call, so
    one fetcher can serve any number of concurrent sequences.
    """

    def __init__(
        self,
        client: AbstractHttpClient,
        policy: RedirectPolicy,
        parser: RecordParser | None = None,
        *,
        request_timeout_seconds: float = DEFAULT_REQUEST_TIMEOUT_SECONDS,
        connect_timeout_seconds: float | None = None,
        user_agent: str = DEFAULT_USER_AGENT,
        max_redirects: int = DEFAULT_MAX_REDIRECTS,
    ) -> None:
        self._client = client
        self._policy = policy
        self._parser = parser
        self._timeout = RequestTimeout(
            connect_seconds=connect_timeout_seconds or request_timeout_seconds,
            read_seconds=request_timeout_seconds,
        )
        # Whole-call deadline per hop: send plus body read.
        self._call_timeout = float(request_timeout_seconds)
        self._max_redirects = int(max_redirects)
        self._headers = {
            "User-Agent": user_agent,
            "Accept": "text/plain",
            "Accept-Charset": "utf-8",
            "Content-Type": "text/plain; charset=utf-8",
            "Connection": "close",
        }

    async def fetch(
        self,
        request: Request,
        *,
        cancel_event: asyncio.Event | None = None,
    ) -> Response:
        state = RedirectState.start(request)
        _log("fetch_started", url=request.url, domain=request.domain)

        while True:
            if cancel_event is not None and cancel_event.is_set():
                raise FetchCancelledError(
                    f"[{request.domain}] fetch cancelled before requesting [{state.current_url}]",
                    domain=request.domain,
                    url=state.current_url,
                )

            deadline = asyncio.get_running_loop().time() + self._call_timeout
            response = await self._send(request, state.current_url, deadline)
            try:
                status_code = response.status_code
                if status_code in REDIRECT_STATUS_CODES:
                    self._follow_redirect(request, state, response)
                    continue

                if not 200 <= status_code < 300:
                    raise HttpStatusError(
                        f"[{status_code}] remote host [{request.domain}] ads.txt URL [{state.current_url}]",
                        domain=request.domain,
                        url=state.current_url,
                        status_code=status_code,
                    )

                # Any Content-Type other than text/plain is an error and the content is ignored.
                content_type = response.headers.get("content-type", "")
                if not content_type.startswith(ALLOWED_CONTENT_TYPE):
                    raise ContentTypeError(
                        f"[{state.current_url}] ads.txt content type should be "
                        f"'{ALLOWED_CONTENT_TYPE}' and not [{content_type}]",
                        domain=request.domain,
                        url=state.current_url,
                        content_type=content_type,
                    )

                body = await self._read(request, state.current_url, response, deadline)
                result = Response(
                    final_url=state.current_url,
                    status_code=status_code,
                    content_type=content_type,
                    body=body,
                    expires=parse_expires(response.headers, state.current_url),
                    records=self._parser.parse(body) if self._parser is not None else EMPTY_RECORDS,
                )
            finally:
                await response.close()

            _log(
                "fetch_completed",
                url=request.url,
                domain=request.domain,
                final_url=result.final_url,
                status_code=result.status_code,
                redirects=state.redirect_count,
                body_length=len(result.body),
            )
            return result

    def _follow_redirect(self, request: Request, state: RedirectState, response: HttpResponse) -> None:
        target = response.headers.get("location", "")
        decision = self._policy.evaluate(
            request.domain,
            state.current_url,
            state.current_domain,
            target,
            cross_domain_hop_used=state.cross_domain_hop_used,
            visited_urls=state.visited_urls,
        )
        if not decision.allowed:
            error = decision.error
            _log(
                "redirect_rejected",
                domain=request.domain,
                url=state.current_url,
                target=target,
                reason=type(error).__name__,
            )
            raise error

        if state.redirect_count >= self._max_redirects:
            raise TooManyRedirectsError(
                f"[{request.domain}] reached the maximum of {self._max_redirects} redirects "
                f"while redirecting from [{state.current_url}] to [{target}]",
                domain=request.domain,
                url=state.current_url,
                target=target,
            )

        _log(
            "redirect_followed",
            status_code=response.status_code,
            domain=request.domain,
            url=state.current_url,
            target=decision.target,
            cross_domain=decision.consumes_cross_domain_hop,
        )
        state.advance(
            decision.target,
            decision.target_domain,
            consumes_cross_domain_hop=decision.consumes_cross_domain_hop,
        )

    async def _send(self, request: Request, url: str, deadline: float) -> HttpResponse:
        try:
            return await asyncio.wait_for(
                self._client.get(url, timeout=self._timeout, headers=dict(self._headers)),
                timeout=_remaining(deadline),
            )
        except (HttpClientTimeoutError, asyncio.TimeoutError) as exc:
            raise TransportTimeoutError(
                f"[timeout] remote host [{request.domain}] ads.txt URL [{url}]",
                domain=request.domain,
                url=url,
            ) from exc
        except HttpClientError as exc:
            raise TransportError(
                f"[{exc}] remote host [{request.domain}] ads.txt URL [{url}]",
                domain=request.domain,
                url=url,
            ) from exc

    async def _read(self, request: Request, url: str, response: HttpResponse, deadline: float) -> bytes:
        try:
            return await asyncio.wait_for(response.read(), timeout=_remaining(deadline))
        except (HttpClientTimeoutError, asyncio.TimeoutError) as exc:
            raise TransportTimeoutError(
                f"[timeout] reading body from [{url}]", domain=request.domain, url=url
            ) from exc
        except HttpClientError as exc:
            raise TransportError(
                f"[{exc}] reading body from [{url}]", domain=request.domain, url=url
            ) from exc
