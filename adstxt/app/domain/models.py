"""Domain models."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from urllib.parse import urlsplit

from adstxt.app.constants import ADS_TXT_PATH_SUFFIX, OUTCOME_STATUS
from adstxt.app.domain.errors import AdsTxtError, RequestConstructionError
from adstxt.app.ports.domain_resolver import DomainResolutionError, DomainResolver


@dataclass(frozen=True)
class Request:
    """One ads.txt fetch. `domain` is the root domain of the original URL and never changes."""

    url: str
    domain: str

    @staticmethod
    def create(url: str, resolver: DomainResolver) -> "Request":
        url = (url or "").strip()
        try:
            parts = urlsplit(url)
        except ValueError as exc:
            raise RequestConstructionError(f"malformed URL [{url}]: {exc}", url=url) from exc
        if not parts.scheme or not parts.hostname:
            raise RequestConstructionError(f"URL [{url}] must be absolute (scheme and host)", url=url)

        try:
            domain = resolver.root_domain(url)
        except DomainResolutionError as exc:
            raise RequestConstructionError(
                f"failed to resolve root domain for [{url}]: {exc}", url=url
            ) from exc
        return Request(url=url, domain=domain)

    @staticmethod
    def for_host(host: str, resolver: DomainResolver) -> "Request":
        """Build a Request for the ads.txt file at the root of host (http when no scheme is given)."""
        host = (host or "").strip()
        if "://" not in host:
            host = "http://" + host
        try:
            parts = urlsplit(host)
        except ValueError as exc:
            raise RequestConstructionError(f"malformed host [{host}]: {exc}", url=host) from exc
        if not parts.netloc:
            raise RequestConstructionError(f"host [{host}] has no network location", url=host)
        if parts.path.endswith(ADS_TXT_PATH_SUFFIX):
            return Request.create(host, resolver)
        return Request.create(f"{parts.scheme}://{parts.netloc}{ADS_TXT_PATH_SUFFIX}", resolver)


@dataclass
class RedirectState:
    """Per-sequence redirect bookkeeping. Owned by exactly one fetch sequence."""

    current_url: str
    current_domain: str
    cross_domain_hop_used: bool = False
    redirect_count: int = 0
    visited_urls: set[str] = field(default_factory=set)

    @staticmethod
    def start(request: Request) -> "RedirectState":
        return RedirectState(
            current_url=request.url,
            current_domain=request.domain,
            visited_urls={request.url},
        )

    def advance(self, target: str, target_domain: str, *, consumes_cross_domain_hop: bool) -> None:
        self.visited_urls.add(target)
        self.current_url = target
        self.current_domain = target_domain
        self.redirect_count += 1
        if consumes_cross_domain_hop:
            self.cross_domain_hop_used = True


@dataclass(frozen=True)
class AdsTxtRecord:
    """One data line: `<ad system domain>, <publisher id>, <relationship>[, <cert authority id>]`."""

    ad_system_domain: str
    publisher_account_id: str
    relationship: str
    certification_authority_id: str = ""


@dataclass(frozen=True)
class AdsTxtVariable:
    name: str
    value: str


@dataclass(frozen=True)
class AdsTxtRecords:
    data_records: tuple[AdsTxtRecord, ...] = ()
    variables: tuple[AdsTxtVariable, ...] = ()
    warnings: tuple[str, ...] = ()


EMPTY_RECORDS = AdsTxtRecords()


@dataclass(frozen=True)
class Response:
    """Accepted ads.txt response (value object)."""

    final_url: str
    status_code: int
    content_type: str
    body: bytes
    expires: datetime | None = None
    records: AdsTxtRecords = EMPTY_RECORDS


@dataclass(frozen=True)
class Outcome:
    """Exactly one of `response` / `error` is set."""

    request: Request
    response: Response | None = None
    error: Exception | None = None

    def __post_init__(self) -> None:
        if (self.response is None) == (self.error is None):
            raise ValueError("outcome must carry exactly one of response or error")

    @property
    def status(self) -> str:
        return OUTCOME_STATUS.OK if self.error is None else OUTCOME_STATUS.ERROR

    def to_dict(self) -> dict[str, Any]:
        """Flat, log-friendly view of the outcome."""
        payload: dict[str, Any] = {
            "url": self.request.url,
            "domain": self.request.domain,
            "status": self.status,
        }
        if self.response is not None:
            payload["final_url"] = self.response.final_url
            payload["status_code"] = self.response.status_code
            payload["content_type"] = self.response.content_type
            payload["body_length"] = len(self.response.body)
            payload["expires"] = self.response.expires.isoformat() if self.response.expires else None
            payload["records"] = len(self.response.records.data_records)
        else:
            payload["error_type"] = type(self.error).__name__
            payload["error"] = str(self.error)
            if isinstance(self.error, AdsTxtError) and self.error.url:
                payload["error_url"] = self.error.url
        return payload
