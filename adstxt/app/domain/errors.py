"""Typed failures for one ads.txt fetch sequence.

Every error carries the original root domain and the URL being fetched (or
redirected from) so a single log line identifies the host and the hop.
"""
from __future__ import annotations


class AdsTxtError(Exception):
    """Base error for ads.txt fetching failures."""

    def __init__(self, message: str, *, domain: str = "", url: str = "") -> None:
        super().__init__(message)
        self.domain = domain
        self.url = url


class RequestConstructionError(AdsTxtError):
    """Raised when a Request cannot be built (malformed URL, unresolvable root domain)."""


class TransportError(AdsTxtError):
    """Raised on connection failure or malformed HTTP response."""


class TransportTimeoutError(TransportError):
    """Raised when an individual HTTP call times out."""


class FetchCancelledError(AdsTxtError):
    """Raised when the caller cancels the sequence before the next hop."""


class RedirectPolicyError(AdsTxtError):
    """Base for redirects that may not be followed."""

    def __init__(self, message: str, *, domain: str, url: str, target: str) -> None:
        super().__init__(message, domain=domain, url=url)
        self.target = target


class RedirectLoopError(RedirectPolicyError):
    pass


class CrossDomainRedirectError(RedirectPolicyError):
    pass


class InvalidRedirectTargetError(RedirectPolicyError):
    pass


class HomepageRedirectError(RedirectPolicyError):
    pass


class RedirectResolutionError(RedirectPolicyError):
    """Root domain of the redirect target could not be resolved."""


class TooManyRedirectsError(RedirectPolicyError):
    pass


class ContentValidationError(AdsTxtError):
    """Base for responses that arrived but cannot be accepted as ads.txt."""


class HttpStatusError(ContentValidationError):
    def __init__(self, message: str, *, domain: str, url: str, status_code: int) -> None:
        super().__init__(message, domain=domain, url=url)
        self.status_code = status_code


class ContentTypeError(ContentValidationError):
    def __init__(self, message: str, *, domain: str, url: str, content_type: str) -> None:
        super().__init__(message, domain=domain, url=url)
        self.content_type = content_type
