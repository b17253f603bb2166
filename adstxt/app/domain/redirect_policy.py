"""Redirect policy: decides, hop by hop, whether an ads.txt redirect may be followed.

IAB ads.txt, section 3.1 "Access method": a 301/302/307 is followed and its
data treated as authoritative for the source only while the redirect stays
within the original root domain. A single redirect outside that domain is
allowed, to delegate authority to a third party's server. Any further
divergence is out of scope.

The policy is a pure function over explicit inputs; the caller owns the
per-sequence state and applies the decision.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import AbstractSet
from urllib.parse import urlsplit

from adstxt.app.constants import ADS_TXT_PATH_SUFFIX, REDIRECT_DECISION
from adstxt.app.domain.errors import (
    CrossDomainRedirectError,
    HomepageRedirectError,
    InvalidRedirectTargetError,
    RedirectLoopError,
    RedirectPolicyError,
    RedirectResolutionError,
)
from adstxt.app.ports.domain_resolver import DomainResolutionError, DomainResolver


@dataclass(frozen=True)
class RedirectDecision:
    """ALLOW or REJECT. No rule treats a redirect as a final, do-not-follow response."""

    kind: str
    target: str
    target_domain: str = ""
    consumes_cross_domain_hop: bool = False
    error: RedirectPolicyError | None = None

    @property
    def allowed(self) -> bool:
        return self.kind == REDIRECT_DECISION.ALLOW


def _reject(error: RedirectPolicyError) -> RedirectDecision:
    return RedirectDecision(kind=REDIRECT_DECISION.REJECT, target=error.target, error=error)


class RedirectPolicy:
    """Evaluates redirect candidates against the original root domain."""

    def __init__(self, resolver: DomainResolver) -> None:
        self._resolver = resolver

    def evaluate(
        self,
        original_domain: str,
        previous_url: str,
        previous_domain: str,
        candidate_url: str,
        *,
        cross_domain_hop_used: bool = False,
        visited_urls: AbstractSet[str] = frozenset(),
    ) -> RedirectDecision:
        """Return ALLOW, or REJECT carrying the matching RedirectPolicyError.

        `candidate_url` is the raw Location header value. A cross-domain hop
        counts as consumed when `cross_domain_hop_used` is set or when
        `previous_domain` already differs from `original_domain`.
        """
        candidate = candidate_url or ""
        context = {"domain": original_domain, "url": previous_url, "target": candidate}

        if not candidate:
            return _reject(InvalidRedirectTargetError(
                f"[{original_domain}] redirect from [{previous_url}] has no target location",
                **context,
            ))

        if candidate == previous_url:
            return _reject(RedirectLoopError(
                f"[{original_domain}] is redirecting to the same page: [{previous_url}] to [{candidate}]",
                **context,
            ))
        if candidate in visited_urls:
            return _reject(RedirectLoopError(
                f"[{original_domain}] redirect cycle: [{previous_url}] to already visited [{candidate}]",
                **context,
            ))

        try:
            target_domain = self._resolver.root_domain(candidate)
        except DomainResolutionError as exc:
            return _reject(RedirectResolutionError(
                f"[{original_domain}] failed to parse root domain of redirect target. "
                f"URL [{previous_url}] redirect [{candidate}] error [{exc}]",
                **context,
            ))

        leaves_original = target_domain != original_domain
        hop_used = cross_domain_hop_used or previous_domain != original_domain
        if leaves_original and hop_used and target_domain != previous_domain:
            return _reject(CrossDomainRedirectError(
                f"only a single redirect out of original root domain scope [{original_domain}] "
                f"is allowed. Additional redirect from [{previous_url}] to [{candidate}] is forbidden",
                **context,
            ))

        if not candidate.endswith(ADS_TXT_PATH_SUFFIX):
            # Not obviously a file; accept only a well-formed absolute URL with a path.
            try:
                parts = urlsplit(candidate)
                hostname = parts.hostname
                port = parts.port
            except ValueError:
                parts, hostname, port = None, None, None
            if parts is None or not parts.scheme or not hostname:
                return _reject(InvalidRedirectTargetError(
                    f"[{original_domain}] redirect from [{previous_url}] to invalid ads.txt URL [{candidate}]",
                    **context,
                ))
            # Bare scheme://host in any letter case.
            bare_host = parts.username is None and port is None
            if bare_host and not parts.path and not parts.query and not parts.fragment:
                return _reject(HomepageRedirectError(
                    f"[{original_domain}] [{previous_url}] redirected to [{candidate}] which looks like a homepage",
                    **context,
                ))

        return RedirectDecision(
            kind=REDIRECT_DECISION.ALLOW,
            target=candidate,
            target_domain=target_domain,
            consumes_cross_domain_hop=leaves_original and not hop_used,
        )
