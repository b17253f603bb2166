"""DomainResolver backed by tldextract and the Public Suffix List.

Uses the PSL snapshot bundled with tldextract; no network lookup is made.
Hosts whose suffix is not on the list are treated as having a single-label
public suffix, so `a.b.internal` resolves to `b.internal`.
"""
from __future__ import annotations

import ipaddress
from urllib.parse import urlsplit

import tldextract

from adstxt.app.ports.domain_resolver import DomainResolutionError, DomainResolver


def _is_ip_address(host: str) -> bool:
    try:
        ipaddress.ip_address(host)
    except ValueError:
        return False
    return True


class TldextractDomainResolver(DomainResolver):
    def __init__(self, *, include_psl_private_domains: bool = False) -> None:
        self._extract = tldextract.TLDExtract(
            cache_dir=None,
            suffix_list_urls=(),
            fallback_to_snapshot=True,
            include_psl_private_domains=include_psl_private_domains,
        )

    def root_domain(self, url: str) -> str:
        try:
            host = urlsplit(url).hostname
        except ValueError as exc:
            raise DomainResolutionError(f"cannot parse URL [{url}]: {exc}") from exc
        if not host:
            raise DomainResolutionError(f"URL [{url}] has no host")

        host = host.rstrip(".").lower()
        if _is_ip_address(host):
            return host

        ext = self._extract(host)
        if ext.suffix:
            if not ext.domain:
                raise DomainResolutionError(f"host [{host}] is a public suffix")
            return f"{ext.domain}.{ext.suffix}"

        labels = [label for label in host.split(".") if label]
        if len(labels) < 2:
            raise DomainResolutionError(f"host [{host}] has no registrable domain")
        return ".".join(labels[-2:])
