"""Domain resolver factory: builds DomainResolver from settings."""
from __future__ import annotations

from adstxt.app.config.settings import Settings
from adstxt.app.infrastructure.domain.tldextract_resolver import TldextractDomainResolver
from adstxt.app.ports.domain_resolver import DomainResolver


def create_domain_resolver(settings: Settings) -> DomainResolver:
    return TldextractDomainResolver(
        include_psl_private_domains=settings.include_psl_private_domains,
    )
