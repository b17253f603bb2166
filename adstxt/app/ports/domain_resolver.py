"""Port: map a URL to its registrable root domain."""
from __future__ import annotations

from typing import Protocol, runtime_checkable


class DomainResolutionError(Exception):
    """Raised when a URL has no resolvable root domain."""


@runtime_checkable
class DomainResolver(Protocol):
    def root_domain(self, url: str) -> str:
        """Return the registrable domain of url (e.g. example.com); raise DomainResolutionError."""
        ...
