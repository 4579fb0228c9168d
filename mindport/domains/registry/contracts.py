"""
Registry Contracts - Interfaces for the domain registry.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from .models import Domain, DomainScope, IsolationMode


@runtime_checkable
class DomainGraph(Protocol):
    """Contract for domain hierarchy storage and scope resolution."""

    def create(
        self,
        domain_id: str,
        name: str,
        description: str = "",
        parent_id: str | None = None,
    ) -> Domain:
        """Create a domain under an optional existing parent."""
        ...

    def get(self, domain_id: str) -> Domain:
        """Get a domain by ID."""
        ...

    def list_domains(self, parent_filter: str = "") -> list[Domain]:
        """List all domains, or the direct children of ``parent_filter``."""
        ...

    def ancestry(self, domain_id: str) -> list[str]:
        """Ancestor IDs ordered root -> parent."""
        ...

    def descendants(self, domain_id: str) -> list[str]:
        """Transitive descendant IDs."""
        ...

    def searchable_scope(
        self,
        domain_id: str,
        mode: IsolationMode | None = None,
    ) -> list[str]:
        """Domain IDs a search from ``domain_id`` may read."""
        ...

    def scope(self, domain_id: str) -> DomainScope:
        """Full scope view for a domain."""
        ...
