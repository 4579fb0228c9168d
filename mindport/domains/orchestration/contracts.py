"""
Orchestration Contracts - Interfaces for orchestration domain.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from mindport.domains.cli_tools.models import (
    FindOptions,
    FindResult,
    GrepOptions,
    GrepResult,
    RipgrepOptions,
)
from mindport.domains.registry.models import DomainContext
from mindport.domains.search.models import SearchQuerySpec, SearchResponse


@runtime_checkable
class SearchService(Protocol):
    """Contract for the caller-facing search surface."""

    async def search(
        self,
        context: DomainContext,
        query: str,
        limit: int = 0,
        type_filter: str | None = None,
        tags: list[str] | None = None,
    ) -> SearchResponse:
        """
        Plain search inside the caller's domain scope.

        Args:
            context: Caller domain, session and deadline
            query: Query text (mode auto-detected)
            limit: Maximum results, 0 for the configured default
            type_filter: Restrict to "resource" or "prompt"
            tags: Any-of tag filter

        Returns:
            Ranked results with statistics
        """
        ...

    async def advanced_search(
        self,
        context: DomainContext,
        spec: SearchQuerySpec,
    ) -> SearchResponse:
        """Structured search with filters, sorting and shaping."""
        ...

    async def grep(self, context: DomainContext, opts: GrepOptions) -> list[GrepResult]:
        ...

    async def find(self, context: DomainContext, opts: FindOptions) -> list[FindResult]:
        ...

    async def ripgrep(self, context: DomainContext, opts: RipgrepOptions) -> list[GrepResult]:
        ...
