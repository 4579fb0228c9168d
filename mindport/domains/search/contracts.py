"""
Search Contracts - Interfaces for the index and store collaborators.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from .models import Prompt, RawHit, Resource
from .query import CompiledQuery


@runtime_checkable
class SearchIndex(Protocol):
    """Contract for full-text index implementations."""

    async def index_document(self, doc_id: str, fields: dict[str, Any]) -> None:
        """Index a document, replacing any previous version with the same ID."""
        ...

    async def delete_document(self, doc_id: str) -> None:
        """Remove a document; unknown IDs are ignored."""
        ...

    async def execute(self, compiled: CompiledQuery) -> list[RawHit]:
        """Run a compiled query and return ranked hits."""
        ...


@runtime_checkable
class DocumentStore(Protocol):
    """Contract for resource/prompt persistence."""

    async def put_resource(self, resource: Resource) -> None:
        ...

    async def get_resource(self, resource_id: str, domain: str) -> Resource:
        """Fetch a resource, raising NotFoundError if absent."""
        ...

    async def list_resources(
        self,
        domains: list[str] | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[Resource]:
        """
        List resources, optionally restricted to ``domains``.

        ``limit``/``offset`` page over stored rows; records that fail to decode
        are dropped, so a page may come back short before the end.
        """
        ...

    async def delete_resource(self, resource_id: str, domain: str) -> None:
        ...

    async def put_prompt(self, prompt: Prompt) -> None:
        ...

    async def get_prompt(self, prompt_id: str, domain: str) -> Prompt:
        ...

    async def list_prompts(
        self,
        domains: list[str] | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[Prompt]:
        ...

    async def count_in_domain(self, domain: str) -> tuple[int, int]:
        """Return ``(resources, prompts)`` stored in one domain."""
        ...

    async def delete_domain(self, domain: str) -> None:
        """Remove every resource and prompt stored in ``domain``."""
        ...
