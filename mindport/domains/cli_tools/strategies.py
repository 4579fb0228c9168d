"""
Scan Strategies - Flat store scans and ranked index queries.

Features:
- FlatScanStrategy: pages through the store, deadline checked per record
- RankedQueryStrategy: compile, execute against the index, shape
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from typing import TYPE_CHECKING

from mindport.config.errors import (
    DeadlineExceededError,
    InvalidArgumentError,
    MindPortError,
    SearchIndexError,
)
from mindport.domains.search.compiler import QueryCompiler
from mindport.domains.search.models import Prompt, Resource, SearchQuerySpec, SearchResult
from mindport.domains.search.postprocess import shape

from .models import ScanRecord, ScanRequest

if TYPE_CHECKING:
    from mindport.domains.search.contracts import DocumentStore, SearchIndex

logger = logging.getLogger(__name__)

__all__ = ["FlatScanStrategy", "RankedQueryStrategy", "check_deadline"]


def check_deadline(deadline: float | None, where: str = "scan") -> None:
    """Raise DeadlineExceededError once ``time.monotonic()`` passes ``deadline``."""
    if deadline is not None and time.monotonic() >= deadline:
        raise DeadlineExceededError(f"deadline exceeded during {where}", {"where": where})


def resource_record(resource: Resource) -> ScanRecord:
    return ScanRecord(
        id=resource.id,
        domain=resource.domain,
        kind="resource",
        type=resource.type,
        title=resource.title,
        content=resource.content,
        tags=resource.tags,
        metadata=resource.metadata,
        size=resource.size,
        created=resource.created_at,
        modified=resource.updated_at,
    )


def prompt_record(prompt: Prompt) -> ScanRecord:
    return ScanRecord(
        id=prompt.id,
        domain=prompt.domain,
        kind="prompt",
        type="prompt",
        title=prompt.name,
        content=prompt.template,
        tags=prompt.tags,
        size=prompt.size,
        created=prompt.created_at,
        modified=prompt.updated_at,
    )


class FlatScanStrategy:
    """
    Linear pass over every in-scope record in the store.

    Example:
        >>> flat = FlatScanStrategy(repo)
        >>> async for record in flat.scan(ScanRequest(scope=["default"])):
        ...     print(record.title)
    """

    def __init__(self, store: DocumentStore, page_size: int = 10000) -> None:
        self._store = store
        self._page_size = page_size

    async def scan(self, request: ScanRequest) -> AsyncIterator[ScanRecord]:
        offset = 0
        while True:
            page = await self._store.list_resources(
                domains=request.scope, limit=self._page_size, offset=offset
            )
            for resource in page:
                check_deadline(request.deadline, "resource scan")
                yield resource_record(resource)
            if not page:
                break
            offset += self._page_size

        if not request.include_prompts:
            return

        offset = 0
        while True:
            page = await self._store.list_prompts(
                domains=request.scope, limit=self._page_size, offset=offset
            )
            for prompt in page:
                check_deadline(request.deadline, "prompt scan")
                yield prompt_record(prompt)
            if not page:
                break
            offset += self._page_size


class RankedQueryStrategy:
    """
    Ranked index query followed by result shaping.

    Also serves plain and advanced search for the orchestrator.
    """

    def __init__(self, compiler: QueryCompiler, index: SearchIndex) -> None:
        self._compiler = compiler
        self._index = index

    async def search(self, spec: SearchQuerySpec, scope: list[str] | None) -> list[SearchResult]:
        """Compile, execute and shape one query."""
        compiled = self._compiler.compile(spec, scope)
        try:
            hits = await self._index.execute(compiled)
        except MindPortError:
            raise
        except Exception as exc:
            raise SearchIndexError(f"index query failed: {exc}", {"cause": repr(exc)}) from exc
        return shape(hits, spec)

    async def scan(self, request: ScanRequest) -> AsyncIterator[ScanRecord]:
        if request.spec is None:
            raise InvalidArgumentError("ranked scan requires a query spec")
        check_deadline(request.deadline, "ranked query")

        for result in await self.search(request.spec, request.scope):
            yield ScanRecord(
                id=result.id,
                domain=result.domain,
                kind="prompt" if result.type == "prompt" else "resource",
                type=result.type,
                title=result.title,
                content=result.content,
                tags=result.tags,
                metadata=result.metadata,
                size=len(result.content.encode("utf-8")),
                created=result.created_at,
                modified=result.updated_at,
                score=result.score,
                snippet=result.snippet,
                line_numbers=result.line_numbers,
                context_lines=result.context_lines,
                match_count=result.match_count,
            )
