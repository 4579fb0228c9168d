"""
Search Routes - Plain and structured search endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from mindport.domains.orchestration import SearchOrchestrator
from mindport.domains.registry import DomainContext
from mindport.domains.search import SearchQuerySpec, SearchResponse
from mindport.interfaces.api.deps import get_context, get_orchestrator

router = APIRouter()


class SearchRequest(BaseModel):
    """Search request body."""

    query: str = Field(..., min_length=1, description="Search query")
    limit: int = Field(default=0, ge=0, le=1000, description="0 for the configured default")
    type_filter: str | None = Field(default=None, description='"resource" or "prompt"')
    tags: list[str] = Field(default_factory=list)


@router.post("", response_model=SearchResponse)
async def search(
    request: SearchRequest,
    context: DomainContext = Depends(get_context),
    orchestrator: SearchOrchestrator = Depends(get_orchestrator),
):
    """
    Search the session's domain scope.

    - **query**: Query text; `*`/`?` wildcard, `/re/` regex, trailing `~` fuzzy
    - **limit**: Maximum results
    - **type_filter**: Restrict to resources or prompts
    - **tags**: Match any of these tags
    """
    return await orchestrator.search(
        context,
        request.query,
        limit=request.limit,
        type_filter=request.type_filter,
        tags=request.tags,
    )


@router.post("/advanced", response_model=SearchResponse)
async def advanced_search(
    spec: SearchQuerySpec,
    context: DomainContext = Depends(get_context),
    orchestrator: SearchOrchestrator = Depends(get_orchestrator),
):
    """Structured search with filters, sorting and result shaping."""
    return await orchestrator.advanced_search(context, spec)
