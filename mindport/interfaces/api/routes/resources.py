"""
Resource Routes - Store and fetch resources and prompts by shorthand token.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from mindport.domains.orchestration import SearchOrchestrator
from mindport.domains.registry import DomainContext
from mindport.domains.search import Prompt, Resource
from mindport.interfaces.api.deps import get_context, get_orchestrator

router = APIRouter()


class StoreResourceRequest(BaseModel):
    """Resource body; ``domain`` defaults to the session's domain."""

    title: str = Field(..., min_length=1)
    content: str = Field(..., min_length=1)
    type: str = "text"
    tags: list[str] = Field(default_factory=list)
    search_terms: list[str] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)
    domain: str | None = None


class StorePromptRequest(BaseModel):
    name: str = Field(..., min_length=1)
    template: str = Field(..., min_length=1)
    description: str = ""
    variables: dict[str, str] = Field(default_factory=dict)
    tags: list[str] = Field(default_factory=list)
    domain: str | None = None


class StoredResponse(BaseModel):
    """Stored record plus its shorthand token."""

    token: str
    record: Resource | Prompt


@router.post("/resources", response_model=StoredResponse, status_code=201)
async def store_resource(
    request: StoreResourceRequest,
    context: DomainContext = Depends(get_context),
    orchestrator: SearchOrchestrator = Depends(get_orchestrator),
):
    """Store and index a resource."""
    resource = await orchestrator.store_resource(
        context,
        request.title,
        request.content,
        type=request.type,
        tags=request.tags,
        search_terms=request.search_terms,
        metadata=request.metadata,
        domain=request.domain,
    )
    return StoredResponse(
        token=orchestrator.build_shorthand(resource.domain, resource.id), record=resource
    )


@router.get("/resources/{token}", response_model=Resource)
async def get_resource(
    token: str,
    context: DomainContext = Depends(get_context),
    orchestrator: SearchOrchestrator = Depends(get_orchestrator),
):
    """Fetch a resource; bare IDs resolve against the session's domain."""
    return await orchestrator.get_resource(context, token)


@router.delete("/resources/{token}", status_code=204)
async def delete_resource(
    token: str,
    context: DomainContext = Depends(get_context),
    orchestrator: SearchOrchestrator = Depends(get_orchestrator),
) -> None:
    await orchestrator.delete_resource(context, token)


@router.post("/prompts", response_model=StoredResponse, status_code=201)
async def store_prompt(
    request: StorePromptRequest,
    context: DomainContext = Depends(get_context),
    orchestrator: SearchOrchestrator = Depends(get_orchestrator),
):
    """Store and index a prompt."""
    prompt = await orchestrator.store_prompt(
        context,
        request.name,
        request.template,
        description=request.description,
        variables=request.variables,
        tags=request.tags,
        domain=request.domain,
    )
    return StoredResponse(token=orchestrator.build_shorthand(prompt.domain, prompt.id), record=prompt)


@router.get("/prompts/{token}", response_model=Prompt)
async def get_prompt(
    token: str,
    context: DomainContext = Depends(get_context),
    orchestrator: SearchOrchestrator = Depends(get_orchestrator),
):
    return await orchestrator.get_prompt(context, token)
