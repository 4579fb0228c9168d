"""
Domain Routes - Domain lifecycle, session switching and statistics.
"""

from __future__ import annotations

import logging
import uuid

from fastapi import APIRouter, Depends, Header, Response
from pydantic import BaseModel, Field

from mindport.domains.orchestration import DomainStats, SearchOrchestrator
from mindport.domains.registry import Domain, DomainContext
from mindport.interfaces.api.deps import (
    SessionTable,
    get_context,
    get_orchestrator,
    get_session_table,
)

logger = logging.getLogger(__name__)

router = APIRouter()


class CreateDomainRequest(BaseModel):
    """Domain creation body."""

    id: str = Field(..., description="Lower-case letters, digits, '-' and '_'")
    name: str = Field(..., min_length=1)
    description: str = ""
    parent_id: str | None = None
    metadata: dict[str, str] = Field(default_factory=dict)


class SwitchDomainRequest(BaseModel):
    domain_id: str


class SwitchDomainResponse(BaseModel):
    session_id: str
    domain: str


class DeleteDomainResponse(BaseModel):
    deleted: list[str]


@router.post("", response_model=Domain, status_code=201)
async def create_domain(
    request: CreateDomainRequest,
    orchestrator: SearchOrchestrator = Depends(get_orchestrator),
):
    """Create a domain, optionally under a parent."""
    return orchestrator.create_domain(
        request.id,
        request.name,
        description=request.description,
        parent_id=request.parent_id,
        metadata=request.metadata,
    )


@router.get("", response_model=list[Domain])
async def list_domains(
    parent: str = "",
    orchestrator: SearchOrchestrator = Depends(get_orchestrator),
):
    """List domains; ``parent`` restricts to direct children of that domain."""
    return orchestrator.list_domains(parent)


@router.post("/switch", response_model=SwitchDomainResponse)
async def switch_domain(
    request: SwitchDomainRequest,
    response: Response,
    x_session_id: str | None = Header(default=None),
    context: DomainContext = Depends(get_context),
    orchestrator: SearchOrchestrator = Depends(get_orchestrator),
    sessions: SessionTable = Depends(get_session_table),
):
    """
    Point the session at another domain.

    A session ID is issued when the request carries none; send it back in
    ``X-Session-ID`` on later requests.
    """
    switched = orchestrator.switch_domain(context, request.domain_id)
    session_id = x_session_id or uuid.uuid4().hex
    sessions.set(session_id, switched.domain)
    response.headers["X-Session-ID"] = session_id
    return SwitchDomainResponse(session_id=session_id, domain=switched.domain)


@router.get("/stats", response_model=DomainStats)
async def domain_stats(
    domain_id: str | None = None,
    context: DomainContext = Depends(get_context),
    orchestrator: SearchOrchestrator = Depends(get_orchestrator),
):
    """Counts and scope for a domain (default: the session's domain)."""
    return await orchestrator.domain_stats(context, domain_id)


@router.post("/{domain_id}/archive", response_model=Domain)
async def archive_domain(
    domain_id: str,
    orchestrator: SearchOrchestrator = Depends(get_orchestrator),
):
    """Soft-deactivate a domain; its records stay searchable."""
    return orchestrator.archive_domain(domain_id)


@router.delete("/{domain_id}", response_model=DeleteDomainResponse)
async def delete_domain(
    domain_id: str,
    cascade: bool = False,
    orchestrator: SearchOrchestrator = Depends(get_orchestrator),
    sessions: SessionTable = Depends(get_session_table),
):
    """Delete a domain and its records; ``cascade`` also removes descendants."""
    deleted = await orchestrator.delete_domain(domain_id, cascade=cascade)
    reset = sessions.forget_domains(deleted)
    if reset:
        logger.info("Reset %d sessions after deleting %s", reset, deleted)
    return DeleteDomainResponse(deleted=deleted)
