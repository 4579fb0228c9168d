"""
Shorthand Routes - Encode and decode ``domain:id`` tokens.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from mindport.domains.orchestration import SearchOrchestrator
from mindport.domains.registry import DomainContext
from mindport.interfaces.api.deps import get_context, get_orchestrator

router = APIRouter()


class ShorthandResponse(BaseModel):
    token: str
    domain: str
    local_id: str


@router.get("/resolve", response_model=ShorthandResponse)
async def resolve(
    token: str,
    context: DomainContext = Depends(get_context),
    orchestrator: SearchOrchestrator = Depends(get_orchestrator),
):
    """Decode a token; ``token`` comes back in canonical form."""
    domain, local_id = orchestrator.resolve_shorthand(context, token)
    return ShorthandResponse(
        token=orchestrator.build_shorthand(domain, local_id), domain=domain, local_id=local_id
    )


@router.get("/build", response_model=ShorthandResponse)
async def build(
    local_id: str,
    domain: str | None = None,
    context: DomainContext = Depends(get_context),
    orchestrator: SearchOrchestrator = Depends(get_orchestrator),
):
    """Encode ``local_id`` in ``domain`` (default: the session's domain)."""
    domain = domain or context.domain
    return ShorthandResponse(
        token=orchestrator.build_shorthand(domain, local_id), domain=domain, local_id=local_id
    )
