"""
Tool Routes - grep, find and ripgrep over the session's domain scope.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from mindport.domains.cli_tools import (
    FindOptions,
    FindResult,
    GrepOptions,
    GrepResult,
    RipgrepOptions,
)
from mindport.domains.orchestration import SearchOrchestrator
from mindport.domains.registry import DomainContext
from mindport.interfaces.api.deps import get_context, get_orchestrator

router = APIRouter()


@router.post("/grep", response_model=list[GrepResult])
async def grep(
    opts: GrepOptions,
    context: DomainContext = Depends(get_context),
    orchestrator: SearchOrchestrator = Depends(get_orchestrator),
):
    """Line scan with grep flags (-i -v -w -E -F -o -c -m -A -B -C)."""
    return await orchestrator.grep(context, opts)


@router.post("/find", response_model=list[FindResult])
async def find(
    opts: FindOptions,
    context: DomainContext = Depends(get_context),
    orchestrator: SearchOrchestrator = Depends(get_orchestrator),
):
    """Filter resources and prompts by name, type, content type, tags and size."""
    return await orchestrator.find(context, opts)


@router.post("/ripgrep", response_model=list[GrepResult])
async def ripgrep(
    opts: RipgrepOptions,
    context: DomainContext = Depends(get_context),
    orchestrator: SearchOrchestrator = Depends(get_orchestrator),
):
    """Ranked search shaped like ripgrep output."""
    return await orchestrator.ripgrep(context, opts)
