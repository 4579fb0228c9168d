"""
Health Routes - System health and status endpoints.
"""

from typing import Any

from fastapi import APIRouter, Depends

from mindport import __version__
from mindport.domains.registry import DomainRegistry
from mindport.interfaces.api.deps import get_registry

router = APIRouter()


@router.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy", "service": "mindport"}


@router.get("/api")
async def api_info(registry: DomainRegistry = Depends(get_registry)) -> dict[str, Any]:
    """API info endpoint."""
    return {
        "name": "MindPort API",
        "version": __version__,
        "isolation_mode": registry.isolation_mode.value,
        "domains": len(registry.list_domains()),
        "docs": "/docs",
    }
