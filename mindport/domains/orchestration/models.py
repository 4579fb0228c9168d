"""
Orchestration Models - Data types for orchestration domain.
"""

from __future__ import annotations

from pydantic import BaseModel

from mindport.domains.registry.models import Domain, DomainScope


class DomainStats(BaseModel):
    """Counts and scope for one domain."""

    domain: Domain
    scope: DomainScope
    resources: int = 0
    prompts: int = 0
    isolation_mode: str = "hierarchical"
    allow_cross_domain: bool = True
