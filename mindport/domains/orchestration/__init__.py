"""
Orchestration Domain - Caller-facing search coordination.

This domain handles:
- Scope resolution from a per-call domain context
- Search, advanced search and CLI-style scans
- Resource/prompt storage with indexing
- Domain lifecycle, statistics and shorthand identifiers
"""

from .contracts import SearchService
from .models import DomainStats
from .orchestrator import SearchOrchestrator

__all__ = [
    # Contracts
    "SearchService",
    # Models
    "DomainStats",
    # Implementations
    "SearchOrchestrator",
]
