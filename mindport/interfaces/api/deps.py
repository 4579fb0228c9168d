"""
API Dependencies - Dependency injection for FastAPI routes.

Provides singleton instances of the registry, store, index and
orchestrator, plus the per-session current-domain table.
"""

from __future__ import annotations

import logging
import threading
from functools import lru_cache

from fastapi import Depends, Header

from mindport.adapters.memory_index import MemoryIndex
from mindport.adapters.sqlite import SQLiteRepository
from mindport.config import get_settings
from mindport.domains.orchestration import SearchOrchestrator
from mindport.domains.registry import DomainContext, DomainRegistry

logger = logging.getLogger(__name__)


class SessionTable:
    """
    Session ID -> current domain, kept in process memory.

    Sessions without an entry use the default domain.
    """

    def __init__(self) -> None:
        self._domains: dict[str, str] = {}
        self._lock = threading.Lock()

    def get(self, session_id: str) -> str | None:
        with self._lock:
            return self._domains.get(session_id)

    def set(self, session_id: str, domain_id: str) -> None:
        with self._lock:
            self._domains[session_id] = domain_id

    def forget_domains(self, domain_ids: list[str]) -> int:
        """Drop sessions pointing at removed domains; returns how many."""
        removed = set(domain_ids)
        with self._lock:
            stale = [sid for sid, domain in self._domains.items() if domain in removed]
            for sid in stale:
                del self._domains[sid]
        return len(stale)


@lru_cache
def get_registry() -> DomainRegistry:
    """Get domain registry singleton."""
    return DomainRegistry.from_settings(get_settings())


@lru_cache
def get_sqlite_repository() -> SQLiteRepository:
    """Get SQLite repository singleton."""
    settings = get_settings()
    return SQLiteRepository(settings.db_path)


@lru_cache
def get_search_index() -> MemoryIndex:
    """Get search index singleton."""
    return MemoryIndex()


@lru_cache
def get_orchestrator() -> SearchOrchestrator:
    """Get search orchestrator singleton."""
    return SearchOrchestrator(
        registry=get_registry(),
        store=get_sqlite_repository(),
        index=get_search_index(),
        settings=get_settings(),
    )


@lru_cache
def get_session_table() -> SessionTable:
    """Get session table singleton."""
    return SessionTable()


def get_context(
    x_session_id: str | None = Header(default=None),
    orchestrator: SearchOrchestrator = Depends(get_orchestrator),
    sessions: SessionTable = Depends(get_session_table),
) -> DomainContext:
    """Per-request domain context from the ``X-Session-ID`` header."""
    domain = sessions.get(x_session_id) if x_session_id else None
    return orchestrator.new_context(domain, session_id=x_session_id)


async def init_services() -> None:
    """
    Initialize services on startup.

    This should be called from the FastAPI lifespan handler.
    """
    repo = get_sqlite_repository()
    await repo.initialize()

    # Rebuild the in-memory index from stored records
    orchestrator = get_orchestrator()
    indexed = await orchestrator.reindex()
    logger.info("Indexed %d stored records", indexed)


async def cleanup_services() -> None:
    """Cleanup services on shutdown."""
    repo = get_sqlite_repository()
    await repo.close()
