"""
Domain Registry - Hierarchical namespaces with isolation-mode scoping.

Features:
- NetworkX parent -> child graph, acyclic by construction
- Depth-bounded, visited-set guarded ancestry/descendant walks
- Strict / hierarchical / shared searchable scopes
- Reader/writer locking for concurrent request handling
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import TYPE_CHECKING

import networkx as nx

from mindport.config.errors import (
    ConflictError,
    InvalidArgumentError,
    InvariantViolationError,
    NotFoundError,
)

from .models import (
    DEFAULT_DOMAIN,
    DOMAIN_ID_PATTERN,
    DOMAIN_SEPARATOR,
    Domain,
    DomainScope,
    IsolationMode,
    is_valid_domain_id,
)

if TYPE_CHECKING:
    from mindport.config import Settings

logger = logging.getLogger(__name__)

__all__ = ["DomainRegistry", "ReadWriteLock"]


class ReadWriteLock:
    """Many concurrent readers or one writer; waiting writers block new readers."""

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    @contextmanager
    def read(self) -> Iterator[None]:
        with self._cond:
            while self._writer or self._writers_waiting:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @contextmanager
    def write(self) -> Iterator[None]:
        with self._cond:
            self._writers_waiting += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
            finally:
                self._writers_waiting -= 1
            self._writer = True
        try:
            yield
        finally:
            with self._cond:
                self._writer = False
                self._cond.notify_all()


class DomainRegistry:
    """
    In-process registry of the domain graph.

    The registry holds no notion of a "current" domain; callers carry that
    in a ``DomainContext``.

    Example:
        >>> registry = DomainRegistry()
        >>> registry.create("team-a", "Team A")
        >>> registry.create("team-a-backend", "Backend", parent_id="team-a")
        >>> registry.searchable_scope("team-a")
        ['team-a', 'team-a-backend']
    """

    def __init__(
        self,
        isolation_mode: IsolationMode | str = IsolationMode.HIERARCHICAL,
        allow_cross_domain: bool = True,
        max_depth: int = 50,
    ) -> None:
        """
        Initialize registry with the default domain.

        Args:
            isolation_mode: Scope rule used when none is given per call
            allow_cross_domain: Whether explicit domain filters may leave scope
            max_depth: Bound on ancestry/descendant walks
        """
        self.isolation_mode = IsolationMode(isolation_mode)
        self.allow_cross_domain = allow_cross_domain
        self.max_depth = max_depth

        self._graph = nx.DiGraph()
        self._domains: dict[str, Domain] = {}
        self._lock = ReadWriteLock()

        self._insert(
            Domain(
                id=DEFAULT_DOMAIN,
                name="Default Domain",
                description="Default domain for general resources",
                path=DOMAIN_SEPARATOR + DEFAULT_DOMAIN,
            )
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> DomainRegistry:
        """Build a registry from application settings."""
        return cls(
            isolation_mode=settings.isolation_mode,
            allow_cross_domain=settings.allow_cross_domain,
            max_depth=settings.max_domain_depth,
        )

    # --- Mutations ---

    def create(
        self,
        domain_id: str,
        name: str,
        description: str = "",
        parent_id: str | None = None,
        metadata: dict[str, str] | None = None,
    ) -> Domain:
        """
        Create a domain.

        Raises:
            InvalidArgumentError: ``domain_id`` violates the identifier grammar
            ConflictError: ``domain_id`` already exists
            NotFoundError: ``parent_id`` given but unknown
        """
        if not is_valid_domain_id(domain_id):
            raise InvalidArgumentError(
                f"invalid domain ID {domain_id!r}: must match "
                f"{DOMAIN_ID_PATTERN.pattern} and be at most 64 characters",
                {"domain_id": domain_id},
            )

        with self._lock.write():
            if domain_id in self._domains:
                raise ConflictError(
                    f"domain already exists: {domain_id}", {"domain_id": domain_id}
                )

            if parent_id:
                parent = self._domains.get(parent_id)
                if parent is None:
                    raise NotFoundError(
                        f"parent domain not found: {parent_id}",
                        {"parent_id": parent_id},
                    )
                path = parent.path + DOMAIN_SEPARATOR + domain_id
            else:
                path = DOMAIN_SEPARATOR + domain_id

            domain = Domain(
                id=domain_id,
                name=name,
                description=description,
                parent_id=parent_id or None,
                path=path,
                metadata=dict(metadata or {}),
            )
            self._insert(domain)

        logger.info("Created domain: %s (path=%s)", domain_id, path)
        return domain.model_copy()

    def archive(self, domain_id: str) -> Domain:
        """Soft-deactivate a domain."""
        if domain_id == DEFAULT_DOMAIN:
            raise ConflictError("cannot archive default domain", {"domain_id": domain_id})

        with self._lock.write():
            domain = self._require(domain_id)
            domain.active = False
            domain.updated_at = datetime.now(timezone.utc)

        logger.info("Archived domain: %s", domain_id)
        return domain.model_copy()

    def deletion_order(self, domain_id: str, cascade: bool = False) -> list[str]:
        """
        Domains ``delete`` would remove, in deletion order, leaving the graph untouched.

        Raises the same errors as ``delete``.
        """
        with self._lock.read():
            return self._deletion_order(domain_id, cascade)

    def delete(self, domain_id: str, cascade: bool = False) -> list[str]:
        """
        Remove a domain, and with ``cascade`` all of its descendants first.

        Returns:
            Deleted domain IDs in deletion order (post-order)
        """
        with self._lock.write():
            order = self._deletion_order(domain_id, cascade)
            for victim in order:
                self._graph.remove_node(victim)
                del self._domains[victim]

        logger.info("Deleted domains: %s", order)
        return order

    # --- Queries ---

    def get(self, domain_id: str) -> Domain:
        """Get a domain by ID."""
        with self._lock.read():
            return self._require(domain_id).model_copy()

    def exists(self, domain_id: str) -> bool:
        with self._lock.read():
            return domain_id in self._domains

    def list_domains(self, parent_filter: str = "") -> list[Domain]:
        """All domains when ``parent_filter`` is empty, else its direct children."""
        with self._lock.read():
            if parent_filter:
                domains = [self._domains[c] for c in self._children(parent_filter)]
            else:
                domains = list(self._domains.values())
            return [d.model_copy() for d in sorted(domains, key=lambda d: d.path)]

    def children(self, domain_id: str) -> list[str]:
        with self._lock.read():
            self._require(domain_id)
            return self._children(domain_id)

    def ancestry(self, domain_id: str) -> list[str]:
        """Ancestor IDs ordered root -> parent."""
        with self._lock.read():
            return self._ancestry(self._require(domain_id))

    def descendants(self, domain_id: str) -> list[str]:
        """Transitive descendants, depth-first."""
        with self._lock.read():
            self._require(domain_id)
            return self._descendants(domain_id)

    def searchable_scope(
        self,
        domain_id: str,
        mode: IsolationMode | str | None = None,
    ) -> list[str]:
        """Domain IDs a search from ``domain_id`` is allowed to read."""
        with self._lock.read():
            return self._searchable(self._require(domain_id), mode)

    def scope(self, domain_id: str, mode: IsolationMode | str | None = None) -> DomainScope:
        """Ancestry, children and searchable set for a domain."""
        with self._lock.read():
            domain = self._require(domain_id)
            return DomainScope(
                current=domain_id,
                ancestry=self._ancestry(domain),
                children=self._children(domain_id),
                searchable=self._searchable(domain, mode),
            )

    def validate_access(self, source: str, target: str) -> bool:
        """Whether ``target`` lies inside the searchable scope of ``source``."""
        if source == target:
            return True
        with self._lock.read():
            domain = self._domains.get(source)
            if domain is None:
                return False
            return target in self._searchable(domain, None)

    def resolve_path(self, path: str) -> str:
        """Resolve a domain ID or a full ``/a/b`` path to a domain ID."""
        with self._lock.read():
            if path in self._domains:
                return path
            if DOMAIN_SEPARATOR in path:
                for domain_id, domain in self._domains.items():
                    if domain.path == path:
                        return domain_id
        raise NotFoundError(f"domain path not found: {path}", {"path": path})

    @staticmethod
    def storage_prefix(domain_id: str) -> str:
        """Key prefix used for domain-scoped storage."""
        if domain_id == DEFAULT_DOMAIN:
            return ""
        return f"domain:{domain_id}:"

    # --- Internals (caller holds the lock) ---

    def _insert(self, domain: Domain) -> None:
        self._domains[domain.id] = domain
        self._graph.add_node(domain.id)
        if domain.parent_id:
            self._graph.add_edge(domain.parent_id, domain.id)

    def _require(self, domain_id: str) -> Domain:
        domain = self._domains.get(domain_id)
        if domain is None:
            raise NotFoundError(f"domain not found: {domain_id}", {"domain_id": domain_id})
        return domain

    def _children(self, domain_id: str) -> list[str]:
        if domain_id not in self._graph:
            return []
        return sorted(self._graph.successors(domain_id))

    def _ancestry(self, domain: Domain) -> list[str]:
        ancestry: list[str] = []
        visited = {domain.id}
        current = domain

        while current.parent_id:
            parent_id = current.parent_id
            if parent_id in visited:
                raise InvariantViolationError(
                    f"cycle detected in ancestry of {domain.id} at {parent_id}",
                    {"domain_id": domain.id, "revisited": parent_id},
                )
            if len(ancestry) >= self.max_depth:
                raise InvariantViolationError(
                    f"ancestry of {domain.id} exceeds max depth {self.max_depth}",
                    {"domain_id": domain.id, "max_depth": self.max_depth},
                )
            parent = self._domains.get(parent_id)
            if parent is None:
                raise InvariantViolationError(
                    f"dangling parent {parent_id} in ancestry of {domain.id}",
                    {"domain_id": domain.id, "parent_id": parent_id},
                )
            visited.add(parent_id)
            ancestry.insert(0, parent_id)
            current = parent

        return ancestry

    def _descendants(self, domain_id: str) -> list[str]:
        descendants: list[str] = []
        visited = {domain_id}

        def walk(node: str, depth: int) -> None:
            if depth > self.max_depth:
                raise InvariantViolationError(
                    f"descendants of {domain_id} exceed max depth {self.max_depth}",
                    {"domain_id": domain_id, "max_depth": self.max_depth},
                )
            for child in self._children(node):
                if child in visited:
                    raise InvariantViolationError(
                        f"cycle detected below {domain_id} at {child}",
                        {"domain_id": domain_id, "revisited": child},
                    )
                visited.add(child)
                descendants.append(child)
                walk(child, depth + 1)

        walk(domain_id, 1)
        return descendants

    def _deletion_order(self, domain_id: str, cascade: bool) -> list[str]:
        if domain_id == DEFAULT_DOMAIN:
            raise ConflictError("cannot delete default domain", {"domain_id": domain_id})

        self._require(domain_id)
        children = self._children(domain_id)
        if children and not cascade:
            raise ConflictError(
                f"domain has children, use cascade=true to delete: {children}",
                {"domain_id": domain_id, "children": children},
            )
        return self._post_order(domain_id)

    def _post_order(self, domain_id: str) -> list[str]:
        # Reversed pre-order puts every child ahead of its parent
        return [*reversed(self._descendants(domain_id)), domain_id]

    def _searchable(self, domain: Domain, mode: IsolationMode | str | None) -> list[str]:
        mode = IsolationMode(mode) if mode else self.isolation_mode

        if mode is IsolationMode.STRICT:
            return [domain.id]
        if mode is IsolationMode.SHARED:
            return sorted(self._domains)

        searchable = [domain.id, *self._ancestry(domain), *self._descendants(domain.id)]
        return list(dict.fromkeys(searchable))
