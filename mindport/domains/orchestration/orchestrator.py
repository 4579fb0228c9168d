"""
Search Orchestrator - End-to-end coordination of registry, index and store.

Coordinates:
- Scope resolution per caller context
- Query compilation, execution and shaping
- grep / find / ripgrep scans
- Resource and prompt storage plus indexing
- Domain lifecycle and shorthand identifiers
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from typing import TYPE_CHECKING, Any

from mindport.config import get_settings
from mindport.config.errors import (
    ConflictError,
    InvalidArgumentError,
    MindPortError,
    NotFoundError,
    SearchIndexError,
)
from mindport.domains.cli_tools import (
    CLISearchTools,
    FindOptions,
    FindResult,
    FlatScanStrategy,
    GrepOptions,
    GrepResult,
    RankedQueryStrategy,
    RipgrepOptions,
    check_deadline,
)
from mindport.domains.registry import DEFAULT_DOMAIN, Domain, DomainContext, shorthand
from mindport.domains.search.compiler import QueryCompiler
from mindport.domains.search.models import (
    Prompt,
    Resource,
    SearchQuerySpec,
    SearchResponse,
    content_id,
)
from mindport.domains.search.postprocess import build_stats

from .models import DomainStats

if TYPE_CHECKING:
    from mindport.config import Settings
    from mindport.domains.registry import DomainRegistry
    from mindport.domains.search.contracts import DocumentStore, SearchIndex

logger = logging.getLogger(__name__)

__all__ = ["SearchOrchestrator"]


class SearchOrchestrator:
    """
    Facade answering every caller-facing operation.

    Callers pass a ``DomainContext``; the orchestrator never keeps a
    current-domain pointer of its own.

    Example:
        >>> orchestrator = SearchOrchestrator(registry, repo, index)
        >>> ctx = orchestrator.new_context("team-a")
        >>> response = await orchestrator.search(ctx, "authentication")
    """

    def __init__(
        self,
        registry: DomainRegistry,
        store: DocumentStore,
        index: SearchIndex,
        settings: Settings | None = None,
    ) -> None:
        """
        Initialize orchestrator.

        Args:
            registry: Domain registry
            store: Resource/prompt store
            index: Full-text index
            settings: Application settings (defaults to cached settings)
        """
        settings = settings or get_settings()
        self._registry = registry
        self._store = store
        self._index = index
        self._snippet_length = settings.snippet_length
        self._page_size = settings.scan_page_size

        self._compiler = QueryCompiler.from_settings(settings)
        self._ranked = RankedQueryStrategy(self._compiler, index)
        self._tools = CLISearchTools(
            flat=FlatScanStrategy(store, page_size=settings.scan_page_size),
            ranked=self._ranked,
            grep_max_matches=settings.grep_max_matches,
            find_limit=settings.find_limit,
        )

    @property
    def registry(self) -> DomainRegistry:
        return self._registry

    # --- Context & scope ---

    def new_context(
        self,
        domain: str | None = None,
        session_id: str | None = None,
        timeout_seconds: float | None = None,
    ) -> DomainContext:
        """Build a per-call context, validating the domain."""
        domain = domain or DEFAULT_DOMAIN
        self._registry.get(domain)
        deadline = time.monotonic() + timeout_seconds if timeout_seconds else None
        return DomainContext(domain=domain, session_id=session_id, deadline=deadline)

    def resolve_scope(self, context: DomainContext, domains: list[str] | None = None) -> list[str]:
        """
        Domain IDs a request may read.

        Without explicit ``domains`` this is the searchable scope of the
        context domain. Explicit domains must exist; when cross-domain
        access is disabled they are intersected with that scope.
        """
        scope = self._registry.searchable_scope(context.domain)
        if not domains:
            return scope

        requested = list(dict.fromkeys(domains))
        for domain_id in requested:
            self._registry.get(domain_id)

        if self._registry.allow_cross_domain:
            return requested
        return [d for d in requested if d in scope]

    # --- Search ---

    async def search(
        self,
        context: DomainContext,
        query: str,
        limit: int = 0,
        type_filter: str | None = None,
        tags: list[str] | None = None,
    ) -> SearchResponse:
        """Plain search over the caller's scope."""
        spec = SearchQuerySpec(
            query=query,
            limit=limit,
            type_filter=type_filter,
            tags=tags or [],
            highlight=True,
        )
        return await self.advanced_search(context, spec)

    async def advanced_search(
        self,
        context: DomainContext,
        spec: SearchQuerySpec,
    ) -> SearchResponse:
        """
        Compile, execute and shape a structured query.

        Returns:
            Shaped results with statistics
        """
        start = time.perf_counter()
        if not spec.snippet_length:
            spec = spec.model_copy(update={"snippet_length": self._snippet_length})
        scope = self.resolve_scope(context, spec.domains)
        check_deadline(context.deadline, "search")

        results = await self._ranked.search(spec, scope)
        elapsed_ms = (time.perf_counter() - start) * 1000

        logger.info(
            "Search %r in %s: %d results in %.1fms",
            spec.query,
            context.domain,
            len(results),
            elapsed_ms,
        )
        return SearchResponse(results=results, stats=build_stats(results, elapsed_ms))

    async def grep(self, context: DomainContext, opts: GrepOptions) -> list[GrepResult]:
        scope = self.resolve_scope(context, opts.domains)
        return await self._tools.grep(opts, scope, context.deadline)

    async def find(self, context: DomainContext, opts: FindOptions) -> list[FindResult]:
        scope = self.resolve_scope(context, opts.domains)
        return await self._tools.find(opts, scope, context.deadline)

    async def ripgrep(self, context: DomainContext, opts: RipgrepOptions) -> list[GrepResult]:
        scope = self.resolve_scope(context, opts.domains)
        return await self._tools.ripgrep(opts, scope, context.deadline)

    # --- Resources & prompts ---

    async def store_resource(
        self,
        context: DomainContext,
        title: str,
        content: str,
        type: str = "text",
        tags: list[str] | None = None,
        search_terms: list[str] | None = None,
        metadata: dict[str, Any] | None = None,
        domain: str | None = None,
    ) -> Resource:
        """
        Store and index a resource in ``domain`` (default: context domain).

        The ID is derived from title and content, so storing the same
        pair again replaces the earlier copy.
        """
        if not title or not content:
            raise InvalidArgumentError("title and content are required")
        target = self._writable_domain(domain or context.domain)

        resource = Resource(
            id=content_id(title, content),
            domain=target,
            type=type or "text",
            title=title,
            content=content,
            tags=tags or [],
            search_terms=search_terms or [],
            metadata=metadata or {},
        )
        await self._store.put_resource(resource)
        await self._index_resource(resource)

        logger.info("Stored resource %s", shorthand.build(target, resource.id))
        return resource

    async def store_prompt(
        self,
        context: DomainContext,
        name: str,
        template: str,
        description: str = "",
        variables: dict[str, str] | None = None,
        tags: list[str] | None = None,
        domain: str | None = None,
    ) -> Prompt:
        """Store and index a prompt; the ID is derived from name and template."""
        if not name or not template:
            raise InvalidArgumentError("name and template are required")
        target = self._writable_domain(domain or context.domain)

        prompt = Prompt(
            id=content_id(name, template),
            domain=target,
            name=name,
            description=description,
            template=template,
            variables=variables or {},
            tags=tags or [],
        )
        await self._store.put_prompt(prompt)
        await self._index_prompt(prompt)

        logger.info("Stored prompt %s", shorthand.build(target, prompt.id))
        return prompt

    async def get_resource(self, context: DomainContext, token: str) -> Resource:
        """Fetch a resource by shorthand token."""
        domain, local_id = self._resolve_readable(context, token)
        return await self._store.get_resource(local_id, domain)

    async def get_prompt(self, context: DomainContext, token: str) -> Prompt:
        domain, local_id = self._resolve_readable(context, token)
        return await self._store.get_prompt(local_id, domain)

    async def delete_resource(self, context: DomainContext, token: str) -> None:
        domain, local_id = self._resolve_readable(context, token)
        await self._store.delete_resource(local_id, domain)
        await self._delete_document(shorthand.build(domain, local_id))
        logger.info("Deleted resource %s", shorthand.build(domain, local_id))

    # --- Domains ---

    def create_domain(
        self,
        domain_id: str,
        name: str,
        description: str = "",
        parent_id: str | None = None,
        metadata: dict[str, str] | None = None,
    ) -> Domain:
        return self._registry.create(domain_id, name, description, parent_id, metadata)

    def list_domains(self, parent_filter: str = "") -> list[Domain]:
        return self._registry.list_domains(parent_filter)

    def switch_domain(self, context: DomainContext, domain_id: str) -> DomainContext:
        """Return a new context pointing at ``domain_id``; ``context`` is unchanged."""
        domain = self._registry.get(domain_id)
        if not domain.active:
            raise ConflictError(
                f"cannot switch to archived domain: {domain_id}", {"domain_id": domain_id}
            )
        logger.info("Session %s switched to domain %s", context.session_id, domain_id)
        return context.model_copy(update={"domain": domain_id})

    def archive_domain(self, domain_id: str) -> Domain:
        return self._registry.archive(domain_id)

    async def delete_domain(self, domain_id: str, cascade: bool = False) -> list[str]:
        """Purge the records of every domain being deleted, then drop the domains."""
        for victim in self._registry.deletion_order(domain_id, cascade):
            await self._purge_domain(victim)
        return self._registry.delete(domain_id, cascade)

    async def domain_stats(
        self,
        context: DomainContext,
        domain_id: str | None = None,
    ) -> DomainStats:
        """Counts and scope for ``domain_id`` (default: context domain)."""
        domain_id = domain_id or context.domain
        domain = self._registry.get(domain_id)
        resources, prompts = await self._store.count_in_domain(domain_id)
        return DomainStats(
            domain=domain,
            scope=self._registry.scope(domain_id),
            resources=resources,
            prompts=prompts,
            isolation_mode=self._registry.isolation_mode.value,
            allow_cross_domain=self._registry.allow_cross_domain,
        )

    def resolve_shorthand(self, context: DomainContext, token: str) -> tuple[str, str]:
        """Decode a token; bare IDs resolve against the context domain."""
        if not token:
            raise InvalidArgumentError("shorthand token is empty")
        return shorthand.parse(token, context.domain)

    def build_shorthand(self, domain: str, local_id: str) -> str:
        if not local_id:
            raise InvalidArgumentError("local ID is empty")
        return shorthand.build(domain, local_id)

    # --- Index maintenance ---

    async def reindex(self) -> int:
        """
        Index every stored record.

        Domains found in the store but unknown to the registry are
        registered as root domains so their records stay reachable.

        Returns:
            Number of records indexed
        """
        count = 0
        async for resource in self._records(self._store.list_resources):
            self._ensure_domain(resource.domain)
            await self._index_resource(resource)
            count += 1
        async for prompt in self._records(self._store.list_prompts):
            self._ensure_domain(prompt.domain)
            await self._index_prompt(prompt)
            count += 1
        return count

    # --- Internals ---

    def _ensure_domain(self, domain_id: str) -> None:
        if not self._registry.exists(domain_id):
            logger.warning("Registering domain %s found in store", domain_id)
            self._registry.create(domain_id, domain_id)

    def _writable_domain(self, domain_id: str) -> str:
        domain = self._registry.get(domain_id)
        if not domain.active:
            raise ConflictError(
                f"cannot write to archived domain: {domain_id}", {"domain_id": domain_id}
            )
        return domain_id

    def _resolve_readable(self, context: DomainContext, token: str) -> tuple[str, str]:
        domain, local_id = self.resolve_shorthand(context, token)
        self._registry.get(domain)
        if not self._registry.allow_cross_domain and not self._registry.validate_access(
            context.domain, domain
        ):
            raise NotFoundError(
                f"{token} is outside the scope of domain {context.domain}",
                {"token": token, "domain": context.domain},
            )
        return domain, local_id

    async def _records(
        self, lister: Any, domains: list[str] | None = None
    ) -> AsyncIterator[Resource | Prompt]:
        offset = 0
        while True:
            page = await lister(domains=domains, limit=self._page_size, offset=offset)
            for record in page:
                yield record
            if not page:
                break
            offset += self._page_size

    async def _purge_domain(self, domain_id: str) -> None:
        doc_ids = [
            shorthand.build(domain_id, record.id)
            for lister in (self._store.list_resources, self._store.list_prompts)
            async for record in self._records(lister, [domain_id])
        ]
        for doc_id in doc_ids:
            await self._delete_document(doc_id)
        await self._store.delete_domain(domain_id)
        logger.info("Purged %d records of domain %s", len(doc_ids), domain_id)

    async def _index_resource(self, resource: Resource) -> None:
        await self._index_document(
            shorthand.build(resource.domain, resource.id),
            {
                "id": resource.id,
                "domain": resource.domain,
                "type": "resource",
                "content_type": resource.type,
                "title": resource.title,
                "content": resource.content,
                "tags": resource.tags,
                "search_terms": resource.search_terms,
                "metadata": resource.metadata,
                "created_at": resource.created_at,
                "updated_at": resource.updated_at,
            },
        )

    async def _index_prompt(self, prompt: Prompt) -> None:
        await self._index_document(
            shorthand.build(prompt.domain, prompt.id),
            {
                "id": prompt.id,
                "domain": prompt.domain,
                "type": "prompt",
                "title": prompt.name,
                "content": " ".join(p for p in (prompt.description, prompt.template) if p),
                "tags": prompt.tags,
                "created_at": prompt.created_at,
                "updated_at": prompt.updated_at,
            },
        )

    async def _index_document(self, doc_id: str, fields: dict[str, Any]) -> None:
        try:
            await self._index.index_document(doc_id, fields)
        except MindPortError:
            raise
        except Exception as exc:
            raise SearchIndexError(
                f"failed to index {doc_id}: {exc}", {"doc_id": doc_id, "cause": repr(exc)}
            ) from exc

    async def _delete_document(self, doc_id: str) -> None:
        try:
            await self._index.delete_document(doc_id)
        except MindPortError:
            raise
        except Exception as exc:
            raise SearchIndexError(
                f"failed to remove {doc_id} from index: {exc}",
                {"doc_id": doc_id, "cause": repr(exc)},
            ) from exc
