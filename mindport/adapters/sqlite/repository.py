"""
SQLite Repository - Resource and prompt storage.

Features:
- Async operations via aiosqlite
- Records keyed by (domain, id)
- JSON columns for tags, metadata and variables
- Domain-filtered paging for flat scans (malformed rows are skipped)
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from datetime import datetime
from pathlib import Path
from typing import Any, TypeVar

import aiosqlite

from mindport.config.errors import ErrorCode, NotFoundError, StorageError
from mindport.domains.search.models import Prompt, Resource

logger = logging.getLogger(__name__)

__all__ = ["SQLiteRepository"]

T = TypeVar("T")


class SQLiteRepository:
    """
    SQLite repository implementing the ``DocumentStore`` contract.

    Example:
        >>> repo = SQLiteRepository("data/mindport.db")
        >>> await repo.initialize()
        >>> await repo.put_resource(Resource(id="abc", title="Guide", content="..."))
        >>> resource = await repo.get_resource("abc", "default")
    """

    def __init__(self, db_path: str | Path) -> None:
        """
        Initialize repository.

        Args:
            db_path: Path to SQLite database file, or ``:memory:``
        """
        self.db_path = db_path if str(db_path) == ":memory:" else Path(db_path)
        if isinstance(self.db_path, Path):
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._connection: aiosqlite.Connection | None = None

    async def _get_connection(self) -> aiosqlite.Connection:
        """Get or create database connection."""
        if self._connection is None:
            self._connection = await aiosqlite.connect(str(self.db_path))
            self._connection.row_factory = aiosqlite.Row
        return self._connection

    async def initialize(self) -> None:
        """Initialize database schema."""
        conn = await self._get_connection()

        await conn.executescript("""
            CREATE TABLE IF NOT EXISTS resources (
                domain TEXT NOT NULL,
                id TEXT NOT NULL,
                type TEXT NOT NULL DEFAULT 'text',
                title TEXT NOT NULL,
                content TEXT NOT NULL,
                metadata TEXT,
                tags TEXT,
                search_terms TEXT,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL,
                PRIMARY KEY (domain, id)
            );

            CREATE TABLE IF NOT EXISTS prompts (
                domain TEXT NOT NULL,
                id TEXT NOT NULL,
                name TEXT NOT NULL,
                description TEXT,
                template TEXT NOT NULL,
                variables TEXT,
                tags TEXT,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL,
                PRIMARY KEY (domain, id)
            );

            CREATE INDEX IF NOT EXISTS idx_resources_domain ON resources(domain);
            CREATE INDEX IF NOT EXISTS idx_prompts_domain ON prompts(domain);
        """)

        await conn.commit()
        logger.info("Database initialized: %s", self.db_path)

    # --- Resources ---

    async def put_resource(self, resource: Resource) -> None:
        """Insert or replace a resource."""
        await self._write(
            """
            INSERT OR REPLACE INTO resources
            (domain, id, type, title, content, metadata, tags, search_terms, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                resource.domain,
                resource.id,
                resource.type,
                resource.title,
                resource.content,
                json.dumps(resource.metadata),
                json.dumps(resource.tags),
                json.dumps(resource.search_terms),
                resource.created_at.isoformat(),
                resource.updated_at.isoformat(),
            ),
        )

    async def get_resource(self, resource_id: str, domain: str) -> Resource:
        row = await self._fetch_one(
            "SELECT * FROM resources WHERE domain = ? AND id = ?", (domain, resource_id)
        )
        if row is None:
            raise NotFoundError(
                f"resource not found: {resource_id} in domain {domain}",
                {"resource_id": resource_id, "domain": domain},
            )
        return self._decode(row, self._to_resource)

    async def list_resources(
        self,
        domains: list[str] | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[Resource]:
        """List resources ordered by domain and ID."""
        rows = await self._fetch_page("resources", domains, limit, offset)
        return self._decode_page(rows, self._to_resource)

    async def delete_resource(self, resource_id: str, domain: str) -> None:
        deleted = await self._write(
            "DELETE FROM resources WHERE domain = ? AND id = ?", (domain, resource_id)
        )
        if not deleted:
            raise NotFoundError(
                f"resource not found: {resource_id} in domain {domain}",
                {"resource_id": resource_id, "domain": domain},
            )

    # --- Prompts ---

    async def put_prompt(self, prompt: Prompt) -> None:
        """Insert or replace a prompt."""
        await self._write(
            """
            INSERT OR REPLACE INTO prompts
            (domain, id, name, description, template, variables, tags, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                prompt.domain,
                prompt.id,
                prompt.name,
                prompt.description,
                prompt.template,
                json.dumps(prompt.variables),
                json.dumps(prompt.tags),
                prompt.created_at.isoformat(),
                prompt.updated_at.isoformat(),
            ),
        )

    async def get_prompt(self, prompt_id: str, domain: str) -> Prompt:
        row = await self._fetch_one(
            "SELECT * FROM prompts WHERE domain = ? AND id = ?", (domain, prompt_id)
        )
        if row is None:
            raise NotFoundError(
                f"prompt not found: {prompt_id} in domain {domain}",
                {"prompt_id": prompt_id, "domain": domain},
            )
        return self._decode(row, self._to_prompt)

    async def list_prompts(
        self,
        domains: list[str] | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[Prompt]:
        rows = await self._fetch_page("prompts", domains, limit, offset)
        return self._decode_page(rows, self._to_prompt)

    # --- Domains ---

    async def count_in_domain(self, domain: str) -> tuple[int, int]:
        """Get (resources, prompts) counts for one domain."""
        resources = await self._fetch_one(
            "SELECT COUNT(*) FROM resources WHERE domain = ?", (domain,)
        )
        prompts = await self._fetch_one(
            "SELECT COUNT(*) FROM prompts WHERE domain = ?", (domain,)
        )
        return (resources[0] if resources else 0, prompts[0] if prompts else 0)

    async def delete_domain(self, domain: str) -> None:
        """Remove every record stored in a domain."""
        await self._write("DELETE FROM resources WHERE domain = ?", (domain,))
        await self._write("DELETE FROM prompts WHERE domain = ?", (domain,))

    async def close(self) -> None:
        """Close database connection."""
        if self._connection:
            await self._connection.close()
            self._connection = None

    # --- Internals ---

    async def _write(self, sql: str, params: tuple[Any, ...]) -> int:
        try:
            conn = await self._get_connection()
            cursor = await conn.execute(sql, params)
            await conn.commit()
            return cursor.rowcount
        except aiosqlite.Error as exc:
            raise StorageError(
                f"storage write failed: {exc}",
                {"cause": str(exc)},
                code=ErrorCode.STORAGE_WRITE_FAILED,
            ) from exc

    async def _fetch_one(self, sql: str, params: tuple[Any, ...]) -> aiosqlite.Row | None:
        try:
            conn = await self._get_connection()
            cursor = await conn.execute(sql, params)
            return await cursor.fetchone()
        except aiosqlite.Error as exc:
            raise StorageError(f"storage read failed: {exc}", {"cause": str(exc)}) from exc

    async def _fetch_page(
        self,
        table: str,
        domains: list[str] | None,
        limit: int,
        offset: int,
    ) -> list[aiosqlite.Row]:
        sql = f"SELECT * FROM {table}"
        params: list[Any] = []
        if domains is not None:
            if not domains:
                return []
            sql += f" WHERE domain IN ({', '.join('?' for _ in domains)})"
            params.extend(domains)
        sql += " ORDER BY domain, id LIMIT ? OFFSET ?"
        params.extend([limit, offset])

        try:
            conn = await self._get_connection()
            cursor = await conn.execute(sql, params)
            return list(await cursor.fetchall())
        except aiosqlite.Error as exc:
            raise StorageError(f"storage read failed: {exc}", {"cause": str(exc)}) from exc

    @staticmethod
    def _decode(row: aiosqlite.Row, converter: Callable[[aiosqlite.Row], T]) -> T:
        try:
            return converter(row)
        except (TypeError, ValueError) as exc:
            raise StorageError(
                f"malformed row {row['domain']}:{row['id']}: {exc}",
                {"domain": row["domain"], "id": row["id"], "cause": str(exc)},
            ) from exc

    def _decode_page(
        self, rows: list[aiosqlite.Row], converter: Callable[[aiosqlite.Row], T]
    ) -> list[T]:
        """Decode a page, skipping rows that fail to decode."""
        records = []
        for row in rows:
            try:
                records.append(self._decode(row, converter))
            except StorageError as e:
                logger.warning("Skipping %s", e.message)
        return records

    @staticmethod
    def _to_resource(row: aiosqlite.Row) -> Resource:
        return Resource(
            id=row["id"],
            domain=row["domain"],
            type=row["type"],
            title=row["title"],
            content=row["content"],
            metadata=json.loads(row["metadata"]) if row["metadata"] else {},
            tags=json.loads(row["tags"]) if row["tags"] else [],
            search_terms=json.loads(row["search_terms"]) if row["search_terms"] else [],
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )

    @staticmethod
    def _to_prompt(row: aiosqlite.Row) -> Prompt:
        return Prompt(
            id=row["id"],
            domain=row["domain"],
            name=row["name"],
            description=row["description"] or "",
            template=row["template"],
            variables=json.loads(row["variables"]) if row["variables"] else {},
            tags=json.loads(row["tags"]) if row["tags"] else [],
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )
