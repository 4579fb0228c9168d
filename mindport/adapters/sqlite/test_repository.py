"""Tests for SQLite Repository."""

import pytest
from pathlib import Path

from mindport.config.errors import ErrorCode, NotFoundError, StorageError
from mindport.domains.search.models import Prompt, Resource

from .repository import SQLiteRepository


@pytest.fixture
async def repo(tmp_path: Path):
    """Create a test repository with temporary database."""
    db_path = tmp_path / "test.db"
    repo = SQLiteRepository(db_path)
    await repo.initialize()
    yield repo
    await repo.close()


async def test_initialize_creates_tables(repo: SQLiteRepository):
    """Test that initialize creates all required tables."""
    conn = await repo._get_connection()
    cursor = await conn.execute(
        "SELECT name FROM sqlite_master WHERE type='table'"
    )
    tables = {row[0] for row in await cursor.fetchall()}

    assert "resources" in tables
    assert "prompts" in tables


async def test_put_and_get_resource(repo: SQLiteRepository):
    """Test storing and retrieving a resource."""
    await repo.put_resource(
        Resource(
            id="abc",
            domain="team-a",
            type="markdown",
            title="Guide",
            content="authentication flow for users",
            tags=["auth"],
            search_terms=["login"],
            metadata={"author": "ops"},
        )
    )

    resource = await repo.get_resource("abc", "team-a")
    assert resource.title == "Guide"
    assert resource.type == "markdown"
    assert resource.tags == ["auth"]
    assert resource.search_terms == ["login"]
    assert resource.metadata == {"author": "ops"}
    assert resource.created_at.tzinfo is not None


async def test_same_id_in_two_domains(repo: SQLiteRepository):
    """IDs are scoped by domain."""
    await repo.put_resource(Resource(id="x", domain="a1", title="A", content="a"))
    await repo.put_resource(Resource(id="x", domain="b1", title="B", content="b"))

    assert (await repo.get_resource("x", "a1")).title == "A"
    assert (await repo.get_resource("x", "b1")).title == "B"
    with pytest.raises(NotFoundError):
        await repo.get_resource("x", "default")


async def test_put_replaces(repo: SQLiteRepository):
    await repo.put_resource(Resource(id="x", title="Old", content="old"))
    await repo.put_resource(Resource(id="x", title="New", content="new"))

    resources = await repo.list_resources()
    assert [r.title for r in resources] == ["New"]


async def test_list_resources_domain_filter_and_paging(repo: SQLiteRepository):
    for i in range(5):
        await repo.put_resource(Resource(id=f"r{i}", domain="a1", title=f"R{i}", content="c"))
    await repo.put_resource(Resource(id="other", domain="b1", title="O", content="c"))

    assert len(await repo.list_resources()) == 6
    assert len(await repo.list_resources(domains=["a1"])) == 5
    assert await repo.list_resources(domains=[]) == []

    page = await repo.list_resources(domains=["a1"], limit=2, offset=2)
    assert [r.id for r in page] == ["r2", "r3"]


async def test_delete_resource(repo: SQLiteRepository):
    await repo.put_resource(Resource(id="x", title="T", content="c"))
    await repo.delete_resource("x", "default")

    with pytest.raises(NotFoundError):
        await repo.get_resource("x", "default")
    with pytest.raises(NotFoundError):
        await repo.delete_resource("x", "default")


async def test_prompts(repo: SQLiteRepository):
    """Test prompt operations."""
    await repo.put_prompt(
        Prompt(
            id="p1",
            domain="team-a",
            name="Review",
            description="Code review",
            template="Review {{code}}",
            variables={"code": "source to review"},
            tags=["code"],
        )
    )

    prompt = await repo.get_prompt("p1", "team-a")
    assert prompt.template == "Review {{code}}"
    assert prompt.variables == {"code": "source to review"}

    assert [p.id for p in await repo.list_prompts(domains=["team-a"])] == ["p1"]
    with pytest.raises(NotFoundError):
        await repo.get_prompt("p1", "default")


async def test_count_in_domain(repo: SQLiteRepository):
    """Test per-domain counts."""
    assert await repo.count_in_domain("a1") == (0, 0)

    await repo.put_resource(Resource(id="r1", domain="a1", title="1", content="1"))
    await repo.put_resource(Resource(id="r2", domain="a1", title="2", content="2"))
    await repo.put_prompt(Prompt(id="p1", domain="a1", name="P", template="t"))

    assert await repo.count_in_domain("a1") == (2, 1)

    await repo.delete_domain("a1")
    assert await repo.count_in_domain("a1") == (0, 0)


async def test_satisfies_document_store(repo: SQLiteRepository):
    from mindport.domains.search.contracts import DocumentStore

    assert isinstance(repo, DocumentStore)


async def test_malformed_rows(repo: SQLiteRepository):
    """Listing skips rows that fail to decode; direct reads raise StorageError."""
    await repo.put_resource(Resource(id="good", title="Good", content="ok"))
    await repo.put_prompt(Prompt(id="p1", name="P", template="t"))
    conn = await repo._get_connection()
    await conn.execute(
        "INSERT INTO resources (domain, id, title, content, tags, created_at, updated_at)"
        " VALUES ('default', 'bad', 'Bad', 'x', 'not-json', '2024-01-01', '2024-01-01')"
    )
    await conn.execute(
        "INSERT INTO prompts (domain, id, name, template, created_at, updated_at)"
        " VALUES ('default', 'p2', 'P2', 't', 'yesterday', 'yesterday')"
    )
    await conn.commit()

    assert [r.id for r in await repo.list_resources()] == ["good"]
    assert [p.id for p in await repo.list_prompts()] == ["p1"]

    with pytest.raises(StorageError) as exc_info:
        await repo.get_resource("bad", "default")
    assert exc_info.value.code == ErrorCode.STORAGE_READ_FAILED
    assert exc_info.value.details["id"] == "bad"
    with pytest.raises(StorageError):
        await repo.get_prompt("p2", "default")
