"""Tests for API Routes."""

from collections.abc import Generator
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from mindport.adapters.memory_index import MemoryIndex
from mindport.config import Settings
from mindport.config.errors import NotFoundError
from mindport.domains.orchestration import SearchOrchestrator
from mindport.domains.registry import DomainRegistry
from mindport.domains.search import Resource

from .deps import SessionTable, get_orchestrator, get_registry, get_session_table
from .main import create_app


@pytest.fixture
def mock_store() -> AsyncMock:
    """Create a mock document store."""
    mock = AsyncMock()
    mock.list_resources.return_value = []
    mock.list_prompts.return_value = []
    mock.count_in_domain.return_value = (0, 0)
    return mock


@pytest.fixture
def registry() -> DomainRegistry:
    registry = DomainRegistry()
    registry.create("team-a", "Team A")
    registry.create("team-a-backend", "Backend", parent_id="team-a")
    registry.create("team-b", "Team B")
    return registry


@pytest.fixture
def orchestrator(registry: DomainRegistry, mock_store: AsyncMock) -> SearchOrchestrator:
    return SearchOrchestrator(registry, mock_store, MemoryIndex(), Settings())


@pytest.fixture
def client(
    registry: DomainRegistry, orchestrator: SearchOrchestrator
) -> Generator[TestClient, None, None]:
    """Create a test client with in-memory dependencies."""
    app = create_app()
    sessions = SessionTable()

    app.dependency_overrides[get_registry] = lambda: registry
    app.dependency_overrides[get_orchestrator] = lambda: orchestrator
    app.dependency_overrides[get_session_table] = lambda: sessions

    yield TestClient(app)

    app.dependency_overrides.clear()


def _switch(client: TestClient, domain_id: str, session_id: str = "s1") -> None:
    response = client.post(
        "/api/domains/switch",
        json={"domain_id": domain_id},
        headers={"X-Session-ID": session_id},
    )
    assert response.status_code == 200


def _store(client: TestClient, session_id: str, title: str, content: str) -> str:
    response = client.post(
        "/api/resources",
        json={"title": title, "content": content},
        headers={"X-Session-ID": session_id},
    )
    assert response.status_code == 201
    return response.json()["token"]


# --- Health ---


def test_health_endpoint(client: TestClient) -> None:
    """Test health check endpoint."""
    response = client.get("/health")
    assert response.status_code == 200

    data = response.json()
    assert data["status"] == "healthy"
    assert "X-Request-ID" in response.headers


def test_api_info(client: TestClient) -> None:
    data = client.get("/api").json()

    assert data["isolation_mode"] == "hierarchical"
    assert data["domains"] == 4


# --- Search ---


def test_search_is_scoped_by_session(client: TestClient) -> None:
    """Documents in team-b are invisible from a team-a session."""
    _switch(client, "team-a", "a")
    _switch(client, "team-b", "b")
    _store(client, "a", "Auth guide", "authentication with tokens")
    _store(client, "b", "Other guide", "authentication with passwords")

    response = client.post(
        "/api/search", json={"query": "authentication"}, headers={"X-Session-ID": "a"}
    )

    assert response.status_code == 200
    data = response.json()
    assert [r["title"] for r in data["results"]] == ["Auth guide"]
    assert data["stats"]["total_results"] == 1


def test_search_empty_query(client: TestClient) -> None:
    """Test search with validation error."""
    response = client.post("/api/search", json={"query": ""})
    assert response.status_code == 422


def test_search_limit_validation(client: TestClient) -> None:
    response = client.post("/api/search", json={"query": "test", "limit": 5000})
    assert response.status_code == 422


def test_advanced_search_invalid_regex(client: TestClient) -> None:
    response = client.post("/api/search/advanced", json={"query": "(oops", "mode": "regex"})

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "INVALID_ARGUMENT"


def test_advanced_search_negative_snippet_length(client: TestClient) -> None:
    response = client.post("/api/search/advanced", json={"query": "x", "snippet_length": -5})

    assert response.status_code == 422


def test_advanced_search_unknown_domain(client: TestClient) -> None:
    response = client.post("/api/search/advanced", json={"query": "x", "domains": ["nope"]})

    assert response.status_code == 404


# --- Tools ---


def test_grep(client: TestClient, mock_store: AsyncMock) -> None:
    log = Resource(id="r1", title="Log", content="ok\nERROR disk full\nok")
    mock_store.list_resources.side_effect = lambda **kw: [log] if kw["offset"] == 0 else []

    response = client.post("/api/tools/grep", json={"pattern": "error", "ignore_case": True})

    assert response.status_code == 200
    data = response.json()
    assert [(r["resource_id"], r["line_number"]) for r in data] == [("r1", 2)]


def test_find_invalid_size(client: TestClient) -> None:
    response = client.post("/api/tools/find", json={"size": "huge"})

    assert response.status_code == 400


def test_ripgrep_count(client: TestClient) -> None:
    _store(client, "s0", "Retry", "retry on error\nretry again")

    response = client.post("/api/tools/ripgrep", json={"pattern": "retry", "count": True})

    assert response.json()[0]["matched_line"] == "2 matches"


# --- Domains ---


def test_create_and_list_domains(client: TestClient) -> None:
    response = client.post(
        "/api/domains", json={"id": "team-a-frontend", "name": "Frontend", "parent_id": "team-a"}
    )

    assert response.status_code == 201
    assert response.json()["path"] == "/team-a/team-a-frontend"

    children = client.get("/api/domains", params={"parent": "team-a"}).json()
    assert sorted(d["id"] for d in children) == ["team-a-backend", "team-a-frontend"]


def test_create_domain_errors(client: TestClient) -> None:
    assert client.post("/api/domains", json={"id": "team-a", "name": "Dup"}).status_code == 409
    assert client.post("/api/domains", json={"id": "Bad Id", "name": "X"}).status_code == 400
    missing_parent = client.post(
        "/api/domains", json={"id": "orphan", "name": "X", "parent_id": "nope"}
    )
    assert missing_parent.status_code == 404


def test_switch_issues_session_id(client: TestClient) -> None:
    response = client.post("/api/domains/switch", json={"domain_id": "team-a"})

    data = response.json()
    assert data["domain"] == "team-a"
    assert data["session_id"]
    assert response.headers["X-Session-ID"] == data["session_id"]

    stats = client.get("/api/domains/stats", headers={"X-Session-ID": data["session_id"]})
    assert stats.json()["domain"]["id"] == "team-a"


def test_switch_unknown_domain(client: TestClient) -> None:
    response = client.post("/api/domains/switch", json={"domain_id": "missing"})

    assert response.status_code == 404
    assert response.json()["error"]["code"] == "NOT_FOUND"


def test_domain_stats(client: TestClient, mock_store: AsyncMock) -> None:
    mock_store.count_in_domain.return_value = (3, 1)

    data = client.get("/api/domains/stats", params={"domain_id": "team-a"}).json()

    assert data["resources"] == 3
    assert data["prompts"] == 1
    assert data["scope"]["children"] == ["team-a-backend"]


def test_delete_domain(client: TestClient, mock_store: AsyncMock) -> None:
    assert client.delete("/api/domains/team-a").status_code == 409

    _switch(client, "team-a-backend", "s1")
    response = client.delete("/api/domains/team-a", params={"cascade": True})

    assert response.json() == {"deleted": ["team-a-backend", "team-a"]}
    assert mock_store.delete_domain.await_count == 2

    # Session falls back to the default domain
    stats = client.get("/api/domains/stats", headers={"X-Session-ID": "s1"})
    assert stats.json()["domain"]["id"] == "default"


def test_archive_default_domain(client: TestClient) -> None:
    assert client.post("/api/domains/default/archive").status_code == 409
    assert client.post("/api/domains/team-b/archive").json()["active"] is False


# --- Resources ---


def test_get_resource_by_token(client: TestClient, mock_store: AsyncMock) -> None:
    mock_store.get_resource.return_value = Resource(
        id="abc", domain="team-a", title="Doc", content="body"
    )

    response = client.get("/api/resources/team-a:abc")

    assert response.status_code == 200
    assert response.json()["title"] == "Doc"
    mock_store.get_resource.assert_awaited_once_with("abc", "team-a")


def test_get_resource_not_found(client: TestClient, mock_store: AsyncMock) -> None:
    mock_store.get_resource.side_effect = NotFoundError("resource not found: abc")

    response = client.get("/api/resources/::abc")

    assert response.status_code == 404


def test_unhandled_store_error(client: TestClient, mock_store: AsyncMock) -> None:
    mock_store.get_resource.side_effect = RuntimeError("boom")

    response = client.get("/api/resources/abc")

    assert response.status_code == 500
    assert response.json()["error"]["code"] == "INTERNAL_ERROR"


def test_store_resource_returns_token(client: TestClient, mock_store: AsyncMock) -> None:
    _switch(client, "team-b")

    token = _store(client, "s1", "Note", "text")

    assert token.startswith("team-b:")
    stored = mock_store.put_resource.await_args.args[0]
    assert stored.domain == "team-b"


def test_store_prompt(client: TestClient) -> None:
    response = client.post(
        "/api/prompts", json={"name": "Summarize", "template": "Summarize {{text}}"}
    )

    assert response.status_code == 201
    assert response.json()["token"].startswith("::")


def test_delete_resource(client: TestClient, mock_store: AsyncMock) -> None:
    response = client.delete("/api/resources/team-a:abc")

    assert response.status_code == 204
    mock_store.delete_resource.assert_awaited_once_with("abc", "team-a")


# --- Shorthand ---


def test_shorthand_resolve_and_build(client: TestClient) -> None:
    _switch(client, "team-a")

    resolved = client.get(
        "/api/shorthand/resolve", params={"token": "abc"}, headers={"X-Session-ID": "s1"}
    ).json()
    legacy = client.get("/api/shorthand/resolve", params={"token": "domain:team-b:xyz"}).json()
    built = client.get("/api/shorthand/build", params={"local_id": "abc"}).json()

    assert resolved == {"token": "team-a:abc", "domain": "team-a", "local_id": "abc"}
    assert legacy["token"] == "team-b:xyz"
    assert built["token"] == "::abc"
