"""Tests for Settings."""

from pathlib import Path

import pytest

from mindport.adapters.memory_index import MemoryIndex
from mindport.domains.orchestration import SearchOrchestrator
from mindport.domains.registry import DomainRegistry

from .settings import Settings


def test_env_overrides(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("MINDPORT_SCAN_PAGE_SIZE", "50")
    monkeypatch.setenv("MINDPORT_DB_PATH", "/tmp/other.db")

    settings = Settings(_env_file=None)

    assert settings.scan_page_size == 50
    assert settings.db_path == Path("/tmp/other.db")


def test_unknown_keys_do_not_move_default_context(monkeypatch: pytest.MonkeyPatch):
    """The default context domain is the registry's built-in one."""
    monkeypatch.setenv("MINDPORT_DEFAULT_DOMAIN", "team-x")
    monkeypatch.setenv("MINDPORT_DATA_DIR", "/nowhere")
    settings = Settings(_env_file=None)
    registry = DomainRegistry.from_settings(settings)

    orchestrator = SearchOrchestrator(registry, store=None, index=MemoryIndex(), settings=settings)

    assert orchestrator.new_context().domain == "default"
