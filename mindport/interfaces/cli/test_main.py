"""Tests for the CLI."""

from pathlib import Path

from typer.testing import CliRunner

from mindport import __version__

from .main import app

runner = CliRunner()


def test_version() -> None:
    result = runner.invoke(app, ["version"])

    assert result.exit_code == 0
    assert __version__ in result.output


def test_shorthand_decodes_token() -> None:
    result = runner.invoke(app, ["shorthand", "domain:team-a:abc123"])

    assert result.exit_code == 0
    assert "team-a" in result.output
    assert "team-a:abc123" in result.output


def test_shorthand_bare_id_uses_domain_option() -> None:
    result = runner.invoke(app, ["shorthand", "abc123", "--domain", "team-b"])

    assert "team-b:abc123" in result.output


def test_domains_on_empty_store(tmp_path: Path) -> None:
    result = runner.invoke(app, ["domains", "--db", str(tmp_path / "cli.db")])

    assert result.exit_code == 0
    assert "/default" in result.output


def test_search_unknown_domain(tmp_path: Path) -> None:
    result = runner.invoke(
        app, ["search", "anything", "--domain", "missing", "--db", str(tmp_path / "cli.db")]
    )

    assert result.exit_code == 1
    assert "NOT_FOUND" in result.output
