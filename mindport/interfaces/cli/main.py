"""
CLI Main - Typer-based command-line interface.

Usage:
    mindport search "auth*" --domain team-a
    mindport grep TODO --ignore-case
    mindport domains
    mindport shorthand team-a:abc123
    mindport serve
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from mindport.config.errors import MindPortError

app = typer.Typer(
    name="mindport",
    help="MindPort - Domain-scoped search and retrieval",
    add_completion=False,
)
console = Console()


@asynccontextmanager
async def _orchestrator(db_path: Path | None) -> AsyncIterator:
    """Orchestrator over the on-disk store with a freshly built index."""
    from mindport.adapters.memory_index import MemoryIndex
    from mindport.adapters.sqlite import SQLiteRepository
    from mindport.config import get_settings
    from mindport.domains.orchestration import SearchOrchestrator
    from mindport.domains.registry import DomainRegistry

    settings = get_settings()
    repo = SQLiteRepository(db_path or settings.db_path)
    await repo.initialize()
    try:
        orchestrator = SearchOrchestrator(
            DomainRegistry.from_settings(settings), repo, MemoryIndex(), settings
        )
        await orchestrator.reindex()
        yield orchestrator
    finally:
        await repo.close()


def _fail(error: MindPortError) -> None:
    console.print(f"[red]Error ({error.code.value}):[/red] {error.message}")
    raise typer.Exit(1)


@app.command()
def search(
    query: str = typer.Argument(..., help="Query text (wildcard, /regex/, fuzzy~ detected)"),
    domain: str | None = typer.Option(None, "--domain", "-d", help="Domain to search from"),
    limit: int = typer.Option(10, "--limit", "-n", help="Number of results"),
    db: Path | None = typer.Option(None, "--db", help="SQLite database path"),
) -> None:
    """Search the domain scope."""
    try:
        asyncio.run(_search_async(query, domain, limit, db))
    except MindPortError as e:
        _fail(e)


async def _search_async(query: str, domain: str | None, limit: int, db: Path | None) -> None:
    async with _orchestrator(db) as orchestrator:
        context = orchestrator.new_context(domain)
        response = await orchestrator.search(context, query, limit=limit)

    table = Table(title=f"{response.stats.total_results} results in {context.domain} scope")
    table.add_column("Score", style="cyan", justify="right")
    table.add_column("Token", style="green")
    table.add_column("Title")
    table.add_column("Snippet", style="dim")

    for result in response.results:
        token = orchestrator.build_shorthand(result.domain, result.id)
        table.add_row(f"{result.score:.2f}", token, result.title, result.snippet)

    console.print(table)
    console.print(f"[dim]{response.stats.search_time_ms:.1f}ms[/dim]")


@app.command()
def grep(
    pattern: str = typer.Argument(..., help="Pattern to match per line"),
    domain: str | None = typer.Option(None, "--domain", "-d", help="Domain to search from"),
    ignore_case: bool = typer.Option(False, "--ignore-case", "-i"),
    invert: bool = typer.Option(False, "--invert-match", "-v"),
    extended: bool = typer.Option(False, "--extended-regexp", "-E"),
    count: bool = typer.Option(False, "--count", "-c"),
    context_lines: int = typer.Option(0, "--context", "-C"),
    db: Path | None = typer.Option(None, "--db", help="SQLite database path"),
) -> None:
    """grep over stored resources."""
    from mindport.domains.cli_tools import GrepOptions

    opts = GrepOptions(
        pattern=pattern,
        ignore_case=ignore_case,
        invert_match=invert,
        extended=extended,
        count=count,
        context=context_lines,
    )
    try:
        asyncio.run(_grep_async(opts, domain, db))
    except MindPortError as e:
        _fail(e)


async def _grep_async(opts, domain: str | None, db: Path | None) -> None:
    async with _orchestrator(db) as orchestrator:
        results = await orchestrator.grep(orchestrator.new_context(domain), opts)

    for result in results:
        if opts.count:
            console.print(result.matched_line)
        elif result.context:
            console.print(f"[green]{result.title}[/green]")
            for line in result.context:
                console.print(f"  {line.render()}", markup=False)
        else:
            console.print(
                f"[green]{result.title}[/green]:[cyan]{result.line_number}[/cyan]: "
                f"{result.matched_line}"
            )


@app.command()
def domains(
    parent: str = typer.Option("", "--parent", "-p", help="Only direct children of this domain"),
    db: Path | None = typer.Option(None, "--db", help="SQLite database path"),
) -> None:
    """List domains with record counts."""
    try:
        asyncio.run(_domains_async(parent, db))
    except MindPortError as e:
        _fail(e)


async def _domains_async(parent: str, db: Path | None) -> None:
    async with _orchestrator(db) as orchestrator:
        context = orchestrator.new_context()
        rows = []
        for domain in orchestrator.list_domains(parent):
            stats = await orchestrator.domain_stats(context, domain.id)
            rows.append((domain, stats))

    table = Table(title="Domains")
    table.add_column("Path", style="cyan")
    table.add_column("Name")
    table.add_column("Resources", justify="right")
    table.add_column("Prompts", justify="right")
    table.add_column("Active")

    for domain, stats in rows:
        table.add_row(
            domain.path,
            domain.name,
            str(stats.resources),
            str(stats.prompts),
            "yes" if domain.active else "[yellow]archived[/yellow]",
        )

    console.print(table)


@app.command()
def shorthand(
    token: str = typer.Argument(..., help="Shorthand token, e.g. team-a:abc123 or ::abc123"),
    context_domain: str = typer.Option("default", "--domain", "-d", help="Domain for bare IDs"),
) -> None:
    """Decode a shorthand token."""
    from mindport.domains.registry import shorthand as codec

    if not token:
        console.print("[red]Error:[/red] token is empty")
        raise typer.Exit(1)

    domain, local_id = codec.parse(token, context_domain)
    console.print(f"[bold]Domain:[/bold]    {domain}")
    console.print(f"[bold]Local ID:[/bold]  {local_id}")
    console.print(f"[bold]Canonical:[/bold] {codec.build(domain, local_id)}")


@app.command()
def serve(
    host: str | None = typer.Option(None, "--host", "-h", help="Host to bind"),
    port: int | None = typer.Option(None, "--port", "-p", help="Port to bind"),
    reload: bool = typer.Option(False, "--reload", "-r", help="Enable auto-reload"),
) -> None:
    """Start the API server."""
    import uvicorn

    from mindport.config import get_settings

    settings = get_settings()
    host = host or settings.api_host
    port = port or settings.api_port

    console.print("\n[green]Starting MindPort API server[/green]")
    console.print(f"[dim]http://{host}:{port}[/dim]\n")

    uvicorn.run(
        "mindport.interfaces.api:create_app",
        host=host,
        port=port,
        reload=reload,
        factory=True,
        log_level=settings.log_level.lower(),
    )


@app.command()
def version() -> None:
    """Show version information."""
    from mindport import __version__

    console.print(f"MindPort v{__version__}")


def main() -> None:
    """CLI entry point."""
    from mindport.config import get_settings

    logging.basicConfig(
        level=get_settings().log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app()


if __name__ == "__main__":
    main()
