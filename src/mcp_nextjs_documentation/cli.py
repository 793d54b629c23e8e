"""Command line interface for building and querying Next.js documentation snapshots."""

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from mcp_nextjs_documentation.cache import ResultCache
from mcp_nextjs_documentation.config import Settings
from mcp_nextjs_documentation.errors import CorpusEmptyError, DocumentationUnavailableError
from mcp_nextjs_documentation.indexer import NextjsDocsIndexer
from mcp_nextjs_documentation.models import CATEGORIES, Document
from mcp_nextjs_documentation.parser import DocumentParser
from mcp_nextjs_documentation.service import DocumentationService
from mcp_nextjs_documentation.versions import AVAILABLE_VERSIONS, is_version_supported, versioned_docs_base_url

console = Console()
app = typer.Typer(help="Next.js documentation search")


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="[%(levelname)s] %(name)s: %(message)s")


def _check_version(version: Optional[str]) -> None:
    if version is not None and not is_version_supported(version):
        raise typer.BadParameter(f"Unknown version: {version}. Choose from {', '.join(AVAILABLE_VERSIONS)}")


@app.command()
def build(
    docs_dir: Path = typer.Argument(..., help="Directory containing .md/.mdx files", resolve_path=True),
    output: Path = typer.Option(None, "--output", "-o", help="Snapshot directory"),
    label: Optional[str] = typer.Option(None, "--label", help="Version label; omit for the default snapshot"),
    doc_version: str = typer.Option("latest", "--doc-version", help="Version recorded on each document"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Parse a local documentation tree into a snapshot."""
    _setup_logging(verbose)
    settings = Settings()
    output_dir = output or settings.data_dir
    base_url = versioned_docs_base_url(label, settings.docs_base_url) if label else settings.docs_base_url

    indexer = NextjsDocsIndexer(DocumentParser(base_url=base_url))
    try:
        stats = indexer.build_snapshot(docs_dir, output_dir, version=doc_version, label=label)
    except CorpusEmptyError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1) from exc

    console.print(
        f"Built [bold]{stats.total_docs}[/bold] documents "
        f"({stats.total_code_examples} code examples) in {stats.build_duration}"
    )
    for category, count in sorted(stats.categories.items()):
        console.print(f"  {category:<15} {count}")


@app.command()
def download(
    label: str = typer.Argument(..., help="Version label: 13, 14, 15, 16 or latest"),
    output: Path = typer.Option(None, "--output", "-o", help="Snapshot directory"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Fetch release documentation from vercel/next.js and build its snapshot."""
    _setup_logging(verbose)
    settings = Settings()
    indexer = NextjsDocsIndexer(DocumentParser(base_url=settings.docs_base_url))
    try:
        stats = indexer.index_from_git(label, output or settings.data_dir)
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc
    except CorpusEmptyError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1) from exc

    console.print(f"Downloaded and built {stats.total_docs} documents for v{label}")


@app.command()
def search(
    query: str = typer.Argument(..., help="Query text"),
    version: Optional[str] = typer.Option(None, "--version", help="Documentation version label"),
    category: Optional[str] = typer.Option(None, "--category", help="Category filter"),
    limit: int = typer.Option(10, min=1, max=50, help="Number of results to display"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Search documentation snapshots."""
    _setup_logging(verbose)
    if not query.strip():
        raise typer.BadParameter("Query must not be empty")
    if category is not None and category not in CATEGORIES:
        raise typer.BadParameter(f"Unknown category: {category}")
    _check_version(version)

    service = DocumentationService.from_settings(Settings())
    try:
        results = service.search(query, version=version, category=category, limit=limit)
    except DocumentationUnavailableError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1) from exc

    if not results:
        console.print(f"[yellow]No results found for {query!r}.[/yellow]")
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Score")
    table.add_column("Relevance")
    table.add_column("Document")
    table.add_column("Category")
    table.add_column("URL")

    for result in results:
        doc = result["doc"]
        table.add_row(f"{result['score']:.1f}", result["relevance"], doc["title"], doc["category"], doc["url"])

    console.print(table)


def _format_document(doc: Document) -> str:
    lines = [
        f"# {doc.title}",
        "",
        f"**Category:** {doc.category} | **Version:** {doc.version}",
        f"**URL:** {doc.url}",
        "",
        "## Description",
        doc.description,
        "",
        "## Content",
        doc.content,
        "",
    ]
    if doc.code_blocks:
        lines.extend([f"## Code Examples ({len(doc.code_blocks)})", ""])
        for number, block in enumerate(doc.code_blocks, start=1):
            lines.extend([f"### Example {number} ({block.language})", f"```{block.language}", block.code, "```", ""])
    if doc.headings:
        lines.append("## Table of Contents")
        lines.extend(f"{'  ' * (heading.level - 1)}- {heading.text}" for heading in doc.headings)
    return "\n".join(lines).rstrip() + "\n"


@app.command()
def show(
    doc_id: str = typer.Argument(..., help="Document id, as listed by search"),
    version: Optional[str] = typer.Option(None, "--version", help="Documentation version label"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Print the full content of one documentation page."""
    _setup_logging(verbose)
    _check_version(version)

    service = DocumentationService.from_settings(Settings())
    try:
        doc = service.get_document(doc_id, version)
    except DocumentationUnavailableError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1) from exc

    if doc is None:
        console.print(f"[red]Document not found: {doc_id}. Use search to find document ids.[/red]")
        raise typer.Exit(code=1)

    console.print(_format_document(doc), markup=False, highlight=False, emoji=False)


@app.command("clear-cache")
def clear_cache(
    pattern: str = typer.Option("search:*", "--pattern", help="Redis key pattern to delete"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Delete cached search results."""
    _setup_logging(verbose)
    settings = Settings()
    cache = ResultCache.from_url(settings.redis_url, settings.cache_ttl)
    if not cache.available:
        console.print("[yellow]Redis is not configured or unreachable; nothing to clear.[/yellow]")
        raise typer.Exit(code=1)

    console.print(f"Deleted {cache.clear(pattern)} cached entries")


@app.command()
def stats(
    version: Optional[str] = typer.Option(None, "--version", help="Documentation version label"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Show document counts for a documentation version."""
    _setup_logging(verbose)
    _check_version(version)

    service = DocumentationService.from_settings(Settings())
    try:
        summary = service.get_stats(version)
    except DocumentationUnavailableError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1) from exc

    console.print(f"Total documents: [bold]{summary.total_documents}[/bold]")
    console.print(f"Versions: {', '.join(summary.versions)}")
    for category, count in sorted(summary.categories.items()):
        console.print(f"  {CATEGORIES.get(category, category):<15} {count}")


if __name__ == "__main__":
    app()
