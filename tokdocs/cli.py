"""Command-line interface for tokdocs.

This module provides a Click-based CLI for downloading the TikTok Business
API documentation, extracting the metric catalog, indexing the docs into
the vector store, and searching or serving the index.
"""

from pathlib import Path

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from tokdocs.__about__ import __version__
from tokdocs.extraction import extract_metrics, extract_metrics_from_file
from tokdocs.extraction.report import build_statistics, write_metric_files
from tokdocs.ingestion.docs_api import DocsAPIClient, DocsAPIError
from tokdocs.ingestion.downloader import DocTreeDownloader
from tokdocs.ingestion.indexer import DocsIndexer
from tokdocs.mcp.search import DocsSearchService, VectorStoreNotConfiguredError
from tokdocs.shared.config import AppConfig, ConfigError, get_config, load_config
from tokdocs.shared.embedder import Embedder
from tokdocs.shared.utils.logger import set_log_level, setup_logger
from tokdocs.shared.vector_store import VectorStore

console = Console()

METRICS_FILE_PREFIX = "tiktok_metrics"


def _error(e: Exception) -> click.Abort:
    console.print(f"\n[bold red]Error:[/bold red] {e}")
    return click.Abort()


def setup_client(config: AppConfig, language: str | None = None) -> DocsAPIClient:
    """Create a docs API client from configuration."""
    return DocsAPIClient(
        identify_key=config.get("docs_api.identify_key"),
        base_url=config.get("docs_api.base_url"),
        language=language or config.get("docs_api.language"),
        timeout=int(config.get("docs_api.timeout", 30)),
        logger=setup_logger("tokdocs"),
    )


def setup_vector_store(config: AppConfig, db_path: str | None, collection: str | None) -> VectorStore:
    """Open the vector store, CLI options taking precedence over configuration."""
    embedder = Embedder(model_name=config.get("vector_store.model_name"), batch_size=32)
    return VectorStore(
        persist_directory=db_path or config.get("vector_store.path"),
        collection_name=collection or config.get("vector_store.collection"),
        embedder=embedder,
    )


@click.group()
@click.version_option(__version__)
@click.option(
    "--config",
    "config_path",
    default=None,
    type=click.Path(dir_okay=False),
    help="Configuration file (YAML or JSON)",
)
def cli(config_path: str | None) -> None:
    """tokdocs - TikTok Business API documentation tools.

    Download the documentation, extract the metric catalog, and index the
    docs for semantic search.
    """
    try:
        config = load_config(config_path)
    except ConfigError as e:
        raise _error(e) from e
    set_log_level(config.get("log_level"))


@cli.command()
@click.option("--output-dir", default=None, help="Output directory (default: ./tiktok-docs)")
@click.option("--language", default=None, help="Documentation language (default: ENGLISH)")
@click.option("--no-metadata", is_flag=True, help="Do not write frontmatter into the files")
@click.option("--delay", default=None, type=float, help="Seconds between document requests (default: 0.5)")
@click.option("--doc-id", default=None, help="Download a single document instead of the whole tree")
@click.option("--output", default=None, help="Output file for --doc-id (default: <output-dir>/doc_<id>.md)")
def download(
    output_dir: str | None,
    language: str | None,
    no_metadata: bool,
    delay: float | None,
    doc_id: str | None,
    output: str | None,
) -> None:
    """Download the documentation tree as markdown files.

    Example: tokdocs download --output-dir ./tiktok-docs
    """
    config = get_config()
    target_dir = Path(output_dir or config.get("download.output_dir"))
    console.print(Panel.fit("TikTok Documentation Download", style="bold magenta"))

    try:
        downloader = DocTreeDownloader(
            client=setup_client(config, language),
            output_dir=target_dir,
            include_metadata=not no_metadata and bool(config.get("download.include_metadata", True)),
            delay=config.get("download.delay") if delay is None else delay,
        )

        if doc_id:
            path = downloader.download_doc(doc_id, Path(output) if output else target_dir / f"doc_{doc_id}.md")
            console.print(f"\n[bold green]Saved document {doc_id} to {path}[/bold green]")
            return

        with console.status("[bold blue]Downloading documentation...", spinner="dots"):
            stats = downloader.download_all()
    except DocsAPIError as e:
        raise _error(e) from e

    console.print("\n[bold green]Download Complete![/bold green]\n")
    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Metric", style="dim")
    table.add_column("Value", justify="right")
    table.add_row("Platform", stats.platform)
    table.add_row("Documents in tree", f"{stats.total_docs:,}")
    table.add_row("Files saved", f"{stats.saved_count:,}")
    table.add_row("Failed", f"{len(stats.failed_docs):,}")
    table.add_row("Duration", f"{stats.duration_seconds:.2f}s")
    console.print(table)
    console.print(f"\nDocumentation saved to: {target_dir.resolve()}")

    if stats.failed_docs:
        console.print(f"\n[yellow]{len(stats.failed_docs)} document(s) failed to load. Check logs for details.[/yellow]")


@cli.command()
@click.option("--doc-id", default=None, help="Metric document ID (default from configuration)")
@click.option(
    "--input",
    "input_file",
    default=None,
    type=click.Path(exists=True, dir_okay=False),
    help="Read the metric document from a local markdown file instead of the API",
)
@click.option("--output-dir", default=".", help="Directory for the JSON files (default: .)")
@click.option(
    "--category",
    "categories",
    multiple=True,
    help="Category to export to its own file (repeatable; default: Regular, SKAN and SAN metrics)",
)
def metrics(
    doc_id: str | None,
    input_file: str | None,
    output_dir: str,
    categories: tuple[str, ...],
) -> None:
    """Extract the metric catalog and write it as JSON files.

    Example: tokdocs metrics --output-dir ./out --category "SKAN metrics"
    """
    config = get_config()
    console.print(Panel.fit("TikTok Metrics Extraction", style="bold cyan"))

    if input_file:
        try:
            extracted = extract_metrics_from_file(Path(input_file))
        except (OSError, UnicodeDecodeError) as e:
            raise _error(e) from e
    else:
        doc_id = doc_id or config.get("docs_api.metrics_doc_id")
        try:
            with console.status(f"[bold blue]Fetching document {doc_id}...", spinner="dots"):
                document = setup_client(config).get_doc_node(doc_id)
        except DocsAPIError as e:
            raise _error(e) from e
        extracted = extract_metrics(document.content)

    if not extracted:
        console.print("\n[yellow]No metrics found in the document.[/yellow]")
        return

    stats = build_statistics(extracted)
    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Category", style="dim")
    table.add_column("Metrics", justify="right")
    table.add_column("Subcategories", justify="right")
    for row in stats["byCategory"]:
        table.add_row(row["category"], f"{row['count']:,}", str(row["subcategories"]))
    console.print(table)
    console.print(
        f"\n[bold]Total:[/bold] {stats['totalMetrics']:,} metrics "
        f"({stats['activeMetrics']:,} active, {stats['deprecatedMetrics']:,} deprecated)"
    )

    written = write_metric_files(
        extracted,
        Path(output_dir),
        categories=list(categories) or None,
        prefix=METRICS_FILE_PREFIX,
    )
    console.print("\n[bold green]Files written:[/bold green]")
    for path in written:
        console.print(f"  {path}")


@cli.command()
@click.option("--docs-dir", default=None, help="Downloaded docs directory (default: ./tiktok-docs)")
@click.option("--db-path", default=None, help="Database path (default: ./docs_vectors)")
@click.option("--collection", default=None, help="Collection name (default: tiktok_docs)")
@click.option("--download", "download_first", is_flag=True, help="Download the documentation before indexing")
@click.option("--reset", is_flag=True, help="Clear the collection before indexing")
def upload(
    docs_dir: str | None,
    db_path: str | None,
    collection: str | None,
    download_first: bool,
    reset: bool,
) -> None:
    """Index the downloaded documentation into the vector store.

    Example: tokdocs upload --download
    """
    config = get_config()
    root = Path(docs_dir or config.get("download.output_dir"))
    console.print(Panel.fit("TikTok Documentation Indexing", style="bold magenta"))

    try:
        if download_first:
            downloader = DocTreeDownloader(
                client=setup_client(config),
                output_dir=root,
                delay=config.get("download.delay"),
            )
            with console.status("[bold blue]Downloading documentation...", spinner="dots"):
                downloader.download_all()

        vector_store = setup_vector_store(config, db_path, collection)
        if reset:
            vector_store.reset()

        with console.status("[bold blue]Indexing documentation...", spinner="dots"):
            stats = DocsIndexer(vector_store).index_directory(root)
    except (DocsAPIError, FileNotFoundError) as e:
        raise _error(e) from e

    console.print("\n[bold green]Indexing Complete![/bold green]\n")
    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Metric", style="dim")
    table.add_column("Value", justify="right")
    table.add_row("Files Found", f"{stats.total_files:,}")
    table.add_row("Files Indexed", f"{stats.processed_files:,}")
    table.add_row("Files Failed", f"{len(stats.failed_files):,}")
    table.add_row("Total Chunks", f"{stats.total_chunks:,}")
    table.add_row("Documents in Store", f"{vector_store.get_document_count():,}")
    table.add_row("Duration", f"{stats.duration_seconds:.2f}s")
    console.print(table)

    if stats.failed_files:
        console.print("\n[bold yellow]Failed Files:[/bold yellow]")
        for file, error in list(stats.failed_files.items())[:10]:
            console.print(f"  [dim]{file}[/dim]: {error[:80]}")


@cli.command()
@click.option("--db-path", default=None, help="Database path (default: ./docs_vectors)")
@click.option("--collection", default=None, help="Collection name (default: tiktok_docs)")
@click.option("--query", "-q", required=True, help="Query text to search for")
@click.option("--limit", "-n", default=5, type=int, help="Number of results to return (default: 5)")
def search(db_path: str | None, collection: str | None, query: str, limit: int) -> None:
    """Search the indexed documentation.

    Example: tokdocs search -q "How do I create a campaign?" -n 3
    """
    config = get_config()
    console.print(Panel.fit(f"Searching: {query}", style="bold blue"))

    service = DocsSearchService(
        setup_vector_store(config, db_path, collection),
        url_base=config.get("search.url_base"),
    )
    try:
        with console.status("[bold blue]Searching...", spinner="dots"):
            results = service.search(query, max_results=limit)
    except VectorStoreNotConfiguredError as e:
        raise _error(e) from e

    if not results:
        console.print("\n[yellow]No results found.[/yellow]")
        return

    console.print(f"\n[bold]Found {len(results)} results:[/bold]\n")
    for i, result in enumerate(results, 1):
        console.print(
            Panel(
                f"[bold]File:[/bold] {result.id}\n[bold]URL:[/bold] {result.url}\n\n{result.text}",
                title=f"Result {i}: {result.title}",
                border_style="blue",
            )
        )


@cli.command()
@click.option("--db-path", default=None, help="Database path (default: ./docs_vectors)")
@click.option("--collection", default=None, help="Collection name (default: tiktok_docs)")
def status(db_path: str | None, collection: str | None) -> None:
    """Show vector store status."""
    config = get_config()
    console.print(Panel.fit("Vector Store Status", style="bold cyan"))

    vector_store = setup_vector_store(config, db_path, collection)
    info = DocsSearchService(vector_store).status()

    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("Key", style="dim")
    table.add_column("Value")
    table.add_row("Path", vector_store.uri)
    table.add_row("Collection", info["collection"])
    table.add_row("Chunks", f"{info['documents']:,}")
    table.add_row("Configured", "Yes" if info["configured"] else "No")
    console.print(table)

    if not info["configured"]:
        console.print("\n[yellow]No documents indexed. Run 'tokdocs upload' first.[/yellow]")


@cli.command()
@click.option("--host", default="0.0.0.0", help="Bind address (default: 0.0.0.0)")  # nosec B104
@click.option("--port", default=8080, type=int, help="Port (default: 8080)")
def serve(host: str, port: int) -> None:
    """Run the MCP server over SSE."""
    from tokdocs.mcp import http_wrapper  # noqa: PLC0415

    http_wrapper.main(host=host, port=port)


if __name__ == "__main__":
    cli()
