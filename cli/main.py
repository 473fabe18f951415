"""CLI entry point — Typer app for vault-rag commands.

Usage:
    vault-rag index labs/cbc_2024.pdf --owner dr-lee --patient p-17
    vault-rag index-url https://example.org/guideline --owner dr-lee
    vault-rag search "latest HbA1c result" --owner dr-lee --patient p-17
    vault-rag chat "Summarize recent lab work" --owner dr-lee --patient p-17
    vault-rag status
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

app = typer.Typer(
    name="vault-rag",
    help="Patient vault RAG — index records, search them, chat over them.",
    no_args_is_help=True,
)

console = Console()

_INDEX_PATH = typer.Argument(..., help="Path to the vault file to index")
_OWNER = typer.Option(..., "--owner", "-o", help="Owning user id")
_PATIENT = typer.Option(None, "--patient", "-p", help="Patient id scope")
_STORE = typer.Option(None, "--store", "-s", help="Vector store backend (default from settings)")
_EMBEDDING = typer.Option(None, "--embedding", "-e", help="Embedding provider (default from settings)")


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logs"),
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )


def _components(embedding: str | None, store_backend: str | None):
    from vault_rag.config import load_settings
    from vault_rag.embeddings.factory import get_embedding_provider, provider_from_settings
    from vault_rag.vectorstore.factory import store_from_settings

    settings = load_settings()
    if embedding:
        emb = get_embedding_provider(embedding)
    else:
        emb = provider_from_settings(settings.embedding)
    store_settings = settings.vectorstore
    if store_backend:
        store_settings = store_settings.model_copy(update={"backend": store_backend})
    store = store_from_settings(store_settings, dimension=emb.dimension)
    return settings, emb, store, store_settings


def _persist(store, store_settings) -> None:
    if store_settings.backend == "faiss":
        store.save(store_settings.path)


def _print_result(label: str, result) -> None:
    if result.ok:
        console.print(f"\n[bold green]Indexed:[/] {label}")
    else:
        console.print(f"\n[bold red]Failed:[/] {label}")
    console.print(f"  Status: {result.status}")
    console.print(f"  Chunks: {result.chunks_created}")
    console.print(f"  Stored: {result.chunks_stored}")
    console.print(f"  Tokens (approx): {result.total_tokens}")
    if result.error:
        console.print(f"  [red]Error:[/] {result.error}")
    for w in result.warnings:
        console.print(f"  [yellow]Warning:[/] {w}")


@app.command()
def index(
    path: Annotated[Path, _INDEX_PATH],
    owner: str = _OWNER,
    patient: str | None = _PATIENT,
    file_id: str | None = typer.Option(
        None, "--file-id", help="File id (defaults to the file name)",
    ),
    folder_id: str | None = typer.Option(None, "--folder-id", help="Folder id for scoping"),
    embedding: str | None = _EMBEDDING,
    store: str | None = _STORE,
) -> None:
    """Index a vault file (text, Markdown, HTML, code, PDF, DOCX or image)."""
    from vault_rag.indexing.indexer import IndexScope
    from vault_rag.pipeline.ingest import IngestPipeline
    from vault_rag.vectorstore.schemas import FileRef

    settings, emb, vector_store, store_settings = _components(embedding, store)
    pipeline = IngestPipeline(
        emb,
        vector_store,
        max_tokens=settings.chunking.max_tokens,
        overlap=settings.chunking.overlap,
    )
    scope = IndexScope(owner_id=owner, subject=FileRef(file_id or path.name), patient_id=patient)
    result = pipeline.index_file(path, scope, provenance={"folder_id": folder_id})

    if result.ok:
        _persist(vector_store, store_settings)
    _print_result(path.name, result)
    if not result.ok:
        raise typer.Exit(code=1)


@app.command("index-url")
def index_url(
    url: str = typer.Argument(..., help="Website URL to fetch and index"),
    owner: str = _OWNER,
    website_id: str | None = typer.Option(
        None, "--website-id", help="Website id (defaults to the URL)",
    ),
    title: str | None = typer.Option(None, "--title", help="Display title"),
    embedding: str | None = _EMBEDDING,
    store: str | None = _STORE,
) -> None:
    """Fetch a website and index its readable text."""
    from vault_rag.documents.fetcher import WebFetcher
    from vault_rag.indexing.indexer import IndexScope
    from vault_rag.pipeline.ingest import IngestPipeline
    from vault_rag.vectorstore.schemas import WebsiteRef

    settings, emb, vector_store, store_settings = _components(embedding, store)
    fetcher = WebFetcher(timeout=settings.fetch.timeout, retries=settings.fetch.retries)
    pipeline = IngestPipeline(
        emb,
        vector_store,
        fetcher=fetcher,
        max_tokens=settings.chunking.max_tokens,
        overlap=settings.chunking.overlap,
    )
    scope = IndexScope(owner_id=owner, subject=WebsiteRef(website_id or url))
    result = pipeline.index_website(url, scope, title=title)

    if result.ok:
        _persist(vector_store, store_settings)
    _print_result(url, result)
    if not result.ok:
        raise typer.Exit(code=1)


@app.command()
def search(
    query: str = typer.Argument(..., help="Search query"),
    owner: str = _OWNER,
    patient: str | None = _PATIENT,
    threshold: float | None = typer.Option(None, "--threshold", "-t", help="Minimum similarity"),
    limit: int | None = typer.Option(None, "--limit", "-k", help="Maximum results"),
    embedding: str | None = _EMBEDDING,
    store: str | None = _STORE,
) -> None:
    """Search indexed records by similarity."""
    from vault_rag.retrieval.retriever import Retriever
    from vault_rag.retrieval.schemas import RetrievalStatus, SearchScope

    settings, emb, vector_store, _ = _components(embedding, store)
    retriever = Retriever(emb, vector_store)
    result = retriever.search(
        query,
        SearchScope(owner_id=owner, patient_id=patient),
        threshold=settings.retrieval.similarity_threshold if threshold is None else threshold,
        limit=limit or settings.retrieval.limit,
    )

    if result.status != RetrievalStatus.OK:
        console.print(f"\n[yellow]{result.message}[/]")
        return

    table = Table(title=f"Results for: {query}")
    table.add_column("#", style="cyan")
    table.add_column("Source")
    table.add_column("Similarity", justify="right")
    table.add_column("Preview")

    for i, r in enumerate(result.results, start=1):
        table.add_row(
            str(i), r.source_name, f"{r.similarity * 100:.1f}%", r.content_chunk[:80],
        )

    console.print(table)
    console.print(f"\n[dim]Records in scope: {result.total_records}[/]")


@app.command()
def chat(
    message: str = typer.Argument(..., help="Question for the agent"),
    owner: str = _OWNER,
    patient: str | None = _PATIENT,
    research: bool = typer.Option(False, "--research", "-r", help="Enable research search"),
    llm_provider: str | None = typer.Option(None, "--llm", "-l", help="LLM provider"),
    embedding: str | None = _EMBEDDING,
    store: str | None = _STORE,
) -> None:
    """Ask the chat agent a question about a patient's records."""
    from vault_rag.agent.orchestrator import ChatAgent
    from vault_rag.agent.schemas import ChatContext
    from vault_rag.llm.factory import get_llm_provider, provider_from_settings
    from vault_rag.llm.schemas import ChatMessage
    from vault_rag.research.scholar import ScholarSearchClient
    from vault_rag.retrieval.retriever import Retriever

    settings, emb, vector_store, _ = _components(embedding, store)
    llm = get_llm_provider(llm_provider) if llm_provider else provider_from_settings(settings.llm)
    research_client = None
    if research:
        research_client = ScholarSearchClient(
            settings.research.api_key,
            base_url=settings.research.base_url,
            timeout=settings.research.timeout,
        )

    agent = ChatAgent(
        llm,
        Retriever(emb, vector_store),
        research_client=research_client,
        max_tool_rounds=settings.agent.max_tool_rounds,
        retrieval_threshold=settings.retrieval.agent_similarity_threshold,
        retrieval_limit=settings.retrieval.agent_limit,
        research_max_results=settings.agent.research_max_results,
    )
    response = agent.chat(
        [ChatMessage.user(message)],
        ChatContext(owner_id=owner, patient_id=patient, research_mode=research),
    )

    if response.error:
        console.print(f"\n[bold red]Error:[/] {response.error}")
        raise typer.Exit(code=1)

    console.print(f"\n[bold]Q:[/] {message}")
    console.print(f"\n[bold green]A:[/] {response.response}")

    if response.citations:
        console.print("\n[bold]Sources:[/]")
        for c in response.citations:
            console.print(f"  - {c.source_name} ({c.similarity * 100:.1f}%)")

    suffix = " (stopped at round limit)" if response.stopped_early else ""
    console.print(f"\n[dim]Tool rounds: {response.tool_rounds}{suffix}[/]")


@app.command()
def status() -> None:
    """Show system status (installed providers, config, vector store)."""
    from vault_rag import __version__
    from vault_rag.chunking.factory import available_chunkers
    from vault_rag.config import load_settings
    from vault_rag.embeddings.factory import available_providers as emb_providers
    from vault_rag.llm.factory import available_providers as llm_providers
    from vault_rag.vectorstore.factory import available_stores

    settings = load_settings()
    console.print(f"\n[bold green]patient-vault-rag[/] v{__version__}\n")

    table = Table(title="Available Components")
    table.add_column("Layer", style="cyan")
    table.add_column("Available")
    table.add_column("Configured")

    table.add_row("Chunkers", ", ".join(available_chunkers()), f"{settings.chunking.max_tokens} tokens")
    table.add_row(
        "Embedding Providers",
        ", ".join(emb_providers()),
        f"{settings.embedding.provider} ({settings.embedding.model})",
    )
    table.add_row("Vector Stores", ", ".join(available_stores()), settings.vectorstore.backend)
    table.add_row(
        "LLM Providers",
        ", ".join(llm_providers()),
        f"{settings.llm.provider} ({settings.llm.model})",
    )
    table.add_row(
        "Research", "google_scholar", "configured" if settings.research.api_key else "no API key",
    )

    console.print(table)


if __name__ == "__main__":
    app()
