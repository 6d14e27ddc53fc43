"""CLI chat command implementation."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from uuid import UUID

import typer
from rich.console import Console
from rich.panel import Panel

from packages.clients.ollama import OllamaEmbeddingClient, OllamaGenerativeClient
from packages.clients.postgres_content_store import PostgresPostRepository
from packages.common.config import PersonalOSConfig, get_config
from packages.common.postgres_pool import PostgresPool
from packages.core.errors import ChatError
from packages.core.use_cases.chat import ChatInput, ChatUseCase
from packages.retrieval.context.prompts import format_source_list

console = Console()


@asynccontextmanager
async def open_chat_use_case(config: PersonalOSConfig) -> AsyncIterator[ChatUseCase]:
    """Build a ChatUseCase wired to Ollama and PostgreSQL, closing clients on exit."""
    ollama = config.ollama_config
    embedder = OllamaEmbeddingClient(
        str(ollama.url),
        model=ollama.embedding_model,
        expected_dim=ollama.embedding_dim,
        timeout=ollama.timeout,
    )
    llm = OllamaGenerativeClient(str(ollama.url), model=ollama.chat_model, timeout=ollama.timeout)
    pool = PostgresPool(config)
    try:
        yield ChatUseCase(
            embedder=embedder,
            llm=llm,
            post_repository=PostgresPostRepository(pool),
        )
    finally:
        await embedder.aclose()
        await llm.aclose()
        pool.close_all()


async def chat_command(query: str, owner: str, limit: int | None = None) -> None:
    """Answer ``query`` from the owner's posts and print the sources used.

    Example:

        personal-os chat "What did I write about sourdough?" --owner <uuid>
    """
    try:
        owner_id = UUID(owner)
    except ValueError:
        console.print(f"[red]Error:[/red] Invalid owner id: {owner}")
        raise typer.Exit(1) from None

    config = get_config()
    chat_input = ChatInput(
        query=query,
        owner_id=owner_id,
        limit=config.chat_default_limit if limit is None else limit,
    )

    console.print(f"\n[bold blue]Question:[/bold blue] {query}\n")
    try:
        async with open_chat_use_case(config) as use_case:
            with console.status("[bold green]Retrieving posts and generating answer..."):
                result = await use_case.execute(chat_input)
    except ValueError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from None
    except ChatError as e:
        console.print(f"[red]Chat failed during {e.stage}:[/red] {e}")
        raise typer.Exit(1) from None

    console.print(Panel(result.response, title="Answer", border_style="green"))
    sources = format_source_list(result.sources)
    if sources:
        console.print(sources)
    else:
        console.print("[yellow]No posts with embeddings were found for this owner.[/yellow]")
