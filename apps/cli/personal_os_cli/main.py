"""Personal OS CLI - Typer command-line interface for the content pipeline."""

from __future__ import annotations

import logging

import typer
from rich.console import Console

from apps.cli.personal_os_cli.utils import async_command

app = typer.Typer(
    name="personal-os",
    help="Personal OS CLI - content enrichment and chat",
    add_completion=False,
)
console = Console()
logger = logging.getLogger(__name__)


@app.callback()
def main(
    log_level: str | None = typer.Option(None, "--log-level", help="Override LOG_LEVEL"),
) -> None:
    """Configure structured logging before any command runs."""
    from packages.common.logging import setup_logging

    setup_logging(log_level)


@app.command()
@async_command
async def chat(
    query: str = typer.Argument(..., help="Question to answer from your posts"),
    owner: str = typer.Option(..., "--owner", "-o", help="Owner UUID whose posts are searched"),
    limit: int | None = typer.Option(
        None, "--limit", "-l", help="Number of posts used as context (<= 0 means 3)"
    ),
) -> None:
    """
    Answer a question using your own posts as context.

    Pipeline:
        1. Embed the question (Ollama)
        2. Nearest-post lookup scoped to the owner (pgvector)
        3. Generate an answer from the retrieved posts (Ollama)

    Examples:
        personal-os chat "What did I write about sourdough?" --owner <uuid>
        personal-os chat "Summarize my travel posts" --owner <uuid> --limit 5
    """
    from apps.cli.personal_os_cli.commands.chat import chat_command

    await chat_command(query=query, owner=owner, limit=limit)


@app.command()
@async_command
async def reconcile(
    older_than_minutes: int | None = typer.Option(
        None, "--older-than-minutes", "-m", help="Only resources pending at least this long"
    ),
    limit: int | None = typer.Option(
        None, "--limit", "-l", help="Maximum resources of each kind to re-dispatch"
    ),
) -> None:
    """
    Re-dispatch creation events for posts and media stuck in pending.

    Examples:
        personal-os reconcile
        personal-os reconcile --older-than-minutes 60 --limit 20
    """
    from apps.cli.personal_os_cli.commands.reconcile import reconcile_command

    await reconcile_command(older_than_minutes=older_than_minutes, limit=limit)


@app.command(name="init-db")
def init_db() -> None:
    """
    Create the PostgreSQL content schema (posts, media, tag links).

    Examples:
        personal-os init-db
    """
    from apps.cli.personal_os_cli.commands.init_db import init_db_command

    init_db_command()


if __name__ == "__main__":
    app()
