"""Init-db command: creates the PostgreSQL content schema."""

from __future__ import annotations

import typer
from rich.console import Console

from packages.clients.postgres_content_store import ensure_schema
from packages.common.config import get_config
from packages.common.logging import get_logger
from packages.common.postgres_pool import PostgresPool, PostgresPoolError

console = Console()
logger = get_logger(__name__)


def init_db_command() -> None:
    """Create the ``content`` schema, tables and pgvector column."""
    config = get_config()
    logger.info("Creating content schema", extra={"database": config.postgres_db})
    try:
        with PostgresPool(config) as pool, pool.get_connection() as conn:
            ensure_schema(conn, embedding_dim=config.embedding_dim)
    except PostgresPoolError as e:
        console.print(f"[red]Schema creation failed:[/red] {e}")
        raise typer.Exit(1) from None

    console.print(f"[green]Content schema ready in {config.postgres_db}[/green]")
