"""CLI reconcile command implementation.

Publishes ``post.created`` / ``media.uploaded`` again for resources that are
still ``pending`` after the threshold, covering events lost between the
database write and the broker publish.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import timedelta

import typer
from rich.console import Console
from rich.table import Table

from packages.clients.postgres_content_store import (
    PostgresMediaRepository,
    PostgresPostRepository,
)
from packages.common.config import PersonalOSConfig, get_config
from packages.common.logging import get_logger
from packages.common.postgres_pool import PostgresPool
from packages.core.use_cases.reconcile_pending import ReconcilePendingUseCase
from packages.enrichment.adapters import RedisStreamsEventPublisher, create_redis_client
from packages.enrichment.services import EventDispatcher

console = Console()
logger = get_logger(__name__)


@asynccontextmanager
async def open_reconcile_use_case(
    config: PersonalOSConfig,
) -> AsyncIterator[ReconcilePendingUseCase]:
    """Build a ReconcilePendingUseCase wired to Redis and PostgreSQL."""
    publisher = RedisStreamsEventPublisher(
        create_redis_client(config.redis_url), maxlen=config.events_stream_maxlen
    )
    pool = PostgresPool(config)
    try:
        yield ReconcilePendingUseCase(
            post_repository=PostgresPostRepository(pool),
            media_repository=PostgresMediaRepository(pool),
            dispatcher=EventDispatcher(publisher, enabled=config.enable_event_publishing),
        )
    finally:
        await publisher.close()
        pool.close_all()


async def reconcile_command(
    older_than_minutes: int | None = None, limit: int | None = None
) -> None:
    """Re-dispatch creation events for stale pending posts and media.

    Example:

        personal-os reconcile --older-than-minutes 30 --limit 50
    """
    config = get_config()
    minutes = older_than_minutes
    if minutes is None:
        minutes = config.reconcile_pending_after_minutes
    batch = config.reconcile_batch_size if limit is None else limit

    try:
        async with open_reconcile_use_case(config) as use_case:
            counts = await use_case.execute(timedelta(minutes=minutes), limit=batch)
    except ValueError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from None

    logger.info("Reconcile finished", extra=counts)

    table = Table(title=f"Pending resources older than {minutes} min")
    table.add_column("Resource", style="cyan")
    table.add_column("Events re-dispatched", justify="right")
    table.add_row("posts", str(counts["posts_requeued"]))
    table.add_row("media", str(counts["media_requeued"]))
    console.print(table)
