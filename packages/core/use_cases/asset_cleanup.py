"""Best-effort removal of uploaded assets whose record was never persisted."""

from __future__ import annotations

import asyncio
import logging

from packages.core.ports.services import AssetStore

logger = logging.getLogger(__name__)

_cleanup_tasks: set[asyncio.Task[None]] = set()


async def _delete_asset(asset_store: AssetStore, public_id: str) -> None:
    try:
        await asset_store.delete(public_id)
    except Exception:
        logger.exception("Orphaned asset cleanup failed", extra={"public_id": public_id})
    else:
        logger.info("Deleted orphaned asset", extra={"public_id": public_id})


def delete_asset_in_background(asset_store: AssetStore, public_id: str) -> asyncio.Task[None]:
    """Schedule deletion of ``public_id`` without waiting for it."""

    task = asyncio.get_running_loop().create_task(_delete_asset(asset_store, public_id))
    _cleanup_tasks.add(task)
    task.add_done_callback(_cleanup_tasks.discard)
    return task


__all__ = ["delete_asset_in_background"]
