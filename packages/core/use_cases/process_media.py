"""ProcessMediaEventUseCase - derives the thumbnail of an uploaded image."""

from __future__ import annotations

import logging
from datetime import UTC, datetime

from packages.core.events import EventType, LifecycleEvent
from packages.core.ports.repositories import MediaRepository
from packages.core.ports.services import AssetStore
from packages.schemas.models import (
    META_ENRICHMENT_ERROR,
    META_ORIGINAL_PUBLIC_ID,
    META_ORIGINAL_URL,
    MediaStatus,
)

logger = logging.getLogger(__name__)

MEDIA_THUMBNAIL_TRANSFORMATION = "c_limit,w_400"


class ProcessMediaEventUseCase:
    """Promote a pending media item to ``ready`` once its thumbnail exists."""

    def __init__(self, media_repository: MediaRepository, asset_store: AssetStore) -> None:
        self.media_repository = media_repository
        self.asset_store = asset_store

    async def execute(self, event: LifecycleEvent) -> None:
        media_id = event.resource_id
        media = await self.media_repository.find_by_id(media_id, event.owner_id)
        if media is None:
            logger.warning("Media not found, skipping", extra={"media_id": str(media_id)})
            return

        if media.status != MediaStatus.PENDING or event.event_type != EventType.MEDIA_UPLOADED:
            logger.info(
                "Media already processed, skipping",
                extra={"media_id": str(media_id), "status": media.status.value},
            )
            return

        now = datetime.now(UTC)
        public_id = event.asset_reference or media.metadata.get(META_ORIGINAL_PUBLIC_ID)
        if not public_id:
            # Permanent: redelivery would never find a reference either.
            media.status = MediaStatus.ERROR
            media.metadata[META_ENRICHMENT_ERROR] = "missing original asset reference"
            media.updated_at = now
            await self.media_repository.update(media)
            logger.error(
                "Media has no asset reference, marked as error",
                extra={"media_id": str(media_id)},
            )
            return

        thumbnail_url = self.asset_store.derive_url(str(public_id), MEDIA_THUMBNAIL_TRANSFORMATION)

        media.url = event.original_url or media.metadata.get(META_ORIGINAL_URL) or media.url
        media.thumbnail_url = thumbnail_url
        media.status = MediaStatus.READY
        media.updated_at = now

        await self.media_repository.update(media)

        logger.info(
            "Processed media",
            extra={"media_id": str(media_id), "thumbnail_url": thumbnail_url},
        )


__all__ = ["MEDIA_THUMBNAIL_TRANSFORMATION", "ProcessMediaEventUseCase"]
