"""DeleteMediaUseCase - removes a media item and its stored original."""

from __future__ import annotations

import logging
from uuid import UUID

from packages.core.errors import PersistenceError, ResourceNotFoundError
from packages.core.events import EventType, LifecycleEvent
from packages.core.ports.repositories import MediaRepository
from packages.core.ports.services import AssetStore
from packages.enrichment.services.event_dispatcher import EventDispatcher
from packages.schemas.models import META_ORIGINAL_PUBLIC_ID

logger = logging.getLogger(__name__)


class DeleteMediaUseCase:
    """Use case for deleting a media item.

    The stored asset is removed best-effort: a storage failure is logged and
    the record is deleted anyway.
    """

    def __init__(
        self,
        media_repository: MediaRepository,
        asset_store: AssetStore,
        dispatcher: EventDispatcher,
    ) -> None:
        self.media_repository = media_repository
        self.asset_store = asset_store
        self.dispatcher = dispatcher

    async def execute(self, media_id: UUID, owner_id: UUID) -> None:
        media = await self.media_repository.find_by_id(media_id, owner_id)
        if media is None:
            raise ResourceNotFoundError("media", media_id)

        public_id = media.metadata.get(META_ORIGINAL_PUBLIC_ID)
        if isinstance(public_id, str) and public_id:
            try:
                await self.asset_store.delete(public_id)
            except Exception:
                logger.warning(
                    "Deleting stored asset failed",
                    exc_info=True,
                    extra={"media_id": str(media_id), "public_id": public_id},
                )
        else:
            logger.warning(
                "Media has no original_public_id, skipping asset delete",
                extra={"media_id": str(media_id)},
            )

        try:
            await self.media_repository.delete(media_id, owner_id)
        except Exception as exc:
            raise PersistenceError(f"delete media failed: {exc}") from exc

        self.dispatcher.dispatch(
            LifecycleEvent(
                event_type=EventType.MEDIA_DELETED,
                resource_id=media_id,
                owner_id=owner_id,
                asset_reference=public_id if isinstance(public_id, str) else "",
            )
        )


__all__ = ["DeleteMediaUseCase"]
