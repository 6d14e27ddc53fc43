"""UploadMediaUseCase - stores an original image and queues its enrichment."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, BinaryIO
from uuid import UUID, uuid4

from pydantic import ValidationError as PydanticValidationError

from packages.core.errors import AssetUploadError, PersistenceError, ValidationError
from packages.core.events import EventType, LifecycleEvent
from packages.core.ports.repositories import MediaRepository
from packages.core.ports.services import AssetStore
from packages.core.use_cases.asset_cleanup import delete_asset_in_background
from packages.enrichment.services.event_dispatcher import EventDispatcher
from packages.schemas.models import (
    META_ORIGINAL_PUBLIC_ID,
    META_ORIGINAL_URL,
    Media,
    MediaStatus,
)

logger = logging.getLogger(__name__)


def media_asset_folder(owner_id: UUID) -> str:
    return f"users/{owner_id}/media/originals"


@dataclass
class UploadMediaInput:
    owner_id: UUID
    file: BinaryIO
    metadata: dict[str, Any] = field(default_factory=dict)
    is_public: bool = False
    provider: str = "cloudinary"


@dataclass(frozen=True)
class UploadMediaOutput:
    media_id: UUID


class UploadMediaUseCase:
    """Use case for uploading a media item whose thumbnail is derived later."""

    def __init__(
        self,
        media_repository: MediaRepository,
        asset_store: AssetStore,
        dispatcher: EventDispatcher,
    ) -> None:
        self.media_repository = media_repository
        self.asset_store = asset_store
        self.dispatcher = dispatcher

    async def execute(self, input: UploadMediaInput) -> UploadMediaOutput:
        """Upload the original and persist a pending media record.

        Raises:
            AssetUploadError: If the upload fails (nothing is persisted).
            ValidationError: If the media record is invalid; the uploaded
                original is deleted again.
            PersistenceError: If the record could not be saved.
        """
        media_id = uuid4()
        folder = media_asset_folder(input.owner_id)
        public_id = f"{folder}/{media_id}"
        now = datetime.now(UTC)

        try:
            original_url = await self.asset_store.upload(input.file, folder, str(media_id))
        except Exception as exc:
            raise AssetUploadError(f"upload original media failed: {exc}") from exc

        metadata = dict(input.metadata)
        metadata[META_ORIGINAL_URL] = original_url
        metadata[META_ORIGINAL_PUBLIC_ID] = public_id

        try:
            media = Media(
                media_id=media_id,
                owner_id=input.owner_id,
                provider=input.provider,
                url=original_url,
                status=MediaStatus.PENDING,
                metadata=metadata,
                is_public=input.is_public,
                created_at=now,
                updated_at=now,
            )
        except PydanticValidationError as exc:
            delete_asset_in_background(self.asset_store, public_id)
            raise ValidationError(str(exc)) from exc

        try:
            await self.media_repository.save(media)
        except Exception as exc:
            delete_asset_in_background(self.asset_store, public_id)
            raise PersistenceError(f"save media metadata failed: {exc}") from exc

        logger.info("Created pending media", extra={"media_id": str(media_id)})

        self.dispatcher.dispatch(
            LifecycleEvent(
                event_type=EventType.MEDIA_UPLOADED,
                resource_id=media_id,
                owner_id=input.owner_id,
                asset_reference=public_id,
                original_url=original_url,
            )
        )

        return UploadMediaOutput(media_id=media_id)


__all__ = ["UploadMediaInput", "UploadMediaOutput", "UploadMediaUseCase"]
