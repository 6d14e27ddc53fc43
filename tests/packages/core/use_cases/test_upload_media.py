"""Tests for UploadMediaUseCase and DeleteMediaUseCase."""

import asyncio
import io
import json

import pytest

from packages.core.errors import (
    AssetUploadError,
    PersistenceError,
    ResourceNotFoundError,
    ValidationError,
)
from packages.core.use_cases.delete_media import DeleteMediaUseCase
from packages.core.use_cases.upload_media import UploadMediaInput, UploadMediaUseCase
from packages.schemas.models import META_ORIGINAL_PUBLIC_ID, MediaStatus


class TestUploadMediaUseCase:
    @pytest.mark.asyncio
    async def test_persists_pending_media_and_dispatches_uploaded(
        self, media_repository, asset_store, dispatcher, broker, owner_id
    ) -> None:
        use_case = UploadMediaUseCase(media_repository, asset_store, dispatcher)

        output = await use_case.execute(
            UploadMediaInput(owner_id=owner_id, file=io.BytesIO(b"png"), is_public=True)
        )
        await dispatcher.drain()

        media = media_repository.media[output.media_id]
        public_id = f"users/{owner_id}/media/originals/{output.media_id}"
        assert media.status == MediaStatus.PENDING
        assert media.is_public is True
        assert media.metadata[META_ORIGINAL_PUBLIC_ID] == public_id

        [message] = broker.topics["media.events"]
        payload = json.loads(message.value)
        assert payload["event_type"] == "media.uploaded"
        assert payload["asset_reference"] == public_id
        assert payload["original_url"] == media.url

    @pytest.mark.asyncio
    async def test_upload_failure_persists_nothing(
        self, media_repository, asset_store, dispatcher, owner_id
    ) -> None:
        asset_store.fail_upload = True

        with pytest.raises(AssetUploadError):
            await UploadMediaUseCase(media_repository, asset_store, dispatcher).execute(
                UploadMediaInput(owner_id=owner_id, file=io.BytesIO(b"png"))
            )

        assert media_repository.media == {}

    @pytest.mark.asyncio
    async def test_save_failure_compensates(
        self, media_repository, asset_store, dispatcher, broker, owner_id
    ) -> None:
        media_repository.fail_save = True

        with pytest.raises(PersistenceError):
            await UploadMediaUseCase(media_repository, asset_store, dispatcher).execute(
                UploadMediaInput(owner_id=owner_id, file=io.BytesIO(b"png"))
            )
        await asyncio.sleep(0)

        folder, media_id = asset_store.uploads[0]
        assert asset_store.deleted == [f"{folder}/{media_id}"]
        assert broker.topics["media.events"] == []

    @pytest.mark.asyncio
    async def test_invalid_media_record_removes_uploaded_original(
        self, media_repository, asset_store, dispatcher, broker, owner_id
    ) -> None:
        with pytest.raises(ValidationError):
            await UploadMediaUseCase(media_repository, asset_store, dispatcher).execute(
                UploadMediaInput(owner_id=owner_id, file=io.BytesIO(b"png"), provider="x" * 65)
            )
        await asyncio.sleep(0)

        folder, media_id = asset_store.uploads[0]
        assert asset_store.deleted == [f"{folder}/{media_id}"]
        assert media_repository.media == {}
        assert broker.topics["media.events"] == []


class TestDeleteMediaUseCase:
    @pytest.mark.asyncio
    async def test_deletes_asset_record_and_dispatches(
        self, media_repository, asset_store, dispatcher, broker, media_factory
    ) -> None:
        media = media_factory()
        await media_repository.save(media)

        await DeleteMediaUseCase(media_repository, asset_store, dispatcher).execute(
            media.media_id, media.owner_id
        )
        await dispatcher.drain()

        assert asset_store.deleted == [media.metadata[META_ORIGINAL_PUBLIC_ID]]
        assert media.media_id not in media_repository.media
        [message] = broker.topics["media.events"]
        assert json.loads(message.value)["event_type"] == "media.deleted"

    @pytest.mark.asyncio
    async def test_asset_delete_failure_still_removes_record(
        self, media_repository, asset_store, dispatcher, media_factory
    ) -> None:
        media = media_factory()
        await media_repository.save(media)
        asset_store.fail_delete = True

        await DeleteMediaUseCase(media_repository, asset_store, dispatcher).execute(
            media.media_id, media.owner_id
        )

        assert media.media_id not in media_repository.media

    @pytest.mark.asyncio
    async def test_missing_media_raises_not_found(
        self, media_repository, asset_store, dispatcher, media_factory
    ) -> None:
        media = media_factory()

        with pytest.raises(ResourceNotFoundError):
            await DeleteMediaUseCase(media_repository, asset_store, dispatcher).execute(
                media.media_id, media.owner_id
            )
