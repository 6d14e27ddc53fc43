"""Tests for DeleteMediaUseCase."""

import json
from uuid import uuid4

import pytest

from packages.core.errors import ResourceNotFoundError
from packages.core.use_cases.delete_media import DeleteMediaUseCase
from packages.schemas.models import META_ORIGINAL_PUBLIC_ID


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

        assert media.media_id not in media_repository.media
        assert asset_store.deleted == [media.metadata[META_ORIGINAL_PUBLIC_ID]]
        [message] = broker.topics["media.events"]
        payload = json.loads(message.value)
        assert payload["event_type"] == "media.deleted"
        assert payload["asset_reference"] == media.metadata[META_ORIGINAL_PUBLIC_ID]

    @pytest.mark.asyncio
    async def test_asset_failure_still_deletes_record(
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
    async def test_missing_public_id_skips_asset_delete(
        self, media_repository, asset_store, dispatcher, media_factory
    ) -> None:
        media = media_factory(metadata={})
        await media_repository.save(media)

        await DeleteMediaUseCase(media_repository, asset_store, dispatcher).execute(
            media.media_id, media.owner_id
        )

        assert asset_store.deleted == []
        assert media.media_id not in media_repository.media

    @pytest.mark.asyncio
    async def test_unknown_media_raises(
        self, media_repository, asset_store, dispatcher, owner_id
    ) -> None:
        with pytest.raises(ResourceNotFoundError):
            await DeleteMediaUseCase(media_repository, asset_store, dispatcher).execute(
                uuid4(), owner_id
            )
