"""CreatePostUseCase - persists a provisional post and announces it.

Flow: upload original asset → persist post with ``status=pending`` →
publish ``post.created`` (and ``post.published``) in the background.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, BinaryIO
from uuid import UUID, uuid4

from pydantic import ValidationError as PydanticValidationError

from packages.core.errors import AssetUploadError, PersistenceError, ValidationError
from packages.core.events import EventType, LifecycleEvent
from packages.core.ports.repositories import PostRepository
from packages.core.ports.services import AssetStore
from packages.core.use_cases.asset_cleanup import delete_asset_in_background
from packages.enrichment.services.event_dispatcher import EventDispatcher
from packages.schemas.models import (
    META_ORIGINAL_PUBLIC_ID,
    META_ORIGINAL_URL,
    META_REQUESTED_STATUS,
    REQUESTABLE_POST_STATUSES,
    Post,
    PostStatus,
)

logger = logging.getLogger(__name__)


def slugify(title: str) -> str:
    """Default slug: lowercase title with spaces replaced by dashes."""
    return title.strip().lower().replace(" ", "-")


def post_asset_folder(owner_id: UUID) -> str:
    return f"users/{owner_id}/originals"


@dataclass
class CreatePostInput:
    owner_id: UUID
    title: str
    content: str
    file: BinaryIO
    requested_status: PostStatus = PostStatus.DRAFT
    slug: str = ""
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class CreatePostOutput:
    post_id: UUID
    slug: str


class CreatePostUseCase:
    """Use case for creating a post whose enrichment happens asynchronously."""

    def __init__(
        self,
        post_repository: PostRepository,
        asset_store: AssetStore,
        dispatcher: EventDispatcher,
    ) -> None:
        self.post_repository = post_repository
        self.asset_store = asset_store
        self.dispatcher = dispatcher

    async def execute(self, input: CreatePostInput) -> CreatePostOutput:
        """Create the post.

        Raises:
            ValidationError: If slug or requested status are invalid.
            AssetUploadError: If the original asset could not be uploaded.
            PersistenceError: If the post could not be saved.
        """
        try:
            requested_status = PostStatus(input.requested_status)
        except ValueError as exc:
            raise ValidationError(f"invalid status: {input.requested_status}") from exc
        if requested_status not in REQUESTABLE_POST_STATUSES:
            raise ValidationError(
                f"requested status must be draft, private or public, got {requested_status.value}"
            )

        now = datetime.now(UTC)
        metadata = dict(input.metadata)
        metadata[META_REQUESTED_STATUS] = requested_status.value

        try:
            post = Post(
                post_id=uuid4(),
                owner_id=input.owner_id,
                slug=input.slug or slugify(input.title),
                title=input.title,
                content_markdown=input.content,
                status=PostStatus.PENDING,
                metadata=metadata,
                created_at=now,
                updated_at=now,
            )
        except PydanticValidationError as exc:
            raise ValidationError(str(exc)) from exc

        folder = post_asset_folder(post.owner_id)
        public_id = f"{folder}/{post.post_id}"
        try:
            original_url = await self.asset_store.upload(input.file, folder, str(post.post_id))
        except Exception as exc:
            raise AssetUploadError(f"upload original file failed: {exc}") from exc

        post.metadata[META_ORIGINAL_URL] = original_url
        post.metadata[META_ORIGINAL_PUBLIC_ID] = public_id

        try:
            await self.post_repository.save(post)
        except Exception as exc:
            delete_asset_in_background(self.asset_store, public_id)
            raise PersistenceError(f"save post failed: {exc}") from exc

        logger.info(
            "Created pending post",
            extra={"post_id": str(post.post_id), "requested_status": requested_status.value},
        )

        events = [
            LifecycleEvent(
                event_type=EventType.POST_CREATED,
                resource_id=post.post_id,
                owner_id=post.owner_id,
                asset_reference=public_id,
                original_url=original_url,
            )
        ]
        if requested_status == PostStatus.PUBLIC:
            events.append(
                LifecycleEvent(
                    event_type=EventType.POST_PUBLISHED,
                    resource_id=post.post_id,
                    owner_id=post.owner_id,
                    asset_reference=public_id,
                    original_url=original_url,
                )
            )
        self.dispatcher.dispatch(*events)

        return CreatePostOutput(post_id=post.post_id, slug=post.slug)


__all__ = ["CreatePostInput", "CreatePostOutput", "CreatePostUseCase", "slugify"]
