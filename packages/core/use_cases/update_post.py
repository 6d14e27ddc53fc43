"""UpdatePostUseCase - edits a post and requests re-enrichment.

Content edits keep the previous body in the version history and bump
``content_version``; the worker re-embeds the post when it sees the
``post.updated`` event. A post that is still pending keeps its provisional
status (only the worker promotes it); a terminal post takes the requested
status directly.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import UUID

from pydantic import ValidationError as PydanticValidationError

from packages.core.errors import PersistenceError, ResourceNotFoundError, ValidationError
from packages.core.events import EventType, LifecycleEvent
from packages.core.ports.repositories import PostRepository
from packages.core.use_cases.create_post import slugify
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


@dataclass
class UpdatePostInput:
    post_id: UUID
    owner_id: UUID
    title: str
    content: str
    status: PostStatus
    slug: str = ""


class UpdatePostUseCase:
    """Use case for updating post content and visibility."""

    def __init__(self, post_repository: PostRepository, dispatcher: EventDispatcher) -> None:
        self.post_repository = post_repository
        self.dispatcher = dispatcher

    async def execute(self, input: UpdatePostInput) -> Post:
        """Apply the update and return the stored post.

        Raises:
            ResourceNotFoundError: If the post does not exist for the owner.
            ValidationError: If the requested status or slug is invalid.
            PersistenceError: If the repository rejects the update.
        """
        try:
            requested_status = PostStatus(input.status)
        except ValueError as exc:
            raise ValidationError(f"invalid status: {input.status}") from exc
        if requested_status not in REQUESTABLE_POST_STATUSES:
            raise ValidationError(
                f"requested status must be draft, private or public, got {requested_status.value}"
            )

        existing = await self.post_repository.find_by_id(input.post_id, input.owner_id)
        if existing is None:
            raise ResourceNotFoundError("post", input.post_id)

        now = datetime.now(UTC)
        was_public = existing.status == PostStatus.PUBLIC
        content_changed = existing.content_markdown != input.content

        if content_changed:
            existing.add_version(existing.updated_at, existing.content_markdown)
            existing.content_version += 1

        existing.title = input.title
        existing.content_markdown = input.content
        existing.slug = input.slug or slugify(input.title)
        existing.metadata[META_REQUESTED_STATUS] = requested_status.value
        if existing.status != PostStatus.PENDING:
            existing.status = requested_status
            if requested_status == PostStatus.PUBLIC and existing.published_at is None:
                existing.published_at = now
        existing.updated_at = now

        try:
            post = Post.model_validate(existing.model_dump())
        except PydanticValidationError as exc:
            raise ValidationError(str(exc)) from exc

        try:
            await self.post_repository.update(post)
        except Exception as exc:
            raise PersistenceError(f"update post failed: {exc}") from exc

        logger.info(
            "Updated post",
            extra={
                "post_id": str(post.post_id),
                "content_changed": content_changed,
                "content_version": post.content_version,
            },
        )

        events: list[LifecycleEvent] = []
        if content_changed:
            events.append(self._event(post, EventType.POST_UPDATED))
        if requested_status == PostStatus.PUBLIC and not was_public:
            events.append(self._event(post, EventType.POST_PUBLISHED))
        self.dispatcher.dispatch(*events)

        return post

    @staticmethod
    def _event(post: Post, event_type: EventType) -> LifecycleEvent:
        return LifecycleEvent(
            event_type=event_type,
            resource_id=post.post_id,
            owner_id=post.owner_id,
            asset_reference=str(post.metadata.get(META_ORIGINAL_PUBLIC_ID, "")),
            original_url=str(post.metadata.get(META_ORIGINAL_URL, "")),
        )


__all__ = ["UpdatePostInput", "UpdatePostUseCase"]
