"""DeletePostUseCase - removes a post and its tag links."""

from __future__ import annotations

import logging
from uuid import UUID

from packages.core.errors import PersistenceError
from packages.core.events import EventType, LifecycleEvent
from packages.core.ports.repositories import PostRepository, TagLinker
from packages.enrichment.services.event_dispatcher import EventDispatcher

logger = logging.getLogger(__name__)


class DeletePostUseCase:
    """Use case for deleting a post.

    Tag links are cleared first so a failed delete never leaves dangling
    links behind a missing post.
    """

    def __init__(
        self,
        post_repository: PostRepository,
        tag_linker: TagLinker,
        dispatcher: EventDispatcher,
    ) -> None:
        self.post_repository = post_repository
        self.tag_linker = tag_linker
        self.dispatcher = dispatcher

    async def execute(self, post_id: UUID, owner_id: UUID) -> None:
        try:
            await self.tag_linker.set_tags_for_resource(post_id, "post", [])
        except Exception as exc:
            raise PersistenceError(f"delete tag links failed: {exc}") from exc

        try:
            await self.post_repository.delete(post_id, owner_id)
        except Exception as exc:
            raise PersistenceError(f"delete post failed: {exc}") from exc

        logger.info("Deleted post", extra={"post_id": str(post_id)})

        self.dispatcher.dispatch(
            LifecycleEvent(
                event_type=EventType.POST_DELETED,
                resource_id=post_id,
                owner_id=owner_id,
            )
        )


__all__ = ["DeletePostUseCase"]
