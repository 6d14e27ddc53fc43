"""ReconcilePendingUseCase - re-announces resources stranded in ``pending``.

Persisting a resource and publishing its event are independent steps, so a
crash or broker outage between them leaves the resource pending with no
event in flight. This sweep re-dispatches the creation event for every
resource still pending after a grace period. Handlers skip resources that
are no longer pending, so re-dispatching an event that was in fact
delivered is harmless.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime, timedelta

from packages.core.events import EventType, LifecycleEvent
from packages.core.ports.repositories import MediaRepository, PostRepository
from packages.enrichment.services.event_dispatcher import EventDispatcher
from packages.schemas.models import META_ORIGINAL_PUBLIC_ID, META_ORIGINAL_URL

logger = logging.getLogger(__name__)


class ReconcilePendingUseCase:
    """Use case for re-publishing creation events of stale pending resources."""

    def __init__(
        self,
        post_repository: PostRepository,
        media_repository: MediaRepository,
        dispatcher: EventDispatcher,
    ) -> None:
        self.post_repository = post_repository
        self.media_repository = media_repository
        self.dispatcher = dispatcher

    async def execute(self, older_than: timedelta, limit: int = 100) -> dict[str, int]:
        """Re-dispatch events and wait for them to be handed to the broker.

        Args:
            older_than: Minimum age of a pending resource.
            limit: Maximum resources of each kind per sweep.

        Returns:
            dict with 'posts_requeued' and 'media_requeued' counts.

        Raises:
            ValueError: If older_than is negative or limit is not positive.
        """
        if older_than < timedelta(0):
            raise ValueError("older_than cannot be negative")
        if limit <= 0:
            raise ValueError("limit must be positive")

        cutoff = datetime.now(UTC) - older_than
        posts = await self.post_repository.find_pending(older_than=cutoff, limit=limit)
        media_items = await self.media_repository.find_pending(older_than=cutoff, limit=limit)

        events = [
            LifecycleEvent(
                event_type=EventType.POST_CREATED,
                resource_id=post.post_id,
                owner_id=post.owner_id,
                asset_reference=str(post.metadata.get(META_ORIGINAL_PUBLIC_ID, "")),
                original_url=str(post.metadata.get(META_ORIGINAL_URL, "")),
            )
            for post in posts
        ]
        events.extend(
            LifecycleEvent(
                event_type=EventType.MEDIA_UPLOADED,
                resource_id=media.media_id,
                owner_id=media.owner_id,
                asset_reference=str(media.metadata.get(META_ORIGINAL_PUBLIC_ID, "")),
                original_url=str(media.metadata.get(META_ORIGINAL_URL, media.url)),
            )
            for media in media_items
        )

        self.dispatcher.dispatch(*events)
        await self.dispatcher.drain()

        logger.info(
            "Reconciled pending resources",
            extra={"posts": len(posts), "media": len(media_items), "cutoff": cutoff.isoformat()},
        )
        return {"posts_requeued": len(posts), "media_requeued": len(media_items)}


__all__ = ["ReconcilePendingUseCase"]
