"""ProcessPostEventUseCase - enriches a post after a lifecycle event.

Runs inside the enrichment worker. The repository is the source of truth:
the event only says *which* post to look at. Safe to replay because the
handler skips posts that no longer need enrichment.

Only the enrichment columns are written back, and only while the post is
still at the content version that was enriched. An owner edit that lands in
between wins; its own ``post.updated`` event re-enriches the new content.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any

from packages.core.events import CONTENT_EVENT_TYPES, LifecycleEvent
from packages.core.ports.repositories import PostEnrichment, PostRepository
from packages.core.ports.services import AssetStore, EmbeddingService
from packages.schemas.models import (
    META_ORIGINAL_PUBLIC_ID,
    META_REQUESTED_STATUS,
    REQUESTABLE_POST_STATUSES,
    Post,
    PostStatus,
    requested_status_from,
)

logger = logging.getLogger(__name__)

OG_IMAGE_TRANSFORMATION = "c_fill,g_auto,w_1200,h_630"
THUMBNAIL_TRANSFORMATION = "c_limit,w_400"


def resolve_requested_status(metadata: dict[str, Any]) -> PostStatus:
    """Return the owner's requested terminal status, ``draft`` when unusable."""

    raw = metadata.get(META_REQUESTED_STATUS)
    if raw not in [status.value for status in REQUESTABLE_POST_STATUSES]:
        logger.warning(
            "Unrecognized requested status, falling back to draft",
            extra={"requested_status": raw},
        )
    return requested_status_from(metadata)


def embedding_text(post: Post) -> str:
    return f"{post.title}\n\n{post.content_markdown}"


class ProcessPostEventUseCase:
    """Derive renditions, embed content and promote a post to its terminal status."""

    def __init__(
        self,
        post_repository: PostRepository,
        asset_store: AssetStore,
        embedder: EmbeddingService,
    ) -> None:
        self.post_repository = post_repository
        self.asset_store = asset_store
        self.embedder = embedder

    async def execute(self, event: LifecycleEvent) -> None:
        """Handle one post event.

        Raises:
            Exception: Any repository, asset store or embedding error is
                propagated so the message is not committed.
        """
        post_id = event.resource_id
        post = await self.post_repository.find_by_id(post_id, event.owner_id)
        if post is None:
            logger.warning("Post not found, skipping", extra={"post_id": str(post_id)})
            return

        was_pending = post.status == PostStatus.PENDING
        reembed = event.event_type in CONTENT_EVENT_TYPES

        if not post.needs_enrichment() or (not was_pending and not reembed):
            logger.info(
                "Post already processed, skipping",
                extra={"post_id": str(post_id), "status": post.status.value},
            )
            return

        if was_pending:
            resolve_requested_status(post.metadata)

        public_id = str(
            post.metadata.get(META_ORIGINAL_PUBLIC_ID)
            or event.asset_reference
            or f"users/{post.owner_id}/originals/{post.post_id}"
        )
        embedding = await self.embedder.embed(embedding_text(post)) if reembed else None

        status = await self.post_repository.apply_enrichment(
            PostEnrichment(
                post_id=post.post_id,
                owner_id=post.owner_id,
                content_version=post.content_version,
                og_image_url=self.asset_store.derive_url(public_id, OG_IMAGE_TRANSFORMATION),
                thumbnail_url=self.asset_store.derive_url(public_id, THUMBNAIL_TRANSFORMATION),
                enriched_at=datetime.now(UTC),
                embedding=embedding,
                enriched_version=post.content_version if reembed else None,
            )
        )
        if status is None:
            logger.info(
                "Post changed during enrichment, leaving it to the newer event",
                extra={"post_id": str(post_id), "content_version": post.content_version},
            )
            return

        logger.info(
            "Enriched post",
            extra={
                "post_id": str(post_id),
                "event_type": event.event_type.value,
                "status": status.value,
                "embedded": reembed,
            },
        )


__all__ = [
    "OG_IMAGE_TRANSFORMATION",
    "THUMBNAIL_TRANSFORMATION",
    "ProcessPostEventUseCase",
    "resolve_requested_status",
]
