"""Post repository port definition."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from packages.schemas.models import Post, PostStatus


@dataclass(frozen=True)
class PostEnrichment:
    """Worker-owned columns computed for one content version of a post.

    ``embedding`` and ``enriched_version`` are ``None`` when the event did not
    call for a re-embed; the stored values are then left alone.
    """

    post_id: UUID
    owner_id: UUID
    content_version: int
    og_image_url: str
    thumbnail_url: str
    enriched_at: datetime
    embedding: list[float] | None = None
    enriched_version: int | None = None


class PostRepository(ABC):
    """Repository abstraction for post persistence operations."""

    @abstractmethod
    async def save(self, post: Post) -> None:
        """Insert a new post."""

    @abstractmethod
    async def update(self, post: Post) -> None:
        """Write the owner-editable fields of an existing post in one statement.

        Renditions, the embedding and the enriched version stay as stored. A
        row that is still pending stays pending; a terminal row takes
        ``post.status`` (the requested status when ``post`` was read pending).
        """

    @abstractmethod
    async def apply_enrichment(self, enrichment: PostEnrichment) -> PostStatus | None:
        """Write the enrichment columns if the post is still at ``content_version``.

        A pending post is promoted to its currently requested status. Returns
        the resulting status, or ``None`` when the post is gone or its content
        moved on (nothing is written then).
        """

    @abstractmethod
    async def delete(self, post_id: UUID, owner_id: UUID) -> None:
        """Remove a post."""

    @abstractmethod
    async def find_by_id(self, post_id: UUID, owner_id: UUID) -> Post | None:
        """Retrieve a post scoped to its owner; ``None`` when absent."""

    @abstractmethod
    async def search_by_embedding(
        self, vector: list[float], owner_id: UUID, limit: int
    ) -> list[Post]:
        """Return the ``limit`` posts nearest to ``vector``, closest first."""

    @abstractmethod
    async def find_pending(self, *, older_than: datetime, limit: int) -> list[Post]:
        """Return posts still pending that were created before ``older_than``."""


__all__ = ["PostEnrichment", "PostRepository"]
