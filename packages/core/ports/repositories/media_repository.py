"""Media repository port definition."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from uuid import UUID

from packages.schemas.models import Media


class MediaRepository(ABC):
    """Repository abstraction for media persistence operations."""

    @abstractmethod
    async def save(self, media: Media) -> None:
        """Insert a new media item."""

    @abstractmethod
    async def update(self, media: Media) -> None:
        """Overwrite the mutable fields of an existing media item."""

    @abstractmethod
    async def delete(self, media_id: UUID, owner_id: UUID) -> None:
        """Remove a media item."""

    @abstractmethod
    async def find_by_id(self, media_id: UUID, owner_id: UUID) -> Media | None:
        """Retrieve a media item scoped to its owner; ``None`` when absent."""

    @abstractmethod
    async def find_pending(self, *, older_than: datetime, limit: int) -> list[Media]:
        """Return media still pending that were created before ``older_than``."""


__all__ = ["MediaRepository"]
