"""Tag link port used when content is deleted."""

from __future__ import annotations

from typing import Protocol
from uuid import UUID


class TagLinker(Protocol):
    """Replaces the set of tags attached to a resource."""

    async def set_tags_for_resource(
        self, resource_id: UUID, resource_type: str, tag_ids: list[UUID]
    ) -> None:
        """Attach exactly ``tag_ids`` to the resource (empty list clears)."""
        ...


__all__ = ["TagLinker"]
