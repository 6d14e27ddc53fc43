"""Repository port definitions for core use cases."""

from __future__ import annotations

from packages.core.ports.repositories.media_repository import MediaRepository
from packages.core.ports.repositories.post_repository import PostEnrichment, PostRepository
from packages.core.ports.repositories.tag_linker import TagLinker

__all__ = ["MediaRepository", "PostEnrichment", "PostRepository", "TagLinker"]
