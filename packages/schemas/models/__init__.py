"""Pydantic data models for the Personal OS content pipeline.

Defines the content entities that flow through the enrichment pipeline
(Post, Media) together with their status enums and the metadata keys shared
between the API process and the enrichment worker.
"""

import re
from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID, uuid4

from pydantic import BaseModel, Field, field_validator

# ========== Metadata keys ==========

META_ORIGINAL_URL = "original_url"
META_ORIGINAL_PUBLIC_ID = "original_public_id"
META_REQUESTED_STATUS = "requested_status"
META_ENRICHED_VERSION = "enriched_version"
META_ENRICHMENT_ERROR = "enrichment_error"

MAX_VERSION_HISTORY = 10

_SLUG_PATTERN = re.compile(r"^[a-z0-9-]+$")


# ========== Enums ==========


class PostStatus(str, Enum):
    """Lifecycle status of a post.

    ``pending`` is the provisional state written by the API process. The
    remaining values are terminal and chosen by the owner.
    """

    PENDING = "pending"
    DRAFT = "draft"
    PRIVATE = "private"
    PUBLIC = "public"


REQUESTABLE_POST_STATUSES = frozenset({PostStatus.DRAFT, PostStatus.PRIVATE, PostStatus.PUBLIC})


def requested_status_from(metadata: dict[str, Any]) -> PostStatus:
    """Return the terminal status the owner asked for, ``draft`` when unusable."""
    try:
        status = PostStatus(metadata.get(META_REQUESTED_STATUS))
    except ValueError:
        return PostStatus.DRAFT
    return status if status in REQUESTABLE_POST_STATUSES else PostStatus.DRAFT


class MediaStatus(str, Enum):
    """Lifecycle status of a media item."""

    PENDING = "pending"
    READY = "ready"
    ERROR = "error"


# ========== Content Models ==========


class PostVersion(BaseModel):
    """Snapshot of a previous post body."""

    version_id: UUID = Field(default_factory=uuid4, description="Version UUID")
    post_id: UUID = Field(..., description="Foreign key to Post")
    content_diff: str = Field(..., description="Previous markdown body")
    created_at: datetime = Field(..., description="When the previous body was written")


class Post(BaseModel):
    """Blog post owned by a single user.

    Persisted with ``status=pending`` on creation and promoted to the
    owner's requested terminal status by the enrichment worker.
    """

    post_id: UUID = Field(..., description="Post UUID (primary key)")
    owner_id: UUID = Field(..., description="Owner UUID")
    slug: str = Field(..., min_length=1, max_length=255)
    title: str = Field(..., min_length=1, max_length=512)
    content_markdown: str = Field(default="", description="Markdown body")
    status: PostStatus = Field(default=PostStatus.PENDING)
    og_image_url: str | None = Field(default=None, description="Social preview rendition")
    thumbnail_url: str | None = Field(default=None, description="Thumbnail rendition")
    embedding: list[float] | None = Field(default=None, description="Content embedding")
    metadata: dict[str, Any] = Field(default_factory=dict)
    content_version: int = Field(default=1, ge=1, description="Bumped on every content edit")
    version_history: list[PostVersion] = Field(default_factory=list)
    published_at: datetime | None = Field(default=None)
    created_at: datetime = Field(..., description="UTC creation timestamp")
    updated_at: datetime = Field(..., description="UTC timestamp of last update")

    @field_validator("slug")
    @classmethod
    def validate_slug(cls, v: str) -> str:
        """Slugs only contain lowercase letters, digits and dashes."""
        if not _SLUG_PATTERN.match(v):
            raise ValueError("slug only includes lowercase letters, digits and '-'")
        return v

    @property
    def enriched_version(self) -> int:
        """Content version the worker last enriched (0 when never enriched)."""
        try:
            return int(self.metadata.get(META_ENRICHED_VERSION, 0))
        except (TypeError, ValueError):
            return 0

    @property
    def requested_status(self) -> PostStatus:
        return requested_status_from(self.metadata)

    def needs_enrichment(self) -> bool:
        """Whether the worker still has work to do for this post."""
        return self.status == PostStatus.PENDING or self.enriched_version < self.content_version

    def add_version(self, timestamp: datetime, old_content: str) -> None:
        """Record the previous body, newest first, keeping at most ten entries."""
        version = PostVersion(post_id=self.post_id, content_diff=old_content, created_at=timestamp)
        self.version_history = [version, *self.version_history][:MAX_VERSION_HISTORY]


class Media(BaseModel):
    """Uploaded media item (image) owned by a single user."""

    media_id: UUID = Field(..., description="Media UUID (primary key)")
    owner_id: UUID = Field(..., description="Owner UUID")
    provider: str = Field(default="cloudinary", max_length=64)
    url: str = Field(..., min_length=1, max_length=2048, description="Primary content URL")
    thumbnail_url: str | None = Field(default=None)
    status: MediaStatus = Field(default=MediaStatus.PENDING)
    metadata: dict[str, Any] = Field(default_factory=dict)
    is_public: bool = Field(default=False)
    created_at: datetime = Field(..., description="UTC creation timestamp")
    updated_at: datetime = Field(..., description="UTC timestamp of last update")


__all__ = [
    "MAX_VERSION_HISTORY",
    "META_ENRICHED_VERSION",
    "META_ENRICHMENT_ERROR",
    "META_ORIGINAL_PUBLIC_ID",
    "META_ORIGINAL_URL",
    "META_REQUESTED_STATUS",
    "REQUESTABLE_POST_STATUSES",
    "Media",
    "MediaStatus",
    "Post",
    "PostStatus",
    "PostVersion",
    "requested_status_from",
]
