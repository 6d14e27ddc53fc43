"""PostgreSQL implementations of the post and media repositories.

Posts and media live in the ``content`` schema. Post embeddings are stored
in a pgvector column and searched with cosine distance (``<=>``). Blocking
psycopg2 calls run in a worker thread so the event loop stays responsive.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from datetime import datetime
from typing import Any, TypeVar
from uuid import UUID

from psycopg2.extensions import connection
from psycopg2.extras import Json, RealDictCursor

from packages.common.logging import get_logger
from packages.common.postgres_pool import PostgresPool
from packages.core.ports.repositories import MediaRepository, PostEnrichment, PostRepository
from packages.schemas.models import Media, MediaStatus, Post, PostStatus, PostVersion

logger = get_logger(__name__)

T = TypeVar("T")

# SQL twin of requested_status_from().
_REQUESTED_STATUS_SQL = (
    "CASE WHEN metadata->>'requested_status' IN ('draft', 'private', 'public') "
    "THEN metadata->>'requested_status' ELSE 'draft' END"
)

SCHEMA_SQL = """
CREATE EXTENSION IF NOT EXISTS vector;
CREATE SCHEMA IF NOT EXISTS content;

CREATE TABLE IF NOT EXISTS content.posts (
    post_id UUID PRIMARY KEY,
    owner_id UUID NOT NULL,
    slug VARCHAR(255) NOT NULL,
    title VARCHAR(512) NOT NULL,
    content_markdown TEXT NOT NULL DEFAULT '',
    status VARCHAR(16) NOT NULL,
    og_image_url TEXT,
    thumbnail_url TEXT,
    embedding vector({dim}),
    metadata JSONB NOT NULL DEFAULT '{{}}',
    content_version INTEGER NOT NULL DEFAULT 1,
    version_history JSONB NOT NULL DEFAULT '[]',
    published_at TIMESTAMPTZ,
    created_at TIMESTAMPTZ NOT NULL,
    updated_at TIMESTAMPTZ NOT NULL,
    UNIQUE (owner_id, slug)
);

CREATE INDEX IF NOT EXISTS idx_posts_pending
    ON content.posts (created_at) WHERE status = 'pending';

CREATE TABLE IF NOT EXISTS content.media (
    media_id UUID PRIMARY KEY,
    owner_id UUID NOT NULL,
    provider VARCHAR(64) NOT NULL,
    url TEXT NOT NULL,
    thumbnail_url TEXT,
    status VARCHAR(16) NOT NULL,
    metadata JSONB NOT NULL DEFAULT '{{}}',
    is_public BOOLEAN NOT NULL DEFAULT FALSE,
    created_at TIMESTAMPTZ NOT NULL,
    updated_at TIMESTAMPTZ NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_media_pending
    ON content.media (created_at) WHERE status = 'pending';

CREATE TABLE IF NOT EXISTS content.resource_tags (
    resource_id UUID NOT NULL,
    resource_type VARCHAR(32) NOT NULL,
    tag_id UUID NOT NULL,
    PRIMARY KEY (resource_id, resource_type, tag_id)
);
"""


def ensure_schema(conn: connection, embedding_dim: int = 768) -> None:
    """Create the content schema, tables and indexes if they do not exist."""
    with conn.cursor() as cur:
        cur.execute(SCHEMA_SQL.format(dim=int(embedding_dim)))
    conn.commit()
    logger.info("Content schema ready", extra={"embedding_dim": embedding_dim})


def vector_literal(vector: list[float]) -> str:
    """Render a vector in pgvector's text input format."""
    return "[" + ",".join(repr(float(x)) for x in vector) + "]"


def _parse_vector(raw: Any) -> list[float] | None:
    if raw is None:
        return None
    if isinstance(raw, str):
        body = raw.strip().strip("[]")
        return [float(x) for x in body.split(",")] if body else []
    return [float(x) for x in raw]


class _PostgresStore:
    def __init__(self, pool: PostgresPool) -> None:
        self.pool = pool

    async def _run(self, fn: Callable[[connection], T]) -> T:
        return await asyncio.to_thread(self._in_transaction, fn)

    def _in_transaction(self, fn: Callable[[connection], T]) -> T:
        with self.pool.get_connection() as conn:
            try:
                result = fn(conn)
            except Exception:
                conn.rollback()
                raise
            conn.commit()
            return result


class PostgresPostRepository(_PostgresStore, PostRepository):
    """Post persistence backed by ``content.posts``."""

    _COLUMNS = (
        "post_id, owner_id, slug, title, content_markdown, status, og_image_url, "
        "thumbnail_url, embedding::text AS embedding, metadata, content_version, "
        "version_history, published_at, created_at, updated_at"
    )

    def __init__(self, pool: PostgresPool) -> None:
        super().__init__(pool)
        logger.info("Initialized PostgresPostRepository")

    async def save(self, post: Post) -> None:
        def _insert(conn: connection) -> None:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    INSERT INTO content.posts (
                        post_id, owner_id, slug, title, content_markdown, status,
                        og_image_url, thumbnail_url, embedding, metadata,
                        content_version, version_history, published_at,
                        created_at, updated_at
                    ) VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s::vector, %s, %s, %s, %s, %s, %s)
                    """,
                    (
                        str(post.post_id),
                        str(post.owner_id),
                        post.slug,
                        post.title,
                        post.content_markdown,
                        post.status.value,
                        post.og_image_url,
                        post.thumbnail_url,
                        vector_literal(post.embedding) if post.embedding else None,
                        Json(post.metadata),
                        post.content_version,
                        Json(_dump_history(post)),
                        post.published_at,
                        post.created_at,
                        post.updated_at,
                    ),
                )

        await self._run(_insert)
        logger.debug("Saved post", extra={"post_id": str(post.post_id)})

    async def update(self, post: Post) -> None:
        # Enrichment columns belong to the worker; a pending row is only
        # promoted by apply_enrichment.
        status = post.status if post.status != PostStatus.PENDING else post.requested_status

        def _update(conn: connection) -> None:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    UPDATE content.posts SET
                        slug = %s, title = %s, content_markdown = %s,
                        status = CASE WHEN status = 'pending' THEN status ELSE %s END,
                        metadata = (%s::jsonb - 'enriched_version') || jsonb_strip_nulls(
                            jsonb_build_object('enriched_version', metadata->'enriched_version')
                        ),
                        content_version = %s, version_history = %s,
                        published_at = CASE
                            WHEN status <> 'pending' AND published_at IS NULL AND %s = 'public'
                            THEN %s ELSE published_at END,
                        updated_at = %s
                    WHERE post_id = %s AND owner_id = %s
                    """,
                    (
                        post.slug,
                        post.title,
                        post.content_markdown,
                        status.value,
                        Json(post.metadata),
                        post.content_version,
                        Json(_dump_history(post)),
                        status.value,
                        post.published_at or post.updated_at,
                        post.updated_at,
                        str(post.post_id),
                        str(post.owner_id),
                    ),
                )

        await self._run(_update)

    async def apply_enrichment(self, enrichment: PostEnrichment) -> PostStatus | None:
        embedding = vector_literal(enrichment.embedding) if enrichment.embedding else None

        def _apply(conn: connection) -> str | None:
            # SET expressions read the row as it was before this statement.
            with conn.cursor() as cur:
                cur.execute(
                    f"""
                    UPDATE content.posts SET
                        og_image_url = %s, thumbnail_url = %s,
                        embedding = COALESCE(%s::vector, embedding),
                        metadata = CASE WHEN %s::int IS NULL THEN metadata
                            ELSE jsonb_set(metadata, '{{enriched_version}}', to_jsonb(%s::int))
                            END,
                        status = CASE WHEN status = 'pending' THEN {_REQUESTED_STATUS_SQL}
                            ELSE status END,
                        published_at = CASE
                            WHEN status = 'pending' AND published_at IS NULL
                                AND metadata->>'requested_status' = 'public'
                            THEN %s ELSE published_at END,
                        updated_at = %s
                    WHERE post_id = %s AND owner_id = %s AND content_version = %s
                    RETURNING status
                    """,
                    (
                        enrichment.og_image_url,
                        enrichment.thumbnail_url,
                        embedding,
                        enrichment.enriched_version,
                        enrichment.enriched_version,
                        enrichment.enriched_at,
                        enrichment.enriched_at,
                        str(enrichment.post_id),
                        str(enrichment.owner_id),
                        enrichment.content_version,
                    ),
                )
                row = cur.fetchone()
                return row[0] if row else None

        status = await self._run(_apply)
        return PostStatus(status) if status is not None else None

    async def delete(self, post_id: UUID, owner_id: UUID) -> None:
        def _delete(conn: connection) -> None:
            with conn.cursor() as cur:
                cur.execute(
                    "DELETE FROM content.posts WHERE post_id = %s AND owner_id = %s",
                    (str(post_id), str(owner_id)),
                )

        await self._run(_delete)

    async def find_by_id(self, post_id: UUID, owner_id: UUID) -> Post | None:
        def _select(conn: connection) -> dict[str, Any] | None:
            with conn.cursor(cursor_factory=RealDictCursor) as cur:
                cur.execute(
                    f"SELECT {self._COLUMNS} FROM content.posts "
                    "WHERE post_id = %s AND owner_id = %s",
                    (str(post_id), str(owner_id)),
                )
                return cur.fetchone()

        row = await self._run(_select)
        return _row_to_post(row) if row else None

    async def search_by_embedding(
        self, vector: list[float], owner_id: UUID, limit: int
    ) -> list[Post]:
        def _search(conn: connection) -> list[dict[str, Any]]:
            with conn.cursor(cursor_factory=RealDictCursor) as cur:
                cur.execute(
                    f"SELECT {self._COLUMNS} FROM content.posts "
                    "WHERE owner_id = %s AND embedding IS NOT NULL "
                    "ORDER BY embedding <=> %s::vector LIMIT %s",
                    (str(owner_id), vector_literal(vector), limit),
                )
                return cur.fetchall()

        rows = await self._run(_search)
        return [_row_to_post(row) for row in rows]

    async def find_pending(self, *, older_than: datetime, limit: int) -> list[Post]:
        def _select(conn: connection) -> list[dict[str, Any]]:
            with conn.cursor(cursor_factory=RealDictCursor) as cur:
                cur.execute(
                    f"SELECT {self._COLUMNS} FROM content.posts "
                    "WHERE status = 'pending' AND created_at < %s "
                    "ORDER BY created_at ASC LIMIT %s",
                    (older_than, limit),
                )
                return cur.fetchall()

        rows = await self._run(_select)
        logger.info(f"Found {len(rows)} pending posts")
        return [_row_to_post(row) for row in rows]


class PostgresMediaRepository(_PostgresStore, MediaRepository):
    """Media persistence backed by ``content.media``."""

    def __init__(self, pool: PostgresPool) -> None:
        super().__init__(pool)
        logger.info("Initialized PostgresMediaRepository")

    async def save(self, media: Media) -> None:
        def _insert(conn: connection) -> None:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    INSERT INTO content.media (
                        media_id, owner_id, provider, url, thumbnail_url, status,
                        metadata, is_public, created_at, updated_at
                    ) VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
                    """,
                    (
                        str(media.media_id),
                        str(media.owner_id),
                        media.provider,
                        media.url,
                        media.thumbnail_url,
                        media.status.value,
                        Json(media.metadata),
                        media.is_public,
                        media.created_at,
                        media.updated_at,
                    ),
                )

        await self._run(_insert)

    async def update(self, media: Media) -> None:
        def _update(conn: connection) -> None:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    UPDATE content.media SET
                        url = %s, thumbnail_url = %s, status = %s, metadata = %s,
                        is_public = %s, updated_at = %s
                    WHERE media_id = %s AND owner_id = %s
                    """,
                    (
                        media.url,
                        media.thumbnail_url,
                        media.status.value,
                        Json(media.metadata),
                        media.is_public,
                        media.updated_at,
                        str(media.media_id),
                        str(media.owner_id),
                    ),
                )

        await self._run(_update)

    async def delete(self, media_id: UUID, owner_id: UUID) -> None:
        def _delete(conn: connection) -> None:
            with conn.cursor() as cur:
                cur.execute(
                    "DELETE FROM content.media WHERE media_id = %s AND owner_id = %s",
                    (str(media_id), str(owner_id)),
                )

        await self._run(_delete)

    async def find_by_id(self, media_id: UUID, owner_id: UUID) -> Media | None:
        def _select(conn: connection) -> dict[str, Any] | None:
            with conn.cursor(cursor_factory=RealDictCursor) as cur:
                cur.execute(
                    "SELECT * FROM content.media WHERE media_id = %s AND owner_id = %s",
                    (str(media_id), str(owner_id)),
                )
                return cur.fetchone()

        row = await self._run(_select)
        return _row_to_media(row) if row else None

    async def find_pending(self, *, older_than: datetime, limit: int) -> list[Media]:
        def _select(conn: connection) -> list[dict[str, Any]]:
            with conn.cursor(cursor_factory=RealDictCursor) as cur:
                cur.execute(
                    "SELECT * FROM content.media "
                    "WHERE status = 'pending' AND created_at < %s "
                    "ORDER BY created_at ASC LIMIT %s",
                    (older_than, limit),
                )
                return cur.fetchall()

        rows = await self._run(_select)
        logger.info(f"Found {len(rows)} pending media")
        return [_row_to_media(row) for row in rows]


class PostgresTagLinker(_PostgresStore):
    """Tag links stored in ``content.resource_tags``."""

    async def set_tags_for_resource(
        self, resource_id: UUID, resource_type: str, tag_ids: list[UUID]
    ) -> None:
        def _replace(conn: connection) -> None:
            with conn.cursor() as cur:
                cur.execute(
                    "DELETE FROM content.resource_tags "
                    "WHERE resource_id = %s AND resource_type = %s",
                    (str(resource_id), resource_type),
                )
                for tag_id in tag_ids:
                    cur.execute(
                        "INSERT INTO content.resource_tags (resource_id, resource_type, tag_id) "
                        "VALUES (%s, %s, %s) ON CONFLICT DO NOTHING",
                        (str(resource_id), resource_type, str(tag_id)),
                    )

        await self._run(_replace)


def _dump_history(post: Post) -> list[dict[str, Any]]:
    return [version.model_dump(mode="json") for version in post.version_history]


def _row_to_post(row: dict[str, Any]) -> Post:
    return Post(
        post_id=UUID(str(row["post_id"])),
        owner_id=UUID(str(row["owner_id"])),
        slug=row["slug"],
        title=row["title"],
        content_markdown=row["content_markdown"] or "",
        status=PostStatus(row["status"]),
        og_image_url=row["og_image_url"],
        thumbnail_url=row["thumbnail_url"],
        embedding=_parse_vector(row["embedding"]),
        metadata=row["metadata"] or {},
        content_version=row["content_version"],
        version_history=[PostVersion.model_validate(v) for v in row["version_history"] or []],
        published_at=row["published_at"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def _row_to_media(row: dict[str, Any]) -> Media:
    return Media(
        media_id=UUID(str(row["media_id"])),
        owner_id=UUID(str(row["owner_id"])),
        provider=row["provider"],
        url=row["url"],
        thumbnail_url=row["thumbnail_url"],
        status=MediaStatus(row["status"]),
        metadata=row["metadata"] or {},
        is_public=row["is_public"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


__all__ = [
    "PostgresMediaRepository",
    "PostgresPostRepository",
    "PostgresTagLinker",
    "SCHEMA_SQL",
    "ensure_schema",
    "vector_literal",
]
