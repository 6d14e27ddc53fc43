"""Client adapters for external systems.

Heavy dependencies (psycopg2, httpx, etc.) belong here, not in packages/common.
"""

from packages.clients.cloudinary_asset_store import AssetStoreError, CloudinaryAssetStore
from packages.clients.ollama import (
    EmbedderError,
    GenerationError,
    OllamaEmbeddingClient,
    OllamaGenerativeClient,
)
from packages.clients.postgres_content_store import (
    PostgresMediaRepository,
    PostgresPostRepository,
    PostgresTagLinker,
    ensure_schema,
)

__all__ = [
    "AssetStoreError",
    "CloudinaryAssetStore",
    "EmbedderError",
    "GenerationError",
    "OllamaEmbeddingClient",
    "OllamaGenerativeClient",
    "PostgresMediaRepository",
    "PostgresPostRepository",
    "PostgresTagLinker",
    "ensure_schema",
]
