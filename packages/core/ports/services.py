"""Capability ports for external services used by the content pipeline."""

from __future__ import annotations

from typing import BinaryIO, Protocol


class AssetStore(Protocol):
    """Durable blob storage returning content URLs."""

    async def upload(self, stream: BinaryIO, folder: str, public_id: str) -> str:
        """Store ``stream`` under ``folder/public_id`` and return its URL."""
        ...

    async def delete(self, public_id: str) -> None:
        """Remove a stored asset."""
        ...

    def derive_url(self, public_id: str, transformation: str) -> str:
        """Return the URL of a transformed rendition without re-uploading."""
        ...


class EmbeddingService(Protocol):
    """Maps text to a fixed-dimension vector."""

    async def embed(self, text: str) -> list[float]:
        """Return the embedding vector for ``text``."""
        ...


class GenerativeService(Protocol):
    """Maps a prompt to generated text."""

    async def complete(self, prompt: str) -> str:
        """Return the model's completion for ``prompt``."""
        ...


__all__ = ["AssetStore", "EmbeddingService", "GenerativeService"]
