"""Ollama clients implementing the embedding and generative service ports.

Uses Ollama's native HTTP API through httpx:
- ``POST /api/embeddings`` for query and post embeddings
- ``POST /api/generate`` for chat completions (non-streaming)
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from packages.common.resilience import resilient_async_call

logger = logging.getLogger(__name__)


class EmbedderError(Exception):
    """Raised when the embedding endpoint fails or returns an invalid vector."""


class GenerationError(Exception):
    """Raised when the generation endpoint fails or returns no text."""


class _OllamaClient:
    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 60.0,
        max_attempts: int = 3,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        if not base_url:
            raise ValueError("base_url cannot be empty")
        self.base_url = base_url.rstrip("/")
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._post = resilient_async_call(
            max_attempts=max_attempts, retry_on=(httpx.TransportError,)
        )(self._post_once)

    async def _post_once(self, path: str, payload: dict[str, Any]) -> dict[str, Any]:
        response = await self._client.post(f"{self.base_url}{path}", json=payload)
        response.raise_for_status()
        data = response.json()
        if not isinstance(data, dict):
            raise ValueError(f"expected JSON object, got {type(data).__name__}")
        return data

    async def aclose(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()


class OllamaEmbeddingClient(_OllamaClient):
    """Embedding service backed by an Ollama embedding model.

    Validates that every vector has the configured dimension so a model
    swap cannot silently write vectors the similarity index rejects.
    """

    def __init__(
        self,
        base_url: str,
        *,
        model: str = "nomic-embed-text",
        expected_dim: int = 768,
        timeout: float = 60.0,
        max_attempts: int = 3,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        if expected_dim <= 0:
            raise ValueError("expected_dim must be positive")
        super().__init__(base_url, timeout=timeout, max_attempts=max_attempts, client=client)
        self.model = model
        self.expected_dim = expected_dim
        logger.info(
            "Initialized OllamaEmbeddingClient",
            extra={"base_url": self.base_url, "model": model, "expected_dim": expected_dim},
        )

    async def embed(self, text: str) -> list[float]:
        """Embed a single text.

        Raises:
            EmbedderError: On HTTP errors or an invalid response.
        """
        try:
            data = await self._post("/api/embeddings", {"model": self.model, "prompt": text})
        except httpx.HTTPError as e:
            raise EmbedderError(f"Ollama embedding request failed: {e}") from e
        except ValueError as e:
            raise EmbedderError(f"Invalid embedding response: {e}") from e

        embedding = data.get("embedding")
        if not isinstance(embedding, list) or not embedding:
            raise EmbedderError("Ollama returned no embedding")
        if len(embedding) != self.expected_dim:
            raise EmbedderError(
                f"Invalid embedding dimension: expected {self.expected_dim}, got {len(embedding)}"
            )

        return [float(x) for x in embedding]


class OllamaGenerativeClient(_OllamaClient):
    """Generative service backed by an Ollama chat model."""

    def __init__(
        self,
        base_url: str,
        *,
        model: str = "phi3:mini",
        temperature: float = 0.2,
        timeout: float = 120.0,
        max_attempts: int = 3,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        super().__init__(base_url, timeout=timeout, max_attempts=max_attempts, client=client)
        self.model = model
        self.temperature = temperature

    async def complete(self, prompt: str) -> str:
        """Generate a completion for ``prompt``.

        Raises:
            GenerationError: On HTTP errors or an empty response.
        """
        payload = {
            "model": self.model,
            "prompt": prompt,
            "stream": False,
            "options": {"temperature": self.temperature},
        }
        try:
            data = await self._post("/api/generate", payload)
        except httpx.HTTPError as e:
            raise GenerationError(f"Ollama generation request failed: {e}") from e
        except ValueError as e:
            raise GenerationError(f"Invalid generation response: {e}") from e

        text = data.get("response")
        if not isinstance(text, str) or not text.strip():
            raise GenerationError("Ollama returned no response text")
        return text


__all__ = ["EmbedderError", "GenerationError", "OllamaEmbeddingClient", "OllamaGenerativeClient"]
