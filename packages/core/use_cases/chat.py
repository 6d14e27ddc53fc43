"""ChatUseCase - retrieval-augmented answers over the owner's posts.

Flow: embed query → nearest posts for the owner → prompt → generative
service. Synchronous with respect to the caller; no broker involvement.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from uuid import UUID

from packages.core.errors import ChatError
from packages.core.ports.repositories import PostRepository
from packages.core.ports.services import EmbeddingService, GenerativeService
from packages.retrieval.context.prompts import build_chat_prompt
from packages.schemas.models import Post

logger = logging.getLogger(__name__)

DEFAULT_CHAT_LIMIT = 3


@dataclass
class ChatInput:
    query: str
    owner_id: UUID
    limit: int = DEFAULT_CHAT_LIMIT


@dataclass
class ChatOutput:
    response: str
    sources: list[Post] = field(default_factory=list)


class ChatUseCase:
    """Answer a question using the owner's most similar posts as context."""

    def __init__(
        self,
        embedder: EmbeddingService,
        llm: GenerativeService,
        post_repository: PostRepository,
    ) -> None:
        self.embedder = embedder
        self.llm = llm
        self.post_repository = post_repository

    async def execute(self, input: ChatInput) -> ChatOutput:
        """Run a chat query.

        Args:
            input: Query, owner scope and result limit (``<= 0`` means default).

        Returns:
            Generated answer plus the posts used as context.

        Raises:
            ValueError: If the query is empty.
            ChatError: If embedding, retrieval or generation fails.
        """
        if not input.query or not input.query.strip():
            raise ValueError("Query cannot be empty")

        limit = input.limit if input.limit > 0 else DEFAULT_CHAT_LIMIT
        log_extra = {"owner_id": str(input.owner_id), "limit": limit}
        logger.info("Chat query received", extra=log_extra)

        try:
            vector = await self.embedder.embed(input.query)
        except Exception as exc:
            logger.exception("Query embedding failed", extra=log_extra)
            raise ChatError("embedding", "failed to process query embedding") from exc

        try:
            sources = await self.post_repository.search_by_embedding(vector, input.owner_id, limit)
        except Exception as exc:
            logger.exception("Similarity search failed", extra=log_extra)
            raise ChatError("retrieval", "failed to retrieve relevant documents") from exc

        sources = list(sources)[:limit]
        logger.info("Found relevant sources", extra={**log_extra, "count": len(sources)})

        prompt = build_chat_prompt(input.query, sources)

        try:
            response = await self.llm.complete(prompt)
        except Exception as exc:
            logger.exception("Generation failed", extra=log_extra)
            raise ChatError("generation", "failed to generate LLM response") from exc

        return ChatOutput(response=response, sources=sources)


__all__ = ["DEFAULT_CHAT_LIMIT", "ChatInput", "ChatOutput", "ChatUseCase"]
