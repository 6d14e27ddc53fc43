"""Tests for ChatUseCase."""

import pytest

from packages.core.errors import ChatError
from packages.core.use_cases.chat import DEFAULT_CHAT_LIMIT, ChatInput, ChatUseCase
from packages.schemas.models import PostStatus
from tests.utils.mocks import FakeEmbeddingService, FakeGenerativeService, InMemoryPostRepository


async def seed_posts(repository, post_factory, embedder, count: int, **overrides) -> list:
    posts = []
    for i in range(count):
        post = post_factory(
            slug=f"post-{i}",
            title=f"Post {i}",
            content_markdown=f"Body number {i}" + "!" * i,
            status=PostStatus.PUBLIC,
            **overrides,
        )
        post.embedding = await embedder.embed(post.content_markdown)
        await repository.save(post)
        posts.append(post)
    return posts


class TestChatUseCase:
    @pytest.mark.asyncio
    async def test_zero_limit_uses_default(
        self, post_repository, embedder, llm, post_factory, owner_id
    ) -> None:
        await seed_posts(post_repository, post_factory, embedder, 5)

        result = await ChatUseCase(embedder, llm, post_repository).execute(
            ChatInput(query="What did I write?", owner_id=owner_id, limit=0)
        )

        assert len(result.sources) == DEFAULT_CHAT_LIMIT
        assert result.response == "An answer."

    @pytest.mark.asyncio
    async def test_prompt_contains_sources_and_question(
        self, post_repository, embedder, llm, post_factory, owner_id
    ) -> None:
        await seed_posts(post_repository, post_factory, embedder, 2)

        result = await ChatUseCase(embedder, llm, post_repository).execute(
            ChatInput(query="Which posts exist?", owner_id=owner_id, limit=2)
        )

        [prompt] = llm.prompts
        assert prompt.startswith("Based on the following contexts:")
        for idx, source in enumerate(result.sources, start=1):
            assert f"--- Context {idx} (Title: {source.title}) ---" in prompt
            assert source.content_markdown in prompt
        assert "--- Question ---\nWhich posts exist?" in prompt
        assert prompt.endswith("based only on the provided contexts:")

    @pytest.mark.asyncio
    async def test_search_is_scoped_to_owner(
        self, post_repository, embedder, llm, post_factory, owner_id
    ) -> None:
        from uuid import uuid4

        await seed_posts(post_repository, post_factory, embedder, 2, owner_id=uuid4())

        result = await ChatUseCase(embedder, llm, post_repository).execute(
            ChatInput(query="anything", owner_id=owner_id)
        )

        assert result.sources == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("query", ["", "   "])
    async def test_empty_query_rejected(
        self, post_repository, embedder, llm, owner_id, query: str
    ) -> None:
        with pytest.raises(ValueError):
            await ChatUseCase(embedder, llm, post_repository).execute(
                ChatInput(query=query, owner_id=owner_id)
            )

        assert embedder.calls == []

    @pytest.mark.asyncio
    async def test_embedding_failure_wrapped(self, post_repository, llm, owner_id) -> None:
        embedder = FakeEmbeddingService(error=ConnectionError("down"))

        with pytest.raises(ChatError) as exc_info:
            await ChatUseCase(embedder, llm, post_repository).execute(
                ChatInput(query="q", owner_id=owner_id)
            )

        assert exc_info.value.stage == "embedding"

    @pytest.mark.asyncio
    async def test_retrieval_failure_wrapped(self, embedder, llm, owner_id, mocker) -> None:
        repository = InMemoryPostRepository()
        mocker.patch.object(
            repository, "search_by_embedding", side_effect=ConnectionError("db down")
        )

        with pytest.raises(ChatError) as exc_info:
            await ChatUseCase(embedder, llm, repository).execute(
                ChatInput(query="q", owner_id=owner_id)
            )

        assert exc_info.value.stage == "retrieval"
        assert llm.prompts == []

    @pytest.mark.asyncio
    async def test_generation_failure_wrapped(self, post_repository, embedder, owner_id) -> None:
        llm = FakeGenerativeService(error=TimeoutError("slow"))

        with pytest.raises(ChatError) as exc_info:
            await ChatUseCase(embedder, llm, post_repository).execute(
                ChatInput(query="q", owner_id=owner_id)
            )

        assert exc_info.value.stage == "generation"
