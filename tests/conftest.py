"""Shared pytest fixtures for the Personal OS test suite.

Provides test configuration, in-memory port implementations and model
factories used across all test modules.
"""

import os
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any
from uuid import UUID, uuid4

import pytest

from packages.common.config import PersonalOSConfig, get_config
from packages.enrichment.services import EventDispatcher
from packages.schemas.models import (
    META_ORIGINAL_PUBLIC_ID,
    META_ORIGINAL_URL,
    META_REQUESTED_STATUS,
    Media,
    MediaStatus,
    Post,
    PostStatus,
)
from tests.utils.mocks import (
    FakeAssetStore,
    FakeEmbeddingService,
    FakeGenerativeService,
    FakeTagLinker,
    InMemoryEventBroker,
    InMemoryMediaRepository,
    InMemoryPostRepository,
    create_mock_redis_client,
)

# ========== Test Environment Setup ==========


@pytest.fixture(scope="session", autouse=True)
def setup_test_env():
    """Pin environment variables so get_config() is deterministic in tests."""
    os.environ["LOG_LEVEL"] = "DEBUG"
    os.environ.setdefault("REDIS_URL", "redis://localhost:6379")
    os.environ.setdefault("POSTGRES_USER", "personal_os")
    os.environ.setdefault("POSTGRES_PASSWORD", "test")
    os.environ.setdefault("POSTGRES_DB", "personal_os")
    os.environ.setdefault("OLLAMA_URL", "http://localhost:11434")
    get_config.cache_clear()

    yield

    get_config.cache_clear()


# ========== Configuration Fixtures ==========


@pytest.fixture
def test_config() -> PersonalOSConfig:
    """Configuration pointing at test hosts."""
    return PersonalOSConfig(
        redis_url="redis://test-cache:6379",
        postgres_host="test-db",
        cloudinary_cloud_name="demo",
        cloudinary_api_key="key",
        cloudinary_api_secret="secret",
        ollama_url="http://test-ollama:11434",
        worker_fetch_error_delay=0,
        log_level="DEBUG",
    )


# ========== Port Fixtures ==========


@pytest.fixture
def mock_redis_client(mocker: Any) -> Any:
    return create_mock_redis_client(mocker)


@pytest.fixture
def broker() -> InMemoryEventBroker:
    return InMemoryEventBroker()


@pytest.fixture
def dispatcher(broker: InMemoryEventBroker) -> EventDispatcher:
    return EventDispatcher(broker)


@pytest.fixture
def post_repository() -> InMemoryPostRepository:
    return InMemoryPostRepository()


@pytest.fixture
def media_repository() -> InMemoryMediaRepository:
    return InMemoryMediaRepository()


@pytest.fixture
def asset_store() -> FakeAssetStore:
    return FakeAssetStore()


@pytest.fixture
def embedder() -> FakeEmbeddingService:
    return FakeEmbeddingService()


@pytest.fixture
def llm() -> FakeGenerativeService:
    return FakeGenerativeService()


@pytest.fixture
def tag_linker() -> FakeTagLinker:
    return FakeTagLinker()


@pytest.fixture
def owner_id() -> UUID:
    return uuid4()


# ========== Factory Functions ==========


@pytest.fixture
def post_factory(owner_id: UUID) -> Callable[..., Post]:
    """Factory for posts; defaults to a freshly created pending post."""

    def _create(**overrides: Any) -> Post:
        post_id = overrides.pop("post_id", uuid4())
        owner = overrides.pop("owner_id", owner_id)
        requested = overrides.pop("requested_status", PostStatus.DRAFT)
        now = datetime.now(UTC)
        public_id = f"users/{owner}/originals/{post_id}"
        defaults: dict[str, Any] = {
            "post_id": post_id,
            "owner_id": owner,
            "slug": "hello-world",
            "title": "Hello World",
            "content_markdown": "First post body.",
            "status": PostStatus.PENDING,
            "metadata": {
                META_REQUESTED_STATUS: PostStatus(requested).value,
                META_ORIGINAL_PUBLIC_ID: public_id,
                META_ORIGINAL_URL: f"https://res.cloudinary.com/demo/image/upload/{public_id}",
            },
            "created_at": now,
            "updated_at": now,
        }
        defaults.update(overrides)
        return Post(**defaults)

    return _create


@pytest.fixture
def media_factory(owner_id: UUID) -> Callable[..., Media]:
    """Factory for media; defaults to a freshly uploaded pending item."""

    def _create(**overrides: Any) -> Media:
        media_id = overrides.pop("media_id", uuid4())
        owner = overrides.pop("owner_id", owner_id)
        now = datetime.now(UTC)
        public_id = f"users/{owner}/media/originals/{media_id}"
        url = f"https://res.cloudinary.com/demo/image/upload/{public_id}"
        defaults: dict[str, Any] = {
            "media_id": media_id,
            "owner_id": owner,
            "url": url,
            "status": MediaStatus.PENDING,
            "metadata": {META_ORIGINAL_PUBLIC_ID: public_id, META_ORIGINAL_URL: url},
            "created_at": now,
            "updated_at": now,
        }
        defaults.update(overrides)
        return Media(**defaults)

    return _create
