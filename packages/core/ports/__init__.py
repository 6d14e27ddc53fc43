"""Ports for core use-cases."""

from __future__ import annotations

from packages.core.ports.event_consumer import EventConsumer, EventMessage
from packages.core.ports.event_publisher import EventPublisher
from packages.core.ports.repositories import MediaRepository, PostRepository, TagLinker
from packages.core.ports.services import AssetStore, EmbeddingService, GenerativeService

__all__ = [
    "AssetStore",
    "EmbeddingService",
    "EventConsumer",
    "EventMessage",
    "EventPublisher",
    "GenerativeService",
    "MediaRepository",
    "PostRepository",
    "TagLinker",
]
