"""Ports for publishing domain events to external transports."""

from __future__ import annotations

from abc import ABC, abstractmethod


class EventPublisher(ABC):
    """Publisher interface for keyed lifecycle events."""

    @abstractmethod
    async def publish(self, topic: str, key: str, payload: bytes) -> None:
        """Append a payload to ``topic`` under partition key ``key``."""


__all__ = ["EventPublisher"]
