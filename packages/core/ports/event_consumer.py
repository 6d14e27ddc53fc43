"""Ports for consuming events from an ordered, durable channel."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(slots=True, frozen=True)
class EventMessage:
    """A fetched message together with the position needed to commit it."""

    topic: str
    key: str
    value: bytes
    message_id: str


class EventConsumer(ABC):
    """Consumer-group member bound to a single topic.

    ``fetch`` must return messages from the last committed position, so a
    message that is fetched but never committed is delivered again.
    """

    topic: str

    @abstractmethod
    async def fetch(self) -> EventMessage | None:
        """Block until a message is available; ``None`` when the wait times out."""

    @abstractmethod
    async def commit(self, message: EventMessage) -> None:
        """Mark ``message`` as processed for this consumer group."""

    async def close(self) -> None:  # noqa: B027 - optional hook
        """Release transport resources."""


__all__ = ["EventConsumer", "EventMessage"]
