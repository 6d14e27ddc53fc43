"""Redis Streams consumer for content lifecycle events."""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, cast

from redis.asyncio import Redis

from packages.core.ports.event_consumer import EventConsumer, EventMessage
from packages.enrichment.adapters.redis_streams_publisher import ensure_consumer_group

logger = logging.getLogger(__name__)

# Reading with "0" returns this consumer's delivered-but-unacknowledged
# entries; ">" returns entries never delivered to the group.
_PENDING_ID = "0"
_NEW_ID = ">"
_START_ID = "0-0"
_CLAIM_BATCH = 100


class ConsumerGroupBusyError(RuntimeError):
    """Another consumer of the group is still active."""

    def __init__(self, stream_name: str, group_name: str, consumer_name: str) -> None:
        super().__init__(
            f"consumer {consumer_name!r} is active in group {group_name!r} of {stream_name!r}"
        )
        self.consumer_name = consumer_name


def _text(value: Any) -> str:
    return value.decode() if isinstance(value, bytes) else str(value)


class RedisStreamsEventConsumer(EventConsumer):
    """Consume one stream as a member of a consumer group.

    Un-acknowledged entries owned by this consumer are re-read before new
    ones, which gives redelivery from the last committed position. A group
    has no key affinity, so per-key ordering holds only while the group has
    a single active consumer; see ``claim_group``.
    """

    def __init__(
        self,
        redis_client: Redis,
        *,
        stream_name: str,
        group_name: str,
        consumer_name: str,
        block_ms: int = 5000,
    ) -> None:
        self.redis_client = redis_client
        self.topic = stream_name
        self.group_name = group_name
        self.consumer_name = consumer_name
        self.block_ms = block_ms

    async def ensure_group(self) -> None:
        """Create the consumer group when it does not exist yet."""

        await ensure_consumer_group(self.redis_client, self.topic, self.group_name)

    async def claim_group(self, *, stale_after_ms: int) -> None:
        """Become the only consumer of the group.

        Pending entries of departed consumers (for example this worker before
        a restart, under another name) are moved to this consumer so they are
        redelivered, and the departed consumers are removed.

        Raises:
            ConsumerGroupBusyError: If another consumer interacted with the
                group within ``stale_after_ms``.
        """
        members = await self.redis_client.xinfo_consumers(self.topic, self.group_name)
        departed: list[str] = []
        for member in members:
            name = _text(member["name"])
            if name == self.consumer_name:
                continue
            if int(member["idle"]) < stale_after_ms:
                raise ConsumerGroupBusyError(self.topic, self.group_name, name)
            departed.append(name)

        if not departed:
            return

        start_id = _START_ID
        while True:
            response = await self.redis_client.xautoclaim(
                self.topic,
                self.group_name,
                self.consumer_name,
                min_idle_time=0,
                start_id=start_id,
                count=_CLAIM_BATCH,
            )
            start_id = _text(response[0])
            if start_id == _START_ID:
                break

        for name in departed:
            await self.redis_client.xgroup_delconsumer(self.topic, self.group_name, name)
        logger.info(
            "Took over consumer group",
            extra={"stream": self.topic, "group": self.group_name, "departed": departed},
        )

    async def fetch(self) -> EventMessage | None:
        message = await self._read(_PENDING_ID, block_ms=None)
        if message is not None:
            return message
        return await self._read(_NEW_ID, block_ms=self.block_ms)

    async def commit(self, message: EventMessage) -> None:
        xack = cast(
            Callable[..., Awaitable[int]],
            getattr(self.redis_client, "xack"),
        )
        await xack(self.topic, self.group_name, message.message_id)

    async def close(self) -> None:
        await self.redis_client.aclose()

    async def _read(self, stream_id: str, *, block_ms: int | None) -> EventMessage | None:
        response = await self.redis_client.xreadgroup(
            groupname=self.group_name,
            consumername=self.consumer_name,
            streams={self.topic: stream_id},
            count=1,
            block=block_ms,
        )

        for stream_name, messages in response or []:
            if _text(stream_name) != self.topic:
                continue
            for message_id, fields in messages:
                # Pending reads return entries trimmed from the stream as empty fields.
                if not fields:
                    await self.commit(
                        EventMessage(self.topic, "", b"", _text(message_id))
                    )
                    continue
                data = {_text(k): v for k, v in fields.items()}
                value = data.get("payload", b"")
                return EventMessage(
                    topic=self.topic,
                    key=_text(data.get("key", "")),
                    value=value if isinstance(value, bytes) else str(value).encode(),
                    message_id=_text(message_id),
                )

        return None


__all__ = ["ConsumerGroupBusyError", "RedisStreamsEventConsumer"]
