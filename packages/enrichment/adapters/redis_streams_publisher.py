"""Redis Streams publisher for content lifecycle events."""

from __future__ import annotations

from redis import asyncio as redis
from redis.asyncio import Redis
from redis.exceptions import ResponseError

from packages.core.ports.event_publisher import EventPublisher


class RedisStreamsEventPublisher(EventPublisher):
    """Publish keyed event payloads to Redis Streams (one stream per topic)."""

    def __init__(self, redis_client: Redis, *, maxlen: int | None = 10000) -> None:
        self.redis_client = redis_client
        self.maxlen = maxlen

    async def publish(self, topic: str, key: str, payload: bytes) -> None:
        await self.redis_client.xadd(
            name=topic,
            fields={"key": key, "payload": payload},
            maxlen=self.maxlen,
            approximate=True,
        )

    async def close(self) -> None:
        await self.redis_client.aclose()


async def ensure_consumer_group(redis_client: Redis, stream_name: str, group_name: str) -> None:
    """Ensure a consumer group exists for the stream, creating the stream if needed."""

    try:
        await redis_client.xgroup_create(
            name=stream_name,
            groupname=group_name,
            id="0-0",
            mkstream=True,
        )
    except ResponseError as exc:
        if "BUSYGROUP" in str(exc):
            return
        raise


def create_redis_client(url: str, *, decode_responses: bool = False) -> Redis:
    """Helper to create a Redis client from URL."""

    return redis.from_url(url, decode_responses=decode_responses)


__all__ = ["RedisStreamsEventPublisher", "create_redis_client", "ensure_consumer_group"]
