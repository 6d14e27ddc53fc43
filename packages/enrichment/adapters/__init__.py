"""Redis Streams adapters for the event channel."""

from packages.enrichment.adapters.redis_streams_consumer import (
    ConsumerGroupBusyError,
    RedisStreamsEventConsumer,
)
from packages.enrichment.adapters.redis_streams_publisher import (
    RedisStreamsEventPublisher,
    create_redis_client,
    ensure_consumer_group,
)

__all__ = [
    "ConsumerGroupBusyError",
    "RedisStreamsEventConsumer",
    "RedisStreamsEventPublisher",
    "create_redis_client",
    "ensure_consumer_group",
]
