"""Enrichment worker.

Consumes post and media lifecycle events from Redis Streams, one consumer
loop per topic, and commits each message only after its handler succeeded.
Supports graceful shutdown: an in-flight message finishes before its loop
exits.
"""

import asyncio
import logging
import signal
from collections.abc import Iterable
from contextlib import suppress
from dataclasses import dataclass
from typing import Protocol

from packages.clients.cloudinary_asset_store import CloudinaryAssetStore
from packages.clients.ollama import OllamaEmbeddingClient
from packages.clients.postgres_content_store import (
    PostgresMediaRepository,
    PostgresPostRepository,
)
from packages.common.config import PersonalOSConfig, get_config
from packages.common.logging import setup_logging
from packages.common.postgres_pool import PostgresPool
from packages.common.tracing import TracingContext
from packages.core.events import (
    MEDIA_EVENT_TYPES,
    POST_EVENT_TYPES,
    EventDecodeError,
    EventType,
    LifecycleEvent,
    decode_event,
)
from packages.core.ports.event_consumer import EventConsumer, EventMessage
from packages.core.use_cases.process_media import ProcessMediaEventUseCase
from packages.core.use_cases.process_post import ProcessPostEventUseCase
from packages.enrichment.adapters import RedisStreamsEventConsumer, create_redis_client

logger = logging.getLogger(__name__)


class EventHandler(Protocol):
    """Handler invoked for every accepted event on a topic."""

    async def execute(self, event: LifecycleEvent) -> None: ...


@dataclass(frozen=True, slots=True)
class TopicSubscription:
    """Binds a topic and its consumer group to a handler."""

    topic: str
    group: str
    handler: EventHandler
    event_types: frozenset[EventType]


class ConsumerLoop:
    """Sequentially processes the messages of a single topic."""

    def __init__(
        self,
        consumer: EventConsumer,
        subscription: TopicSubscription,
        *,
        fetch_error_delay: float = 1.0,
    ) -> None:
        self.consumer = consumer
        self.subscription = subscription
        self.fetch_error_delay = fetch_error_delay
        self._stop = asyncio.Event()

    @property
    def topic(self) -> str:
        return self.subscription.topic

    def stop(self) -> None:
        self._stop.set()

    def should_stop(self) -> bool:
        return self._stop.is_set()

    async def run(self) -> None:
        """Fetch and handle messages until stopped."""
        logger.info(
            "Consumer loop started",
            extra={"topic": self.topic, "group": self.subscription.group},
        )
        try:
            while not self.should_stop():
                try:
                    message = await self._fetch_or_stop()
                except Exception:
                    logger.exception("Failed to fetch message", extra={"topic": self.topic})
                    await self._pause()
                    continue

                if message is None:
                    continue

                if not await self.handle(message):
                    await self._pause()
        finally:
            logger.info("Consumer loop stopped", extra={"topic": self.topic})

    async def handle(self, message: EventMessage) -> bool:
        """Process one message.

        Returns:
            True when the message was committed, False when it was left for
            redelivery.
        """
        try:
            event = decode_event(message.value)
        except EventDecodeError as e:
            logger.error(
                "Dropping malformed event",
                extra={"topic": self.topic, "message_id": message.message_id, "error": str(e)},
            )
            await self._commit(message)
            return True

        if event.event_type not in self.subscription.event_types:
            logger.warning(
                "Dropping event of unsupported type",
                extra={
                    "topic": self.topic,
                    "message_id": message.message_id,
                    "event_type": event.event_type.value,
                },
            )
            await self._commit(message)
            return True

        with TracingContext(
            str(event.resource_id), topic=self.topic, event_type=event.event_type.value
        ):
            try:
                await self.subscription.handler.execute(event)
            except Exception:
                logger.exception(
                    "Event handler failed, message left uncommitted",
                    extra={
                        "topic": self.topic,
                        "message_id": message.message_id,
                        "event_type": event.event_type.value,
                    },
                )
                return False

            logger.info(
                "Processed event",
                extra={"topic": self.topic, "event_type": event.event_type.value},
            )
            await self._commit(message)
        return True

    async def _commit(self, message: EventMessage) -> None:
        try:
            await self.consumer.commit(message)
        except Exception:
            logger.exception(
                "Failed to commit message",
                extra={"topic": self.topic, "message_id": message.message_id},
            )

    async def _fetch_or_stop(self) -> EventMessage | None:
        fetch_task = asyncio.ensure_future(self.consumer.fetch())
        stop_task = asyncio.ensure_future(self._stop.wait())
        done, _ = await asyncio.wait(
            {fetch_task, stop_task}, return_when=asyncio.FIRST_COMPLETED
        )

        if fetch_task in done:
            stop_task.cancel()
            return fetch_task.result()

        fetch_task.cancel()
        await asyncio.gather(fetch_task, return_exceptions=True)
        return None

    async def _pause(self) -> None:
        with suppress(asyncio.TimeoutError):
            await asyncio.wait_for(self._stop.wait(), timeout=self.fetch_error_delay)


class EnrichmentWorker:
    """Runs one consumer loop per topic until stopped."""

    def __init__(self, loops: Iterable[ConsumerLoop]) -> None:
        self.loops = list(loops)
        if not self.loops:
            raise ValueError("at least one consumer loop is required")

    def signal_stop(self) -> None:
        """Ask every loop to stop after its current message."""
        logger.info("Received stop signal")
        for loop in self.loops:
            loop.stop()

    async def run(self) -> None:
        """Run every loop concurrently; returns once all of them have exited."""
        topics = [loop.topic for loop in self.loops]
        logger.info("Starting enrichment worker", extra={"topics": topics})
        results = await asyncio.gather(
            *(loop.run() for loop in self.loops), return_exceptions=True
        )
        for loop, result in zip(self.loops, results):
            if isinstance(result, BaseException) and not isinstance(
                result, asyncio.CancelledError
            ):
                logger.error(
                    "Consumer loop crashed",
                    exc_info=result,
                    extra={"topic": loop.topic},
                )
        logger.info("Enrichment worker stopped")


def build_subscriptions(
    config: PersonalOSConfig,
    post_handler: EventHandler,
    media_handler: EventHandler,
) -> list[TopicSubscription]:
    return [
        TopicSubscription(
            topic=config.post_events_topic,
            group=config.post_events_group,
            handler=post_handler,
            event_types=POST_EVENT_TYPES,
        ),
        TopicSubscription(
            topic=config.media_events_topic,
            group=config.media_events_group,
            handler=media_handler,
            event_types=MEDIA_EVENT_TYPES,
        ),
    ]


async def main() -> None:
    """Main entry point for the enrichment worker.

    Wires Redis, PostgreSQL, Cloudinary and Ollama into the two handlers and
    runs the worker until SIGINT/SIGTERM.
    """
    config = get_config()
    setup_logging(config.log_level)

    pool = PostgresPool(config)

    logger.info("Connecting to Redis", extra={"redis_url": config.redis_url})
    redis_client = create_redis_client(config.redis_url)
    asset_store = CloudinaryAssetStore(
        config.cloudinary_cloud_name,
        config.cloudinary_api_key,
        config.cloudinary_api_secret.get_secret_value(),
        timeout=config.cloudinary_timeout,
    )
    ollama = config.ollama_config
    embedder = OllamaEmbeddingClient(
        str(ollama.url),
        model=ollama.embedding_model,
        expected_dim=ollama.embedding_dim,
        timeout=ollama.timeout,
    )

    subscriptions = build_subscriptions(
        config,
        post_handler=ProcessPostEventUseCase(
            post_repository=PostgresPostRepository(pool),
            asset_store=asset_store,
            embedder=embedder,
        ),
        media_handler=ProcessMediaEventUseCase(
            media_repository=PostgresMediaRepository(pool),
            asset_store=asset_store,
        ),
    )

    try:
        loops = []
        for subscription in subscriptions:
            consumer = RedisStreamsEventConsumer(
                redis_client,
                stream_name=subscription.topic,
                group_name=subscription.group,
                consumer_name=config.worker_consumer_name,
                block_ms=config.worker_block_ms,
            )
            await consumer.ensure_group()
            await consumer.claim_group(stale_after_ms=config.worker_consumer_stale_ms)
            loops.append(
                ConsumerLoop(
                    consumer, subscription, fetch_error_delay=config.worker_fetch_error_delay
                )
            )

        worker = EnrichmentWorker(loops)

        event_loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            event_loop.add_signal_handler(sig, worker.signal_stop)

        await worker.run()
    finally:
        logger.info("Cleaning up resources")
        await embedder.aclose()
        await asset_store.aclose()
        await redis_client.aclose()
        pool.close_all()


def run() -> None:
    """Console-script entry point."""
    asyncio.run(main())


if __name__ == "__main__":
    run()
