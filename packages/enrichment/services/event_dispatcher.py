"""Services for dispatching lifecycle events from write-path use cases."""

from __future__ import annotations

import asyncio
import logging

from packages.core.events import LifecycleEvent, encode_event
from packages.core.ports.event_publisher import EventPublisher

logger = logging.getLogger(__name__)


async def _publish_all(publisher: EventPublisher, events: tuple[LifecycleEvent, ...]) -> None:
    for event in events:
        try:
            await publisher.publish(event.topic, event.key, encode_event(event))
        except Exception:
            logger.exception(
                "Publishing lifecycle event failed",
                extra={
                    "event_type": event.event_type.value,
                    "resource_id": event.key,
                    "topic": event.topic,
                },
            )
        else:
            logger.info(
                "Published lifecycle event",
                extra={"event_type": event.event_type.value, "resource_id": event.key},
            )


class EventDispatcher:
    """Publishes lifecycle events on detached background tasks.

    Publishing never blocks the caller and its outcome is not reported back:
    failures are logged and dropped. Events passed to one ``dispatch`` call
    are published sequentially, in order, on the same task.
    """

    def __init__(self, publisher: EventPublisher | None, *, enabled: bool = True) -> None:
        self._publisher = publisher
        self._enabled = enabled
        self._tasks: set[asyncio.Task[None]] = set()

    def dispatch(self, *events: LifecycleEvent) -> asyncio.Task[None] | None:
        """Schedule ``events`` for publication and return the background task."""

        publisher = self._publisher
        if not events or not self._enabled or publisher is None:
            return None

        task = asyncio.get_running_loop().create_task(_publish_all(publisher, events))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def drain(self) -> None:
        """Wait for every in-flight publication to finish."""

        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)


__all__ = ["EventDispatcher"]
