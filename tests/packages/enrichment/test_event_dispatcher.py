"""Tests for EventDispatcher."""

import json
from unittest.mock import AsyncMock
from uuid import uuid4

import pytest

from packages.core.events import EventType, LifecycleEvent
from packages.enrichment.services import EventDispatcher


def make_event(event_type: EventType = EventType.POST_CREATED) -> LifecycleEvent:
    return LifecycleEvent(event_type=event_type, resource_id=uuid4(), owner_id=uuid4())


class TestEventDispatcher:
    @pytest.mark.asyncio
    async def test_publishes_in_order_on_one_task(self, broker) -> None:
        dispatcher = EventDispatcher(broker)
        created = make_event(EventType.POST_CREATED)
        published = LifecycleEvent(
            EventType.POST_PUBLISHED, created.resource_id, created.owner_id
        )

        task = dispatcher.dispatch(created, published)
        assert task is not None
        await task

        assert [json.loads(m.value)["event_type"] for m in broker.topics["post.events"]] == [
            "post.created",
            "post.published",
        ]

    @pytest.mark.asyncio
    async def test_routes_media_events_to_media_topic(self, broker) -> None:
        dispatcher = EventDispatcher(broker)

        dispatcher.dispatch(make_event(EventType.MEDIA_UPLOADED))
        await dispatcher.drain()

        assert len(broker.topics["media.events"]) == 1
        assert broker.topics["post.events"] == []

    @pytest.mark.asyncio
    async def test_failure_is_logged_not_raised(self, caplog) -> None:
        publisher = AsyncMock()
        publisher.publish.side_effect = [ConnectionError("down"), None]
        dispatcher = EventDispatcher(publisher)

        dispatcher.dispatch(make_event(), make_event())
        await dispatcher.drain()

        assert publisher.publish.await_count == 2
        assert "Publishing lifecycle event failed" in caplog.text

    @pytest.mark.asyncio
    async def test_disabled_dispatcher_publishes_nothing(self) -> None:
        publisher = AsyncMock()
        dispatcher = EventDispatcher(publisher, enabled=False)

        assert dispatcher.dispatch(make_event()) is None
        publisher.publish.assert_not_called()

    @pytest.mark.asyncio
    async def test_no_events_schedules_nothing(self, broker) -> None:
        assert EventDispatcher(broker).dispatch() is None

    @pytest.mark.asyncio
    async def test_missing_publisher_schedules_nothing(self) -> None:
        dispatcher = EventDispatcher(None)

        assert dispatcher.dispatch(make_event()) is None
        await dispatcher.drain()

    @pytest.mark.asyncio
    async def test_task_keeps_publisher_it_was_scheduled_with(self, broker) -> None:
        dispatcher = EventDispatcher(broker)

        task = dispatcher.dispatch(make_event())
        dispatcher._publisher = None
        assert task is not None
        await task

        assert len(broker.topics["post.events"]) == 1
