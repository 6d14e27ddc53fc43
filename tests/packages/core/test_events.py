"""Tests for lifecycle events and their JSON wire codec."""

import json
from uuid import uuid4

import pytest

from packages.core.events import (
    TOPIC_MEDIA_EVENTS,
    TOPIC_POST_EVENTS,
    EventDecodeError,
    EventType,
    LifecycleEvent,
    decode_event,
    encode_event,
    topic_for,
)


class TestLifecycleEvent:
    def test_key_is_resource_id(self) -> None:
        resource_id = uuid4()
        event = LifecycleEvent(EventType.POST_CREATED, resource_id, uuid4())

        assert event.key == str(resource_id)

    @pytest.mark.parametrize(
        ("event_type", "topic"),
        [
            (EventType.POST_CREATED, TOPIC_POST_EVENTS),
            (EventType.POST_DELETED, TOPIC_POST_EVENTS),
            (EventType.MEDIA_UPLOADED, TOPIC_MEDIA_EVENTS),
            (EventType.MEDIA_DELETED, TOPIC_MEDIA_EVENTS),
        ],
    )
    def test_topic_follows_resource_family(self, event_type: EventType, topic: str) -> None:
        assert topic_for(event_type) == topic
        assert LifecycleEvent(event_type, uuid4(), uuid4()).topic == topic

    def test_event_is_immutable(self) -> None:
        event = LifecycleEvent(EventType.POST_CREATED, uuid4(), uuid4())

        with pytest.raises(AttributeError):
            event.asset_reference = "changed"  # type: ignore[misc]


class TestWireFormat:
    def test_encode_uses_flat_json_object(self) -> None:
        resource_id, owner_id = uuid4(), uuid4()
        event = LifecycleEvent(
            EventType.MEDIA_UPLOADED,
            resource_id,
            owner_id,
            asset_reference="users/x/media/originals/y",
            original_url="https://res.cloudinary.com/demo/image/upload/y",
        )

        data = json.loads(encode_event(event))

        assert data == {
            "event_type": "media.uploaded",
            "resource_id": str(resource_id),
            "owner_id": str(owner_id),
            "asset_reference": "users/x/media/originals/y",
            "original_url": "https://res.cloudinary.com/demo/image/upload/y",
        }

    def test_decode_accepts_str_and_missing_optional_fields(self) -> None:
        resource_id, owner_id = uuid4(), uuid4()
        payload = json.dumps(
            {
                "event_type": "post.deleted",
                "resource_id": str(resource_id),
                "owner_id": str(owner_id),
            }
        )

        event = decode_event(payload)

        assert event == LifecycleEvent(EventType.POST_DELETED, resource_id, owner_id)

    @pytest.mark.parametrize(
        "payload",
        [
            b"not json",
            b"[1, 2, 3]",
            b'{"resource_id": "00000000-0000-0000-0000-000000000001"}',
            b'{"event_type": "post.archived",'
            b' "resource_id": "00000000-0000-0000-0000-000000000001",'
            b' "owner_id": "00000000-0000-0000-0000-000000000002"}',
            b'{"event_type": "post.created", "resource_id": "nope",'
            b' "owner_id": "00000000-0000-0000-0000-000000000002"}',
            b"\xff\xfe",
        ],
    )
    def test_decode_rejects_malformed_payloads(self, payload: bytes) -> None:
        with pytest.raises(EventDecodeError):
            decode_event(payload)
