"""Domain events for cross-process communication.

Defines the immutable lifecycle event published by write-path use cases and
consumed by the enrichment worker, plus its JSON wire codec. Events are
keyed by resource id so a broker can keep per-resource ordering.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any
from uuid import UUID

TOPIC_POST_EVENTS = "post.events"
TOPIC_MEDIA_EVENTS = "media.events"


class EventType(str, Enum):
    """Lifecycle event types."""

    POST_CREATED = "post.created"
    POST_UPDATED = "post.updated"
    POST_DELETED = "post.deleted"
    POST_PUBLISHED = "post.published"
    MEDIA_UPLOADED = "media.uploaded"
    MEDIA_DELETED = "media.deleted"


POST_EVENT_TYPES = frozenset(
    {
        EventType.POST_CREATED,
        EventType.POST_UPDATED,
        EventType.POST_DELETED,
        EventType.POST_PUBLISHED,
    }
)
MEDIA_EVENT_TYPES = frozenset({EventType.MEDIA_UPLOADED, EventType.MEDIA_DELETED})

# Event types that change post content and therefore require a new embedding.
CONTENT_EVENT_TYPES = frozenset({EventType.POST_CREATED, EventType.POST_UPDATED})


class EventDecodeError(ValueError):
    """Raised when a message payload cannot be decoded into a LifecycleEvent."""


@dataclass(slots=True, frozen=True)
class LifecycleEvent:
    """Event emitted after a resource is written by the API process."""

    event_type: EventType
    resource_id: UUID
    owner_id: UUID
    asset_reference: str = ""
    original_url: str = ""

    @property
    def key(self) -> str:
        """Partition key (resource id)."""
        return str(self.resource_id)

    @property
    def topic(self) -> str:
        """Topic this event belongs to."""
        return topic_for(self.event_type)


def topic_for(event_type: EventType) -> str:
    """Return the topic name for an event type."""
    if event_type in MEDIA_EVENT_TYPES:
        return TOPIC_MEDIA_EVENTS
    return TOPIC_POST_EVENTS


def encode_event(event: LifecycleEvent) -> bytes:
    """Serialize an event to its JSON wire form."""
    data: dict[str, Any] = asdict(event)
    data["event_type"] = event.event_type.value
    data["resource_id"] = str(event.resource_id)
    data["owner_id"] = str(event.owner_id)
    return json.dumps(data, separators=(",", ":")).encode("utf-8")


def decode_event(payload: bytes | str) -> LifecycleEvent:
    """Parse a JSON wire payload.

    Raises:
        EventDecodeError: If the payload is not valid JSON, misses required
            fields, carries an unknown event type or malformed ids.
    """
    try:
        data = json.loads(payload)
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise EventDecodeError(f"invalid JSON payload: {exc}") from exc

    if not isinstance(data, dict):
        raise EventDecodeError("payload must be a JSON object")

    try:
        event_type = EventType(data["event_type"])
        resource_id = UUID(str(data["resource_id"]))
        owner_id = UUID(str(data["owner_id"]))
    except KeyError as exc:
        raise EventDecodeError(f"missing field: {exc.args[0]}") from exc
    except ValueError as exc:
        raise EventDecodeError(str(exc)) from exc

    return LifecycleEvent(
        event_type=event_type,
        resource_id=resource_id,
        owner_id=owner_id,
        asset_reference=str(data.get("asset_reference") or ""),
        original_url=str(data.get("original_url") or ""),
    )


__all__ = [
    "CONTENT_EVENT_TYPES",
    "EventDecodeError",
    "EventType",
    "LifecycleEvent",
    "MEDIA_EVENT_TYPES",
    "POST_EVENT_TYPES",
    "TOPIC_MEDIA_EVENTS",
    "TOPIC_POST_EVENTS",
    "decode_event",
    "encode_event",
    "topic_for",
]
