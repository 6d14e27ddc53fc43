"""Per-event trace context for the enrichment pipeline.

The API process and the worker share no memory, so a log line can only be
joined to its event through identifiers carried on the record. While the
worker handles a message it binds an ``EventTrace`` (resource id, topic and
event type); the resource id doubles as the correlation ID.
"""

from contextvars import ContextVar, Token
from dataclasses import dataclass
from types import TracebackType


@dataclass(frozen=True, slots=True)
class EventTrace:
    """Identifiers of the event currently being handled."""

    correlation_id: str
    topic: str | None = None
    event_type: str | None = None

    def as_log_fields(self) -> dict[str, str]:
        fields = {"correlation_id": self.correlation_id}
        if self.topic:
            fields["topic"] = self.topic
        if self.event_type:
            fields["event_type"] = self.event_type
        return fields


_current_trace: ContextVar[EventTrace | None] = ContextVar("event_trace", default=None)


def current_trace() -> EventTrace | None:
    """Return the trace bound to the current context, if any."""
    return _current_trace.get()


def get_correlation_id() -> str | None:
    """Return the correlation ID (resource id) of the event being handled."""
    trace = _current_trace.get()
    return trace.correlation_id if trace else None


class TracingContext:
    """Bind an event trace for the duration of a block.

    Nested contexts restore the outer trace on exit.

    Example:
        >>> with TracingContext(str(event.resource_id), topic="post.events"):
        ...     await handler.execute(event)
    """

    def __init__(
        self,
        correlation_id: str,
        *,
        topic: str | None = None,
        event_type: str | None = None,
    ) -> None:
        self.trace = EventTrace(correlation_id, topic=topic, event_type=event_type)
        self._token: Token[EventTrace | None] | None = None

    def __enter__(self) -> str:
        self._token = _current_trace.set(self.trace)
        return self.trace.correlation_id

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if self._token is not None:
            _current_trace.reset(self._token)
            self._token = None


__all__ = ["EventTrace", "TracingContext", "current_trace", "get_correlation_id"]
