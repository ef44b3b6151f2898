"""
Span Model

Identity, lifecycle and export form of a single traced operation.

DESIGN RULES:
- SpanContext is immutable and is what crosses process boundaries
- Span is mutable only until end()
- FinishedSpan is what sinks receive; pure data container
"""

import secrets
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional, Union


AttributeValue = Union[str, bool, int, float]


class SpanKind(str, Enum):
    INTERNAL = "internal"
    SERVER = "server"
    CLIENT = "client"


def _new_trace_id() -> str:
    return secrets.token_hex(16)


def _new_span_id() -> str:
    return secrets.token_hex(8)


@dataclass(frozen=True)
class SpanContext:
    """
    Portable identity of a span.

    trace_id: 32 lowercase hex chars, shared by every span of one request.
    span_id: 16 lowercase hex chars, unique per span.
    """

    trace_id: str
    span_id: str
    sampled: bool = True
    baggage: Mapping[str, str] = field(default_factory=dict, compare=False, hash=False)

    @classmethod
    def new_root(cls) -> "SpanContext":
        return cls(trace_id=_new_trace_id(), span_id=_new_span_id())

    def child(self) -> "SpanContext":
        """Same trace, fresh span id. Baggage and sampling carry over."""
        return SpanContext(
            trace_id=self.trace_id,
            span_id=_new_span_id(),
            sampled=self.sampled,
            baggage=dict(self.baggage),
        )


@dataclass(frozen=True)
class FinishedSpan:
    """
    Immutable record of an ended span, handed to sinks.
    """

    name: str
    service_name: str
    kind: SpanKind
    trace_id: str
    span_id: str
    parent_span_id: Optional[str]
    started_at: datetime
    finished_at: datetime
    attributes: Dict[str, AttributeValue] = field(default_factory=dict)
    events: List[Dict[str, Any]] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def has_error(self) -> bool:
        return self.error is not None

    @property
    def duration_ms(self) -> float:
        delta = self.finished_at - self.started_at
        return round(delta.total_seconds() * 1000, 3)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for logging/export."""
        return {
            "name": self.name,
            "service_name": self.service_name,
            "kind": self.kind.value,
            "trace_id": self.trace_id,
            "span_id": self.span_id,
            "parent_span_id": self.parent_span_id,
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat(),
            "duration_ms": self.duration_ms,
            "attributes": dict(self.attributes),
            "events": list(self.events),
            "error": self.error,
        }


class Span:
    """
    An open span. Created by Tracer.start_span, never directly.

    end() is idempotent; only the first call reaches the collector.
    """

    def __init__(
        self,
        name: str,
        context: SpanContext,
        parent: Optional[SpanContext],
        kind: SpanKind,
        service_name: str,
        on_end: Callable[[FinishedSpan], None],
        attributes: Optional[Mapping[str, AttributeValue]] = None,
    ):
        self.name = name
        self.context = context
        self.parent = parent
        self.kind = kind
        self.service_name = service_name
        self.started_at = datetime.now(timezone.utc)
        self._on_end = on_end
        self._attributes: Dict[str, AttributeValue] = dict(attributes or {})
        self._events: List[Dict[str, Any]] = []
        self._error: Optional[str] = None
        self._ended = False
        self._lock = threading.Lock()

    @property
    def attributes(self) -> Dict[str, AttributeValue]:
        return dict(self._attributes)

    @property
    def has_error(self) -> bool:
        return self._error is not None

    @property
    def is_ended(self) -> bool:
        return self._ended

    def set_attribute(self, key: str, value: AttributeValue) -> None:
        if not self._ended:
            self._attributes[key] = value

    def set_attributes(self, attributes: Mapping[str, AttributeValue]) -> None:
        for key, value in attributes.items():
            self.set_attribute(key, value)

    def record_error(self, error: Union[BaseException, str]) -> None:
        """Mark the span failed and attach an exception event."""
        if self._ended:
            return
        if isinstance(error, BaseException):
            error_type = type(error).__name__
            message = str(error) or error_type
        else:
            error_type = "Error"
            message = error
        self._error = message
        self._events.append({
            "name": "exception",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "attributes": {
                "exception.type": error_type,
                "exception.message": message,
            },
        })

    def end(self) -> None:
        with self._lock:
            if self._ended:
                return
            self._ended = True
        finished = FinishedSpan(
            name=self.name,
            service_name=self.service_name,
            kind=self.kind,
            trace_id=self.context.trace_id,
            span_id=self.context.span_id,
            parent_span_id=self.parent.span_id if self.parent else None,
            started_at=self.started_at,
            finished_at=datetime.now(timezone.utc),
            attributes=dict(self._attributes),
            events=list(self._events),
            error=self._error,
        )
        self._on_end(finished)
