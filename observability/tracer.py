"""
Tracer

Creates spans for one service and routes them to the collector when they
end. Parents are always passed explicitly: there is no ambient "current
span", so a component only joins a trace it was handed.
"""

import asyncio
import logging
from contextlib import contextmanager
from typing import Iterator, Mapping, Optional

from observability.collector import SpanCollector
from observability.trace import AttributeValue, Span, SpanContext, SpanKind


logger = logging.getLogger(__name__)


class Tracer:

    def __init__(self, service_name: str, collector: SpanCollector):
        self.service_name = service_name
        self._collector = collector

    @contextmanager
    def start_span(
        self,
        name: str,
        parent: Optional[SpanContext] = None,
        kind: SpanKind = SpanKind.INTERNAL,
        attributes: Optional[Mapping[str, AttributeValue]] = None,
    ) -> Iterator[Span]:
        """
        Open a span for the duration of the with-block.

        Args:
            name: Operation name, e.g. "viacep.lookup".
            parent: Local or extracted remote parent. None starts a new trace.
            kind: SERVER for inbound requests, CLIENT for outbound calls.
            attributes: Initial attributes.

        An exception escaping the block is recorded on the span (unless the
        block already recorded one) and re-raised. The span is ended on every
        exit path.
        """
        context = parent.child() if parent is not None else SpanContext.new_root()
        span = Span(
            name=name,
            context=context,
            parent=parent,
            kind=kind,
            service_name=self.service_name,
            on_end=self._collector.submit,
            attributes=attributes,
        )
        try:
            yield span
        except asyncio.CancelledError:
            if not span.has_error:
                span.record_error("cancelled")
            raise
        except Exception as exc:
            if not span.has_error:
                span.record_error(exc)
            raise
        finally:
            span.end()
