# Observability Package
from observability.trace import FinishedSpan, Span, SpanContext, SpanKind
from observability.sink import SpanSink, LoggingSpanSink, JsonSpanSink, InMemorySpanSink, OtlpHttpSpanSink
from observability.collector import SpanCollector
from observability.tracer import Tracer
from observability.context import TracingContext
from observability.propagation import inject, extract

__all__ = [
    "FinishedSpan",
    "Span",
    "SpanContext",
    "SpanKind",
    "SpanSink",
    "LoggingSpanSink",
    "JsonSpanSink",
    "InMemorySpanSink",
    "OtlpHttpSpanSink",
    "SpanCollector",
    "Tracer",
    "TracingContext",
    "inject",
    "extract",
]
