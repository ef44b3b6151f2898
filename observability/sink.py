"""
Span Sink Interface

Abstract destination for finished spans.
Storage-agnostic - implementations can log, print, keep in memory or ship
to an OTLP collector.

DESIGN RULES:
- Side-effect only
- Never throw exceptions into request handling
- Called from the collector's export thread, one batch at a time
"""

import json
import logging
import sys
import threading
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence, TextIO

import httpx

from observability.trace import FinishedSpan, SpanKind


logger = logging.getLogger(__name__)


class SpanSink(ABC):
    """
    Abstract base for span output destinations.

    Implementations:
    - LoggingSpanSink (default when no collector is configured)
    - JsonSpanSink
    - InMemorySpanSink (tests)
    - OtlpHttpSpanSink (OpenTelemetry collector)
    """

    @abstractmethod
    def export(self, spans: Sequence[FinishedSpan]) -> None:
        """
        Emit a batch of spans.

        Must not throw - failures should be logged and ignored.
        """
        pass

    def shutdown(self) -> None:
        """Release resources. Called once, after the final export."""
        return None


class LoggingSpanSink(SpanSink):
    """
    Writes one summary log line per span.
    """

    def __init__(self, level: int = logging.INFO):
        self._level = level

    def export(self, spans: Sequence[FinishedSpan]) -> None:
        for span in spans:
            try:
                status = "✗" if span.has_error else "✓"
                logger.log(
                    self._level,
                    "[SPAN] %s %s/%s trace=%s span=%s parent=%s %.1fms%s",
                    status,
                    span.service_name,
                    span.name,
                    span.trace_id,
                    span.span_id,
                    span.parent_span_id or "-",
                    span.duration_ms,
                    f" error={span.error}" if span.error else "",
                )
            except Exception as e:
                logger.warning(f"[SPAN] Failed to log span: {e}")


class JsonSpanSink(SpanSink):
    """
    Writes spans as JSON lines.

    Useful for log aggregation systems.
    """

    def __init__(self, stream: Optional[TextIO] = None):
        self._stream = stream or sys.stdout

    def export(self, spans: Sequence[FinishedSpan]) -> None:
        for span in spans:
            try:
                print(json.dumps(span.to_dict(), default=str), file=self._stream)
            except Exception as e:
                logger.warning(f"[SPAN] Failed to emit JSON span: {e}")


class InMemorySpanSink(SpanSink):
    """
    Keeps every exported span. Thread-safe.
    """

    def __init__(self):
        self._spans: List[FinishedSpan] = []
        self._lock = threading.Lock()
        self.shut_down = False

    def export(self, spans: Sequence[FinishedSpan]) -> None:
        with self._lock:
            self._spans.extend(spans)

    def shutdown(self) -> None:
        self.shut_down = True

    @property
    def spans(self) -> List[FinishedSpan]:
        with self._lock:
            return list(self._spans)

    def by_name(self, name: str) -> List[FinishedSpan]:
        return [span for span in self.spans if span.name == name]

    def clear(self) -> None:
        with self._lock:
            self._spans.clear()


# ============================================================
# OTLP/HTTP (JSON encoding)
# ============================================================

_OTLP_KIND = {
    SpanKind.INTERNAL: 1,
    SpanKind.SERVER: 2,
    SpanKind.CLIENT: 3,
}
_STATUS_UNSET = 0
_STATUS_ERROR = 2


def _otlp_value(value: Any) -> Dict[str, Any]:
    # bool before int: bool is an int subclass
    if isinstance(value, bool):
        return {"boolValue": value}
    if isinstance(value, int):
        return {"intValue": str(value)}
    if isinstance(value, float):
        return {"doubleValue": value}
    return {"stringValue": str(value)}


def _otlp_attributes(attributes: Dict[str, Any]) -> List[Dict[str, Any]]:
    return [{"key": key, "value": _otlp_value(value)} for key, value in attributes.items()]


def _unix_nanos(moment) -> str:
    return str(int(moment.timestamp() * 1_000_000_000))


def build_otlp_payload(spans: Sequence[FinishedSpan], scope_name: str = "cep-weather") -> Dict[str, Any]:
    """
    Group spans by service and encode them as an ExportTraceServiceRequest.
    """
    by_service: Dict[str, List[FinishedSpan]] = {}
    for span in spans:
        by_service.setdefault(span.service_name, []).append(span)

    resource_spans = []
    for service_name, service_spans in by_service.items():
        encoded = []
        for span in service_spans:
            item = {
                "traceId": span.trace_id,
                "spanId": span.span_id,
                "name": span.name,
                "kind": _OTLP_KIND[span.kind],
                "startTimeUnixNano": _unix_nanos(span.started_at),
                "endTimeUnixNano": _unix_nanos(span.finished_at),
                "attributes": _otlp_attributes(span.attributes),
                "events": [
                    {
                        "name": event["name"],
                        "attributes": _otlp_attributes(event.get("attributes", {})),
                    }
                    for event in span.events
                ],
                "status": (
                    {"code": _STATUS_ERROR, "message": span.error}
                    if span.has_error
                    else {"code": _STATUS_UNSET}
                ),
            }
            if span.parent_span_id:
                item["parentSpanId"] = span.parent_span_id
            encoded.append(item)
        resource_spans.append({
            "resource": {"attributes": _otlp_attributes({"service.name": service_name})},
            "scopeSpans": [{"scope": {"name": scope_name}, "spans": encoded}],
        })
    return {"resourceSpans": resource_spans}


class OtlpHttpSpanSink(SpanSink):
    """
    Ships batches to an OpenTelemetry collector over OTLP/HTTP with JSON
    encoding (POST <endpoint>/v1/traces).

    GUARANTEES:
    - Never raises exceptions
    - Each POST is bounded by timeout_seconds
    - Failed batches are logged and dropped
    """

    TRACES_PATH = "/v1/traces"

    def __init__(
        self,
        endpoint: str,
        timeout_seconds: float = 5.0,
        client: Optional[httpx.Client] = None,
    ):
        if "://" not in endpoint:
            endpoint = f"http://{endpoint}"
        self._url = endpoint.rstrip("/") + self.TRACES_PATH
        self._client = client or httpx.Client(timeout=timeout_seconds)
        self._owns_client = client is None

    @property
    def url(self) -> str:
        return self._url

    def export(self, spans: Sequence[FinishedSpan]) -> None:
        if not spans:
            return
        try:
            response = self._client.post(self._url, json=build_otlp_payload(spans))
            if response.status_code >= 400:
                logger.warning(
                    f"[OTLP] Collector rejected {len(spans)} spans: "
                    f"HTTP {response.status_code} {response.text[:200]}"
                )
        except httpx.HTTPError as e:
            logger.warning(f"[OTLP] Failed to export {len(spans)} spans to {self._url}: {e}")
        except Exception as e:
            logger.warning(f"[OTLP] Unexpected error exporting spans: {e}")

    def shutdown(self) -> None:
        if self._owns_client:
            self._client.close()
