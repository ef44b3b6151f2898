"""
Tracing Context

The process-wide tracing pipeline: one sink, one collector, one tracer.
Built once at startup, passed by reference to whatever creates spans, and
shut down exactly once.
"""

import logging
from typing import Optional

from observability.collector import SpanCollector
from observability.sink import JsonSpanSink, LoggingSpanSink, OtlpHttpSpanSink, SpanSink
from observability.tracer import Tracer


logger = logging.getLogger(__name__)


class TracingContext:

    def __init__(
        self,
        service_name: str,
        sink: SpanSink,
        batch_size: int = 512,
        schedule_delay_seconds: float = 5.0,
        enabled: bool = True,
    ):
        self.service_name = service_name
        self.sink = sink
        self.collector = SpanCollector(
            sink=sink,
            batch_size=batch_size,
            schedule_delay_seconds=schedule_delay_seconds,
            enabled=enabled,
        )
        self.tracer = Tracer(service_name=service_name, collector=self.collector)
        self._shut_down = False

    @classmethod
    def from_settings(cls, settings, service_name: str) -> "TracingContext":
        """
        Build the context described by Settings.

        trace_exporter selects the sink: "otlp" posts to the collector at
        otel_exporter_otlp_endpoint, "logging" and "json" write locally.
        """
        exporter = settings.trace_exporter.lower()
        if exporter == "otlp":
            sink: SpanSink = OtlpHttpSpanSink(
                endpoint=settings.otel_exporter_otlp_endpoint,
                timeout_seconds=settings.http_timeout_seconds,
            )
        elif exporter == "json":
            sink = JsonSpanSink()
        elif exporter == "logging":
            sink = LoggingSpanSink()
        else:
            raise ValueError(f"Unknown trace exporter: {settings.trace_exporter!r}")

        logger.info(f"Tracing for {service_name}: exporter={exporter} enabled={settings.tracing_enabled}")
        return cls(
            service_name=service_name,
            sink=sink,
            batch_size=settings.export_batch_size,
            schedule_delay_seconds=settings.export_schedule_delay_seconds,
            enabled=settings.tracing_enabled,
        )

    @property
    def is_shut_down(self) -> bool:
        return self._shut_down

    def shutdown(self, timeout_seconds: Optional[float] = 5.0) -> bool:
        """Flush pending spans and close the sink. Only the first call acts."""
        if self._shut_down:
            return True
        self._shut_down = True
        finished = self.collector.shutdown(timeout_seconds=timeout_seconds)
        logger.info(f"Tracing for {self.service_name} shut down (flushed={finished})")
        return finished
