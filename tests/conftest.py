import pytest

from app.core.config import Settings
from fakes import FakeUpstreams
from observability.context import TracingContext
from observability.sink import InMemorySpanSink


@pytest.fixture
def span_sink() -> InMemorySpanSink:
    return InMemorySpanSink()


@pytest.fixture
def tracing(span_sink) -> TracingContext:
    context = TracingContext(
        service_name="test-service",
        sink=span_sink,
        batch_size=10_000,
        schedule_delay_seconds=3600,
    )
    yield context
    context.shutdown(timeout_seconds=1)


@pytest.fixture
def upstreams() -> FakeUpstreams:
    return FakeUpstreams()


@pytest.fixture
def settings() -> Settings:
    return Settings(
        weather_api_key="test-key",
        resolver_url="http://resolver.internal:8081",
        trace_exporter="logging",
        http_timeout_seconds=5.0,
        shutdown_timeout_seconds=2.0,
    )
