import asyncio
import threading
import time

import httpx
import pytest

from observability.collector import SpanCollector
from observability.context import TracingContext
from observability.sink import InMemorySpanSink, OtlpHttpSpanSink, SpanSink, build_otlp_payload
from observability.trace import SpanKind
from observability.tracer import Tracer


def make_tracer(sink, **kwargs):
    collector = SpanCollector(sink=sink, **kwargs)
    return Tracer(service_name="svc", collector=collector), collector


def test_span_ends_and_reaches_sink():
    sink = InMemorySpanSink()
    tracer, collector = make_tracer(sink, batch_size=100, schedule_delay_seconds=3600)

    with tracer.start_span("op", attributes={"cep": "01001000"}) as span:
        span.set_attribute("city", "São Paulo")

    assert span.is_ended
    assert collector.force_flush(timeout_seconds=1)
    [finished] = sink.spans
    assert finished.name == "op"
    assert finished.service_name == "svc"
    assert finished.attributes == {"cep": "01001000", "city": "São Paulo"}
    assert finished.parent_span_id is None
    assert not finished.has_error
    assert finished.finished_at >= finished.started_at


def test_escaping_exception_is_recorded_and_span_still_ends():
    sink = InMemorySpanSink()
    tracer, collector = make_tracer(sink, batch_size=1)

    with pytest.raises(ValueError):
        with tracer.start_span("boom"):
            raise ValueError("bad payload")

    collector.force_flush(timeout_seconds=1)
    [finished] = sink.spans
    assert finished.error == "bad payload"
    assert finished.events[0]["attributes"]["exception.type"] == "ValueError"


def test_error_recorded_inside_block_is_not_duplicated():
    sink = InMemorySpanSink()
    tracer, collector = make_tracer(sink, batch_size=1)

    with pytest.raises(RuntimeError):
        with tracer.start_span("op") as span:
            span.record_error("first")
            raise RuntimeError("second")

    collector.force_flush(timeout_seconds=1)
    [finished] = sink.spans
    assert finished.error == "first"
    assert len(finished.events) == 1


@pytest.mark.asyncio
async def test_cancellation_is_recorded():
    sink = InMemorySpanSink()
    tracer, collector = make_tracer(sink, batch_size=1)

    async def slow():
        with tracer.start_span("slow"):
            await asyncio.sleep(10)

    task = asyncio.ensure_future(slow())
    await asyncio.sleep(0)
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    collector.force_flush(timeout_seconds=1)
    [finished] = sink.spans
    assert finished.error == "cancelled"


def test_children_share_trace_and_link_to_parent():
    sink = InMemorySpanSink()
    tracer, collector = make_tracer(sink)

    with tracer.start_span("server", kind=SpanKind.SERVER) as server:
        with tracer.start_span("client", parent=server.context, kind=SpanKind.CLIENT):
            pass

    collector.force_flush(timeout_seconds=1)
    client = sink.by_name("client")[0]
    server_span = sink.by_name("server")[0]
    assert client.trace_id == server_span.trace_id
    assert client.parent_span_id == server_span.span_id


def test_end_is_idempotent():
    sink = InMemorySpanSink()
    tracer, collector = make_tracer(sink)

    with tracer.start_span("op") as span:
        span.end()
    span.end()
    span.set_attribute("late", True)

    collector.force_flush(timeout_seconds=1)
    assert len(sink.spans) == 1
    assert "late" not in sink.spans[0].attributes


def test_full_batch_is_exported_without_flush():
    sink = InMemorySpanSink()
    tracer, collector = make_tracer(sink, batch_size=3, schedule_delay_seconds=3600)

    for _ in range(3):
        with tracer.start_span("op"):
            pass

    # Export runs on the worker thread; an empty flush waits for it
    collector.force_flush(timeout_seconds=1)
    assert len(sink.spans) == 3
    assert collector.pending == 0


def test_pending_span_is_exported_after_delay_without_more_traffic():
    sink = InMemorySpanSink()
    tracer, collector = make_tracer(sink, batch_size=512, schedule_delay_seconds=0.2)

    with tracer.start_span("lonely"):
        pass

    deadline = time.monotonic() + 3.0
    while not sink.spans and time.monotonic() < deadline:
        time.sleep(0.05)

    assert [span.name for span in sink.spans] == ["lonely"]
    assert collector.pending == 0
    collector.shutdown(timeout_seconds=1)


def test_schedule_delay_must_be_positive():
    with pytest.raises(ValueError):
        SpanCollector(sink=InMemorySpanSink(), schedule_delay_seconds=0)

def test_concurrent_submission_loses_nothing():
    sink = InMemorySpanSink()
    tracer, collector = make_tracer(sink, batch_size=7, schedule_delay_seconds=3600)

    def worker():
        for _ in range(50):
            with tracer.start_span("op"):
                pass

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    collector.shutdown(timeout_seconds=2)
    assert len(sink.spans) == 400


def test_disabled_collector_drops_spans():
    sink = InMemorySpanSink()
    tracer, collector = make_tracer(sink, enabled=False)

    with tracer.start_span("op") as span:
        pass

    assert span.is_ended
    collector.force_flush(timeout_seconds=1)
    assert sink.spans == []


def test_raising_sink_does_not_break_callers():
    class ExplodingSink(SpanSink):
        def export(self, spans):
            raise RuntimeError("sink down")

    tracer, collector = make_tracer(ExplodingSink(), batch_size=1)

    with tracer.start_span("op"):
        pass

    assert collector.force_flush(timeout_seconds=1)
    assert collector.shutdown(timeout_seconds=1)


def test_shutdown_flushes_once_and_drops_later_spans():
    sink = InMemorySpanSink()
    context = TracingContext(service_name="svc", sink=sink, batch_size=100, schedule_delay_seconds=3600)

    with context.tracer.start_span("before"):
        pass
    assert sink.spans == []

    assert context.shutdown(timeout_seconds=1)
    assert [span.name for span in sink.spans] == ["before"]
    assert sink.shut_down
    assert context.is_shut_down

    with context.tracer.start_span("after"):
        pass
    assert context.shutdown(timeout_seconds=1)
    assert [span.name for span in sink.spans] == ["before"]


def test_otlp_payload_shape():
    sink = InMemorySpanSink()
    tracer, collector = make_tracer(sink)

    with pytest.raises(KeyError):
        with tracer.start_span("root", kind=SpanKind.SERVER, attributes={"n": 3, "ok": True, "t": 1.5}) as root:
            with tracer.start_span("child", parent=root.context, kind=SpanKind.CLIENT):
                pass
            raise KeyError("missing")

    collector.force_flush(timeout_seconds=1)
    payload = build_otlp_payload(sink.spans)

    [resource] = payload["resourceSpans"]
    assert resource["resource"]["attributes"] == [{"key": "service.name", "value": {"stringValue": "svc"}}]
    spans = {span["name"]: span for span in resource["scopeSpans"][0]["spans"]}
    assert spans["child"]["kind"] == 3
    assert spans["child"]["parentSpanId"] == spans["root"]["spanId"]
    assert "parentSpanId" not in spans["root"]
    assert spans["root"]["kind"] == 2
    assert spans["root"]["status"]["code"] == 2
    assert {"key": "n", "value": {"intValue": "3"}} in spans["root"]["attributes"]
    assert {"key": "ok", "value": {"boolValue": True}} in spans["root"]["attributes"]
    assert {"key": "t", "value": {"doubleValue": 1.5}} in spans["root"]["attributes"]


def test_otlp_sink_posts_to_traces_path():
    received = []

    def handler(request: httpx.Request) -> httpx.Response:
        received.append(request)
        return httpx.Response(200, json={})

    sink = OtlpHttpSpanSink("otel-collector:4318", client=httpx.Client(transport=httpx.MockTransport(handler)))
    tracer, collector = make_tracer(sink, batch_size=1)

    with tracer.start_span("op"):
        pass
    collector.force_flush(timeout_seconds=1)

    assert sink.url == "http://otel-collector:4318/v1/traces"
    assert len(received) == 1
    assert received[0].url.path == "/v1/traces"


def test_otlp_sink_swallows_transport_errors():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    sink = OtlpHttpSpanSink("http://collector:4318", client=httpx.Client(transport=httpx.MockTransport(handler)))
    tracer, collector = make_tracer(sink, batch_size=1)

    with tracer.start_span("op"):
        pass

    assert collector.shutdown(timeout_seconds=1)
