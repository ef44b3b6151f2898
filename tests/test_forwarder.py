import json

import httpx
import pytest

from fakes import corrupt_encoding_response, failing_handler, mock_client
from gateway.forwarder import RESOLVER_UNAVAILABLE, GatewayForwarder
from observability.trace import SpanContext
from resolution.errors import InvalidInput, UpstreamUnavailable


SAO_PAULO_BODY = '{"city":"São Paulo","temp_C":25.0,"temp_F":77.0,"temp_K":298.0}'.encode("utf-8")


class RecordingResolver:
    def __init__(self, status: int = 200, body: bytes = SAO_PAULO_BODY):
        self.status = status
        self.body = body
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status, content=self.body, headers={"Content-Type": "application/json"})


def make_forwarder(client, tracing):
    return GatewayForwarder(client=client, tracer=tracing.tracer, resolver_url="http://resolver.internal:8081/")


@pytest.mark.asyncio
async def test_relays_success_byte_for_byte(tracing):
    resolver = RecordingResolver()
    async with mock_client(resolver) as client:
        relayed = await make_forwarder(client, tracing).forward(b'{"cep": "01001000"}')

    assert relayed.status_code == 200
    assert relayed.body == SAO_PAULO_BODY
    [request] = resolver.requests
    assert request.method == "POST"
    assert str(request.url) == "http://resolver.internal:8081/cep"
    assert request.content == b'{"cep": "01001000"}'
    assert request.headers["content-type"] == "application/json"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "status, body",
    [
        (404, b'{"message":"can not find zipcode"}'),
        (502, b'{"message":"weather lookup failed"}'),
        (500, b"plain text, not json"),
    ],
)
async def test_relays_downstream_errors_without_reinterpreting(tracing, span_sink, status, body):
    async with mock_client(RecordingResolver(status, body)) as client:
        relayed = await make_forwarder(client, tracing).forward(b'{"cep": "00000000"}')

    assert relayed.status_code == status
    assert relayed.body == body

    tracing.collector.force_flush(timeout_seconds=1)
    [span] = span_sink.by_name("call.resolver")
    assert not span.has_error
    assert span.attributes["http.status_code"] == status


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "body",
    [b'{"cep": "abc"}', b'{"cep": 1001000}', b"{}", b"not json", b"", b"[]", b'{"cep": "01001-000"}'],
)
async def test_invalid_input_is_rejected_before_any_call(tracing, span_sink, body):
    resolver = RecordingResolver()
    async with mock_client(resolver) as client:
        with pytest.raises(InvalidInput) as excinfo:
            await make_forwarder(client, tracing).forward(body)

    assert excinfo.value.status_code == 422
    assert excinfo.value.to_payload() == {"message": "invalid zipcode"}
    assert resolver.requests == []
    tracing.collector.force_flush(timeout_seconds=1)
    assert span_sink.by_name("call.resolver") == []


@pytest.mark.asyncio
@pytest.mark.parametrize("error", [httpx.ConnectError, httpx.ReadTimeout])
async def test_unreachable_resolver_is_unavailable(tracing, span_sink, error):
    async with mock_client(failing_handler(error)) as client:
        with pytest.raises(UpstreamUnavailable) as excinfo:
            await make_forwarder(client, tracing).forward(b'{"cep": "01001000"}')

    assert excinfo.value.status_code == 502
    assert excinfo.value.message == RESOLVER_UNAVAILABLE
    tracing.collector.force_flush(timeout_seconds=1)
    [span] = span_sink.by_name("call.resolver")
    assert span.has_error


@pytest.mark.asyncio
async def test_unreadable_resolver_response_is_unavailable(tracing, span_sink):
    async with mock_client(lambda request: corrupt_encoding_response()) as client:
        with pytest.raises(UpstreamUnavailable) as excinfo:
            await make_forwarder(client, tracing).forward(b'{"cep": "01001000"}')

    assert excinfo.value.status_code == 502
    assert excinfo.value.to_payload() == {"message": RESOLVER_UNAVAILABLE}
    tracing.collector.force_flush(timeout_seconds=1)
    assert span_sink.by_name("call.resolver")[0].has_error


@pytest.mark.asyncio
async def test_injects_client_span_context(tracing, span_sink):
    resolver = RecordingResolver()
    parent = SpanContext.new_root()
    async with mock_client(resolver) as client:
        await make_forwarder(client, tracing).forward(b'{"cep": "01001000"}', parent=parent)

    tracing.collector.force_flush(timeout_seconds=1)
    [span] = span_sink.by_name("call.resolver")
    assert span.trace_id == parent.trace_id
    assert span.parent_span_id == parent.span_id
    assert resolver.requests[0].headers["traceparent"] == f"00-{parent.trace_id}-{span.span_id}-01"


def test_validate_returns_decoded_request(tracing):
    forwarder = GatewayForwarder(client=httpx.AsyncClient(), tracer=tracing.tracer, resolver_url="http://r")
    assert forwarder.validate(json.dumps({"cep": "01001000", "extra": 1}).encode()).cep == "01001000"
    assert forwarder.url == "http://r/cep"
