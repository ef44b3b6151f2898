from contextlib import contextmanager
from typing import Iterator

from fastapi import Request

from observability.propagation import extract
from observability.trace import Span, SpanKind
from observability.tracer import Tracer
from resolution.errors import PipelineError


@contextmanager
def server_span(tracer: Tracer, request: Request) -> Iterator[Span]:
    """
    SERVER span for an inbound request, joined to the caller's trace when
    the request carries a trace context.
    """
    route = request.url.path
    with tracer.start_span(
        f"{tracer.service_name}{route.replace('/', '.')}",
        parent=extract(request.headers),
        kind=SpanKind.SERVER,
        attributes={"http.method": request.method, "http.route": route},
    ) as span:
        try:
            yield span
        except PipelineError as e:
            span.set_attribute("http.status_code", e.status_code)
            raise
