"""
Gateway Forwarder

Validates the public request, then relays it to the resolver.

Once validation passes the gateway is a transparent relay: whatever status
and body the resolver returns go back to the caller byte-for-byte. Only a
failure to reach the resolver at all is a local error.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from observability.propagation import inject
from observability.trace import SpanContext, SpanKind
from observability.tracer import Tracer
from resolution.errors import InvalidInput, UpstreamUnavailable
from resolution.validator import is_valid_cep
from schemas.request import CepRequest


logger = logging.getLogger(__name__)

RESOLVER_UNAVAILABLE = "weather service unavailable"


@dataclass(frozen=True)
class RelayedResponse:
    """Downstream answer, untouched."""
    status_code: int
    body: bytes
    media_type: str = "application/json"


class GatewayForwarder:
    """
    Forwards validated CEP requests to the resolver's POST /cep.
    """

    SPAN_NAME = "call.resolver"
    PATH = "/cep"

    def __init__(
        self,
        client: httpx.AsyncClient,
        tracer: Tracer,
        resolver_url: str,
        timeout_seconds: float = 5.0,
    ):
        self._client = client
        self._tracer = tracer
        self._url = resolver_url.rstrip("/") + self.PATH
        self._timeout = timeout_seconds

    @property
    def url(self) -> str:
        return self._url

    def validate(self, body: bytes) -> CepRequest:
        """
        Decode and check the body before anything is sent.

        Raises:
            InvalidInput: undecodable body or malformed cep.
        """
        request = CepRequest.from_body(body)
        if not is_valid_cep(request.cep):
            raise InvalidInput(f"rejected cep {request.cep!r}")
        return request

    async def forward(self, body: bytes, parent: Optional[SpanContext] = None) -> RelayedResponse:
        """
        Validate body, then POST it unchanged to the resolver.

        Args:
            body: Raw inbound request body.
            parent: Span context of the inbound request.

        Returns:
            The resolver's status and body, whatever they are.

        Raises:
            InvalidInput: before any network call.
            UpstreamUnavailable: the resolver could not be reached in time,
                or its response body could not be read.
        """
        self.validate(body)

        with self._tracer.start_span(
            self.SPAN_NAME,
            parent=parent,
            kind=SpanKind.CLIENT,
            attributes={"http.method": "POST", "http.url": self._url},
        ) as span:
            headers = inject(span.context, {"Content-Type": "application/json"})
            try:
                response = await self._client.post(
                    self._url, content=body, headers=headers, timeout=self._timeout
                )
            except httpx.RequestError as e:
                raise UpstreamUnavailable(
                    f"resolver request failed: {type(e).__name__}: {e}",
                    message=RESOLVER_UNAVAILABLE,
                ) from e

            # Non-2xx from the resolver is relayed, not a local error
            span.set_attribute("http.status_code", response.status_code)
            return RelayedResponse(status_code=response.status_code, body=response.content)
