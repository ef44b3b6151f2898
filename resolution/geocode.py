"""
Geocode Resolver

CEP -> Location through ViaCEP.

Classification:
- connection error / timeout        -> UpstreamUnavailable
- broken Content-Encoding           -> UpstreamProtocolError
- HTTP 400 or 404                   -> NotFound
- any other non-2xx                 -> UpstreamProtocolError
- undecodable body                  -> UpstreamProtocolError
- "erro": true or no city           -> NotFound
"""

import logging
from typing import Optional

import httpx
from pydantic import ValidationError

from observability.propagation import inject
from observability.trace import SpanContext, SpanKind
from observability.tracer import Tracer
from resolution.errors import NotFound, UpstreamProtocolError, UpstreamUnavailable
from schemas.result import Location
from schemas.upstream import ViaCepPayload


logger = logging.getLogger(__name__)

LOOKUP_FAILED = "zipcode lookup failed"
_NOT_FOUND_STATUSES = (400, 404)


class GeocodeResolver:
    """
    One ViaCEP GET per call, bounded by timeout_seconds.
    """

    BASE_URL = "https://viacep.com.br/ws"
    SPAN_NAME = "viacep.lookup"

    def __init__(
        self,
        client: httpx.AsyncClient,
        tracer: Tracer,
        base_url: Optional[str] = None,
        timeout_seconds: float = 5.0,
    ):
        self._client = client
        self._tracer = tracer
        self._base_url = (base_url or self.BASE_URL).rstrip("/")
        self._timeout = timeout_seconds

    async def resolve(self, cep: str, parent: Optional[SpanContext] = None) -> Location:
        """
        Look up the city for an already validated CEP.

        Args:
            cep: 8 ASCII digits.
            parent: Span context of the inbound request.

        Raises:
            NotFound, UpstreamUnavailable, UpstreamProtocolError
        """
        with self._tracer.start_span(
            self.SPAN_NAME,
            parent=parent,
            kind=SpanKind.CLIENT,
            attributes={"cep": cep},
        ) as span:
            url = f"{self._base_url}/{cep}/json/"
            headers = inject(span.context, {"Accept": "application/json"})
            try:
                response = await self._client.get(url, headers=headers, timeout=self._timeout)
            except httpx.DecodingError as e:
                raise UpstreamProtocolError(
                    f"viacep body undecodable: {e}",
                    message=LOOKUP_FAILED,
                ) from e
            except httpx.RequestError as e:
                raise UpstreamUnavailable(
                    f"viacep request failed: {type(e).__name__}: {e}",
                    message=LOOKUP_FAILED,
                ) from e

            span.set_attribute("http.status_code", response.status_code)
            if response.status_code in _NOT_FOUND_STATUSES:
                raise NotFound(f"viacep status {response.status_code}")
            if not response.is_success:
                raise UpstreamProtocolError(
                    f"viacep status {response.status_code}",
                    message=LOOKUP_FAILED,
                    upstream_status=response.status_code,
                )

            try:
                payload = ViaCepPayload.model_validate_json(response.content)
            except ValidationError as e:
                raise UpstreamProtocolError(
                    f"viacep payload undecodable: {e.error_count()} error(s)",
                    message=LOOKUP_FAILED,
                    upstream_status=response.status_code,
                ) from e

            if not payload.is_found:
                raise NotFound("viacep reported no such cep")

            location = Location(city=payload.city, region=payload.region or "")
            span.set_attributes({"city": location.city, "uf": location.region})
            logger.debug(f"CEP {cep} -> {location.city}/{location.region}")
            return location
