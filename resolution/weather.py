"""
Weather Resolver

Location -> current Celsius temperature through WeatherAPI.
"""

import logging
from typing import Optional

import httpx
from pydantic import ValidationError

from observability.propagation import inject
from observability.trace import SpanContext, SpanKind
from observability.tracer import Tracer
from resolution.errors import MissingCredential, UpstreamProtocolError, UpstreamUnavailable
from schemas.result import Location, TemperatureReading
from schemas.upstream import WeatherApiPayload


logger = logging.getLogger(__name__)

WEATHER_FAILED = "weather lookup failed"
_MAX_BODY_IN_DETAIL = 500


class WeatherResolver:
    """
    One WeatherAPI GET per call, bounded by timeout_seconds.

    The API key is checked before anything goes on the wire: without it the
    call fails with MissingCredential and no request is made.
    """

    BASE_URL = "http://api.weatherapi.com/v1/current.json"
    COUNTRY = "BR"
    SPAN_NAME = "weatherapi.current"

    def __init__(
        self,
        client: httpx.AsyncClient,
        tracer: Tracer,
        api_key: Optional[str],
        base_url: Optional[str] = None,
        timeout_seconds: float = 5.0,
    ):
        self._client = client
        self._tracer = tracer
        self._api_key = api_key or ""
        self._base_url = base_url or self.BASE_URL
        self._timeout = timeout_seconds

    async def current(self, location: Location, parent: Optional[SpanContext] = None) -> TemperatureReading:
        """
        Raises:
            MissingCredential, UpstreamUnavailable, UpstreamProtocolError
        """
        with self._tracer.start_span(
            self.SPAN_NAME,
            parent=parent,
            kind=SpanKind.CLIENT,
            attributes={"city": location.city, "uf": location.region},
        ) as span:
            if not self._api_key:
                raise MissingCredential("WEATHER_API_KEY is not set", message=WEATHER_FAILED)

            params = {
                "key": self._api_key,
                "q": f"{location.city},{location.region},{self.COUNTRY}",
                "aqi": "no",
            }
            headers = inject(span.context, {"Accept": "application/json"})
            try:
                response = await self._client.get(
                    self._base_url, params=params, headers=headers, timeout=self._timeout
                )
            except httpx.DecodingError as e:
                raise UpstreamProtocolError(
                    f"weather body undecodable: {type(e).__name__}",
                    message=WEATHER_FAILED,
                ) from e
            except httpx.RequestError as e:
                raise UpstreamUnavailable(
                    f"weatherapi request failed: {type(e).__name__}",
                    message=WEATHER_FAILED,
                ) from e

            span.set_attribute("http.status_code", response.status_code)
            if not response.is_success:
                raise UpstreamProtocolError(
                    f"weather status {response.status_code}: {response.text[:_MAX_BODY_IN_DETAIL]}",
                    message=WEATHER_FAILED,
                    upstream_status=response.status_code,
                )

            try:
                payload = WeatherApiPayload.model_validate_json(response.content)
            except ValidationError as e:
                raise UpstreamProtocolError(
                    f"weather payload undecodable: {e.error_count()} error(s)",
                    message=WEATHER_FAILED,
                    upstream_status=response.status_code,
                ) from e

            span.set_attribute("temp_c", payload.current.temp_c)
            return TemperatureReading(celsius=payload.current.temp_c)
