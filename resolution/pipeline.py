"""
Resolution Pipeline

CEP -> Location -> TemperatureReading -> WeatherResult.

DESIGN RULES:
- Strictly sequential: each step consumes the previous step's output
- First failure short-circuits and is returned unchanged
- No retries, no partial results
"""

import logging
from typing import Callable, Optional

from observability.trace import SpanContext
from resolution.converter import Temperatures, convert
from resolution.errors import InvalidInput
from resolution.geocode import GeocodeResolver
from resolution.validator import is_valid_cep
from resolution.weather import WeatherResolver
from schemas.result import WeatherResult


logger = logging.getLogger(__name__)


class ResolutionPipeline:
    """
    Orchestrates the geocode and weather lookups for one request.

    Resolvers are injected, so tests can substitute either one.
    """

    def __init__(
        self,
        geocoder: GeocodeResolver,
        weather: WeatherResolver,
        converter: Callable[[float], Temperatures] = convert,
    ):
        self._geocoder = geocoder
        self._weather = weather
        self._convert = converter

    async def resolve(self, cep: Optional[str], parent: Optional[SpanContext] = None) -> WeatherResult:
        """
        Resolve a CEP into the current temperature of its city.

        Args:
            cep: Candidate postal code, validated here before any network call.
            parent: Span context of the inbound request.

        Raises:
            PipelineError: whichever step failed first.
        """
        if not is_valid_cep(cep):
            raise InvalidInput(f"rejected cep {cep!r}")

        location = await self._geocoder.resolve(cep, parent=parent)
        reading = await self._weather.current(location, parent=parent)
        temperatures = self._convert(reading.celsius)

        logger.info(f"Resolved {cep} -> {location.city}/{location.region}: {temperatures.celsius}C")
        return WeatherResult(
            city=location.city,
            temp_celsius=temperatures.celsius,
            temp_fahrenheit=temperatures.fahrenheit,
            temp_kelvin=temperatures.kelvin,
        )
