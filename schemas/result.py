from pydantic import BaseModel, ConfigDict, Field


class Location(BaseModel):
    """
    Successful geocode. Both fields are always present.
    """
    model_config = ConfigDict(frozen=True)

    city: str = Field(..., min_length=1)
    region: str = Field(..., description="State code (UF), e.g. 'SP'")


class TemperatureReading(BaseModel):
    """Successful weather lookup for a Location."""
    model_config = ConfigDict(frozen=True)

    celsius: float


class WeatherResult(BaseModel):
    """
    Terminal artifact of the resolution pipeline.

    Every temperature is already rounded to one decimal.
    """
    model_config = ConfigDict(frozen=True)

    city: str
    temp_celsius: float
    temp_fahrenheit: float
    temp_kelvin: float
