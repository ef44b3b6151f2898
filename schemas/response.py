from pydantic import BaseModel, ConfigDict, Field


class WeatherResponse(BaseModel):
    """
    Success body for POST /cep.

    Field names are part of the wire contract (temp_C, temp_F, temp_K).
    """
    model_config = ConfigDict(populate_by_name=True)

    city: str = Field(..., description="Resolved city name")
    temp_c: float = Field(..., alias="temp_C", description="Temperature in Celsius")
    temp_f: float = Field(..., alias="temp_F", description="Temperature in Fahrenheit")
    temp_k: float = Field(..., alias="temp_K", description="Temperature in Kelvin (C + 273)")

    @classmethod
    def from_result(cls, result: "WeatherResult") -> "WeatherResponse":
        return cls(
            city=result.city,
            temp_c=result.temp_celsius,
            temp_f=result.temp_fahrenheit,
            temp_k=result.temp_kelvin,
        )

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True)


class ErrorResponse(BaseModel):
    """Failure body for POST /cep."""
    message: str


from typing import TYPE_CHECKING
if TYPE_CHECKING:
    from schemas.result import WeatherResult
