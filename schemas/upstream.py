"""
Upstream payloads

Decoded shapes of the two external lookups. Only the fields we read are
declared; everything else is ignored.
"""

from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


class ViaCepPayload(BaseModel):
    """GET https://viacep.com.br/ws/{cep}/json/"""
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    city: Optional[str] = Field(default=None, alias="localidade")
    region: Optional[str] = Field(default=None, alias="uf")
    # ViaCEP sends "erro": true (older versions "erro": "true")
    not_found: bool = Field(default=False, alias="erro")

    @property
    def is_found(self) -> bool:
        return not self.not_found and bool(self.city)


class CurrentConditions(BaseModel):
    model_config = ConfigDict(extra="ignore")

    temp_c: float = Field(..., allow_inf_nan=False)


class WeatherApiPayload(BaseModel):
    """GET http://api.weatherapi.com/v1/current.json"""
    model_config = ConfigDict(extra="ignore")

    current: CurrentConditions
