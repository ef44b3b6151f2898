from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, StrictStr, ValidationError

from resolution.errors import InvalidInput


class CepRequest(BaseModel):
    """
    Request body for POST /cep on both the gateway and the resolver.

    A missing or non-string `cep` is left for format validation to reject.
    """
    model_config = ConfigDict(extra="ignore")

    cep: Optional[StrictStr] = Field(default=None, description="8-digit Brazilian postal code")

    @classmethod
    def from_body(cls, body: bytes) -> "CepRequest":
        """
        Decode a raw request body.

        Raises:
            InvalidInput: body is not a JSON object with a string (or absent) cep.
        """
        try:
            return cls.model_validate_json(body)
        except ValidationError as e:
            raise InvalidInput(f"malformed request body: {e.error_count()} error(s)") from e
