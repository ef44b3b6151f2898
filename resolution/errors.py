"""
Pipeline Errors

Failure taxonomy for CEP resolution.

DESIGN RULES:
- Classified once, where the failure happens
- Propagated unchanged up the call chain
- Rendered to an HTTP status only at the API boundary
"""

from typing import Optional


class PipelineError(Exception):
    """
    Base class for every classified resolution failure.

    Attributes:
        status_code: HTTP status the boundary renders this error as.
        message: Public message returned to the caller.
        detail: Private diagnostic (logged and recorded on spans only).
    """

    status_code: int = 502
    default_message: str = "lookup failed"

    def __init__(self, detail: Optional[str] = None, message: Optional[str] = None):
        self.detail = detail
        self.message = message or self.default_message
        super().__init__(detail or self.message)

    @property
    def kind(self) -> str:
        """Stable tag for logs and span attributes."""
        return type(self).__name__

    def to_payload(self) -> dict:
        """Public response body."""
        return {"message": self.message}


class InvalidInput(PipelineError):
    """Malformed body or postal code."""
    status_code = 422
    default_message = "invalid zipcode"


class NotFound(PipelineError):
    """The geocoder has no such postal code."""
    status_code = 404
    default_message = "can not find zipcode"


class UpstreamUnavailable(PipelineError):
    """Connection error or timeout talking to an upstream."""
    status_code = 502


class UpstreamProtocolError(PipelineError):
    """Upstream answered, but not with something usable."""
    status_code = 502

    def __init__(
        self,
        detail: Optional[str] = None,
        message: Optional[str] = None,
        upstream_status: Optional[int] = None,
    ):
        super().__init__(detail=detail, message=message)
        self.upstream_status = upstream_status


class MissingCredential(PipelineError):
    """Weather API key is not configured."""
    status_code = 502
