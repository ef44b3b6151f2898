from resolution.errors import (
    InvalidInput,
    MissingCredential,
    NotFound,
    PipelineError,
    UpstreamProtocolError,
    UpstreamUnavailable,
)
from resolution.pipeline import ResolutionPipeline

__all__ = [
    "InvalidInput",
    "MissingCredential",
    "NotFound",
    "PipelineError",
    "UpstreamProtocolError",
    "UpstreamUnavailable",
    "ResolutionPipeline",
]
