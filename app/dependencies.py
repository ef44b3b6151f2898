"""
FastAPI Dependencies

All object creation happens in the app lifespan, not per request.
These only hand out what the lifespan stored on app.state, so routes get
their collaborators explicitly and tests can override any of them.
"""

from fastapi import Request

from gateway.forwarder import GatewayForwarder
from observability.tracer import Tracer
from resolution.pipeline import ResolutionPipeline


def get_tracer(request: Request) -> Tracer:
    return request.app.state.tracing.tracer


def get_pipeline(request: Request) -> ResolutionPipeline:
    return request.app.state.pipeline


def get_forwarder(request: Request) -> GatewayForwarder:
    return request.app.state.forwarder
