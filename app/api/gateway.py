"""
Gateway API Route

Public POST /cep. Validates, then relays to the resolver. No business
logic lives here.
"""

from fastapi import APIRouter, Depends, Request, Response

from app.api.disconnect import cancel_on_disconnect
from app.api.tracing import server_span
from app.dependencies import get_forwarder, get_tracer
from gateway.forwarder import GatewayForwarder
from observability.tracer import Tracer
from schemas.response import ErrorResponse, WeatherResponse


router = APIRouter()


@router.post(
    "/cep",
    response_model=WeatherResponse,
    responses={404: {"model": ErrorResponse}, 422: {"model": ErrorResponse}, 502: {"model": ErrorResponse}},
)
async def forward_cep(
    request: Request,
    forwarder: GatewayForwarder = Depends(get_forwarder),
    tracer: Tracer = Depends(get_tracer),
) -> Response:
    with server_span(tracer, request) as span:
        body = await request.body()
        relayed = await cancel_on_disconnect(request, forwarder.forward(body, parent=span.context))
        span.set_attribute("http.status_code", relayed.status_code)
        return Response(
            content=relayed.body,
            status_code=relayed.status_code,
            media_type=relayed.media_type,
        )
