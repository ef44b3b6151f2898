"""
Resolver API Route

POST /cep on the internal resolver. Thin delegation to ResolutionPipeline;
failures are rendered by the registered error handlers.
"""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from app.api.disconnect import cancel_on_disconnect
from app.api.tracing import server_span
from app.dependencies import get_pipeline, get_tracer
from observability.tracer import Tracer
from resolution.pipeline import ResolutionPipeline
from schemas.request import CepRequest
from schemas.response import ErrorResponse, WeatherResponse


router = APIRouter()


@router.post(
    "/cep",
    response_model=WeatherResponse,
    responses={404: {"model": ErrorResponse}, 422: {"model": ErrorResponse}, 502: {"model": ErrorResponse}},
)
async def resolve_cep(
    request: Request,
    pipeline: ResolutionPipeline = Depends(get_pipeline),
    tracer: Tracer = Depends(get_tracer),
) -> JSONResponse:
    """
    Resolve a CEP into the current temperature of its city.

    Body is decoded by hand so that malformed JSON is an InvalidInput (422)
    with the same body as a bad CEP.
    """
    with server_span(tracer, request) as span:
        body = await request.body()
        cep_request = CepRequest.from_body(body)
        result = await cancel_on_disconnect(
            request, pipeline.resolve(cep_request.cep, parent=span.context)
        )
        span.set_attribute("http.status_code", 200)
        return JSONResponse(content=WeatherResponse.from_result(result).to_wire())
