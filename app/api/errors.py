"""
Boundary error rendering.

The only place a PipelineError becomes an HTTP response.
"""

import logging

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse

from app.api.disconnect import ClientDisconnected
from resolution.errors import PipelineError


logger = logging.getLogger(__name__)

# Non-standard "client closed request"; the caller is gone and never reads it
CLIENT_CLOSED_REQUEST = 499


async def pipeline_error_handler(request: Request, exc: PipelineError) -> JSONResponse:
    """Render a classified failure as {"message": ...} with its status."""
    log = logger.info if exc.status_code < 500 else logger.warning
    log(f"{request.method} {request.url.path} -> {exc.status_code} {exc.kind}: {exc.detail or exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


async def client_disconnected_handler(request: Request, exc: ClientDisconnected) -> Response:
    logger.info(f"{request.method} {request.url.path}: client disconnected, downstream work cancelled")
    return Response(status_code=CLIENT_CLOSED_REQUEST)


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(PipelineError, pipeline_error_handler)
    app.add_exception_handler(ClientDisconnected, client_disconnected_handler)
