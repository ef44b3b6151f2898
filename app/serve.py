"""
Process entry points.

    cep-gateway   -> app.main:gateway_app on CEP_WEATHER_GATEWAY_PORT
    cep-resolver  -> app.main:resolver_app on CEP_WEATHER_RESOLVER_PORT
"""

import uvicorn

from app.core.config import settings


def run_gateway() -> None:
    uvicorn.run("app.main:gateway_app", host=settings.api_host, port=settings.gateway_port, log_config=None)


def run_resolver() -> None:
    uvicorn.run("app.main:resolver_app", host=settings.api_host, port=settings.resolver_port, log_config=None)
