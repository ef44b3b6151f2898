import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI

from app.api.errors import register_error_handlers
from app.api.gateway import router as gateway_router
from app.api.resolver import router as resolver_router
from app.core.config import Settings, settings as default_settings
from app.core.logging import configure_logging
from gateway.forwarder import GatewayForwarder
from observability.context import TracingContext
from resolution.geocode import GeocodeResolver
from resolution.pipeline import ResolutionPipeline
from resolution.weather import WeatherResolver

logger = logging.getLogger(__name__)


def _build_app(
    service_name: str,
    settings: Settings,
    wire,
    tracing: Optional[TracingContext],
    client: Optional[httpx.AsyncClient],
) -> FastAPI:
    """
    FastAPI app whose lifespan owns the tracing context and the shared
    outbound client. wire(app, client, tracer) stores the route
    collaborators on app.state.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging(settings.log_level)
        tracing_context = tracing or TracingContext.from_settings(settings, service_name)
        http_client = client or httpx.AsyncClient(timeout=settings.http_timeout_seconds)
        app.state.tracing = tracing_context
        wire(app, http_client, tracing_context.tracer)
        logger.info(f"{service_name} started")
        try:
            yield
        finally:
            if client is None:
                await http_client.aclose()
            await asyncio.to_thread(
                tracing_context.shutdown, settings.shutdown_timeout_seconds
            )
            logger.info(f"{service_name} stopped")

    app = FastAPI(title=service_name, lifespan=lifespan)
    register_error_handlers(app)

    @app.get("/health")
    async def health():
        return {"status": "ok", "service": service_name}

    return app


def create_resolver_app(
    settings: Settings = default_settings,
    tracing: Optional[TracingContext] = None,
    client: Optional[httpx.AsyncClient] = None,
    geocode_base_url: Optional[str] = None,
    weather_base_url: Optional[str] = None,
) -> FastAPI:
    """
    Internal resolver: CEP -> city -> temperature.
    """
    service_name = settings.resolver_service_name

    def wire(app: FastAPI, http_client: httpx.AsyncClient, tracer) -> None:
        geocoder = GeocodeResolver(
            client=http_client,
            tracer=tracer,
            base_url=geocode_base_url,
            timeout_seconds=settings.http_timeout_seconds,
        )
        weather = WeatherResolver(
            client=http_client,
            tracer=tracer,
            api_key=settings.weather_api_key,
            base_url=weather_base_url,
            timeout_seconds=settings.http_timeout_seconds,
        )
        app.state.pipeline = ResolutionPipeline(geocoder=geocoder, weather=weather)
        if not settings.weather_api_key:
            logger.warning("WEATHER_API_KEY is not set; every weather lookup will fail")

    app = _build_app(service_name, settings, wire, tracing, client)
    app.include_router(resolver_router)
    return app


def create_gateway_app(
    settings: Settings = default_settings,
    tracing: Optional[TracingContext] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> FastAPI:
    """
    Public gateway: validates and relays to the resolver.
    """
    service_name = settings.gateway_service_name

    def wire(app: FastAPI, http_client: httpx.AsyncClient, tracer) -> None:
        app.state.forwarder = GatewayForwarder(
            client=http_client,
            tracer=tracer,
            resolver_url=settings.resolver_url,
            timeout_seconds=settings.http_timeout_seconds,
        )
        logger.info(f"Forwarding to {app.state.forwarder.url}")

    app = _build_app(service_name, settings, wire, tracing, client)
    app.include_router(gateway_router)
    return app


# uvicorn app.main:gateway_app --port 8080
# uvicorn app.main:resolver_app --port 8081
gateway_app = create_gateway_app()
resolver_app = create_resolver_app()
