"""Application factories wiring settings, tracing and HTTP clients.

Each app's lifespan acquires one tracing context and one pooled
``httpx.AsyncClient`` at startup and releases both at shutdown.
"""

from __future__ import annotations

import contextlib
import logging
from typing import AsyncIterator

import httpx
from starlette.applications import Starlette

from cep_weather import intake, resolver
from cep_weather.clients import DirectoryClient, WeatherClient
from cep_weather.config import Settings
from cep_weather.observability import ObservabilityConfig, setup_tracing

logger = logging.getLogger(__name__)

INTAKE_SERVICE_NAME = "service-a"
RESOLVER_SERVICE_NAME = "service-b"


def _http_client(settings: Settings) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        timeout=httpx.Timeout(settings.HTTP_TIMEOUT_SECONDS),
        follow_redirects=True,
    )


def build_intake_app(settings: Settings) -> Starlette:
    """Create the intake app; the resolver is reached at ``RESOLVER_URL``."""

    @contextlib.asynccontextmanager
    async def lifespan(app: Starlette) -> AsyncIterator[None]:
        tracing = setup_tracing(ObservabilityConfig(INTAKE_SERVICE_NAME))
        try:
            async with _http_client(settings) as client:
                app.state.orchestrator = intake.IntakeOrchestrator(
                    client, settings.RESOLVER_URL, tracing
                )
                logger.info("Intake service forwarding to %s", settings.RESOLVER_URL)
                yield
        finally:
            tracing.shutdown()

    return intake.create_app(lifespan=lifespan)


def build_resolver_app(settings: Settings) -> Starlette:
    """Create the resolver app.

    Raises:
        ValueError: ``WEATHER_API_KEY`` is not configured
    """
    if not settings.WEATHER_API_KEY:
        raise ValueError("WEATHER_API_KEY must be set to run the resolver service")
    api_key = settings.WEATHER_API_KEY

    @contextlib.asynccontextmanager
    async def lifespan(app: Starlette) -> AsyncIterator[None]:
        tracing = setup_tracing(ObservabilityConfig(RESOLVER_SERVICE_NAME))
        try:
            async with _http_client(settings) as client:
                app.state.orchestrator = resolver.ResolverOrchestrator(
                    directory=DirectoryClient(client, settings.DIRECTORY_BASE_URL, tracing),
                    weather=WeatherClient(client, settings.WEATHER_BASE_URL, api_key, tracing),
                    tracing=tracing,
                )
                logger.info("Directory service: %s", settings.DIRECTORY_BASE_URL)
                logger.info("Weather service:   %s", settings.WEATHER_BASE_URL)
                yield
        finally:
            tracing.shutdown()

    return resolver.create_app(lifespan=lifespan)
