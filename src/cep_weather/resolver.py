"""Resolver service: ``GET /{cep}`` -> city and temperature report.

The handler validates the postal code, looks it up in the directory, looks
the resulting locality up in the weather service and converts the reading.
Lookups run sequentially; the weather client is never called for a postal
code the directory does not know.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from opentelemetry.trace import SpanKind
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

from cep_weather.clients import DirectoryClient, WeatherClient
from cep_weather.errors import (
    DirectoryUnavailableError,
    NotFoundError,
    TransportError,
    WeatherUnavailableError,
)
from cep_weather.handlers import EXCEPTION_HANDLERS
from cep_weather.models import PostalCodeRequest, TemperatureReport
from cep_weather.observability import Tracing

logger = logging.getLogger(__name__)

SPAN_NAME = "request-service-b"


class ResolverOrchestrator:
    """Resolves one postal code into a :class:`TemperatureReport`."""

    def __init__(
        self,
        directory: DirectoryClient,
        weather: WeatherClient,
        tracing: Tracing,
    ) -> None:
        self._directory = directory
        self._weather = weather
        self._tracing = tracing

    async def resolve(self, cep: str, headers: Mapping[str, str]) -> TemperatureReport:
        """
        Build the temperature report for *cep*.

        Args:
            cep: Postal code from the request path
            headers: Inbound request headers carrying the caller's trace context

        Raises:
            ValidationError: *cep* is not 8 characters (before any lookup)
            DirectoryUnavailableError: the directory call failed
            NotFoundError: the directory does not know *cep*
            WeatherUnavailableError: the weather call failed
        """
        request = PostalCodeRequest(cep)

        parent = self._tracing.extract(headers)
        with self._tracing.start_span(
            SPAN_NAME,
            context=parent,
            kind=SpanKind.SERVER,
            attributes={"cep.code": request.code},
        ) as span:
            try:
                record = await self._directory.resolve(request.code)
            except TransportError as exc:
                raise DirectoryUnavailableError(str(exc)) from exc

            if not record.found:
                raise NotFoundError(f"directory has no entry for {request.code}")

            try:
                reading = await self._weather.lookup(record.locality)
            except TransportError as exc:
                raise WeatherUnavailableError(str(exc)) from exc

            report = TemperatureReport.from_celsius(record.locality, reading.celsius)
            span.set_attribute("weather.city", report.city)
            logger.info(
                "Resolved %s -> %s %.1fC", request.code, report.city, report.temp_c
            )
            return report


async def get_temperature(request: Request) -> JSONResponse:
    orchestrator: ResolverOrchestrator = request.app.state.orchestrator
    report = await orchestrator.resolve(request.path_params["cep"], request.headers)
    return JSONResponse(report.to_dict())


def create_app(
    orchestrator: Optional[ResolverOrchestrator] = None,
    lifespan: Optional[Any] = None,
) -> Starlette:
    """
    Create the resolver Starlette application.

    Args:
        orchestrator: Orchestrator to serve. When omitted, the lifespan must
            store one in ``app.state.orchestrator`` at startup.
        lifespan: Optional lifespan context manager

    Returns:
        Starlette application
    """
    app = Starlette(
        routes=[Route("/{cep}", get_temperature, methods=["GET"])],
        exception_handlers=EXCEPTION_HANDLERS,
        lifespan=lifespan,
    )
    if orchestrator is not None:
        app.state.orchestrator = orchestrator
    return app
