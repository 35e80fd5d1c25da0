"""Starlette exception handlers shared by both services."""

from __future__ import annotations

import logging

from starlette.requests import Request
from starlette.responses import PlainTextResponse, Response

from cep_weather.errors import CepWeatherError

logger = logging.getLogger(__name__)


async def handle_service_error(request: Request, exc: CepWeatherError) -> Response:
    """Render a :class:`CepWeatherError` as its plain-text status response.

    The internal detail goes to the log only.
    """
    if exc.status_code >= 500:
        logger.error(
            "%s %s -> %d %s: %s",
            request.method, request.url.path, exc.status_code, type(exc).__name__, exc.detail,
        )
    else:
        logger.warning(
            "%s %s -> %d %s: %s",
            request.method, request.url.path, exc.status_code, type(exc).__name__, exc.detail,
        )
    return PlainTextResponse(exc.message, status_code=exc.status_code)


EXCEPTION_HANDLERS = {CepWeatherError: handle_service_error}
