"""Intake service: ``POST /`` with ``{"cep": "..."}``.

Validates the payload, forwards the postal code to the resolver with the
trace context in the request headers and relays the resolver's answer.
Any resolver failure is reported to the caller as one generic 500; the
resolver's own status and message are not forwarded.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Mapping, Optional

import httpx
from opentelemetry.trace import SpanKind
from starlette.applications import Starlette
from starlette.requests import ClientDisconnect, Request
from starlette.responses import Response
from starlette.routing import Route

from cep_weather.errors import (
    MalformedRequestError,
    UpstreamUnavailableError,
    ValidationError,
)
from cep_weather.handlers import EXCEPTION_HANDLERS
from cep_weather.models import PostalCodeRequest
from cep_weather.observability import Tracing

logger = logging.getLogger(__name__)

SPAN_NAME = "request-service-a"


def parse_request(body: bytes) -> PostalCodeRequest:
    """Parse the intake payload.

    A body that is not a JSON object is malformed (400); a ``cep`` that is
    missing, not a string or not 8 characters is invalid (422).
    """
    try:
        payload = json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise MalformedRequestError(f"body is not valid JSON: {exc}") from exc
    if not isinstance(payload, dict):
        raise MalformedRequestError(
            f"body is a JSON {type(payload).__name__}, expected an object"
        )

    cep = payload.get("cep")
    if not isinstance(cep, str):
        raise ValidationError(f"cep is {type(cep).__name__}, expected a string")
    return PostalCodeRequest(cep)


class IntakeOrchestrator:
    """Forwards validated postal codes to the resolver service."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        resolver_url: str,
        tracing: Tracing,
    ) -> None:
        self._http = http_client
        self._resolver_url = resolver_url.rstrip("/")
        self._tracing = tracing

    async def forward(self, request: PostalCodeRequest, headers: Mapping[str, str]) -> bytes:
        """
        Call the resolver for *request* and return its response body.

        Args:
            request: Validated postal code
            headers: Inbound request headers carrying the caller's trace context

        Raises:
            UpstreamUnavailableError: the resolver could not be reached,
                timed out or answered with a non-2xx status
        """
        url = f"{self._resolver_url}/{request.code}"
        parent = self._tracing.extract(headers)
        with self._tracing.start_span(
            SPAN_NAME,
            context=parent,
            kind=SpanKind.SERVER,
            attributes={"cep.code": request.code},
        ):
            with self._tracing.start_span(
                "resolver.request",
                kind=SpanKind.CLIENT,
                attributes={"http.request.method": "GET", "url.full": url},
            ) as client_span:
                outbound = self._tracing.inject({})
                logger.debug("Forwarding %s to %s", request.code, url)
                try:
                    resp = await self._http.get(url, headers=outbound)
                except httpx.RequestError as exc:
                    raise UpstreamUnavailableError(
                        f"resolver unreachable: {type(exc).__name__}: {exc}"
                    ) from exc

                client_span.set_attribute("http.response.status_code", resp.status_code)
                if not resp.is_success:
                    raise UpstreamUnavailableError(
                        f"resolver answered HTTP {resp.status_code}"
                    )
                return resp.content


async def post_cep(request: Request) -> Response:
    orchestrator: IntakeOrchestrator = request.app.state.orchestrator
    try:
        body = await request.body()
    except ClientDisconnect as exc:
        raise MalformedRequestError("request body could not be read") from exc

    postal_code = parse_request(body)
    content = await orchestrator.forward(postal_code, request.headers)
    return Response(content, status_code=200, media_type="application/json")


def create_app(
    orchestrator: Optional[IntakeOrchestrator] = None,
    lifespan: Optional[Any] = None,
) -> Starlette:
    """
    Create the intake Starlette application.

    Args:
        orchestrator: Orchestrator to serve. When omitted, the lifespan must
            store one in ``app.state.orchestrator`` at startup.
        lifespan: Optional lifespan context manager

    Returns:
        Starlette application
    """
    app = Starlette(
        routes=[Route("/", post_cep, methods=["POST"])],
        exception_handlers=EXCEPTION_HANDLERS,
        lifespan=lifespan,
    )
    if orchestrator is not None:
        app.state.orchestrator = orchestrator
    return app
