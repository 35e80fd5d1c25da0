"""
OpenTelemetry tracing setup and W3C trace context propagation.

This module provides:
- ``TraceContextCarrier``: the extract/inject interface the request pipeline
  depends on
- ``W3CTraceContextCarrier``: the carrier backed by the W3C Trace Context
  (``traceparent``/``tracestate``) and Baggage (``baggage``) propagators
- ``Tracing``: an explicitly constructed tracing context (provider, tracer,
  carrier) handed to each orchestrator instead of process-wide globals
- ``setup_tracing``: builds a ``Tracing`` with the configured exporter

Usage:
    from cep_weather.observability import ObservabilityConfig, setup_tracing

    tracing = setup_tracing(ObservabilityConfig("resolver"))

    # In request handler - continue the caller's trace
    ctx = tracing.extract(request.headers)
    with tracing.start_span("request-service-b", context=ctx):
        headers = tracing.inject({})
        response = await client.get(url, headers=headers)

    # At shutdown - flush pending spans
    tracing.shutdown()
"""

from __future__ import annotations

import logging
import os
from contextlib import contextmanager
from typing import Dict, Iterator, Mapping, MutableMapping, Optional, Protocol

from opentelemetry import context as otel_context
from opentelemetry.baggage.propagation import W3CBaggagePropagator
from opentelemetry.context import Context
from opentelemetry.propagators.composite import CompositePropagator
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import (
    BatchSpanProcessor,
    ConsoleSpanExporter,
    SpanExporter,
)
from opentelemetry.sdk.trace.sampling import ALWAYS_ON
from opentelemetry.trace import Span, SpanKind, Status, StatusCode
from opentelemetry.trace.propagation.tracecontext import TraceContextTextMapPropagator
from opentelemetry.util.types import Attributes

logger = logging.getLogger(__name__)

TRACER_NAME = "cep_weather"


# ---------------------------------------------------------------------------
# Trace context carrier
# ---------------------------------------------------------------------------


class TraceContextCarrier(Protocol):
    """Reads and writes trace context on HTTP header mappings."""

    def extract(self, headers: Mapping[str, str]) -> Context:
        ...

    def inject(
        self,
        headers: MutableMapping[str, str],
        context: Optional[Context] = None,
    ) -> MutableMapping[str, str]:
        ...


class W3CTraceContextCarrier:
    """
    Carrier for the W3C Trace Context and Baggage header formats.

    - TraceContextTextMapPropagator: handles 'traceparent' header (trace_id + parent_span_id)
    - W3CBaggagePropagator: handles 'baggage' header (user metadata like request ids)
    """

    def __init__(self) -> None:
        self._propagator = CompositePropagator([
            TraceContextTextMapPropagator(),
            W3CBaggagePropagator(),
        ])

    @property
    def fields(self) -> set[str]:
        return self._propagator.fields

    def extract(self, headers: Mapping[str, str]) -> Context:
        """
        Extract trace context from inbound HTTP headers.

        Headers without a valid ``traceparent`` yield an empty context, so the
        span started from it becomes the root of a new trace.
        """
        return self._propagator.extract(carrier=headers)

    def inject(
        self,
        headers: MutableMapping[str, str],
        context: Optional[Context] = None,
    ) -> MutableMapping[str, str]:
        """
        Inject trace context into outbound HTTP headers (modified in place).

        Uses the current context when ``context`` is not given.
        """
        self._propagator.inject(headers, context=context)
        return headers


# ---------------------------------------------------------------------------
# Tracing context
# ---------------------------------------------------------------------------


class Tracing:
    """
    Tracer provider, tracer and carrier for one service process.

    Constructed once at startup and passed to the orchestrators and clients;
    ``shutdown`` flushes and releases the span processors.
    """

    def __init__(
        self,
        tracer_provider: TracerProvider,
        carrier: Optional[TraceContextCarrier] = None,
        tracer_name: str = TRACER_NAME,
    ) -> None:
        self.tracer_provider = tracer_provider
        self.carrier = carrier or W3CTraceContextCarrier()
        self.tracer = tracer_provider.get_tracer(tracer_name)

    def extract(self, headers: Mapping[str, str]) -> Context:
        return self.carrier.extract(headers)

    def inject(
        self,
        headers: MutableMapping[str, str],
        context: Optional[Context] = None,
    ) -> MutableMapping[str, str]:
        return self.carrier.inject(headers, context=context)

    @contextmanager
    def start_span(
        self,
        name: str,
        context: Optional[Context] = None,
        kind: SpanKind = SpanKind.INTERNAL,
        attributes: Attributes = None,
    ) -> Iterator[Span]:
        """
        Start a span and make it current for the duration of the block.

        Args:
            name: Span name
            context: Parent context, typically from ``extract``. It is made
                current for the block, so its baggage reaches outbound
                ``inject`` calls. Defaults to the current context.
            kind: Span kind (SERVER for inbound handlers, CLIENT for calls)
            attributes: Initial span attributes

        Yields:
            The created span

        The span status is set to OK when the block completes and to ERROR,
        with the exception recorded, when it raises.
        """
        token = otel_context.attach(context) if context is not None else None
        try:
            with self.tracer.start_as_current_span(
                name,
                kind=kind,
                attributes=attributes,
                record_exception=False,
                set_status_on_exception=False,
            ) as span:
                try:
                    yield span
                    span.set_status(Status(StatusCode.OK))
                except Exception as e:
                    span.set_status(Status(StatusCode.ERROR, str(e)))
                    span.record_exception(e)
                    raise
        finally:
            if token is not None:
                otel_context.detach(token)

    def shutdown(self) -> None:
        self.tracer_provider.shutdown()


# ---------------------------------------------------------------------------
# Setup
# ---------------------------------------------------------------------------


def _get_otlp_exporter(endpoint: str, protocol: str) -> SpanExporter:
    """
    Get the appropriate OTLP exporter based on protocol.

    Args:
        endpoint: OTLP endpoint URL
        protocol: Protocol to use ('grpc' or 'http/protobuf')

    Returns:
        Configured OTLP span exporter
    """
    if protocol.lower() == "grpc":
        from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import (
            OTLPSpanExporter as GrpcExporter,
        )
        # For gRPC, endpoint should not have http:// prefix
        grpc_endpoint = endpoint.replace("http://", "").replace("https://", "")
        return GrpcExporter(endpoint=grpc_endpoint, insecure=True)
    else:
        from opentelemetry.exporter.otlp.proto.http.trace_exporter import (
            OTLPSpanExporter as HttpExporter,
        )
        # Ensure endpoint has /v1/traces path for HTTP
        if not endpoint.endswith("/v1/traces"):
            endpoint = endpoint.rstrip("/") + "/v1/traces"
        return HttpExporter(endpoint=endpoint)


class ObservabilityConfig:
    """
    Configuration for tracing setup.

    Reads from the standard OTEL environment variables.
    """

    def __init__(self, service_name: Optional[str] = None):
        self.service_name = service_name or os.getenv("OTEL_SERVICE_NAME", "cep-weather")
        self.deployment_env = os.getenv("DEPLOYMENT_ENVIRONMENT", "local")

        # Empty endpoint disables OTLP export
        self.otlp_endpoint = os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT", "")
        self.otlp_protocol = os.getenv("OTEL_EXPORTER_OTLP_PROTOCOL", "grpc")
        self.console_tracing = os.getenv("OTEL_CONSOLE_TRACING", "false").lower() in ("true", "1", "yes")

        self.extra_resource_attrs = self._parse_resource_attrs()

    def _parse_resource_attrs(self) -> Dict[str, str]:
        """
        Parse OTEL_RESOURCE_ATTRIBUTES environment variable.

        Format: key1=value1,key2=value2
        """
        attrs = {}
        resource_attrs_str = os.getenv("OTEL_RESOURCE_ATTRIBUTES", "")

        if resource_attrs_str:
            for pair in resource_attrs_str.split(","):
                if "=" in pair:
                    key, value = pair.split("=", 1)
                    attrs[key.strip()] = value.strip()

        return attrs

    def get_resource_attributes(self) -> Dict[str, str]:
        attrs = {
            "service.name": self.service_name,
            "deployment.environment": self.deployment_env,
        }
        attrs.update(self.extra_resource_attrs)
        return attrs


def setup_tracing(
    config: ObservabilityConfig,
    exporter: Optional[SpanExporter] = None,
) -> Tracing:
    """
    Build the tracing context for one service.

    The exporter is, in order of preference: the ``exporter`` argument, an
    OTLP exporter when ``OTEL_EXPORTER_OTLP_ENDPOINT`` is set, a console
    exporter when ``OTEL_CONSOLE_TRACING`` is on. With none of them spans
    are still created and propagated but not exported.
    """
    logger.info("Setting up OpenTelemetry tracing")
    logger.info("Service Name:      %s", config.service_name)
    logger.info("OTLP Endpoint:     %s", config.otlp_endpoint or "(disabled)")
    logger.info("OTLP Protocol:     %s", config.otlp_protocol)
    logger.info("Deployment Env:    %s", config.deployment_env)

    resource = Resource.create(attributes=config.get_resource_attributes())
    tracer_provider = TracerProvider(resource=resource, sampler=ALWAYS_ON)

    if exporter is None:
        if config.otlp_endpoint:
            exporter = _get_otlp_exporter(config.otlp_endpoint, config.otlp_protocol)
        elif config.console_tracing:
            exporter = ConsoleSpanExporter()

    if exporter is not None:
        tracer_provider.add_span_processor(BatchSpanProcessor(exporter))
        logger.info("Span exporter: %s", type(exporter).__name__)
    else:
        logger.warning("No span exporter configured - spans will not be exported")

    return Tracing(tracer_provider)
