"""Pytest configuration and fixtures for cep_weather tests."""

from __future__ import annotations

from typing import Any, Optional

import httpx
import pytest
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

from cep_weather.clients import DirectoryClient, WeatherClient
from cep_weather.observability import Tracing
from cep_weather.resolver import ResolverOrchestrator

DIRECTORY_URL = "http://directory.test"
WEATHER_URL = "http://weather.test/v1/current.json"
API_KEY = "test-key"

SAO_PAULO = {
    "cep": "01001-000",
    "logradouro": "Praça da Sé",
    "complemento": "lado ímpar",
    "bairro": "Sé",
    "localidade": "São Paulo",
    "uf": "SP",
    "ibge": "3550308",
    "gia": "1004",
    "ddd": "11",
    "siafi": "7107",
}


class FakeUpstreams:
    """In-process stand-in for the directory and weather services.

    ``*_body`` is sent as JSON unless it is ``bytes``; ``*_error`` is an
    ``httpx.RequestError`` subclass raised instead of answering.
    """

    def __init__(self) -> None:
        self.directory_status = 200
        self.directory_body: Any = SAO_PAULO
        self.directory_error: Optional[type[httpx.RequestError]] = None
        self.weather_status = 200
        self.weather_body: Any = {"location": {"name": "Sao Paulo"}, "current": {"temp_c": 25.0}}
        self.weather_error: Optional[type[httpx.RequestError]] = None
        self.requests: list[httpx.Request] = []

    @property
    def directory_requests(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.host == "directory.test"]

    @property
    def weather_requests(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.host == "weather.test"]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.host == "directory.test":
            status, body, error = self.directory_status, self.directory_body, self.directory_error
        elif request.url.host == "weather.test":
            status, body, error = self.weather_status, self.weather_body, self.weather_error
        else:
            return httpx.Response(404)

        if error is not None:
            raise error("simulated failure", request=request)
        if isinstance(body, bytes):
            return httpx.Response(status, content=body)
        return httpx.Response(status, json=body)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))


def make_tracing(exporter: InMemorySpanExporter, service_name: str = "test") -> Tracing:
    provider = TracerProvider(resource=Resource.create({"service.name": service_name}))
    provider.add_span_processor(SimpleSpanProcessor(exporter))
    return Tracing(provider)


@pytest.fixture()
def span_exporter() -> InMemorySpanExporter:
    return InMemorySpanExporter()


@pytest.fixture()
def tracing(span_exporter: InMemorySpanExporter) -> Tracing:
    return make_tracing(span_exporter)


@pytest.fixture()
def upstreams() -> FakeUpstreams:
    return FakeUpstreams()


@pytest.fixture()
def directory_client(upstreams: FakeUpstreams, tracing: Tracing) -> DirectoryClient:
    return DirectoryClient(upstreams.client(), DIRECTORY_URL, tracing)


@pytest.fixture()
def weather_client(upstreams: FakeUpstreams, tracing: Tracing) -> WeatherClient:
    return WeatherClient(upstreams.client(), WEATHER_URL, API_KEY, tracing)


@pytest.fixture()
def resolver_orchestrator(
    directory_client: DirectoryClient,
    weather_client: WeatherClient,
    tracing: Tracing,
) -> ResolverOrchestrator:
    return ResolverOrchestrator(directory_client, weather_client, tracing)
