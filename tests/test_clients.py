"""Tests for the directory and weather clients.

Validates that the clients:
  - Build the upstream URLs and query strings
  - Map the directory's ``erro`` flag to a not-found record
  - Raise TransportError for connection errors, timeouts, non-2xx statuses
    and malformed payloads
  - Inject the current trace context into outbound headers
"""

from __future__ import annotations

import httpx
import pytest
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter
from opentelemetry.trace import SpanKind

from cep_weather.clients import DirectoryClient, WeatherClient
from cep_weather.errors import TransportError
from cep_weather.observability import Tracing

from conftest import API_KEY, FakeUpstreams

# ---------------------------------------------------------------------------
# DirectoryClient
# ---------------------------------------------------------------------------


class TestDirectoryClient:

    @pytest.mark.asyncio
    async def test_resolves_locality(
        self, directory_client: DirectoryClient, upstreams: FakeUpstreams
    ) -> None:
        record = await directory_client.resolve("01001000")

        assert record.found is True
        assert record.locality == "São Paulo"
        [request] = upstreams.directory_requests
        assert request.method == "GET"
        assert str(request.url) == "http://directory.test/ws/01001000/json"

    @pytest.mark.asyncio
    async def test_erro_flag_is_not_found(
        self, directory_client: DirectoryClient, upstreams: FakeUpstreams
    ) -> None:
        upstreams.directory_body = {"erro": "true"}

        record = await directory_client.resolve("99999999")

        assert record.found is False

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [400, 404, 500, 503])
    async def test_non_success_status_raises(
        self, directory_client: DirectoryClient, upstreams: FakeUpstreams, status: int
    ) -> None:
        upstreams.directory_status = status

        with pytest.raises(TransportError, match=f"HTTP {status}"):
            await directory_client.resolve("01001000")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error", [httpx.ConnectError, httpx.ReadTimeout])
    async def test_transport_failure_raises(
        self,
        directory_client: DirectoryClient,
        upstreams: FakeUpstreams,
        error: type[httpx.RequestError],
    ) -> None:
        upstreams.directory_error = error

        with pytest.raises(TransportError, match="could not reach"):
            await directory_client.resolve("01001000")

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "code, raw_path",
        [
            ("0100?000", b"/ws/0100%3F000/json"),
            ("0100#000", b"/ws/0100%23000/json"),
            ("01/01000", b"/ws/01%2F01000/json"),
        ],
    )
    async def test_postal_code_escaped_in_path(
        self,
        directory_client: DirectoryClient,
        upstreams: FakeUpstreams,
        code: str,
        raw_path: bytes,
    ) -> None:
        await directory_client.resolve(code)

        [request] = upstreams.directory_requests
        assert request.url.raw_path == raw_path
        assert request.url.query == b""
        assert request.url.fragment == ""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [b"<html>not json</html>", b"", b"[1, 2]", b'"text"'])
    async def test_malformed_payload_raises(
        self, directory_client: DirectoryClient, upstreams: FakeUpstreams, body: bytes
    ) -> None:
        upstreams.directory_body = body

        with pytest.raises(TransportError):
            await directory_client.resolve("01001000")

    @pytest.mark.asyncio
    async def test_records_client_span_and_injects_context(
        self,
        directory_client: DirectoryClient,
        upstreams: FakeUpstreams,
        span_exporter: InMemorySpanExporter,
    ) -> None:
        await directory_client.resolve("01001000")

        [span] = span_exporter.get_finished_spans()
        assert span.name == "directory.lookup"
        assert span.kind == SpanKind.CLIENT
        assert span.attributes["directory.found"] is True
        assert span.attributes["directory.locality"] == "São Paulo"

        traceparent = upstreams.directory_requests[0].headers["traceparent"]
        assert traceparent.split("-")[1] == format(span.context.trace_id, "032x")
        assert traceparent.split("-")[2] == format(span.context.span_id, "016x")


# ---------------------------------------------------------------------------
# WeatherClient
# ---------------------------------------------------------------------------


class TestWeatherClient:

    @pytest.mark.asyncio
    async def test_returns_celsius(
        self, weather_client: WeatherClient, upstreams: FakeUpstreams
    ) -> None:
        reading = await weather_client.lookup("São Paulo")

        assert reading.celsius == 25.0

    @pytest.mark.asyncio
    async def test_query_string_carries_key_and_escaped_locality(
        self, weather_client: WeatherClient, upstreams: FakeUpstreams
    ) -> None:
        await weather_client.lookup("São Paulo")

        [request] = upstreams.weather_requests
        assert request.url.path == "/v1/current.json"
        assert request.url.params["key"] == API_KEY
        assert request.url.params["q"] == "São Paulo"
        raw_query = request.url.query.decode("ascii")
        assert " " not in raw_query
        assert "ã" not in raw_query

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [400, 401, 403, 500])
    async def test_non_success_status_raises(
        self, weather_client: WeatherClient, upstreams: FakeUpstreams, status: int
    ) -> None:
        upstreams.weather_status = status
        upstreams.weather_body = {"error": {"code": 1006, "message": "No matching location found."}}

        with pytest.raises(TransportError):
            await weather_client.lookup("Nowhere")

    @pytest.mark.asyncio
    async def test_timeout_raises(
        self, weather_client: WeatherClient, upstreams: FakeUpstreams
    ) -> None:
        upstreams.weather_error = httpx.ConnectTimeout

        with pytest.raises(TransportError):
            await weather_client.lookup("São Paulo")

    @pytest.mark.asyncio
    async def test_missing_temperature_raises(
        self, weather_client: WeatherClient, upstreams: FakeUpstreams
    ) -> None:
        upstreams.weather_body = {"current": {"humidity": 40}}

        with pytest.raises(TransportError, match="temp_c"):
            await weather_client.lookup("São Paulo")

    @pytest.mark.asyncio
    async def test_failed_lookup_marks_span_error(
        self,
        weather_client: WeatherClient,
        upstreams: FakeUpstreams,
        span_exporter: InMemorySpanExporter,
    ) -> None:
        upstreams.weather_status = 502

        with pytest.raises(TransportError):
            await weather_client.lookup("São Paulo")

        [span] = span_exporter.get_finished_spans()
        assert span.name == "weather.lookup"
        assert not span.status.is_ok
        assert span.events[0].name == "exception"

    @pytest.mark.asyncio
    async def test_continues_current_trace(
        self,
        weather_client: WeatherClient,
        upstreams: FakeUpstreams,
        tracing: Tracing,
        span_exporter: InMemorySpanExporter,
    ) -> None:
        with tracing.start_span("parent") as parent:
            await weather_client.lookup("São Paulo")

        spans = {s.name: s for s in span_exporter.get_finished_spans()}
        assert spans["weather.lookup"].parent.span_id == parent.get_span_context().span_id
        traceparent = upstreams.weather_requests[0].headers["traceparent"]
        assert format(parent.get_span_context().trace_id, "032x") in traceparent
