"""Weather client: locality -> current Celsius temperature."""

from __future__ import annotations

import httpx
from opentelemetry.trace import SpanKind

from cep_weather.clients.base import get_json
from cep_weather.errors import TransportError
from cep_weather.models import WeatherReading
from cep_weather.observability import Tracing


class WeatherClient:
    """Reads current conditions from a WeatherAPI-compatible endpoint.

    The API key is supplied at construction and sent as the ``key`` query
    parameter; the locality goes in ``q`` and is URL-escaped by httpx.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        base_url: str,
        api_key: str,
        tracing: Tracing,
    ) -> None:
        self._http = http_client
        self._base_url = base_url
        self._api_key = api_key
        self._tracing = tracing

    async def lookup(self, locality: str) -> WeatherReading:
        with self._tracing.start_span(
            "weather.lookup",
            kind=SpanKind.CLIENT,
            attributes={"http.request.method": "GET", "weather.locality": locality},
        ) as span:
            headers = self._tracing.inject({})
            payload = await get_json(
                self._http,
                self._base_url,
                service="weather service",
                headers=headers,
                params={"key": self._api_key, "q": locality},
            )
            try:
                reading = WeatherReading.from_payload(payload)
            except ValueError as exc:
                raise TransportError(f"weather service: {exc}") from exc
            span.set_attribute("weather.temp_c", reading.celsius)
            return reading
