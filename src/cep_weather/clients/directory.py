"""Postal directory client: postal code -> locality."""

from __future__ import annotations

import logging
from urllib.parse import quote

import httpx
from opentelemetry.trace import SpanKind

from cep_weather.clients.base import get_json
from cep_weather.models import DirectoryRecord
from cep_weather.observability import Tracing

logger = logging.getLogger(__name__)


class DirectoryClient:
    """Looks postal codes up in a ViaCEP-compatible directory.

    Parameters
    ----------
    http_client:
        Shared async HTTP client; timeouts are configured on it.
    base_url:
        Directory root, e.g. ``http://viacep.com.br``.
    tracing:
        Tracing context used for the lookup span and header injection.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        base_url: str,
        tracing: Tracing,
    ) -> None:
        self._http = http_client
        self._base_url = base_url.rstrip("/")
        self._tracing = tracing

    def _url(self, postal_code: str) -> str:
        return f"{self._base_url}/ws/{quote(postal_code, safe='')}/json"

    async def resolve(self, postal_code: str) -> DirectoryRecord:
        """Return the directory record for *postal_code*.

        A payload with the ``erro`` flag set yields a record with
        ``found=False``.  Any failure to obtain a JSON object raises
        :class:`~cep_weather.errors.TransportError`.
        """
        url = self._url(postal_code)
        with self._tracing.start_span(
            "directory.lookup",
            kind=SpanKind.CLIENT,
            attributes={"http.request.method": "GET", "url.full": url},
        ) as span:
            headers = self._tracing.inject({})
            payload = await get_json(
                self._http, url, service="directory service", headers=headers
            )
            record = DirectoryRecord.from_payload(payload)
            span.set_attribute("directory.found", record.found)
            if record.found:
                span.set_attribute("directory.locality", record.locality)
            else:
                logger.info("Directory has no entry for postal code %s", postal_code)
            return record
