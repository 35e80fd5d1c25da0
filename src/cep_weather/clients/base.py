"""Shared request helper for the upstream clients."""

from __future__ import annotations

import json
import logging
from typing import Any, Mapping, Optional

import httpx

from cep_weather.errors import TransportError

logger = logging.getLogger(__name__)


async def get_json(
    http_client: httpx.AsyncClient,
    url: str,
    *,
    service: str,
    headers: Optional[Mapping[str, str]] = None,
    params: Optional[Mapping[str, str]] = None,
) -> dict[str, Any]:
    """GET ``url`` and return its body as a JSON object.

    Connection errors, timeouts, non-2xx statuses, bodies that are not JSON
    and JSON values that are not objects all raise :class:`TransportError`.
    ``service`` names the upstream in error messages.
    """
    logger.debug("GET %s (%s)", url, service)
    try:
        resp = await http_client.get(url, headers=headers, params=params)
        resp.raise_for_status()
    except httpx.HTTPStatusError as exc:
        raise TransportError(
            f"{service} returned HTTP {exc.response.status_code}"
        ) from exc
    except httpx.RequestError as exc:
        raise TransportError(
            f"could not reach {service}: {type(exc).__name__}: {exc}"
        ) from exc

    try:
        payload = resp.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise TransportError(f"{service} returned malformed JSON") from exc

    if not isinstance(payload, dict):
        raise TransportError(
            f"{service} returned {type(payload).__name__}, expected a JSON object"
        )
    return payload
