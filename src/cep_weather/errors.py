"""Error taxonomy for the intake and resolver services.

Every :class:`CepWeatherError` maps to the status code and short plain-text
body that callers see.  ``detail`` carries the internal cause for logs only
and is never written to a response.

:class:`TransportError` is raised by the outbound HTTP clients and is not
caller-visible; the orchestrators translate it into one of the errors
below.
"""

from __future__ import annotations

from typing import Optional


class TransportError(Exception):
    """An outbound call failed: connection, timeout, status or payload."""


class CepWeatherError(Exception):
    """Base class for errors that terminate a request."""

    status_code: int = 500
    message: str = "internal server error"

    def __init__(self, detail: Optional[str] = None) -> None:
        self.detail = detail
        super().__init__(detail or self.message)


class MalformedRequestError(CepWeatherError):
    status_code = 400
    message = "invalid request body"


class ValidationError(CepWeatherError):
    """The postal code is not exactly 8 characters long."""

    status_code = 422
    message = "invalid zipcode"


class NotFoundError(CepWeatherError):
    """The directory service does not know the postal code."""

    status_code = 404
    message = "can not find zipcode"


class DirectoryUnavailableError(CepWeatherError):
    status_code = 500
    message = "error fetching zipcode data"


class WeatherUnavailableError(CepWeatherError):
    """The weather lookup failed for the resolved locality.

    Reported as 404 with the same body as :class:`NotFoundError`.
    """

    status_code = 404
    message = "can not find zipcode"


class UpstreamUnavailableError(CepWeatherError):
    """The intake service could not get a successful answer from the resolver."""

    status_code = 500
    message = "error communicating with resolver service"
