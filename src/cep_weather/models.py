"""Request, upstream and response records.

All records are immutable and live for a single request.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any

from cep_weather.conversion import celsius_to_fahrenheit, celsius_to_kelvin
from cep_weather.errors import ValidationError

POSTAL_CODE_LENGTH = 8


# ---------------------------------------------------------------------------
# Request
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PostalCodeRequest:
    """A postal code that passed the length check.

    The code is taken as a raw string: only its length is checked, its
    characters are not.
    """

    code: str

    def __post_init__(self) -> None:
        if not isinstance(self.code, str) or len(self.code) != POSTAL_CODE_LENGTH:
            raise ValidationError(f"postal code {self.code!r} is not {POSTAL_CODE_LENGTH} characters")


# ---------------------------------------------------------------------------
# Upstream records
# ---------------------------------------------------------------------------


def _flag_is_set(value: Any) -> bool:
    # The directory reports not-found as either a JSON boolean or the string "true".
    if isinstance(value, bool):
        return value
    return isinstance(value, str) and value.strip().lower() == "true"


@dataclass(frozen=True)
class DirectoryRecord:
    """Locality data returned by the postal directory."""

    found: bool
    locality: str = ""
    cep: str = ""
    street: str = ""
    complement: str = ""
    district: str = ""
    state: str = ""
    ibge: str = ""
    gia: str = ""
    ddd: str = ""
    siafi: str = ""

    @classmethod
    def not_found(cls) -> DirectoryRecord:
        return cls(found=False)

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> DirectoryRecord:
        """Build a record from the directory's JSON object."""
        if _flag_is_set(payload.get("erro")):
            return cls.not_found()

        def text(key: str) -> str:
            value = payload.get(key)
            return "" if value is None else str(value)

        return cls(
            found=True,
            locality=text("localidade"),
            cep=text("cep"),
            street=text("logradouro"),
            complement=text("complemento"),
            district=text("bairro"),
            state=text("uf"),
            ibge=text("ibge"),
            gia=text("gia"),
            ddd=text("ddd"),
            siafi=text("siafi"),
        )


@dataclass(frozen=True)
class WeatherReading:
    celsius: float

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> WeatherReading:
        """Read ``current.temp_c`` from the weather service's JSON object.

        Raises ``ValueError`` when the field is missing or not a finite number.
        """
        current = payload.get("current")
        if not isinstance(current, dict) or "temp_c" not in current:
            raise ValueError("weather payload has no current.temp_c field")
        temp_c = current["temp_c"]
        if isinstance(temp_c, bool) or not isinstance(temp_c, (int, float)):
            raise ValueError(f"current.temp_c is not a number: {temp_c!r}")
        if not math.isfinite(temp_c):
            raise ValueError(f"current.temp_c is not finite: {temp_c!r}")
        return cls(celsius=float(temp_c))


# ---------------------------------------------------------------------------
# Response
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TemperatureReport:
    city: str
    temp_c: float
    temp_f: float
    temp_k: float

    @classmethod
    def from_celsius(cls, city: str, celsius: float) -> TemperatureReport:
        return cls(
            city=city,
            temp_c=celsius,
            temp_f=celsius_to_fahrenheit(celsius),
            temp_k=celsius_to_kelvin(celsius),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "city": self.city,
            "temp_C": self.temp_c,
            "temp_F": self.temp_f,
            "temp_K": self.temp_k,
        }
