"""HTTP clients for the upstream directory and weather services."""

from cep_weather.clients.directory import DirectoryClient
from cep_weather.clients.weather import WeatherClient

__all__ = ["DirectoryClient", "WeatherClient"]
