"""
CEP Weather - postal code to current temperature.

Two Starlette services chained over HTTP:

- intake: ``POST /`` validates ``{"cep": "..."}`` and forwards to the resolver
- resolver: ``GET /{cep}`` resolves the CEP to a city, then the city to a
  temperature in Celsius, Fahrenheit and Kelvin

W3C trace context travels across the hop so both services report into one
trace.
"""

__version__ = "0.1.0"
