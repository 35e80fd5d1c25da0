"""Celsius conversions used by the temperature report."""


def celsius_to_fahrenheit(celsius: float) -> float:
    return celsius * 9 / 5 + 32


def celsius_to_kelvin(celsius: float) -> float:
    return celsius + 273.15
