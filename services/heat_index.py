"""Apparent temperature from air temperature and relative humidity."""

from __future__ import annotations

HEAT_STRESS_THRESHOLD = 27.0

# Rothfusz regression coefficients, applied to the temperature in °C as-is.
_C1 = -42.379
_C2 = 2.04901523
_C3 = 10.14333127
_C4 = -0.22475541
_C5 = -0.00683783
_C6 = -0.05481717
_C7 = 0.00122874
_C8 = 0.00085282
_C9 = -0.00000199


def compute_heat_index(temperature: float, humidity: float) -> float:
    """Return the heat index in °C, never lower than ``temperature``.

    Below the heat-stress threshold humidity has no meaningful effect and the
    air temperature is returned unchanged.
    """
    if temperature < HEAT_STRESS_THRESHOLD:
        return temperature

    t = temperature
    rh = humidity
    hi = (
        _C1
        + _C2 * t
        + _C3 * rh
        + _C4 * t * rh
        + _C5 * t * t
        + _C6 * rh * rh
        + _C7 * t * t * rh
        + _C8 * t * rh * rh
        + _C9 * t * t * rh * rh
    )
    return max(temperature, hi)
