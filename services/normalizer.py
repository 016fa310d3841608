"""Turn raw air-quality feed payloads into complete, rounded readings."""

from __future__ import annotations

import logging
import math
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Mapping, Optional

from models.records import Reading
from services.heat_index import compute_heat_index
from services.risk import classify_risk

logger = logging.getLogger(__name__)

DEFAULT_TEMPERATURE = 35.0
DEFAULT_HUMIDITY = 40.0
DEFAULT_PM25 = 50.0
DEFAULT_WIND_SPEED = 5.0
DEFAULT_UV_INDEX = 6.0

_NO_STATION_MESSAGE = "No station found nearby"


class MalformedPayloadError(ValueError):
    """The provider reported a failure or returned a body that cannot be read."""


def round_half_away(value: float, places: int = 0) -> float:
    """Round ``value`` to ``places`` decimals, ties away from zero."""
    exponent = Decimal(1).scaleb(-places)
    try:
        rounded = Decimal(repr(value)).quantize(exponent, rounding=ROUND_HALF_UP)
    except InvalidOperation as exc:
        # Quantizing needs more digits than the context precision allows.
        raise MalformedPayloadError(f"Value {value!r} is out of range.") from exc
    return float(rounded)


class ReadingNormalizer:
    """Maps provider payloads to :class:`Reading` values.

    Individual instruments missing from the payload are filled with fixed
    defaults instead of failing the whole reading; crowd-sourced stations
    often report only a subset of sensors.
    """

    def normalize(self, payload: Any, now: datetime) -> Reading:
        data = self._extract_data(payload)
        iaqi = data.get("iaqi") or {}
        if not isinstance(iaqi, Mapping):
            raise MalformedPayloadError("Payload field 'iaqi' is not an object.")

        temperature = self._instrument(iaqi, "t", DEFAULT_TEMPERATURE)
        humidity = self._instrument(iaqi, "h", DEFAULT_HUMIDITY)
        pm25 = self._instrument(iaqi, "pm25", DEFAULT_PM25)
        wind_speed = self._instrument(iaqi, "w", DEFAULT_WIND_SPEED)
        uv_index = self._instrument(data, "uv", DEFAULT_UV_INDEX)

        return build_reading(
            timestamp=now,
            temperature=temperature,
            humidity=humidity,
            pm25=pm25,
            uv_index=uv_index,
            wind_speed=wind_speed,
        )

    @staticmethod
    def _extract_data(payload: Any) -> Mapping[str, Any]:
        if not isinstance(payload, Mapping):
            raise MalformedPayloadError("Payload is not a JSON object.")

        status = payload.get("status")
        data = payload.get("data")
        if status != "ok":
            message = data if isinstance(data, str) and data.strip() else _NO_STATION_MESSAGE
            logger.warning(
                "Provider reported failure",
                extra={"status": status, "reason": message},
            )
            raise MalformedPayloadError(message)

        if not isinstance(data, Mapping):
            raise MalformedPayloadError("Payload field 'data' is not an object.")
        return data

    @staticmethod
    def _instrument(source: Mapping[str, Any], key: str, default: float) -> float:
        raw = source.get(key)
        # Feed instruments are wrapped as {"v": value}; plain numbers are accepted too.
        if isinstance(raw, Mapping):
            raw = raw.get("v")
        if raw is None:
            logger.debug("Instrument missing, using default", extra={"reason": key})
            return default
        value = _to_float(raw)
        if value is None:
            raise MalformedPayloadError(f"Instrument {key!r} has a non-numeric value.")
        return value


def _to_float(raw: Any) -> Optional[float]:
    if isinstance(raw, bool):
        return None
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return None
    return value if math.isfinite(value) else None


def build_reading(
    *,
    timestamp: datetime,
    temperature: float,
    humidity: float,
    pm25: float,
    uv_index: float,
    wind_speed: float,
) -> Reading:
    """Round raw instrument values and derive heat index and risk level.

    Derivation runs on the rounded inputs, and the risk level on the rounded
    heat index, so both derived fields can be recomputed from the record.
    """
    temperature = round_half_away(temperature, 1)
    humidity_pct = int(round_half_away(humidity))
    pm25_value = max(0, int(round_half_away(pm25)))
    uv_value = max(0, int(round_half_away(uv_index)))
    heat_index = round_half_away(compute_heat_index(temperature, humidity_pct), 1)

    return Reading(
        timestamp=timestamp,
        temperature=temperature,
        humidity=humidity_pct,
        pm25=pm25_value,
        uv_index=uv_value,
        wind_speed=round_half_away(wind_speed, 1),
        heat_index=heat_index,
        risk_level=classify_risk(heat_index, pm25_value, uv_value),
    )
