"""CSV rendering of the history window."""

from __future__ import annotations

import csv
import io
from datetime import date
from typing import Iterable

from models.records import Reading

CSV_HEADERS = (
    "Time",
    "Temperature (°C)",
    "Humidity (%)",
    "PM2.5 (μg/m³)",
    "UV Index",
    "Wind Speed (km/h)",
    "Heat Index (°C)",
    "Risk Level",
)

_TIME_FORMAT = "%Y-%m-%d %H:%M"


def render_csv(readings: Iterable[Reading]) -> str:
    """Render readings in the order given, one row each, under a header row."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADERS)
    for reading in readings:
        writer.writerow(
            [
                reading.timestamp.strftime(_TIME_FORMAT),
                reading.temperature,
                reading.humidity,
                reading.pm25,
                reading.uv_index,
                reading.wind_speed,
                reading.heat_index,
                reading.risk_level.value,
            ]
        )
    return buffer.getvalue()


def export_filename(day: date) -> str:
    return f"environmental-data-{day.isoformat()}.csv"
