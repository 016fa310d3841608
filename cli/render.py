from __future__ import annotations

from typing import Any, Dict, Iterable, List

import typer

_RISK_COLORS = {
    "Low": typer.colors.GREEN,
    "Medium": typer.colors.YELLOW,
    "High": typer.colors.RED,
}


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_key_values(pairs: Iterable[tuple[str, Any]]) -> None:
    for key, value in pairs:
        typer.echo(f"{key}: {value}")


def echo_risk(level: str | None) -> None:
    typer.echo("risk_level: ", nl=False)
    typer.secho(str(level), fg=_RISK_COLORS.get(level or ""), bold=True)


def render_locations(locations: List[Dict[str, Any]]) -> None:
    echo_heading("Locations")
    if not locations:
        typer.echo("No matching locations.")
        return
    for item in locations:
        label = item.get("name")
        if item.get("country"):
            label = f"{label}, {item.get('country')}"
        typer.echo(f"  - {label} ({item.get('lat')}, {item.get('lon')})")


def render_reading(reading: Dict[str, Any]) -> None:
    echo_heading("Current Reading")
    echo_key_values(
        [
            ("timestamp", reading.get("timestamp")),
            ("temperature", f"{reading.get('temperature')} °C"),
            ("humidity", f"{reading.get('humidity')} %"),
            ("pm25", f"{reading.get('pm25')} μg/m³"),
            ("uv_index", reading.get("uv_index")),
            ("wind_speed", f"{reading.get('wind_speed')} km/h"),
            ("heat_index", f"{reading.get('heat_index')} °C"),
        ]
    )
    echo_risk(reading.get("risk_level"))


def render_refresh(payload: Dict[str, Any]) -> None:
    location = payload.get("location") or {}
    echo_key_values([("location", location.get("name"))])
    if payload.get("stale"):
        typer.secho("Result superseded by a newer request; nothing recorded.", fg=typer.colors.YELLOW)
        return

    reading = payload.get("reading")
    if reading:
        typer.echo()
        render_reading(reading)

    transition = payload.get("transition")
    if transition:
        typer.echo()
        typer.secho(
            f"Risk level changed: {transition.get('from_level')} -> {transition.get('to_level')}",
            fg=_RISK_COLORS.get(transition.get("to_level") or ""),
            bold=True,
        )


def render_history(payload: Dict[str, Any]) -> None:
    location = payload.get("location") or {}
    readings = payload.get("readings") or []
    echo_heading("History")
    echo_key_values(
        [
            ("location", location.get("name")),
            ("entries", f"{len(readings)}/{payload.get('capacity')}"),
        ]
    )
    if not readings:
        typer.echo("No readings recorded.")
        return
    for reading in readings:
        typer.echo(
            f"  - {reading.get('timestamp')}: "
            f"{reading.get('temperature')}°C / HI {reading.get('heat_index')}°C, "
            f"PM2.5 {reading.get('pm25')}, UV {reading.get('uv_index')} "
            f"[{reading.get('risk_level')}]"
        )


def render_alerts(payload: Dict[str, Any]) -> None:
    echo_heading("Alerts")
    echo_key_values(
        [
            ("enabled", payload.get("enabled")),
            ("permission", payload.get("permission")),
        ]
    )
