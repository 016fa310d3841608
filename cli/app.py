from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import typer

from cli.client import ApiClient
from cli.config import CLIConfig, load_config
from cli.render import (
    render_alerts,
    render_history,
    render_locations,
    render_reading,
    render_refresh,
)


@dataclass
class CLIState:
    config: CLIConfig
    client: ApiClient


app = typer.Typer(
    help="Track heat index, air quality and UV risk through the monitor service.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        raise typer.Exit(code=1, message="CLI state is uninitialized.")
    return state


@app.callback()
def main(
    ctx: typer.Context,
    base_url: Optional[str] = typer.Option(
        None,
        "--base-url",
        "-b",
        help="Monitor API base URL (defaults to API_BASE_URL env or http://localhost:8000).",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        help="Seconds to wait for each API request.",
    ),
) -> None:
    """Entry point for the CLI."""
    config = load_config(base_url=base_url, timeout=timeout)
    client = ApiClient(config)
    ctx.obj = CLIState(config=config, client=client)
    ctx.call_on_close(client.close)


@app.command("search")
def search_command(
    ctx: typer.Context,
    query: str = typer.Argument(..., help="City name to look up."),
) -> None:
    """List locations matching a city name."""
    state = _get_state(ctx)
    render_locations(state.client.search(query))


@app.command("select")
def select_command(
    ctx: typer.Context,
    city: Optional[str] = typer.Argument(None, help="City name to resolve and track."),
    lat: Optional[float] = typer.Option(None, "--lat", help="Latitude to track."),
    lon: Optional[float] = typer.Option(None, "--lon", help="Longitude to track."),
    name: str = typer.Option("Your Location", "--name", help="Label used with --lat/--lon."),
) -> None:
    """Track a location by city name or coordinates and fetch a reading."""
    state = _get_state(ctx)
    if (lat is None) != (lon is None):
        raise typer.BadParameter("Provide both --lat and --lon.")
    if lat is not None and lon is not None:
        payload = state.client.select_coordinates(lat, lon, name=city or name)
    elif city:
        payload = state.client.select_city(city)
    else:
        raise typer.BadParameter("Provide a city name or both --lat and --lon.")
    render_refresh(payload)


@app.command("refresh")
def refresh_command(ctx: typer.Context) -> None:
    """Fetch a new reading for the tracked location."""
    state = _get_state(ctx)
    render_refresh(state.client.refresh())


@app.command("current")
def current_command(ctx: typer.Context) -> None:
    """Show the most recent reading."""
    state = _get_state(ctx)
    render_reading(state.client.current())


@app.command("history")
def history_command(ctx: typer.Context) -> None:
    """Show the rolling history window."""
    state = _get_state(ctx)
    render_history(state.client.history())


@app.command("export")
def export_command(
    ctx: typer.Context,
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        dir_okay=False,
        writable=True,
        help="Write CSV to this file instead of stdout.",
    ),
) -> None:
    """Export the history window as CSV."""
    state = _get_state(ctx)
    content = state.client.export_csv()
    if output is None:
        typer.echo(content, nl=False)
        return
    output.write_text(content, encoding="utf-8")
    typer.secho(f"Wrote {output}", fg=typer.colors.GREEN)


@app.command("alerts")
def alerts_command(
    ctx: typer.Context,
    enable: Optional[bool] = typer.Option(
        None,
        "--enable/--disable",
        help="Turn risk-change alerts on or off; omit to show current settings.",
    ),
    permission: Optional[str] = typer.Option(
        None,
        "--permission",
        help="Notification permission to record: granted, denied or default.",
    ),
) -> None:
    """Show or change risk-change alert settings."""
    state = _get_state(ctx)
    if enable is None:
        current = state.client.get_alerts()
        if permission is None:
            render_alerts(current)
            return
        enable = bool(current.get("enabled", False))
    render_alerts(state.client.update_alerts(enable, permission))
