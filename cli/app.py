from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

import typer

from cli.client import ApiClient
from cli.config import CLIConfig, load_config
from cli.render import render_health, render_readings, render_sessions


@dataclass
class CLIState:
    config: CLIConfig
    client: ApiClient


app = typer.Typer(
    help="Utilities for interacting with the temperature readings service.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        typer.secho("CLI state is uninitialized.", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    return state


def _now_millis() -> str:
    return str(int(time.time() * 1000))


@app.callback()
def main(
    ctx: typer.Context,
    base_url: Optional[str] = typer.Option(
        None,
        "--base-url",
        "-b",
        help="Service base URL (defaults to API_BASE_URL env or http://localhost:8000).",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        help="Per-request timeout in seconds.",
    ),
    retries: Optional[int] = typer.Option(
        None,
        "--retries",
        help="Retries for read requests that fail with a transport or server error.",
    ),
) -> None:
    """Entry point for the CLI."""
    config = load_config(base_url=base_url, timeout=timeout, max_retries=retries)
    client = ApiClient(config)
    ctx.obj = CLIState(config=config, client=client)
    ctx.call_on_close(client.close)


@app.command("store")
def store_command(
    ctx: typer.Context,
    session_id: str = typer.Argument(..., help="Session the reading belongs to."),
    sensor_name: str = typer.Argument(..., help="Name of the sensor."),
    temperature: float = typer.Argument(..., help="Measured temperature."),
    timestamp: Optional[str] = typer.Option(
        None,
        "--timestamp",
        "-t",
        help="Reading timestamp (defaults to the current epoch milliseconds).",
    ),
    rate_of_rise: Optional[float] = typer.Option(None, "--rate-of-rise", help="Rate of rise."),
    unit: Optional[str] = typer.Option(None, "--unit", help="Temperature unit."),
    session_start: Optional[str] = typer.Option(
        None,
        "--session-start",
        help="Start time of the session, stored as session metadata.",
    ),
) -> None:
    """Store a single reading."""
    state = _get_state(ctx)
    payload: Dict[str, Any] = {
        "sessionId": session_id,
        "sensorName": sensor_name,
        "temperature": temperature,
        "timestamp": timestamp or _now_millis(),
    }
    if rate_of_rise is not None:
        payload["rateOfRise"] = rate_of_rise
    if unit:
        payload["unit"] = unit
    if session_start:
        payload["sessionStartTime"] = session_start

    reading_id = state.client.store_reading(payload)
    typer.secho(f"Reading stored. id={reading_id}", fg=typer.colors.GREEN)


@app.command("readings")
def readings_command(
    ctx: typer.Context,
    session_id: str = typer.Argument(..., help="Session to fetch."),
) -> None:
    """Show every reading of a session grouped by sensor."""
    state = _get_state(ctx)
    render_readings(state.client.get_readings(session_id))


@app.command("sessions")
def sessions_command(
    ctx: typer.Context,
    limit: Optional[int] = typer.Option(None, "--limit", "-n", help="Sessions per page."),
    cursor: Optional[str] = typer.Option(None, "--cursor", help="Cursor from a previous page."),
    follow: bool = typer.Option(
        False,
        "--all/--single-page",
        help="Keep requesting pages until the scan is exhausted.",
    ),
) -> None:
    """List sessions newest first."""
    state = _get_state(ctx)
    while True:
        payload = state.client.list_sessions(limit=limit, cursor=cursor)
        render_sessions(payload)
        cursor = payload.get("cursor")
        if not follow or not payload.get("hasMore") or not cursor:
            return
        typer.echo()


@app.command("health")
def health_command(ctx: typer.Context) -> None:
    """Check that the service is up."""
    state = _get_state(ctx)
    render_health(state.client.health())
