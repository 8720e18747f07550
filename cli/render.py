from __future__ import annotations

from typing import Any, Dict, Iterable

import typer


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_key_values(pairs: Iterable[tuple[str, Any]]) -> None:
    for key, value in pairs:
        typer.echo(f"{key}: {value}")


def render_readings(payload: Dict[str, Any]) -> None:
    metadata = payload.get("sessionMetadata") or {}
    echo_heading("Session")
    echo_key_values(
        [
            ("sessionId", payload.get("sessionId")),
            ("sessionStartTime", metadata.get("sessionStartTime")),
            ("unit", metadata.get("unit")),
            ("totalReadings", payload.get("totalReadings")),
            ("retrievedAt", payload.get("retrievedAt")),
        ]
    )

    groups = payload.get("temperatureData") or {}
    typer.echo()
    echo_heading("Readings")
    if not groups:
        typer.echo("No readings recorded.")
        return
    for sensor_name, points in groups.items():
        typer.echo(f"{sensor_name} ({len(points)}):")
        for point in points:
            typer.echo(
                f"  - {point.get('timestamp')}: {point.get('temperature')}"
                f" (rate {point.get('rateOfRise')})"
            )


def render_sessions(payload: Dict[str, Any]) -> None:
    sessions = payload.get("sessions") or []
    echo_heading("Sessions")
    if not sessions:
        typer.echo("No sessions found.")
    for session in sessions:
        sensors = ", ".join(session.get("sensors") or [])
        typer.echo(
            f"  - {session.get('sessionId')}: {session.get('readingCount')} readings,"
            f" {session.get('sensorCount')} sensors [{sensors}]"
            f" created {session.get('createdAt')}"
        )

    typer.echo()
    echo_key_values(
        [
            ("totalReturned", payload.get("totalReturned")),
            ("hasMore", payload.get("hasMore")),
            ("cursor", payload.get("cursor")),
        ]
    )


def render_health(payload: Dict[str, Any]) -> None:
    echo_heading("Health")
    echo_key_values(
        [
            ("message", payload.get("message")),
            ("tableName", payload.get("tableName")),
            ("timestamp", payload.get("timestamp")),
        ]
    )
