from __future__ import annotations

import time
from typing import Any, Dict, Optional

import httpx
import typer

from cli.config import CLIConfig


class ApiClient:
    """Minimal HTTP client for the readings service."""

    def __init__(self, config: CLIConfig, transport: Optional[httpx.BaseTransport] = None) -> None:
        self._config = config
        self._client = httpx.Client(
            base_url=config.base_url,
            timeout=config.timeout,
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def store_reading(self, payload: Dict[str, Any]) -> str:
        try:
            response = self._client.post("/readings", json=payload)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            self._handle_http_error(exc)
        except httpx.TransportError as exc:
            self._handle_transport_error(exc)
        reading_id = response.json().get("id")
        if not isinstance(reading_id, str):
            raise typer.BadParameter("Unexpected response payload when storing reading.")
        return reading_id

    def get_readings(self, session_id: str) -> Dict[str, Any]:
        return self._get("/readings", params={"sessionId": session_id})

    def list_sessions(self, limit: Optional[int] = None, cursor: Optional[str] = None) -> Dict[str, Any]:
        params: Dict[str, Any] = {}
        if limit is not None:
            params["limit"] = limit
        if cursor:
            params["cursor"] = cursor
        return self._get("/sessions", params=params)

    def health(self) -> Dict[str, Any]:
        return self._get("/health")

    def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """GET with a fixed retry budget for transport failures and 5xx responses."""
        attempts = self._config.max_retries + 1
        for attempt in range(1, attempts + 1):
            try:
                response = self._client.get(path, params=params)
                response.raise_for_status()
                return response.json()
            except httpx.HTTPStatusError as exc:
                if exc.response.status_code < 500 or attempt == attempts:
                    self._handle_http_error(exc)
            except httpx.TransportError as exc:
                if attempt == attempts:
                    self._handle_transport_error(exc)
            time.sleep(self._config.retry_delay)
        raise typer.Exit(code=1)

    @staticmethod
    def _handle_http_error(exc: httpx.HTTPStatusError) -> None:
        detail: str | None = None
        try:
            data = exc.response.json()
            detail = data.get("error")
            if data.get("details"):
                detail = f"{detail} ({data['details']})"
        except Exception:  # noqa: BLE001 - best effort parsing
            detail = exc.response.text.strip()
        message = (
            f"Request failed with status {exc.response.status_code}: {detail or 'no detail provided.'}"
        )
        typer.secho(message, fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    @staticmethod
    def _handle_transport_error(exc: httpx.TransportError) -> None:
        typer.secho(f"Could not reach the service: {exc}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
