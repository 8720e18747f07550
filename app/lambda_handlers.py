"""Entrypoints for deployment behind an API gateway as individual functions."""

from __future__ import annotations

from typing import Any, Dict, Mapping

from app.handlers import (
    build_get_readings_handler,
    build_list_sessions_handler,
    build_store_reading_handler,
)
from logging_config import configure_logging


def store_reading(event: Mapping[str, Any], context: Any = None) -> Dict[str, Any]:
    configure_logging()
    return build_store_reading_handler()(event)


def get_readings(event: Mapping[str, Any], context: Any = None) -> Dict[str, Any]:
    configure_logging()
    return build_get_readings_handler()(event)


def list_sessions(event: Mapping[str, Any], context: Any = None) -> Dict[str, Any]:
    configure_logging()
    return build_list_sessions_handler()(event)
