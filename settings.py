from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional


_TABLE_NAME_ENV = "DYNAMODB_TABLE"
_TABLE_PATH_ENV = "MOCK_DYNAMODB_PERSISTENCE_PATH"
_STORE_BACKEND_ENV = "READINGS_STORE_BACKEND"
_AWS_REGION_ENV = "AWS_REGION"
_CORS_ORIGIN_ENV = "CORS_ORIGIN"
_MIN_TEMPERATURE_ENV = "MIN_TEMPERATURE"
_MAX_TEMPERATURE_ENV = "MAX_TEMPERATURE"
_MAX_SENSOR_NAME_ENV = "MAX_SENSOR_NAME_LENGTH"
_MAX_SESSION_ID_ENV = "MAX_SESSION_ID_LENGTH"
_RETENTION_ENV = "READING_RETENTION_SECONDS"
_OVERFETCH_ENV = "SESSIONS_OVERFETCH_FACTOR"
_PAGE_LIMIT_ENV = "SESSIONS_DEFAULT_LIMIT"
_REJECT_DUPLICATES_ENV = "READINGS_REJECT_DUPLICATES"
_EXPOSE_DETAILS_ENV = "EXPOSE_ERROR_DETAILS"
_LOG_LEVEL_ENV = "LOG_LEVEL"

_BACKENDS = {"memory", "dynamodb"}
_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off"}

ONE_YEAR_SECONDS = 365 * 24 * 60 * 60


@dataclass(frozen=True)
class Settings:
    table_name: str
    table_persistence_path: Optional[str]
    store_backend: str
    aws_region: str
    cors_origin: str
    min_temperature: float
    max_temperature: float
    max_sensor_name_length: int
    max_session_id_length: int
    retention_seconds: int
    overfetch_factor: int
    default_page_limit: int
    reject_duplicates: bool
    expose_error_details: bool
    log_level: str


def _read_raw(name: str) -> Optional[str]:
    value = os.getenv(name)
    if value is None:
        return None
    candidate = value.strip()
    return candidate or None


def _read_str_env(name: str, default: str) -> str:
    return _read_raw(name) or default


def _read_optional_env(name: str, default: Optional[str]) -> Optional[str]:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or None


def _read_positive_int(name: str, default: int) -> int:
    candidate = _read_raw(name)
    if candidate is None:
        return default
    try:
        parsed = int(candidate)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _read_float(name: str, default: float) -> float:
    candidate = _read_raw(name)
    if candidate is None:
        return default
    try:
        return float(candidate)
    except ValueError:
        return default


def _read_bool(name: str, default: bool) -> bool:
    candidate = _read_raw(name)
    if candidate is None:
        return default
    lowered = candidate.lower()
    if lowered in _TRUTHY:
        return True
    if lowered in _FALSY:
        return False
    return default


def _read_backend(default: str) -> str:
    candidate = (_read_raw(_STORE_BACKEND_ENV) or default).lower()
    return candidate if candidate in _BACKENDS else default


def _read_log_level(default: str) -> str:
    candidate = _read_raw(_LOG_LEVEL_ENV)
    if candidate is None:
        return default
    return candidate.upper()


@lru_cache
def get_settings() -> Settings:
    return Settings(
        table_name=_read_str_env(_TABLE_NAME_ENV, "TemperatureReadings"),
        table_persistence_path=_read_optional_env(_TABLE_PATH_ENV, None),
        store_backend=_read_backend("memory"),
        aws_region=_read_str_env(_AWS_REGION_ENV, "us-east-1"),
        cors_origin=_read_str_env(_CORS_ORIGIN_ENV, "http://localhost:3000"),
        min_temperature=_read_float(_MIN_TEMPERATURE_ENV, -273.15),
        max_temperature=_read_float(_MAX_TEMPERATURE_ENV, 1000.0),
        max_sensor_name_length=_read_positive_int(_MAX_SENSOR_NAME_ENV, 50),
        max_session_id_length=_read_positive_int(_MAX_SESSION_ID_ENV, 100),
        retention_seconds=_read_positive_int(_RETENTION_ENV, ONE_YEAR_SECONDS),
        overfetch_factor=_read_positive_int(_OVERFETCH_ENV, 10),
        default_page_limit=_read_positive_int(_PAGE_LIMIT_ENV, 50),
        reject_duplicates=_read_bool(_REJECT_DUPLICATES_ENV, False),
        expose_error_details=_read_bool(_EXPOSE_DETAILS_ENV, True),
        log_level=_read_log_level("INFO"),
    )
