"""Boundary checks applied to a decoded reading before it is written."""

from __future__ import annotations

from dataclasses import dataclass

from app.schemas import ReadingCreate
from services.errors import RangeError
from settings import Settings


@dataclass(frozen=True)
class ReadingLimits:
    min_temperature: float = -273.15
    max_temperature: float = 1000.0
    max_sensor_name_length: int = 50
    max_session_id_length: int = 100

    @classmethod
    def from_settings(cls, settings: Settings) -> "ReadingLimits":
        return cls(
            min_temperature=settings.min_temperature,
            max_temperature=settings.max_temperature,
            max_sensor_name_length=settings.max_sensor_name_length,
            max_session_id_length=settings.max_session_id_length,
        )


def validate_reading_bounds(reading: ReadingCreate, limits: ReadingLimits) -> None:
    """Raise ``RangeError`` for the first value outside its configured bound."""
    temperature = reading.temperature
    if not limits.min_temperature <= temperature <= limits.max_temperature:
        raise RangeError(
            f"temperature must be between {limits.min_temperature} and {limits.max_temperature}"
        )
    if len(reading.sensor_name) > limits.max_sensor_name_length:
        raise RangeError(
            f"sensorName must be at most {limits.max_sensor_name_length} characters"
        )
    if len(reading.session_id) > limits.max_session_id_length:
        raise RangeError(
            f"sessionId must be at most {limits.max_session_id_length} characters"
        )
