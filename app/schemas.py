"""Pydantic schemas for the request handlers."""

from __future__ import annotations

import math
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, StrictFloat, StrictInt, StrictStr, field_validator
from pydantic.alias_generators import to_camel

from models.records import DEFAULT_UNIT


class CamelModel(BaseModel):
    """Base model exposing camelCase keys on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ReadingCreate(CamelModel):
    """Payload accepted when storing a reading."""

    session_id: StrictStr = Field(..., min_length=1)
    sensor_name: StrictStr = Field(..., min_length=1)
    temperature: Union[StrictInt, StrictFloat]
    timestamp: Union[StrictStr, StrictInt, StrictFloat]
    rate_of_rise: Optional[float] = None
    unit: Optional[str] = None
    session_start_time: Optional[str] = None

    @field_validator("temperature")
    @classmethod
    def temperature_is_number(cls, value: Union[int, float]) -> Union[int, float]:
        if isinstance(value, float) and math.isnan(value):
            raise ValueError("temperature must be a number")
        return value

    @field_validator("timestamp")
    @classmethod
    def timestamp_present(cls, value: Union[str, int, float]) -> Union[str, int, float]:
        if isinstance(value, str) and not value:
            raise ValueError("timestamp must not be empty")
        if isinstance(value, float) and not math.isfinite(value):
            raise ValueError("timestamp must be finite")
        return value

    @field_validator("rate_of_rise")
    @classmethod
    def rate_is_finite(cls, value: Optional[float]) -> Optional[float]:
        if value is not None and not math.isfinite(value):
            raise ValueError("rateOfRise must be finite")
        return value

    @field_validator("session_start_time", mode="before")
    @classmethod
    def stringify_start_time(cls, value: Any) -> Any:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value


class ReadingCreated(CamelModel):
    message: str = "Reading stored successfully"
    id: str


class HealthStatus(CamelModel):
    message: str
    table_name: str
    timestamp: str


class ReadingPoint(CamelModel):
    timestamp: Union[str, int, float]
    temperature: float
    rate_of_rise: float = 0.0


class SessionMetadata(CamelModel):
    session_id: str
    session_start_time: Optional[str] = None
    unit: str = DEFAULT_UNIT


class SessionReadings(CamelModel):
    """Every reading of one session grouped by sensor."""

    session_id: str
    session_metadata: SessionMetadata
    temperature_data: Dict[str, List[ReadingPoint]] = Field(default_factory=dict)
    total_readings: int = Field(..., ge=0)
    retrieved_at: str


class SessionSummary(CamelModel):
    session_id: str
    session_start_time: Optional[str] = None
    created_at: Optional[str] = None
    sensors: List[str] = Field(default_factory=list)
    sensor_count: int = Field(..., ge=0)
    reading_count: int = Field(..., ge=0)


class SessionPage(CamelModel):
    """One page of distinct sessions, newest first."""

    sessions: List[SessionSummary] = Field(default_factory=list)
    total_returned: int = Field(..., ge=0)
    has_more: bool
    cursor: Optional[str] = None
    retrieved_at: str


class ErrorBody(BaseModel):
    error: str
    details: Optional[str] = None
