"""Domain models shared across services."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Union

DEFAULT_UNIT = "celsius"

Timestamp = Union[str, int, float]


@dataclass(slots=True)
class Reading:
    """A single stored temperature sample, keyed by session and timestamp."""

    session_id: str
    timestamp: Timestamp
    sensor_name: str
    temperature: float
    rate_of_rise: float = 0.0
    unit: str = DEFAULT_UNIT
    session_start_time: Optional[str] = None
    created_at: Optional[str] = None
    expires_at: Optional[int] = None

    @property
    def reading_id(self) -> str:
        return f"{self.session_id}#{self.timestamp}"

    def to_item(self) -> Dict[str, Any]:
        """Convert to the table's attribute layout."""
        item: Dict[str, Any] = {
            "sessionId": self.session_id,
            "timestamp": self.timestamp,
            "sensorName": self.sensor_name,
            "temperature": self.temperature,
            "rateOfRise": self.rate_of_rise,
            "unit": self.unit,
            "createdAt": self.created_at,
            "expiresAt": self.expires_at,
        }
        if self.session_start_time:
            item["sessionStartTime"] = self.session_start_time
        return {key: value for key, value in item.items() if value is not None}


@dataclass
class SessionAggregate:
    """Per-session accumulator built while folding scanned rows."""

    session_id: str
    session_start_time: Optional[str] = None
    created_at: Optional[str] = None
    sensors: Dict[str, None] = field(default_factory=dict)
    reading_count: int = 0

    def add(self, item: Mapping[str, Any]) -> None:
        self.reading_count += 1

        start_time = item.get("sessionStartTime")
        if self.session_start_time is None and start_time:
            self.session_start_time = start_time

        created_at = item.get("createdAt")
        if created_at and (self.created_at is None or created_at < self.created_at):
            self.created_at = created_at

        sensor_name = item.get("sensorName")
        if sensor_name is not None:
            self.sensors.setdefault(sensor_name, None)

    def to_summary(self) -> Dict[str, Any]:
        sensors = list(self.sensors)
        return {
            "sessionId": self.session_id,
            "sessionStartTime": self.session_start_time,
            "createdAt": self.created_at,
            "sensors": sensors,
            "sensorCount": len(sensors),
            "readingCount": self.reading_count,
        }
