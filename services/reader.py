"""Retrieval of a session's readings grouped by sensor."""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Any, Dict, Iterable, List, Mapping, Optional

from app.schemas import ReadingPoint, SessionMetadata, SessionReadings
from datastore.base import ReadingStore, StoreError
from datastore.factory import build_default_store
from models.records import DEFAULT_UNIT
from services.errors import StorageError, ValidationError
from services.timeutil import Clock, isoformat_z, now_utc

logger = logging.getLogger(__name__)


def group_by_sensor(items: Iterable[Mapping[str, Any]]) -> Dict[str, List[ReadingPoint]]:
    """Group rows by sensor name, keeping first-appearance order of sensors."""
    grouped: Dict[str, List[ReadingPoint]] = {}
    for item in items:
        grouped.setdefault(item["sensorName"], []).append(
            ReadingPoint(
                timestamp=item["timestamp"],
                temperature=item["temperature"],
                rate_of_rise=item.get("rateOfRise") or 0,
            )
        )
    return grouped


def session_metadata(session_id: str, items: Iterable[Mapping[str, Any]]) -> SessionMetadata:
    for item in items:
        start_time = item.get("sessionStartTime")
        if start_time:
            return SessionMetadata(
                session_id=session_id,
                session_start_time=start_time,
                unit=item.get("unit") or DEFAULT_UNIT,
            )
    return SessionMetadata(session_id=session_id)


class SessionReader:

    def __init__(self, store: ReadingStore, clock: Clock = now_utc) -> None:
        self.store = store
        self._clock = clock

    def fetch(self, session_id: Optional[str]) -> SessionReadings:
        if not session_id:
            raise ValidationError("sessionId query parameter is required")

        try:
            items = self.store.query(session_id, ascending=True)
        except StoreError as exc:
            logger.error(
                "Failed to query readings",
                exc_info=True,
                extra={"session_id": session_id},
            )
            raise StorageError(str(exc)) from exc

        logger.info(
            "Retrieved readings",
            extra={"session_id": session_id, "row_count": len(items)},
        )
        return SessionReadings(
            session_id=session_id,
            session_metadata=session_metadata(session_id, items),
            temperature_data=group_by_sensor(items),
            total_readings=len(items),
            retrieved_at=isoformat_z(self._clock()),
        )


@lru_cache
def build_default_reader() -> SessionReader:
    return SessionReader(store=build_default_store())
