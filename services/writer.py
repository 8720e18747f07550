"""Validation and persistence of single temperature readings."""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Any, Mapping, Optional

from pydantic import ValidationError as SchemaError

from app.schemas import ReadingCreate
from datastore.base import ConditionalCheckFailedError, ReadingStore, StoreError
from datastore.factory import build_default_store
from models.records import DEFAULT_UNIT, Reading
from services.errors import DuplicateError, StorageError, ValidationError
from services.timeutil import Clock, epoch_seconds, isoformat_z, now_utc
from services.validation import ReadingLimits, validate_reading_bounds
from settings import ONE_YEAR_SECONDS, get_settings

logger = logging.getLogger(__name__)

_REQUIRED_FIELDS = ("sessionId", "sensorName", "temperature", "timestamp")
MISSING_FIELDS_MESSAGE = f"Missing required fields: {', '.join(_REQUIRED_FIELDS)}"
DUPLICATE_MESSAGE = "Reading already exists for this timestamp"


class ReadingWriter:
    """Validates a reading payload and appends it to the store with one put."""

    def __init__(
        self,
        store: ReadingStore,
        limits: Optional[ReadingLimits] = None,
        *,
        reject_duplicates: bool = False,
        retention_seconds: int = ONE_YEAR_SECONDS,
        clock: Clock = now_utc,
    ) -> None:
        self.store = store
        self.limits = limits or ReadingLimits()
        self.reject_duplicates = reject_duplicates
        self.retention_seconds = retention_seconds
        self._clock = clock

    def store_reading(self, payload: Mapping[str, Any]) -> str:
        """Persist one reading and return its ``sessionId#timestamp`` identifier."""
        candidate = self._decode(payload)
        validate_reading_bounds(candidate, self.limits)
        reading = self._normalize(candidate)

        try:
            self.store.put_item(reading.to_item(), require_new=self.reject_duplicates)
        except ConditionalCheckFailedError as exc:
            logger.info(
                "Rejected duplicate reading",
                extra={"reading_id": reading.reading_id, "reason": "duplicate"},
            )
            raise DuplicateError(DUPLICATE_MESSAGE) from exc
        except StoreError as exc:
            logger.error(
                "Failed to store reading",
                exc_info=True,
                extra={"reading_id": reading.reading_id},
            )
            raise StorageError(str(exc)) from exc

        logger.info(
            "Stored reading",
            extra={
                "reading_id": reading.reading_id,
                "sensor_name": reading.sensor_name,
            },
        )
        return reading.reading_id

    @staticmethod
    def _decode(payload: Mapping[str, Any]) -> ReadingCreate:
        if not isinstance(payload, Mapping):
            raise ValidationError("Request body must be a JSON object")
        try:
            return ReadingCreate.model_validate(payload)
        except SchemaError as exc:
            fields = sorted({str(error["loc"][0]) for error in exc.errors() if error["loc"]})
            if not fields or set(fields) & set(_REQUIRED_FIELDS):
                raise ValidationError(MISSING_FIELDS_MESSAGE) from exc
            raise ValidationError(f"Invalid value for: {', '.join(fields)}") from exc

    def _normalize(self, candidate: ReadingCreate) -> Reading:
        now = self._clock()
        return Reading(
            session_id=candidate.session_id,
            timestamp=candidate.timestamp,
            sensor_name=candidate.sensor_name,
            temperature=float(candidate.temperature),
            rate_of_rise=float(candidate.rate_of_rise or 0),
            unit=candidate.unit or DEFAULT_UNIT,
            session_start_time=candidate.session_start_time or None,
            created_at=isoformat_z(now),
            expires_at=epoch_seconds(now) + self.retention_seconds,
        )


@lru_cache
def build_default_writer() -> ReadingWriter:
    """Factory that wires the writer with the configured store and limits."""
    settings = get_settings()
    return ReadingWriter(
        store=build_default_store(),
        limits=ReadingLimits.from_settings(settings),
        reject_duplicates=settings.reject_duplicates,
        retention_seconds=settings.retention_seconds,
    )
