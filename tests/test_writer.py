"""Unit tests for reading validation and persistence."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict

import pytest

from datastore.base import StoreError
from datastore.mock_dynamodb import MockDynamoDBTable
from services.errors import DuplicateError, RangeError, StorageError, ValidationError
from services.validation import ReadingLimits
from services.writer import MISSING_FIELDS_MESSAGE, ReadingWriter
from settings import ONE_YEAR_SECONDS

FIXED_NOW = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


class FailingStore(MockDynamoDBTable):
    def put_item(self, item, *, require_new: bool = False) -> None:
        raise StoreError("throughput exceeded")


def _writer(table: MockDynamoDBTable, **kwargs: Any) -> ReadingWriter:
    return ReadingWriter(table, clock=lambda: FIXED_NOW, **kwargs)


def _payload(**overrides: Any) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "sessionId": "s1",
        "sensorName": "A",
        "temperature": 25.5,
        "timestamp": "100",
    }
    payload.update(overrides)
    return payload


def test_store_reading_applies_defaults() -> None:
    table = MockDynamoDBTable(name="readings")

    reading_id = _writer(table).store_reading(_payload())

    assert reading_id == "s1#100"
    [row] = table.query("s1")
    assert row["sensorName"] == "A"
    assert row["temperature"] == 25.5
    assert row["rateOfRise"] == 0
    assert row["unit"] == "celsius"
    assert row["createdAt"] == "2024-01-01T12:00:00.000Z"
    assert row["expiresAt"] == int(FIXED_NOW.timestamp()) + ONE_YEAR_SECONDS
    assert "sessionStartTime" not in row


def test_store_reading_keeps_optional_fields() -> None:
    table = MockDynamoDBTable(name="readings")

    _writer(table, retention_seconds=60).store_reading(
        _payload(rateOfRise="1.5", unit="fahrenheit", sessionStartTime="99", timestamp=100)
    )

    [row] = table.query("s1")
    assert row["timestamp"] == 100
    assert row["rateOfRise"] == 1.5
    assert row["unit"] == "fahrenheit"
    assert row["sessionStartTime"] == "99"
    assert row["expiresAt"] == int(FIXED_NOW.timestamp()) + 60


@pytest.mark.parametrize("field", ["sessionId", "sensorName", "temperature", "timestamp"])
def test_missing_required_field_is_rejected(field: str) -> None:
    table = MockDynamoDBTable(name="readings")
    payload = _payload()
    del payload[field]

    with pytest.raises(ValidationError) as excinfo:
        _writer(table).store_reading(payload)

    assert excinfo.value.message == MISSING_FIELDS_MESSAGE
    assert table.scan(limit=10).items == []


@pytest.mark.parametrize(
    "overrides",
    [
        {"temperature": "25.5"},
        {"temperature": True},
        {"temperature": float("nan")},
        {"temperature": None},
        {"sessionId": ""},
        {"timestamp": ""},
    ],
)
def test_malformed_required_field_is_rejected(overrides: Dict[str, Any]) -> None:
    table = MockDynamoDBTable(name="readings")

    with pytest.raises(ValidationError) as excinfo:
        _writer(table).store_reading(_payload(**overrides))

    assert not isinstance(excinfo.value, RangeError)
    assert table.scan(limit=10).items == []


def test_invalid_optional_field_names_the_field() -> None:
    table = MockDynamoDBTable(name="readings")

    with pytest.raises(ValidationError) as excinfo:
        _writer(table).store_reading(_payload(rateOfRise="fast"))

    assert excinfo.value.message == "Invalid value for: rateOfRise"


def test_non_object_payload_is_rejected() -> None:
    with pytest.raises(ValidationError):
        _writer(MockDynamoDBTable(name="readings")).store_reading(["not", "a", "mapping"])  # type: ignore[arg-type]


def test_temperature_below_absolute_zero_is_not_written() -> None:
    table = MockDynamoDBTable(name="readings")

    with pytest.raises(RangeError):
        _writer(table).store_reading(_payload(temperature=-300))

    assert table.query("s1") == []


@pytest.mark.parametrize("temperature", [-273.15, 1000, 0])
def test_temperature_bounds_are_inclusive(temperature: float) -> None:
    table = MockDynamoDBTable(name="readings")

    _writer(table).store_reading(_payload(temperature=temperature))

    assert table.query("s1")[0]["temperature"] == temperature


@pytest.mark.parametrize(
    "overrides",
    [
        {"temperature": 1000.5},
        {"temperature": float("inf")},
        {"sensorName": "x" * 51},
        {"sessionId": "s" * 101},
    ],
)
def test_out_of_range_values_are_rejected(overrides: Dict[str, Any]) -> None:
    table = MockDynamoDBTable(name="readings")

    with pytest.raises(RangeError):
        _writer(table).store_reading(_payload(**overrides))

    assert table.scan(limit=10).items == []


def test_custom_limits_apply() -> None:
    table = MockDynamoDBTable(name="readings")
    writer = _writer(table, limits=ReadingLimits(max_temperature=50.0, max_sensor_name_length=3))

    with pytest.raises(RangeError):
        writer.store_reading(_payload(temperature=60))
    with pytest.raises(RangeError):
        writer.store_reading(_payload(sensorName="ABCD"))


def test_same_key_overwrites_by_default() -> None:
    table = MockDynamoDBTable(name="readings")
    writer = _writer(table)

    writer.store_reading(_payload(temperature=20.0))
    writer.store_reading(_payload(temperature=30.0))

    rows = table.query("s1")
    assert [row["temperature"] for row in rows] == [30.0]


def test_duplicate_rejection_keeps_first_value() -> None:
    table = MockDynamoDBTable(name="readings")
    writer = _writer(table, reject_duplicates=True)

    writer.store_reading(_payload(temperature=20.0))
    with pytest.raises(DuplicateError):
        writer.store_reading(_payload(temperature=30.0))

    rows = table.query("s1")
    assert [row["temperature"] for row in rows] == [20.0]


def test_store_failure_surfaces_as_storage_error() -> None:
    writer = _writer(FailingStore(name="readings"))

    with pytest.raises(StorageError) as excinfo:
        writer.store_reading(_payload())

    assert excinfo.value.status_code == 500
    assert excinfo.value.details == "throughput exceeded"
