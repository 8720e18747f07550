"""Unit tests for the mock DynamoDB datastore implementation."""

from __future__ import annotations

import json
from typing import Any, Dict

import pytest

from datastore.base import ConditionalCheckFailedError, StoreError
from datastore.mock_dynamodb import MockDynamoDBTable


def _item(session_id: str, timestamp: Any, **extra: Any) -> Dict[str, Any]:
    item = {
        "sessionId": session_id,
        "timestamp": timestamp,
        "sensorName": "probe-a",
        "temperature": 20.0,
    }
    item.update(extra)
    return item


def test_put_item_overwrites_same_key() -> None:
    table = MockDynamoDBTable(name="readings")

    table.put_item(_item("s1", "100", temperature=21.0))
    table.put_item(_item("s1", "100", temperature=22.5))

    rows = table.query("s1")
    assert len(rows) == 1
    assert rows[0]["temperature"] == 22.5


def test_conditional_put_leaves_existing_item_untouched() -> None:
    table = MockDynamoDBTable(name="readings")
    table.put_item(_item("s1", "100", temperature=21.0), require_new=True)

    with pytest.raises(ConditionalCheckFailedError):
        table.put_item(_item("s1", "100", temperature=99.0), require_new=True)

    assert table.query("s1")[0]["temperature"] == 21.0


def test_query_filters_partition_and_orders_by_timestamp() -> None:
    table = MockDynamoDBTable(name="readings")
    table.put_item(_item("s1", "102"))
    table.put_item(_item("s1", "100"))
    table.put_item(_item("s2", "101"))
    table.put_item(_item("s1", "101"))

    ascending = [row["timestamp"] for row in table.query("s1")]
    descending = [row["timestamp"] for row in table.query("s1", ascending=False)]

    assert ascending == ["100", "101", "102"]
    assert descending == ["102", "101", "100"]
    assert table.query("missing") == []


def test_query_returns_copies() -> None:
    table = MockDynamoDBTable(name="readings")
    table.put_item(_item("s1", 1))

    rows = table.query("s1")
    rows[0]["temperature"] = 99.0

    assert table.query("s1")[0]["temperature"] == 20.0


def test_scan_pages_through_all_items_with_token() -> None:
    table = MockDynamoDBTable(name="readings")
    for index in range(5):
        table.put_item(_item(f"s{index}", index))

    seen = []
    token = None
    pages = 0
    while True:
        page = table.scan(limit=2, start_token=token)
        pages += 1
        seen.extend(item["sessionId"] for item in page.items)
        token = page.next_token
        if token is None:
            break

    assert pages == 3
    assert seen == ["s0", "s1", "s2", "s3", "s4"]


def test_scan_exact_fit_reports_no_continuation() -> None:
    table = MockDynamoDBTable(name="readings")
    table.put_item(_item("s1", 1))
    table.put_item(_item("s1", 2))

    page = table.scan(limit=2)

    assert len(page.items) == 2
    assert page.next_token is None


def test_scan_projects_requested_attributes() -> None:
    table = MockDynamoDBTable(name="readings")
    table.put_item(_item("s1", 1, createdAt="2024-01-01T00:00:00.000Z"))

    page = table.scan(limit=10, attributes=("sessionId", "createdAt", "sessionStartTime"))

    assert page.items == [{"sessionId": "s1", "createdAt": "2024-01-01T00:00:00.000Z"}]


@pytest.mark.parametrize(
    "token",
    ["not-json", "[]", json.dumps({"sessionId": "ghost", "timestamp": "0"})],
)
def test_scan_rejects_unusable_token(token: str) -> None:
    table = MockDynamoDBTable(name="readings")
    table.put_item(_item("s1", 1))

    with pytest.raises(StoreError):
        table.scan(limit=1, start_token=token)


def test_put_item_persists_to_disk_and_reloads(tmp_path) -> None:
    path = tmp_path / "mock_db.json"
    table = MockDynamoDBTable(name="readings", persistence_path=path)
    table.put_item(_item("s1", "100", sessionStartTime="100"))
    table.put_item(_item("s1", "101"))

    payload = json.loads(path.read_text())
    assert [item["timestamp"] for item in payload] == ["100", "101"]

    reloaded = MockDynamoDBTable(name="readings", persistence_path=path)
    rows = reloaded.query("s1")
    assert [row["timestamp"] for row in rows] == ["100", "101"]
    assert rows[0]["sessionStartTime"] == "100"


def test_corrupt_persistence_file_starts_empty(tmp_path) -> None:
    path = tmp_path / "mock_db.json"
    path.write_text("{not json")

    table = MockDynamoDBTable(name="readings", persistence_path=path)

    assert table.scan(limit=10).items == []
