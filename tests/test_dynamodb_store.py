"""Tests for the boto3-backed store against a fake table resource."""

from __future__ import annotations

import json
from decimal import Decimal
from typing import Any, Dict, List, Optional

import pytest
from botocore.exceptions import ClientError

from datastore.base import ConditionalCheckFailedError, StoreError
from datastore.dynamodb import DynamoDBReadingStore


class FakeTable:
    name = "TemperatureReadings"

    def __init__(
        self,
        responses: Optional[List[Dict[str, Any]]] = None,
        error: Optional[Exception] = None,
    ) -> None:
        self.responses = list(responses or [])
        self.error = error
        self.calls: List[tuple[str, Dict[str, Any]]] = []

    def _call(self, operation: str, kwargs: Dict[str, Any]) -> Dict[str, Any]:
        self.calls.append((operation, kwargs))
        if self.error is not None:
            raise self.error
        return self.responses.pop(0) if self.responses else {}

    def put_item(self, **kwargs: Any) -> Dict[str, Any]:
        return self._call("put_item", kwargs)

    def query(self, **kwargs: Any) -> Dict[str, Any]:
        return self._call("query", kwargs)

    def scan(self, **kwargs: Any) -> Dict[str, Any]:
        return self._call("scan", kwargs)


def _client_error(code: str, operation: str = "PutItem") -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": f"{code} raised"}}, operation)


def test_put_item_converts_floats_to_decimal() -> None:
    table = FakeTable()
    store = DynamoDBReadingStore(table)

    store.put_item({"sessionId": "s1", "timestamp": "100", "temperature": 25.5, "expiresAt": 10})

    operation, kwargs = table.calls[0]
    assert operation == "put_item"
    assert kwargs["Item"]["temperature"] == Decimal("25.5")
    assert kwargs["Item"]["expiresAt"] == 10
    assert "ConditionExpression" not in kwargs


def test_put_item_require_new_adds_condition() -> None:
    table = FakeTable()
    store = DynamoDBReadingStore(table)

    store.put_item({"sessionId": "s1", "timestamp": "100"}, require_new=True)

    assert "ConditionExpression" in table.calls[0][1]


def test_conditional_check_failure_is_classified() -> None:
    store = DynamoDBReadingStore(FakeTable(error=_client_error("ConditionalCheckFailedException")))

    with pytest.raises(ConditionalCheckFailedError):
        store.put_item({"sessionId": "s1", "timestamp": "100"}, require_new=True)


def test_other_client_errors_become_store_errors() -> None:
    store = DynamoDBReadingStore(
        FakeTable(error=_client_error("ProvisionedThroughputExceededException"))
    )

    with pytest.raises(StoreError) as excinfo:
        store.put_item({"sessionId": "s1", "timestamp": "100"})

    assert not isinstance(excinfo.value, ConditionalCheckFailedError)
    assert "ProvisionedThroughputExceededException" in str(excinfo.value)


def test_query_follows_pages_and_decodes_numbers() -> None:
    table = FakeTable(
        responses=[
            {
                "Items": [{"sessionId": "s1", "timestamp": "1", "temperature": Decimal("20.5")}],
                "LastEvaluatedKey": {"sessionId": "s1", "timestamp": "1"},
            },
            {"Items": [{"sessionId": "s1", "timestamp": "2", "temperature": Decimal("21")}]},
        ]
    )
    store = DynamoDBReadingStore(table)

    items = store.query("s1")

    assert [item["temperature"] for item in items] == [20.5, 21]
    assert isinstance(items[1]["temperature"], int)
    assert len(table.calls) == 2
    assert table.calls[0][1]["ScanIndexForward"] is True
    assert "ExclusiveStartKey" not in table.calls[0][1]
    assert table.calls[1][1]["ExclusiveStartKey"] == {"sessionId": "s1", "timestamp": "1"}


def test_query_failure_becomes_store_error() -> None:
    store = DynamoDBReadingStore(FakeTable(error=_client_error("ResourceNotFoundException", "Query")))

    with pytest.raises(StoreError):
        store.query("s1")


def test_scan_builds_projection_and_round_trips_token() -> None:
    table = FakeTable(
        responses=[
            {
                "Items": [{"sessionId": "s1", "sensorName": "probe-a"}],
                "LastEvaluatedKey": {"sessionId": "s1", "timestamp": Decimal("100")},
            },
            {"Items": []},
        ]
    )
    store = DynamoDBReadingStore(table)

    first = store.scan(limit=20, attributes=("sessionId", "sensorName"))

    kwargs = table.calls[0][1]
    assert kwargs["Limit"] == 20
    assert kwargs["ProjectionExpression"] == "#a0, #a1"
    assert kwargs["ExpressionAttributeNames"] == {"#a0": "sessionId", "#a1": "sensorName"}
    assert first.items == [{"sessionId": "s1", "sensorName": "probe-a"}]
    assert json.loads(first.next_token) == {"sessionId": "s1", "timestamp": 100}

    second = store.scan(limit=20, start_token=first.next_token)

    assert table.calls[1][1]["ExclusiveStartKey"] == {"sessionId": "s1", "timestamp": Decimal("100")}
    assert second.items == []
    assert second.next_token is None


@pytest.mark.parametrize("token", ["not-json", "[1, 2]"])
def test_scan_rejects_malformed_token(token: str) -> None:
    table = FakeTable()
    store = DynamoDBReadingStore(table)

    with pytest.raises(StoreError):
        store.scan(limit=10, start_token=token)

    assert table.calls == []
