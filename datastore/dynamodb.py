"""boto3-backed reading store for a DynamoDB table keyed by (sessionId, timestamp)."""

from __future__ import annotations

import json
import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence

import boto3
from boto3.dynamodb.conditions import Attr, Key
from botocore.exceptions import BotoCoreError, ClientError

from datastore.base import (
    PARTITION_KEY,
    SORT_KEY,
    ConditionalCheckFailedError,
    Item,
    ScanPage,
    StoreError,
)

logger = logging.getLogger(__name__)

_CONDITIONAL_CHECK_FAILED = "ConditionalCheckFailedException"


def _to_dynamo(value: Any) -> Any:
    # DynamoDB rejects Python floats.
    if isinstance(value, float):
        return Decimal(str(value))
    return value


def _from_dynamo(value: Any) -> Any:
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    return value


def _json_default(value: Any) -> Any:
    if isinstance(value, Decimal):
        return _from_dynamo(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


class DynamoDBReadingStore:

    def __init__(self, table: Any) -> None:
        self._table = table
        self.name: str = table.name

    @classmethod
    def connect(cls, table_name: str, region_name: str) -> "DynamoDBReadingStore":
        resource = boto3.resource("dynamodb", region_name=region_name)
        return cls(resource.Table(table_name))

    def put_item(self, item: Item, *, require_new: bool = False) -> None:
        params: Dict[str, Any] = {
            "Item": {key: _to_dynamo(value) for key, value in item.items()},
        }
        if require_new:
            params["ConditionExpression"] = (
                Attr(PARTITION_KEY).not_exists() & Attr(SORT_KEY).not_exists()
            )
        try:
            self._table.put_item(**params)
        except ClientError as exc:
            if exc.response.get("Error", {}).get("Code") == _CONDITIONAL_CHECK_FAILED:
                raise ConditionalCheckFailedError(str(exc)) from exc
            raise StoreError(str(exc)) from exc
        except BotoCoreError as exc:
            raise StoreError(str(exc)) from exc

    def query(self, session_id: str, *, ascending: bool = True) -> List[Item]:
        params: Dict[str, Any] = {
            "KeyConditionExpression": Key(PARTITION_KEY).eq(session_id),
            "ScanIndexForward": ascending,
        }
        items: List[Item] = []
        try:
            while True:
                response = self._table.query(**params)
                items.extend(self._decode_item(raw) for raw in response.get("Items", []))
                last_key = response.get("LastEvaluatedKey")
                if not last_key:
                    break
                params["ExclusiveStartKey"] = last_key
        except (ClientError, BotoCoreError) as exc:
            raise StoreError(str(exc)) from exc

        logger.debug("Queried %d items", len(items), extra={"session_id": session_id})
        return items

    def scan(
        self,
        *,
        limit: int,
        start_token: Optional[str] = None,
        attributes: Optional[Sequence[str]] = None,
    ) -> ScanPage:
        params: Dict[str, Any] = {"Limit": limit}
        if attributes:
            names = {f"#a{index}": name for index, name in enumerate(attributes)}
            params["ProjectionExpression"] = ", ".join(names)
            params["ExpressionAttributeNames"] = names
        if start_token is not None:
            params["ExclusiveStartKey"] = self._decode_token(start_token)

        try:
            response = self._table.scan(**params)
        except (ClientError, BotoCoreError) as exc:
            raise StoreError(str(exc)) from exc

        items = [self._decode_item(raw) for raw in response.get("Items", [])]
        last_key = response.get("LastEvaluatedKey")
        next_token = json.dumps(last_key, default=_json_default, sort_keys=True) if last_key else None
        return ScanPage(items=items, next_token=next_token)

    @staticmethod
    def _decode_item(raw: Dict[str, Any]) -> Item:
        return {key: _from_dynamo(value) for key, value in raw.items()}

    @staticmethod
    def _decode_token(token: str) -> Dict[str, Any]:
        try:
            key = json.loads(token, parse_float=Decimal, parse_int=Decimal)
        except ValueError as exc:
            raise StoreError("Continuation token is malformed.") from exc
        if not isinstance(key, dict):
            raise StoreError("Continuation token is malformed.")
        return key
