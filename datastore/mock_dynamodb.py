from __future__ import annotations
import json
from pathlib import Path
from threading import Lock
from typing import Any, Dict, List, Optional, Sequence, Tuple

from datastore.base import (
    PARTITION_KEY,
    SORT_KEY,
    ConditionalCheckFailedError,
    Item,
    ScanPage,
    StoreError,
)

Key = Tuple[str, Any]


def _sort_value(timestamp: Any) -> Tuple[int, Any]:
    # Numeric sort keys order before string sort keys.
    if isinstance(timestamp, str):
        return (1, timestamp)
    return (0, timestamp)


class MockDynamoDBTable:
    """In-memory table keyed by (sessionId, timestamp), optionally persisted as JSON."""

    def __init__(self, name: str, persistence_path: Optional[Path] = None) -> None:
        self.name = name
        self._items: Dict[Key, Item] = {}
        self.persistence_path = persistence_path
        self._lock = Lock()
        if persistence_path:
            persistence_path.parent.mkdir(parents=True, exist_ok=True)
            self._load_from_disk()

    def put_item(self, item: Item, *, require_new: bool = False) -> None:
        key = self._key_of(item)
        with self._lock:
            if require_new and key in self._items:
                raise ConditionalCheckFailedError(
                    f"Item {key!r} already exists in table {self.name!r}."
                )
            self._items[key] = dict(item)
            self._persist()

    def query(self, session_id: str, *, ascending: bool = True) -> List[Item]:
        with self._lock:
            rows = [
                dict(item)
                for (partition, _), item in self._items.items()
                if partition == session_id
            ]
        rows.sort(key=lambda row: _sort_value(row[SORT_KEY]), reverse=not ascending)
        return rows

    def scan(
        self,
        *,
        limit: int,
        start_token: Optional[str] = None,
        attributes: Optional[Sequence[str]] = None,
    ) -> ScanPage:
        """Evaluate up to ``limit`` items in insertion order after ``start_token``."""
        if limit <= 0:
            raise StoreError("Scan limit must be positive.")

        with self._lock:
            keys = list(self._items)
            start = 0
            if start_token is not None:
                start_key = self._decode_token(start_token)
                try:
                    start = keys.index(start_key) + 1
                except ValueError as exc:
                    raise StoreError("Continuation token does not match any item.") from exc

            window = keys[start : start + limit]
            items = [self._project(self._items[key], attributes) for key in window]

        next_token = None
        if window and start + limit < len(keys):
            next_token = self._encode_token(window[-1])
        return ScanPage(items=items, next_token=next_token)

    @staticmethod
    def _key_of(item: Item) -> Key:
        try:
            return (item[PARTITION_KEY], item[SORT_KEY])
        except KeyError as exc:
            raise StoreError(f"Item is missing key attribute {exc.args[0]!r}.") from exc

    @staticmethod
    def _project(item: Item, attributes: Optional[Sequence[str]]) -> Item:
        if attributes is None:
            return dict(item)
        return {name: item[name] for name in attributes if name in item}

    @staticmethod
    def _encode_token(key: Key) -> str:
        partition, sort = key
        return json.dumps({PARTITION_KEY: partition, SORT_KEY: sort}, sort_keys=True)

    @staticmethod
    def _decode_token(token: str) -> Key:
        try:
            data = json.loads(token)
            return (data[PARTITION_KEY], data[SORT_KEY])
        except (TypeError, ValueError, KeyError) as exc:
            raise StoreError("Continuation token is malformed.") from exc

    def _persist(self) -> None:
        if not self.persistence_path:
            return
        payload = list(self._items.values())
        self.persistence_path.write_text(json.dumps(payload, indent=2, sort_keys=True))

    def _load_from_disk(self) -> None:
        if not self.persistence_path or not self.persistence_path.exists():
            return

        try:
            raw = self.persistence_path.read_text() or "[]"
            data = json.loads(raw)
        except (OSError, json.JSONDecodeError):
            data = []

        for item in data:
            if isinstance(item, dict) and PARTITION_KEY in item and SORT_KEY in item:
                self._items[self._key_of(item)] = item
