"""Store capability consumed by the reading services."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol, Sequence

Item = Dict[str, Any]

PARTITION_KEY = "sessionId"
SORT_KEY = "timestamp"


class StoreError(Exception):
    """Raised by store clients when an operation cannot be completed."""


class ConditionalCheckFailedError(StoreError):
    """A conditional put found an existing item under the same key."""


@dataclass
class ScanPage:
    items: List[Item] = field(default_factory=list)
    next_token: Optional[str] = None


class ReadingStore(Protocol):
    name: str

    def put_item(self, item: Item, *, require_new: bool = False) -> None: ...

    def query(self, session_id: str, *, ascending: bool = True) -> List[Item]: ...

    def scan(
        self,
        *,
        limit: int,
        start_token: Optional[str] = None,
        attributes: Optional[Sequence[str]] = None,
    ) -> ScanPage: ...
