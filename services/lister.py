"""Paginated listing of distinct sessions over a flat reading table.

The table has no notion of a session, so a page is built by scanning a batch of
raw rows, folding them into per-session aggregates and sorting those newest
first. The scan is overfetched by a constant factor because many rows collapse
into one session.

The cursor tracks the raw scan position, not the number of sessions emitted.
A page may therefore hold fewer than ``limit`` sessions while ``hasMore`` is
still true, and a session whose rows straddle two scan batches appears on both
pages with partial counts. ``hasMore`` only becomes false once the scan is
exhausted.
"""

from __future__ import annotations

import base64
import binascii
import logging
from functools import lru_cache
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from app.schemas import SessionPage, SessionSummary
from datastore.base import ReadingStore, StoreError
from datastore.factory import build_default_store
from models.records import SessionAggregate
from services.errors import StorageError
from services.timeutil import Clock, isoformat_z, now_utc
from settings import get_settings

logger = logging.getLogger(__name__)

DEFAULT_PAGE_LIMIT = 50
DEFAULT_OVERFETCH_FACTOR = 10
SCAN_ATTRIBUTES = ("sessionId", "sessionStartTime", "sensorName", "createdAt")


def parse_limit(raw: Union[str, int, None], default: int) -> int:
    """Interpret a page size, falling back to ``default`` when unusable."""
    if raw is None or isinstance(raw, bool):
        return default
    try:
        parsed = int(str(raw).strip())
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def encode_cursor(token: Optional[str]) -> Optional[str]:
    """Wrap a store token in unpadded URL-safe base64.

    The alphabet has no ``%``, so percent-decoding the cursor once or twice
    leaves it unchanged.
    """
    if token is None:
        return None
    return base64.urlsafe_b64encode(token.encode("utf-8")).decode("ascii").rstrip("=")


def decode_cursor(cursor: Optional[str]) -> Optional[str]:
    if not cursor:
        return None
    padded = cursor + "=" * (-len(cursor) % 4)
    try:
        return base64.b64decode(padded, altchars=b"-_", validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError) as exc:
        raise StorageError("Continuation cursor could not be decoded.") from exc


def aggregate_sessions(items: Iterable[Mapping[str, Any]]) -> List[SessionAggregate]:
    """Fold rows into one aggregate per session, in first-appearance order."""
    sessions: Dict[str, SessionAggregate] = {}
    for item in items:
        session_id = item.get("sessionId")
        if session_id is None:
            continue
        aggregate = sessions.get(session_id)
        if aggregate is None:
            aggregate = sessions[session_id] = SessionAggregate(session_id=session_id)
        aggregate.add(item)
    return list(sessions.values())


def newest_first(aggregates: Iterable[SessionAggregate]) -> List[SessionAggregate]:
    # sorted() stays stable with reverse=True; undated sessions go last.
    return sorted(
        aggregates,
        key=lambda aggregate: (aggregate.created_at is not None, aggregate.created_at or ""),
        reverse=True,
    )


class SessionLister:

    def __init__(
        self,
        store: ReadingStore,
        *,
        overfetch_factor: int = DEFAULT_OVERFETCH_FACTOR,
        default_limit: int = DEFAULT_PAGE_LIMIT,
        clock: Clock = now_utc,
    ) -> None:
        self.store = store
        self.overfetch_factor = overfetch_factor
        self.default_limit = default_limit
        self._clock = clock

    def list_sessions(
        self,
        limit: Union[str, int, None] = None,
        cursor: Optional[str] = None,
    ) -> SessionPage:
        page_limit = parse_limit(limit, self.default_limit)

        try:
            page = self.store.scan(
                limit=page_limit * self.overfetch_factor,
                start_token=decode_cursor(cursor),
                attributes=SCAN_ATTRIBUTES,
            )
        except StoreError as exc:
            logger.error("Failed to scan sessions", exc_info=True)
            raise StorageError(str(exc)) from exc

        ordered = newest_first(aggregate_sessions(page.items))[:page_limit]
        sessions = [SessionSummary(**aggregate.to_summary()) for aggregate in ordered]
        has_more = page.next_token is not None

        logger.info(
            "Listed sessions",
            extra={
                "row_count": len(page.items),
                "session_count": len(sessions),
                "has_more": has_more,
            },
        )
        return SessionPage(
            sessions=sessions,
            total_returned=len(sessions),
            has_more=has_more,
            cursor=encode_cursor(page.next_token),
            retrieved_at=isoformat_z(self._clock()),
        )


@lru_cache
def build_default_lister() -> SessionLister:
    settings = get_settings()
    return SessionLister(
        store=build_default_store(),
        overfetch_factor=settings.overfetch_factor,
        default_limit=settings.default_page_limit,
    )
