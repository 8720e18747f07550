from __future__ import annotations
from functools import lru_cache
from pathlib import Path
from typing import Optional

from datastore.base import ReadingStore
from datastore.dynamodb import DynamoDBReadingStore
from datastore.mock_dynamodb import MockDynamoDBTable
from settings import get_settings


@lru_cache
def build_default_store(
    backend: Optional[str] = None,
    name: Optional[str] = None,
) -> ReadingStore:
    settings = get_settings()
    store_backend = settings.store_backend if backend is None else backend
    table_name = settings.table_name if name is None else name

    if store_backend == "dynamodb":
        return DynamoDBReadingStore.connect(table_name, region_name=settings.aws_region)

    table_path = settings.table_persistence_path
    persistence = Path(table_path) if table_path else None
    return MockDynamoDBTable(name=table_name, persistence_path=persistence)
