from __future__ import annotations
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from app.api import router
from app.handlers import (
    build_get_readings_handler,
    build_list_sessions_handler,
    build_store_reading_handler,
)
from datastore.factory import build_default_store
from logging_config import configure_logging
from services.lister import build_default_lister
from services.reader import build_default_reader
from services.writer import build_default_writer

_CACHED_FACTORIES = (
    build_store_reading_handler,
    build_get_readings_handler,
    build_list_sessions_handler,
    build_default_writer,
    build_default_reader,
    build_default_lister,
    build_default_store,
)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    build_default_store()
    try:
        yield
    finally:
        for factory in _CACHED_FACTORIES:
            factory.cache_clear()


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(
        title="Temperature Readings",
        description="Stores temperature readings and serves them grouped by session.",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.include_router(router)
    return app

app = create_app()
