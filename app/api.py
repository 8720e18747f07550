"""HTTP route definitions for the service."""

from __future__ import annotations

import base64
from typing import Any, Dict

from fastapi import APIRouter, Depends, Request, Response
from fastapi.concurrency import run_in_threadpool

from app.handlers import (
    BaseHandler,
    GetReadingsHandler,
    ListSessionsHandler,
    StoreReadingHandler,
    build_get_readings_handler,
    build_list_sessions_handler,
    build_store_reading_handler,
)

router = APIRouter()


def get_store_handler() -> StoreReadingHandler:
    return build_store_reading_handler()


def get_readings_handler() -> GetReadingsHandler:
    return build_get_readings_handler()


def get_sessions_handler() -> ListSessionsHandler:
    return build_list_sessions_handler()


def _request_event(method: str, query_params: Dict[str, str], raw_body: bytes) -> Dict[str, Any]:
    event: Dict[str, Any] = {
        "httpMethod": method,
        "queryStringParameters": query_params or None,
        "body": None,
    }
    if not raw_body:
        return event
    try:
        event["body"] = raw_body.decode("utf-8")
    except UnicodeDecodeError:
        # Non-UTF-8 bytes pass through intact; the handler rejects them.
        event["body"] = base64.b64encode(raw_body).decode("ascii")
        event["isBase64Encoded"] = True
    return event


async def _dispatch(handler: BaseHandler, request: Request) -> Response:
    event = _request_event(request.method, dict(request.query_params), await request.body())
    result = await run_in_threadpool(handler, event)
    return Response(
        content=result["body"],
        status_code=result["statusCode"],
        headers=result["headers"],
    )


@router.post(
    "/readings",
    summary="Store one temperature reading.",
)
async def store_reading(
    request: Request,
    handler: StoreReadingHandler = Depends(get_store_handler),
) -> Response:
    return await _dispatch(handler, request)


@router.options("/readings", include_in_schema=False)
async def readings_preflight(
    request: Request,
    handler: StoreReadingHandler = Depends(get_store_handler),
) -> Response:
    return await _dispatch(handler, request)


@router.get(
    "/readings",
    summary="Fetch every reading of a session grouped by sensor.",
)
async def get_readings(
    request: Request,
    handler: GetReadingsHandler = Depends(get_readings_handler),
) -> Response:
    return await _dispatch(handler, request)


@router.get(
    "/sessions",
    summary="List distinct sessions, newest first, one page at a time.",
)
async def list_sessions(
    request: Request,
    handler: ListSessionsHandler = Depends(get_sessions_handler),
) -> Response:
    return await _dispatch(handler, request)


@router.options("/sessions", include_in_schema=False)
async def sessions_preflight(
    request: Request,
    handler: ListSessionsHandler = Depends(get_sessions_handler),
) -> Response:
    return await _dispatch(handler, request)


@router.get(
    "/health",
    summary="Health check reporting the backing table.",
)
async def healthcheck(
    request: Request,
    handler: StoreReadingHandler = Depends(get_store_handler),
) -> Response:
    return await _dispatch(handler, request)
