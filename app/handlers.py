"""Request handlers speaking the normalized ``{httpMethod, queryStringParameters, body}`` event shape.

Each handler returns ``{statusCode, headers, body}`` with a JSON body and a
fixed set of CORS headers. Service errors are mapped to their status codes here
so nothing but a response leaves a handler.
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
from functools import lru_cache
from typing import Any, Dict, Mapping, Optional, Tuple

from pydantic import BaseModel

from app.schemas import ErrorBody, HealthStatus, ReadingCreated
from services.errors import ReadingServiceError, StorageError, ValidationError
from services.lister import SessionLister, build_default_lister
from services.reader import SessionReader, build_default_reader
from services.timeutil import Clock, isoformat_z, now_utc
from services.writer import ReadingWriter, build_default_writer
from settings import get_settings

logger = logging.getLogger(__name__)

Event = Mapping[str, Any]
Response = Dict[str, Any]

CORS_ALLOW_HEADERS = (
    "Content-Type,X-Amz-Date,Authorization,X-Api-Key,X-Amz-Security-Token,X-API-Key"
)


def cors_headers(origin: str, methods: str) -> Dict[str, str]:
    return {
        "Access-Control-Allow-Origin": origin,
        "Access-Control-Allow-Headers": CORS_ALLOW_HEADERS,
        "Access-Control-Allow-Methods": methods,
        "Access-Control-Allow-Credentials": "false",
        "Content-Type": "application/json",
    }


def query_parameters(event: Event) -> Mapping[str, str]:
    return event.get("queryStringParameters") or {}


class BaseHandler:
    """Shared dispatch: preflight, error mapping, and response rendering."""

    allowed_methods = "OPTIONS,GET"

    def __init__(self, *, cors_origin: str, expose_error_details: bool = True) -> None:
        self.headers = cors_headers(cors_origin, self.allowed_methods)
        self.expose_error_details = expose_error_details

    def __call__(self, event: Event) -> Response:
        method = str(event.get("httpMethod") or "").upper()
        if method == "OPTIONS":
            return self._respond(200, "")

        try:
            if method not in self.allowed_methods.split(","):
                raise ValidationError(f"Unsupported method: {method or '<none>'}")
            status_code, payload = self.handle(method, event)
        except ReadingServiceError as exc:
            return self._error(exc, method)
        except Exception as exc:  # noqa: BLE001 - raw errors never reach the transport
            logger.exception("Unhandled error in %s", type(self).__name__)
            return self._error(StorageError(str(exc)), method)

        logger.info(
            "Handled request",
            extra={"http_method": method, "status_code": status_code},
        )
        return self._respond(status_code, payload.model_dump_json(by_alias=True))

    def handle(self, method: str, event: Event) -> Tuple[int, BaseModel]:
        raise NotImplementedError

    def _error(self, exc: ReadingServiceError, method: str) -> Response:
        details = exc.details if self.expose_error_details else None
        logger.info(
            "Request failed: %s",
            exc.message,
            extra={"http_method": method, "status_code": exc.status_code},
        )
        body = ErrorBody(error=exc.message, details=details)
        return self._respond(exc.status_code, body.model_dump_json(exclude_none=True))

    def _respond(self, status_code: int, body: str) -> Response:
        return {"statusCode": status_code, "headers": dict(self.headers), "body": body}


class StoreReadingHandler(BaseHandler):
    """POST stores a reading; GET reports health."""

    allowed_methods = "OPTIONS,GET,POST"

    def __init__(self, writer: ReadingWriter, *, clock: Clock = now_utc, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.writer = writer
        self._clock = clock

    def handle(self, method: str, event: Event) -> Tuple[int, BaseModel]:
        if method == "GET":
            return 200, HealthStatus(
                message="Store Reading service is healthy",
                table_name=self.writer.store.name,
                timestamp=isoformat_z(self._clock()),
            )

        payload = self._parse_body(event)
        reading_id = self.writer.store_reading(payload)
        return 201, ReadingCreated(id=reading_id)

    @staticmethod
    def _parse_body(event: Event) -> Any:
        body: Optional[str] = event.get("body")
        if not body:
            raise ValidationError("No request body provided")
        try:
            if event.get("isBase64Encoded"):
                body = base64.b64decode(body).decode("utf-8")
            return json.loads(body)
        except (binascii.Error, UnicodeDecodeError, ValueError) as exc:
            raise ValidationError("Request body must be valid JSON") from exc


class GetReadingsHandler(BaseHandler):

    def __init__(self, reader: SessionReader, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.reader = reader

    def handle(self, method: str, event: Event) -> Tuple[int, BaseModel]:
        session_id = query_parameters(event).get("sessionId")
        return 200, self.reader.fetch(session_id)


class ListSessionsHandler(BaseHandler):

    def __init__(self, lister: SessionLister, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.lister = lister

    def handle(self, method: str, event: Event) -> Tuple[int, BaseModel]:
        params = query_parameters(event)
        cursor = params.get("cursor") or params.get("lastEvaluatedKey")
        return 200, self.lister.list_sessions(limit=params.get("limit"), cursor=cursor)


def _handler_options() -> Dict[str, Any]:
    settings = get_settings()
    return {
        "cors_origin": settings.cors_origin,
        "expose_error_details": settings.expose_error_details,
    }


@lru_cache
def build_store_reading_handler() -> StoreReadingHandler:
    return StoreReadingHandler(build_default_writer(), **_handler_options())


@lru_cache
def build_get_readings_handler() -> GetReadingsHandler:
    return GetReadingsHandler(build_default_reader(), **_handler_options())


@lru_cache
def build_list_sessions_handler() -> ListSessionsHandler:
    return ListSessionsHandler(build_default_lister(), **_handler_options())
