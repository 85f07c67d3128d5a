"""Per-request access logging for the proxy."""

from __future__ import annotations

import json
import logging
import time
from typing import Any
from uuid import uuid4

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

logger = logging.getLogger("growthpath.middleware.structured")

REQUEST_ID_HEADER = "X-Request-ID"

_RESET = "\u001b[0m"
_STATUS_COLORS = (
    (500, "\u001b[31m"),
    (400, "\u001b[33m"),
    (200, "\u001b[32m"),
)
_DEFAULT_COLOR = "\u001b[36m"


def _color_for(status_code: int) -> str:
    for floor, color in _STATUS_COLORS:
        if status_code >= floor:
            return color
    return _DEFAULT_COLOR


def _level_for(status_code: int) -> int:
    if status_code >= 500:
        return logging.ERROR
    if status_code >= 400:
        return logging.WARNING
    return logging.INFO


class StructuredLoggingMiddleware(BaseHTTPMiddleware):
    """Log one coloured line per request, plus a JSON record at debug level.

    Every response carries an ``X-Request-ID`` header, reusing the caller's id
    when one is supplied, so client and proxy logs can be matched up.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid4().hex
        started = time.perf_counter()
        record: dict[str, Any] = {
            "request_id": request_id,
            "method": request.method,
            "path": request.url.path,
            "client_ip": request.client.host if request.client else None,
            "bytes_in": request.headers.get("content-length"),
        }

        try:
            response = await call_next(request)
        except Exception as exc:
            record.update(status=500, duration_ms=_elapsed_ms(started), error=repr(exc))
            logger.exception(_console_line(record))
            raise

        record.update(status=response.status_code, duration_ms=_elapsed_ms(started))
        response.headers[REQUEST_ID_HEADER] = request_id
        logger.log(_level_for(response.status_code), _console_line(record))
        logger.debug(json.dumps(record, default=str, separators=(",", ":")))
        return response


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)


def _console_line(record: dict[str, Any]) -> str:
    status_code = record.get("status") or 0
    line = (
        f"[{record['request_id'][:8]}] {record['method']} {record['path']} "
        f"-> {status_code} in {record.get('duration_ms', '-')}ms"
    )
    return f"{_color_for(status_code)}{line}{_RESET}"
