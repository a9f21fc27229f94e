from __future__ import annotations

"""
Problem+JSON exception handlers (RFC 7807).

Registered by `tubely.main.create_app`. All HTTP errors are rendered as
application/problem+json with a stable schema. Pipeline failures
(`IngestError`) keep their diagnostic text so operators can see *why* ffprobe
or ffmpeg rejected a file.
"""

import logging
from typing import Any, Dict, Optional

from fastapi import Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from tubely.core.exceptions import AppException, IngestError
from tubely.middleware.request_id import get_request_id

logger = logging.getLogger(__name__)

# Tool stderr can be huge (ffmpeg banner + per-frame noise); keep the tail.
MAX_DIAGNOSTIC_CHARS = 2000


def _problem(
    title: str,
    detail: str,
    status_code: int,
    request: Request,
    extra: Optional[Dict[str, Any]] = None,
) -> JSONResponse:
    content: Dict[str, Any] = {
        "type": "about:blank",
        "title": title,
        "detail": detail,
        "status": status_code,
        "instance": str(request.url),
        "request_id": get_request_id(request),
    }
    if extra:
        content.update(extra)
    return JSONResponse(status_code=status_code, content=content, media_type="application/problem+json")


def _trim(value: Any) -> Any:
    if isinstance(value, str) and len(value) > MAX_DIAGNOSTIC_CHARS:
        return value[-MAX_DIAGNOSTIC_CHARS:]
    return value


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:  # type: ignore
    title = exc.__class__.__name__.replace("Exception", "").strip() or "Error"
    detail = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    extra: Dict[str, Any] = {}
    if isinstance(exc, AppException):
        extra["code"] = exc.code
        if exc.details is not None:
            extra["details"] = exc.details
    response = _problem(title, detail, exc.status_code, request, extra)
    for k, v in (getattr(exc, "headers", None) or {}).items():
        response.headers[k] = v
    return response


async def ingest_exception_handler(request: Request, exc: IngestError) -> JSONResponse:  # type: ignore
    logger.warning("Ingest failed on %s: %s: %s", request.url.path, type(exc).__name__, exc)
    extra = {k: _trim(v) for k, v in exc.details().items()}
    return _problem(exc.title, str(exc), exc.status_code, request, extra)


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:  # type: ignore
    detail = "Validation error"
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "type": "about:blank",
            "title": detail,
            "detail": detail,
            "status": status.HTTP_422_UNPROCESSABLE_ENTITY,
            "instance": str(request.url),
            "request_id": get_request_id(request),
            "errors": jsonable_encoder(exc.errors()),
        },
        media_type="application/problem+json",
    )


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:  # type: ignore
    logger.error("Unhandled exception for %s %s", request.method, request.url.path, exc_info=exc)
    # Hide internals from clients.
    return _problem("Internal Server Error", "An unexpected error occurred.", status.HTTP_500_INTERNAL_SERVER_ERROR, request)


__all__ = [
    "http_exception_handler",
    "ingest_exception_handler",
    "validation_exception_handler",
    "global_exception_handler",
]
