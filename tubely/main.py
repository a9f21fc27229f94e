# tubely/main.py
from __future__ import annotations

"""
# Tubely API — Application Entrypoint (FastAPI)

ASGI application factory for the video ingest service.

## Design Goals
- Deterministic, testable **app factory** (`create_app`) with explicit lifespan.
- Middleware order: request id → upload size gate → gzip.
- `STORAGE_BACKEND=local` serves stored assets at `/assets`.
- Centralized problem+json exception handling, including pipeline errors.

## Probes
- `/healthz` — liveness (process up).
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator
import logging
import os

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from fastapi.staticfiles import StaticFiles
from starlette.middleware.gzip import GZipMiddleware
from starlette.responses import JSONResponse

# -- Logging bootstrap (Loguru + stdlib intercept) ----------------------------
from tubely.core import logger as _logsetup  # noqa: F401

from tubely.api.v1.routers import router as api_v1_router
from tubely.core.config import settings
from tubely.core.exception_handlers import (
    global_exception_handler,
    http_exception_handler,
    ingest_exception_handler,
    validation_exception_handler,
)
from tubely.core.exceptions import IngestError
from tubely.middleware.body_limit import BodySizeLimitMiddleware
from tubely.middleware.request_id import RequestIDMiddleware
from tubely.utils.storage import ASSETS_MOUNT, LocalAssetStore

logger = logging.getLogger("tubely")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    logger.info(
        "✅ %s starting up (env=%s, storage_access_mode=%s)",
        settings.PROJECT_NAME,
        settings.ENV,
        settings.STORAGE_ACCESS_MODE,
    )
    try:
        yield
    finally:
        logger.info("🛑 %s shutting down", settings.PROJECT_NAME)


def create_app() -> FastAPI:
    """
    Build and configure the FastAPI app instance.

    Returns:
        FastAPI: application with middleware, exception handlers, the v1
        router and meta endpoints.
    """
    enable_docs = settings.ENABLE_DOCS and not settings.is_production
    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.VERSION,
        docs_url="/docs" if enable_docs else None,
        redoc_url="/redoc" if enable_docs else None,
        openapi_url="/openapi.json" if enable_docs else None,
        lifespan=lifespan,
    )

    # ── Middlewares (order matters) ─────────────────────────────────────────
    app.add_middleware(GZipMiddleware, minimum_size=1024)
    app.add_middleware(
        BodySizeLimitMiddleware,
        limits=[
            (r"/videos/[^/]+/video$", settings.MAX_VIDEO_UPLOAD_BYTES),
            (r"/videos/[^/]+/thumbnail$", settings.MAX_THUMBNAIL_UPLOAD_BYTES),
        ],
    )
    app.add_middleware(RequestIDMiddleware)  # outermost: correlation id for everything

    # ── Exception handlers ──────────────────────────────────────────────────
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(HTTPException, http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, validation_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(IngestError, ingest_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, global_exception_handler)  # type: ignore[arg-type]

    # ── Routers ─────────────────────────────────────────────────────────────
    app.include_router(api_v1_router, prefix=settings.API_V1_STR, tags=["v1"])

    # ── Local asset store ───────────────────────────────────────────────────
    if settings.STORAGE_BACKEND == "local":
        assets_root = LocalAssetStore().ensure_root()
        app.mount(ASSETS_MOUNT, StaticFiles(directory=assets_root), name="assets")

    # ── Meta endpoints ──────────────────────────────────────────────────────
    @app.get("/healthz", tags=["meta"])
    async def healthz() -> dict[str, bool]:
        """Liveness probe. No external checks."""
        return {"ok": True}

    @app.get("/", include_in_schema=False)
    async def root() -> JSONResponse:
        return JSONResponse(
            {
                "name": settings.PROJECT_NAME,
                "docs": app.docs_url or "",
                "version": settings.VERSION,
            }
        )

    return app


app = create_app()
__all__ = ["create_app", "app"]


# Local dev runner (prefer: `uvicorn tubely.main:app --reload`)
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "tubely.main:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", "8000")),
        reload=os.getenv("RELOAD", "1") == "1",
        log_level=os.getenv("LOG_LEVEL", "info").lower(),
    )
