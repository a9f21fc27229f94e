"""
🧭 Tubely • API v1 Router Aggregator
====================================

    from tubely.api.v1.routers import router as v1_router
    app.include_router(v1_router, prefix="/api/v1")

Auth lives in the child routers.
"""

from fastapi import APIRouter

from .videos import router as videos_router

router = APIRouter()
router.include_router(videos_router)

__all__ = ["router", "videos_router"]
