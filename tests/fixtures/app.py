# tests/fixtures/app.py
"""
🧩 App Fixture:
- Builds the real FastAPI app via `create_app()`
- Swaps storage/media collaborators for fakes through dependency overrides
- Returns an httpx AsyncClient bound to the ASGI app
"""

from typing import AsyncGenerator

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from tubely.core.dependencies import (
    get_ingest_pipeline,
    get_thumbnail_publisher,
    get_url_resolver,
    get_videos,
)
from tubely.main import create_app
from tubely.repositories.videos import MemoryVideoRepository
from tubely.services.ingest import VideoIngestPipeline
from tubely.services.thumbnails import ThumbnailPublisher
from tubely.services.urls import URLResolver

from tests.fixtures.fakes import FakeRemuxer

__all__ = ["video_repo", "resolver", "remuxer", "pipeline", "app", "async_client"]


@pytest.fixture
def video_repo() -> MemoryVideoRepository:
    return MemoryVideoRepository()


@pytest.fixture
def resolver(fake_s3) -> URLResolver:
    return URLResolver(fake_s3, mode="signed")


@pytest.fixture
def remuxer() -> FakeRemuxer:
    return FakeRemuxer()


@pytest.fixture
def pipeline(fake_s3, resolver, landscape_inspector, remuxer, scratch_dir) -> VideoIngestPipeline:
    return VideoIngestPipeline(
        inspector=landscape_inspector,
        remuxer=remuxer,
        store=fake_s3,
        resolver=resolver,
        allowed_types=["video/mp4"],
        scratch_dir=str(scratch_dir),
    )


@pytest.fixture()
def app(video_repo, resolver, pipeline, fake_s3) -> FastAPI:
    app = create_app()
    app.dependency_overrides[get_videos] = lambda: video_repo
    app.dependency_overrides[get_url_resolver] = lambda: resolver
    app.dependency_overrides[get_ingest_pipeline] = lambda: pipeline
    app.dependency_overrides[get_thumbnail_publisher] = lambda: ThumbnailPublisher(
        store=fake_s3, resolver=resolver, allowed_types=["image/jpeg", "image/png"]
    )
    return app


@pytest.fixture()
async def async_client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
