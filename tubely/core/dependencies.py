# tubely/core/dependencies.py
"""
FastAPI providers for the ingest services.

Each provider returns a process-wide instance built from `settings`; tests
swap them with `app.dependency_overrides`.
"""

from functools import lru_cache

from tubely.repositories.videos import VideoRepositoryProtocol, get_video_repository
from tubely.services.ingest import VideoIngestPipeline
from tubely.services.thumbnails import ThumbnailPublisher
from tubely.services.urls import URLResolver


@lru_cache(maxsize=1)
def get_url_resolver() -> URLResolver:
    return URLResolver()


@lru_cache(maxsize=1)
def get_ingest_pipeline() -> VideoIngestPipeline:
    return VideoIngestPipeline(resolver=get_url_resolver())


@lru_cache(maxsize=1)
def get_thumbnail_publisher() -> ThumbnailPublisher:
    return ThumbnailPublisher(resolver=get_url_resolver())


def get_videos() -> VideoRepositoryProtocol:
    return get_video_repository()
