"""
🎬 Tubely · Videos API
======================

Thin HTTP surface over the ingest pipeline under `/api/v1`.

Routes (5)
----------
- POST /api/v1/videos                          → Create a draft video record
- GET  /api/v1/videos                          → List the caller's videos
- GET  /api/v1/videos/{video_id}               → Fetch one video (URLs resolved)
- POST /api/v1/videos/{video_id}/video         → Upload + ingest the video file
- POST /api/v1/videos/{video_id}/thumbnail     → Upload the thumbnail image

Security & Operations
---------------------
- Bearer JWT on every route; only the owner may upload.
- Body size limits enforced before any processing (413).
- The pipeline is blocking (ffprobe/ffmpeg/S3); it runs in Starlette's
  threadpool so the event loop stays free.
- Responses that may embed signed URLs are marked `Cache-Control: no-store`.
- Pipeline failures propagate as `IngestError` and are rendered by the
  problem+json handlers; `video_url` is only written after a full success.
"""

# ─────────────────────────────────────────────────────────────────────────────
# 📦 Imports
# ─────────────────────────────────────────────────────────────────────────────
from typing import List
from uuid import UUID
import logging

from fastapi import APIRouter, Depends, File, Response, UploadFile, status
from starlette.concurrency import run_in_threadpool

from tubely.core.config import settings
from tubely.core.dependencies import (
    get_ingest_pipeline,
    get_thumbnail_publisher,
    get_url_resolver,
    get_videos,
)
from tubely.core.exceptions import (
    NotVideoOwnerException,
    UploadTooLargeException,
    VideoNotFoundException,
)
from tubely.core.security import get_current_user_id
from tubely.repositories.videos import VideoRecord, VideoRepositoryProtocol
from tubely.schemas.videos import VideoCreate, VideoOut
from tubely.services.ingest import VideoIngestPipeline
from tubely.services.thumbnails import ThumbnailPublisher
from tubely.services.urls import URLResolver

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Videos"])


# ─────────────────────────────────────────────────────────────────────────────
# 🧰 Helpers
# ─────────────────────────────────────────────────────────────────────────────
def _no_store(response: Response) -> None:
    response.headers["Cache-Control"] = "no-store"
    response.headers["Pragma"] = "no-cache"


def _upload_size(upload: UploadFile) -> int:
    if upload.size is not None:
        return upload.size
    f = upload.file
    pos = f.tell()
    f.seek(0, 2)
    size = f.tell()
    f.seek(pos)
    return size


def _enforce_size(upload: UploadFile, limit: int) -> None:
    if _upload_size(upload) > limit:
        raise UploadTooLargeException(limit=limit)


def _to_out(record: VideoRecord, resolver: URLResolver) -> VideoOut:
    return VideoOut(
        id=record.id,
        user_id=record.user_id,
        title=record.title,
        description=record.description,
        thumbnail_url=resolver.resolve(record.thumbnail_url),
        video_url=resolver.resolve(record.video_url),
        created_at=record.created_at,
        updated_at=record.updated_at,
    )


def _owned_video(repo: VideoRepositoryProtocol, video_id: UUID, user_id: UUID) -> VideoRecord:
    record = repo.get(video_id)
    if record is None:
        raise VideoNotFoundException(video_id=str(video_id))
    if record.user_id != user_id:
        raise NotVideoOwnerException(video_id=str(video_id), user_id=str(user_id))
    return record


# ─────────────────────────────────────────────────────────────────────────────
# 📼 Metadata
# ─────────────────────────────────────────────────────────────────────────────
@router.post("/videos", response_model=VideoOut, status_code=status.HTTP_201_CREATED, summary="Create video draft")
async def create_video(
    payload: VideoCreate,
    user_id: UUID = Depends(get_current_user_id),
    repo: VideoRepositoryProtocol = Depends(get_videos),
    resolver: URLResolver = Depends(get_url_resolver),
) -> VideoOut:
    record = repo.create(user_id=user_id, title=payload.title, description=payload.description)
    logger.info("Created video %s for user %s", record.id, user_id)
    return _to_out(record, resolver)


@router.get("/videos", response_model=List[VideoOut], summary="List my videos")
async def list_videos(
    response: Response,
    user_id: UUID = Depends(get_current_user_id),
    repo: VideoRepositoryProtocol = Depends(get_videos),
    resolver: URLResolver = Depends(get_url_resolver),
) -> List[VideoOut]:
    _no_store(response)
    records = repo.list_for_user(user_id)
    return await run_in_threadpool(lambda: [_to_out(r, resolver) for r in records])


@router.get("/videos/{video_id}", response_model=VideoOut, summary="Get video")
async def get_video(
    video_id: UUID,
    response: Response,
    user_id: UUID = Depends(get_current_user_id),
    repo: VideoRepositoryProtocol = Depends(get_videos),
    resolver: URLResolver = Depends(get_url_resolver),
) -> VideoOut:
    _no_store(response)
    record = _owned_video(repo, video_id, user_id)
    return await run_in_threadpool(_to_out, record, resolver)


# ─────────────────────────────────────────────────────────────────────────────
# ⬆️ Uploads
# ─────────────────────────────────────────────────────────────────────────────
@router.post("/videos/{video_id}/video", response_model=VideoOut, summary="Upload video file")
async def upload_video(
    video_id: UUID,
    response: Response,
    video: UploadFile = File(...),
    user_id: UUID = Depends(get_current_user_id),
    repo: VideoRepositoryProtocol = Depends(get_videos),
    pipeline: VideoIngestPipeline = Depends(get_ingest_pipeline),
    resolver: URLResolver = Depends(get_url_resolver),
) -> VideoOut:
    """
    Ingest a video for an existing record owned by the caller.

    Raises
    ------
    400  unsupported media type
    403  caller does not own the video
    404  unknown video id
    413  file larger than `MAX_VIDEO_UPLOAD_BYTES`
    422  ffprobe could not classify the file
    500  ffmpeg remux failed (exit code + stderr in the body)
    503  object storage failure
    """
    _no_store(response)
    _owned_video(repo, video_id, user_id)
    _enforce_size(video, settings.MAX_VIDEO_UPLOAD_BYTES)

    try:
        result = await run_in_threadpool(pipeline.ingest, user_id, video_id, video.content_type, video.file)
    finally:
        await video.close()

    record = repo.update_urls(video_id, video_url=result.video_url)
    return await run_in_threadpool(_to_out, record, resolver)


@router.post("/videos/{video_id}/thumbnail", response_model=VideoOut, summary="Upload thumbnail")
async def upload_thumbnail(
    video_id: UUID,
    response: Response,
    thumbnail: UploadFile = File(...),
    user_id: UUID = Depends(get_current_user_id),
    repo: VideoRepositoryProtocol = Depends(get_videos),
    publisher: ThumbnailPublisher = Depends(get_thumbnail_publisher),
    resolver: URLResolver = Depends(get_url_resolver),
) -> VideoOut:
    _no_store(response)
    _owned_video(repo, video_id, user_id)
    _enforce_size(thumbnail, settings.MAX_THUMBNAIL_UPLOAD_BYTES)

    try:
        result = await run_in_threadpool(publisher.publish, video_id, thumbnail.content_type, thumbnail.file)
    finally:
        await thumbnail.close()

    record = repo.update_urls(video_id, thumbnail_url=result.video_url)
    return await run_in_threadpool(_to_out, record, resolver)
