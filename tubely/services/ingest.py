# tubely/services/ingest.py
from __future__ import annotations

"""
🎞️ Tubely • Video Ingest Pipeline
=================================

    stream ─► scratch file ─► classify ─► remux ─► key ─► upload ─► publish

`VideoIngestPipeline.ingest()` is the whole contract consumed by the HTTP
layer. It returns an `IngestResult` whose `video_url` the *caller* persists;
the pipeline never talks to the metadata store.

Guarantees
----------
- **Fail fast**: every stage raises an `IngestError` subclass and nothing after
  it runs. No URL is produced unless the upload succeeded.
- **No leaked scratch files**: the raw upload and the remuxed copy live in a
  `ScratchSpace` that is emptied on every exit path.
- **Blocking**: ffprobe/ffmpeg run synchronously (bounded by their deadlines).
  Async callers must hop to a worker thread.
"""

import logging
import shutil
from dataclasses import dataclass
from typing import BinaryIO, Iterable, Optional

from tubely.core.config import settings
from tubely.core.exceptions import ValidationError
from tubely.media.probe import AspectClass, AspectInspector
from tubely.media.remux import FFmpegRemuxer, MediaRemuxer, processed_path_for
from tubely.services.keys import apply_orientation, derive_key, media_type_to_ext
from tubely.services.scratch import ScratchSpace
from tubely.services.urls import URLResolver
from tubely.utils.storage import BlobStore, build_blob_store

logger = logging.getLogger(__name__)

COPY_CHUNK_BYTES = 1024 * 1024


@dataclass(frozen=True)
class IngestResult:
    video_url: str
    bucket: str
    key: str
    content_type: str
    aspect: Optional[AspectClass] = None


def normalize_media_type(declared: Optional[str], allowed: Iterable[str]) -> str:
    """
    Bare, lower-cased `type/subtype` of a declared Content-Type.

    Raises `ValidationError` when it is missing, malformed, or not allowed.
    """
    media_type = (declared or "").split(";", 1)[0].strip().lower()
    if not media_type:
        raise ValidationError("Missing media type")
    main, sep, sub = media_type.partition("/")
    if not sep or not main or not sub or "/" in sub:
        raise ValidationError(f"Malformed media type: {declared!r}")
    accepted = [a.lower() for a in allowed]
    if media_type not in accepted:
        raise ValidationError(f"Unsupported media type {media_type!r}; expected one of {', '.join(accepted)}")
    return media_type


class StorageBackedService:
    """Blob store shared with the URL resolver, built on first use."""

    def __init__(self, store: Optional[BlobStore], resolver: Optional[URLResolver]) -> None:
        self._store = store
        self._borrow_from_resolver = resolver is not None and store is None
        self.resolver = resolver or URLResolver(self._get_store)

    def _get_store(self) -> BlobStore:
        if self._store is None:
            self._store = self.resolver.store if self._borrow_from_resolver else build_blob_store()
        return self._store

    @property
    def store(self) -> BlobStore:
        return self._get_store()


class VideoIngestPipeline(StorageBackedService):
    def __init__(
        self,
        *,
        inspector: Optional[AspectInspector] = None,
        remuxer: Optional[MediaRemuxer] = None,
        store: Optional[BlobStore] = None,
        resolver: Optional[URLResolver] = None,
        allowed_types: Optional[Iterable[str]] = None,
        scratch_dir: Optional[str] = None,
    ) -> None:
        super().__init__(store, resolver)
        self.inspector = inspector or AspectInspector()
        self.remuxer = remuxer or FFmpegRemuxer()
        self.allowed_types = list(allowed_types or settings.allowed_video_types_list)
        self.scratch_dir = scratch_dir

    def ingest(self, owner_id, video_id, declared_media_type: Optional[str], stream: BinaryIO) -> IngestResult:
        media_type = normalize_media_type(declared_media_type, self.allowed_types)
        logger.info("Ingesting video %s for owner %s (%s)", video_id, owner_id, media_type)

        with ScratchSpace(self.scratch_dir) as scratch:
            raw_path = scratch.new_file(suffix=media_type_to_ext(media_type))
            with open(raw_path, "wb") as fh:
                shutil.copyfileobj(stream, fh, COPY_CHUNK_BYTES)

            aspect = self.inspector.classify(raw_path)

            scratch.reserve(processed_path_for(raw_path))
            processed_path = scratch.reserve(self.remuxer.remux(raw_path))

            key = apply_orientation(derive_key(media_type), aspect)
            bucket = self.store.bucket
            with open(processed_path, "rb") as fh:
                self.store.upload_stream(key, fh, content_type=media_type, bucket=bucket)

            video_url = self.resolver.publish(bucket, key)

        logger.info("Ingested video %s -> %s,%s", video_id, bucket, key)
        return IngestResult(video_url=video_url, bucket=bucket, key=key, content_type=media_type, aspect=aspect)


__all__ = ["IngestResult", "VideoIngestPipeline", "normalize_media_type"]
