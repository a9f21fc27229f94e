# tubely/services/thumbnails.py
from __future__ import annotations

"""
Thumbnail publishing.

Thumbnails go to the object store like videos (no probe, no remux) under
`thumbnails/{random_id}{ext}`. The returned `IngestResult.video_url` is the
value the caller stores in `thumbnail_url`; nothing is kept in process memory.
"""

import logging
from typing import BinaryIO, Iterable, Optional

from tubely.core.config import settings
from tubely.services.ingest import IngestResult, StorageBackedService, normalize_media_type
from tubely.services.keys import derive_key, prefixed_key
from tubely.services.urls import URLResolver
from tubely.utils.storage import BlobStore

logger = logging.getLogger(__name__)

THUMBNAIL_PREFIX = "thumbnails"


class ThumbnailPublisher(StorageBackedService):
    def __init__(
        self,
        *,
        store: Optional[BlobStore] = None,
        resolver: Optional[URLResolver] = None,
        allowed_types: Optional[Iterable[str]] = None,
    ) -> None:
        super().__init__(store, resolver)
        self.allowed_types = list(allowed_types or settings.allowed_thumbnail_types_list)

    def publish(self, video_id, declared_media_type: Optional[str], stream: BinaryIO) -> IngestResult:
        media_type = normalize_media_type(declared_media_type, self.allowed_types)
        key = prefixed_key(THUMBNAIL_PREFIX, derive_key(media_type))
        bucket = self.store.bucket
        self.store.upload_stream(key, stream, content_type=media_type, bucket=bucket)
        logger.info("Stored thumbnail for video %s at %s,%s", video_id, bucket, key)
        return IngestResult(
            video_url=self.resolver.publish(bucket, key),
            bucket=bucket,
            key=key,
            content_type=media_type,
        )
