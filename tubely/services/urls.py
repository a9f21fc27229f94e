# tubely/services/urls.py
from __future__ import annotations

"""
🔗 Tubely • URL Resolver
========================

Turns stored video references into URLs an end user can fetch.

Persisted shapes (`videos.video_url`)
-------------------------------------
- **Public URL**   `https://bucket.s3.region.amazonaws.com/landscape/abc.mp4`
                   or `https://cdn.example.com/landscape/abc.mp4`
                   or `{ASSETS_BASE_URL}/assets/landscape/abc.mp4` (local store)
- **Composite**    `my-bucket,landscape/abc.mp4` (no escaping; neither part may
                   contain a comma)

Access modes (deployment config `STORAGE_ACCESS_MODE`)
------------------------------------------------------
- `static`  `publish()` stores a public URL; `resolve()` never touches the
            network (a leftover composite is rendered as its public URL).
- `signed`  `publish()` stores the composite; `resolve()` mints a fresh
            presigned GET valid for `SIGNED_URL_TTL_SECONDS` on **every** read.
            Signed URLs are never cached or persisted.

Anything that is not a well-formed composite (empty, a plain URL, zero or
several commas) is passed through unchanged.
"""

import logging
from typing import Callable, Optional, Tuple

from tubely.core.config import settings
from tubely.core.exceptions import ReferenceFormatError
from tubely.utils.storage import BlobStore, build_blob_store

logger = logging.getLogger(__name__)

SIGNED_URL_TTL_SECONDS = 3600
STATIC = "static"
SIGNED = "signed"


def make_composite(bucket: str, key: str) -> str:
    if not bucket or not key:
        raise ReferenceFormatError(f"{bucket},{key}", "empty bucket or key")
    if "," in bucket or "," in key:
        raise ReferenceFormatError(f"{bucket},{key}", "bucket and key must not contain ','")
    return f"{bucket},{key}"


def parse_composite(value: Optional[str]) -> Tuple[str, str]:
    """Split a `bucket,key` reference; raises `ReferenceFormatError` otherwise."""
    if not value:
        raise ReferenceFormatError(value, "empty")
    if value.startswith(("http://", "https://")):
        raise ReferenceFormatError(value, "already a URL")
    parts = value.split(",")
    if len(parts) != 2:
        raise ReferenceFormatError(value, f"expected 2 comma-separated parts, got {len(parts)}")
    bucket, key = parts
    if not bucket or not key:
        raise ReferenceFormatError(value, "empty bucket or key")
    return bucket, key


class URLResolver:
    """
    Parameters
    ----------
    store : BlobStore | Callable[[], BlobStore] | None
        Blob store, or a factory called on first use (default: the backend
        selected by `STORAGE_BACKEND`). Passing values through never needs
        storage configured.
    mode : "static" | "signed" | None
        Defaults to `settings.STORAGE_ACCESS_MODE`.
    """

    def __init__(self, store=None, *, mode: Optional[str] = None) -> None:
        self.mode = (mode or settings.STORAGE_ACCESS_MODE).lower()
        if self.mode not in (STATIC, SIGNED):
            raise ValueError(f"Unknown storage access mode: {self.mode!r}")
        self._store: Optional[BlobStore] = None
        self._factory: Callable[[], BlobStore] = build_blob_store
        if callable(store):
            self._factory = store
        elif store is not None:
            self._store = store

    @property
    def store(self) -> BlobStore:
        if self._store is None:
            self._store = self._factory()
        return self._store

    def publish(self, bucket: str, key: str) -> str:
        """The value to persist in `video_url` after a successful upload."""
        if self.mode == SIGNED:
            return make_composite(bucket, key)
        return self.store.public_url(key, bucket=bucket)

    def resolve(self, value: Optional[str]) -> Optional[str]:
        """Render a persisted `video_url` into something fetchable."""
        try:
            bucket, key = parse_composite(value)
        except ReferenceFormatError as e:
            logger.debug("Passing video_url through unchanged: %s", e)
            return value

        if self.mode == STATIC:
            return self.store.public_url(key, bucket=bucket)
        # Fresh signature per read; StorageError propagates to the caller.
        return self.store.presigned_get(key, bucket=bucket, expires_in=SIGNED_URL_TTL_SECONDS)


__all__ = [
    "SIGNED_URL_TTL_SECONDS",
    "URLResolver",
    "make_composite",
    "parse_composite",
]
