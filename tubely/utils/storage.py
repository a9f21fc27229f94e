# tubely/utils/storage.py
from __future__ import annotations

"""
🗄️ Tubely • Blob stores
=======================

The pipeline only needs a key/value blob store:

- `upload_stream(key, body, content_type=...)`  write an object
- `presigned_get(key, bucket=..., expires_in=...)` time-limited read URL
- `public_url(key, bucket=...)`                   unsigned read URL
- `bucket`                                       name recorded in composites

Backends (`STORAGE_BACKEND`)
----------------------------
- `s3`     `tubely.utils.aws.S3Client`
- `local`  `LocalAssetStore`: files under `ASSETS_ROOT`, served by the app at
           `/assets/{key}`. Nothing is signed; `presigned_get` returns the
           public URL because the static mount has no access control.
"""

import logging
import os
import shutil
import tempfile
from typing import BinaryIO, Optional
from urllib.parse import quote

from tubely.core.config import settings
from tubely.core.exceptions import StorageError
from tubely.utils.aws import S3Client, normalize_key, stored_key

logger = logging.getLogger(__name__)

ASSETS_MOUNT = "/assets"
LOCAL_BUCKET = "local"


class BlobStore:
    """
    Storage capability consumed by the ingest services and the resolver.

    `S3Client` satisfies it structurally.
    """

    bucket: str

    def upload_stream(self, key: str, body: BinaryIO, *, content_type: str, bucket: Optional[str] = None) -> None:
        raise NotImplementedError

    def presigned_get(self, key: str, *, bucket: Optional[str] = None, expires_in: int = 3600) -> str:
        raise NotImplementedError

    def public_url(self, key: str, *, bucket: Optional[str] = None) -> str:
        raise NotImplementedError


class LocalAssetStore(BlobStore):
    """
    Objects as plain files below `root`.

    Writes land in a temp file next to the target and are renamed into place,
    so a reader never sees a half-written asset.
    """

    def __init__(self, root: Optional[str] = None, *, base_url: Optional[str] = None) -> None:
        self.root = os.path.abspath(root or settings.ASSETS_ROOT)
        self.base_url = (base_url if base_url is not None else settings.ASSETS_BASE_URL).rstrip("/")
        self.bucket = LOCAL_BUCKET

    def ensure_root(self) -> str:
        try:
            os.makedirs(self.root, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Failed to create assets directory {self.root}: {e}") from e
        return self.root

    def _check_bucket(self, bucket: Optional[str]) -> None:
        if bucket and bucket != self.bucket:
            raise StorageError(f"Unknown bucket for local assets: {bucket!r}")

    def disk_path(self, key: str) -> str:
        path = os.path.abspath(os.path.join(self.root, key))
        if os.path.commonpath([self.root, path]) != self.root:
            raise StorageError("Invalid storage key: escapes the assets directory")
        return path

    def upload_stream(self, key: str, body: BinaryIO, *, content_type: str, bucket: Optional[str] = None) -> None:
        self._check_bucket(bucket)
        k = normalize_key(key)
        target = self.disk_path(k)
        tmp_path = None
        try:
            os.makedirs(os.path.dirname(target), exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(prefix=".upload-", dir=os.path.dirname(target))
            with os.fdopen(fd, "wb") as fh:
                shutil.copyfileobj(body, fh, 1024 * 1024)
            os.replace(tmp_path, target)
            tmp_path = None
        except OSError as e:
            raise StorageError(f"Failed to write asset {k}: {e}") from e
        finally:
            if tmp_path is not None:
                try:
                    os.remove(tmp_path)
                except OSError:
                    logger.exception("Failed to remove partial asset %s", tmp_path)
        logger.info("Stored asset %s (%s)", target, content_type)

    def presigned_get(self, key: str, *, bucket: Optional[str] = None, expires_in: int = 3600) -> str:
        return self.public_url(key, bucket=bucket)

    def public_url(self, key: str, *, bucket: Optional[str] = None) -> str:
        self._check_bucket(bucket)
        return f"{self.base_url}{ASSETS_MOUNT}/{quote(stored_key(key), safe='/')}"


def build_blob_store() -> BlobStore:
    """The store selected by `STORAGE_BACKEND`."""
    if settings.STORAGE_BACKEND == "local":
        return LocalAssetStore()
    return S3Client()


__all__ = ["ASSETS_MOUNT", "LOCAL_BUCKET", "BlobStore", "LocalAssetStore", "build_blob_store"]
