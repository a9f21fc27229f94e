# tubely/utils/aws.py
from __future__ import annotations

"""
🧊 Tubely • S3 Utilities
========================

Thin S3 wrapper used by:
- Video ingest (streamed server-side upload of the remuxed file)
- Thumbnail publishing
- URL resolution (short-lived signed GET, CDN/S3 public URL building)

🔗 Contract
-----------
- Class: `S3Client`
- Methods: `S3Client.upload_stream(...)`
           `S3Client.presigned_get(...)`
           `S3Client.object_url(...)`
           `S3Client.cdn_url(...)`
- Every storage failure surfaces as `tubely.core.exceptions.StorageError`.

Implementation notes
--------------------
- Uploads go through boto3's managed transfer (`upload_fileobj`), which reads
  the file object in parts; large videos are never held in memory.
- Presigning is a local SigV4 computation; it still fails loudly (StorageError)
  when credentials cannot be resolved.
"""

from typing import Any, BinaryIO, Dict, Optional
from urllib.parse import quote
import logging
import re

import boto3
from botocore.config import Config as BotoConfig

from tubely.core.config import settings
from tubely.core.exceptions import StorageError

logger = logging.getLogger(__name__)


# ─────────────────────────────────────────────────────────────────────────────
# 🧰 Key validation
# ─────────────────────────────────────────────────────────────────────────────

# Write path only: keys we mint stay readable + safe across tools, CDNs and
# logs. No commas, since keys travel inside `bucket,key` references.
_KEY_ALLOWED_RE = re.compile(r"[A-Za-z0-9._\-/+=@() ]+")


def normalize_key(key: str) -> str:
    """
    Normalize and validate a key before anything is written under it.

    Steps
    -----
    1) Coerce to str, strip whitespace
    2) Remove leading '/'
    3) Collapse '//' runs
    4) Reject path traversal ('..') and disallowed characters

    Raises
    ------
    StorageError
        If key is empty or contains unsafe characters.
    """
    k = str(key or "").strip().lstrip("/")
    k = re.sub(r"/{2,}", "/", k)
    if not k:
        raise StorageError("Invalid storage key: empty")
    if ".." in k:
        raise StorageError("Invalid storage key: path traversal detected")
    if not _KEY_ALLOWED_RE.fullmatch(k):
        raise StorageError("Invalid storage key: contains forbidden characters")
    return k


def stored_key(key: str) -> str:
    """
    Key exactly as persisted, for the read path.

    Objects are addressed by the bytes they were stored under, so nothing is
    rewritten here; only an empty key is refused.
    """
    k = str(key or "")
    if not k:
        raise StorageError("Invalid storage key: empty")
    return k


def _secret_value(v: Any) -> Optional[str]:
    if v is None:
        return None
    return v.get_secret_value() if hasattr(v, "get_secret_value") else str(v)


# ─────────────────────────────────────────────────────────────────────────────
# 📦 S3 Client
# ─────────────────────────────────────────────────────────────────────────────

class S3Client:
    """
    High-level S3 wrapper with safe defaults.

    Parameters
    ----------
    bucket : str | None
        Default bucket. Defaults to `settings.AWS_BUCKET_NAME`.
    region_name : str | None
        Defaults to `settings.AWS_REGION`.
    endpoint_url : str | None
        Custom S3-compatible endpoint (LocalStack/MinIO). Defaults to
        `settings.AWS_S3_ENDPOINT_URL`.
    cdn_base_url : str | None
        If set, `cdn_url()` joins this with normalized keys for public links.
        Defaults to `settings.cdn_base_url`.

    Notes
    -----
    * Credentials: explicit `AWS_ACCESS_KEY_ID` + `AWS_SECRET_ACCESS_KEY` when
      configured, otherwise the standard AWS credential chain.
    * Bounded retry policy (5 attempts) and short connect timeout.
    """

    def __init__(
        self,
        bucket: Optional[str] = None,
        *,
        region_name: Optional[str] = None,
        endpoint_url: Optional[str] = None,
        cdn_base_url: Optional[str] = None,
    ) -> None:
        self.bucket = bucket or settings.AWS_BUCKET_NAME
        if not self.bucket:
            raise StorageError("AWS_BUCKET_NAME not configured")

        self.region = region_name or settings.AWS_REGION or "us-east-1"
        self.endpoint_url = (endpoint_url or settings.AWS_S3_ENDPOINT_URL or "").rstrip("/") or None
        self._cdn_base = (cdn_base_url if cdn_base_url is not None else settings.cdn_base_url).rstrip("/")

        cfg = BotoConfig(
            signature_version="s3v4",
            retries={"max_attempts": 5, "mode": "standard"},
            connect_timeout=3,
            read_timeout=60,
            s3={"addressing_style": "path" if self.endpoint_url else "virtual"},
        )

        client_kwargs: Dict[str, Any] = {"config": cfg, "region_name": self.region}
        if self.endpoint_url:
            client_kwargs["endpoint_url"] = self.endpoint_url

        ak = settings.AWS_ACCESS_KEY_ID
        sk = _secret_value(settings.AWS_SECRET_ACCESS_KEY)
        st = _secret_value(settings.AWS_SESSION_TOKEN)
        if ak and sk:
            client_kwargs["aws_access_key_id"] = ak
            client_kwargs["aws_secret_access_key"] = sk
            if st:
                client_kwargs["aws_session_token"] = st

        try:
            self.client = boto3.client("s3", **client_kwargs)
        except Exception as e:  # pragma: no cover
            raise StorageError(f"Failed to create S3 client: {e}") from e

        self._repr = f"S3Client(bucket={self.bucket}, region={self.region}, endpoint={'yes' if self.endpoint_url else 'no'})"

    # ────────────────────────────────────────────────────────────────────────
    # 🚀 Uploads
    # ────────────────────────────────────────────────────────────────────────

    def upload_stream(
        self,
        key: str,
        body: BinaryIO,
        *,
        content_type: str,
        bucket: Optional[str] = None,
    ) -> None:
        """
        Stream a readable binary file object to `bucket/key`.

        Large bodies are sent as a multipart upload by the transfer manager;
        memory use stays bounded by the part size.

        Raises
        ------
        StorageError
            On any transport, permission or validation failure.
        """
        k = normalize_key(key)
        target = bucket or self.bucket
        extra: Dict[str, Any] = {"ContentType": content_type}

        try:
            self.client.upload_fileobj(Fileobj=body, Bucket=target, Key=k, ExtraArgs=extra)
        except Exception as e:
            raise StorageError(f"Failed to upload object s3://{target}/{k}: {e}") from e
        logger.info("Uploaded s3://%s/%s (%s)", target, k, content_type)

    # ────────────────────────────────────────────────────────────────────────
    # 🔐 Signed URL helpers
    # ────────────────────────────────────────────────────────────────────────

    def presigned_get(
        self,
        key: str,
        *,
        bucket: Optional[str] = None,
        expires_in: int = 3600,
    ) -> str:
        """
        Generate a time-limited **presigned GET** URL.

        Parameters
        ----------
        key : str
            Object key, used exactly as stored.
        bucket : str | None
            Bucket holding the object; defaults to the client's bucket.
        expires_in : int
            TTL seconds (default 3600s = 1h).
        """
        k = stored_key(key)
        params: Dict[str, Any] = {"Bucket": bucket or self.bucket, "Key": k}
        try:
            return self.client.generate_presigned_url(
                ClientMethod="get_object",
                Params=params,
                ExpiresIn=int(expires_in),
            )
        except Exception as e:
            raise StorageError(f"Failed to create presigned GET: {e}") from e

    # ────────────────────────────────────────────────────────────────────────
    # 🌐 Public URL helpers
    # ────────────────────────────────────────────────────────────────────────

    def cdn_url(self, key: str) -> Optional[str]:
        """CDN URL for a stored key, or None when no CDN base is configured."""
        if not self._cdn_base:
            return None
        return f"{self._cdn_base}/{quote(stored_key(key), safe='/')}"

    def object_url(self, key: str, *, bucket: Optional[str] = None) -> str:
        """
        Build a direct S3 HTTPS URL (non-signed). Private objects will still
        require auth at fetch time.

        For custom endpoints, uses the configured endpoint host.
        """
        k = quote(stored_key(key), safe="/")
        b = bucket or self.bucket
        if self.endpoint_url:
            return f"{self.endpoint_url}/{b}/{k}"
        return f"https://{b}.s3.{self.region}.amazonaws.com/{k}"

    def public_url(self, key: str, *, bucket: Optional[str] = None) -> str:
        """CDN URL when configured for the default bucket, else the S3 object URL."""
        if not bucket or bucket == self.bucket:
            cdn = self.cdn_url(key)
            if cdn:
                return cdn
        return self.object_url(key, bucket=bucket)

    def __repr__(self) -> str:  # pragma: no cover
        return self._repr


__all__ = ["S3Client"]
