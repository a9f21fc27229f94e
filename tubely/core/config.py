# tubely/core/config.py
from __future__ import annotations

"""
# Tubely — Centralized Configuration (Pydantic v2)

Single `settings` object with strongly-typed, environment-driven config.

## Goals
- Safe defaults for local/dev; explicit where prod needs secrets.
- Robust URL normalization and CSV → list helpers.
- Storage access mode (static vs. signed URLs) is a deployment decision,
  never a per-request one.
- Bounded external-tool runtimes (ffprobe/ffmpeg deadlines).

## Usage
    from tubely.core.config import settings
"""

import logging
from typing import List, Literal, Optional

from dotenv import load_dotenv
from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

log = logging.getLogger(__name__)
load_dotenv()  # harmless in prod; convenient in dev


# ─────────────────────────────────────────────────────────────
# Small helpers
# ─────────────────────────────────────────────────────────────
def _split_csv(v: str | None) -> list[str]:
    """Split a comma-separated string into a trimmed list (empty-safe)."""
    if not v:
        return []
    return [s.strip() for s in str(v).split(",") if s and s.strip()]


def _normalize_url_like(v: str | None, *, require_scheme: bool = True) -> str:
    """Normalize to a string URL without trailing slash."""
    s = (v or "").strip()
    if not s:
        return ""
    if require_scheme and not (s.startswith("http://") or s.startswith("https://")):
        s = "https://" + s
    return s.rstrip("/")


# ─────────────────────────────────────────────────────────────
# Settings
# ─────────────────────────────────────────────────────────────
class Settings(BaseSettings):
    """
    Global application settings sourced from environment.

    Storage:
        - `STORAGE_ACCESS_MODE="static"` persists public URLs (bucket/region or
          CloudFront based).
        - `STORAGE_ACCESS_MODE="signed"` persists `bucket,key` references and
          mints presigned GET URLs on every read.

    Media tools:
        - `FFPROBE_BIN` / `FFMPEG_BIN` may be absolute paths or names on PATH.
        - Timeouts kill the whole tool process group on expiry.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # don't crash on unknown keys
    )

    # ── App meta ──────────────────────────────────────────────
    PROJECT_NAME: str = "Tubely API"
    VERSION: str = "1.0.0"
    API_V1_STR: str = "/api/v1"
    ENV: Literal["development", "staging", "production"] = "development"
    ENABLE_DOCS: bool = True

    # ── Security / JWT ────────────────────────────────────────
    JWT_SECRET_KEY: SecretStr = Field(...)
    JWT_ALGORITHM: Literal["HS256", "HS384", "HS512"] = "HS256"

    # ── Object storage ────────────────────────────────────────
    AWS_ACCESS_KEY_ID: Optional[str] = None
    AWS_SECRET_ACCESS_KEY: Optional[SecretStr] = None
    AWS_SESSION_TOKEN: Optional[SecretStr] = None
    AWS_REGION: str = "us-east-1"
    AWS_BUCKET_NAME: Optional[str] = None
    AWS_S3_ENDPOINT_URL: Optional[str] = None  # LocalStack / MinIO
    CLOUDFRONT_DOMAIN: Optional[str] = None  # e.g., cdn.example.com or https://cdn.example.com
    STORAGE_ACCESS_MODE: Literal["static", "signed"] = "signed"
    STORAGE_BACKEND: Literal["s3", "local"] = "s3"
    ASSETS_ROOT: str = "assets"  # local backend: directory served at /assets
    ASSETS_BASE_URL: str = ""  # local backend: e.g. http://localhost:8091 (empty = relative URLs)

    # ── Media tools ───────────────────────────────────────────
    FFPROBE_BIN: str = "ffprobe"
    FFMPEG_BIN: str = "ffmpeg"
    PROBE_TIMEOUT_SECONDS: int = Field(30, ge=1, le=600)
    REMUX_TIMEOUT_SECONDS: int = Field(600, ge=1, le=6 * 60 * 60)
    SCRATCH_DIR: Optional[str] = None  # defaults to the system temp dir

    # ── Upload policy ─────────────────────────────────────────
    MAX_VIDEO_UPLOAD_BYTES: int = Field(1 << 30, ge=1)
    MAX_THUMBNAIL_UPLOAD_BYTES: int = Field(10 << 20, ge=1)
    ALLOWED_VIDEO_TYPES: str = "video/mp4"  # CSV
    ALLOWED_THUMBNAIL_TYPES: str = "image/jpeg,image/png"  # CSV

    # ── Validators / normalizers ──────────────────────────────
    @field_validator("CLOUDFRONT_DOMAIN", mode="before")
    @classmethod
    def _normalize_cdn_domain(cls, v: str | None) -> str | None:
        """
        Accepts either 'cdn.example.com' or 'https://cdn.example.com' and
        normalizes to 'https://cdn.example.com' (no trailing slash).
        """
        s = (v or "").strip()
        if not s:
            return None
        return _normalize_url_like(s, require_scheme=not (s.startswith("http://") or s.startswith("https://")))

    @field_validator("ASSETS_BASE_URL", mode="before")
    @classmethod
    def _normalize_assets_base(cls, v: str | None) -> str:
        return (v or "").strip().rstrip("/")

    @field_validator("AWS_S3_ENDPOINT_URL", mode="before")
    @classmethod
    def _normalize_endpoint(cls, v: str | None) -> str | None:
        s = (v or "").strip()
        return s.rstrip("/") or None

    @field_validator("ALLOWED_VIDEO_TYPES", "ALLOWED_THUMBNAIL_TYPES", mode="before")
    @classmethod
    def _normalize_type_csv(cls, v):
        return ",".join(t.lower() for t in _split_csv(str(v or "")))

    # ── Derived / convenience properties ─────────────────────
    @property
    def is_production(self) -> bool:
        return self.ENV.lower() == "production"

    @property
    def cdn_base_url(self) -> str:
        """
        CloudFront base URL normalized to a full https URL without trailing slash.
        Examples:
          'cdn.example.com'             -> 'https://cdn.example.com'
          'https://cdn.example.com'     -> 'https://cdn.example.com'
        """
        d = (self.CLOUDFRONT_DOMAIN or "").strip().rstrip("/")
        if not d:
            return ""
        return d if d.startswith(("http://", "https://")) else f"https://{d}"

    @property
    def allowed_video_types_list(self) -> List[str]:
        return _split_csv(self.ALLOWED_VIDEO_TYPES)

    @property
    def allowed_thumbnail_types_list(self) -> List[str]:
        return _split_csv(self.ALLOWED_THUMBNAIL_TYPES)


# Singleton instance
settings = Settings()
