# tubely/core/exceptions.py
from __future__ import annotations

"""
Tubely — Application Exceptions
===============================
Two families live here:

1) **HTTP-level** errors (`AppException` and friends): a thin layer on top of
   FastAPI's `HTTPException` that carries structured metadata for the
   problem+json handlers in `tubely.core.exception_handlers`.

2) **Ingest pipeline** errors (`IngestError` and subclasses): raised by the
   media/storage stages. They know nothing about HTTP; the boundary maps each
   kind to a status code via `IngestError.status_code`.

Pipeline taxonomy
-----------------
- `ValidationError`      unsupported / mismatched declared media type
- `ProbeError`           ffprobe failed, produced garbage, or found no streams
- `RemuxError`           ffmpeg exited non-zero (carries exit code + stderr)
- `StorageError`         object-store put / presign failure
- `ReferenceFormatError` malformed `bucket,key` reference (resolver passes
                         the value through instead of surfacing this)
"""

from typing import Any, Dict, Optional

from fastapi import HTTPException, status

__all__ = [
    "AppException",
    "NotVideoOwnerException",
    "InvalidTokenException",
    "VideoNotFoundException",
    "UploadTooLargeException",
    "IngestError",
    "ValidationError",
    "ProbeError",
    "RemuxError",
    "StorageError",
    "ReferenceFormatError",
]


# ──────────────────────────────────────────────────────────────
# 📦 Core: AppException
# ──────────────────────────────────────────────────────────────
class AppException(HTTPException):
    """Base application-level exception with optional metadata.

    Attributes
    -----------
    status_code : int
        HTTP status code (e.g., 400/401/403/404/413/500).
    message : str
        Human-readable error message (serialized as `detail` as well).
    code : int
        Optional internal/typed error code. Defaults to `status_code`.
    details : dict | list | str | None
        Machine-readable details (ids, limits, constraints).
    headers : dict | None
        Optional headers (e.g., `{"WWW-Authenticate": "Bearer"}`).
    """

    def __init__(
        self,
        *,
        status_code: int,
        message: str,
        code: Optional[int] = None,
        user_id: Optional[str] = None,
        details: Optional[Any] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> None:
        super().__init__(status_code=status_code, detail=message, headers=headers)
        self.code: int = int(code or status_code)
        self.message: str = message
        self.user_id: Optional[str] = user_id
        self.details: Optional[Any] = details


# ──────────────────────────────────────────────────────────────
# 🔐 Auth / ownership
# ──────────────────────────────────────────────────────────────
class InvalidTokenException(AppException):
    """Raised for missing, invalid or expired bearer tokens (401)."""

    def __init__(self, *, detail: str = "Invalid or expired token") -> None:
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            message=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )


class NotVideoOwnerException(AppException):
    """Raised when the caller tries to modify someone else's video."""

    def __init__(self, *, video_id: str, user_id: Optional[str] = None) -> None:
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            message="Not authorized to access this video",
            user_id=user_id,
            details={"video_id": video_id},
        )


# ──────────────────────────────────────────────────────────────
# 📼 Video resources
# ──────────────────────────────────────────────────────────────
class VideoNotFoundException(AppException):
    def __init__(self, *, video_id: str) -> None:
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            message="Video not found",
            details={"video_id": video_id},
        )


class UploadTooLargeException(AppException):
    def __init__(self, *, limit: int) -> None:
        super().__init__(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            message=f"Upload exceeds {limit} bytes",
            details={"max_bytes": limit},
        )


# ──────────────────────────────────────────────────────────────
# 🎞️ Ingest pipeline errors
# ──────────────────────────────────────────────────────────────
class IngestError(RuntimeError):
    """Base class for every pipeline stage failure."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    title: str = "Ingest failed"

    def details(self) -> Dict[str, Any]:
        """Extra diagnostic fields surfaced to the client (never secrets)."""
        return {}


class ValidationError(IngestError):
    """The declared media type is missing, malformed or not accepted."""

    status_code = status.HTTP_400_BAD_REQUEST
    title = "Invalid upload"


class ProbeError(IngestError):
    """ffprobe could not read usable stream geometry from the file."""

    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    title = "Unreadable video"

    def __init__(self, message: str, *, stderr: str = "") -> None:
        super().__init__(message)
        self.stderr = stderr

    def details(self) -> Dict[str, Any]:
        return {"stderr": self.stderr} if self.stderr else {}


class RemuxError(IngestError):
    """ffmpeg failed to rewrite the container."""

    title = "Remux failed"

    def __init__(self, exit_code: int, stderr: str, message: Optional[str] = None) -> None:
        super().__init__(message or f"ffmpeg exited with status {exit_code}")
        self.exit_code = exit_code
        self.stderr = stderr

    def details(self) -> Dict[str, Any]:
        return {"exit_code": self.exit_code, "stderr": self.stderr}


class StorageError(IngestError):
    """Raised when a storage operation fails (network, auth, policy, etc.)."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    title = "Storage unavailable"


class ReferenceFormatError(IngestError):
    """A persisted video URL field is not a `bucket,key` composite."""

    def __init__(self, value: Optional[str], reason: str) -> None:
        super().__init__(f"Not a composite storage reference ({reason})")
        self.value = value
