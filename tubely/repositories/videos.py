from __future__ import annotations

import os
import threading
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Dict, List, Optional
from uuid import UUID, uuid4


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class VideoRecord:
    id: UUID
    user_id: UUID
    title: str
    description: str = ""
    thumbnail_url: Optional[str] = None
    video_url: Optional[str] = None
    created_at: datetime = field(default_factory=_now)
    updated_at: datetime = field(default_factory=_now)


class VideoRepositoryProtocol:
    def create(self, *, user_id: UUID, title: str, description: str = "") -> VideoRecord:
        raise NotImplementedError

    def get(self, video_id: UUID) -> Optional[VideoRecord]:
        raise NotImplementedError

    def list_for_user(self, user_id: UUID) -> List[VideoRecord]:
        raise NotImplementedError

    def update_urls(
        self,
        video_id: UUID,
        *,
        video_url: Optional[str] = None,
        thumbnail_url: Optional[str] = None,
    ) -> VideoRecord:
        raise NotImplementedError


class MemoryVideoRepository(VideoRepositoryProtocol):
    """Process-local store; every read and write holds one lock."""

    def __init__(self) -> None:
        self._rows: Dict[UUID, VideoRecord] = {}
        self._lock = threading.Lock()

    def create(self, *, user_id: UUID, title: str, description: str = "") -> VideoRecord:
        row = VideoRecord(id=uuid4(), user_id=user_id, title=title, description=description)
        with self._lock:
            self._rows[row.id] = row
            return replace(row)

    def get(self, video_id: UUID) -> Optional[VideoRecord]:
        with self._lock:
            row = self._rows.get(video_id)
            return replace(row) if row else None

    def list_for_user(self, user_id: UUID) -> List[VideoRecord]:
        with self._lock:
            rows = [replace(r) for r in self._rows.values() if r.user_id == user_id]
        return sorted(rows, key=lambda r: r.created_at, reverse=True)

    def update_urls(
        self,
        video_id: UUID,
        *,
        video_url: Optional[str] = None,
        thumbnail_url: Optional[str] = None,
    ) -> VideoRecord:
        with self._lock:
            row = self._rows.get(video_id)
            if row is None:
                raise KeyError(video_id)
            if video_url is not None:
                row.video_url = video_url
            if thumbnail_url is not None:
                row.thumbnail_url = thumbnail_url
            row.updated_at = _now()
            return replace(row)


def _import_string(path: str):
    module_path, _, class_name = path.partition(":")
    if not module_path or not class_name:
        raise ValueError("VIDEO_REPOSITORY_IMPL must be 'module.sub:ClassName'")
    module = __import__(module_path, fromlist=[class_name])
    return getattr(module, class_name)


_default_repo: Optional[VideoRepositoryProtocol] = None
_default_lock = threading.Lock()


def get_video_repository() -> VideoRepositoryProtocol:
    global _default_repo
    with _default_lock:
        if _default_repo is None:
            impl_path = os.environ.get("VIDEO_REPOSITORY_IMPL")
            _default_repo = _import_string(impl_path)() if impl_path else MemoryVideoRepository()
        return _default_repo
