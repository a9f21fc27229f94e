from __future__ import annotations

"""
Tubely • Video Schemas
======================

API shapes for video metadata. `video_url` / `thumbnail_url` in `VideoOut` are
always *resolved* values (public or freshly signed URLs), never the stored
`bucket,key` composite.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field


class VideoCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field("", max_length=5000)


class VideoOut(BaseModel):
    id: UUID
    user_id: UUID
    title: str
    description: str = ""
    thumbnail_url: Optional[str] = None
    video_url: Optional[str] = None
    created_at: datetime
    updated_at: datetime
