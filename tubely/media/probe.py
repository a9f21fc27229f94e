# tubely/media/probe.py
from __future__ import annotations

"""
Tubely • Aspect Inspector
=========================

Reads a video's stream geometry with **ffprobe** and classifies orientation.

Classification
--------------
`ratio = width / height` of the first video stream:

- `ratio > 1`  → `AspectClass.LANDSCAPE` (16:9 bucket)
- `ratio < 1`  → `AspectClass.PORTRAIT`  (9:16 bucket)
- `ratio == 1` → `AspectClass.OTHER`

The older exact-ratio test (`width == 16 * height / 9`) is deprecated: it
misfiled any non-standard resolution as "other".

Failure policy
--------------
Anything that prevents a confident answer raises `ProbeError`. There is no
default orientation; the pipeline aborts.
"""

import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Optional

from tubely.core.config import settings
from tubely.core.exceptions import ProbeError
from tubely.media.process import ToolLaunchError, ToolTimeoutError, run_tool

logger = logging.getLogger(__name__)


class AspectClass(str, Enum):
    LANDSCAPE = "landscape"
    PORTRAIT = "portrait"
    OTHER = "other"

    @property
    def prefix(self) -> str:
        """Storage path segment grouping objects by orientation."""
        return f"{self.value}/"

    @property
    def ratio_label(self) -> str:
        return {"landscape": "16:9", "portrait": "9:16"}.get(self.value, "other")


@dataclass(frozen=True)
class StreamInfo:
    width: int
    height: int
    codec_type: Optional[str] = None


# ─────────────────────────────────────────────────────────────────────────────
# 🔌 Capability: who actually looks at the file
# ─────────────────────────────────────────────────────────────────────────────
class MediaProbe:
    """Returns the stream descriptors of a local media file."""

    def probe(self, path: str) -> List[StreamInfo]:
        raise NotImplementedError


def parse_probe_output(raw: str) -> List[StreamInfo]:
    """Parse `ffprobe -print_format json -show_streams` output."""
    try:
        data: Any = json.loads(raw or "")
    except ValueError as exc:
        raise ProbeError(f"ffprobe produced unparsable output: {exc}") from exc
    if not isinstance(data, dict):
        raise ProbeError("ffprobe output is not a JSON object")

    streams = data.get("streams") or []
    if not isinstance(streams, list):
        raise ProbeError("ffprobe output has a malformed 'streams' field")

    out: List[StreamInfo] = []
    for s in streams:
        if not isinstance(s, dict):
            continue
        try:
            width = int(s.get("width") or 0)
            height = int(s.get("height") or 0)
        except (TypeError, ValueError):
            width, height = 0, 0
        out.append(StreamInfo(width=width, height=height, codec_type=s.get("codec_type")))
    return out


class FFprobe(MediaProbe):
    """`MediaProbe` backed by the ffprobe binary."""

    def __init__(self, binary: Optional[str] = None, *, timeout: Optional[float] = None) -> None:
        self.binary = binary or settings.FFPROBE_BIN
        self.timeout = timeout or settings.PROBE_TIMEOUT_SECONDS

    def probe(self, path: str) -> List[StreamInfo]:
        cmd = [self.binary, "-v", "error", "-print_format", "json", "-show_streams", str(path)]
        try:
            result = run_tool(cmd, timeout=self.timeout)
        except ToolTimeoutError as exc:
            raise ProbeError(str(exc), stderr=exc.stderr) from exc
        except ToolLaunchError as exc:
            raise ProbeError(str(exc)) from exc

        if result.returncode != 0:
            raise ProbeError(f"ffprobe exited with status {result.returncode}", stderr=result.stderr)
        return parse_probe_output(result.stdout)


# ─────────────────────────────────────────────────────────────────────────────
# 📐 Classification
# ─────────────────────────────────────────────────────────────────────────────
def classify_dimensions(width: int, height: int) -> AspectClass:
    if width <= 0 or height <= 0:
        raise ProbeError(f"invalid stream geometry {width}x{height}")
    ratio = width / height
    if ratio > 1:
        return AspectClass.LANDSCAPE
    if ratio < 1:
        return AspectClass.PORTRAIT
    return AspectClass.OTHER


def first_video_stream(streams: List[StreamInfo]) -> StreamInfo:
    """First stream typed `video`; the first stream at all when none is typed."""
    if not streams:
        raise ProbeError("no streams found in ffprobe output")
    for s in streams:
        if s.codec_type == "video":
            return s
    if any(s.codec_type for s in streams):
        raise ProbeError("no video stream found in ffprobe output")
    return streams[0]


class AspectInspector:
    def __init__(self, probe: Optional[MediaProbe] = None) -> None:
        self.probe = probe or FFprobe()

    def classify(self, path: str) -> AspectClass:
        stream = first_video_stream(self.probe.probe(path))
        aspect = classify_dimensions(stream.width, stream.height)
        logger.info("Classified %s as %s [%s] (%dx%d)", path, aspect.value, aspect.ratio_label, stream.width, stream.height)
        return aspect


__all__ = [
    "AspectClass",
    "StreamInfo",
    "MediaProbe",
    "FFprobe",
    "AspectInspector",
    "parse_probe_output",
    "classify_dimensions",
    "first_video_stream",
]
