# tubely/media/remux.py
from __future__ import annotations

"""
Tubely • Remuxer
================

Rewrites a video container with **ffmpeg** so the `moov` atom sits in front of
the media data ("faststart"), letting players begin before the download ends.

    ffmpeg -y -i <in> -c copy -movflags faststart -f mp4 <in>.processing

Streams are copied verbatim; nothing is re-encoded. The output is a *second*
scratch file that the caller owns and must delete.
"""

import logging
import os
from typing import Optional

from tubely.core.config import settings
from tubely.core.exceptions import RemuxError
from tubely.media.process import ToolLaunchError, ToolNotFoundError, ToolTimeoutError, run_tool

logger = logging.getLogger(__name__)

PROCESSED_SUFFIX = ".processing"
EXIT_NOT_EXECUTABLE = 126
EXIT_NOT_FOUND = 127
EXIT_KILLED = -9


def processed_path_for(path: str) -> str:
    return f"{path}{PROCESSED_SUFFIX}"


class MediaRemuxer:
    """Rewrites `path` for progressive playback; returns the new file's path."""

    def remux(self, path: str) -> str:
        raise NotImplementedError


class FFmpegRemuxer(MediaRemuxer):
    def __init__(self, binary: Optional[str] = None, *, timeout: Optional[float] = None) -> None:
        self.binary = binary or settings.FFMPEG_BIN
        self.timeout = timeout or settings.REMUX_TIMEOUT_SECONDS

    def remux(self, path: str) -> str:
        if not os.path.isfile(path):
            raise RemuxError(EXIT_NOT_FOUND, "", message=f"input file does not exist: {path}")

        out_path = processed_path_for(path)
        cmd = [
            self.binary, "-y",
            "-i", path,
            "-c", "copy",
            "-movflags", "faststart",
            "-f", "mp4", out_path,
        ]
        try:
            result = run_tool(cmd, timeout=self.timeout)
        except ToolTimeoutError as exc:
            raise RemuxError(EXIT_KILLED, exc.stderr, message=str(exc)) from exc
        except ToolNotFoundError as exc:
            raise RemuxError(EXIT_NOT_FOUND, "", message=str(exc)) from exc
        except ToolLaunchError as exc:
            raise RemuxError(EXIT_NOT_EXECUTABLE, "", message=str(exc)) from exc

        if result.returncode != 0:
            raise RemuxError(result.returncode, result.stderr)

        logger.info("Remuxed %s for faststart -> %s", path, out_path)
        return out_path


__all__ = ["MediaRemuxer", "FFmpegRemuxer", "processed_path_for", "PROCESSED_SUFFIX"]
