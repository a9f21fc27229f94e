# tubely/services/scratch.py
from __future__ import annotations

"""
Scratch files for one pipeline invocation.

    with ScratchSpace() as scratch:
        raw = scratch.new_file(suffix=".mp4")
        out = scratch.reserve(raw + ".processing")
        ...
    # every tracked path is gone here, whatever happened inside

Nothing is shared between invocations; each `ScratchSpace` owns its files.
"""

import logging
import os
import tempfile
from typing import List, Optional

from tubely.core.config import settings

logger = logging.getLogger(__name__)

SCRATCH_PREFIX = "tubely-upload-"


class ScratchSpace:
    def __init__(self, directory: Optional[str] = None) -> None:
        self.directory = directory or settings.SCRATCH_DIR or None
        self._paths: List[str] = []

    @property
    def paths(self) -> List[str]:
        return list(self._paths)

    def new_file(self, suffix: str = "") -> str:
        """Create an empty, uniquely named file and track it for removal."""
        fd, path = tempfile.mkstemp(prefix=SCRATCH_PREFIX, suffix=suffix, dir=self.directory)
        os.close(fd)
        self._paths.append(path)
        return path

    def reserve(self, path: str) -> str:
        """Track a path some external tool is about to create."""
        if path not in self._paths:
            self._paths.append(path)
        return path

    def cleanup(self) -> None:
        while self._paths:
            path = self._paths.pop()
            try:
                os.remove(path)
            except FileNotFoundError:
                pass
            except OSError:
                # Never mask the error that unwound the pipeline.
                logger.exception("Failed to remove scratch file %s", path)

    def __enter__(self) -> "ScratchSpace":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.cleanup()
