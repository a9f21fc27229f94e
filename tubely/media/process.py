# tubely/media/process.py
from __future__ import annotations

"""
Tubely • External tool runner
=============================

Blocking subprocess helper shared by the prober and the remuxer.

- Each tool runs in its **own session / process group** so a deadline can kill
  the tool *and* anything it spawned (`os.killpg`).
- stdout/stderr are captured as text; callers decide what a non-zero exit means.
- No shell, ever: `cmd` is an argv list.
"""

import logging
import os
import signal
import subprocess
import time
from dataclasses import dataclass
from typing import List, Sequence

logger = logging.getLogger(__name__)


class ToolError(RuntimeError):
    """Base class for runner failures that happen before a clean exit."""


class ToolLaunchError(ToolError):
    """The executable exists (or not) but the OS refused to start it."""


class ToolNotFoundError(ToolLaunchError):
    """The executable is not installed / not on PATH."""


class ToolTimeoutError(ToolError):
    """The tool outlived its deadline and its process group was killed."""

    def __init__(self, cmd: Sequence[str], timeout: float, stderr: str = "") -> None:
        super().__init__(f"{cmd[0]} timed out after {timeout:g}s")
        self.timeout = timeout
        self.stderr = stderr


@dataclass(frozen=True)
class ToolResult:
    returncode: int
    stdout: str
    stderr: str


def _kill_group(proc: subprocess.Popen) -> None:
    try:
        os.killpg(proc.pid, signal.SIGKILL)
    except ProcessLookupError:
        pass
    except OSError:
        proc.kill()


def run_tool(cmd: List[str], *, timeout: float) -> ToolResult:
    """
    Run `cmd` to completion or until `timeout` seconds elapse.

    Raises
    ------
    ToolNotFoundError
        When `cmd[0]` does not exist.
    ToolLaunchError
        When `cmd[0]` exists but cannot be executed.
    ToolTimeoutError
        When the deadline expires; the whole process group is SIGKILLed and
        reaped before this is raised.
    """
    started = time.monotonic()
    try:
        proc = subprocess.Popen(
            cmd,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            errors="replace",
            start_new_session=True,
        )
    except FileNotFoundError as exc:
        raise ToolNotFoundError(f"Command not found: {cmd[0]}") from exc
    except OSError as exc:
        # EACCES (no exec bit, a directory), ENOEXEC (not a binary), ...
        raise ToolLaunchError(f"Cannot execute {cmd[0]}: {exc.strerror or exc}") from exc

    try:
        out, err = proc.communicate(timeout=timeout)
    except subprocess.TimeoutExpired:
        logger.warning("%s exceeded %ss deadline; killing process group %s", cmd[0], timeout, proc.pid)
        _kill_group(proc)
        _, err = proc.communicate()
        raise ToolTimeoutError(cmd, timeout, err or "")

    logger.debug("%s exited %s in %.2fs", cmd[0], proc.returncode, time.monotonic() - started)
    return ToolResult(returncode=proc.returncode, stdout=out or "", stderr=err or "")


__all__ = ["ToolResult", "ToolError", "ToolLaunchError", "ToolNotFoundError", "ToolTimeoutError", "run_tool"]
