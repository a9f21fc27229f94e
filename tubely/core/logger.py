# tubely/core/logger.py
from __future__ import annotations

"""
Tubely — Logging (Loguru)
-------------------------
Imported once for its side effects by `tubely.main`.

- One console sink: colorized lines, or one JSON object per line (`LOG_JSON=1`)
- Optional rotating file sink (`LOG_FILE=logs/tubely.log`)
- Every line carries the `request_id` bound by RequestIDMiddleware, so the
  ffprobe / ffmpeg / S3 lines of one upload can be grepped together
- stdlib loggers (`tubely.*`, uvicorn, starlette, fastapi) are routed into
  Loguru under their own names

Env
---
LOG_LEVEL=INFO|DEBUG|WARNING|ERROR (default: INFO)
LOG_JSON=1
LOG_FILE=<path>          (unset: no file sink)
LOG_ROTATION=10 MB
"""

import json
import logging
import os
import sys
from pathlib import Path
from typing import Any, Dict

from dotenv import load_dotenv
from loguru import logger

load_dotenv()

INTERCEPTED = ("uvicorn", "uvicorn.error", "uvicorn.access", "fastapi", "starlette", "tubely")


def _truthy(name: str) -> bool:
    return os.getenv(name, "0").strip().lower() in {"1", "true", "yes"}


# ─────────────────────────────────────────────────────────────
# 🧾 Formatters
# ─────────────────────────────────────────────────────────────
def _origin(record) -> str:
    # Intercepted stdlib records keep the emitting logger's name.
    return record["extra"].get("stdlib_name") or record["name"]


def _fmt_pretty(record) -> str:
    rid = record["extra"].get("request_id")
    origin = _origin(record).replace("<", "[").replace(">", "]")
    suffix = " <dim>[{extra[request_id]}]</dim>" if rid else ""
    return (
        "<green>{time:HH:mm:ss.SSS}</green> <level>{level:<7}</level> "
        f"<cyan>{origin}</cyan> {{message}}{suffix}\n{{exception}}"
    )


def _fmt_json(record) -> str:
    payload: Dict[str, Any] = {
        "time": record["time"].isoformat(),
        "level": record["level"].name,
        "logger": _origin(record),
        "message": record["message"],
    }
    for k, v in record["extra"].items():
        if k not in ("stdlib_name", "serialized"):
            payload.setdefault(k, v)
    if record["exception"] is not None:
        payload["exception"] = repr(record["exception"].value)
    record["extra"]["serialized"] = json.dumps(payload, ensure_ascii=False, default=str)
    return "{extra[serialized]}\n"


# ─────────────────────────────────────────────────────────────
# 🔁 stdlib → Loguru
# ─────────────────────────────────────────────────────────────
class InterceptHandler(logging.Handler):
    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno
        logger.bind(stdlib_name=record.name).opt(depth=6, exception=record.exc_info).log(level, record.getMessage())


def configure_logging() -> None:
    level = os.getenv("LOG_LEVEL", "INFO").upper()
    fmt = _fmt_json if _truthy("LOG_JSON") else _fmt_pretty

    logger.remove()
    logger.add(sys.stdout, level=level, format=fmt, enqueue=True, backtrace=False, diagnose=False)

    log_file = os.getenv("LOG_FILE", "").strip()
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        logger.add(log_file, level=level, format=_fmt_json, rotation=os.getenv("LOG_ROTATION", "10 MB"), enqueue=True)

    for name in INTERCEPTED:
        std_logger = logging.getLogger(name)
        std_logger.handlers = [InterceptHandler()]
        std_logger.setLevel(level)
        std_logger.propagate = False


configure_logging()
