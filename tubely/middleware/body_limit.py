from __future__ import annotations

"""
# Tubely — Upload Size Gate (pure ASGI)

Rejects an upload whose declared `Content-Length` is over the route's limit
*before* the multipart body is read, so an oversized video never reaches the
spool directory.

- Limits are `(path_regex, max_bytes)` pairs; the first match wins.
- `slack_bytes` covers multipart framing (boundaries, part headers).
- Bodies without `Content-Length` (chunked) pass through; the route still
  checks the parsed file size.
"""

import re
from typing import Iterable, List, Optional, Pattern, Tuple

from starlette.datastructures import Headers
from starlette.responses import JSONResponse
from starlette.types import ASGIApp, Receive, Scope, Send

DEFAULT_SLACK_BYTES = 64 * 1024


class BodySizeLimitMiddleware:
    def __init__(
        self,
        app: ASGIApp,
        limits: Iterable[Tuple[str, int]] = (),
        slack_bytes: int = DEFAULT_SLACK_BYTES,
    ) -> None:
        self.app = app
        self.limits: List[Tuple[Pattern[str], int]] = [(re.compile(p), int(n)) for p, n in limits]
        self.slack_bytes = slack_bytes

    def _limit_for(self, path: str) -> Optional[int]:
        for pattern, max_bytes in self.limits:
            if pattern.search(path):
                return max_bytes
        return None

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope.get("type") != "http" or scope.get("method") not in ("POST", "PUT", "PATCH"):
            return await self.app(scope, receive, send)

        limit = self._limit_for(scope.get("path", ""))
        declared = Headers(scope=scope).get("content-length")
        if limit is None or not declared:
            return await self.app(scope, receive, send)

        try:
            length = int(declared)
        except ValueError:
            length = -1
        if length < 0:
            response = self._problem(scope, 400, "Bad Request", "Invalid Content-Length header", None)
        elif length > limit + self.slack_bytes:
            response = self._problem(scope, 413, "UploadTooLarge", f"Upload exceeds {limit} bytes", limit)
        else:
            return await self.app(scope, receive, send)
        await response(scope, receive, send)

    @staticmethod
    def _problem(scope: Scope, status_code: int, title: str, detail: str, limit: Optional[int]) -> JSONResponse:
        body = {
            "type": "about:blank",
            "title": title,
            "detail": detail,
            "status": status_code,
            "instance": scope.get("path", ""),
            "request_id": (scope.get("state") or {}).get("request_id", ""),
        }
        if limit is not None:
            body["details"] = {"max_bytes": limit}
        return JSONResponse(body, status_code=status_code, media_type="application/problem+json")


__all__ = ["BodySizeLimitMiddleware"]
