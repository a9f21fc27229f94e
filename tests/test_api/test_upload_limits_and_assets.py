# tests/test_api/test_upload_limits_and_assets.py

import pytest
from fastapi import FastAPI, File, UploadFile
from httpx import ASGITransport, AsyncClient

from tubely.middleware.body_limit import BodySizeLimitMiddleware

pytestmark = pytest.mark.anyio


# ─────────────────────────────────────────────────────────────
# Upload size gate (mounted on a minimal app)
# ─────────────────────────────────────────────────────────────

def _mk_app(calls):
    app = FastAPI()
    app.add_middleware(BodySizeLimitMiddleware, limits=[(r"/videos/[^/]+/video$", 100)], slack_bytes=0)

    @app.post("/videos/{video_id}/video")
    async def upload(video_id: str, video: UploadFile = File(...)):
        calls.append(video_id)
        return {"size": len(await video.read())}

    @app.post("/other")
    async def other(video: UploadFile = File(...)):
        calls.append("other")
        return {"size": len(await video.read())}

    return app


async def _post(app, path, data: bytes):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        return await client.post(path, files={"video": ("a.mp4", data, "video/mp4")})


async def test_oversized_declared_body_rejected_before_route():
    calls = []
    r = await _post(_mk_app(calls), "/videos/abc/video", b"x" * 500)

    assert r.status_code == 413
    assert r.headers["content-type"].startswith("application/problem+json")
    assert r.json()["details"] == {"max_bytes": 100}
    assert calls == []


async def test_small_body_passes():
    calls = []
    r = await _post(_mk_app(calls), "/videos/abc/video", b"x")
    assert r.status_code == 200
    assert calls == ["abc"]


async def test_unlisted_paths_are_not_limited():
    calls = []
    r = await _post(_mk_app(calls), "/other", b"x" * 500)
    assert r.status_code == 200
    assert calls == ["other"]


# ─────────────────────────────────────────────────────────────
# Local asset store served at /assets
# ─────────────────────────────────────────────────────────────

async def test_local_backend_serves_assets(monkeypatch, tmp_path):
    from tubely.core.config import settings
    from tubely.main import create_app

    monkeypatch.setattr(settings, "STORAGE_BACKEND", "local")
    monkeypatch.setattr(settings, "ASSETS_ROOT", str(tmp_path / "assets"))
    app = create_app()
    (tmp_path / "assets" / "landscape").mkdir(parents=True)
    (tmp_path / "assets" / "landscape" / "abc.mp4").write_bytes(b"movie")

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        r = await client.get("/assets/landscape/abc.mp4")

    assert r.status_code == 200
    assert r.content == b"movie"


async def test_s3_backend_does_not_mount_assets(async_client):
    r = await async_client.get("/assets/landscape/abc.mp4")
    assert r.status_code == 404
