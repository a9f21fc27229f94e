# tests/test_services/test_ingest.py

import io
import os

import pytest

from tubely.core.exceptions import ProbeError, RemuxError, StorageError, ValidationError
from tubely.media.probe import AspectClass, AspectInspector, StreamInfo
from tubely.services.ingest import VideoIngestPipeline, normalize_media_type
from tubely.services.urls import URLResolver
from tubely.utils.storage import LOCAL_BUCKET, LocalAssetStore

from tests.fixtures.fakes import FakeProbe, FakeRemuxer, FakeS3

PAYLOAD = b"\x00\x00\x00\x18ftypmp42" + b"\x01" * 4096


def _pipeline(scratch_dir, *, streams=None, probe_error=None, remuxer=None, store=None, mode="signed"):
    store = store or FakeS3(bucket="my-bucket")
    probe = FakeProbe(streams if streams is not None else [StreamInfo(1920, 1080, "video")], error=probe_error)
    pipeline = VideoIngestPipeline(
        inspector=AspectInspector(probe),
        remuxer=remuxer or FakeRemuxer(),
        store=store,
        resolver=URLResolver(store, mode=mode),
        allowed_types=["video/mp4"],
        scratch_dir=str(scratch_dir),
    )
    return pipeline, store, probe


def _leftovers(scratch_dir):
    return sorted(os.listdir(scratch_dir))


# ─────────────────────────────────────────────────────────────
# Media type gate
# ─────────────────────────────────────────────────────────────

@pytest.mark.parametrize("declared", ["video/mp4", "VIDEO/MP4", "video/mp4; codecs=avc1"])
def test_normalize_media_type_accepts(declared):
    assert normalize_media_type(declared, ["video/mp4"]) == "video/mp4"


@pytest.mark.parametrize("declared", [None, "", "mp4", "video/", "/mp4", "video/mp4/x", "video/quicktime"])
def test_normalize_media_type_rejects(declared):
    with pytest.raises(ValidationError):
        normalize_media_type(declared, ["video/mp4"])


# ─────────────────────────────────────────────────────────────
# Happy path
# ─────────────────────────────────────────────────────────────

@pytest.mark.parametrize(
    "streams,aspect",
    [
        ([StreamInfo(1920, 1080, "video")], AspectClass.LANDSCAPE),
        ([StreamInfo(0, 0, "audio"), StreamInfo(1080, 1920, "video")], AspectClass.PORTRAIT),
        ([StreamInfo(720, 720, "video")], AspectClass.OTHER),
    ],
)
def test_ingest_uploads_remuxed_file_under_orientation_prefix(scratch_dir, streams, aspect):
    pipeline, s3, _ = _pipeline(scratch_dir, streams=streams)

    result = pipeline.ingest("owner-1", "video-1", "video/mp4", io.BytesIO(PAYLOAD))

    assert result.aspect is aspect
    assert result.bucket == "my-bucket"
    assert result.key.startswith(aspect.prefix)
    assert result.key.endswith(".mp4")
    assert result.content_type == "video/mp4"
    assert result.video_url == f"my-bucket,{result.key}"

    [upload] = s3.uploads
    assert upload["key"] == result.key
    assert upload["content_type"] == "video/mp4"
    # The remuxed file is what gets stored, not the raw upload.
    assert upload["data"] == PAYLOAD + b"|faststart"

    assert _leftovers(scratch_dir) == []


def test_ingest_static_mode_returns_public_url(scratch_dir):
    pipeline, _, _ = _pipeline(scratch_dir, mode="static")
    result = pipeline.ingest("o", "v", "video/mp4", io.BytesIO(PAYLOAD))
    assert result.video_url == f"https://my-bucket.s3.us-east-1.amazonaws.com/{result.key}"


def test_ingest_never_reuses_keys(scratch_dir):
    pipeline, s3, _ = _pipeline(scratch_dir)
    a = pipeline.ingest("o", "v", "video/mp4", io.BytesIO(PAYLOAD))
    b = pipeline.ingest("o", "v", "video/mp4", io.BytesIO(PAYLOAD))
    assert a.key != b.key
    assert len(s3.uploads) == 2


def test_probe_sees_the_scratch_copy(scratch_dir):
    pipeline, _, probe = _pipeline(scratch_dir)
    pipeline.ingest("o", "v", "video/mp4", io.BytesIO(PAYLOAD))
    [probed] = probe.calls
    assert os.path.dirname(probed) == str(scratch_dir)
    assert probed.endswith(".mp4")


# ─────────────────────────────────────────────────────────────
# Fail fast: nothing stored, nothing left behind
# ─────────────────────────────────────────────────────────────

def test_unsupported_type_touches_nothing(scratch_dir):
    remuxer = FakeRemuxer()
    pipeline, s3, probe = _pipeline(scratch_dir, remuxer=remuxer)

    with pytest.raises(ValidationError):
        pipeline.ingest("o", "v", "video/quicktime", io.BytesIO(PAYLOAD))

    assert probe.calls == []
    assert remuxer.calls == []
    assert s3.uploads == []
    assert _leftovers(scratch_dir) == []


def test_zero_streams_is_probe_error_without_upload(scratch_dir):
    remuxer = FakeRemuxer()
    pipeline, s3, _ = _pipeline(scratch_dir, streams=[], remuxer=remuxer)

    with pytest.raises(ProbeError):
        pipeline.ingest("o", "v", "video/mp4", io.BytesIO(PAYLOAD))

    assert remuxer.calls == []
    assert s3.uploads == []
    assert _leftovers(scratch_dir) == []


def test_probe_failure_without_upload(scratch_dir):
    pipeline, s3, _ = _pipeline(scratch_dir, probe_error=ProbeError("ffprobe exited with status 1", stderr="bad"))

    with pytest.raises(ProbeError):
        pipeline.ingest("o", "v", "video/mp4", io.BytesIO(b"not a video"))

    assert s3.uploads == []
    assert _leftovers(scratch_dir) == []


def test_remux_failure_carries_stderr_and_cleans_partial_output(scratch_dir):
    remuxer = FakeRemuxer(exit_code=1, stderr="moov atom not found")
    pipeline, s3, _ = _pipeline(scratch_dir, remuxer=remuxer)

    with pytest.raises(RemuxError) as ei:
        pipeline.ingest("o", "v", "video/mp4", io.BytesIO(PAYLOAD))

    assert ei.value.exit_code == 1
    assert "moov atom not found" in ei.value.stderr
    assert s3.uploads == []
    assert _leftovers(scratch_dir) == []


def test_storage_failure_surfaces_and_cleans_up(scratch_dir):
    pipeline, _, _ = _pipeline(scratch_dir, store=FakeS3(bucket="my-bucket", fail_upload=True))

    with pytest.raises(StorageError):
        pipeline.ingest("o", "v", "video/mp4", io.BytesIO(PAYLOAD))

    assert _leftovers(scratch_dir) == []


# ─────────────────────────────────────────────────────────────
# Local asset store backend
# ─────────────────────────────────────────────────────────────

def test_ingest_into_local_asset_store(scratch_dir, tmp_path):
    assets = tmp_path / "assets"
    store = LocalAssetStore(str(assets), base_url="http://localhost:8091")
    pipeline, _, _ = _pipeline(scratch_dir, store=store, streams=[StreamInfo(1080, 1920, "video")])

    result = pipeline.ingest("o", "v", "video/mp4", io.BytesIO(PAYLOAD))

    assert result.bucket == LOCAL_BUCKET
    assert result.key.startswith("portrait/")
    assert result.video_url == f"{LOCAL_BUCKET},{result.key}"
    assert (assets / result.key).read_bytes() == PAYLOAD + b"|faststart"

    resolver = URLResolver(store, mode="signed")
    assert resolver.resolve(result.video_url) == f"http://localhost:8091/assets/{result.key}"
    assert _leftovers(scratch_dir) == []


def test_ingest_local_static_mode_returns_assets_url(scratch_dir, tmp_path):
    store = LocalAssetStore(str(tmp_path / "assets"), base_url="")
    pipeline, _, _ = _pipeline(scratch_dir, store=store, mode="static")

    result = pipeline.ingest("o", "v", "video/mp4", io.BytesIO(PAYLOAD))

    assert result.video_url == f"/assets/{result.key}"
