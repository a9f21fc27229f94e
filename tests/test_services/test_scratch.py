# tests/test_services/test_scratch.py

import os

import pytest

from tubely.services.scratch import SCRATCH_PREFIX, ScratchSpace


def test_files_are_removed_on_exit(tmp_path):
    with ScratchSpace(str(tmp_path)) as scratch:
        raw = scratch.new_file(suffix=".mp4")
        out = scratch.reserve(raw + ".processing")
        with open(out, "wb") as fh:
            fh.write(b"x")
        assert os.path.basename(raw).startswith(SCRATCH_PREFIX)
        assert os.path.exists(raw) and os.path.exists(out)

    assert os.listdir(tmp_path) == []


def test_files_are_removed_when_body_raises(tmp_path):
    with pytest.raises(RuntimeError):
        with ScratchSpace(str(tmp_path)) as scratch:
            scratch.new_file(suffix=".mp4")
            raise RuntimeError("boom")

    assert os.listdir(tmp_path) == []


def test_reserved_path_never_created_is_fine(tmp_path):
    with ScratchSpace(str(tmp_path)) as scratch:
        scratch.reserve(str(tmp_path / "never-written"))
        scratch.reserve(str(tmp_path / "never-written"))
        assert len(scratch.paths) == 1
    assert scratch.paths == []


def test_invocations_do_not_collide(tmp_path):
    with ScratchSpace(str(tmp_path)) as a, ScratchSpace(str(tmp_path)) as b:
        assert a.new_file(".mp4") != b.new_file(".mp4")
