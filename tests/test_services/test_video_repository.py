# tests/test_services/test_video_repository.py

import uuid

import pytest

from tubely.repositories.videos import MemoryVideoRepository


def test_create_get_and_list():
    repo = MemoryVideoRepository()
    owner = uuid.uuid4()

    first = repo.create(user_id=owner, title="One")
    second = repo.create(user_id=owner, title="Two", description="desc")
    repo.create(user_id=uuid.uuid4(), title="Someone else")

    assert repo.get(first.id).title == "One"
    assert repo.get(uuid.uuid4()) is None
    assert {r.id for r in repo.list_for_user(owner)} == {first.id, second.id}


def test_update_urls_only_touches_given_fields():
    repo = MemoryVideoRepository()
    rec = repo.create(user_id=uuid.uuid4(), title="t")

    repo.update_urls(rec.id, thumbnail_url="b,thumbnails/a.png")
    updated = repo.update_urls(rec.id, video_url="b,landscape/a.mp4")

    assert updated.video_url == "b,landscape/a.mp4"
    assert updated.thumbnail_url == "b,thumbnails/a.png"
    assert updated.updated_at >= rec.updated_at


def test_returned_records_are_copies():
    repo = MemoryVideoRepository()
    rec = repo.create(user_id=uuid.uuid4(), title="t")
    rec.video_url = "tampered"
    assert repo.get(rec.id).video_url is None


def test_update_unknown_video():
    with pytest.raises(KeyError):
        MemoryVideoRepository().update_urls(uuid.uuid4(), video_url="b,k")
