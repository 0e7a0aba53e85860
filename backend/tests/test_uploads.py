"""Tests for services/uploads.py."""

import io

from fastapi import UploadFile

from services.uploads import TempFileStore


async def test_save_writes_file_inside_directory(tmp_path) -> None:
    store = TempFileStore(tmp_path / "temp")
    upload = UploadFile(file=io.BytesIO(b"avatar-bytes"), filename="../../my avatar!.png")

    path = await store.save(upload)

    assert path.parent == tmp_path / "temp"
    assert path.read_bytes() == b"avatar-bytes"
    assert path.name.endswith("-myavatar.png")


async def test_same_name_does_not_collide(tmp_path) -> None:
    store = TempFileStore(tmp_path)

    first = await store.save(UploadFile(file=io.BytesIO(b"1"), filename="a.png"))
    second = await store.save(UploadFile(file=io.BytesIO(b"2"), filename="a.png"))

    assert first != second
    assert first.read_bytes() == b"1"
    assert second.read_bytes() == b"2"


async def test_missing_upload_returns_none(tmp_path) -> None:
    store = TempFileStore(tmp_path)

    assert await store.save(None) is None
    assert await store.save(UploadFile(file=io.BytesIO(b""), filename="")) is None
    assert list(tmp_path.iterdir()) == []
