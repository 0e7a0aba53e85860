"""Tests for services/asset_store.py using httpx.MockTransport."""

import hashlib

import httpx
import pytest

from services.asset_store import AssetStore


def make_store(handler) -> AssetStore:
    return AssetStore(
        cloud_name="demo",
        api_key="key-123",
        api_secret="abcd",
        base_url="https://api.cloudinary.test/v1_1/",
        transport=httpx.MockTransport(handler),
    )


@pytest.fixture
def image(tmp_path):
    path = tmp_path / "avatar.png"
    path.write_bytes(b"\x89PNG image-bytes")
    return path


def test_upload_url() -> None:
    store = make_store(lambda request: httpx.Response(200))

    assert store.upload_url == "https://api.cloudinary.test/v1_1/demo/auto/upload"


def test_sign_sorts_params_and_appends_secret() -> None:
    store = make_store(lambda request: httpx.Response(200))

    signature = store.sign({"timestamp": "1315060510", "public_id": "sample"})

    expected = hashlib.sha1(b"public_id=sample&timestamp=1315060510abcd").hexdigest()
    assert signature == expected


async def test_upload_success_returns_url_and_removes_file(image) -> None:
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        request.read()
        seen["url"] = str(request.url)
        seen["body"] = request.content
        return httpx.Response(
            200,
            json={
                "secure_url": "https://res.cloudinary.com/demo/image/upload/v1/avatar.png",
                "url": "http://res.cloudinary.com/demo/image/upload/v1/avatar.png",
                "public_id": "avatar",
                "resource_type": "image",
            },
        )

    result = await make_store(handler).upload(image)

    assert result.url == "https://res.cloudinary.com/demo/image/upload/v1/avatar.png"
    assert result.public_id == "avatar"
    assert seen["url"] == "https://api.cloudinary.test/v1_1/demo/auto/upload"
    assert b'name="api_key"' in seen["body"]
    assert b'name="signature"' in seen["body"]
    assert b"image-bytes" in seen["body"]
    assert not image.exists()


async def test_upload_falls_back_to_plain_url(image) -> None:
    store = make_store(lambda request: httpx.Response(200, json={"url": "http://cdn/a.png"}))

    result = await store.upload(image)

    assert result.url == "http://cdn/a.png"


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(500, text="boom"),
        httpx.Response(401, json={"error": {"message": "Invalid Signature"}}),
        httpx.Response(200, text="not json"),
        httpx.Response(200, json={"public_id": "x"}),
        httpx.Response(200, json=["unexpected"]),
    ],
)
async def test_upload_failure_returns_none_and_removes_file(image, response) -> None:
    result = await make_store(lambda request: response).upload(image)

    assert result is None
    assert not image.exists()


async def test_transport_error_returns_none(image) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    assert await make_store(handler).upload(image) is None
    assert not image.exists()


async def test_no_path_returns_none() -> None:
    store = make_store(lambda request: pytest.fail("no request expected"))

    assert await store.upload(None) is None


async def test_unconfigured_store_skips_upload(image) -> None:
    store = AssetStore(
        cloud_name="",
        api_key="",
        api_secret="",
        transport=httpx.MockTransport(lambda request: pytest.fail("no request expected")),
    )

    assert await store.upload(image) is None
    assert not image.exists()


async def test_missing_file_returns_none(tmp_path) -> None:
    store = make_store(lambda request: pytest.fail("no request expected"))

    assert await store.upload(tmp_path / "gone.png") is None
