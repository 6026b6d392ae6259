import hashlib

import httpx
import pytest

from config import asset_host_configured, settings
from services.assets import (
    THUMBNAIL_FOLDER,
    CloudinaryAssetResolver,
    UploadedAsset,
    get_asset_resolver,
    sign_params,
)
from services.errors import UploadError


ASSET = UploadedAsset(filename="thumb.png", content_type="image/png", data=b"\x89PNG-bytes")


def _resolver(handler) -> CloudinaryAssetResolver:
    return CloudinaryAssetResolver(
        cloud_name="demo-cloud",
        api_key="key-123",
        api_secret="secret-456",
        transport=httpx.MockTransport(handler),
    )


def test_sign_params_matches_cloudinary_scheme():
    expected = hashlib.sha1(b"folder=research-hub/thumbnails&timestamp=1700000000secret-456").hexdigest()
    assert sign_params({"timestamp": "1700000000", "folder": THUMBNAIL_FOLDER}, "secret-456") == expected


@pytest.mark.asyncio
async def test_store_posts_signed_upload_and_returns_secure_url():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["body"] = request.read()
        return httpx.Response(200, json={"secure_url": "https://res.cloudinary.com/demo-cloud/thumb.png"})

    url = await _resolver(handler).store(ASSET, THUMBNAIL_FOLDER)

    assert url == "https://res.cloudinary.com/demo-cloud/thumb.png"
    assert seen["url"] == "https://api.cloudinary.com/v1_1/demo-cloud/image/upload"
    assert b"key-123" in seen["body"]
    assert b"research-hub/thumbnails" in seen["body"]
    assert b"\x89PNG-bytes" in seen["body"]
    assert b"secret-456" not in seen["body"]


@pytest.mark.asyncio
async def test_store_maps_rejection_to_upload_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(401, json={"error": {"message": "Invalid Signature"}})

    with pytest.raises(UploadError) as exc_info:
        await _resolver(handler).store(ASSET, THUMBNAIL_FOLDER)
    assert exc_info.value.status_code == 500


@pytest.mark.asyncio
async def test_store_maps_transport_failure_to_upload_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(UploadError):
        await _resolver(handler).store(ASSET, THUMBNAIL_FOLDER)


@pytest.mark.asyncio
async def test_store_requires_secure_url_in_response():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"public_id": "abc"})

    with pytest.raises(UploadError):
        await _resolver(handler).store(ASSET, THUMBNAIL_FOLDER)


@pytest.mark.asyncio
async def test_partial_configuration_disables_uploads(monkeypatch):
    monkeypatch.setattr(settings, "CLOUDINARY_CLOUD_NAME", "demo-cloud")
    monkeypatch.setattr(settings, "CLOUDINARY_API_KEY", "key-123")
    monkeypatch.setattr(settings, "CLOUDINARY_API_SECRET", "")

    assert asset_host_configured() is False
    resolver = get_asset_resolver()
    with pytest.raises(UploadError) as exc_info:
        await resolver.store(ASSET, THUMBNAIL_FOLDER)
    assert "not configured" in exc_info.value.message


def test_full_configuration_enables_uploads(monkeypatch):
    monkeypatch.setattr(settings, "CLOUDINARY_CLOUD_NAME", "demo-cloud")
    monkeypatch.setattr(settings, "CLOUDINARY_API_KEY", "key-123")
    monkeypatch.setattr(settings, "CLOUDINARY_API_SECRET", "secret-456")

    assert asset_host_configured() is True
    assert get_asset_resolver().configured is True
