import io

import pytest
from starlette.datastructures import Headers, UploadFile

from config import settings
from routers.research import UPLOAD_CHUNK_BYTES, read_upload
from services.errors import InvalidInputError


DOCUMENT_FIELDS = {"title": "A", "description": "B", "category": "C", "content": "D"}


class TrackingFile(io.BytesIO):
    """BytesIO that remembers how much of it was actually read."""

    def __init__(self, data: bytes):
        super().__init__(data)
        self.bytes_read = 0

    def read(self, size=-1):
        chunk = super().read(size)
        self.bytes_read += len(chunk)
        return chunk


def _upload(data: bytes, size=None) -> tuple:
    file = TrackingFile(data)
    upload = UploadFile(
        file,
        size=size,
        filename="big.png",
        headers=Headers({"content-type": "image/png"}),
    )
    return upload, file


@pytest.mark.asyncio
async def test_read_upload_stops_at_limit_and_closes():
    upload, file = _upload(b"x" * (8 * UPLOAD_CHUNK_BYTES))
    with pytest.raises(InvalidInputError) as exc_info:
        await read_upload(upload, "thumbnail", limit=4)
    assert "thumbnail exceeds the 4 byte upload limit" in exc_info.value.message
    assert file.bytes_read <= UPLOAD_CHUNK_BYTES
    assert file.closed


@pytest.mark.asyncio
async def test_read_upload_rejects_declared_size_without_reading():
    upload, file = _upload(b"x" * 64, size=64)
    with pytest.raises(InvalidInputError):
        await read_upload(upload, "coverImage", limit=8)
    assert file.bytes_read == 0
    assert file.closed


@pytest.mark.asyncio
async def test_read_upload_returns_small_file_whole():
    upload, file = _upload(b"png-bytes")
    assert await read_upload(upload, "thumbnail", limit=1024) == b"png-bytes"
    assert file.closed


@pytest.mark.asyncio
async def test_oversized_multipart_upload_is_400_before_storing(
    research_client, admin_headers, asset_resolver, monkeypatch
):
    monkeypatch.setattr(settings, "ASSET_MAX_UPLOAD_BYTES", 64)
    response = await research_client.post(
        "/api/research",
        data=DOCUMENT_FIELDS,
        files={"thumbnail": ("big.png", b"x" * 4096, "image/png")},
        headers=admin_headers,
    )
    assert response.status_code == 400
    assert response.json()["message"] == "thumbnail exceeds the 64 byte upload limit"
    assert asset_resolver.calls == []
    assert (await research_client.get("/api/research")).json() == []
