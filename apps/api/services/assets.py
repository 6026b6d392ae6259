"""Image hosting for document thumbnails and covers (Cloudinary)."""

from __future__ import annotations

import hashlib
import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol

import httpx

from config import asset_host_configured, settings
from services.errors import UploadError

logger = logging.getLogger(__name__)

THUMBNAIL_FOLDER = "research-hub/thumbnails"
COVER_FOLDER = "research-hub/covers"


@dataclass
class UploadedAsset:
    """A binary received from a client, detached from the transport."""

    filename: str
    content_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)


class AssetResolver(Protocol):
    async def store(self, asset: UploadedAsset, folder: str) -> str:
        """Persist the binary and return a durable URL."""
        ...


def sign_params(params: Dict[str, Any], api_secret: str) -> str:
    """Cloudinary request signature: sha1 of sorted ``k=v`` pairs plus the secret."""
    to_sign = "&".join(f"{key}={params[key]}" for key in sorted(params) if params[key] not in (None, ""))
    return hashlib.sha1(f"{to_sign}{api_secret}".encode("utf-8")).hexdigest()


class CloudinaryAssetResolver:
    """Uploads images through the Cloudinary upload API."""

    def __init__(
        self,
        cloud_name: str,
        api_key: str,
        api_secret: str,
        base_url: str = "https://api.cloudinary.com/v1_1",
        timeout_seconds: float = 30,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.cloud_name = (cloud_name or "").strip()
        self.api_key = (api_key or "").strip()
        self.api_secret = (api_secret or "").strip()
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self._transport = transport

    @classmethod
    def from_settings(cls, transport: Optional[httpx.AsyncBaseTransport] = None) -> "CloudinaryAssetResolver":
        return cls(
            cloud_name=settings.CLOUDINARY_CLOUD_NAME,
            api_key=settings.CLOUDINARY_API_KEY,
            api_secret=settings.CLOUDINARY_API_SECRET,
            base_url=settings.CLOUDINARY_UPLOAD_URL,
            timeout_seconds=settings.ASSET_UPLOAD_TIMEOUT_SECONDS,
            transport=transport,
        )

    @property
    def configured(self) -> bool:
        return bool(self.cloud_name and self.api_key and self.api_secret)

    @property
    def upload_url(self) -> str:
        return f"{self.base_url}/{self.cloud_name}/image/upload"

    async def store(self, asset: UploadedAsset, folder: str) -> str:
        if not self.configured:
            raise UploadError(
                "Cloudinary is not configured. Please set CLOUDINARY_CLOUD_NAME, "
                "CLOUDINARY_API_KEY and CLOUDINARY_API_SECRET."
            )

        params = {"folder": folder, "timestamp": str(int(time.time()))}
        form = {
            **params,
            "api_key": self.api_key,
            "signature": sign_params(params, self.api_secret),
        }
        files = {"file": (asset.filename or "upload", asset.data, asset.content_type or "application/octet-stream")}

        async with httpx.AsyncClient(timeout=self.timeout_seconds, transport=self._transport) as client:
            try:
                response = await client.post(self.upload_url, data=form, files=files)
                response.raise_for_status()
            except httpx.HTTPStatusError as exc:
                logger.warning(
                    "asset_upload_rejected folder=%s status=%s",
                    folder,
                    exc.response.status_code,
                )
                raise UploadError(f"Asset host rejected upload ({exc.response.status_code}).") from exc
            except httpx.RequestError as exc:
                logger.warning("asset_upload_transport_failed folder=%s error=%s", folder, exc)
                raise UploadError("Asset host is unreachable.") from exc

        try:
            payload = response.json()
        except ValueError as exc:
            raise UploadError("Asset host returned an unreadable response.") from exc

        secure_url = str(payload.get("secure_url") or "").strip() if isinstance(payload, dict) else ""
        if not secure_url:
            raise UploadError("Asset host response did not include a URL.")

        logger.info("asset_uploaded folder=%s bytes=%s", folder, asset.size)
        return secure_url


def get_asset_resolver() -> AssetResolver:
    """FastAPI dependency returning the configured asset resolver."""
    if not asset_host_configured():
        logger.debug("asset host not fully configured; uploads will be rejected")
    return CloudinaryAssetResolver.from_settings()
